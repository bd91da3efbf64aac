import logging
from sqlalchemy import func, select

from leave_system.core.config import settings
from leave_system.database import SessionLocal
from leave_system.models.account import Account, Permission
from leave_system.services.account_store import AccountStore

logger = logging.getLogger(__name__)


def init_system_data(session_factory=SessionLocal):
    """
    Checks if the system needs initialization.
    If no account exists, creates the bootstrap administrator.
    """
    if not settings.bootstrap_admin or not settings.bootstrap_admin_password:
        return
    db = session_factory()
    try:
        account_count = db.scalar(select(func.count(Account.id)))
        if account_count == 0:
            logger.info("Running startup initialization...")
            AccountStore(db).create(
                employee_id=settings.bootstrap_admin_id,
                name=settings.bootstrap_admin_name,
                password=settings.bootstrap_admin_password,
                permission=Permission.ADMIN.value,
            )
            logger.info(
                f"✓ Created default admin: {settings.bootstrap_admin_id} (password from settings, change immediately)"
            )
        else:
            logger.info(f"System initialization check: {account_count} account(s) found.")
    finally:
        db.close()
