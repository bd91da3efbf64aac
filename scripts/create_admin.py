import argparse
import logging
import os
import sys

# Ensure we can import leave_system modules
sys.path.append(os.getcwd())

from leave_system.core.exceptions import AppException
from leave_system.database import SessionLocal, init_db
from leave_system.models.account import Permission
from leave_system.services.account_store import AccountStore

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def create_admin_account(employee_id: str, name: str, password: str) -> int:
    init_db()
    db = SessionLocal()
    try:
        accounts = AccountStore(db)
        if accounts.find(employee_id) is not None:
            logger.warning(f"Account '{employee_id}' already exists.")
            return 1
        accounts.create(employee_id=employee_id, name=name, password=password, permission=Permission.ADMIN.value)
        logger.info(f"Admin account {employee_id} created successfully. You can now login.")
        return 0
    except AppException as e:
        logger.error(f"Error creating admin account: {e.message}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an administrator account")
    parser.add_argument("employee_id")
    parser.add_argument("name")
    parser.add_argument("password")
    args = parser.parse_args()
    sys.exit(create_admin_account(args.employee_id, args.name, args.password))
