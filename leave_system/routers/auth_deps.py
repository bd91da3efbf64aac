"""
Authentication and permission dependencies for the API routers.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from leave_system.database import get_db
from leave_system.models.account import Account
from leave_system.services import auth as auth_service
from leave_system.services.account_store import AccountStore

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_account(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> Account:
    """Resolve the bearer token to a live account, or answer 401."""
    payload = auth_service.decode_access_token(token)
    if payload is None:
        logger.warning("Authentication failed: invalid token")
        raise _unauthorized("Could not validate credentials")
    if payload.get("error") == "TOKEN_EXPIRED":
        raise _unauthorized("TOKEN_EXPIRED")
    if payload.get("type") != "access":
        logger.warning("Authentication failed: wrong token type")
        raise _unauthorized("Invalid token type")

    employee_id = payload.get("sub")
    account = AccountStore(db).find(employee_id) if employee_id else None
    if account is None:
        # Deleted since the token was issued
        logger.warning(f"Authentication failed: account {employee_id} not found")
        raise _unauthorized("User not found")
    return account


def require_admin(current_account: Account = Depends(get_current_account)) -> Account:
    if not current_account.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Administrator permission required",
        )
    return current_account


def scoped_employee_id(current_account: Account, requested: Optional[str] = None) -> Optional[str]:
    """Administrators may look at anyone (or everyone); employees only at themselves."""
    if current_account.is_admin:
        return requested or None
    return current_account.employee_id
