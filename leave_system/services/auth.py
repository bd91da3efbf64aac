import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.orm import Session

from leave_system.core.config import settings
from leave_system.core.exceptions import AuthenticationError
from leave_system.models.account import Account
from leave_system.services.account_store import AccountStore

logger = logging.getLogger(__name__)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire, "iat": now, "type": to_encode.get("type", "access")})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode a token. Returns the payload, {"error": "TOKEN_EXPIRED"} for an
    expired token, or None when the token is invalid.
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        return {"error": "TOKEN_EXPIRED"}
    except JWTError:
        return None


def token_for(account: Account) -> str:
    return create_access_token(data={
        "sub": account.employee_id,
        "permission": account.permission,
        "type": "access",
    })


def authenticate(db: Session, employee_id: str, password: str) -> Account:
    accounts = AccountStore(db)
    account = accounts.find(employee_id)
    if account is None or not accounts.verify_password(account, password):
        logger.info("Login failed", extra={"employee_id": employee_id})
        raise AuthenticationError("工號或密碼錯誤")
    return account
