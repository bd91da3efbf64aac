"""
Account Quota Store: employee accounts and their configured annual quotas.
"""
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from sqlalchemy import select

from leave_system.core.config import settings
from leave_system.core.exceptions import (
    ConflictError,
    NotFoundError,
    SelfDeletionError,
    ValidationError,
)
from leave_system.core.security import decrypt_data, encrypt_data
from leave_system.models.account import Account, Permission, default_quota
from leave_system.models.leave_category import QuotaType, is_storable_hours
from leave_system.services.base import BaseService


def _parse_permission(value) -> Permission:
    try:
        return Permission(value)
    except ValueError:
        raise ValidationError("權限值無效", details={"field": "permission"}) from None


def _parse_quota(quota_type: QuotaType, value) -> Decimal:
    try:
        quota = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError("假別額度格式錯誤", details={"field": quota_type.value}) from None
    if not quota.is_finite() or quota < 0:
        raise ValidationError("假別額度不可為負數", details={"field": quota_type.value})
    if not is_storable_hours(quota):
        raise ValidationError("假別額度最多兩位小數", details={"field": quota_type.value})
    return quota


def _require(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError("所有欄位都是必填的", details={"field": field})
    return value


class AccountStore(BaseService):

    def list_accounts(self) -> List[Account]:
        return list(self.db.scalars(select(Account).order_by(Account.employee_id)))

    def find(self, employee_id: str) -> Optional[Account]:
        return self.db.scalar(select(Account).where(Account.employee_id == employee_id))

    def get(self, employee_id: str) -> Account:
        account = self.find(employee_id)
        if account is None:
            raise NotFoundError("用戶不存在")
        return account

    def get_for_update(self, employee_id: str) -> Account:
        """Load the account row locked for the rest of the transaction (PostgreSQL; no-op on SQLite)."""
        account = self.db.scalar(
            select(Account)
            .where(Account.employee_id == employee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if account is None:
            raise NotFoundError("用戶不存在")
        return account

    def quotas_for(self, employee_id: str) -> Dict[QuotaType, Decimal]:
        """Configured allotments; an account value always wins over the default."""
        return self.get(employee_id).quotas

    def password_of(self, account: Account) -> str:
        return decrypt_data(account.encrypted_password)

    def verify_password(self, account: Account, password: str) -> bool:
        return password is not None and self.password_of(account) == password

    def create(
        self,
        employee_id: str,
        name: str,
        password: str,
        permission: str,
        quotas: Optional[Dict[QuotaType, object]] = None,
    ) -> Account:
        employee_id = _require(employee_id, "employeeId").strip()
        _require(name, "name")
        _require(password, "password")
        _require(permission, "permission")
        permission = _parse_permission(permission)
        quotas = quotas or {}

        if self.find(employee_id) is not None:
            raise ConflictError("工號已存在")

        account = Account(
            employee_id=employee_id,
            name=name,
            encrypted_password=encrypt_data(password),
            permission=permission.value,
        )
        for quota_type in QuotaType:
            value = quotas.get(quota_type)
            setattr(
                account,
                quota_type.attribute,
                default_quota(quota_type) if value is None else _parse_quota(quota_type, value),
            )
        self.db.add(account)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(account)
        self.log_info(f"Account {employee_id} created", employee_id=employee_id, permission=permission.value)
        return account

    def update(
        self,
        employee_id: str,
        name: Optional[str] = None,
        password: Optional[str] = None,
        permission: Optional[str] = None,
        quotas: Optional[Dict[QuotaType, object]] = None,
    ) -> Account:
        """Replace the given fields; anything left as None keeps its stored value. employee_id is immutable."""
        account = self.get(employee_id)
        parsed_quotas = {
            quota_type: _parse_quota(quota_type, value)
            for quota_type, value in (quotas or {}).items()
            if value is not None
        }
        if name is not None:
            account.name = _require(name, "name")
        if password is not None:
            account.encrypted_password = encrypt_data(_require(password, "password"))
        if permission is not None:
            account.permission = _parse_permission(permission).value
        for quota_type, quota in parsed_quotas.items():
            setattr(account, quota_type.attribute, quota)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(account)
        self.log_info(f"Account {employee_id} updated", employee_id=employee_id)
        return account

    def delete(self, employee_id: str, acting_employee_id: str) -> None:
        account = self.get(employee_id)
        if employee_id == acting_employee_id:
            raise SelfDeletionError()
        self.db.delete(account)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.log_info(f"Account {employee_id} deleted", employee_id=employee_id, deleted_by=acting_employee_id)

    def change_password(self, account: Account, current_password: str, new_password: str) -> None:
        if not current_password or not new_password:
            raise ValidationError("請輸入目前密碼與新密碼")
        if not self.verify_password(account, current_password):
            raise ValidationError("目前密碼不正確", details={"field": "currentPassword"})
        if len(new_password) < settings.min_password_length:
            raise ValidationError(
                f"新密碼至少需要{settings.min_password_length}個字符",
                details={"field": "newPassword"},
            )
        if new_password == current_password:
            raise ValidationError("新密碼不能與目前密碼相同", details={"field": "newPassword"})
        account.encrypted_password = encrypt_data(new_password)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.log_info(f"Password changed for {account.employee_id}", employee_id=account.employee_id)
