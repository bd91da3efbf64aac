"""
Employee account with its configured annual leave quotas.
"""
from decimal import Decimal
from typing import Dict, Optional
import enum

from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.sql import func

from leave_system.core.config import settings
from leave_system.database import Base
from leave_system.models.leave_category import QuotaType


class Permission(str, enum.Enum):
    EMPLOYEE = "employee"
    ADMIN = "admin"

    @property
    def label(self) -> str:
        return "管理者" if self is Permission.ADMIN else "員工"


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    encrypted_password = Column(String, nullable=False)
    permission = Column(String, default=Permission.EMPLOYEE.value, nullable=False)

    # Annual allotments in hours; NULL falls back to the configured default
    annual_leave = Column(Numeric(10, 2), nullable=True)
    sick_leave = Column(Numeric(10, 2), nullable=True)
    menstrual_leave = Column(Numeric(10, 2), nullable=True)
    personal_leave = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Account {self.employee_id} ({self.permission})>"

    @property
    def is_admin(self) -> bool:
        return self.permission == Permission.ADMIN.value

    def quota_for(self, quota_type: QuotaType) -> Decimal:
        configured: Optional[Decimal] = getattr(self, quota_type.attribute)
        if configured is None:
            return default_quota(quota_type)
        return Decimal(configured)

    @property
    def quotas(self) -> Dict[QuotaType, Decimal]:
        return {q: self.quota_for(q) for q in QuotaType}


def default_quota(quota_type: QuotaType) -> Decimal:
    return getattr(settings.quota_defaults, quota_type.attribute)
