from decimal import Decimal
from typing import Dict, Optional

from leave_system.core.schemas import CamelModel
from leave_system.models.leave_category import QuotaType


class QuotaFields(CamelModel):
    annual_leave: Optional[Decimal] = None
    sick_leave: Optional[Decimal] = None
    menstrual_leave: Optional[Decimal] = None
    personal_leave: Optional[Decimal] = None

    def quotas(self) -> Dict[QuotaType, Optional[Decimal]]:
        return {q: getattr(self, q.attribute) for q in QuotaType}


class AccountCreate(QuotaFields):
    employee_id: str
    name: str
    password: str
    permission: str


class AccountUpdate(QuotaFields):
    name: Optional[str] = None
    password: Optional[str] = None
    permission: Optional[str] = None


class AccountAdminView(CamelModel):
    """Admin listing; the password is returned in clear for the admin page."""
    employee_id: str
    name: str
    password: str
    permission: str
    annual_leave: float
    sick_leave: float
    menstrual_leave: float
    personal_leave: float


class AccountProfile(CamelModel):
    employee_id: str
    name: str
    permission: str


class PasswordChange(CamelModel):
    current_password: str
    new_password: str
