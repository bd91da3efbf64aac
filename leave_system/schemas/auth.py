from typing import Optional

from leave_system.core.schemas import CamelModel
from leave_system.schemas.account import AccountProfile


class LoginRequest(CamelModel):
    employee_id: str
    password: str


class Token(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: Optional[AccountProfile] = None
