from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from leave_system.core.config import settings
from leave_system.core.limiter import limiter
from leave_system.core.schemas import ApiResponse
from leave_system.database import get_db
from leave_system.models.account import Account
from leave_system.routers.auth_deps import get_current_account
from leave_system.schemas.account import AccountProfile
from leave_system.schemas.auth import LoginRequest, Token
from leave_system.services import auth as auth_service

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/login", response_model=ApiResponse[Token])
@limiter.limit(settings.login_rate_limit)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    account = auth_service.authenticate(db, login_data.employee_id, login_data.password)
    token = Token(
        access_token=auth_service.token_for(account),
        user=AccountProfile.model_validate(account),
    )
    return ApiResponse.ok(token)


@router.get("/me", response_model=ApiResponse[AccountProfile])
def get_me(current_account: Account = Depends(get_current_account)):
    return ApiResponse.ok(AccountProfile.model_validate(current_account))
