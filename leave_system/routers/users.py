from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from leave_system.core.schemas import ApiResponse
from leave_system.database import get_db
from leave_system.models.account import Account
from leave_system.routers.auth_deps import get_current_account
from leave_system.schemas.account import PasswordChange
from leave_system.services.account_store import AccountStore

router = APIRouter(
    prefix="/user",
    tags=["user"]
)


@router.put("/change-password", response_model=ApiResponse[None])
def change_password(
    data: PasswordChange,
    db: Session = Depends(get_db),
    current_account: Account = Depends(get_current_account),
):
    """Change the caller's own password."""
    AccountStore(db).change_password(current_account, data.current_password, data.new_password)
    return ApiResponse.ok(message="密碼變更成功")
