import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from starlette.background import BackgroundTask

from leave_system.core.config import settings
from leave_system.core.schemas import ApiResponse
from leave_system.database import get_db
from leave_system.models.account import Account
from leave_system.models.leave_category import QuotaType
from leave_system.routers.auth_deps import require_admin
from leave_system.routers.leave import leave_filter_params
from leave_system.schemas.account import AccountAdminView, AccountCreate, AccountUpdate
from leave_system.services import export
from leave_system.services.account_store import AccountStore
from leave_system.services.leave_query import LeaveFilter, LeaveQueryService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)]
)


def _admin_view(accounts: AccountStore, account: Account) -> AccountAdminView:
    quotas = account.quotas
    return AccountAdminView(
        employee_id=account.employee_id,
        name=account.name,
        password=accounts.password_of(account),
        permission=account.permission,
        annual_leave=float(quotas[QuotaType.ANNUAL]),
        sick_leave=float(quotas[QuotaType.SICK]),
        menstrual_leave=float(quotas[QuotaType.MENSTRUAL]),
        personal_leave=float(quotas[QuotaType.PERSONAL]),
    )


def _csv_response(path: str, filename: str) -> FileResponse:
    # The temp file is removed once the body has been sent
    return FileResponse(
        path,
        media_type="text/csv; charset=utf-8",
        filename=filename,
        background=BackgroundTask(export.discard, path),
    )


@router.get("/users", response_model=ApiResponse[List[AccountAdminView]])
def list_users(db: Session = Depends(get_db)):
    accounts = AccountStore(db)
    return ApiResponse.ok([_admin_view(accounts, a) for a in accounts.list_accounts()])


@router.post("/users", response_model=ApiResponse[AccountAdminView])
def create_user(data: AccountCreate, db: Session = Depends(get_db)):
    accounts = AccountStore(db)
    account = accounts.create(
        employee_id=data.employee_id,
        name=data.name,
        password=data.password,
        permission=data.permission,
        quotas=data.quotas(),
    )
    return ApiResponse.ok(_admin_view(accounts, account), message="用戶新增成功")


@router.put("/users/{employee_id}", response_model=ApiResponse[AccountAdminView])
def update_user(employee_id: str, data: AccountUpdate, db: Session = Depends(get_db)):
    accounts = AccountStore(db)
    account = accounts.update(
        employee_id,
        name=data.name,
        password=data.password,
        permission=data.permission,
        quotas=data.quotas(),
    )
    return ApiResponse.ok(_admin_view(accounts, account), message="用戶更新成功")


@router.delete("/users/{employee_id}", response_model=ApiResponse[None])
def delete_user(
    employee_id: str,
    db: Session = Depends(get_db),
    admin: Account = Depends(require_admin),
):
    AccountStore(db).delete(employee_id, acting_employee_id=admin.employee_id)
    return ApiResponse.ok(message="用戶刪除成功")


@router.post("/users/export")
def export_users(db: Session = Depends(get_db)):
    accounts = AccountStore(db)
    rows = export.account_rows(accounts.list_accounts(), accounts.password_of)
    path, filename = export.create_export(rows, export.ACCOUNT_HEADERS, settings.account_export_prefix)
    logger.info(f"Account CSV exported: {filename}", extra={"rows": len(rows)})
    return _csv_response(path, filename)


@router.post("/leave-records/export")
def export_leave_records(
    leave_filter: LeaveFilter = Depends(leave_filter_params),
    db: Session = Depends(get_db),
):
    records = LeaveQueryService(db).list_records(leave_filter)
    rows = export.leave_record_rows(records)
    path, filename = export.create_export(rows, export.LEAVE_RECORD_HEADERS, settings.leave_export_prefix)
    logger.info(f"Leave record CSV exported: {filename}", extra={"rows": len(rows)})
    return _csv_response(path, filename)
