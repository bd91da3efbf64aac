from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from leave_system.core.schemas import ApiResponse
from leave_system.database import get_db
from leave_system.models.account import Account
from leave_system.routers.auth_deps import get_current_account, require_admin, scoped_employee_id
from leave_system.schemas.leave import (
    LeaveRecordCreate,
    LeaveRecordResponse,
    LeaveRecordsPage,
    QuotaBalance,
    QuotaBalancesResponse,
    quota_map,
)
from leave_system.services.account_store import AccountStore
from leave_system.services.leave_query import LeaveFilter, LeaveQueryService
from leave_system.services.leave_service import LeaveService
from leave_system.services.quota_ledger import QuotaLedger
from leave_system.services.record_store import utcnow

router = APIRouter(
    prefix="/leave",
    tags=["leave"]
)


def leave_filter_params(
    employee_id: Optional[str] = Query(None, alias="employeeId"),
    start_month: Optional[str] = Query(None, alias="startMonth"),
    end_month: Optional[str] = Query(None, alias="endMonth"),
    approval_status: Optional[str] = Query(None, alias="approvalStatus"),
    leave_type: Optional[str] = Query(None, alias="leaveType"),
    current_account: Account = Depends(get_current_account),
) -> LeaveFilter:
    return LeaveFilter.from_params(
        employee_id=scoped_employee_id(current_account, employee_id),
        start_month=start_month,
        end_month=end_month,
        approval_status=approval_status,
        leave_type=leave_type,
    )


@router.get("/records", response_model=ApiResponse[LeaveRecordsPage])
def list_leave_records(
    leave_filter: LeaveFilter = Depends(leave_filter_params),
    db: Session = Depends(get_db),
):
    records, statistics = LeaveQueryService(db).search(leave_filter)

    # Quotas only describe a listing scoped to one employee
    accounts = AccountStore(db)
    owner = accounts.find(leave_filter.employee_id) if leave_filter.employee_id else None
    annual_quotas = {}
    remaining = None
    if owner is not None:
        annual_quotas = quota_map(owner.quotas)
        balances = QuotaLedger(db, accounts=accounts).balances(owner.employee_id, utcnow().year)
        remaining = {q.value: float(b["remaining"]) for q, b in balances.items()}

    page = LeaveRecordsPage(
        records=[LeaveRecordResponse.model_validate(r) for r in records],
        statistics=quota_map(statistics),
        annual_quotas=annual_quotas,
        remaining_quotas=remaining,
        total=len(records),
    )
    return ApiResponse.ok(page)


@router.post("/records", response_model=ApiResponse[LeaveRecordResponse])
def submit_leave_record(
    request: LeaveRecordCreate,
    db: Session = Depends(get_db),
    current_account: Account = Depends(get_current_account),
):
    record = LeaveService(db).submit(
        employee_id=current_account.employee_id,
        leave_type=request.leave_type,
        start_date=request.start_date,
        start_time=request.start_time,
        end_date=request.end_date,
        end_time=request.end_time,
        leave_hours=request.leave_hours,
        reason=request.reason,
    )
    return ApiResponse.ok(LeaveRecordResponse.model_validate(record), message="請假申請已送出")


@router.put("/records/{record_id}/approve", response_model=ApiResponse[LeaveRecordResponse])
def approve_leave_record(
    record_id: int,
    db: Session = Depends(get_db),
    admin: Account = Depends(require_admin),
):
    record = LeaveService(db).approve(record_id, admin)
    return ApiResponse.ok(LeaveRecordResponse.model_validate(record), message="已審核")


@router.put("/records/{record_id}/reject", response_model=ApiResponse[LeaveRecordResponse])
def reject_leave_record(
    record_id: int,
    db: Session = Depends(get_db),
    admin: Account = Depends(require_admin),
):
    record = LeaveService(db).reject(record_id, admin)
    return ApiResponse.ok(LeaveRecordResponse.model_validate(record), message="已退回")


@router.get("/quotas", response_model=ApiResponse[QuotaBalancesResponse])
def get_quota_balances(
    employee_id: Optional[str] = Query(None, alias="employeeId"),
    year: Optional[int] = Query(None, ge=1, le=9999),
    db: Session = Depends(get_db),
    current_account: Account = Depends(get_current_account),
):
    """Allotment, consumed (pending + approved) and remaining hours per quota type."""
    target = scoped_employee_id(current_account, employee_id) or current_account.employee_id
    year = year or utcnow().year
    balances = QuotaLedger(db).balances(target, year)
    return ApiResponse.ok(QuotaBalancesResponse(
        employee_id=target,
        year=year,
        balances=[
            QuotaBalance(
                quota_type=q.value,
                quota=float(b["quota"]),
                consumed=float(b["consumed"]),
                remaining=float(b["remaining"]),
            )
            for q, b in balances.items()
        ],
    ))
