"""
Write side of leave handling: submission (quota-checked admission) and
approval/rejection by an administrator.
"""
from datetime import date, time
from typing import Optional

from sqlalchemy.orm import Session

from leave_system.core.exceptions import AccessDeniedError, QuotaExceededError, ValidationError
from leave_system.models.account import Account
from leave_system.models.leave_category import LeaveCategory
from leave_system.models.leave_record import ApprovalStatus, LeaveRecord
from leave_system.services.account_store import AccountStore
from leave_system.services.base import BaseService
from leave_system.services.quota_ledger import QuotaLedger, employee_lock
from leave_system.services.record_store import LeaveRecordStore, resolve_leave_hours


class LeaveService(BaseService):

    def __init__(self, db: Session):
        super().__init__(db)
        self.store = LeaveRecordStore(db)
        self.accounts = AccountStore(db)
        self.ledger = QuotaLedger(db, store=self.store, accounts=self.accounts)

    def submit(
        self,
        employee_id: str,
        leave_type: str,
        start_date: date,
        start_time: time,
        end_date: date,
        end_time: time,
        leave_hours=None,
        reason: Optional[str] = None,
    ) -> LeaveRecord:
        """
        Admit a leave request as pending, or raise QuotaExceededError.

        The balance check and the insert run under the employee's lock and
        inside one transaction, so concurrent submissions cannot overdraw.
        """
        try:
            category = LeaveCategory.parse(leave_type)
        except ValueError as e:
            raise ValidationError(str(e), details={"field": "leaveType"}) from None
        hours = resolve_leave_hours(start_date, start_time, end_date, end_time, leave_hours)

        with employee_lock(employee_id):
            try:
                account = self.accounts.get_for_update(employee_id)
                if not self.ledger.can_admit(employee_id, category, hours, start_date.year):
                    quota_type = category.quota_type
                    remaining = self.ledger.remaining(employee_id, quota_type, start_date.year)
                    self.log_warning(
                        f"Leave request refused for {employee_id}: {category.value} over quota",
                        employee_id=employee_id,
                        requested=str(hours),
                        remaining=str(remaining),
                    )
                    raise QuotaExceededError(
                        f"{category.value}剩餘額度不足",
                        details={
                            "leaveType": category.value,
                            "quotaType": quota_type.value,
                            "requested": str(hours),
                            "remaining": str(remaining),
                        },
                    )
                record = self.store.insert(
                    employee_id=employee_id,
                    name=account.name,
                    leave_type=category,
                    start_date=start_date,
                    start_time=start_time,
                    end_date=end_date,
                    end_time=end_time,
                    leave_hours=hours,
                    reason=reason,
                )
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(record)
        self.log_info(
            f"Leave request {record.id} submitted",
            employee_id=employee_id,
            leave_type=category.value,
            leave_hours=str(hours),
        )
        return record

    def approve(self, record_id: int, approver: Account) -> LeaveRecord:
        return self.transition(record_id, ApprovalStatus.APPROVED, approver)

    def reject(self, record_id: int, approver: Account) -> LeaveRecord:
        return self.transition(record_id, ApprovalStatus.REJECTED, approver)

    def transition(self, record_id: int, new_status: ApprovalStatus, approver: Account) -> LeaveRecord:
        if not approver.is_admin:
            raise AccessDeniedError("只有管理者可以簽核請假")
        try:
            record = self.store.transition(record_id, new_status, approver.employee_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.log_info(
            f"Leave request {record_id} {record.approval_status}",
            record_id=record_id,
            approver=approver.employee_id,
        )
        return record
