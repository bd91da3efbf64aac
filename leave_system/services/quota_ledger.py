"""
Quota Ledger: hours consumed against each employee's annual allotments.

Pending and approved records both count (a pending request reserves its
hours); rejected records never do, so rejecting a request releases its
reservation. All arithmetic is Decimal.
"""
import threading
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy.orm import Session

from leave_system.models.leave_category import LeaveCategory, QuotaType, categories_for, quota_type_for
from leave_system.models.leave_record import ApprovalStatus
from leave_system.services.account_store import AccountStore
from leave_system.services.base import BaseService
from leave_system.services.record_store import LeaveRecordStore, RecordPredicate

CONSUMING_STATUSES = frozenset({ApprovalStatus.PENDING, ApprovalStatus.APPROVED})

_locks: Dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


@contextmanager
def employee_lock(employee_id: str):
    """Per-employee serialization point for check-then-insert admission."""
    with _locks_guard:
        lock = _locks.setdefault(employee_id, threading.Lock())
    with lock:
        yield


class QuotaLedger(BaseService):

    def __init__(
        self,
        db: Session,
        store: Optional[LeaveRecordStore] = None,
        accounts: Optional[AccountStore] = None,
    ):
        super().__init__(db)
        self.store = store or LeaveRecordStore(db)
        self.accounts = accounts or AccountStore(db)

    def consumed_hours(self, employee_id: str, quota_type: QuotaType, window_year: int) -> Decimal:
        predicate = RecordPredicate(
            employee_id=employee_id,
            start_from=date(window_year, 1, 1),
            start_to=date(window_year, 12, 31),
            statuses=CONSUMING_STATUSES,
            categories=frozenset(categories_for(QuotaType(quota_type))),
        )
        return sum((Decimal(r.leave_hours) for r in self.store.query(predicate)), Decimal("0"))

    def quota(self, employee_id: str, quota_type: QuotaType) -> Decimal:
        return self.accounts.quotas_for(employee_id)[QuotaType(quota_type)]

    def remaining(self, employee_id: str, quota_type: QuotaType, window_year: int) -> Decimal:
        return self.quota(employee_id, quota_type) - self.consumed_hours(employee_id, quota_type, window_year)

    def can_admit(self, employee_id: str, category: LeaveCategory, leave_hours, window_year: int) -> bool:
        """True when the request fits the remaining balance. Unlimited categories always fit."""
        quota_type = quota_type_for(category)
        if quota_type is None:
            return True
        consumed = self.consumed_hours(employee_id, quota_type, window_year)
        return consumed + Decimal(str(leave_hours)) <= self.quota(employee_id, quota_type)

    def balances(self, employee_id: str, window_year: int) -> Dict[QuotaType, Dict[str, Decimal]]:
        quotas = self.accounts.quotas_for(employee_id)
        result = {}
        for quota_type in QuotaType:
            consumed = self.consumed_hours(employee_id, quota_type, window_year)
            result[quota_type] = {
                "quota": quotas[quota_type],
                "consumed": consumed,
                "remaining": quotas[quota_type] - consumed,
            }
        return result
