"""
Filter & Aggregation Engine: read-only views over the leave records.
"""
import calendar
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from leave_system.core.exceptions import ValidationError
from leave_system.models.leave_category import LeaveCategory
from leave_system.models.leave_record import ApprovalStatus, LeaveRecord
from leave_system.services.base import BaseService
from leave_system.services.record_store import LeaveRecordStore, RecordPredicate

_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


def parse_month(value: str, *, end: bool = False) -> date:
    """'2024-06' -> first day of June 2024 (or the last day when end=True)."""
    match = _MONTH_RE.match(value.strip())
    if not match:
        raise ValidationError(f"年月格式錯誤: {value}", details={"expected": "YYYY-MM"})
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise ValidationError(f"年月格式錯誤: {value}", details={"expected": "YYYY-MM"})
    day = calendar.monthrange(year, month)[1] if end else 1
    return date(year, month, day)


@dataclass(frozen=True)
class LeaveFilter:
    employee_id: Optional[str] = None
    start_month: Optional[date] = None
    end_month: Optional[date] = None
    approval_status: Optional[ApprovalStatus] = None
    leave_type: Optional[LeaveCategory] = None

    @classmethod
    def from_params(
        cls,
        employee_id: Optional[str] = None,
        start_month: Optional[str] = None,
        end_month: Optional[str] = None,
        approval_status: Optional[str] = None,
        leave_type: Optional[str] = None,
    ) -> "LeaveFilter":
        """Build a filter from raw query-string values; empty strings mean absent."""
        start = parse_month(start_month) if start_month else None
        end = parse_month(end_month, end=True) if end_month else None
        if start and end and start > end:
            raise ValidationError("起始年月不可晚於結束年月")
        try:
            status = ApprovalStatus.parse(approval_status) if approval_status else None
        except ValueError as e:
            raise ValidationError(str(e), details={"field": "approvalStatus"}) from None
        try:
            category = LeaveCategory.parse(leave_type) if leave_type else None
        except ValueError as e:
            raise ValidationError(str(e), details={"field": "leaveType"}) from None
        return cls(
            employee_id=employee_id or None,
            start_month=start,
            end_month=end,
            approval_status=status,
            leave_type=category,
        )

    def to_predicate(self) -> RecordPredicate:
        return RecordPredicate(
            employee_id=self.employee_id,
            start_from=self.start_month,
            start_to=self.end_month,
            statuses=frozenset({self.approval_status}) if self.approval_status else None,
            categories=frozenset({self.leave_type}) if self.leave_type else None,
        )


def empty_statistics() -> Dict[LeaveCategory, Decimal]:
    return {category: Decimal("0") for category in LeaveCategory}


def aggregate(records) -> Dict[LeaveCategory, Decimal]:
    """Sum leave hours per category; every category is present."""
    totals = empty_statistics()
    for record in records:
        totals[record.category] += Decimal(record.leave_hours)
    return totals


class LeaveQueryService(BaseService):

    def __init__(self, db, store: Optional[LeaveRecordStore] = None):
        super().__init__(db)
        self.store = store or LeaveRecordStore(db)

    def list_records(self, leave_filter: Optional[LeaveFilter] = None) -> List[LeaveRecord]:
        """Matching records, newest application first, ties by id."""
        return self.store.query((leave_filter or LeaveFilter()).to_predicate()).all()

    def statistics(self, leave_filter: Optional[LeaveFilter] = None) -> Dict[LeaveCategory, Decimal]:
        return aggregate(self.store.query((leave_filter or LeaveFilter()).to_predicate()))

    def search(self, leave_filter: Optional[LeaveFilter] = None) -> Tuple[List[LeaveRecord], Dict[LeaveCategory, Decimal]]:
        """Records and statistics from a single read, so both describe the same set."""
        records = self.list_records(leave_filter)
        return records, aggregate(records)
