"""
Leave Record Store: the canonical set of leave requests.

Writes go through `insert` and `transition` only. `transition` is a single
conditional UPDATE on the current status, so two administrators acting on
the same pending record cannot both succeed. The store never commits; the
calling service owns the transaction.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import FrozenSet, Iterator, List, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from leave_system.core.exceptions import NotFoundError, ValidationError
from leave_system.models.leave_category import LeaveCategory, is_storable_hours
from leave_system.models.leave_record import ApprovalStatus, LeaveRecord, span_hours
from leave_system.services import approval
from leave_system.services.base import BaseService


@dataclass(frozen=True)
class RecordPredicate:
    """
    AND-combination of optional record conditions. A field left as None
    does not constrain the result.

    - employee_id: equality
    - start_from / start_to: record start_date within the inclusive bounds
    - overlap_from / overlap_to: record [start_date, end_date] intersects the range
    - statuses: record status is one of these
    - categories: record leave type is one of these
    """
    employee_id: Optional[str] = None
    start_from: Optional[date] = None
    start_to: Optional[date] = None
    overlap_from: Optional[date] = None
    overlap_to: Optional[date] = None
    statuses: Optional[FrozenSet[ApprovalStatus]] = None
    categories: Optional[FrozenSet[LeaveCategory]] = None

    def clauses(self) -> list:
        conditions = []
        if self.employee_id is not None:
            conditions.append(LeaveRecord.employee_id == self.employee_id)
        if self.start_from is not None:
            conditions.append(LeaveRecord.start_date >= self.start_from)
        if self.start_to is not None:
            conditions.append(LeaveRecord.start_date <= self.start_to)
        if self.overlap_from is not None:
            conditions.append(LeaveRecord.end_date >= self.overlap_from)
        if self.overlap_to is not None:
            conditions.append(LeaveRecord.start_date <= self.overlap_to)
        if self.statuses is not None:
            conditions.append(LeaveRecord.approval_status.in_(sorted(s.value for s in self.statuses)))
        if self.categories is not None:
            conditions.append(LeaveRecord.leave_type.in_(sorted(c.value for c in self.categories)))
        return conditions

    def matches(self, record: LeaveRecord) -> bool:
        """Evaluate the predicate in Python against a loaded record."""
        if self.employee_id is not None and record.employee_id != self.employee_id:
            return False
        if self.start_from is not None and record.start_date < self.start_from:
            return False
        if self.start_to is not None and record.start_date > self.start_to:
            return False
        if self.overlap_from is not None and record.end_date < self.overlap_from:
            return False
        if self.overlap_to is not None and record.start_date > self.overlap_to:
            return False
        if self.statuses is not None and record.status not in self.statuses:
            return False
        if self.categories is not None and record.category not in self.categories:
            return False
        return True


class RecordQuery:
    """
    Lazy view over the records matching a predicate. Nothing is read until
    iteration, and every iteration runs a fresh SELECT, so the sequence can
    be walked any number of times and always reflects the latest writes.
    """

    def __init__(self, db: Session, predicate: RecordPredicate):
        self.db = db
        self.predicate = predicate

    def _statement(self):
        return (
            select(LeaveRecord)
            .where(and_(True, *self.predicate.clauses()))
            .order_by(LeaveRecord.application_datetime.desc(), LeaveRecord.id.asc())
        )

    def __iter__(self) -> Iterator[LeaveRecord]:
        yield from self.db.scalars(self._statement().execution_options(yield_per=200))

    def all(self) -> List[LeaveRecord]:
        return list(self)

    def count(self) -> int:
        stmt = select(func.count(LeaveRecord.id)).where(and_(True, *self.predicate.clauses()))
        return self.db.scalar(stmt)


def resolve_leave_hours(
    start_date: date,
    start_time: time,
    end_date: date,
    end_time: time,
    leave_hours=None,
) -> Decimal:
    """
    Check the period and return the hours to book.

    Without an explicit value the wall-clock span is used. An explicit value
    must be positive, have at most two decimal places and may not exceed
    the span. The returned value is exactly what gets stored.
    """
    span = span_hours(start_date, start_time, end_date, end_time)
    if span < 0:
        raise ValidationError("結束時間不可早於開始時間", details={"field": "endDate"})
    if leave_hours is None:
        hours = span
    else:
        try:
            hours = Decimal(str(leave_hours))
        except InvalidOperation:
            raise ValidationError("請假時數格式錯誤", details={"field": "leaveHours"}) from None
    if not hours.is_finite() or hours <= 0:
        raise ValidationError("請假時數必須大於 0", details={"field": "leaveHours"})
    if not is_storable_hours(hours):
        raise ValidationError("請假時數最多兩位小數", details={"field": "leaveHours"})
    if hours > span:
        raise ValidationError(
            "請假時數不可超過請假期間",
            details={"field": "leaveHours", "span": str(span)},
        )
    return hours


def utcnow() -> datetime:
    # Stored naive, always UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LeaveRecordStore(BaseService):

    def insert(
        self,
        *,
        employee_id: str,
        name: str,
        leave_type,
        start_date: date,
        start_time: time,
        end_date: date,
        end_time: time,
        leave_hours=None,
        reason: Optional[str] = None,
        applied_at: Optional[datetime] = None,
    ) -> LeaveRecord:
        """Admit a new record in the initial (pending) status."""
        if not employee_id:
            raise ValidationError("缺少工號", details={"field": "employeeId"})
        try:
            category = LeaveCategory.parse(leave_type) if isinstance(leave_type, str) else LeaveCategory(leave_type)
        except ValueError as e:
            raise ValidationError(str(e), details={"field": "leaveType"}) from None
        hours = resolve_leave_hours(start_date, start_time, end_date, end_time, leave_hours)

        record = LeaveRecord(
            employee_id=employee_id,
            name=name,
            leave_type=category.value,
            start_date=start_date,
            start_time=start_time,
            end_date=end_date,
            end_time=end_time,
            leave_hours=hours,
            reason=reason or None,
            approval_status=approval.INITIAL_STATUS.value,
            application_datetime=applied_at or utcnow(),
        )
        self.db.add(record)
        self.db.flush()
        return record

    def get(self, record_id: int) -> LeaveRecord:
        record = self.db.get(LeaveRecord, record_id)
        if record is None:
            raise NotFoundError(f"Leave record {record_id} not found")
        return record

    def current_status(self, record_id: int) -> Optional[ApprovalStatus]:
        """Status as stored right now, bypassing the session identity map."""
        value = self.db.scalar(select(LeaveRecord.approval_status).where(LeaveRecord.id == record_id))
        return ApprovalStatus(value) if value is not None else None

    def transition(
        self,
        record_id: int,
        new_status: ApprovalStatus,
        approver: str,
        approval_date: Optional[datetime] = None,
    ) -> LeaveRecord:
        """
        Move a record to `new_status` and stamp approver and approval date.

        Compare-and-set on the status column: the UPDATE only matches while
        the record is still in a status from which `new_status` is reachable.
        """
        new_status = ApprovalStatus(new_status)
        if not approver:
            raise ValidationError("缺少簽核人", details={"field": "approver"})
        sources = approval.sources_for(new_status)

        result = self.db.execute(
            update(LeaveRecord)
            .where(
                LeaveRecord.id == record_id,
                or_(False, *[LeaveRecord.approval_status == s.value for s in sources]),
            )
            .values(
                approval_status=new_status.value,
                approval_date=approval_date or utcnow(),
                approver=approver,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = self.current_status(record_id)
            if current is None:
                raise NotFoundError(f"Leave record {record_id} not found")
            raise approval.invalid_transition(current, new_status)

        return self.db.get(LeaveRecord, record_id, populate_existing=True)

    def query(self, predicate: Optional[RecordPredicate] = None) -> RecordQuery:
        return RecordQuery(self.db, predicate or RecordPredicate())
