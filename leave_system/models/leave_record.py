from datetime import datetime, date, time
from decimal import Decimal
import enum

from sqlalchemy import Column, Integer, String, Date, Time, Numeric, DateTime

from leave_system.database import Base
from leave_system.models.leave_category import HOURS_PLACES, LeaveCategory


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @classmethod
    def parse(cls, value: str) -> "ApprovalStatus":
        """Accept the stored value (pending) or the localized label (簽核中)."""
        for status, label in _STATUS_LABELS.items():
            if value == label:
                return status
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Unknown approval status: {value}") from None


_STATUS_LABELS = {
    ApprovalStatus.PENDING: "簽核中",
    ApprovalStatus.APPROVED: "已審核",
    ApprovalStatus.REJECTED: "已退回",
}


class LeaveRecord(Base):
    __tablename__ = "leave_records"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String, index=True, nullable=False)  # not a FK: records outlive accounts
    name = Column(String, nullable=False)  # snapshot at submission time
    leave_type = Column(String, index=True, nullable=False)
    start_date = Column(Date, index=True, nullable=False)
    start_time = Column(Time, nullable=False)
    end_date = Column(Date, nullable=False)
    end_time = Column(Time, nullable=False)
    leave_hours = Column(Numeric(10, 2), nullable=False)
    reason = Column(String, nullable=True)
    approval_status = Column(String, index=True, default=ApprovalStatus.PENDING.value, nullable=False)
    application_datetime = Column(DateTime, nullable=False, index=True)
    approval_date = Column(DateTime, nullable=True)
    approver = Column(String, nullable=True)

    def __repr__(self):
        return f"<LeaveRecord {self.id} {self.employee_id} {self.leave_type} {self.approval_status}>"

    @property
    def category(self) -> LeaveCategory:
        return LeaveCategory(self.leave_type)

    @property
    def status(self) -> ApprovalStatus:
        return ApprovalStatus(self.approval_status)

    @property
    def approval_status_label(self) -> str:
        return self.status.label


def span_hours(start_date: date, start_time: time, end_date: date, end_time: time) -> Decimal:
    """Wall-clock hours between start and end, negative when end precedes start."""
    delta = datetime.combine(end_date, end_time) - datetime.combine(start_date, start_time)
    seconds = delta.days * 86400 + delta.seconds
    return (Decimal(seconds) / Decimal(3600)).quantize(HOURS_PLACES)
