from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field

from leave_system.core.schemas import CamelModel


class LeaveRecordCreate(CamelModel):
    leave_type: str
    start_date: date
    start_time: time
    end_date: date
    end_time: time
    leave_hours: Optional[Decimal] = None  # derived from the period when omitted
    reason: Optional[str] = None


class LeaveRecordResponse(CamelModel):
    id: int
    employee_id: str
    name: str
    leave_type: str
    start_date: date
    start_time: time
    end_date: date
    end_time: time
    leave_hours: float
    reason: Optional[str] = None
    approval_status: str
    approval_status_label: str
    application_datetime: datetime = Field(alias="applicationDateTime")
    approval_date: Optional[datetime] = None
    approver: Optional[str] = None


class LeaveRecordsPage(CamelModel):
    records: List[LeaveRecordResponse]
    statistics: Dict[str, float]
    annual_quotas: Dict[str, float]
    remaining_quotas: Optional[Dict[str, float]] = None
    total: int


class QuotaBalance(CamelModel):
    quota_type: str
    quota: float
    consumed: float
    remaining: float


class QuotaBalancesResponse(CamelModel):
    employee_id: str
    year: int
    balances: List[QuotaBalance]


def quota_map(values: Dict) -> Dict[str, float]:
    """Enum-keyed Decimal map -> plain JSON map."""
    return {getattr(k, "value", k): float(v) for k, v in values.items()}
