"""
Leave categories and the quota each one draws from.

This is the only place the category -> quota type mapping is defined; the
quota ledger and the statistics aggregation both read it from here.
"""
import enum
from decimal import Decimal
from typing import Dict, Optional


class QuotaType(str, enum.Enum):
    """Annual allotments tracked per account. Values match the account field names on the wire."""
    ANNUAL = "annualLeave"
    SICK = "sickLeave"
    MENSTRUAL = "menstrualLeave"
    PERSONAL = "personalLeave"

    @property
    def attribute(self) -> str:
        """Column name on the Account model."""
        return _QUOTA_ATTRIBUTES[self]


class LeaveCategory(str, enum.Enum):
    PERSONAL = "事假"
    SICK = "病假"
    MENSTRUAL = "生理假"
    ANNUAL = "特休"
    OFFICIAL = "公假"
    BEREAVEMENT = "喪假"

    @classmethod
    def parse(cls, value: str) -> "LeaveCategory":
        """Accept either the label (事假) or the member name (PERSONAL, personal)."""
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown leave type: {value}") from None

    @property
    def quota_type(self) -> Optional[QuotaType]:
        return quota_type_for(self)

    @property
    def is_unlimited(self) -> bool:
        return quota_type_for(self) is None


_QUOTA_ATTRIBUTES: Dict[QuotaType, str] = {
    QuotaType.ANNUAL: "annual_leave",
    QuotaType.SICK: "sick_leave",
    QuotaType.MENSTRUAL: "menstrual_leave",
    QuotaType.PERSONAL: "personal_leave",
}

# None marks an unlimited category: no balance kept, never refused for quota
CATEGORY_QUOTAS: Dict[LeaveCategory, Optional[QuotaType]] = {
    LeaveCategory.PERSONAL: QuotaType.PERSONAL,
    LeaveCategory.SICK: QuotaType.SICK,
    LeaveCategory.MENSTRUAL: QuotaType.MENSTRUAL,
    LeaveCategory.ANNUAL: QuotaType.ANNUAL,
    LeaveCategory.OFFICIAL: None,
    LeaveCategory.BEREAVEMENT: None,
}


def quota_type_for(category: LeaveCategory) -> Optional[QuotaType]:
    """Quota type a category is debited against, or None when the category is unlimited."""
    return CATEGORY_QUOTAS[LeaveCategory(category)]


def categories_for(quota_type: QuotaType) -> list:
    """Every category debited against the given quota type."""
    return [c for c, q in CATEGORY_QUOTAS.items() if q == quota_type]


# Hours and quotas live in Numeric(10, 2) columns
HOURS_PLACES = Decimal("0.01")
HOURS_LIMIT = Decimal("100000000")


def is_storable_hours(value: Decimal) -> bool:
    """True when the value survives a round trip through the hours columns unchanged."""
    if not value.is_finite() or abs(value) >= HOURS_LIMIT:
        return False
    return value == value.quantize(HOURS_PLACES)
