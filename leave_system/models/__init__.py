# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import account, leave_record

# Explicit class exports for cleaner imports
from .account import Account, Permission
from .leave_category import LeaveCategory, QuotaType, quota_type_for
from .leave_record import ApprovalStatus, LeaveRecord

__all__ = [
    "Account",
    "Permission",
    "LeaveCategory",
    "QuotaType",
    "quota_type_for",
    "ApprovalStatus",
    "LeaveRecord",
]
