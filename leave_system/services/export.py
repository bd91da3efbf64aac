"""
CSV export of accounts and leave records.

Files are written to a private temporary directory under
settings.export_temp_dir; the caller streams the file and then calls
`discard` (also on error).
"""
import csv
import os
import shutil
import tempfile
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from leave_system.core.config import settings
from leave_system.models.account import Account, Permission
from leave_system.models.leave_category import QuotaType
from leave_system.models.leave_record import LeaveRecord

ACCOUNT_HEADERS: Sequence[Tuple[str, str]] = (
    ("employeeId", "工號"),
    ("name", "姓名"),
    ("password", "密碼"),
    ("permission", "權限"),
    ("annualLeave", "年度特休"),
    ("sickLeave", "年度病假"),
    ("menstrualLeave", "年度生理假"),
    ("personalLeave", "年度事假"),
)

LEAVE_RECORD_HEADERS: Sequence[Tuple[str, str]] = (
    ("id", "編號"),
    ("employeeId", "工號"),
    ("name", "姓名"),
    ("leaveType", "假別"),
    ("startDate", "開始日期"),
    ("startTime", "開始時間"),
    ("endDate", "結束日期"),
    ("endTime", "結束時間"),
    ("leaveHours", "請假時數"),
    ("reason", "事由"),
    ("approvalStatus", "簽核狀態"),
    ("applicationDateTime", "申請時間"),
    ("approvalDate", "簽核日期"),
    ("approver", "簽核人"),
)


def export_filename(prefix: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{prefix}{today.year:04d}{today.month:02d}{today.day:02d}.csv"


def _number(value: Optional[Decimal]) -> str:
    if value is None:
        return "0"
    value = Decimal(value)
    return format(value.normalize(), "f")


def account_rows(accounts: Iterable[Account], password_of) -> List[dict]:
    rows = []
    for account in accounts:
        row = {
            "employeeId": account.employee_id,
            "name": account.name,
            "password": password_of(account),
            "permission": Permission(account.permission).label,
        }
        for quota_type in QuotaType:
            row[quota_type.value] = _number(account.quota_for(quota_type))
        rows.append(row)
    return rows


def leave_record_rows(records: Iterable[LeaveRecord]) -> List[dict]:
    return [
        {
            "id": r.id,
            "employeeId": r.employee_id,
            "name": r.name,
            "leaveType": r.leave_type,
            "startDate": r.start_date.isoformat(),
            "startTime": r.start_time.strftime("%H:%M"),
            "endDate": r.end_date.isoformat(),
            "endTime": r.end_time.strftime("%H:%M"),
            "leaveHours": _number(r.leave_hours),
            "reason": r.reason or "",
            "approvalStatus": r.approval_status_label,
            "applicationDateTime": r.application_datetime.isoformat(timespec="seconds"),
            "approvalDate": r.approval_date.isoformat(timespec="seconds") if r.approval_date else "",
            "approver": r.approver or "",
        }
        for r in records
    ]


def write_csv(path: str, rows: Iterable[dict], headers: Sequence[Tuple[str, str]]) -> str:
    # utf-8-sig so spreadsheet tools detect the encoding of the Chinese headers
    with open(path, "w", encoding="utf-8-sig", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow([title for _, title in headers])
        for row in rows:
            writer.writerow([row.get(key, "") for key, _ in headers])
    return path


def create_export(rows: Iterable[dict], headers: Sequence[Tuple[str, str]], prefix: str) -> Tuple[str, str]:
    """Write rows to a fresh temp file. Returns (path, download filename)."""
    os.makedirs(settings.export_temp_dir, exist_ok=True)
    workdir = tempfile.mkdtemp(prefix="export-", dir=settings.export_temp_dir)
    filename = export_filename(prefix)
    path = os.path.join(workdir, filename)
    try:
        write_csv(path, rows, headers)
    except Exception:
        discard(path)
        raise
    return path, filename


def discard(path: str) -> None:
    """Remove an export file and its private directory."""
    shutil.rmtree(os.path.dirname(path), ignore_errors=True)
