"""
utils/attendance_accounting.py
---------------------------------
Monthly attendance and leave accounting over the attendances collection.

Every function here is a read: records are never modified.
All month windows are UTC, from the first day 00:00:00.000
to the last day 23:59:59.999.
"""

import re
from calendar import monthrange
from datetime import date, datetime, timedelta

from models.attendance import ABSENT, PRESENT, Attendance
from utils.db import store_call
from utils.errors import InvalidArgument

MAX_LEAVES_BEFORE_APPROVAL = 2

YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


# ==============================
# CALENDAR HELPERS
# ==============================
def parse_year_month(value):
    """Parse "YYYY-MM" into (year, month)."""
    match = YEAR_MONTH_RE.match(str(value or "").strip())
    if not match:
        raise InvalidArgument("month must be in YYYY-MM format")
    year, month = int(match.group(1)), int(match.group(2))
    validate_month(year, month)
    return year, month


def validate_month(year, month):
    if not isinstance(year, int) or not 1 <= year <= 9999:
        raise InvalidArgument(f"Invalid year: {year}")
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidArgument(f"Invalid month: {month} (expected 1-12)")


def month_bounds(year, month):
    last_day = monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime(year, month, last_day, 23, 59, 59, 999000)
    return start, end


def is_weekend(day):
    # Saturday=5, Sunday=6 in Python's weekday()
    return day.weekday() >= 5


def working_days_in_month(year, month):
    """Count Monday-Friday dates in the month. Holidays are not considered."""
    first = date(year, month, 1)
    total = monthrange(year, month)[1]
    return sum(1 for i in range(total) if not is_weekend(first + timedelta(days=i)))


def to_day(value):
    """Normalize a date, datetime or ISO string to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value or "").strip()[:10])
    except ValueError:
        raise InvalidArgument(f"Invalid date: {value}") from None


def attendance_rate(present_days, total_working_days):
    if total_working_days <= 0:
        return 0
    # Round half up, percentages are never negative
    rate = int(present_days * 100 / total_working_days + 0.5)
    return max(0, min(100, rate))


# ==============================
# MONTHLY ATTENDANCE RATE
# ==============================
def compute_monthly_rate(subject, year_month):
    if subject is None:
        raise InvalidArgument("Missing supervisorId or employeeId")
    year, month = parse_year_month(year_month)
    start, end = month_bounds(year, month)

    total_working_days = working_days_in_month(year, month)
    with store_call("monthly attendance lookup"):
        records = Attendance.find_in_range(subject, start, end, projection={"status": 1})

    present_days = sum(1 for r in records if r.get("status") == PRESENT)

    return {
        "totalWorkingDays": total_working_days,
        "presentDays": present_days,
        "attendanceRate": attendance_rate(present_days, total_working_days),
    }


# ==============================
# LEAVE APPROVAL THRESHOLD
# ==============================
def check_leave_requires_approval(subject, leave_date):
    """
    Report whether one more leave in the month of `leave_date` needs approval.

    Leaves already rejected do not use up the free allowance.
    """
    if subject is None:
        raise InvalidArgument("Missing supervisorId or employeeId")
    day = to_day(leave_date)
    start, end = month_bounds(day.year, day.month)

    query = {
        **subject.query(),
        "status": ABSENT,
        "date": {"$gte": start, "$lte": end},
        "$or": [
            {"is_leave_approved": {"$exists": False}},
            {"is_leave_approved": None},
            {"is_leave_approved": True},
        ],
    }
    with store_call("leave count"):
        leave_days = Attendance.collection().count_documents(query)

    return {
        "requiresApproval": leave_days >= MAX_LEAVES_BEFORE_APPROVAL,
        "leaveDays": leave_days,
        "maxAllowedBeforeApproval": MAX_LEAVES_BEFORE_APPROVAL,
    }


# ==============================
# LEAVE STATISTICS
# ==============================
def leave_category(record):
    approved = record.get("is_leave_approved")
    if approved is None:
        return "pending"
    if approved is False:
        return "rejected"
    return "paid" if record.get("is_leave_paid") is True else "unpaid"


def get_leave_statistics(subject, year, month):
    """Leave breakdown for a month; `month` is 1-12."""
    if subject is None:
        raise InvalidArgument("Missing supervisorId or employeeId")
    validate_month(year, month)
    start, end = month_bounds(year, month)

    with store_call("leave statistics"):
        leaves = Attendance.find_in_range(
            subject, start, end,
            extra={"status": ABSENT},
            projection={"is_leave_approved": 1, "is_leave_paid": 1},
        )

    counts = {"paid": 0, "unpaid": 0, "pending": 0, "rejected": 0}
    for leave in leaves:
        counts[leave_category(leave)] += 1

    working_days = working_days_in_month(year, month)
    return {
        "totalLeaves": len(leaves),
        "paidLeaves": counts["paid"],
        "unpaidLeaves": counts["unpaid"],
        "pendingLeaves": counts["pending"],
        "rejectedLeaves": counts["rejected"],
        "workingDays": working_days,
        "workingDaysRemaining": working_days - len(leaves),
    }
