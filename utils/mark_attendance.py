from datetime import datetime

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from models.attendance import ABSENT, STATUSES, Attendance
from utils.attendance_accounting import to_day
from utils.db import store_call
from utils.errors import AppError, InvalidArgument
from utils.logger import get_logger

logger = get_logger(__name__)


def day_start(value):
    """Midnight UTC of the calendar day, as stored in the `date` field."""
    day = to_day(value)
    return datetime(day.year, day.month, day.day)


# ============================
# MARK ATTENDANCE
# ============================
def mark_attendance(subject, date, status, leave_reason=None, is_paid=True,
                    project_id=None, processed_by=None):
    """
    Create or overwrite the single record of `subject` for the given day.

    An absence with a reason is an approved leave (paid per `is_paid`),
    an absence without a reason is unapproved and unpaid.
    Present / On Duty clear every leave field.
    """
    if status not in STATUSES:
        raise InvalidArgument("Invalid status value")

    now = datetime.utcnow()
    day = day_start(date)

    update = {
        "status": status,
        "updated_at": now,
        "processed_at": now,
        "processed_by": processed_by,
    }
    if project_id:
        update["project_id"] = project_id

    if status == ABSENT:
        update["leave_reason"] = leave_reason or ""
        update["is_leave_approved"] = bool(leave_reason)
        update["is_leave_paid"] = bool(leave_reason) and bool(is_paid)
    else:
        update["leave_reason"] = ""
        update["is_leave_approved"] = False
        update["is_leave_paid"] = False

    # Match the stored id in either form so a string-keyed record is not duplicated
    existing_query = {**subject.query(), "date": day}
    coll = Attendance.collection()

    with store_call("mark attendance"):
        existing = coll.find_one(existing_query, {"_id": 1})
        if existing is not None:
            return coll.find_one_and_update(
                {"_id": existing["_id"]}, {"$set": update}, return_document=ReturnDocument.AFTER
            )
        try:
            return coll.find_one_and_update(
                {subject.field: subject.stored_id, "date": day},
                {"$set": update, "$setOnInsert": {"created_at": now}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # Lost an upsert race, the record exists now
            logger.warning("Duplicate attendance for %s on %s, updating in place",
                           subject.id, day.date())
            doc = coll.find_one_and_update(
                existing_query, {"$set": update}, return_document=ReturnDocument.AFTER
            )
            if doc is None:
                raise AppError("Unable to update attendance due to duplicate constraint")
            return doc


def list_attendance(subject, start_date=None, end_date=None):
    if bool(start_date) != bool(end_date):
        raise InvalidArgument("Both startDate and endDate must be provided for date range queries")

    if start_date:
        start = day_start(start_date)
        end = day_start(end_date).replace(hour=23, minute=59, second=59, microsecond=999000)
    else:
        start = day_start(datetime.utcnow())
        end = start.replace(hour=23, minute=59, second=59, microsecond=999000)

    with store_call("attendance listing"):
        return Attendance.find_in_range(subject, start, end)
