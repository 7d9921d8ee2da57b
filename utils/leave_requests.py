from datetime import datetime

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, ReturnDocument

from models.attendance import ABSENT, Attendance, id_variants
from utils.attendance_accounting import check_leave_requires_approval, is_weekend, to_day
from utils.db import store_call
from utils.errors import InvalidArgument, NotFound
from utils.mark_attendance import day_start


def apply_for_leave(subject, date, reason=None):
    """
    Record a leave for `subject` on `date`.

    Leaves within the monthly free allowance are approved and paid on the spot,
    anything past it is stored pending for a manager to process.
    """
    day = to_day(date)
    if is_weekend(day):
        raise InvalidArgument("Cannot apply for leave on weekends")

    start = day_start(day)
    end = start.replace(hour=23, minute=59, second=59, microsecond=999000)
    with store_call("leave lookup"):
        existing = Attendance.find_in_range(subject, start, end, projection={"_id": 1})
    if existing:
        raise InvalidArgument("Attendance already marked for this date")

    check = check_leave_requires_approval(subject, day)
    requires_approval = check["requiresApproval"]
    now = datetime.utcnow()

    leave = Attendance(
        subject, start, ABSENT,
        leave_reason=reason,
        is_leave_approved=None if requires_approval else True,
        is_leave_paid=not requires_approval,
        processed_by=None if requires_approval else subject.stored_id,
        processed_at=None if requires_approval else now,
    )
    with store_call("leave insert"):
        result = leave.save()

    doc = leave.to_dict()
    doc["_id"] = result.inserted_id
    return requires_approval, doc


def process_leave(attendance_id, is_approved, is_paid=False, processed_by=None):
    try:
        oid = ObjectId(attendance_id)
    except (InvalidId, TypeError):
        raise InvalidArgument("Invalid attendanceId") from None
    if not isinstance(is_approved, bool):
        raise InvalidArgument("isApproved must be true or false")

    update = {
        "is_leave_approved": is_approved,
        "is_leave_paid": bool(is_paid) if is_approved else False,
        "processed_by": ObjectId(processed_by) if ObjectId.is_valid(str(processed_by)) else processed_by,
        "processed_at": datetime.utcnow(),
        "updated_at": datetime.utcnow(),
    }
    with store_call("leave update"):
        doc = Attendance.collection().find_one_and_update(
            {"_id": oid, "status": ABSENT}, {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
    if doc is None:
        raise NotFound("Leave record not found")
    return doc


def list_leaves(status=None, user_id=None):
    query = {"status": ABSENT, "leave_reason": {"$exists": True, "$ne": ""}}

    if status == "pending":
        # None matches both an unset field and an explicit null
        query["is_leave_approved"] = None
    elif status == "approved":
        query["is_leave_approved"] = True
    elif status == "rejected":
        query["is_leave_approved"] = False
    elif status:
        raise InvalidArgument("status must be pending, approved or rejected")

    if user_id:
        ids = id_variants(user_id)
        query["$or"] = [{"supervisor_id": {"$in": ids}}, {"employee_id": {"$in": ids}}]

    with store_call("leave listing"):
        return list(Attendance.collection().find(query).sort("date", DESCENDING))
