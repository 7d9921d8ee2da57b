from datetime import datetime
from enum import Enum
from typing import NamedTuple

from bson import ObjectId
from pymongo import ASCENDING

from utils.db import mongo
from utils.errors import InvalidArgument

PRESENT = "Present"
ABSENT = "Absent"
ON_DUTY = "On Duty"
STATUSES = (PRESENT, ABSENT, ON_DUTY)


class SubjectKind(Enum):
    SUPERVISOR = "supervisor"
    EMPLOYEE = "employee"


class Subject(NamedTuple):
    """Whose attendance a record is: exactly one supervisor or one employee."""

    kind: SubjectKind
    id: str

    @classmethod
    def supervisor(cls, supervisor_id):
        return cls._build(SubjectKind.SUPERVISOR, supervisor_id)

    @classmethod
    def employee(cls, employee_id):
        return cls._build(SubjectKind.EMPLOYEE, employee_id)

    @classmethod
    def from_ids(cls, supervisor_id=None, employee_id=None):
        if supervisor_id and employee_id:
            raise InvalidArgument("Provide either supervisorId or employeeId, not both")
        if supervisor_id:
            return cls.supervisor(supervisor_id)
        if employee_id:
            return cls.employee(employee_id)
        raise InvalidArgument("Missing supervisorId or employeeId")

    @classmethod
    def from_document(cls, doc):
        return cls.from_ids(doc.get("supervisor_id"), doc.get("employee_id"))

    @classmethod
    def _build(cls, kind, subject_id):
        subject_id = str(subject_id or "").strip()
        if not subject_id:
            raise InvalidArgument(f"Missing {kind.value} id")
        return cls(kind, subject_id)

    @property
    def field(self):
        return f"{self.kind.value}_id"

    @property
    def stored_id(self):
        return ObjectId(self.id) if ObjectId.is_valid(self.id) else self.id

    def query(self):
        # Records may carry the id as ObjectId or as plain string
        return {self.field: {"$in": id_variants(self.id)}}


def id_variants(raw_id):
    raw_id = str(raw_id)
    if ObjectId.is_valid(raw_id):
        return [ObjectId(raw_id), raw_id]
    return [raw_id]


class Attendance:

    @staticmethod
    def collection():
        return mongo.db.attendances

    def __init__(self, subject, date, status, leave_reason=None, is_leave_approved=None,
                 is_leave_paid=False, project_id=None, processed_by=None, processed_at=None,
                 created_at=None, updated_at=None):
        if status not in STATUSES:
            raise InvalidArgument(f"Invalid status value: {status}")
        self.subject = subject
        self.date = date
        self.status = status
        self.leave_reason = leave_reason or ""
        self.is_leave_approved = is_leave_approved  # None = pending
        self.is_leave_paid = bool(is_leave_paid)
        self.project_id = project_id
        self.processed_by = processed_by
        self.processed_at = processed_at
        self.created_at = created_at or datetime.utcnow()
        self.updated_at = updated_at or datetime.utcnow()

    def to_dict(self):
        doc = {
            self.subject.field: self.subject.stored_id,
            "date": self.date,
            "status": self.status,
            "leave_reason": self.leave_reason,
            "is_leave_paid": self.is_leave_paid,
            "project_id": self.project_id,
            "processed_by": self.processed_by,
            "processed_at": self.processed_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        # A pending leave has no approval field at all
        if self.is_leave_approved is not None:
            doc["is_leave_approved"] = self.is_leave_approved
        return doc

    def save(self):
        return Attendance.collection().insert_one(self.to_dict())

    @staticmethod
    def find_in_range(subject, start, end, extra=None, projection=None):
        query = {**subject.query(), "date": {"$gte": start, "$lte": end}}
        if extra:
            query.update(extra)
        return list(Attendance.collection().find(query, projection).sort("date", ASCENDING))

    @staticmethod
    def ensure_indexes():
        coll = Attendance.collection()
        coll.create_index(
            [("supervisor_id", ASCENDING), ("date", ASCENDING)],
            name="supervisor_id_1_date_1", unique=True,
            partialFilterExpression={"supervisor_id": {"$exists": True}},
        )
        coll.create_index(
            [("employee_id", ASCENDING), ("date", ASCENDING)],
            name="employee_id_1_date_1", unique=True,
            partialFilterExpression={"employee_id": {"$exists": True}},
        )


def serialize_attendance(doc):
    """Convert a stored attendance document into a JSON friendly dict."""
    out = {
        "id": str(doc["_id"]),
        "date": doc["date"].strftime("%Y-%m-%d") if doc.get("date") else None,
        "status": doc.get("status"),
        "leaveReason": doc.get("leave_reason", ""),
        "isLeaveApproved": doc.get("is_leave_approved"),
        "isLeavePaid": bool(doc.get("is_leave_paid")),
        "processedBy": str(doc["processed_by"]) if doc.get("processed_by") else None,
    }
    if doc.get("supervisor_id") is not None:
        out["supervisorId"] = str(doc["supervisor_id"])
    if doc.get("employee_id") is not None:
        out["employeeId"] = str(doc["employee_id"])
    if doc.get("project_id") is not None:
        out["projectId"] = str(doc["project_id"])
    return out
