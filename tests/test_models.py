from datetime import datetime

import pytest
from bson import ObjectId

from models.attendance import ABSENT, Attendance, Subject, SubjectKind
from models.message import Message, conversation_id_for, normalize_attachment
from utils.errors import InvalidArgument


def test_subject_is_exactly_one_of_supervisor_or_employee():
    assert Subject.from_ids(supervisor_id="s1") == Subject(SubjectKind.SUPERVISOR, "s1")
    assert Subject.from_ids(employee_id="e1").field == "employee_id"
    with pytest.raises(InvalidArgument):
        Subject.from_ids()
    with pytest.raises(InvalidArgument):
        Subject.from_ids(supervisor_id="s1", employee_id="e1")
    with pytest.raises(InvalidArgument):
        Subject.employee("  ")


def test_subject_query_matches_both_id_forms():
    oid = ObjectId()
    subject = Subject.supervisor(str(oid))

    assert subject.stored_id == oid
    assert subject.query() == {"supervisor_id": {"$in": [oid, str(oid)]}}
    assert Subject.employee("legacy").query() == {"employee_id": {"$in": ["legacy"]}}


def test_subject_from_document():
    assert Subject.from_document({"employee_id": "e1", "date": None}).kind is SubjectKind.EMPLOYEE


def test_pending_leave_has_no_approval_field():
    leave = Attendance(Subject.employee("e1"), datetime(2024, 11, 4), ABSENT, leave_reason="Sick")
    doc = leave.to_dict()

    assert "is_leave_approved" not in doc
    assert doc["employee_id"] == "e1"
    assert "supervisor_id" not in doc

    approved = Attendance(Subject.employee("e1"), datetime(2024, 11, 4), ABSENT, is_leave_approved=True)
    assert approved.to_dict()["is_leave_approved"] is True


def test_attendance_rejects_unknown_status():
    with pytest.raises(InvalidArgument):
        Attendance(Subject.employee("e1"), datetime(2024, 11, 4), "Late")


def test_conversation_id_is_order_independent():
    assert conversation_id_for("zed", "amy") == conversation_id_for("amy", "zed") == "amy_zed"
    with pytest.raises(InvalidArgument):
        conversation_id_for("amy", "")


def test_compose_derives_receiver_and_normalizes_attachment():
    msg = Message.compose("c1", "superadmin", attachment={"fileUrl": "u", "fileName": "a.pdf", "fileSize": 3})

    assert msg.receiver == "client"
    assert msg.attachment == {"file_url": "u", "file_name": "a.pdf", "file_size": 3, "file_type": None}
    assert normalize_attachment(None) is None
    with pytest.raises(InvalidArgument):
        normalize_attachment({"fileName": "no-url.pdf"})
