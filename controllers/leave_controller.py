from flask import Blueprint, jsonify, request

from models.attendance import Subject, serialize_attendance
from utils.attendance_accounting import check_leave_requires_approval, get_leave_statistics
from utils.errors import InvalidArgument
from utils.leave_requests import apply_for_leave, list_leaves, process_leave

leave_bp = Blueprint("leaves", __name__, url_prefix="/api/leaves")


def _subject_from(source):
    return Subject.from_ids(source.get("supervisorId"), source.get("employeeId"))


def _int_arg(name):
    value = request.args.get(name)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{name} must be an integer") from None


# -----------------------------
# LEAVE THRESHOLD CHECK
# -----------------------------
@leave_bp.route("/check", methods=["GET"])
def check():
    subject = _subject_from(request.args)
    date = request.args.get("date")
    if not date:
        raise InvalidArgument("date is required")
    return jsonify(check_leave_requires_approval(subject, date)), 200


# -----------------------------
# MONTHLY LEAVE STATISTICS
# -----------------------------
@leave_bp.route("/statistics", methods=["GET"])
def statistics():
    subject = _subject_from(request.args)
    return jsonify(get_leave_statistics(subject, _int_arg("year"), _int_arg("month"))), 200


# -----------------------------
# APPLY FOR LEAVE
# -----------------------------
@leave_bp.route("", methods=["POST"])
def apply():
    data = request.get_json(silent=True) or {}
    subject = _subject_from(data)
    if not data.get("date"):
        raise InvalidArgument("date is required")

    requires_approval, record = apply_for_leave(subject, data["date"], data.get("reason"))
    return jsonify({
        "message": "Leave application submitted for approval" if requires_approval
        else "Leave approved automatically",
        "requiresApproval": requires_approval,
        "leaveRecord": serialize_attendance(record),
    }), 201


# -----------------------------
# APPROVE / REJECT LEAVE
# -----------------------------
@leave_bp.route("", methods=["PATCH"])
def process():
    data = request.get_json(silent=True) or {}
    record = process_leave(
        data.get("attendanceId"),
        data.get("isApproved"),
        is_paid=data.get("isPaid", False),
        processed_by=data.get("processedBy"),
    )
    verdict = "approved" if record.get("is_leave_approved") else "rejected"
    return jsonify({
        "message": f"Leave {verdict} successfully",
        "attendance": serialize_attendance(record),
    }), 200


# -----------------------------
# LIST LEAVE REQUESTS
# -----------------------------
@leave_bp.route("", methods=["GET"])
def list_requests():
    leaves = list_leaves(request.args.get("status"), request.args.get("userId"))
    return jsonify([serialize_attendance(leave) for leave in leaves]), 200
