from flask import Blueprint, jsonify, request

from models.attendance import Subject, serialize_attendance
from utils.attendance_accounting import compute_monthly_rate
from utils.mark_attendance import list_attendance, mark_attendance
from utils.errors import InvalidArgument

attendance_bp = Blueprint("attendance", __name__, url_prefix="/api/attendance")


# ==========================================================
# MONTHLY ATTENDANCE RATE
# ==========================================================
@attendance_bp.route("/monthly", methods=["GET"])
def monthly_rate():
    subject = Subject.from_ids(request.args.get("supervisorId"), request.args.get("employeeId"))
    month = request.args.get("month")  # format YYYY-MM

    result = compute_monthly_rate(subject, month)
    return jsonify({f"{subject.kind.value}Id": subject.id, "month": month, **result}), 200


# ==========================================================
# MARK ATTENDANCE
# ==========================================================
@attendance_bp.route("", methods=["POST"])
def mark():
    data = request.get_json(silent=True) or {}
    subject = Subject.from_ids(data.get("supervisorId"), data.get("employeeId"))

    if not data.get("date") or not data.get("status"):
        raise InvalidArgument("Missing required fields")

    doc = mark_attendance(
        subject,
        data["date"],
        data["status"],
        leave_reason=data.get("leaveReason"),
        is_paid=data.get("isPaid", True),
        project_id=data.get("projectId"),
        processed_by=subject.stored_id,
    )
    return jsonify({
        "success": True,
        "message": "Attendance marked successfully",
        "data": serialize_attendance(doc),
    }), 201


# ==========================================================
# LIST ATTENDANCE
# ==========================================================
@attendance_bp.route("", methods=["GET"])
def list_records():
    subject = Subject.from_ids(request.args.get("supervisorId"), request.args.get("employeeId"))
    records = list_attendance(subject, request.args.get("startDate"), request.args.get("endDate"))
    return jsonify({"success": True, "data": [serialize_attendance(r) for r in records]}), 200
