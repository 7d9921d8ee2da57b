from botocore.exceptions import BotoCoreError, ClientError
from flask import Blueprint, current_app, jsonify, request

from utils.errors import InvalidArgument
from utils.logger import get_logger
from utils.storage import get_storage, validate_file

upload_bp = Blueprint("upload", __name__, url_prefix="/api/upload")

logger = get_logger(__name__)


# Upload a file to R2 and return its attachment metadata
@upload_bp.route("", methods=["POST"])
def upload():
    file = request.files.get("file")
    if file is None or not file.filename:
        raise InvalidArgument("No file provided")

    data = file.read()
    content_type = file.mimetype or "application/octet-stream"
    validate_file(content_type, len(data), current_app.config.get("UPLOAD_MAX_MB", 10))

    folder = request.form.get("folder") or "uploads"
    try:
        result = get_storage().upload(data, file.filename, content_type, folder=folder)
    except (ClientError, BotoCoreError) as e:
        logger.error("Upload of %s failed: %s", file.filename, e)
        return jsonify({"success": False, "error": "Failed to upload file"}), 502

    return jsonify({"success": True, "data": result}), 201


@upload_bp.route("/delete", methods=["POST"])
def delete():
    data = request.get_json(silent=True) or {}
    file_url = data.get("fileUrl")
    if not file_url:
        raise InvalidArgument("No file URL provided")

    try:
        get_storage().delete(file_url)
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        logger.error("Delete of %s failed: %s", file_url, e)
        if code == "AccessDenied":
            return jsonify({"success": False, "error": "Access denied to storage bucket"}), 403
        return jsonify({"success": False, "error": f"Delete failed: {code}"}), 502
    except BotoCoreError as e:
        logger.error("Delete of %s failed: %s", file_url, e)
        return jsonify({"success": False, "error": "Failed to delete file"}), 502

    return jsonify({"message": "File deleted successfully"}), 200
