from flask import jsonify


class AppError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"success": False, "error": self.message}


class InvalidArgument(AppError):
    status_code = 400


class NotFound(AppError):
    status_code = 404


class AttachmentDeleteFailed(AppError):
    """A blob deletion failed; no message record was touched."""

    status_code = 502

    def __init__(self, message, file_url=None):
        super().__init__(message)
        self.file_url = file_url


class RecordDeleteFailed(AppError):
    """The transactional message delete failed after blobs were removed."""

    status_code = 500


class StoreUnavailable(AppError):
    status_code = 503


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(error):
        return jsonify(error.to_dict()), error.status_code
