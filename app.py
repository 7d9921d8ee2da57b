from flask import Flask

from config import Config
from utils.db import init_db_connection
from utils.errors import register_error_handlers
from utils.logger import configure_logging, get_logger
from utils.storage import init_storage

# Import controllers
from controllers.attendance_controller import attendance_bp
from controllers.leave_controller import leave_bp
from controllers.message_controller import conversation_bp, message_bp
from controllers.upload_controller import upload_bp

logger = get_logger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)               # Initialize Flask app
    app.config.from_object(config_object)
    configure_logging(app)
    init_db_connection(app)             # Initialize MongoDB connection
    init_storage(app)                   # R2 client for attachments

    # Register Blueprint
    app.register_blueprint(attendance_bp)
    app.register_blueprint(leave_bp)
    app.register_blueprint(message_bp)
    app.register_blueprint(conversation_bp)
    app.register_blueprint(upload_bp)

    register_error_handlers(app)

    @app.cli.command("init-indexes")
    def init_indexes():
        """Create the unique attendance indexes and the message index."""
        from models import Attendance, Message

        Attendance.ensure_indexes()
        Message.ensure_indexes()
        logger.info("Indexes created")

    return app


app = create_app()


# Run the app
if __name__ == "__main__":
    app.run(debug=True)
