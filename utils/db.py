"""
utils/db.py
-----------------
This module initializes and manages the MongoDB connection
for the entire Flask application.
"""

from contextlib import contextmanager

from flask_pymongo import PyMongo
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from utils.errors import StoreUnavailable
from utils.logger import get_logger

logger = get_logger(__name__)

# Create a global MongoDB instance
mongo = PyMongo()


def init_db_connection(app):
    """
    Initialize MongoDB connection with Flask app.
    Settings (like MONGO_URI) must already be loaded on app.config.
    """
    mongo.init_app(app)

    logger.info("MongoDB connection initialized")
    return mongo


@contextmanager
def store_call(what):
    """Translate transport failures of the document store into StoreUnavailable."""
    try:
        yield
    except (ConnectionFailure, ServerSelectionTimeoutError) as e:
        logger.error("Document store unavailable during %s: %s", what, e)
        raise StoreUnavailable(f"Document store unavailable: {what}") from e
