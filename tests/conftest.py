from datetime import datetime

import mongomock
import pytest
from bson import ObjectId

from app import create_app
from config import TestingConfig
from utils.db import mongo
from tests.stubs import StubStorage


@pytest.fixture
def db(monkeypatch):
    database = mongomock.MongoClient().db
    monkeypatch.setattr(mongo, "db", database)
    return database


@pytest.fixture
def storage():
    return StubStorage()


@pytest.fixture
def app(db, storage, monkeypatch):
    app = create_app(TestingConfig)
    # init_app replaced the database handle, point it back at mongomock
    monkeypatch.setattr(mongo, "db", db)
    app.extensions["r2_storage"] = storage
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def supervisor_id():
    return str(ObjectId())


@pytest.fixture
def add_attendance(db):
    """Insert an attendance document; `subject_field` is supervisor_id or employee_id."""

    def _add(subject_field, subject_id, day, status, **extra):
        doc = {
            subject_field: ObjectId(subject_id) if ObjectId.is_valid(subject_id) else subject_id,
            "date": datetime(day.year, day.month, day.day),
            "status": status,
            **extra,
        }
        db.attendances.insert_one(doc)
        return doc

    return _add
