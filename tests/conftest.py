import os

import mongomock
import pytest

# importing app.py builds the gunicorn app; keep it off the network
os.environ.setdefault("DISABLE_MONGO", "1")

from app import create_app  # noqa: E402
from herbtrace.app_config import Settings  # noqa: E402
from herbtrace.mongo import ensure_indexes  # noqa: E402

WITHANIA = "Withania somnifera"


@pytest.fixture
def db():
    database = mongomock.MongoClient().herbtrace
    ensure_indexes(database)
    return database


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def app(db):
    flask_app = create_app({"TESTING": True}, db=db)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def collection_body():
    return {
        "scientificName": WITHANIA,
        "collectorId": "farmer-123",
        "geo": {"lat": 26.9124, "lng": 75.7873, "accuracy_m": 8},
        "timestamp": "2025-09-16T09:00:00Z",
        "ai_verified_confidence": 0.93,
    }
