# herbtrace/mongo.py
from __future__ import annotations

import logging
import re
from contextlib import contextmanager

from flask import current_app
from flask_pymongo import PyMongo
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from herbtrace.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

mongo = PyMongo()

# collection names
SPECIES = "species"
BATCHES = "batches"
COLLECTION_EVENTS = "collection_events"
PROCESSING_STEPS = "processing_steps"
LAB_TESTS = "lab_tests"

_EXT_KEY = "herbtrace_db"


def _mask_uri(uri: str) -> str:
    return re.sub(r"//[^@/]*@", "//***:***@", uri or "")


def init_mongo(app, db=None):
    """
    Initializes Flask-PyMongo and the indexes the core relies on.
    `db` lets callers hand in an already opened database (tests use mongomock).
    """
    if db is None:
        if app.config.get("DISABLE_MONGO"):
            app.logger.warning("Mongo disabled by DISABLE_MONGO=1")
            app.extensions[_EXT_KEY] = None
            return None

        app.logger.info("Connecting to MongoDB at %s", _mask_uri(app.config.get("MONGO_URI")))
        mongo.init_app(app)
        db = mongo.db

    app.extensions[_EXT_KEY] = db
    with store_errors("creating indexes"):
        ensure_indexes(db)
    app.logger.info("Mongo initialized")
    return db


def ensure_indexes(db) -> None:
    """The unique indexes are what keeps batches and idempotency tokens single."""
    db[SPECIES].create_index([("scientificName", ASCENDING)], unique=True)

    db[BATCHES].create_index([("id", ASCENDING)], unique=True)
    db[BATCHES].create_index([("scientificName", ASCENDING), ("statusPhase", ASCENDING)])
    db[BATCHES].create_index([("chainStatus", ASCENDING), ("createdAt", ASCENDING)])

    db[COLLECTION_EVENTS].create_index([("id", ASCENDING)], unique=True)
    # sparse: events without a token simply omit the field
    db[COLLECTION_EVENTS].create_index([("clientEventId", ASCENDING)], unique=True, sparse=True)
    db[COLLECTION_EVENTS].create_index([("batchId", ASCENDING), ("timestampUtc", ASCENDING)])
    db[COLLECTION_EVENTS].create_index([("timestampUtc", DESCENDING)])
    db[COLLECTION_EVENTS].create_index([("status", ASCENDING), ("createdAt", ASCENDING)])

    for name in (PROCESSING_STEPS, LAB_TESTS):
        db[name].create_index([("id", ASCENDING)], unique=True)
        db[name].create_index([("batchId", ASCENDING), ("createdAt", ASCENDING)])
        db[name].create_index([("status", ASCENDING), ("createdAt", ASCENDING)])


def get_db():
    """Returns the database bound to the current app."""
    db = current_app.extensions.get(_EXT_KEY)
    if db is None:
        raise StoreUnavailableError("Mongo is disabled or not initialized")
    return db


@contextmanager
def store_errors(action: str):
    """
    Turns driver failures into StoreUnavailableError.
    Duplicate keys pass through untouched: callers decide what they mean.
    """
    try:
        yield
    except DuplicateKeyError:
        raise
    except PyMongoError as e:
        logger.error("Store failure while %s: %s", action, e)
        raise StoreUnavailableError(f"store unavailable while {action}") from e
