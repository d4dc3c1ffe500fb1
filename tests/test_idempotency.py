import pytest
from pymongo.errors import DuplicateKeyError

from herbtrace.core.idempotency import resolve_or_create
from herbtrace.mongo import COLLECTION_EVENTS


class StaleLookupCollection:
    """Misses the first token lookup, like a request racing a concurrent insert."""

    def __init__(self, inner):
        self.inner = inner
        self.lookups = 0

    def find_one(self, *args, **kwargs):
        self.lookups += 1
        if self.lookups == 1:
            return None
        return self.inner.find_one(*args, **kwargs)

    def insert_one(self, doc):
        return self.inner.insert_one(doc)


def _factory(calls, event_id):
    def create():
        calls.append(event_id)
        return {"id": event_id, "batchId": "B-WITHA-20250916-k"}

    return create


def test_replay_returns_stored_record_without_creating(db):
    col = db[COLLECTION_EVENTS]
    calls = []

    first, created = resolve_or_create(col, "tok-1", _factory(calls, "CE-1"))
    again, created_again = resolve_or_create(col, "tok-1", _factory(calls, "CE-2"))

    assert created is True
    assert created_again is False
    assert first["id"] == again["id"] == "CE-1"
    assert calls == ["CE-1"]
    assert col.count_documents({"clientEventId": "tok-1"}) == 1


def test_without_token_every_call_creates(db):
    col = db[COLLECTION_EVENTS]
    calls = []
    a, _ = resolve_or_create(col, None, _factory(calls, "CE-1"))
    b, _ = resolve_or_create(col, None, _factory(calls, "CE-2"))

    assert a["id"] != b["id"]
    assert "clientEventId" not in a
    assert col.count_documents({}) == 2


def test_concurrent_insert_is_recovered(db):
    col = db[COLLECTION_EVENTS]
    col.insert_one({"id": "CE-winner", "clientEventId": "tok-race"})

    record, created = resolve_or_create(StaleLookupCollection(col), "tok-race", _factory([], "CE-loser"))

    assert created is False
    assert record["id"] == "CE-winner"
    assert col.count_documents({"clientEventId": "tok-race"}) == 1


def test_unrelated_duplicate_key_is_raised(db):
    col = db[COLLECTION_EVENTS]
    col.insert_one({"id": "CE-1"})

    with pytest.raises(DuplicateKeyError):
        resolve_or_create(col, "tok-new", _factory([], "CE-1"))
