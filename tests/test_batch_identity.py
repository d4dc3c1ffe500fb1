from datetime import datetime, timedelta, timezone

import logging

import pytest
from pymongo.errors import DuplicateKeyError

from herbtrace.core.batch_identity import (
    BatchKey,
    compose_batch_id,
    ensure_batch,
    fallback_species_code,
    parse_batch_id,
    resolve_batch,
    utc_day,
)
from herbtrace.errors import ValidationError
from herbtrace.mongo import BATCHES, SPECIES

from .conftest import WITHANIA


def test_fallback_species_code():
    assert fallback_species_code(WITHANIA) == "WITHA"
    assert fallback_species_code("Ocimum tenuiflorum") == "OCIMU"
    assert fallback_species_code("Aloe") == "ALOE"
    assert fallback_species_code("   ") == "SPEC"
    assert fallback_species_code("") == "SPEC"


def test_same_utc_day_resolves_same_batch(db):
    morning = resolve_batch(db, WITHANIA, "farmer-123", "2025-09-16T00:00:01Z")
    evening = resolve_batch(db, WITHANIA, "farmer-123", "2025-09-16T23:59:59Z")
    assert morning == evening == "B-WITHA-20250916-farmer-123"


def test_offset_timestamps_are_converted_to_utc(db):
    # 02:00 in India is still the previous UTC day
    ist = timezone(timedelta(hours=5, minutes=30))
    batch_id = resolve_batch(db, WITHANIA, "farmer-123", datetime(2025, 9, 17, 2, 0, tzinfo=ist))
    assert batch_id == "B-WITHA-20250916-farmer-123"


def test_naive_timestamp_is_treated_as_utc():
    assert utc_day(datetime(2025, 9, 16, 23, 30)) == ("2025-09-16", "20250916")
    assert utc_day("2025-09-16T23:30:00") == ("2025-09-16", "20250916")


def test_invalid_timestamp():
    with pytest.raises(ValidationError):
        utc_day("yesterday")
    with pytest.raises(ValidationError):
        utc_day("")


def test_seeded_species_code_wins(db):
    db[SPECIES].insert_one({"scientificName": WITHANIA, "speciesCode": "ASHWA"})
    assert resolve_batch(db, WITHANIA, "farmer-123", "2025-09-16T09:00:00Z") == "B-ASHWA-20250916-farmer-123"


def test_separator_policy():
    with pytest.raises(ValidationError):
        compose_batch_id("WITH-A", "20250916", "farmer-123")
    with pytest.raises(ValidationError):
        compose_batch_id("WITHA", "20250916", "farmer 123")
    with pytest.raises(ValidationError):
        compose_batch_id("WITHA", "20250916", "farm/er")
    with pytest.raises(ValidationError):
        compose_batch_id("WITHA", "2025-09-16", "farmer-123")


def test_parse_inverts_compose_for_dashed_collectors():
    batch_id = compose_batch_id("WITHA", "20250916", "coop-7-farmer-123")
    assert parse_batch_id(batch_id) == BatchKey("WITHA", "20250916", "coop-7-farmer-123")


def test_parse_rejects_malformed_ids():
    for bad in ("", "X-WITHA-20250916-k", "B-WITHA-2025-k", "B-WITHA-20250916"):
        with pytest.raises(ValidationError):
            parse_batch_id(bad)


def test_ensure_batch_creates_once_and_never_overwrites(db):
    batch_id = "B-WITHA-20250916-farmer-123"
    first = ensure_batch(db, batch_id, WITHANIA, "farmer-123", "2025-09-16", qr_code_url="http://qr/1")
    assert first["statusPhase"] == "CREATED"
    assert first["qualityGate"] == "PENDING"
    assert first["qrCodeUrl"] == "http://qr/1"

    db[BATCHES].update_one({"id": batch_id}, {"$set": {"statusPhase": "DRYING_DONE", "qualityGate": "PASS"}})

    again = ensure_batch(db, batch_id, "Other name", "someone-else", "2025-09-17", qr_code_url="http://qr/2")
    assert again["statusPhase"] == "DRYING_DONE"
    assert again["qualityGate"] == "PASS"
    assert again["scientificName"] == WITHANIA
    assert again["qrCodeUrl"] == "http://qr/1"
    assert db[BATCHES].count_documents({"id": batch_id}) == 1


class UpsertLosesRace:
    """Batches collection whose upsert collides with a concurrent writer."""

    def __init__(self, inner):
        self.inner = inner
        self.upserts = 0

    def update_one(self, *args, **kwargs):
        self.upserts += 1
        raise DuplicateKeyError("E11000 duplicate key error collection: batches index: id_1")

    def find_one(self, *args, **kwargs):
        return self.inner.find_one(*args, **kwargs)


def test_ensure_batch_losing_concurrent_upsert_is_a_noop(db, caplog):
    batch_id = "B-WITHA-20250916-farmer-123"
    db[BATCHES].insert_one(
        {"id": batch_id, "scientificName": WITHANIA, "collectorId": "farmer-123", "statusPhase": "DRYING_DONE"}
    )
    batches = UpsertLosesRace(db[BATCHES])

    with caplog.at_level(logging.WARNING):
        stored = ensure_batch({BATCHES: batches}, batch_id, WITHANIA, "farmer-123", "2025-09-16")

    assert batches.upserts == 1
    assert stored == {
        "id": batch_id,
        "scientificName": WITHANIA,
        "collectorId": "farmer-123",
        "statusPhase": "DRYING_DONE",
    }
    assert db[BATCHES].count_documents({"id": batch_id}) == 1
    assert "created concurrently" in caplog.text
