import hashlib
import math
from collections import OrderedDict
from datetime import datetime, timezone

import pytest

from herbtrace.core.hashing import (
    canonicalize,
    content_hash,
    digest,
    id_hash,
    record_hash,
    verify_record,
)
from herbtrace.errors import ValidationError


def test_mapping_insertion_order_does_not_matter():
    m1 = OrderedDict([("b", 1), ("a", {"y": [1, 2], "x": "v"})])
    m2 = OrderedDict([("a", {"x": "v", "y": [1, 2]}), ("b", 1)])
    assert canonicalize(m1) == canonicalize(m2)
    assert canonicalize(m1) == '{"a":{"x":"v","y":[1,2]},"b":1}'


def test_sequence_order_is_preserved():
    assert canonicalize([1, 2, 3]) != canonicalize([3, 2, 1])
    assert canonicalize({"steps": ["DRYING", "GRINDING"]}) != canonicalize({"steps": ["GRINDING", "DRYING"]})


def test_keys_sort_by_utf8_bytes():
    # "Z" (0x5a) sorts before "a" (0x61) and "é" (0xc3 0xa9) after both
    assert canonicalize({"é": 1, "a": 2, "Z": 3}) == '{"Z":3,"a":2,"é":1}'


def test_scalars():
    assert canonicalize(None) == "null"
    assert canonicalize(True) == "true"
    assert canonicalize(10) == "10"
    assert canonicalize(10.0) == "10"
    assert canonicalize(10.5) == "10.5"
    assert canonicalize("farmer-123") == '"farmer-123"'
    assert canonicalize(datetime(2025, 9, 16, 9, 0)) == '"2025-09-16T09:00:00Z"'
    assert canonicalize(datetime(2025, 9, 16, 9, 0, tzinfo=timezone.utc)) == '"2025-09-16T09:00:00Z"'


def test_non_finite_numbers_are_rejected():
    with pytest.raises(ValidationError):
        canonicalize({"moisturePct": math.nan})
    with pytest.raises(ValidationError):
        canonicalize([math.inf])


def test_digest_is_deterministic_sha256():
    assert digest("abc") == digest("abc")
    assert digest("abc") == hashlib.sha256(b"abc").hexdigest()
    assert digest("abc") != digest("abd")
    assert len(digest("")) == 64


def test_content_hash_ignores_bookkeeping_fields():
    base = {"id": "CE-1", "batchId": "B-X-20250916-k", "status": "ACCEPTED"}
    noisy = {
        **base,
        "_id": "64f0c0ffee",
        "hash": "stale",
        "createdAt": datetime(2025, 9, 16),
        "updatedAt": datetime(2025, 9, 17),
    }
    assert content_hash(base) == content_hash(noisy)
    assert content_hash(base) != content_hash({**base, "status": "READY"})


def test_id_hash_matches_legacy_token():
    assert id_hash("LT-1", "B-X-20250916-k") == hashlib.sha256(b"LT-1:B-X-20250916-k").hexdigest()


def test_record_hash_modes():
    rec = {"id": "PS-1", "batchId": "B-X-20250916-k", "stepType": "DRYING"}
    assert record_hash("processing_step", rec, "content") == content_hash(rec)
    assert record_hash("processing_step", rec, "id") == id_hash("PS-1", "B-X-20250916-k")
    # collection events ignore the legacy mode
    assert record_hash("collection_event", rec, "id") == content_hash(rec)
    with pytest.raises(ValueError):
        record_hash("farm", rec)


def test_verify_record():
    rec = {"id": "CE-1", "status": "ACCEPTED"}
    rec["hash"] = content_hash(rec)
    assert verify_record(rec) is True
    rec["status"] = "COMPLETE"
    assert verify_record(rec) is False
    assert verify_record({"id": "CE-2"}) is False


def test_number_grammar():
    assert canonicalize(1e21) == "1000000000000000000000"
    assert canonicalize(5e-07) == "5e-07"
    assert canonicalize(1.5e300) == "1.5e+300"
    assert canonicalize(-0.25) == "-0.25"
    assert canonicalize(-3.0) == "-3"


def test_batches_have_no_record_hash_kind():
    with pytest.raises(ValueError):
        record_hash("batch", {"id": "B-WITHA-20250916-k"})
