# herbtrace/core/hashing.py
"""
Canonical record hashing.

The canonical form must not depend on how a mapping was built or how the
store re-encoded it:

- scalars are written as JSON literals,
- lists keep their order,
- mapping keys are sorted by their UTF-8 bytes.

Numbers follow Python, not ECMAScript `JSON.stringify`:

- ints and integral floats are plain decimal digits (`12.0` -> `12`,
  `1e21` -> `1000000000000000000000`),
- other floats use `repr`, the shortest round-tripping form (`10.5`,
  `5e-07`, `1.5e+300`),
- NaN and Infinity are rejected.

A verifier in another language has to reproduce this grammar.

The canonical string is digested with SHA-256 (lowercase hex).
"""

from __future__ import annotations

import hashlib
import json
import math
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Mapping

from herbtrace.errors import ValidationError

# bookkeeping fields that are not part of a record's logical content
CONTENT_EXCLUDE = ("hash", "_id", "createdAt", "updatedAt")

# record kinds that always get a content hash, whatever the mode
CONTENT_ONLY_KINDS = ("collection_event",)
ID_HASH_KINDS = ("processing_step", "lab_test")


def iso_z(value: datetime) -> str:
    """`2025-09-16T09:00:00Z`; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _scalar(value: Any) -> str:
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValidationError("NaN and Infinity cannot be canonicalized")
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        return json.dumps(iso_z(value))
    if isinstance(value, date):
        return json.dumps(value.isoformat())
    raise ValidationError(f"cannot canonicalize value of type {type(value).__name__}")


def canonicalize(value: Any) -> str:
    if isinstance(value, Mapping):
        parts = []
        for key in value.keys():
            if not isinstance(key, str):
                raise ValidationError(f"mapping keys must be strings, got {type(key).__name__}")
        for key in sorted(value.keys(), key=lambda k: k.encode("utf-8")):
            parts.append(json.dumps(key, ensure_ascii=False) + ":" + canonicalize(value[key]))
        return "{" + ",".join(parts) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(canonicalize(v) for v in value) + "]"
    return _scalar(value)


def digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def content_view(record: Mapping[str, Any], exclude: Iterable[str] = CONTENT_EXCLUDE) -> Dict[str, Any]:
    skip = set(exclude)
    return {k: v for k, v in record.items() if k not in skip}


def content_hash(record: Mapping[str, Any], exclude: Iterable[str] = CONTENT_EXCLUDE) -> str:
    return digest(canonicalize(content_view(record, exclude)))


def id_hash(entity_id: str, batch_id: str) -> str:
    """Legacy anchoring token: not content-addressed."""
    return digest(f"{entity_id}:{batch_id}")


def record_hash(kind: str, record: Mapping[str, Any], mode: str = "content") -> str:
    """
    Hash for a freshly built record.

    Collection events always get a content hash. Processing steps
    and lab tests follow `mode`: "content" or the legacy "id" token.
    """
    if kind in ID_HASH_KINDS and mode == "id":
        return id_hash(record["id"], record["batchId"])
    if kind not in CONTENT_ONLY_KINDS and kind not in ID_HASH_KINDS:
        raise ValueError(f"unknown record kind: {kind}")
    if mode not in ("content", "id"):
        raise ValueError(f"unknown hash mode: {mode}")
    return content_hash(record)


def verify_record(record: Mapping[str, Any]) -> bool:
    stored = record.get("hash")
    if not stored:
        return False
    return stored == content_hash(record)
