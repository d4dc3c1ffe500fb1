# herbtrace/core/batch_identity.py
"""
Batch identity: one batch per (species, collector, UTC day).

The batch id `B-<speciesCode>-<YYYYMMDD>-<collectorId>` is the only key, so two
events for the same triple land in the same batch without a lookup table, and
the unique index on `batches.id` is what enforces "at most one".
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Optional, Tuple, Union

from pymongo.errors import DuplicateKeyError

from herbtrace.errors import ValidationError
from herbtrace.mongo import BATCHES, SPECIES, store_errors

logger = logging.getLogger(__name__)

SEPARATOR = "-"
PREFIX = "B"
FALLBACK_CODE = "SPEC"

PHASE_CREATED = "CREATED"
GATE_PENDING = "PENDING"


class BatchKey(NamedTuple):
    species_code: str
    date_compact: str
    collector_id: str


# -------------------------------------------------
# Species code
# -------------------------------------------------
def fallback_species_code(scientific_name: str) -> str:
    """First word of the name, 5 chars max, upper-cased."""
    tokens = (scientific_name or "").split()
    if not tokens:
        return FALLBACK_CODE
    return tokens[0][:5].upper()


def species_code_for(db, scientific_name: str) -> str:
    with store_errors("looking up species"):
        doc = db[SPECIES].find_one({"scientificName": scientific_name}, {"speciesCode": 1})
    if doc and doc.get("speciesCode"):
        return doc["speciesCode"]
    return fallback_species_code(scientific_name)


# -------------------------------------------------
# Dates
# -------------------------------------------------
def to_utc(timestamp: Union[str, datetime]) -> datetime:
    """Aware UTC datetime. Values without an offset are already UTC."""
    if isinstance(timestamp, datetime):
        dt = timestamp
    elif isinstance(timestamp, str) and timestamp.strip():
        raw = timestamp.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError as e:
            raise ValidationError(f"invalid timestamp: {timestamp!r}") from e
    else:
        raise ValidationError("timestamp is required")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def naive_utc(timestamp: Union[str, datetime]) -> datetime:
    """UTC without tzinfo, the form stored in and compared against Mongo."""
    return to_utc(timestamp).replace(tzinfo=None)


def utc_day(timestamp: Union[str, datetime]) -> Tuple[str, str]:
    """("YYYY-MM-DD", "YYYYMMDD") of the UTC calendar day."""
    dt = to_utc(timestamp)
    return dt.strftime("%Y-%m-%d"), dt.strftime("%Y%m%d")


# -------------------------------------------------
# Key composition
# -------------------------------------------------
def _check_species_code(code: str) -> None:
    if not code or SEPARATOR in code or any(c.isspace() for c in code):
        raise ValidationError(f"species code {code!r} must be non-empty and free of '-' and spaces")


def _check_collector_id(collector_id: str) -> None:
    if not collector_id or not isinstance(collector_id, str):
        raise ValidationError("collectorId is required")
    if "/" in collector_id or any(c.isspace() for c in collector_id):
        raise ValidationError(f"collectorId {collector_id!r} must not contain '/' or spaces")


def compose_batch_id(species_code: str, date_compact: str, collector_id: str) -> str:
    _check_species_code(species_code)
    _check_collector_id(collector_id)
    if len(date_compact) != 8 or not date_compact.isdigit():
        raise ValidationError(f"date must be YYYYMMDD, got {date_compact!r}")
    return SEPARATOR.join((PREFIX, species_code, date_compact, collector_id))


def parse_batch_id(batch_id: str) -> BatchKey:
    """Collector ids may contain '-'; everything after the date belongs to them."""
    parts = (batch_id or "").split(SEPARATOR, 3)
    if len(parts) != 4 or parts[0] != PREFIX:
        raise ValidationError(f"malformed batch id: {batch_id!r}")
    _, code, date_compact, collector_id = parts
    if len(date_compact) != 8 or not date_compact.isdigit() or not code or not collector_id:
        raise ValidationError(f"malformed batch id: {batch_id!r}")
    return BatchKey(code, date_compact, collector_id)


def resolve_batch(db, scientific_name: str, collector_id: str, timestamp: Union[str, datetime]) -> str:
    code = species_code_for(db, scientific_name)
    _, compact = utc_day(timestamp)
    return compose_batch_id(code, compact, collector_id)


# -------------------------------------------------
# Create-if-absent
# -------------------------------------------------
def ensure_batch(
    db,
    batch_id: str,
    scientific_name: str,
    collector_id: str,
    date_utc: str,
    qr_code_url: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Insert the batch if it does not exist yet; an existing batch is returned
    as stored, none of its fields are touched.
    """
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    on_insert = {
        "id": batch_id,
        "scientificName": scientific_name,
        "collectorId": collector_id,
        "dateUtc": date_utc,
        "statusPhase": PHASE_CREATED,
        "qualityGate": GATE_PENDING,
        "createdAt": now,
        "updatedAt": now,
    }
    if qr_code_url:
        on_insert["qrCodeUrl"] = qr_code_url

    col = db[BATCHES]
    try:
        with store_errors("creating batch"):
            res = col.update_one({"id": batch_id}, {"$setOnInsert": on_insert}, upsert=True)
        if res.upserted_id is not None:
            logger.info("Created batch %s", batch_id)
    except DuplicateKeyError:
        # lost the race against a concurrent upsert of the same key
        logger.warning("Batch %s created concurrently; keeping the existing one", batch_id)

    with store_errors("reading batch"):
        return col.find_one({"id": batch_id}, {"_id": 0})
