# herbtrace/services/collection_service.py

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pymongo import ASCENDING, DESCENDING

from herbtrace.app_config import Settings
from herbtrace.core.batch_identity import compose_batch_id, ensure_batch, naive_utc, species_code_for, utc_day
from herbtrace.core.hashing import iso_z, record_hash
from herbtrace.core.idempotency import resolve_or_create
from herbtrace.errors import NotFoundError
from herbtrace.models.collection_models import CollectionEventCreateModel, CollectionQueryModel
from herbtrace.mongo import BATCHES, COLLECTION_EVENTS, store_errors
from herbtrace.qr_links import qr_code_url
from herbtrace.services.common import new_id, now_utc, page_result, page_window

logger = logging.getLogger(__name__)

STATUS_ACCEPTED = "ACCEPTED"


def serialize_event(doc: Dict[str, Any]) -> Dict[str, Any]:
    out = {
        "id": doc.get("id"),
        "scientificName": doc.get("scientificName"),
        "collectorId": doc.get("collectorId"),
        "geo": doc.get("geo"),
        "timestamp": iso_z(doc["timestampUtc"]) if doc.get("timestampUtc") else None,
        "ai": doc.get("ai") or {},
        "status": doc.get("status"),
        "violations": doc.get("violations") or [],
        "batch_id": doc.get("batchId"),
        "hash": doc.get("hash"),
    }
    if doc.get("clientEventId"):
        out["clientEventId"] = doc["clientEventId"]
    return out


def _batch_summary(batch: Optional[Dict[str, Any]], batch_id: str) -> Dict[str, Any]:
    batch = batch or {}
    return {
        "id": batch_id,
        "status_phase": batch.get("statusPhase"),
        "quality_gate": batch.get("qualityGate"),
        "qr_code_url": batch.get("qrCodeUrl"),
    }


class CollectionService:
    """
    Farmer-reported harvests. Each event is filed under the day-batch of its
    (species, collector, UTC day); the batch is created on first sight.
    """

    # -------------------------------------------------
    # WRITE
    # -------------------------------------------------
    @staticmethod
    def record_collection_event(db, settings: Settings, payload: CollectionEventCreateModel) -> Dict[str, Any]:
        """
        Returns {"collectionEvent", "batch", "created"}.
        Replaying a known clientEventId returns the stored event untouched.
        """
        batches = {}

        def _create() -> Dict[str, Any]:
            ts = naive_utc(payload.timestamp)
            code = species_code_for(db, payload.scientificName)
            date_utc, compact = utc_day(ts)
            batch_id = compose_batch_id(code, compact, payload.collectorId)
            batches[batch_id] = ensure_batch(
                db,
                batch_id,
                payload.scientificName,
                payload.collectorId,
                date_utc,
                qr_code_url=qr_code_url(settings, batch_id),
            )

            now = now_utc()
            doc = {
                "id": new_id("CE"),
                "scientificName": payload.scientificName,
                "collectorId": payload.collectorId,
                "geo": payload.geo.model_dump(exclude_none=True),
                "timestampUtc": ts,
                "ai": (
                    {"confidence": payload.ai_verified_confidence}
                    if payload.ai_verified_confidence is not None
                    else None
                ),
                "status": STATUS_ACCEPTED,
                "violations": [],
                "batchId": batch_id,
                "createdAt": now,
                "updatedAt": now,
            }
            if payload.clientEventId:
                doc["clientEventId"] = payload.clientEventId
            doc["hash"] = record_hash("collection_event", doc)
            return doc

        event, created = resolve_or_create(db[COLLECTION_EVENTS], payload.clientEventId, _create)

        batch_id = event["batchId"]
        batch = batches.get(batch_id)
        if batch is None:
            with store_errors("reading batch"):
                batch = db[BATCHES].find_one({"id": batch_id}, {"_id": 0})

        if created:
            logger.info("Recorded collection event %s in batch %s", event["id"], batch_id)
        return {
            "collectionEvent": serialize_event(event),
            "batch": _batch_summary(batch, batch_id),
            "created": created,
        }

    # -------------------------------------------------
    # READ
    # -------------------------------------------------
    @staticmethod
    def get_collection_event(db, event_id: str) -> Dict[str, Any]:
        with store_errors("reading collection event"):
            doc = db[COLLECTION_EVENTS].find_one({"id": event_id}, {"_id": 0})
        if not doc:
            raise NotFoundError(f"collection event {event_id} not found")
        return serialize_event(doc)

    @staticmethod
    def list_collection_events(db, settings: Settings, query: CollectionQueryModel) -> Dict[str, Any]:
        q: Dict[str, Any] = {}
        if query.species:
            q["scientificName"] = query.species
        if query.collectorId:
            q["collectorId"] = query.collectorId
        if query.date_from or query.date_to:
            q["timestampUtc"] = {}
        if query.date_from:
            q["timestampUtc"]["$gte"] = naive_utc(query.date_from)
        if query.date_to:
            q["timestampUtc"]["$lte"] = naive_utc(query.date_to)

        page, limit, skip = page_window(
            query.page, query.page_size, settings.default_page_size, settings.max_page_size
        )
        col = db[COLLECTION_EVENTS]
        with store_errors("listing collection events"):
            cur = (
                col.find(q, {"_id": 0})
                .sort([("timestampUtc", DESCENDING), ("id", ASCENDING)])
                .skip(skip)
                .limit(limit)
            )
            items = [serialize_event(d) for d in cur]
            total = col.count_documents(q)
        return page_result(items, page, limit, total)
