# herbtrace/services/chain_service.py
"""
Endpoints for the anchoring integrator: it lists records by status, anchors
them elsewhere, then reports status/hash back. Nothing here talks to a chain.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pymongo import ASCENDING

from herbtrace.app_config import Settings
from herbtrace.core.hashing import content_hash, verify_record
from herbtrace.core.transitions import normalize_chain_status
from herbtrace.errors import NotFoundError, ValidationError
from herbtrace.mongo import BATCHES, COLLECTION_EVENTS, LAB_TESTS, PROCESSING_STEPS, store_errors
from herbtrace.services.common import now_utc, page_result, page_window

logger = logging.getLogger(__name__)

# kind -> (collection, field holding the chain status)
KINDS = {
    "collection_event": (COLLECTION_EVENTS, "status"),
    "processing_step": (PROCESSING_STEPS, "status"),
    "lab_test": (LAB_TESTS, "status"),
    "batch": (BATCHES, "chainStatus"),
}


def _chain_item(kind: str, doc: Dict[str, Any]) -> Dict[str, Any]:
    if kind == "collection_event":
        return {
            "id": doc.get("id"),
            "scientific_name": doc.get("scientificName"),
            "collector_id": doc.get("collectorId"),
            "status": doc.get("status"),
            "hash": doc.get("hash"),
        }
    if kind == "processing_step":
        return {
            "id": doc.get("id"),
            "batch_id": doc.get("batchId"),
            "step_type": doc.get("stepType"),
            "status": doc.get("status"),
            "hash": doc.get("hash"),
        }
    if kind == "lab_test":
        return {
            "id": doc.get("id"),
            "batch_id": doc.get("batchId"),
            "status": doc.get("status"),
            "gate": doc.get("gate"),
            "hash": doc.get("hash"),
        }
    return {
        "id": doc.get("id"),
        "species": doc.get("scientificName"),
        "date_utc": doc.get("dateUtc"),
        "chain_status": doc.get("chainStatus"),
        "hash": doc.get("hash"),
    }


class ChainService:

    @staticmethod
    def list_by_status(
        db,
        settings: Settings,
        kind: str,
        status: Optional[str] = "READY",
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Oldest first, so the integrator works through its backlog in order."""
        collection, field = KINDS[kind]
        q = {field: normalize_chain_status(status or "READY", required=True)}

        page, limit, skip = page_window(
            page, page_size, settings.chain_page_size, settings.chain_max_page_size
        )
        col = db[collection]
        with store_errors(f"listing {collection} by status"):
            cur = col.find(q, {"_id": 0}).sort([("createdAt", ASCENDING), ("id", ASCENDING)]).skip(skip).limit(limit)
            items = [_chain_item(kind, d) for d in cur]
            total = col.count_documents(q)
        return page_result(items, page, limit, total)

    @staticmethod
    def set_external_status(
        db,
        kind: str,
        entity_id: str,
        status: Optional[str] = None,
        hash_value: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Status and/or hash for an event, step or lab test."""
        if kind == "batch":
            return ChainService.set_batch_chain_status(db, entity_id, status, hash_value)

        collection, field = KINDS[kind]
        update: Dict[str, Any] = {}
        next_status = normalize_chain_status(status)
        if next_status:
            update[field] = next_status
        if hash_value:
            update["hash"] = hash_value
        if not update:
            raise ValidationError("Provide status and/or hash")

        with store_errors(f"updating {collection}"):
            res = db[collection].update_one({"id": entity_id}, {"$set": {**update, "updatedAt": now_utc()}})
        if res.matched_count == 0:
            raise NotFoundError(f"{kind} {entity_id} not found")

        logger.info("Chain update for %s %s: %s", kind, entity_id, update)
        return {"id": entity_id, **update}

    @staticmethod
    def set_batch_chain_status(
        db,
        batch_id: str,
        status: Optional[str],
        hash_value: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Status is required for batches. A supplied hash is stored on the batch
        and copied onto every collection event of the batch.
        """
        next_status = normalize_chain_status(status, required=True)
        update: Dict[str, Any] = {"chainStatus": next_status, "updatedAt": now_utc()}
        if hash_value:
            update["hash"] = hash_value

        with store_errors("updating batch chain status"):
            res = db[BATCHES].update_one({"id": batch_id}, {"$set": update})
        if res.matched_count == 0:
            raise NotFoundError(f"batch {batch_id} not found")

        if hash_value:
            with store_errors("propagating batch hash"):
                db[COLLECTION_EVENTS].update_many(
                    {"batchId": batch_id}, {"$set": {"hash": hash_value, "updatedAt": now_utc()}}
                )

        logger.info("Batch %s chain status -> %s", batch_id, next_status)
        return {"id": batch_id, "chain_status": next_status, "hash": hash_value or None}

    @staticmethod
    def verify_collection_event(db, event_id: str) -> Dict[str, Any]:
        """
        Recomputes the content hash of a stored event. A mismatch is expected
        once the integrator has replaced the hash or the status.
        """
        with store_errors("reading collection event"):
            doc = db[COLLECTION_EVENTS].find_one({"id": event_id}, {"_id": 0})
        if not doc:
            raise NotFoundError(f"collection event {event_id} not found")

        computed = content_hash(doc)
        stored = doc.get("hash")
        return {
            "id": event_id,
            "stored_hash": stored,
            "computed_hash": computed,
            "matches": verify_record(doc),
        }
