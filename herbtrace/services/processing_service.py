# herbtrace/services/processing_service.py

from __future__ import annotations

import logging
from typing import Any, Dict

from herbtrace.app_config import Settings
from herbtrace.core.batch_identity import naive_utc
from herbtrace.core.hashing import record_hash
from herbtrace.core.transitions import next_phase
from herbtrace.models.processing_models import ProcessingStepCreateModel
from herbtrace.mongo import BATCHES, PROCESSING_STEPS, store_errors
from herbtrace.services.batch_service import BatchService
from herbtrace.services.common import iso_or_none, new_id, now_utc

logger = logging.getLogger(__name__)


def serialize_step(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": doc.get("id"),
        "batch_id": doc.get("batchId"),
        "step_type": doc.get("stepType"),
        "status": doc.get("status"),
        "started_at": iso_or_none(doc.get("startedAt")),
        "ended_at": iso_or_none(doc.get("endedAt")),
        "params": doc.get("params") or {},
        "post_step_metrics": doc.get("postMetrics") or {},
        "notes": doc.get("notes") or "",
        "hash": doc.get("hash"),
    }


class ProcessingService:
    """
    Processor-reported handling steps. Every request creates a new step
    (no idempotency token here); mapped step types move the batch phase.
    """

    @staticmethod
    def record_processing_step(db, settings: Settings, payload: ProcessingStepCreateModel) -> Dict[str, Any]:
        batch = BatchService.require_batch(db, payload.batch_id)

        now = now_utc()
        doc: Dict[str, Any] = {
            "id": new_id("PS"),
            "batchId": payload.batch_id,
            "stepType": payload.step_type,
            "status": payload.status,
            "params": payload.params,
            "postMetrics": payload.post_step_metrics,
            "notes": payload.notes or "",
            "createdAt": now,
            "updatedAt": now,
        }
        if payload.started_at:
            doc["startedAt"] = naive_utc(payload.started_at)
        if payload.ended_at:
            doc["endedAt"] = naive_utc(payload.ended_at)
        doc["hash"] = record_hash("processing_step", doc, settings.record_hash_mode)

        with store_errors("inserting processing step"):
            db[PROCESSING_STEPS].insert_one(doc)
        doc.pop("_id", None)

        phase = next_phase(payload.step_type)
        if phase:
            with store_errors("updating batch phase"):
                db[BATCHES].update_one(
                    {"id": payload.batch_id},
                    {"$set": {"statusPhase": phase, "updatedAt": now}},
                )
            logger.info("Batch %s phase %s -> %s", payload.batch_id, batch.get("statusPhase"), phase)

        return {
            "processing_step": serialize_step(doc),
            "batch": {
                "id": payload.batch_id,
                "status_phase": phase or batch.get("statusPhase"),
                "phase_changed": phase is not None,
            },
        }
