# herbtrace/services/lab_service.py

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pymongo import DESCENDING

from herbtrace.app_config import Settings
from herbtrace.core.hashing import record_hash
from herbtrace.core.transitions import evaluate_gate
from herbtrace.models.lab_models import LabTestCreateModel
from herbtrace.mongo import BATCHES, LAB_TESTS, store_errors
from herbtrace.services.batch_service import BatchService
from herbtrace.services.common import iso_or_none, new_id, now_utc, page_result, page_window

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "READY"


def serialize_lab_test(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": doc.get("id"),
        "batch_id": doc.get("batchId"),
        "moisture_pct": doc.get("moisturePct"),
        "pesticide_pass": doc.get("pesticidePass"),
        "pdf_url": doc.get("pdfUrl"),
        "gate": doc.get("gate"),
        "threshold_pct": doc.get("thresholdPct"),
        "evaluated_at": iso_or_none(doc.get("evaluatedAt")),
        "status": doc.get("status"),
        "hash": doc.get("hash"),
    }


class LabService:

    @staticmethod
    def record_lab_test(db, settings: Settings, payload: LabTestCreateModel) -> Dict[str, Any]:
        """Evaluates the gate against the configured threshold and stamps it on the batch."""
        BatchService.require_batch(db, payload.batch_id)

        threshold = settings.moisture_threshold_pct
        gate = evaluate_gate(payload.moisture_pct, payload.pesticide_pass, threshold)

        now = now_utc()
        doc: Dict[str, Any] = {
            "id": new_id("LT"),
            "batchId": payload.batch_id,
            "moisturePct": payload.moisture_pct,
            "pesticidePass": payload.pesticide_pass,
            "gate": gate,
            "thresholdPct": threshold,
            "evaluatedAt": now,
            "status": DEFAULT_STATUS,
            "createdAt": now,
            "updatedAt": now,
        }
        if payload.pdf_url:
            doc["pdfUrl"] = payload.pdf_url
        doc["hash"] = record_hash("lab_test", doc, settings.record_hash_mode)

        with store_errors("inserting lab test"):
            db[LAB_TESTS].insert_one(doc)
        doc.pop("_id", None)

        # last write wins
        with store_errors("updating batch gate"):
            db[BATCHES].update_one(
                {"id": payload.batch_id},
                {"$set": {"qualityGate": gate, "updatedAt": now}},
            )
        logger.info("Lab test %s on batch %s: %s", doc["id"], payload.batch_id, gate)

        return {
            "lab_test": serialize_lab_test(doc),
            "batch": {"id": payload.batch_id, "quality_gate": gate},
        }

    @staticmethod
    def list_lab_tests(
        db,
        settings: Settings,
        batch_id: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Dict[str, Any]:
        q: Dict[str, Any] = {}
        if batch_id:
            q["batchId"] = batch_id

        page, limit, skip = page_window(page, page_size, settings.default_page_size, settings.max_page_size)
        col = db[LAB_TESTS]
        with store_errors("listing lab tests"):
            cur = col.find(q, {"_id": 0}).sort([("createdAt", DESCENDING), ("id", DESCENDING)]).skip(skip).limit(limit)
            items = [serialize_lab_test(d) for d in cur]
            total = col.count_documents(q)
        return page_result(items, page, limit, total)
