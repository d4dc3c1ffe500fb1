# herbtrace/services/provenance_service.py
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING

from herbtrace.errors import NotFoundError
from herbtrace.models.provenance_models import (
    BatchBlock,
    CollectionBlock,
    LabResultBlock,
    ProcessingBlock,
    ProvenanceBundle,
)
from herbtrace.mongo import BATCHES, COLLECTION_EVENTS, LAB_TESTS, PROCESSING_STEPS, store_errors
from herbtrace.services.common import iso_or_none

MASK = "***"

# the four reads of a bundle are independent
executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="provenance")


def mask_id(value: Any) -> Any:
    """`farmer-123` -> `fa***3`. Short or non-string values pass through."""
    if isinstance(value, str) and len(value) > 4:
        return value[:2] + MASK + value[-1:]
    return value


class ProvenanceService:
    """
    Consumer-facing, read-only view of one batch: collection, processing and
    lab history. Ids and hashes stay out of the bundle.
    """

    # -------------------------
    # Public API
    # -------------------------
    @staticmethod
    def build_bundle(db, batch_id: str) -> Dict[str, Any]:
        f_batch = executor.submit(ProvenanceService._find_batch, db, batch_id)
        f_events = executor.submit(
            ProvenanceService._find_many, db, COLLECTION_EVENTS, batch_id, [("timestampUtc", ASCENDING)]
        )
        f_steps = executor.submit(
            ProvenanceService._find_many, db, PROCESSING_STEPS, batch_id, [("createdAt", ASCENDING)]
        )
        f_labs = executor.submit(
            ProvenanceService._find_many, db, LAB_TESTS, batch_id, [("createdAt", DESCENDING)]
        )

        batch = f_batch.result()
        events = f_events.result()
        steps = f_steps.result()
        labs = f_labs.result()

        if not batch:
            raise NotFoundError(f"batch {batch_id} not found")

        bundle = ProvenanceBundle(
            batch=BatchBlock(
                species_scientific=batch.get("scientificName", ""),
                collector_id_masked=mask_id(batch.get("collectorId", "")),
                date_utc=batch.get("dateUtc", ""),
                status_phase=batch.get("statusPhase", ""),
                quality_gate=batch.get("qualityGate") or "PENDING",
                chain_status=batch.get("chainStatus"),
            ),
            collection=[ProvenanceService._collection_block(e) for e in events],
            processing_steps=[ProvenanceService._processing_block(s) for s in steps],
            lab_results=[ProvenanceService._lab_block(lab) for lab in labs],
            ui=ProvenanceService._ui_block(batch, events, steps),
        )
        return bundle.to_dict()

    # -------------------------
    # Store reads
    # -------------------------
    @staticmethod
    def _find_batch(db, batch_id: str) -> Optional[Dict[str, Any]]:
        with store_errors("reading batch"):
            return db[BATCHES].find_one({"id": batch_id}, {"_id": 0})

    @staticmethod
    def _find_many(db, collection: str, batch_id: str, sort) -> List[Dict[str, Any]]:
        with store_errors(f"reading {collection}"):
            return list(db[collection].find({"batchId": batch_id}, {"_id": 0}).sort(sort))

    # -------------------------
    # Blocks
    # -------------------------
    @staticmethod
    def _collection_block(e: Dict[str, Any]) -> CollectionBlock:
        return CollectionBlock(
            scientific_name=e.get("scientificName", ""),
            collector_id_masked=mask_id(e.get("collectorId", "")),
            geo=e.get("geo") or None,
            timestamp=iso_or_none(e.get("timestampUtc")),
            ai=e.get("ai") or {},
            status=e.get("status", ""),
            violations=e.get("violations") or [],
        )

    @staticmethod
    def _processing_block(s: Dict[str, Any]) -> ProcessingBlock:
        return ProcessingBlock(
            step_type=s.get("stepType", ""),
            status=s.get("status", ""),
            started_at=iso_or_none(s.get("startedAt")),
            ended_at=iso_or_none(s.get("endedAt")),
            params=s.get("params") or {},
            post_step_metrics=s.get("postMetrics") or {},
            notes=s.get("notes") or "",
        )

    @staticmethod
    def _lab_block(lab: Dict[str, Any]) -> LabResultBlock:
        return LabResultBlock(
            moisture_pct=lab.get("moisturePct"),
            pesticide_pass=lab.get("pesticidePass"),
            gate=lab.get("gate", ""),
            pdf_url=lab.get("pdfUrl"),
            evaluated_at=iso_or_none(lab.get("evaluatedAt")),
        )

    @staticmethod
    def _ui_block(batch: Dict[str, Any], events: List[Dict[str, Any]], steps: List[Dict[str, Any]]) -> Dict[str, Any]:
        first = events[0] if events else None
        geo = (first or {}).get("geo")
        ai = (first or {}).get("ai")
        confidence = ai.get("confidence") if isinstance(ai, dict) else None

        return {
            "map": {"lat": geo.get("lat"), "lng": geo.get("lng")} if geo else None,
            "herb_names": {
                "scientific": batch.get("scientificName"),
                "ai_verified_confidence": confidence if isinstance(confidence, (int, float)) else None,
            },
            "processing_summary": [s.get("stepType") for s in steps],
            "recall_banner": False,
        }
