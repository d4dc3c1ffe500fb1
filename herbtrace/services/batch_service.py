# herbtrace/services/batch_service.py

from typing import Any, Dict, List, Optional

from pymongo import DESCENDING

from herbtrace.errors import NotFoundError
from herbtrace.mongo import BATCHES, store_errors


def batch_summary(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": doc.get("id"),
        "species": doc.get("scientificName"),
        "status_phase": doc.get("statusPhase"),
        "quality_gate": doc.get("qualityGate"),
        "date_utc": doc.get("dateUtc"),
    }


class BatchService:

    @staticmethod
    def list_batches(db, species: Optional[str] = None, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Newest first; `status` filters on the lifecycle phase."""
        q: Dict[str, Any] = {}
        if species:
            q["scientificName"] = species
        if status:
            q["statusPhase"] = status.strip().upper()

        with store_errors("listing batches"):
            cur = db[BATCHES].find(q, {"_id": 0}).sort([("createdAt", DESCENDING), ("id", DESCENDING)])
            return [batch_summary(d) for d in cur]

    @staticmethod
    def get_batch(db, batch_id: str) -> Dict[str, Any]:
        doc = BatchService.require_batch(db, batch_id)
        return {
            **batch_summary(doc),
            "collector_id": doc.get("collectorId"),
            "chain_status": doc.get("chainStatus"),
            "qr_code_url": doc.get("qrCodeUrl"),
            "hash": doc.get("hash"),
        }

    @staticmethod
    def require_batch(db, batch_id: str) -> Dict[str, Any]:
        """Raw batch document, or NotFoundError."""
        with store_errors("reading batch"):
            doc = db[BATCHES].find_one({"id": batch_id}, {"_id": 0})
        if not doc:
            raise NotFoundError(f"batch {batch_id} not found")
        return doc
