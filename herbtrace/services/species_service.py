# herbtrace/services/species_service.py

import logging
from typing import Any, Dict, List

from herbtrace.models.species_models import SpeciesSeedModel
from herbtrace.mongo import SPECIES, store_errors
from herbtrace.services.common import now_utc

logger = logging.getLogger(__name__)


class SpeciesService:

    @staticmethod
    def upsert_species(db, payload: SpeciesSeedModel) -> Dict[str, Any]:
        """Insert or update by scientific name. Species are never deleted."""
        now = now_utc()
        data = payload.model_dump()
        with store_errors("upserting species"):
            res = db[SPECIES].update_one(
                {"scientificName": payload.scientificName},
                {"$set": {**data, "updatedAt": now}, "$setOnInsert": {"createdAt": now}},
                upsert=True,
            )
        created = res.upserted_id is not None
        logger.info(
            "%s species %s (%s)",
            "Seeded" if created else "Updated",
            payload.scientificName,
            payload.speciesCode,
        )
        return {"ok": True, "created": created, "speciesCode": payload.speciesCode}

    @staticmethod
    def list_species(db) -> List[Dict[str, Any]]:
        with store_errors("listing species"):
            cur = db[SPECIES].find({}, {"_id": 0, "createdAt": 0, "updatedAt": 0}).sort([("scientificName", 1)])
            return list(cur)
