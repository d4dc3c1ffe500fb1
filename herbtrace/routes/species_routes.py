# herbtrace/routes/species_routes.py

from flask import Blueprint, jsonify, request

from herbtrace.models.species_models import SpeciesSeedModel
from herbtrace.mongo import get_db
from herbtrace.services.species_service import SpeciesService

species_bp = Blueprint("species", __name__)


# ---------------------------------------------------------
# POST /dev/seed-species   (dev utility)
# ---------------------------------------------------------
@species_bp.post("/dev/seed-species")
def seed_species():
    payload = SpeciesSeedModel.model_validate(request.get_json(silent=True) or {})
    return jsonify(SpeciesService.upsert_species(get_db(), payload))


# ---------------------------------------------------------
# GET /species
# ---------------------------------------------------------
@species_bp.get("/species")
def list_species():
    return jsonify({"items": SpeciesService.list_species(get_db())})
