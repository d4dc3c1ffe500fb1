# herbtrace/routes/provenance_routes.py
from flask import Blueprint, jsonify

from herbtrace.mongo import get_db
from herbtrace.services.provenance_service import ProvenanceService

provenance_bp = Blueprint("provenance", __name__)  # no url_prefix


@provenance_bp.get("/provenance/<batch_id>")
def provenance_bundle(batch_id: str):
    """Public, read-only journey of one batch (no auth)."""
    return jsonify(ProvenanceService.build_bundle(get_db(), batch_id))
