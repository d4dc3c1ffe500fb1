# herbtrace/routes/collection_routes.py

from flask import Blueprint, jsonify, request

from herbtrace.app_config import current_settings
from herbtrace.models.collection_models import CollectionEventCreateModel, CollectionQueryModel
from herbtrace.mongo import get_db
from herbtrace.services.chain_service import ChainService
from herbtrace.services.collection_service import CollectionService

collection_bp = Blueprint("collection", __name__)


# ---------------------------------------------------------
# POST /collection
#   201 on first submission, 200 when clientEventId replays
# ---------------------------------------------------------
@collection_bp.post("/collection")
def record_collection_event():
    payload = CollectionEventCreateModel.model_validate(request.get_json(silent=True) or {})
    result = CollectionService.record_collection_event(get_db(), current_settings(), payload)
    created = result.pop("created")
    return jsonify(result), 201 if created else 200


# ---------------------------------------------------------
# GET /collection/<id>
# ---------------------------------------------------------
@collection_bp.get("/collection/<event_id>")
def get_collection_event(event_id: str):
    return jsonify(CollectionService.get_collection_event(get_db(), event_id))


# ---------------------------------------------------------
# GET /collection/<id>/verify
# ---------------------------------------------------------
@collection_bp.get("/collection/<event_id>/verify")
def verify_collection_event(event_id: str):
    return jsonify(ChainService.verify_collection_event(get_db(), event_id))


# ---------------------------------------------------------
# GET /collections?species=&collectorId=&from=&to=&page=&page_size=
# ---------------------------------------------------------
@collection_bp.get("/collections")
def list_collection_events():
    query = CollectionQueryModel.model_validate(request.args.to_dict())
    return jsonify(CollectionService.list_collection_events(get_db(), current_settings(), query))
