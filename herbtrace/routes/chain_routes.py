# herbtrace/routes/chain_routes.py
# Anchoring integrator API: list by status, report status/hash back.

from flask import Blueprint, jsonify, request

from herbtrace.app_config import current_settings
from herbtrace.models.chain_models import ChainUpdateModel
from herbtrace.models.query_models import ChainQueryModel
from herbtrace.mongo import get_db
from herbtrace.services.chain_service import ChainService

chain_bp = Blueprint("chain", __name__)


def _list(kind: str):
    query = ChainQueryModel.model_validate(request.args.to_dict())
    return jsonify(
        ChainService.list_by_status(
            get_db(),
            current_settings(),
            kind,
            status=query.status,
            page=query.page,
            page_size=query.page_size,
        )
    )


def _update(kind: str, entity_id: str):
    body = ChainUpdateModel.model_validate(request.get_json(silent=True) or {})
    return jsonify(ChainService.set_external_status(get_db(), kind, entity_id, body.status, body.hash))


# ----------------------------------------------------
# LISTINGS
# ----------------------------------------------------
@chain_bp.get("/collections/chain")
def list_collection_events_by_status():
    return _list("collection_event")


@chain_bp.get("/processing/chain")
def list_processing_steps_by_status():
    return _list("processing_step")


@chain_bp.get("/labtests/chain")
def list_lab_tests_by_status():
    return _list("lab_test")


@chain_bp.get("/batches/chain")
def list_batches_by_chain_status():
    return _list("batch")


# ----------------------------------------------------
# STATUS / HASH UPDATES
# ----------------------------------------------------
@chain_bp.patch("/collection/<entity_id>/blockchain")
def update_collection_event_chain(entity_id: str):
    return _update("collection_event", entity_id)


@chain_bp.patch("/processing/<entity_id>/blockchain")
def update_processing_step_chain(entity_id: str):
    return _update("processing_step", entity_id)


@chain_bp.patch("/labtest/<entity_id>/blockchain")
def update_lab_test_chain(entity_id: str):
    return _update("lab_test", entity_id)


# :id must be the full batch id, e.g. B-WITHA-20250916-farmer-123
@chain_bp.patch("/batches/<entity_id>/chain-status")
def update_batch_chain_status(entity_id: str):
    return _update("batch", entity_id)
