# herbtrace/routes/batch_routes.py

from flask import Blueprint, jsonify, request

from herbtrace.mongo import get_db
from herbtrace.services.batch_service import BatchService

batch_bp = Blueprint("batches", __name__, url_prefix="/batches")


# ---------------------------------------------------------
# GET /batches?species=&status=
# ---------------------------------------------------------
@batch_bp.get("")
def list_batches():
    return jsonify(
        BatchService.list_batches(
            get_db(),
            species=request.args.get("species"),
            status=request.args.get("status"),
        )
    )


# ---------------------------------------------------------
# GET /batches/<id>
# ---------------------------------------------------------
@batch_bp.get("/<batch_id>")
def get_batch(batch_id: str):
    return jsonify(BatchService.get_batch(get_db(), batch_id))
