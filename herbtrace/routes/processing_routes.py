# herbtrace/routes/processing_routes.py

from flask import Blueprint, jsonify, request

from herbtrace.app_config import current_settings
from herbtrace.models.processing_models import ProcessingStepCreateModel
from herbtrace.mongo import get_db
from herbtrace.services.processing_service import ProcessingService

processing_bp = Blueprint("processing", __name__)


# ----------------- POST /processing -----------------
@processing_bp.post("/processing")
def record_processing_step():
    payload = ProcessingStepCreateModel.model_validate(request.get_json(silent=True) or {})
    result = ProcessingService.record_processing_step(get_db(), current_settings(), payload)
    return jsonify(result), 201
