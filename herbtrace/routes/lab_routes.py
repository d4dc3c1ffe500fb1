# herbtrace/routes/lab_routes.py

from flask import Blueprint, jsonify, request

from herbtrace.app_config import current_settings
from herbtrace.models.lab_models import LabTestCreateModel
from herbtrace.models.query_models import LabTestQueryModel
from herbtrace.mongo import get_db
from herbtrace.services.lab_service import LabService

lab_bp = Blueprint("lab", __name__)


# ---------------------------------------------------------
# POST /labtest
# ---------------------------------------------------------
@lab_bp.post("/labtest")
def record_lab_test():
    payload = LabTestCreateModel.model_validate(request.get_json(silent=True) or {})
    result = LabService.record_lab_test(get_db(), current_settings(), payload)
    return jsonify(result), 201


# ---------------------------------------------------------
# GET /labtests?batch_id=&page=&page_size=
# ---------------------------------------------------------
@lab_bp.get("/labtests")
def list_lab_tests():
    query = LabTestQueryModel.model_validate(request.args.to_dict())
    return jsonify(
        LabService.list_lab_tests(
            get_db(),
            current_settings(),
            batch_id=query.batch_id,
            page=query.page,
            page_size=query.page_size,
        )
    )
