# herbtrace/routes/root_routes.py

from flask import Blueprint, jsonify

root_bp = Blueprint("root", __name__)


@root_bp.get("/healthz")
def healthz():
    return jsonify({"ok": True})
