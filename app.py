# app.py (gunicorn: `gunicorn app:app`)

from flask import Flask
from flask_cors import CORS

from herbtrace.app_config import load_config
from herbtrace.errors import register_error_handlers
from herbtrace.mongo import init_mongo
from herbtrace.register_blueprints import register_all_blueprints


def create_app(config_overrides=None, db=None):
    app = Flask(__name__)

    # -------------------------
    # Config
    # -------------------------
    load_config(app, config_overrides)

    CORS(app, resources={r"/*": {"origins": "*"}})

    # -------------------------
    # Mongo
    # -------------------------
    init_mongo(app, db=db)

    # -------------------------
    # Errors & blueprints
    # -------------------------
    register_error_handlers(app)
    register_all_blueprints(app)

    return app


app = create_app()


# Local run only
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
