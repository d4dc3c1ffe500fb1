"""
Centralized Blueprint Registration
All blueprints MUST be registered inside register_all_blueprints(app)
"""


def register_all_blueprints(app):

    # Root
    from herbtrace.routes.root_routes import root_bp
    app.register_blueprint(root_bp)

    # Reference data
    from herbtrace.routes.species_routes import species_bp
    app.register_blueprint(species_bp)

    # Field, processor and lab writes
    from herbtrace.routes.collection_routes import collection_bp
    from herbtrace.routes.processing_routes import processing_bp
    from herbtrace.routes.lab_routes import lab_bp
    app.register_blueprint(collection_bp)
    app.register_blueprint(processing_bp)
    app.register_blueprint(lab_bp)

    # Batches (chain routes share the /batches prefix)
    from herbtrace.routes.chain_routes import chain_bp
    from herbtrace.routes.batch_routes import batch_bp
    app.register_blueprint(chain_bp)
    app.register_blueprint(batch_bp)

    # Public provenance
    from herbtrace.routes.provenance_routes import provenance_bp
    app.register_blueprint(provenance_bp)

    app.logger.info("All blueprints registered")
