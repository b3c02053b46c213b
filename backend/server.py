"""
Flask application entry point for the asset trail backend.

Registers the asset lifecycle and history routes.
"""

import logging

from flask import Flask

from assettrail.config import config
from assettrail.api import assets_bp
from assettrail.db.postgres import close_db_session, rollback_session


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(init_database: bool = False):
    """Create and configure Flask app."""
    configure_logging()
    app = Flask(__name__)

    # Load config
    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.config["DEBUG"] = config.DEBUG

    # SQL sessions are only involved when the SQL store is configured
    uses_sql = config.ENTITY_STORE == "postgres"

    # Ensure clean session state at the start of each request
    @app.before_request
    def ensure_clean_session():
        if uses_sql:
            rollback_session()

    # Clean up database session at the end of each request
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        if uses_sql:
            close_db_session(exception)

    app.register_blueprint(assets_bp)  # /api/v1/assets/*, /api/v1/users/*

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok", "entity_store": config.ENTITY_STORE}

    # Initialize database tables if requested (development only)
    if init_database and uses_sql:
        with app.app_context():
            from assettrail.db.postgres import init_db
            init_db()
            print("[AssetTrail] Database tables initialized")

    return app


if __name__ == "__main__":
    app = create_app(init_database=False)
    print(f"[AssetTrail] Starting server on port 5001...")
    print(f"[AssetTrail] Entity store: {config.ENTITY_STORE}")
    print(f"[AssetTrail] Debug mode: {config.DEBUG}")
    print(f"[AssetTrail] Routes:")
    print(f"  - /api/v1/assets/* (Asset lifecycle and history)")
    print(f"  - /api/v1/users/<id>/assets (Assets held by a user)")
    print(f"  - /health (Health check)")
    app.run(debug=config.DEBUG, port=5001)
