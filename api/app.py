"""Flask application factory."""

from __future__ import annotations

from flask import Flask, jsonify
from flask_cors import CORS

from api.routes import api_bp
from config import settings


def create_app() -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.flask_secret_key

    # CORS for the form front-end dev server
    CORS(app, origins=settings.cors_origins)

    app.register_blueprint(api_bp)

    @app.route("/api/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    # --- Error handlers ---

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    return app
