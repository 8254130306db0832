"""Flask app factory and blueprint registration.

Defines `create_app()` to initialize the Flask app, load configuration,
configure logging, enable CORS for the JSON endpoints, and register the
public, admin and api blueprints.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

# Load .env before Config reads the environment
load_dotenv()

from firmsite.config import Config, max_upload_bytes  # noqa: E402
from firmsite.routes.admin import admin_bp  # noqa: E402
from firmsite.routes.api import api_bp  # noqa: E402
from firmsite.routes.public import public_bp  # noqa: E402
from firmsite.services.site_service import load_site_info  # noqa: E402
from firmsite.utils.pagination import page_numbers  # noqa: E402
from firmsite.utils.text import format_date, html_to_text, truncate  # noqa: E402


def create_app(
    config_overrides: Optional[Mapping[str, Any]] = None,
    client_factory: Optional[Callable[[Optional[str]], Any]] = None,
) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)
    # Service forms carry up to MAX_IMAGES files plus base64 sub-service images
    if not app.config.get("MAX_CONTENT_LENGTH"):
        app.config["MAX_CONTENT_LENGTH"] = max_upload_bytes(app.config) * 16

    logging.basicConfig(
        level=getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # JSON endpoints are the only cross-origin surface
    CORS(
        app,
        resources={r"/api/*": {"origins": "*"}},
        supports_credentials=False,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "OPTIONS"],
    )

    # Blueprints
    app.register_blueprint(public_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(api_bp)

    if client_factory is not None:
        # Called with the session token in place of building a ContentApiClient
        app.extensions["content_client_factory"] = client_factory

    app.add_template_filter(format_date, "date")
    app.add_template_filter(html_to_text, "plaintext")
    app.add_template_filter(truncate, "truncate_text")

    @app.context_processor
    def inject_site_info():
        return {"site": load_site_info(), "page_numbers": page_numbers}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
