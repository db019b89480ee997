# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
from typing import Optional

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Settings
from .logging import setup_logging
from .routes import apply_security_headers, json_err
from .routes.exports import bp as exports_bp
from .routes.health import bp as health_bp
from .services.export import ExportService, LocalFileSystem


def create_app(
    settings: Optional[Settings] = None,
    export_service: Optional[ExportService] = None,
) -> Flask:
    """
    Application factory used by WSGI servers and `python -m flask`.

    - Configures logging from settings
    - Builds an ExportService writing into settings.EXPORT_DIR (unless given one)
    - Registers the /api/* blueprints and JSON error handlers
    """
    cfg = settings or Settings()  # pydantic-settings loads .env
    setup_logging(cfg.LOG_LEVEL, json=cfg.LOG_JSON)
    cfg.ensure_dirs()

    app = Flask(__name__, static_folder=None)

    # Honor reverse proxy headers (TLS offloading, load balancers)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    app.config["STORYFORGE_SETTINGS"] = cfg
    app.extensions["storyforge.exports"] = export_service or ExportService(
        LocalFileSystem(cfg.EXPORT_DIR)
    )

    app.register_blueprint(health_bp, url_prefix="/api/health")
    app.register_blueprint(exports_bp, url_prefix="/api/exports")

    # ----------------------
    # JSON error handlers
    # ----------------------
    @app.errorhandler(400)
    def bad_request(e):
        return json_err("bad_request", "Bad Request", status=400)

    @app.errorhandler(404)
    def not_found(e):
        return json_err("not_found", "Not Found", status=404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return json_err("method_not_allowed", "Method Not Allowed", status=405)

    @app.errorhandler(500)
    def server_error(e):
        logging.getLogger("storyforge.app").exception("Unhandled error")
        return json_err("internal_error", "Internal Server Error", status=500)

    @app.after_request
    def add_headers(resp):
        return apply_security_headers(resp)

    app.logger.info("App ready. EXPORT_DIR=%s", str(cfg.EXPORT_DIR))
    return app
