"""
Flask app for the control surface.

Served by the `control` module (python main.py control); the JSON API lives
in the api_run and api_settings blueprints.
"""

import logging

from flask import Flask

from control.api_run import run_bp
from control.api_settings import settings_bp


class _QuietRequestLogFilter(logging.Filter):
    """Suppress Werkzeug request logs for the status endpoint polled by clients."""

    _QUIET_PATHS = ("/api/run/status",)

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        return not any(path in msg for path in self._QUIET_PATHS)


def create_app() -> Flask:
    """Build the control app with its blueprints registered."""
    app = Flask(__name__)
    app.register_blueprint(run_bp)
    app.register_blueprint(settings_bp)

    @app.route("/api/health", methods=["GET"])
    def health() -> dict:
        return {"ok": True}

    logging.getLogger("werkzeug").addFilter(_QuietRequestLogFilter())
    return app
