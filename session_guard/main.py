# session_guard/main.py
from __future__ import annotations

from flask import Flask

from session_guard.api.middlewares.error_handler import register_error_handlers
from session_guard.api.routes import register_routes
from session_guard.cli.maintenance_commands import register_cli
from session_guard.config.flask_config import configure_app
from session_guard.config.logging_config import setup_logging
from session_guard.config.settings import settings

import session_guard.infrastructure.database.models  # noqa: F401


def create_app() -> Flask:
    setup_logging(settings.log_level)

    app = Flask(__name__)
    configure_app(app)

    register_routes(app, api_prefix=settings.api_prefix.rstrip("/"))
    register_error_handlers(app)
    register_cli(app)

    return app


if __name__ == "__main__":
    # em produção: gunicorn "session_guard.main:create_app()"
    create_app().run(host="0.0.0.0", port=5000, debug=settings.debug)
