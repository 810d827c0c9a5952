from flask import Flask

from session_guard.config.settings import settings

# refresh/logout só recebem um token e metadados curtos
MAX_REQUEST_BYTES = 16 * 1024


def configure_app(app: Flask) -> None:
    app.config["ENV"] = settings.environment
    app.config["DEBUG"] = settings.debug
    app.config["MAX_CONTENT_LENGTH"] = MAX_REQUEST_BYTES
    app.json.sort_keys = False
