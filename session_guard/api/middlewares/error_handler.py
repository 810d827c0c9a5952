# session_guard/api/middlewares/error_handler.py
import logging

from flask import Flask, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from session_guard.core.exceptions import AppError, RateLimitedError
from session_guard.config.settings import settings

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(RateLimitedError)
    def handle_rate_limited(err: RateLimitedError):
        response = jsonify({"error": str(err), "retry_after": err.retry_after})
        response.headers["Retry-After"] = str(err.retry_after)
        return response, err.status_code

    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if err.status_code >= 500:
            logger.error("Erro de aplicação: %s", err)
        return jsonify({"error": str(err)}), err.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return jsonify({"error": "Payload inválido.", "details": err.errors(include_url=False, include_context=False)}), 422

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return jsonify({"error": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        logger.exception("Erro inesperado")

        if settings.debug:
            return jsonify({"error": str(err)}), 500

        return jsonify({"error": "Internal server error"}), 500
