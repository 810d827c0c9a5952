# session_guard/api/routes/health_routes.py
from flask import Blueprint, jsonify
from sqlalchemy import func, select

from session_guard.config.settings import settings
from session_guard.infrastructure.database.models.refresh_token_model import RefreshTokenModel
from session_guard.infrastructure.database.session import db_session

bp_health = Blueprint("health", __name__, url_prefix="/health")


@bp_health.get("")
def health():
    return jsonify({"status": "ok", "rate_limit_backend": settings.rate_limit_backend}), 200


@bp_health.get("/db")
def health_db():
    # toca a tabela de tokens: confirma conexão e schema
    with db_session() as session:
        session.execute(select(func.count()).select_from(RefreshTokenModel).limit(1))
    return jsonify({"db": "ok"}), 200
