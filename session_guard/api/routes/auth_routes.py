import logging

from flask import Blueprint, jsonify, request

from session_guard.api.middlewares.auth_middleware import current_family_id, current_user_id, require_auth
from session_guard.api.schemas.session_schema import (
    ActiveSessionResponse,
    ActiveSessionsResponse,
    LogoutRequest,
    RefreshRequest,
    RevocationResponse,
    TokenPairResponse,
)
from session_guard.core.exceptions import (
    FamilyCompromisedError,
    InvalidCredentialError,
    TokenExpiredError,
    TokenReuseDetectedError,
)
from session_guard.entities.refresh_token import RotationContext, ValidationReason
from session_guard.infrastructure.database.session import db_session
from session_guard.infrastructure.security.jwt_provider import JwtProvider
from session_guard.services.refresh_token_service import build_refresh_token_service

logger = logging.getLogger(__name__)

bp_auth = Blueprint("auth", __name__, url_prefix="/auth")


def _client_ip() -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.remote_addr


@bp_auth.post("/refresh")
def refresh():
    payload = RefreshRequest.model_validate(request.get_json(force=True))
    context = RotationContext(
        device_info=payload.device_info,
        user_agent=request.headers.get("User-Agent"),
        ip_address=_client_ip(),
    )

    try:
        with db_session() as session:
            refresh_svc = build_refresh_token_service(session)
            result = refresh_svc.validate_and_rotate(refresh_token=payload.refresh_token, context=context)
    except InvalidCredentialError as e:
        logger.info("Refresh recusado: %s", e)
        raise TokenExpiredError() from e

    # a transação já foi confirmada: a revogação da família (reuso) não é desfeita pelo erro abaixo
    if not result.is_valid:
        logger.info("Refresh recusado: %s (família %s)", result.reason.value, result.family_id)
        if result.reason == ValidationReason.TOKEN_REUSE_DETECTED:
            raise TokenReuseDetectedError(family_id=result.family_id)
        if result.should_revoke_family:
            raise FamilyCompromisedError(family_id=result.family_id)
        raise TokenExpiredError()

    claims = result.identity_claims
    jwt_provider = JwtProvider()
    access = jwt_provider.issue_access_token(subject=claims.user_id, family_id=claims.family_id)

    body = TokenPairResponse(
        access_token=access,
        refresh_token=result.new_secret,
        expires_in=jwt_provider.access_token_ttl_seconds,
    )
    return jsonify(body.model_dump()), 200


@bp_auth.post("/logout")
@require_auth
def logout():
    payload = LogoutRequest.model_validate(request.get_json(silent=True) or {})
    user_id = current_user_id()

    with db_session() as session:
        refresh_svc = build_refresh_token_service(session)

        family_id = current_family_id()
        if family_id is None and payload.refresh_token:
            family_id = refresh_svc.family_of(refresh_token=payload.refresh_token, user_id=user_id)

        revoked = 0
        if family_id:
            revoked = refresh_svc.logout_family(user_id=user_id, family_id=family_id)
        else:
            logger.warning("Logout sem família identificável para o usuário %s", user_id)

    body = RevocationResponse(message="Sessão encerrada.", revoked_count=revoked)
    return jsonify(body.model_dump()), 200


@bp_auth.post("/logout-all")
@require_auth
def logout_all():
    user_id = current_user_id()

    with db_session() as session:
        revoked = build_refresh_token_service(session).logout_all(user_id=user_id)

    body = RevocationResponse(message="Sessões encerradas em todos os dispositivos.", revoked_count=revoked)
    return jsonify(body.model_dump()), 200


@bp_auth.get("/sessions")
@require_auth
def list_sessions():
    user_id = current_user_id()

    with db_session() as session:
        families = build_refresh_token_service(session).list_families(
            user_id=user_id,
            current_family_id=current_family_id(),
        )

    items = [
        ActiveSessionResponse(
            family_id=f.family_id,
            device_info=f.device_info,
            user_agent=f.user_agent,
            location=f.location,
            created_at=f.created_at,
            last_used_at=f.last_used_at,
            is_current=f.is_current,
        )
        for f in families
    ]
    body = ActiveSessionsResponse(items=items, total=len(items))
    return jsonify(body.model_dump()), 200


@bp_auth.delete("/sessions/<family_id>")
@require_auth
def revoke_session(family_id: str):
    user_id = current_user_id()

    with db_session() as session:
        revoked = build_refresh_token_service(session).revoke_session(
            user_id=user_id,
            family_id=family_id,
            current_family_id=current_family_id(),
        )

    body = RevocationResponse(message="Sessão revogada.", revoked_count=revoked)
    return jsonify(body.model_dump()), 200
