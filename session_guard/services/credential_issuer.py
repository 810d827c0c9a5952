# session_guard/services/credential_issuer.py
from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

from session_guard.config.settings import settings
from session_guard.core.interfaces.clock import Clock, SystemClock
from session_guard.entities.refresh_token import NewCredential
from session_guard.infrastructure.database.models.refresh_token_model import RefreshTokenModel
from session_guard.infrastructure.security.token_hasher import TokenHasher


METADATA_MAX_LENGTH = 255


def _clip(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value[:METADATA_MAX_LENGTH] or None


class CredentialIssuer:
    """Gera segredo opaco + linha ativa. Não persiste; quem chama decide a transação."""

    def __init__(self, *, clock: Clock | None = None, ttl_seconds: int | None = None) -> None:
        self._clock = clock or SystemClock()
        self._ttl = timedelta(seconds=ttl_seconds or settings.refresh_token_ttl_seconds)

    @staticmethod
    def new_family_id() -> str:
        return str(uuid4())

    def mint(
        self,
        *,
        user_id: str,
        family_id: str,
        device_info: str | None = None,
        user_agent: str | None = None,
        ip_hash: str | None = None,
    ) -> tuple[RefreshTokenModel, NewCredential]:
        secret = TokenHasher.generate_opaque_secret()
        token_hash = TokenHasher.hash_token(secret)
        now = self._clock.now()

        model = RefreshTokenModel(
            user_id=user_id,
            family_id=family_id,
            token_hash=token_hash,
            jti=uuid4().hex,
            device_info=_clip(device_info),
            user_agent=_clip(user_agent),
            ip_hash=ip_hash,
            issued_at=now,
            expires_at=now + self._ttl,
            revoked_at=None,
            reason=None,
            replaced_by=None,
        )
        credential = NewCredential(
            secret=secret,
            token_hash=token_hash,
            jti=model.jti,
            family_id=family_id,
            user_id=user_id,
            issued_at=model.issued_at,
            expires_at=model.expires_at,
        )
        return model, credential
