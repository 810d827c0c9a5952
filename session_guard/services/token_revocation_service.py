# session_guard/services/token_revocation_service.py
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from session_guard.config.settings import settings
from session_guard.core.audit.security_events import RevocationReason, SecurityEventType
from session_guard.core.exceptions import FamilyLimitExceededError, RotationFailedError
from session_guard.core.interfaces.clock import Clock, SystemClock
from session_guard.entities.refresh_token import FamilyInfo, NewFamily
from session_guard.infrastructure.security.token_hasher import TokenHasher
from session_guard.repositories.refresh_token_repository import RefreshTokenRepository
from session_guard.services.credential_issuer import CredentialIssuer
from session_guard.services.security_event_service import SecurityEventLogger
from session_guard.services.session_service import describe_location

logger = logging.getLogger(__name__)


class TokenRevocationService:
    def __init__(
        self,
        *,
        repo: RefreshTokenRepository,
        issuer: CredentialIssuer,
        events: SecurityEventLogger,
        clock: Clock | None = None,
        max_families_per_user: int | None = None,
    ) -> None:
        self._repo = repo
        self._issuer = issuer
        self._events = events
        self._clock = clock or SystemClock()
        self._max_families = max_families_per_user or settings.max_families_per_user

    def revoke_family(self, family_id: str, reason: str) -> int:
        logger.warning("Revogando família %s (motivo: %s)", family_id, reason)

        try:
            revoked = self._repo.revoke_active_by_family(family_id, now=self._clock.now(), reason=reason)
            owner = self._repo.get_family_owner(family_id) if revoked else None
        except SQLAlchemyError as e:
            logger.exception("Falha ao revogar família %s", family_id)
            raise RotationFailedError("Falha ao revogar os tokens da família.") from e

        if revoked > 0:
            self._events.log_event(
                SecurityEventType.FAMILY_TOKENS_REVOKED,
                family_id=family_id,
                user_id=owner,
                reason=reason,
                revoked_count=revoked,
            )
        return revoked

    def revoke_user(self, user_id: str, reason: str) -> int:
        logger.warning("Revogando todos os tokens do usuário %s (motivo: %s)", user_id, reason)

        try:
            revoked = self._repo.revoke_active_by_user(user_id, now=self._clock.now(), reason=reason)
        except SQLAlchemyError as e:
            logger.exception("Falha ao revogar tokens do usuário %s", user_id)
            raise RotationFailedError("Falha ao revogar os tokens do usuário.") from e

        if revoked > 0:
            self._events.log_event(
                SecurityEventType.USER_TOKENS_REVOKED,
                user_id=user_id,
                reason=reason,
                revoked_count=revoked,
            )
        return revoked

    def create_family(
        self,
        user_id: str,
        device_info: str | None = None,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> NewFamily:
        """
        Abre uma família nova respeitando o limite por usuário.

        Se o limite estourar depois do insert (login concorrente), a exceção sobe com a linha
        ainda na sessão: a transação de quem chama (db_session) precisa ser desfeita.
        """
        now = self._clock.now()
        self._repo.lock_user_families(user_id)

        current = self._repo.count_active_families(user_id, now=now)
        if current >= self._max_families:
            raise self._limit_exceeded(user_id, current)

        family_id = self._issuer.new_family_id()
        ip_hash = TokenHasher.hash_ip(ip_address) if ip_address else None

        model, credential = self._issuer.mint(
            user_id=user_id,
            family_id=family_id,
            device_info=device_info,
            user_agent=user_agent,
            ip_hash=ip_hash,
        )
        try:
            self._repo.add(model)
            # recontagem dentro da transação: outro login pode ter passado pela checagem junto
            after = self._repo.count_active_families(user_id, now=now)
        except SQLAlchemyError as e:
            logger.exception("Falha ao criar família para %s", user_id)
            raise RotationFailedError("Falha ao criar a sessão.") from e

        if after > self._max_families:
            raise self._limit_exceeded(user_id, after - 1)

        logger.debug("Família %s criada para %s", family_id, user_id)
        self._events.log_event(
            SecurityEventType.FAMILY_CREATED,
            family_id=family_id,
            user_id=user_id,
            device_info=model.device_info,
        )

        family = FamilyInfo(
            family_id=family_id,
            user_id=user_id,
            device_info=model.device_info,
            user_agent=model.user_agent,
            ip_hash=ip_hash,
            location=describe_location(model.user_agent),
            created_at=model.issued_at,
            last_used_at=model.issued_at,
            expires_at=model.expires_at,
        )
        return NewFamily(family=family, credential=credential)

    def _limit_exceeded(self, user_id: str, current: int) -> FamilyLimitExceededError:
        logger.warning("Limite de famílias atingido para %s: %d/%d", user_id, current, self._max_families)
        self._events.log_event(
            SecurityEventType.FAMILY_LIMIT_EXCEEDED,
            user_id=user_id,
            current_count=current,
            max_allowed=self._max_families,
        )
        return FamilyLimitExceededError(user_id, current, self._max_families)

    def handle_reuse(self, family_id: str, token_hash: str, context: str) -> int | None:
        logger.error("Tratando reuso de token - família %s, contexto %s", family_id, context)

        revoked: int | None = None
        try:
            revoked = self.revoke_family(family_id, RevocationReason.reuse_detected(context))
        except Exception:
            # a resposta negativa já foi decidida; aqui só registramos
            logger.exception("Falha ao revogar família %s após reuso", family_id)

        self._events.log_event(
            SecurityEventType.CRITICAL_TOKEN_REUSE,
            family_id=family_id,
            token_hash=token_hash,
            context=context,
            revoked_tokens=revoked,
        )
        return revoked
