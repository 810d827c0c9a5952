# session_guard/services/token_rotation_service.py
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from session_guard.core.audit.security_events import RevocationReason
from session_guard.core.exceptions import InvalidCredentialError, RotationConflictError, RotationFailedError
from session_guard.core.interfaces.clock import Clock, SystemClock
from session_guard.entities.refresh_token import (
    IdentityClaims,
    OldTokenSummary,
    RotationContext,
    RotationResult,
    TokenValidationResult,
    ValidationReason,
)
from session_guard.infrastructure.database.models.refresh_token_model import RefreshTokenModel
from session_guard.infrastructure.security.token_hasher import TokenHasher
from session_guard.repositories.refresh_token_repository import RefreshTokenRepository
from session_guard.services.credential_issuer import CredentialIssuer
from session_guard.services.token_revocation_service import TokenRevocationService
from session_guard.services.token_security_service import TokenSecurityService

logger = logging.getLogger(__name__)

ROTATION_OPERATION = "rotation"


class TokenRotationService:
    """
    Núcleo de rotação.

    `rotate` roda dentro da transação de quem chama (db_session): o update condicional do token
    antigo e o insert do sucessor são confirmados ou desfeitos juntos.
    """

    def __init__(
        self,
        *,
        repo: RefreshTokenRepository,
        issuer: CredentialIssuer,
        security: TokenSecurityService,
        revocation: TokenRevocationService,
        clock: Clock | None = None,
    ) -> None:
        self._repo = repo
        self._issuer = issuer
        self._security = security
        self._revocation = revocation
        self._clock = clock or SystemClock()

    def rotate(self, old_token_hash: str, context: RotationContext | None = None) -> RotationResult:
        if not TokenHasher.is_well_formed_hash(old_token_hash):
            raise InvalidCredentialError("Refresh token malformado.")

        short = TokenHasher.prefix(old_token_hash)
        logger.debug("Iniciando rotação de %s", short)

        try:
            stored = self._repo.get_by_hash(old_token_hash)
        except SQLAlchemyError as e:
            logger.exception("Falha ao ler token %s", short)
            raise RotationFailedError() from e

        if stored is None:
            logger.warning("Rotação de token inexistente: %s", short)
            raise InvalidCredentialError("Refresh token não encontrado.")

        if stored.is_revoked():
            logger.warning("Rotação de token revogado: %s", short)
            raise InvalidCredentialError("Refresh token revogado.")

        now = self._clock.now()
        if stored.is_expired(now):
            logger.warning("Rotação de token expirado: %s", short)
            raise InvalidCredentialError("Refresh token expirado.")

        ctx = context or RotationContext()
        ip_hash = TokenHasher.hash_ip(ctx.ip_address) if ctx.ip_address else stored.ip_hash

        model, credential = self._issuer.mint(
            user_id=stored.user_id,
            family_id=stored.family_id,
            device_info=ctx.device_info or stored.device_info,
            user_agent=ctx.user_agent or stored.user_agent,
            ip_hash=ip_hash,
        )

        try:
            won = self._repo.revoke_if_active(
                token_hash=old_token_hash,
                now=now,
                reason=RevocationReason.ROTATED,
                replaced_by=credential.token_hash,
            )
            if not won:
                # outra requisição já consumiu este token: nada de bifurcar a família
                logger.warning("Rotação concorrente perdida para %s (família %s)", short, stored.family_id)
                raise RotationConflictError(stored.family_id)

            self._repo.add(model)
        except SQLAlchemyError as e:
            logger.exception("Falha de storage ao rotacionar %s", short)
            raise RotationFailedError() from e

        logger.debug("Token %s rotacionado na família %s", short, stored.family_id)

        return RotationResult(
            old=OldTokenSummary(
                jti=stored.jti,
                family_id=stored.family_id,
                user_id=stored.user_id,
                revoked=True,
            ),
            new=credential,
        )

    def validate_and_rotate(
        self,
        presented_secret: str,
        context: RotationContext | None = None,
    ) -> TokenValidationResult:
        if not presented_secret or not presented_secret.strip():
            raise InvalidCredentialError("Refresh token ausente.")

        token_hash = TokenHasher.hash_token(presented_secret.strip())

        # 1) reuso vem antes do rate limit: quem ataca não pode gastar a cota para fugir da detecção
        if self._security.detect_reuse(token_hash):
            stored = self._repo.get_by_hash(token_hash)
            return self._reject_revoked(stored, token_hash)

        # 2) inexistente
        stored = self._repo.get_by_hash(token_hash)
        if stored is None:
            logger.warning("Validação falhou: token não encontrado")
            raise InvalidCredentialError("Refresh token não encontrado.")

        # 3) expirado: não é sinal de ataque, a família fica intacta
        if stored.is_expired(self._clock.now()):
            logger.info("Validação falhou: token expirado (família %s)", stored.family_id)
            return TokenValidationResult(
                is_valid=False,
                reason=ValidationReason.TOKEN_EXPIRED,
                family_id=stored.family_id,
            )

        # 4) rate limit por família
        self._security.check_rate_limit(stored.family_id, ROTATION_OPERATION)

        # 5) rotação
        try:
            rotation = self.rotate(token_hash, context)
        except RotationConflictError as e:
            self._revocation.handle_reuse(e.family_id, token_hash, "CONCURRENT_ROTATION")
            return TokenValidationResult(
                is_valid=False,
                reason=ValidationReason.TOKEN_REUSE_DETECTED,
                should_revoke_family=True,
                family_id=e.family_id,
            )

        new = rotation.new
        return TokenValidationResult(
            is_valid=True,
            reason=ValidationReason.VALID_AND_ROTATED,
            family_id=new.family_id,
            identity_claims=IdentityClaims(
                user_id=new.user_id,
                family_id=new.family_id,
                jti=new.jti,
                issued_at=new.issued_at,
                expires_at=new.expires_at,
            ),
            rotation=rotation,
        )

    def _reject_revoked(self, stored: RefreshTokenModel, token_hash: str) -> TokenValidationResult:
        if stored.reason == RevocationReason.EXPIRED:
            # varrido pelo sweep: continua sendo só expiração
            return TokenValidationResult(
                is_valid=False,
                reason=ValidationReason.TOKEN_EXPIRED,
                family_id=stored.family_id,
            )

        if stored.reason == RevocationReason.ROTATED:
            reason = ValidationReason.TOKEN_REUSE_DETECTED
            context = "ROTATED_TOKEN_PRESENTED"
        else:
            reason = ValidationReason.TOKEN_REVOKED
            context = "VALIDATION_OF_REVOKED_TOKEN"

        logger.error("Token revogado apresentado (família %s, motivo %s)", stored.family_id, stored.reason)
        self._revocation.handle_reuse(stored.family_id, token_hash, context)

        return TokenValidationResult(
            is_valid=False,
            reason=reason,
            should_revoke_family=True,
            family_id=stored.family_id,
        )
