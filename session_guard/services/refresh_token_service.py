# session_guard/services/refresh_token_service.py

import logging

from sqlalchemy.orm import Session

from session_guard.core.audit.security_events import RevocationReason
from session_guard.core.exceptions import ForbiddenError, NotFoundError
from session_guard.core.interfaces.clock import Clock, SystemClock
from session_guard.core.interfaces.counter_store import CounterStore
from session_guard.entities.refresh_token import (
    FamilyInfo,
    NewFamily,
    RotationContext,
    TokenValidationResult,
)
from session_guard.infrastructure.rate_limit import get_counter_store
from session_guard.infrastructure.security.token_hasher import TokenHasher
from session_guard.repositories.refresh_token_repository import RefreshTokenRepository
from session_guard.services.credential_issuer import CredentialIssuer
from session_guard.services.security_event_service import SecurityEventLogger
from session_guard.services.session_service import SessionService
from session_guard.services.token_revocation_service import TokenRevocationService
from session_guard.services.token_rotation_service import TokenRotationService
from session_guard.services.token_security_service import TokenSecurityService

logger = logging.getLogger(__name__)


class RefreshTokenService:
    def __init__(
        self,
        *,
        repo: RefreshTokenRepository,
        rotation: TokenRotationService,
        revocation: TokenRevocationService,
        sessions: SessionService,
        security: TokenSecurityService,
    ) -> None:
        self._repo = repo
        self._rotation = rotation
        self._revocation = revocation
        self._sessions = sessions
        self._security = security

    # -------------------------
    # Operações expostas
    # -------------------------

    def create_family(
        self,
        *,
        user_id: str,
        device_info: str | None = None,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> NewFamily:
        return self._revocation.create_family(user_id, device_info, user_agent, ip_address)

    def validate_and_rotate(
        self,
        *,
        refresh_token: str,
        context: RotationContext | None = None,
    ) -> TokenValidationResult:
        return self._rotation.validate_and_rotate(refresh_token, context)

    def revoke_family(self, *, family_id: str, reason: str) -> int:
        return self._revocation.revoke_family(family_id, reason)

    def revoke_user(self, *, user_id: str, reason: str) -> int:
        return self._revocation.revoke_user(user_id, reason)

    def list_families(self, *, user_id: str, current_family_id: str | None = None) -> list[FamilyInfo]:
        return self._sessions.list_families(user_id, current_family_id=current_family_id)

    def sweep_expired(self) -> int:
        return self._sessions.sweep_expired()

    def cleanup_rate_limits(self) -> int:
        return self._security.cleanup_counters()

    # -------------------------
    # Fluxos de conta
    # -------------------------

    def family_of(self, *, refresh_token: str, user_id: str) -> str | None:
        """Família do refresh informado, se ele pertencer ao usuário (qualquer estado)."""
        stored = self._repo.get_by_hash(TokenHasher.hash_token(refresh_token))
        if stored is None or stored.user_id != user_id:
            return None
        return stored.family_id

    def logout_family(self, *, user_id: str, family_id: str) -> int:
        owner = self._repo.get_family_owner(family_id)
        if owner is None:
            return 0
        if owner != user_id:
            raise ForbiddenError("Sessão não pertence ao usuário.")
        return self._revocation.revoke_family(family_id, RevocationReason.USER_LOGOUT)

    def logout_all(self, *, user_id: str) -> int:
        return self._revocation.revoke_user(user_id, RevocationReason.USER_LOGOUT_ALL)

    def revoke_session(self, *, user_id: str, family_id: str, current_family_id: str | None) -> int:
        if current_family_id and family_id == current_family_id:
            raise ForbiddenError("Não é possível revogar a sessão atual. Use o logout.")

        if self._sessions.get_family(user_id, family_id) is None:
            logger.warning("Usuário %s tentou revogar sessão inexistente/alheia %s", user_id, family_id)
            raise NotFoundError("Sessão não encontrada.")

        return self._revocation.revoke_family(family_id, RevocationReason.USER_REVOCATION)

    def revoke_user_best_effort(self, *, user_id: str, reason: str = RevocationReason.PASSWORD_RESET) -> int | None:
        """Para fluxos (ex.: reset de senha) em que a ação principal não pode falhar por causa da revogação."""
        try:
            return self._revocation.revoke_user(user_id, reason)
        except Exception:
            logger.critical(
                "NÃO foi possível revogar os refresh tokens do usuário %s (motivo %s); sessões antigas seguem válidas",
                user_id,
                reason,
                exc_info=True,
            )
            return None


def build_refresh_token_service(
    session: Session,
    *,
    clock: Clock | None = None,
    counter_store: CounterStore | None = None,
) -> RefreshTokenService:
    clock = clock or SystemClock()
    repo = RefreshTokenRepository(session)
    events = SecurityEventLogger(clock=clock)
    issuer = CredentialIssuer(clock=clock)

    security = TokenSecurityService(
        repo=repo,
        counter_store=counter_store or get_counter_store(),
        events=events,
        clock=clock,
    )
    revocation = TokenRevocationService(repo=repo, issuer=issuer, events=events, clock=clock)
    sessions = SessionService(repo=repo, events=events, clock=clock)
    rotation = TokenRotationService(
        repo=repo,
        issuer=issuer,
        security=security,
        revocation=revocation,
        clock=clock,
    )
    return RefreshTokenService(
        repo=repo,
        rotation=rotation,
        revocation=revocation,
        sessions=sessions,
        security=security,
    )
