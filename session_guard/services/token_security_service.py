# session_guard/services/token_security_service.py
from __future__ import annotations

import logging
import math
from datetime import timezone

from session_guard.config.settings import settings
from session_guard.core.audit.security_events import SecurityEventType
from session_guard.core.exceptions import RateLimitedError
from session_guard.core.interfaces.clock import Clock, SystemClock
from session_guard.core.interfaces.counter_store import CounterStore
from session_guard.infrastructure.security.token_hasher import TokenHasher
from session_guard.repositories.refresh_token_repository import RefreshTokenRepository
from session_guard.services.security_event_service import SecurityEventLogger

logger = logging.getLogger(__name__)


class TokenSecurityService:
    def __init__(
        self,
        *,
        repo: RefreshTokenRepository,
        counter_store: CounterStore,
        events: SecurityEventLogger,
        clock: Clock | None = None,
        max_attempts: int | None = None,
        window_seconds: int | None = None,
    ) -> None:
        self._repo = repo
        self._counters = counter_store
        self._events = events
        self._clock = clock or SystemClock()
        self._max_attempts = max_attempts or settings.rotation_rate_limit
        self._window_seconds = window_seconds or settings.rotation_rate_window_seconds

    def detect_reuse(self, token_hash: str) -> bool:
        stored = self._repo.get_by_hash(token_hash)
        if stored is None:
            # ausência de registro é "não encontrado", não indício de ataque
            return False

        if stored.is_revoked():
            logger.error(
                "Reuso de token detectado: %s (família %s)",
                TokenHasher.prefix(token_hash),
                stored.family_id,
            )
            return True
        return False

    def check_rate_limit(self, key: str, operation: str) -> None:
        window = self._counters.increment(f"{key}:{operation}", window_seconds=self._window_seconds)
        if window.count <= self._max_attempts:
            return

        now_ts = self._clock.now().replace(tzinfo=timezone.utc).timestamp()
        retry_after = max(1, math.ceil(window.reset_at - now_ts))

        logger.warning("Rate limit de %s excedido para %s (%d tentativas)", operation, key, window.count)
        self._events.log_event(
            SecurityEventType.ROTATION_RATE_LIMITED,
            family_id=key,
            operation=operation,
            attempts=window.count,
            retry_after=retry_after,
        )
        raise RateLimitedError(key, retry_after)

    def cleanup_counters(self) -> int:
        try:
            return self._counters.cleanup()
        except Exception:
            logger.exception("Falha ao limpar contadores de rate limit")
            return 0
