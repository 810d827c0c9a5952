# session_guard/services/security_event_service.py
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from session_guard.config.logging_config import SECURITY_LOGGER_NAME
from session_guard.core.interfaces.clock import Clock, SystemClock

logger = logging.getLogger(__name__)
security_logger = logging.getLogger(SECURITY_LOGGER_NAME)

HASH_PREFIX_LENGTH = 16


@dataclass(frozen=True)
class SecurityEvent:
    event_type: str
    timestamp: str
    family_id: str | None = None
    user_id: str | None = None
    credential_hash_prefix: str | None = None
    context: dict[str, Any] = field(default_factory=dict)


def _level_for(event_type: str) -> int:
    if "CRITICAL" in event_type or "REUSE" in event_type:
        return logging.ERROR
    if "REVOKED" in event_type or "LIMIT" in event_type:
        return logging.WARNING
    return logging.INFO


class SecurityEventLogger:
    """Trilha de auditoria append-only. Nunca participa de decisão de autorização."""

    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()

    def log_event(
        self,
        event_type: str,
        *,
        family_id: str | None = None,
        user_id: str | None = None,
        token_hash: str | None = None,
        **context: Any,
    ) -> SecurityEvent | None:
        # best-effort: falha ao registrar evento nunca derruba a operação principal
        try:
            event = SecurityEvent(
                event_type=event_type,
                timestamp=self._clock.now().isoformat(),
                family_id=family_id,
                user_id=user_id,
                credential_hash_prefix=(
                    f"{token_hash[:HASH_PREFIX_LENGTH]}..." if token_hash else None
                ),
                context=context,
            )
            security_logger.log(
                _level_for(event_type),
                "SECURITY EVENT: %s",
                event_type,
                extra={"security_event": asdict(event)},
            )
            return event
        except Exception:
            logger.exception("Falha ao registrar evento de segurança %s", event_type)
            return None
