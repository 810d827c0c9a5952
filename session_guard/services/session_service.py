# session_guard/services/session_service.py
from __future__ import annotations

import logging
from datetime import datetime

from session_guard.core.audit.security_events import RevocationReason, SecurityEventType
from session_guard.core.interfaces.clock import Clock, SystemClock
from session_guard.entities.refresh_token import FamilyInfo
from session_guard.repositories.refresh_token_repository import RefreshTokenRepository
from session_guard.services.security_event_service import SecurityEventLogger

logger = logging.getLogger(__name__)

# ordem importa: "Android" contém "Linux", "Chrome" aparece em quase todo UA
_LOCATION_HINTS = (
    ("iPhone", "Mobile (iOS)"),
    ("iPad", "Tablet (iPadOS)"),
    ("Android", "Mobile (Android)"),
    ("Windows", "Desktop (Windows)"),
    ("Macintosh", "Desktop (macOS)"),
    ("Linux", "Desktop (Linux)"),
    ("Firefox", "Web Browser (Firefox)"),
    ("Chrome", "Web Browser (Chrome)"),
    ("Safari", "Web Browser (Safari)"),
)


def describe_location(user_agent: str | None) -> str | None:
    if not user_agent:
        return None
    for needle, label in _LOCATION_HINTS:
        if needle in user_agent:
            return label
    return "Unknown Device"


class SessionService:
    def __init__(
        self,
        *,
        repo: RefreshTokenRepository,
        events: SecurityEventLogger,
        clock: Clock | None = None,
    ) -> None:
        self._repo = repo
        self._events = events
        self._clock = clock or SystemClock()

    def is_expired(self, expires_at: datetime) -> bool:
        return self._clock.now() > expires_at

    def list_families(self, user_id: str, *, current_family_id: str | None = None) -> list[FamilyInfo]:
        active = self._repo.list_active_by_user(user_id, now=self._clock.now())

        # list_active_by_user vem do mais novo para o mais antigo: o primeiro de cada família é o atual
        newest = {}
        for token in active:
            newest.setdefault(token.family_id, token)

        started = self._repo.family_started_at(list(newest))

        families = [
            FamilyInfo(
                family_id=family_id,
                user_id=token.user_id,
                device_info=token.device_info,
                user_agent=token.user_agent,
                ip_hash=token.ip_hash,
                location=describe_location(token.user_agent),
                created_at=started.get(family_id, token.issued_at),
                last_used_at=token.issued_at,
                expires_at=token.expires_at,
                is_current=(family_id == current_family_id),
            )
            for family_id, token in newest.items()
        ]

        # sessão atual primeiro, depois a usada mais recentemente
        families.sort(key=lambda f: f.last_used_at, reverse=True)
        families.sort(key=lambda f: not f.is_current)
        return families

    def get_family(self, user_id: str, family_id: str) -> FamilyInfo | None:
        for family in self.list_families(user_id):
            if family.family_id == family_id:
                return family
        return None

    def sweep_expired(self) -> int:
        swept = self._repo.revoke_expired(now=self._clock.now(), reason=RevocationReason.EXPIRED)
        if swept > 0:
            logger.info("%d refresh tokens expirados marcados como revogados", swept)
            self._events.log_event(SecurityEventType.EXPIRED_TOKENS_SWEPT, swept_count=swept)
        return swept
