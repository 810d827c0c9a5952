# session_guard/core/interfaces/clock.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Instante atual em UTC, sem tzinfo (mesmo formato das colunas DateTime)."""
        ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(tz=timezone.utc).replace(tzinfo=None)


class FixedClock:
    """Relógio controlável para testes e jobs de manutenção."""

    def __init__(self, start: datetime) -> None:
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs: float) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now
