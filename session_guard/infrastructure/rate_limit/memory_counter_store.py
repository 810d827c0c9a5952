# session_guard/infrastructure/rate_limit/memory_counter_store.py
from __future__ import annotations

import logging
import random
import threading
from datetime import timezone

from session_guard.core.interfaces.clock import Clock, SystemClock
from session_guard.core.interfaces.counter_store import WindowCount

logger = logging.getLogger(__name__)


class MemoryCounterStore:
    """Contadores de janela fixa no processo. Não é compartilhado entre instâncias."""

    def __init__(self, *, clock: Clock | None = None, cleanup_probability: float = 0.1) -> None:
        self._clock = clock or SystemClock()
        self._cleanup_probability = cleanup_probability
        self._windows: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def _now_ts(self) -> float:
        return self._clock.now().replace(tzinfo=timezone.utc).timestamp()

    def increment(self, key: str, *, window_seconds: int) -> WindowCount:
        now = self._now_ts()

        with self._lock:
            current = self._windows.get(key)
            if current is None or now >= current[1]:
                # janela nova só é aberta no primeiro uso após o reset (lazy)
                count, reset_at = 1, now + window_seconds
            else:
                count, reset_at = current[0] + 1, current[1]
            self._windows[key] = (count, reset_at)

        if self._cleanup_probability > 0 and random.random() < self._cleanup_probability:
            self.cleanup()

        return WindowCount(count=count, reset_at=reset_at)

    def cleanup(self) -> int:
        now = self._now_ts()
        with self._lock:
            expired = [k for k, (_, reset_at) in self._windows.items() if now >= reset_at]
            for k in expired:
                del self._windows[k]

        if expired:
            logger.debug("Removidas %d janelas de rate limit vencidas", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._windows)
