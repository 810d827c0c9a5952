# session_guard/core/interfaces/counter_store.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class WindowCount:
    count: int
    # epoch (segundos) em que a janela atual termina
    reset_at: float


class CounterStore(Protocol):
    def increment(self, key: str, *, window_seconds: int) -> WindowCount:
        """Incrementa o contador da janela fixa de `key`, abrindo uma nova janela se a anterior venceu."""
        ...

    def cleanup(self) -> int:
        """Remove janelas vencidas (best-effort). Retorna quantas foram removidas."""
        ...
