# session_guard/infrastructure/rate_limit/__init__.py
from __future__ import annotations

from functools import lru_cache

from session_guard.config.settings import settings
from session_guard.core.interfaces.counter_store import CounterStore
from session_guard.infrastructure.rate_limit.memory_counter_store import MemoryCounterStore
from session_guard.infrastructure.rate_limit.redis_counter_store import build_redis_counter_store


@lru_cache(maxsize=1)
def get_counter_store() -> CounterStore:
    # uma instância por processo: os contadores precisam sobreviver entre requisições
    if settings.rate_limit_backend == "redis":
        return build_redis_counter_store(settings.redis_url, key_prefix=settings.redis_key_prefix)
    return MemoryCounterStore(cleanup_probability=settings.rate_limit_cleanup_probability)
