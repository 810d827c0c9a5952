# session_guard/infrastructure/rate_limit/redis_counter_store.py
from __future__ import annotations

import logging
import time

import redis

from session_guard.core.interfaces.counter_store import WindowCount

logger = logging.getLogger(__name__)


class RedisCounterStore:
    """Contadores compartilhados entre instâncias; a expiração da janela fica com o TTL da chave."""

    def __init__(self, client: redis.Redis, *, key_prefix: str = "session-guard") -> None:
        self._redis = client
        self._prefix = key_prefix.strip(":")

    def _key(self, key: str) -> str:
        return f"{self._prefix}:rate_limit:{key.strip(':')}"

    def increment(self, key: str, *, window_seconds: int) -> WindowCount:
        redis_key = self._key(key)

        pipe = self._redis.pipeline()
        pipe.incr(redis_key)
        # nx: o TTL só é definido quando a janela abre, então ela não desliza
        pipe.expire(redis_key, window_seconds, nx=True)
        pipe.ttl(redis_key)
        count, _, ttl = pipe.execute()

        if ttl is None or int(ttl) < 0:
            # chave sem TTL (ex.: criada por outro cliente); corrige para não travar o contador
            self._redis.expire(redis_key, window_seconds)
            ttl = window_seconds

        return WindowCount(count=int(count), reset_at=time.time() + int(ttl))

    def cleanup(self) -> int:
        # o Redis expira as chaves sozinho
        return 0


def build_redis_counter_store(url: str, *, key_prefix: str) -> RedisCounterStore:
    client = redis.Redis.from_url(url, decode_responses=True)
    logger.info("Rate limit usando Redis em %s", url.split("@")[-1])
    return RedisCounterStore(client, key_prefix=key_prefix)
