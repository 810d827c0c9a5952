from unittest.mock import MagicMock

from session_guard.infrastructure.rate_limit.memory_counter_store import MemoryCounterStore
from session_guard.infrastructure.rate_limit.redis_counter_store import RedisCounterStore


# -------------------------
# memória
# -------------------------

def test_memory_store_counts_within_window(clock):
    store = MemoryCounterStore(clock=clock, cleanup_probability=0)

    first = store.increment("k", window_seconds=60)
    clock.advance(seconds=30)
    second = store.increment("k", window_seconds=60)

    assert (first.count, second.count) == (1, 2)
    assert second.reset_at == first.reset_at


def test_memory_store_opens_new_window_after_reset(clock):
    store = MemoryCounterStore(clock=clock, cleanup_probability=0)
    first = store.increment("k", window_seconds=60)

    clock.advance(seconds=60)
    after = store.increment("k", window_seconds=60)

    assert after.count == 1
    assert after.reset_at == first.reset_at + 60


def test_memory_store_cleanup_removes_only_expired_windows(clock):
    store = MemoryCounterStore(clock=clock, cleanup_probability=0)
    store.increment("old", window_seconds=10)
    clock.advance(seconds=5)
    store.increment("new", window_seconds=60)

    clock.advance(seconds=10)
    assert store.cleanup() == 1
    assert len(store) == 1


def test_memory_store_probabilistic_cleanup(clock):
    store = MemoryCounterStore(clock=clock, cleanup_probability=1.0)
    store.increment("old", window_seconds=1)

    clock.advance(seconds=5)
    store.increment("new", window_seconds=60)

    assert len(store) == 1


# -------------------------
# redis
# -------------------------

def _redis_client(execute_result):
    client = MagicMock()
    pipe = client.pipeline.return_value
    pipe.execute.return_value = execute_result
    return client, pipe


def test_redis_store_uses_prefixed_key_and_fixed_window():
    client, pipe = _redis_client([3, True, 42])
    store = RedisCounterStore(client, key_prefix="sg:")

    result = store.increment("fam-1:rotation", window_seconds=60)

    pipe.incr.assert_called_once_with("sg:rate_limit:fam-1:rotation")
    pipe.expire.assert_called_once_with("sg:rate_limit:fam-1:rotation", 60, nx=True)
    assert result.count == 3
    client.expire.assert_not_called()


def test_redis_store_repairs_key_without_ttl():
    client, _ = _redis_client([7, False, -1])
    store = RedisCounterStore(client, key_prefix="sg")

    result = store.increment("fam-1:rotation", window_seconds=60)

    client.expire.assert_called_once_with("sg:rate_limit:fam-1:rotation", 60)
    assert result.count == 7


def test_redis_store_cleanup_is_noop():
    client, _ = _redis_client([1, True, 60])
    assert RedisCounterStore(client).cleanup() == 0
