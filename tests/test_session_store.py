from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError, LockNotOwnedError

from learnmode_app.services.errors import StoreError
from learnmode_app.utils.session_store import RedisSessionStore


@pytest.fixture
def redis_client():
    return MagicMock()


def test_set_applies_expiry(redis_client):
    RedisSessionStore(redis_client).set("thread:v1", "thread_1", ttl_seconds=86400)

    redis_client.set.assert_called_once_with("thread:v1", "thread_1", ex=86400)


def test_get_decodes_bytes(redis_client):
    redis_client.get.return_value = b"asst_1"

    assert RedisSessionStore(redis_client).get("context:v1") == "asst_1"


def test_append_pushes_without_expiry(redis_client):
    redis_client.rpush.return_value = 3

    assert RedisSessionStore(redis_client).append("interactions:v1", "Why?") == 3
    redis_client.rpush.assert_called_once_with("interactions:v1", "Why?")
    redis_client.expire.assert_not_called()


def test_entries_reads_whole_list(redis_client):
    redis_client.lrange.return_value = ["q", b"Assistant: a"]

    assert RedisSessionStore(redis_client).entries("interactions:v1") == ["q", "Assistant: a"]
    redis_client.lrange.assert_called_once_with("interactions:v1", 0, -1)


@pytest.mark.parametrize("method,args", [
    ("get", ("context:v1",)),
    ("set", ("context:v1", "asst_1", 60)),
    ("append", ("interactions:v1", "q")),
    ("entries", ("interactions:v1",)),
])
def test_redis_errors_become_store_errors(redis_client, method, args):
    for name in ("get", "set", "rpush", "lrange"):
        getattr(redis_client, name).side_effect = RedisConnectionError("connection refused")

    with pytest.raises(StoreError):
        getattr(RedisSessionStore(redis_client), method)(*args)


def test_lock_acquire_and_release(redis_client):
    lock = redis_client.lock.return_value
    lock.acquire.return_value = True

    with RedisSessionStore(redis_client).lock("lock:thread:v1", timeout=60, blocking_timeout=5):
        lock.release.assert_not_called()

    redis_client.lock.assert_called_once_with("lock:thread:v1", timeout=60, blocking_timeout=5)
    lock.release.assert_called_once()


def test_lock_wait_timeout_raises(redis_client):
    redis_client.lock.return_value.acquire.return_value = False

    with pytest.raises(StoreError):
        with RedisSessionStore(redis_client).lock("lock:thread:v1", timeout=60, blocking_timeout=5):
            pass


def test_expired_lock_release_is_tolerated(redis_client):
    lock = redis_client.lock.return_value
    lock.acquire.return_value = True
    lock.release.side_effect = LockNotOwnedError("lock expired")

    with RedisSessionStore(redis_client).lock("lock:thread:v1", timeout=60, blocking_timeout=5):
        pass


def test_release_connection_error_does_not_escape(redis_client):
    lock = redis_client.lock.return_value
    lock.acquire.return_value = True
    lock.release.side_effect = RedisConnectionError("connection reset")

    with RedisSessionStore(redis_client).lock("lock:thread:v1", timeout=60, blocking_timeout=5):
        pass

    lock.release.assert_called_once()


def test_release_failure_keeps_error_from_locked_block(redis_client):
    lock = redis_client.lock.return_value
    lock.acquire.return_value = True
    lock.release.side_effect = RedisConnectionError("connection reset")

    with pytest.raises(StoreError, match="write failed"):
        with RedisSessionStore(redis_client).lock("lock:thread:v1", timeout=60, blocking_timeout=5):
            raise StoreError("write failed")
