# learnmode_app/utils/session_store.py
# -*- coding: utf-8 -*-
"""Durable key-value store used for session mappings and interaction history.

Services depend on the small :class:`SessionStore` interface instead of a
process-wide Redis handle, so tests can swap in an in-memory implementation.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

import redis
from redis.exceptions import LockError, RedisError

from ..services.errors import StoreError

logger = logging.getLogger(__name__)


class SessionStore:
    """get/set/append with expiry, plus a named mutual-exclusion lock."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        raise NotImplementedError

    def append(self, key: str, value: str) -> int:
        """Append ``value`` to the list at ``key``; returns the new length."""
        raise NotImplementedError

    def entries(self, key: str) -> List[str]:
        raise NotImplementedError

    def lock(self, name: str, timeout: float, blocking_timeout: float):
        raise NotImplementedError


class RedisSessionStore(SessionStore):
    def __init__(self, client: redis.Redis):
        self.client = client

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.client.get(key)
        except RedisError as e:
            logger.error(f"Redis GET failed for key '{key}': {e}")
            raise StoreError(f"failed to read '{key}' from Redis: {e}") from e
        if isinstance(value, bytes):
            value = value.decode('utf-8')
        return value

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        try:
            self.client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            logger.error(f"Redis SET failed for key '{key}': {e}")
            raise StoreError(f"failed to store '{key}' in Redis: {e}") from e

    def append(self, key: str, value: str) -> int:
        try:
            return self.client.rpush(key, value)
        except RedisError as e:
            logger.error(f"Redis RPUSH failed for key '{key}': {e}")
            raise StoreError(f"failed to append to '{key}' in Redis: {e}") from e

    def entries(self, key: str) -> List[str]:
        try:
            values = self.client.lrange(key, 0, -1)
        except RedisError as e:
            logger.error(f"Redis LRANGE failed for key '{key}': {e}")
            raise StoreError(f"failed to read '{key}' from Redis: {e}") from e
        return [v.decode('utf-8') if isinstance(v, bytes) else v for v in values]

    @contextmanager
    def lock(self, name: str, timeout: float, blocking_timeout: float) -> Iterator[None]:
        lock = self.client.lock(name, timeout=timeout, blocking_timeout=blocking_timeout)
        try:
            acquired = lock.acquire()
        except RedisError as e:
            raise StoreError(f"failed to acquire lock '{name}': {e}") from e
        if not acquired:
            raise StoreError(f"timed out after {blocking_timeout}s waiting for lock '{name}'")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError as e:
                # Lock expired while held; another worker may already own it.
                logger.warning(f"Lock '{name}' was no longer owned at release: {e}")
            except RedisError as e:
                # The key still expires on its own after `timeout`.
                logger.error(f"Failed to release lock '{name}', it will expire after {timeout}s: {e}")
