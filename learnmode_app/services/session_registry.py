# learnmode_app/services/session_registry.py
import logging
from typing import Callable, Optional

from ..utils.session_store import SessionStore
from .assistant_client import AssistantClient
from .errors import StoreError

logger = logging.getLogger(__name__)

CONTEXT_KEY_PREFIX = "context:"
THREAD_KEY_PREFIX = "thread:"
LOCK_KEY_PREFIX = "lock:"
DEFAULT_SESSION_TTL = 86400  # 24 hours


def context_key(video_id: str) -> str:
    return f"{CONTEXT_KEY_PREFIX}{video_id}"


def thread_key(video_id: str) -> str:
    return f"{THREAD_KEY_PREFIX}{video_id}"


class SessionRegistry:
    """
    Maps a video ID to its remote assistant (context) and thread IDs.

    The store is the only cache. Creation is serialized per key with a
    store lock, and the mapping is re-read once the lock is held, so two
    requests for the same video create at most one remote object while
    requests for other videos proceed untouched.
    """

    def __init__(
        self,
        store: SessionStore,
        client: AssistantClient,
        ttl_seconds: int = DEFAULT_SESSION_TTL,
        lock_timeout: float = 60,
        lock_wait: float = 30,
    ):
        self.store = store
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.lock_timeout = lock_timeout
        self.lock_wait = lock_wait

    def get_context(self, video_id: str) -> Optional[str]:
        return self.store.get(context_key(video_id))

    def get_thread(self, video_id: str) -> Optional[str]:
        return self.store.get(thread_key(video_id))

    def resolve_or_create_context(self, video_id: str, create_context: Callable[[], str]) -> str:
        """Return the stored assistant ID for ``video_id``, calling ``create_context`` on a miss."""
        return self._resolve_or_create(context_key(video_id), video_id, "assistant", create_context)

    def resolve_or_create_thread(self, video_id: str) -> str:
        return self._resolve_or_create(thread_key(video_id), video_id, "thread", self.client.create_thread)

    def _resolve_or_create(self, key: str, video_id: str, kind: str, create: Callable[[], str]) -> str:
        existing = self.store.get(key)
        if existing:
            logger.info(f"{kind.capitalize()} ID {existing} retrieved from store for video {video_id}")
            return existing

        with self.store.lock(f"{LOCK_KEY_PREFIX}{key}", timeout=self.lock_timeout, blocking_timeout=self.lock_wait):
            # Another request may have created it while we waited for the lock.
            existing = self.store.get(key)
            if existing:
                logger.info(f"{kind.capitalize()} ID {existing} created concurrently for video {video_id}")
                return existing

            logger.info(f"No {kind} stored for video {video_id}. Creating a new one.")
            created_id = create()
            try:
                self.store.set(key, created_id, ttl_seconds=self.ttl_seconds)
            except StoreError as e:
                logger.error(
                    f"Remote {kind} {created_id} for video {video_id} was created but could not be "
                    f"recorded; it is now orphaned: {e}"
                )
                raise StoreError(f"{kind} {created_id} created but not stored for video {video_id}: {e}") from e

        logger.info(f"{kind.capitalize()} ID {created_id} stored for video {video_id} (ttl={self.ttl_seconds}s)")
        return created_id
