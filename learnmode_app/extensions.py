from flask import current_app
from redis import Redis

from .services.assistant_client import AssistantClient
from .services.interaction_log import InteractionLog
from .services.run_poller import RunPoller
from .services.session_registry import SessionRegistry
from .services.session_service import SessionService
from .utils.session_store import RedisSessionStore


def get_redis_client() -> Redis:
    """Return a shared Redis client if available, otherwise create one."""
    client = getattr(current_app, "redis_client", None)
    if client is None:
        client = Redis.from_url(current_app.config["REDIS_URL"], decode_responses=True)
        current_app.redis_client = client
    return client


def build_session_service(config, store) -> SessionService:
    client = AssistantClient(
        model=config["OPENAI_ASSISTANT_MODEL"],
        timeout=config["OPENAI_REQUEST_TIMEOUT"],
    )
    registry = SessionRegistry(
        store,
        client,
        ttl_seconds=config["SESSION_TTL_SECONDS"],
        lock_timeout=config["REGISTRY_LOCK_TIMEOUT_SECONDS"],
        lock_wait=config["REGISTRY_LOCK_WAIT_SECONDS"],
    )
    poller = RunPoller(
        client,
        interval=config["RUN_POLL_INTERVAL_SECONDS"],
        backoff_factor=config["RUN_POLL_BACKOFF_FACTOR"],
        max_interval=config["RUN_POLL_MAX_INTERVAL_SECONDS"],
        timeout=config["RUN_TIMEOUT_SECONDS"],
        max_attempts=config["RUN_MAX_POLL_ATTEMPTS"],
    )
    return SessionService(client, registry, poller, InteractionLog(store))


def get_session_service() -> SessionService:
    """Return the app's SessionService, wiring it to Redis on first use."""
    service = getattr(current_app, "session_service", None)
    if service is None:
        store = RedisSessionStore(get_redis_client())
        service = build_session_service(current_app.config, store)
        current_app.session_service = service
    return service
