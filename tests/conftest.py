# /tests/conftest.py
import os
import sys
import tempfile
import threading
from collections import defaultdict
from contextlib import contextmanager
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Must be set before the package reads its Config.
os.environ.setdefault('FLASK_ENV', 'testing')
os.environ.setdefault('LOG_DIR', os.path.join(tempfile.gettempdir(), 'learnmode_test_logs'))

from learnmode_app import create_app  # noqa: E402
from learnmode_app.config import Config  # noqa: E402
from learnmode_app.services.assistant_client import AssistantClient  # noqa: E402
from learnmode_app.services.errors import StoreError  # noqa: E402
from learnmode_app.services.interaction_log import InteractionLog  # noqa: E402
from learnmode_app.services.run_poller import RunPoller  # noqa: E402
from learnmode_app.services.session_registry import SessionRegistry  # noqa: E402
from learnmode_app.services.session_service import SessionService  # noqa: E402
from learnmode_app.utils.session_store import SessionStore  # noqa: E402


class TestingConfig(Config):
    TESTING = True
    OPENAI_API_KEY = None
    REDIS_URL = None


class InMemorySessionStore(SessionStore):
    """Dict-backed store; ``fail_set`` / ``fail_append`` simulate Redis outages."""

    def __init__(self):
        self.values = {}
        self.ttls = {}
        self.lists = defaultdict(list)
        self.lock_names = []
        self.fail_set = False
        self.fail_append = False
        self._locks = defaultdict(threading.Lock)
        self._guard = threading.Lock()

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value, ttl_seconds=None):
        if self.fail_set:
            raise StoreError(f"failed to store '{key}' in Redis: connection refused")
        self.values[key] = value
        self.ttls[key] = ttl_seconds

    def append(self, key, value):
        if self.fail_append:
            raise StoreError(f"failed to append to '{key}' in Redis: connection refused")
        self.lists[key].append(value)
        return len(self.lists[key])

    def entries(self, key):
        return list(self.lists.get(key, []))

    @contextmanager
    def lock(self, name, timeout, blocking_timeout):
        with self._guard:
            lock = self._locks[name]
            self.lock_names.append(name)
        with lock:
            yield


# ── OpenAI SDK fakes ───────────────────────────────────────────────────────

def make_message(role, *fragments, message_id="msg_1"):
    content = [SimpleNamespace(type="text", text=SimpleNamespace(value=f, annotations=[])) for f in fragments]
    return SimpleNamespace(id=message_id, role=role, content=content)


def make_run(status, run_id="run_1"):
    return SimpleNamespace(id=run_id, status=status)


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def openai_client():
    """MagicMock standing in for ``openai.OpenAI``, preloaded with a happy path."""
    client = MagicMock()
    client.with_options.return_value = client
    client.beta.assistants.create.return_value = SimpleNamespace(id="asst_1")
    client.beta.threads.create.return_value = SimpleNamespace(id="thread_1")
    client.beta.threads.messages.create.return_value = SimpleNamespace(id="msg_user")
    client.beta.threads.runs.create.return_value = make_run("queued")
    client.beta.threads.runs.retrieve.side_effect = [
        make_run("queued"), make_run("in_progress"), make_run("completed"),
    ]
    client.beta.threads.messages.list.return_value = SimpleNamespace(
        data=[make_message("assistant", "Hello, ", "world."), make_message("user", "Hi?", message_id="msg_0")]
    )
    return client


@pytest.fixture
def assistant_client(openai_client, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    return AssistantClient(model="gpt-4o-mini", client_factory=lambda api_key, timeout: openai_client)


@pytest.fixture
def registry(store, assistant_client):
    return SessionRegistry(store, assistant_client, ttl_seconds=86400)


@pytest.fixture
def poller(assistant_client):
    return RunPoller(assistant_client, interval=0.001, timeout=5)


@pytest.fixture
def session_service(assistant_client, registry, poller, store):
    return SessionService(assistant_client, registry, poller, InteractionLog(store))


@pytest.fixture
def app(session_service):
    test_app = create_app(TestingConfig)
    test_app.session_service = session_service
    yield test_app


@pytest.fixture
def client(app):
    return app.test_client()
