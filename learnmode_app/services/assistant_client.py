# learnmode_app/services/assistant_client.py
# -*- coding: utf-8 -*-
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from openai import OpenAI, OpenAIError, APIStatusError

from .errors import ProviderError

logger = logging.getLogger(__name__)

INSTRUCTIONS_TEMPLATE = (
    "You are a helpful assistant for the video titled '{title}' by '{channel}'. "
    "Here is the transcript: {transcript}"
)


@dataclass
class Turn:
    """One role-tagged message of a thread, with its text fragments in order."""
    role: str
    fragments: List[str] = field(default_factory=list)
    message_id: Optional[str] = None

    @property
    def text(self) -> str:
        return "".join(self.fragments)


def build_instructions(title: str, channel: str, transcript: Sequence[str]) -> str:
    return INSTRUCTIONS_TEMPLATE.format(title=title, channel=channel, transcript=" ".join(transcript))


def _default_client_factory(api_key: str, timeout: float) -> OpenAI:
    return OpenAI(api_key=api_key, timeout=timeout, max_retries=0)


class AssistantClient:
    """Thin adapter over the OpenAI Assistants API.

    Holds no conversation state. Every call is a single request: any
    non-success response or transport failure is raised as
    :class:`ProviderError` and never retried here.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        client_factory: Optional[Callable[[str, float], OpenAI]] = None,
    ):
        self.model = model
        self.timeout = timeout
        self._client_factory = client_factory or _default_client_factory
        self._base_client: Optional[OpenAI] = None
        self._base_lock = threading.Lock()

    def _client(self) -> OpenAI:
        # The key is looked up on every call so a rotated key takes effect
        # without restarting; with_options shares the base client's connection pool.
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ProviderError("authenticate with OpenAI", body="OPENAI_API_KEY is not set")
        with self._base_lock:
            if self._base_client is None:
                self._base_client = self._client_factory(api_key, self.timeout)
        return self._base_client.with_options(api_key=api_key)

    def _call(self, operation: str, method: Callable[[OpenAI], Callable], **kwargs):
        """Resolve ``method`` against the per-call client view and invoke it with ``kwargs``."""
        try:
            return method(self._client())(**kwargs)
        except APIStatusError as e:
            body = e.response.text if e.response is not None else None
            logger.error(f"OpenAI request to {operation} failed with status {e.status_code}: {body}")
            raise ProviderError(operation, body=body, status_code=e.status_code) from e
        except OpenAIError as e:
            logger.error(f"OpenAI request to {operation} failed: {e}")
            raise ProviderError(operation, body=str(e)) from e

    def create_assistant(self, title: str, channel: str, transcript: Sequence[str], name: Optional[str] = None) -> str:
        instructions = build_instructions(title, channel, transcript)
        assistant = self._call(
            "create assistant",
            lambda c: c.beta.assistants.create,
            model=self.model,
            name=name,
            instructions=instructions,
        )
        logger.info(f"Assistant created with ID {assistant.id} (name={name!r}, model={self.model}).")
        return assistant.id

    def create_thread(self) -> str:
        thread = self._call("create thread", lambda c: c.beta.threads.create)
        logger.info(f"Thread created with ID {thread.id}")
        return thread.id

    def add_message(self, thread_id: str, role: str, content: str) -> None:
        logger.info(f"Adding {role} message to thread {thread_id} ({len(content)} chars).")
        self._call(
            "add message to thread",
            lambda c: c.beta.threads.messages.create,
            thread_id=thread_id,
            role=role,
            content=content,
        )

    def create_run(self, thread_id: str, assistant_id: str) -> str:
        run = self._call(
            "run assistant",
            lambda c: c.beta.threads.runs.create,
            thread_id=thread_id,
            assistant_id=assistant_id,
        )
        logger.info(f"Created Run {run.id} for Thread {thread_id} (status={run.status}).")
        return run.id

    def get_run_status(self, thread_id: str, run_id: str) -> str:
        run = self._call(
            "get run status",
            lambda c: c.beta.threads.runs.retrieve,
            thread_id=thread_id,
            run_id=run_id,
        )
        return run.status

    def cancel_run(self, thread_id: str, run_id: str) -> None:
        self._call(
            "cancel run",
            lambda c: c.beta.threads.runs.cancel,
            thread_id=thread_id,
            run_id=run_id,
        )
        logger.info(f"Cancellation requested for Run {run_id} on Thread {thread_id}.")

    def list_messages(self, thread_id: str) -> List[Turn]:
        """Return the thread's messages, most recent first."""
        page = self._call(
            "get thread messages",
            lambda c: c.beta.threads.messages.list,
            thread_id=thread_id,
            order="desc",
        )
        turns = []
        for message in page.data:
            fragments = [
                part.text.value
                for part in message.content
                if part.type == "text" and getattr(part, "text", None) is not None
            ]
            turns.append(Turn(role=message.role, fragments=fragments, message_id=message.id))
        logger.info(f"Fetched {len(turns)} messages from thread {thread_id}.")
        return turns
