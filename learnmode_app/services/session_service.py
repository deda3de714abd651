# learnmode_app/services/session_service.py
# -*- coding: utf-8 -*-
import logging
import threading
from typing import Optional, Sequence

from .assistant_client import AssistantClient
from .errors import SessionNotInitializedError
from .interaction_log import InteractionLog
from .run_poller import RunPoller
from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class SessionService:
    """
    Entry point for the two session operations exposed over HTTP.

    Nothing already committed is rolled back when a later step fails: a
    user message posted to the thread, or a logged question, stays in
    place and the error propagates to the caller.
    """

    def __init__(
        self,
        client: AssistantClient,
        registry: SessionRegistry,
        poller: RunPoller,
        interaction_log: InteractionLog,
    ):
        self.client = client
        self.registry = registry
        self.poller = poller
        self.interaction_log = interaction_log

    def initialize_session(self, video_id: str, title: str, channel: str, transcript: Sequence[str]) -> str:
        """Attach an assistant seeded with the video's transcript; returns the assistant ID."""
        logger.info(f"Initializing session for video {video_id} ({len(transcript)} transcript lines).")
        assistant_id = self.registry.resolve_or_create_context(
            video_id,
            lambda: self.client.create_assistant(title, channel, transcript, name=video_id),
        )
        logger.info(
            f"Session for video {video_id} uses assistant {assistant_id}.",
            extra={"video_id": video_id},
        )
        return assistant_id

    def ask_question(self, video_id: str, question: str, cancel_event: Optional[threading.Event] = None) -> str:
        assistant_id = self.registry.get_context(video_id)
        if not assistant_id:
            raise SessionNotInitializedError(video_id)

        thread_id = self.registry.resolve_or_create_thread(video_id)

        self.client.add_message(thread_id, "user", question)
        self.interaction_log.append_user(video_id, question)

        run_id = self.client.create_run(thread_id, assistant_id)
        reply = self.poller.wait_for_reply(thread_id, run_id, cancel_event=cancel_event)

        self.interaction_log.append_assistant(video_id, reply)
        logger.info(
            f"Answered question for video {video_id} on thread {thread_id} (run {run_id}).",
            extra={"video_id": video_id, "thread_id": thread_id, "run_id": run_id},
        )
        return reply
