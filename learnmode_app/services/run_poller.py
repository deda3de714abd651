# learnmode_app/services/run_poller.py
# -*- coding: utf-8 -*-
import logging
import threading
import time
from typing import Callable, Iterable, Optional

from .assistant_client import AssistantClient, Turn
from .errors import (
    JobCancelledError,
    JobFailedError,
    JobTimeoutError,
    NoAssistantReplyError,
    ProviderError,
)

logger = logging.getLogger(__name__)

# Statuses that mean the run is still being worked on.
PENDING_STATUSES = frozenset({"queued", "in_progress", "requires_action", "cancelling"})
COMPLETED_STATUS = "completed"


def extract_assistant_reply(turns: Iterable[Turn]) -> Optional[str]:
    """Text of the first assistant turn in ``turns`` (ordered most recent first)."""
    for turn in turns:
        if turn.role == "assistant":
            return turn.text
    return None


class RunPoller:
    """
    Drives a started run to a terminal status.

    Waits ``interval`` seconds before each status check, growing the wait
    by ``backoff_factor`` up to ``max_interval``. Gives up with
    :class:`JobTimeoutError` once ``timeout`` seconds have elapsed or
    ``max_attempts`` checks were made (0 disables the attempt cap).
    """

    def __init__(
        self,
        client: AssistantClient,
        interval: float = 2.0,
        backoff_factor: float = 1.0,
        max_interval: float = 10.0,
        timeout: float = 120.0,
        max_attempts: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError("Polling interval must be positive.")
        if backoff_factor < 1.0:
            raise ValueError("Backoff factor must be >= 1.0.")
        self.client = client
        self.interval = interval
        self.backoff_factor = backoff_factor
        self.max_interval = max(max_interval, interval)
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._clock = clock

    def wait_for_completion(self, thread_id: str, run_id: str, cancel_event: Optional[threading.Event] = None) -> str:
        """Block until the run leaves the pending states; returns ``completed`` or raises."""
        cancel_event = cancel_event or threading.Event()
        start = self._clock()
        delay = self.interval
        attempts = 0
        status = "queued"

        while True:
            # Event.wait doubles as the sleep and the cancellation hook.
            if cancel_event.wait(delay):
                logger.warning(f"Wait for Run {run_id} cancelled by caller (last status '{status}').")
                self._cancel_quietly(thread_id, run_id)
                raise JobCancelledError(run_id, status)

            status = self.client.get_run_status(thread_id, run_id)
            attempts += 1
            logger.debug(f"Run {run_id} status check #{attempts}: {status}")

            if status == COMPLETED_STATUS:
                logger.info(f"Run {run_id} completed after {attempts} status checks.")
                return status
            if status not in PENDING_STATUSES:
                logger.error(f"Run {run_id} ended with {status}.")
                raise JobFailedError(run_id, status)

            elapsed = self._clock() - start
            if (self.timeout and elapsed >= self.timeout) or (self.max_attempts and attempts >= self.max_attempts):
                logger.error(f"Run {run_id} timed out after {elapsed:.1f}s ({attempts} checks, status '{status}').")
                self._cancel_quietly(thread_id, run_id)
                raise JobTimeoutError(run_id, status, elapsed, attempts)

            delay = min(delay * self.backoff_factor, self.max_interval)

    def wait_for_reply(self, thread_id: str, run_id: str, cancel_event: Optional[threading.Event] = None) -> str:
        """Wait for the run, then return the latest assistant reply in the thread."""
        self.wait_for_completion(thread_id, run_id, cancel_event=cancel_event)
        reply = extract_assistant_reply(self.client.list_messages(thread_id))
        if reply is None:
            raise NoAssistantReplyError(thread_id)
        return reply

    def _cancel_quietly(self, thread_id: str, run_id: str) -> None:
        try:
            self.client.cancel_run(thread_id, run_id)
        except ProviderError as e:
            # The timeout/cancel error raised by the caller is the one reported.
            logger.warning(f"Could not cancel Run {run_id} on Thread {thread_id}: {e}")
