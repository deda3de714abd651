# learnmode_app/services/errors.py
# -*- coding: utf-8 -*-
from typing import Optional


class SessionError(Exception):
    """Base class for every failure raised by the session orchestration layer."""


class ProviderError(SessionError):
    """The assistant provider returned a non-success response or could not be reached.

    ``body`` holds the raw provider response body when there was one.
    """

    def __init__(self, operation: str, body: Optional[str] = None, status_code: Optional[int] = None):
        self.operation = operation
        self.body = body
        self.status_code = status_code
        detail = body if body else "no response body"
        super().__init__(f"failed to {operation}: {detail}")


class StoreError(SessionError):
    """Read or write against the durable key-value store failed."""


class SessionNotInitializedError(SessionError):
    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(f"no assistant session initialized for video {video_id}")


class JobFailedError(SessionError):
    """A run reached a terminal status other than ``completed``."""

    def __init__(self, run_id: str, status: str, last_error: Optional[str] = None):
        self.run_id = run_id
        self.status = status
        self.last_error = last_error
        message = f"run {run_id} ended with status '{status}'"
        if last_error:
            message += f": {last_error}"
        super().__init__(message)


class JobTimeoutError(JobFailedError):
    """A run did not reach a terminal status within the polling bounds."""

    def __init__(self, run_id: str, status: str, elapsed: float, attempts: int):
        self.elapsed = elapsed
        self.attempts = attempts
        super().__init__(run_id, status)
        self.args = (
            f"run {run_id} still '{status}' after {elapsed:.1f}s and {attempts} status checks",
        )


class JobCancelledError(JobFailedError):
    """The caller cancelled the wait before the run finished."""

    def __init__(self, run_id: str, status: str):
        super().__init__(run_id, status)
        self.args = (f"wait for run {run_id} cancelled by caller (last status '{status}')",)


class NoAssistantReplyError(SessionError):
    def __init__(self, thread_id: str):
        self.thread_id = thread_id
        super().__init__(f"no assistant message found in thread {thread_id}")
