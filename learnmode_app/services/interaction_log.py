# learnmode_app/services/interaction_log.py
import logging
from typing import List

from ..utils.session_store import SessionStore

logger = logging.getLogger(__name__)

INTERACTIONS_KEY_PREFIX = "interactions:"
ASSISTANT_PREFIX = "Assistant: "


def interactions_key(video_id: str) -> str:
    return f"{INTERACTIONS_KEY_PREFIX}{video_id}"


class InteractionLog:
    """Append-only history of question and answer text per video. Never expires."""

    def __init__(self, store: SessionStore):
        self.store = store

    def append(self, video_id: str, text: str) -> None:
        length = self.store.append(interactions_key(video_id), text)
        logger.info(f"Interaction stored for video {video_id} (entry #{length}).")

    def append_user(self, video_id: str, question: str) -> None:
        self.append(video_id, question)

    def append_assistant(self, video_id: str, reply: str) -> None:
        self.append(video_id, f"{ASSISTANT_PREFIX}{reply}")

    def entries(self, video_id: str) -> List[str]:
        return self.store.entries(interactions_key(video_id))
