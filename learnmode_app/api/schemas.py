# learnmode_app/api/schemas.py
from typing import List

from pydantic import BaseModel, ConfigDict, field_validator


class _Payload(BaseModel):
    model_config = ConfigDict(extra='ignore')

    @field_validator('video_id', check_fields=False)
    @classmethod
    def video_id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('video_id must not be empty')
        return v


class InitRequest(_Payload):
    """Body of POST /init."""
    video_id: str
    title: str
    channel: str
    transcript: List[str]


class QuestionRequest(_Payload):
    """Body of POST /ask."""
    video_id: str
    user_question: str

    @field_validator('user_question')
    @classmethod
    def question_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('user_question must not be empty')
        return v
