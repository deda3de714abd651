# learnmode_app/api/routes.py
# -*- coding: utf-8 -*-
import logging

from flask import request, jsonify
from pydantic import ValidationError

from ..extensions import get_session_service
from ..services.errors import SessionError
from .schemas import InitRequest, QuestionRequest

from . import api_bp

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str):
    return jsonify({"error": message}), status_code


def _parse(model):
    """Decode the JSON body into ``model``; returns None when it cannot."""
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        logger.warning(f"Rejected {request.path} request: body is not a JSON object.")
        return None
    try:
        return model.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Rejected {request.path} request: {e.error_count()} invalid field(s).")
        return None


@api_bp.route('/init', methods=['POST'])
def initialize_gpt_session():
    """Creates (or reuses) the assistant for a video, seeded with its transcript."""
    payload = _parse(InitRequest)
    if payload is None:
        return _error(400, "Invalid request payload")

    try:
        get_session_service().initialize_session(
            payload.video_id, payload.title, payload.channel, payload.transcript
        )
    except SessionError as e:
        logger.error(f"Failed to initialize GPT session for video {payload.video_id}: {e}")
        return _error(500, "Failed to initialize GPT session")

    return jsonify({"message": "GPT session initialized"}), 200


@api_bp.route('/ask', methods=['POST'])
def ask_gpt_question():
    payload = _parse(QuestionRequest)
    if payload is None:
        return _error(400, "Invalid request payload")

    try:
        answer = get_session_service().ask_question(payload.video_id, payload.user_question)
    except SessionError as e:
        logger.error(f"Failed to answer question for video {payload.video_id}: {e}")
        return _error(500, f"Failed to get AI response: {e}")

    return jsonify({"response": answer}), 200
