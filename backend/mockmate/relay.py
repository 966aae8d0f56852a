"""
Conversation-turn relay: shape the provider request, make the single call,
normalise the reply.

Stateless; every call is reproducible from its ``(history, role)`` pair.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict, List, Sequence, Tuple

from pydantic import ValidationError as SchemaError

from mockmate.errors import (
    ProviderContentError,
    ProviderTransportError,
    RelayError,
    UnexpectedError,
    ValidationError,
)
from mockmate.gemini import GeminiClient, block_reason, extract_text
from mockmate.prompts import (
    INTERVIEW_GENERATION_CONFIG,
    SAFETY_SETTINGS,
    SEED_TURN_TEXT,
    TRANSCRIBE_GENERATION_CONFIG,
    TRANSCRIBE_INSTRUCTION,
    system_instruction,
)
from mockmate.schemas import Turn

LOG = logging.getLogger("mockmate.relay")

NO_REPLY_MESSAGE = "AI did not generate a valid response."
INTERVIEW_FAILURE_MESSAGE = "Internal Server Error during AI processing."
NO_TRANSCRIPT_MESSAGE = "Failed to transcribe audio. Please try again."
DEFAULT_AUDIO_MIME = "audio/webm"


def seed_turn() -> Dict[str, Any]:
    return Turn.user_text(SEED_TURN_TEXT).to_wire()


def build_interview_payload(history: Sequence[Turn], role: str) -> Dict[str, Any]:
    contents: List[Dict[str, Any]] = [turn.to_wire() for turn in history] or [seed_turn()]
    return {
        "contents": contents,
        "systemInstruction": system_instruction(role),
        "generationConfig": dict(INTERVIEW_GENERATION_CONFIG),
        "safetySettings": [dict(setting) for setting in SAFETY_SETTINGS],
    }


def build_transcription_payload(audio_b64: str, mime_type: str) -> Dict[str, Any]:
    return {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"inline_data": {"mime_type": mime_type, "data": audio_b64}},
                    {"text": TRANSCRIBE_INSTRUCTION},
                ],
            }
        ],
        "generationConfig": dict(TRANSCRIBE_GENERATION_CONFIG),
    }


def validate_interview_body(body: Any) -> Tuple[List[Turn], str]:
    """Return ``(history, role)`` or raise ``ValidationError``."""
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")
    role = body.get("role")
    if not isinstance(role, str) or not role.strip():
        raise ValidationError("Missing or empty 'role'.")
    raw_history = body.get("history")
    if not isinstance(raw_history, list):
        raise ValidationError("'history' must be an array of turns.")
    history: List[Turn] = []
    for index, item in enumerate(raw_history):
        try:
            history.append(Turn.model_validate(item))
        except SchemaError as exc:
            raise ValidationError(f"Invalid turn at index {index}: {exc.errors()[0]['msg']}") from exc
    return history, role.strip()


def audio_to_base64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def check_base64(audio_b64: str) -> str:
    try:
        base64.b64decode(audio_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Audio data is not valid base64.") from exc
    return audio_b64


async def relay_interview(gemini: GeminiClient, history: Sequence[Turn], role: str) -> str:
    gemini.ensure_configured()
    try:
        payload = build_interview_payload(history, role)
        result = await gemini.generate(gemini.settings.interview_model, payload)
        text = extract_text(result)
    except RelayError:
        raise
    except Exception as exc:
        LOG.exception("relay_unexpected_error: role=%s turns=%s", role, len(history))
        raise UnexpectedError(INTERVIEW_FAILURE_MESSAGE) from exc

    if not text:
        LOG.error(
            "provider_content_error: no text in reply (role=%s turns=%s reason=%s)",
            role,
            len(history),
            block_reason(result),
        )
        raise ProviderContentError(NO_REPLY_MESSAGE)
    return text


async def transcribe_audio(gemini: GeminiClient, audio_b64: str, mime_type: str) -> str:
    gemini.ensure_configured()
    try:
        payload = build_transcription_payload(audio_b64, mime_type or DEFAULT_AUDIO_MIME)
        LOG.info("Sending audio transcription request (mime=%s bytes_b64=%s)", mime_type, len(audio_b64))
        result = await gemini.generate(gemini.settings.transcribe_model, payload)
        text = extract_text(result)
    except ProviderTransportError as exc:
        raise ProviderTransportError(f"Transcription failed: {exc.message}", status_code=exc.status_code) from exc
    except RelayError:
        raise
    except Exception as exc:
        LOG.exception("relay_unexpected_error: transcription failed")
        raise UnexpectedError(f"Internal Server Error: {exc}") from exc

    if not text or not text.strip():
        LOG.error("provider_content_error: no transcription generated (reason=%s)", block_reason(result))
        raise ProviderContentError(NO_TRANSCRIPT_MESSAGE)
    return text.strip()
