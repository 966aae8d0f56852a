"""
Thin async client for the Gemini ``generateContent`` REST endpoint.

One outbound POST per call. The API key travels in a request header and is
never echoed back to callers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from mockmate.config import Settings
from mockmate.errors import ConfigurationError, ProviderTransportError

LOG = logging.getLogger("mockmate.gemini")

MISSING_KEY_MESSAGE = "API Key not configured on the server."


def provider_error_message(resp: httpx.Response) -> str:
    """Best-effort human readable message from a failed provider response."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"].strip():
            return error["message"].strip()
        if isinstance(error, str) and error.strip():
            return error.strip()
    return resp.reason_phrase or "Provider request failed"


def extract_text(result: Any) -> Optional[str]:
    """``candidates[0].content.parts[0].text`` or None when any hop is missing."""
    if not isinstance(result, dict):
        return None
    candidates = result.get("candidates") or []
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return None
    content = candidates[0].get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    if not isinstance(text, str) or not text:
        return None
    return text


def block_reason(result: Any) -> Optional[str]:
    if not isinstance(result, dict):
        return None
    feedback = result.get("promptFeedback") or {}
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        return str(feedback["blockReason"])
    candidates = result.get("candidates") or []
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        reason = candidates[0].get("finishReason")
        return str(reason) if reason else None
    return None


class GeminiClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self.transport = transport

    def ensure_configured(self) -> str:
        api_key = self.settings.gemini_api_key
        if not api_key:
            LOG.error("GEMINI_API_KEY missing; refusing provider call")
            raise ConfigurationError(MISSING_KEY_MESSAGE)
        return api_key

    def endpoint(self, model: str) -> str:
        return f"{self.settings.gemini_api_base}/models/{model}:generateContent"

    async def generate(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        api_key = self.ensure_configured()
        headers = {
            "x-goog-api-key": api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self.settings.gemini_timeout, transport=self.transport) as client:
            LOG.info(
                "Calling Gemini: model=%s contents=%s",
                model,
                len(payload.get("contents") or []),
            )
            resp = await client.post(self.endpoint(model), headers=headers, json=payload)

        if not resp.is_success:
            message = provider_error_message(resp)
            LOG.warning("provider_transport_error: Gemini responded with %s: %s", resp.status_code, resp.text[:200])
            raise ProviderTransportError(message, status_code=resp.status_code)

        return resp.json()
