"""
Client side of the relay: the HTTP wrapper and the per-session orchestrator
that owns the conversation transcript.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

import httpx

from mockmate.repository import InterviewRepository
from mockmate.schemas import SavedInterview, Turn

LOG = logging.getLogger("mockmate.client")

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred during AI processing."


class InterviewError(Exception):
    pass


class InterviewNotStartedError(InterviewError):
    pass


class EmptyTurnError(InterviewError):
    pass


class TurnInFlightError(InterviewError):
    """A relay call for this conversation is already pending."""


@dataclass(frozen=True)
class AudioContent:
    data: str  # base64
    mime_type: str = "audio/webm"


TurnContent = Union[str, AudioContent]


@dataclass(frozen=True)
class RelayResult:
    text: Optional[str] = None
    error: Optional[str] = None
    status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _error_from_response(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return UNKNOWN_ERROR_MESSAGE
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    return UNKNOWN_ERROR_MESSAGE


class RelayClient:
    """Calls the relay endpoints; failures come back as ``RelayResult.error``, never raised."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    async def _post(self, path: str, **kwargs) -> RelayResult:
        try:
            resp = await self.http.post(path, **kwargs)
        except httpx.HTTPError as exc:
            LOG.warning("Relay request to %s failed: %s", path, exc)
            return RelayResult(error=f"Network or Client Error: {exc}")

        if not resp.is_success:
            message = _error_from_response(resp)
            LOG.warning("Relay %s returned %s: %s", path, resp.status_code, message)
            return RelayResult(error=message, status=resp.status_code)

        try:
            text = resp.json().get("text")
        except (ValueError, AttributeError) as exc:
            return RelayResult(error=f"Network or Client Error: {exc}", status=resp.status_code)
        if not isinstance(text, str):
            return RelayResult(error=UNKNOWN_ERROR_MESSAGE, status=resp.status_code)
        return RelayResult(text=text, status=resp.status_code)

    async def call_interview(self, history: Sequence[Turn], role: str) -> RelayResult:
        return await self._post(
            "/api/interview",
            json={"history": [turn.to_wire() for turn in history], "role": role},
        )

    async def transcribe(self, audio: AudioContent) -> RelayResult:
        return await self._post("/api/transcribe", json={"audio": audio.data, "mimeType": audio.mime_type})


class InterviewSession:
    """
    One mock interview: a fixed role and an append-only transcript.

    At most one relay call is in flight per session; a second call while one
    is pending raises ``TurnInFlightError``. A failed ``send_turn`` keeps the
    user turn it appended.
    """

    def __init__(
        self,
        client: RelayClient,
        role: str,
        on_model_turn: Optional[Callable[[str], None]] = None,
    ) -> None:
        if not role or not role.strip():
            raise ValueError("role must be a non-empty string")
        self.client = client
        self._role = role.strip()
        self.on_model_turn = on_model_turn
        self._conversation: List[Turn] = []
        self._in_flight = False
        self.last_error: Optional[str] = None

    @property
    def role(self) -> str:
        return self._role

    @property
    def conversation(self) -> List[Turn]:
        return list(self._conversation)

    @property
    def started(self) -> bool:
        return bool(self._conversation)

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def _call(self) -> RelayResult:
        if self._in_flight:
            raise TurnInFlightError("a relay call is already pending for this interview")
        self._in_flight = True
        try:
            return await self.client.call_interview(self._conversation, self._role)
        finally:
            self._in_flight = False

    def _accept(self, result: RelayResult) -> RelayResult:
        if not result.ok:
            self.last_error = result.error
            return result
        self.last_error = None
        self._conversation.append(Turn.model_text(result.text))
        if self.on_model_turn is not None:
            self.on_model_turn(result.text)
        return result

    async def start_interview(self) -> RelayResult:
        if self._in_flight:
            raise TurnInFlightError("a relay call is already pending for this interview")
        if self._conversation:
            raise InterviewError("interview already started")
        return self._accept(await self._call())

    async def send_turn(self, content: TurnContent) -> RelayResult:
        if self._in_flight:
            raise TurnInFlightError("a relay call is already pending for this interview")
        if not self._conversation:
            raise InterviewNotStartedError("start the interview before sending turns")
        self._conversation.append(_user_turn(content))
        return self._accept(await self._call())

    async def save(self, repository: InterviewRepository, user_id: str) -> SavedInterview:
        return await repository.save(user_id, self._role, self._conversation)


def _user_turn(content: TurnContent) -> Turn:
    if isinstance(content, AudioContent):
        if not content.data:
            raise EmptyTurnError("audio turn has no data")
        return Turn.user_audio(content.data, content.mime_type)
    if not isinstance(content, str) or not content.strip():
        raise EmptyTurnError("turn text is empty")
    return Turn.user_text(content.strip())
