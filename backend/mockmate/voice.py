"""
Turn-taking for a voice call, independent of any audio API.

    idle -> listening -> processing -> speaking -> listening ... -> idle

The UI layer feeds completion events in and reads ``state`` back out.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Optional, Tuple

LOG = logging.getLogger("mockmate.voice")

MIN_AUDIO_BYTES = 100
MAX_RECORDING_SECONDS = 10.0
RELISTEN_DELAY_SECONDS = 0.5
SPEECH_RATE = 1.1


class CallState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"


class InvalidTransitionError(Exception):
    def __init__(self, state: CallState, event: str) -> None:
        super().__init__(f"event '{event}' not allowed in state '{state.value}'")
        self.state = state
        self.event = event


Listener = Callable[[CallState, CallState, str], None]


class VoiceCallMachine:
    def __init__(self, on_transition: Optional[Listener] = None) -> None:
        self.state = CallState.IDLE
        self.pending_reply: Optional[str] = None
        self.on_transition = on_transition
        self.history: List[Tuple[CallState, CallState, str]] = []

    @property
    def active(self) -> bool:
        return self.state is not CallState.IDLE

    def _move(self, event: str, allowed: Tuple[CallState, ...], target: CallState) -> CallState:
        if self.state not in allowed:
            raise InvalidTransitionError(self.state, event)
        previous, self.state = self.state, target
        self.history.append((previous, target, event))
        LOG.debug("voice call %s: %s -> %s", event, previous.value, target.value)
        if self.on_transition is not None:
            self.on_transition(previous, target, event)
        return target

    def start_call(self) -> CallState:
        return self._move("start_call", (CallState.IDLE,), CallState.LISTENING)

    def recording_stopped(self, audio_size: int) -> CallState:
        """Recorder finished; clips too small to hold speech send us back to listening."""
        if self.state is CallState.LISTENING and audio_size <= MIN_AUDIO_BYTES:
            return self._move("recording_discarded", (CallState.LISTENING,), CallState.LISTENING)
        return self._move("recording_stopped", (CallState.LISTENING,), CallState.PROCESSING)

    def reply_ready(self, text: str) -> CallState:
        state = self._move("reply_ready", (CallState.PROCESSING,), CallState.SPEAKING)
        self.pending_reply = text
        return state

    def speech_finished(self) -> CallState:
        state = self._move("speech_finished", (CallState.SPEAKING,), CallState.LISTENING)
        self.pending_reply = None
        return state

    def failure(self) -> CallState:
        """Transcription or relay failed; go back to listening so the user can retry."""
        state = self._move("failure", (CallState.PROCESSING, CallState.SPEAKING), CallState.LISTENING)
        self.pending_reply = None
        return state

    def end_call(self) -> CallState:
        state = self._move(
            "end_call",
            (CallState.LISTENING, CallState.PROCESSING, CallState.SPEAKING),
            CallState.IDLE,
        )
        self.pending_reply = None
        return state
