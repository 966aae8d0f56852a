"""
Wire shapes shared by the relay endpoints and the client.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Speaker = Literal["user", "model"]


class InlineData(BaseModel):
    mime_type: str
    data: str  # base64


class Part(BaseModel):
    """One element of a turn's ``parts``; exactly one variant is set."""

    text: Optional[str] = None
    inline_data: Optional[InlineData] = None

    @model_validator(mode="after")
    def _one_variant(self) -> "Part":
        if (self.text is None) == (self.inline_data is None):
            raise ValueError("part must carry exactly one of 'text' or 'inline_data'")
        return self


class Turn(BaseModel):
    role: Speaker
    parts: List[Part] = Field(..., min_length=1)

    @classmethod
    def user_text(cls, text: str) -> "Turn":
        return cls(role="user", parts=[Part(text=text)])

    @classmethod
    def model_text(cls, text: str) -> "Turn":
        return cls(role="model", parts=[Part(text=text)])

    @classmethod
    def user_audio(cls, data: str, mime_type: str) -> "Turn":
        return cls(role="user", parts=[Part(inline_data=InlineData(mime_type=mime_type, data=data))])

    @property
    def text(self) -> Optional[str]:
        for part in self.parts:
            if part.text is not None:
                return part.text
        return None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class InterviewRequest(BaseModel):
    history: List[Turn]
    role: str


class InterviewReply(BaseModel):
    text: str


class TranscribeJsonRequest(BaseModel):
    audio: Optional[str] = None
    mime_type: Optional[str] = Field(default=None, alias="mimeType")


class TranscribeReply(BaseModel):
    text: str
    success: bool = True


class ErrorReply(BaseModel):
    error: str


class SaveInterviewRequest(BaseModel):
    role: str
    history: List[Turn]


class SavedInterview(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(..., alias="userId")
    role: str
    timestamp: datetime
    history: List[Turn]

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
