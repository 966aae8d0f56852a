from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InterviewRecord(SQLModel, table=True):
    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    role: str
    n_turns: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class TurnRecord(SQLModel, table=True):
    """One part of one turn; a turn with several parts spans several rows."""

    id: Optional[int] = Field(default=None, primary_key=True)
    interview_id: str = Field(foreign_key="interviewrecord.id", index=True)
    position: int
    part_index: int = Field(default=0)
    speaker: str  # "user" | "model"
    text: Optional[str] = Field(default=None)
    mime_type: Optional[str] = Field(default=None)
    audio_b64: Optional[str] = Field(default=None)
