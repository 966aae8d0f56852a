"""
Saved-interview store.

``InterviewRepository`` is the seam; the app gets one instance injected at
construction time. ``InMemoryInterviewRepository`` keeps everything on the
instance, ``SqlInterviewRepository`` writes through SQLModel tables.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timezone
from itertools import groupby
from typing import Dict, List, Sequence

from sqlalchemy import select

from mockmate.db import Database
from mockmate.models import InterviewRecord, TurnRecord, utcnow
from mockmate.schemas import InlineData, Part, SavedInterview, Turn

LOG = logging.getLogger("mockmate.repository")


class InterviewRepository(ABC):
    @abstractmethod
    async def save(self, user_id: str, role: str, history: Sequence[Turn]) -> SavedInterview:
        ...

    @abstractmethod
    async def list(self, user_id: str) -> List[SavedInterview]:
        ...

    async def init(self) -> None:
        return None

    async def close(self) -> None:
        return None


class InMemoryInterviewRepository(InterviewRepository):
    def __init__(self) -> None:
        self._by_user: Dict[str, List[SavedInterview]] = defaultdict(list)

    async def save(self, user_id: str, role: str, history: Sequence[Turn]) -> SavedInterview:
        saved = SavedInterview(
            id=str(uuid.uuid4()),
            user_id=user_id,
            role=role,
            timestamp=utcnow(),
            history=[turn.model_copy(deep=True) for turn in history],
        )
        self._by_user[user_id].append(saved)
        LOG.info("Saved %s turns for user %s (in-memory)", len(history), user_id)
        return saved

    async def list(self, user_id: str) -> List[SavedInterview]:
        return [item.model_copy(deep=True) for item in self._by_user.get(user_id, [])]


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they were written as UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _turn_rows(interview_id: str, history: Sequence[Turn]) -> List[TurnRecord]:
    rows: List[TurnRecord] = []
    for position, turn in enumerate(history):
        for part_index, part in enumerate(turn.parts):
            rows.append(
                TurnRecord(
                    interview_id=interview_id,
                    position=position,
                    part_index=part_index,
                    speaker=turn.role,
                    text=part.text,
                    mime_type=part.inline_data.mime_type if part.inline_data else None,
                    audio_b64=part.inline_data.data if part.inline_data else None,
                )
            )
    return rows


def _row_to_part(row: TurnRecord) -> Part:
    if row.audio_b64 is not None:
        return Part(inline_data=InlineData(mime_type=row.mime_type or "audio/webm", data=row.audio_b64))
    return Part(text=row.text or "")


def _rows_to_turns(rows: Sequence[TurnRecord]) -> List[Turn]:
    """Rows must arrive ordered by ``(position, part_index)``."""
    turns: List[Turn] = []
    for _, group in groupby(rows, key=lambda row: row.position):
        group_rows = list(group)
        turns.append(Turn(role=group_rows[0].speaker, parts=[_row_to_part(row) for row in group_rows]))
    return turns


class SqlInterviewRepository(InterviewRepository):
    def __init__(self, database: Database) -> None:
        self.database = database

    async def init(self) -> None:
        await self.database.init()

    async def close(self) -> None:
        await self.database.dispose()

    async def save(self, user_id: str, role: str, history: Sequence[Turn]) -> SavedInterview:
        record = InterviewRecord(id=str(uuid.uuid4()), user_id=user_id, role=role, n_turns=len(history))
        async with self.database.session() as session:
            session.add(record)
            # Parent row must exist before the turns reference it.
            await session.flush()
            session.add_all(_turn_rows(record.id, history))
            await session.commit()
        LOG.info("Saved %s turns for user %s (interview=%s)", len(history), user_id, record.id)
        return SavedInterview(
            id=record.id,
            user_id=user_id,
            role=role,
            timestamp=_as_utc(record.created_at),
            history=[turn.model_copy(deep=True) for turn in history],
        )

    async def list(self, user_id: str) -> List[SavedInterview]:
        async with self.database.session() as session:
            records = (
                await session.execute(
                    select(InterviewRecord)
                    .where(InterviewRecord.user_id == user_id)
                    .order_by(InterviewRecord.created_at.asc())
                )
            ).scalars().all()
            items: List[SavedInterview] = []
            for record in records:
                rows = (
                    await session.execute(
                        select(TurnRecord)
                        .where(TurnRecord.interview_id == record.id)
                        .order_by(TurnRecord.position.asc(), TurnRecord.part_index.asc())
                    )
                ).scalars().all()
                items.append(
                    SavedInterview(
                        id=record.id,
                        user_id=record.user_id,
                        role=record.role,
                        timestamp=_as_utc(record.created_at),
                        history=_rows_to_turns(rows),
                    )
                )
            return items
