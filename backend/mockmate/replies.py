from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_FEEDBACK = re.compile(r"Feedback:([\s\S]*?)Next Question:", re.IGNORECASE)
_NEXT_QUESTION = re.compile(r"Next Question:([\s\S]*)", re.IGNORECASE)
_FEEDBACK_MARKER = re.compile(r"Feedback:", re.IGNORECASE)


@dataclass(frozen=True)
class ReplySections:
    feedback: Optional[str]
    next_question: str


def split_reply(text: str) -> ReplySections:
    """Split a model reply on its ``Feedback:`` / ``Next Question:`` markers."""
    text = text or ""
    feedback_match = _FEEDBACK.search(text)
    question_match = _NEXT_QUESTION.search(text)

    feedback = feedback_match.group(1).strip() if feedback_match else None
    if question_match:
        next_question = question_match.group(1).strip()
    else:
        next_question = _FEEDBACK_MARKER.sub("", text, count=1).strip()
    return ReplySections(feedback=feedback or None, next_question=next_question)
