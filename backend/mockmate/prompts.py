from __future__ import annotations

from typing import Any, Dict, List

SEED_TURN_TEXT = "Start the interview"

TRANSCRIBE_INSTRUCTION = "Transcribe this audio to text. Only return the transcribed text, nothing else."

INTERVIEW_GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 1024,
}

TRANSCRIBE_GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.1,
    "maxOutputTokens": 1024,
}

SAFETY_SETTINGS: List[Dict[str, str]] = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


def interviewer_instruction(role: str) -> str:
    return (
        f"You are an expert AI interviewer. Your current task is to conduct a mock job interview for the role of a {role}.\n"
        "Follow these rules strictly:\n"
        "1. Start by asking a single, concise introductory question.\n"
        "2. Base the difficulty and content on common industry standards for this role.\n"
        "3. After the user provides an answer, you MUST provide concise, constructive feedback on their previous "
        "answer AND then immediately ask the next logical follow-up question to drive the conversation forward.\n"
        '4. Always format your response with a "Feedback:" section followed by a "Next Question:" section.'
    )


def system_instruction(role: str) -> Dict[str, Any]:
    return {"parts": [{"text": interviewer_instruction(role)}]}
