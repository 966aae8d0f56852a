import json
from typing import Any, Dict, List, Optional

import httpx

from mockmate.config import Settings
from mockmate.main import create_app
from mockmate.repository import InMemoryInterviewRepository


def gemini_reply(text: str) -> Dict[str, Any]:
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": "STOP",
            }
        ]
    }


class FakeProvider:
    """Scripted stand-in for the Gemini endpoint; records every outbound request."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses) or [httpx.Response(200, json=gemini_reply("Next Question: Hi?"))]
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def payload(self, index: int = -1) -> Dict[str, Any]:
        return json.loads(self.requests[index].content)


def make_app(provider: Optional[FakeProvider] = None, api_key: Optional[str] = "test-key", repository=None):
    settings = Settings(gemini_api_key=api_key)
    return create_app(
        settings=settings,
        repository=repository or InMemoryInterviewRepository(),
        transport=(provider or FakeProvider()).transport,
    )


def app_client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
