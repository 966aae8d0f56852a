import asyncio

import httpx
import pytest

from fakes import FakeProvider, app_client, gemini_reply, make_app
from mockmate.client import (
    AudioContent,
    EmptyTurnError,
    InterviewNotStartedError,
    InterviewSession,
    RelayClient,
    RelayResult,
    TurnInFlightError,
)
from mockmate.prompts import SEED_TURN_TEXT
from mockmate.repository import InMemoryInterviewRepository

FIRST_QUESTION = "Feedback: N/A\n\nNext Question: Walk me through a service you built."
SECOND_REPLY = "Feedback: Clear and concrete.\n\nNext Question: How did you test it?"


def test_start_then_send_builds_model_user_model_transcript():
    provider = FakeProvider(
        httpx.Response(200, json=gemini_reply(FIRST_QUESTION)),
        httpx.Response(200, json=gemini_reply(SECOND_REPLY)),
    )
    spoken = []

    async def _run():
        async with app_client(make_app(provider)) as http:
            session = InterviewSession(RelayClient(http), "Backend Engineer", on_model_turn=spoken.append)
            started = await session.start_interview()
            sent = await session.send_turn("I used Go for the service")
            return session, started, sent

    session, started, sent = asyncio.run(_run())

    assert started.ok and sent.ok
    assert [turn.role for turn in session.conversation] == ["model", "user", "model"]
    assert [turn.text for turn in session.conversation] == [FIRST_QUESTION, "I used Go for the service", SECOND_REPLY]
    assert spoken == [FIRST_QUESTION, SECOND_REPLY]

    assert provider.payload(0)["contents"] == [{"role": "user", "parts": [{"text": SEED_TURN_TEXT}]}]
    assert provider.payload(1)["contents"] == [
        {"role": "model", "parts": [{"text": FIRST_QUESTION}]},
        {"role": "user", "parts": [{"text": "I used Go for the service"}]},
    ]
    assert "Backend Engineer" in provider.payload(1)["systemInstruction"]["parts"][0]["text"]


def test_failed_send_keeps_optimistic_user_turn():
    provider = FakeProvider(
        httpx.Response(200, json=gemini_reply(FIRST_QUESTION)),
        httpx.Response(503, json={"error": {"message": "The model is overloaded."}}),
    )

    async def _run():
        async with app_client(make_app(provider)) as http:
            session = InterviewSession(RelayClient(http), "Backend Engineer")
            await session.start_interview()
            before = len(session.conversation)
            result = await session.send_turn("My answer")
            return session, before, result

    session, before, result = asyncio.run(_run())

    assert not result.ok
    assert result.error == "The model is overloaded."
    assert result.status == 503
    assert session.last_error == "The model is overloaded."
    assert len(session.conversation) == before + 1
    assert session.conversation[-1].role == "user"
    assert session.conversation[-1].text == "My answer"


def test_failed_start_leaves_conversation_empty():
    provider = FakeProvider(httpx.Response(200, json={"candidates": []}))

    async def _run():
        async with app_client(make_app(provider)) as http:
            session = InterviewSession(RelayClient(http), "QA Lead")
            result = await session.start_interview()
            return session, result

    session, result = asyncio.run(_run())

    assert result.error == "AI did not generate a valid response."
    assert session.conversation == []
    assert not session.started


def test_transport_failure_becomes_client_error():
    def _refuse(request):
        raise httpx.ConnectError("connection refused")

    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(_refuse), base_url="http://relay") as http:
            return await RelayClient(http).call_interview([], "QA")

    result = asyncio.run(_run())

    assert result.text is None
    assert result.error.startswith("Network or Client Error:")


def test_send_requires_started_interview_and_content():
    class _StubRelay:
        def __init__(self):
            self.calls = 0

        async def call_interview(self, history, role):
            self.calls += 1
            return RelayResult(text="Next Question: Why QA?", status=200)

    async def _run():
        relay = _StubRelay()
        session = InterviewSession(relay, "QA")
        with pytest.raises(InterviewNotStartedError):
            await session.send_turn("hello")
        await session.start_interview()
        with pytest.raises(EmptyTurnError):
            await session.send_turn("   ")
        with pytest.raises(EmptyTurnError):
            await session.send_turn(AudioContent(data=""))
        return session, relay

    session, relay = asyncio.run(_run())
    assert relay.calls == 1
    assert len(session.conversation) == 1


def test_audio_turn_is_sent_as_inline_data():
    provider = FakeProvider(
        httpx.Response(200, json=gemini_reply(FIRST_QUESTION)),
        httpx.Response(200, json=gemini_reply(SECOND_REPLY)),
    )

    async def _run():
        async with app_client(make_app(provider)) as http:
            session = InterviewSession(RelayClient(http), "Backend Engineer")
            await session.start_interview()
            await session.send_turn(AudioContent(data="AAEC", mime_type="audio/webm"))
            return session

    session = asyncio.run(_run())

    assert provider.payload(1)["contents"][1] == {
        "role": "user",
        "parts": [{"inline_data": {"mime_type": "audio/webm", "data": "AAEC"}}],
    }
    assert len(session.conversation) == 3


def test_only_one_relay_call_in_flight():
    class _GatedRelay:
        def __init__(self):
            self.gate = asyncio.Event()
            self.calls = 0

        async def call_interview(self, history, role):
            self.calls += 1
            await self.gate.wait()
            return RelayResult(text=FIRST_QUESTION, status=200)

    async def _run():
        relay = _GatedRelay()
        session = InterviewSession(relay, "SRE")
        task = asyncio.create_task(session.start_interview())
        await asyncio.sleep(0)

        assert session.busy
        with pytest.raises(TurnInFlightError):
            await session.start_interview()
        with pytest.raises(TurnInFlightError):
            await session.send_turn("too early")

        relay.gate.set()
        await task
        return session, relay

    session, relay = asyncio.run(_run())

    assert relay.calls == 1
    assert not session.busy
    assert len(session.conversation) == 1


def test_session_transcript_can_be_saved():
    provider = FakeProvider(httpx.Response(200, json=gemini_reply(FIRST_QUESTION)))
    repo = InMemoryInterviewRepository()

    async def _run():
        async with app_client(make_app(provider)) as http:
            session = InterviewSession(RelayClient(http), "Backend Engineer")
            await session.start_interview()
            saved = await session.save(repo, "user-1")
            return saved, await repo.list("user-1")

    saved, items = asyncio.run(_run())

    assert saved.role == "Backend Engineer"
    assert [item.id for item in items] == [saved.id]
    assert items[0].history[0].text == FIRST_QUESTION


def test_blank_role_is_rejected():
    with pytest.raises(ValueError):
        InterviewSession(object(), "  ")


def test_role_is_fixed_for_the_session():
    session = InterviewSession(object(), " QA Engineer ")

    assert session.role == "QA Engineer"
    with pytest.raises(AttributeError):
        session.role = "Designer"
    assert session.role == "QA Engineer"


def test_relay_client_transcribe_returns_trimmed_text():
    provider = FakeProvider(httpx.Response(200, json=gemini_reply(" I shipped it on time. ")))

    async def _run():
        async with app_client(make_app(provider)) as http:
            return await RelayClient(http).transcribe(AudioContent(data="AAEC", mime_type="audio/ogg"))

    result = asyncio.run(_run())

    assert result.ok
    assert result.text == "I shipped it on time."
    assert provider.payload()["contents"][0]["parts"][0]["inline_data"]["mime_type"] == "audio/ogg"
