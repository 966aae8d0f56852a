"""
FastAPI relay for the mock-interview chat.
Exposes the interview and transcription relays, a saved-history store and a
simple health check.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SchemaError

from mockmate.config import Settings, load_settings
from mockmate.db import Database
from mockmate.errors import RelayError, ValidationError
from mockmate.gemini import GeminiClient
from mockmate.logging_setup import setup_logging
from mockmate.relay import (
    DEFAULT_AUDIO_MIME,
    audio_to_base64,
    check_base64,
    relay_interview,
    transcribe_audio,
    validate_interview_body,
)
from mockmate.repository import InterviewRepository, SqlInterviewRepository
from mockmate.schemas import InterviewReply, SaveInterviewRequest, TranscribeJsonRequest, TranscribeReply

LOG = logging.getLogger("mockmate.api")


def get_gemini(request: Request) -> GeminiClient:
    return request.app.state.gemini


def get_repository(request: Request) -> InterviewRepository:
    return request.app.state.repository


async def read_json(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Request body must be valid JSON.") from exc


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[InterviewRepository] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or load_settings()
    repository = repository or SqlInterviewRepository(Database(settings.database_url))

    app = FastAPI(title="MockMate Interview Relay", version="0.1.0")
    app.state.settings = settings
    app.state.gemini = GeminiClient(settings, transport=transport)
    app.state.repository = repository

    @app.on_event("startup")
    async def on_startup() -> None:
        setup_logging(settings.log_level)
        await repository.init()
        if not settings.has_credential:
            LOG.warning("GEMINI_API_KEY not set; every relay call will fail with 500")

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await repository.close()

    # CORS for local dev; adjust allowed origins for prod if needed.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        LOG.info("%s: %s %s -> %s %s", exc.log_event, request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/interview")
    async def interview(request: Request, gemini: GeminiClient = Depends(get_gemini)) -> Dict[str, Any]:
        gemini.ensure_configured()
        history, role = validate_interview_body(await read_json(request))
        text = await relay_interview(gemini, history, role)
        return InterviewReply(text=text).model_dump()

    @app.post("/api/transcribe")
    async def transcribe(request: Request, gemini: GeminiClient = Depends(get_gemini)) -> Dict[str, Any]:
        """Speech-to-text via the provider; accepts a multipart upload or base64 JSON."""
        gemini.ensure_configured()
        content_type = request.headers.get("content-type", "")

        if "multipart/form-data" in content_type:
            form = await request.form()
            upload = form.get("audio")
            if upload is None or isinstance(upload, str):
                raise ValidationError("No audio file provided")
            raw = await upload.read()
            if not raw:
                raise ValidationError("No audio file provided")
            audio_b64 = audio_to_base64(raw)
            mime_type = upload.content_type or DEFAULT_AUDIO_MIME
        elif "application/json" in content_type:
            body = await read_json(request)
            try:
                payload = TranscribeJsonRequest.model_validate(body)
            except SchemaError as exc:
                raise ValidationError("No audio data provided") from exc
            if not payload.audio:
                raise ValidationError("No audio data provided")
            audio_b64 = check_base64(payload.audio)
            mime_type = payload.mime_type or DEFAULT_AUDIO_MIME
        else:
            raise ValidationError("Invalid content type. Use multipart/form-data or application/json")

        text = await transcribe_audio(gemini, audio_b64, mime_type)
        return TranscribeReply(text=text).model_dump()

    @app.post("/api/interviews", status_code=201)
    async def save_interview(
        request: Request,
        user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
        repo: InterviewRepository = Depends(get_repository),
    ) -> Dict[str, Any]:
        try:
            payload = SaveInterviewRequest.model_validate(await read_json(request))
        except SchemaError as exc:
            raise ValidationError(f"Invalid interview: {exc.errors()[0]['msg']}") from exc
        if not payload.role.strip():
            raise ValidationError("Missing or empty 'role'.")
        if not payload.history:
            raise ValidationError("Cannot save an empty interview.")
        saved = await repo.save(user_id or settings.default_user_id, payload.role.strip(), payload.history)
        return saved.to_wire()

    @app.get("/api/interviews")
    async def list_interviews(
        user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
        repo: InterviewRepository = Depends(get_repository),
    ) -> Dict[str, Any]:
        items = await repo.list(user_id or settings.default_user_id)
        return {"items": [item.to_wire() for item in items]}

    return app


app = create_app()
