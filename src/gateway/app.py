# src/gateway/app.py — v2
"""HTTP gateway: POST {action, payload} -> {result} | {error, details}.

The gateway validates the request, checks the provider credential on
every call, hands the work to the Dispatcher and maps the outcome to an
HTTP response. Remote log events are fire-and-forget and cannot change
the response.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from diarygate.config.settings import Settings
from diarygate.gateway.errors import (
    CONFIG_ERROR_MESSAGE,
    INTERNAL_ERROR_MESSAGE,
    error_response,
    user_message_for,
)
from diarygate.llm.base_client import BaseModelClient, UnknownActionError
from diarygate.llm.client_factory import create_model_client
from diarygate.llm.dispatcher import Dispatcher, DispatchError, Sleep
from diarygate.llm.models import Attempt, parse_action, parse_payload
from diarygate.logging.context import clear_context, set_request_context
from diarygate.logging.sink import RemoteLogSink, SinkLevel
from diarygate.version import __version__

logger = logging.getLogger(__name__)

GATEWAY_PATHS = ("/api/gemini", "/.netlify/functions/gemini")
SAVE_CONTENT_PATH = "/api/save-content"
_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class _EmptyPreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware whose preflight answer is always an empty 200.

    The CORS headers still decide whether the browser proceeds; the status
    and body stay those of the gateway OPTIONS contract.
    """

    def preflight_response(self, request_headers) -> Response:
        response = super().preflight_response(request_headers)
        headers = {
            key: value
            for key, value in response.headers.items()
            if key not in ("content-length", "content-type")
        }
        return Response(status_code=200, headers=headers)


def create_app(
    settings: Settings | None = None,
    client: BaseModelClient | None = None,
    sink: RemoteLogSink | None = None,
    sleep: Sleep = asyncio.sleep,
) -> FastAPI:
    """Build the gateway application.

    Args:
        settings: Application settings. Loaded from .env if None.
        client: Model client to use. Built per request from settings if None.
        sink: Remote log sink. Built from settings if None.
        sleep: Backoff sleep used by the dispatcher.
    """
    settings = settings or Settings()
    sink = sink or RemoteLogSink.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await sink.aclose()

    app = FastAPI(title="diarygate", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.client = client
    app.state.sink = sink
    app.state.sleep = sleep

    app.add_middleware(
        _EmptyPreflightCORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["*"],
    )

    for path in GATEWAY_PATHS:
        app.add_api_route(path, gemini_endpoint, methods=_ALL_METHODS)
    app.add_api_route(SAVE_CONTENT_PATH, save_content_endpoint, methods=_ALL_METHODS)
    app.add_api_route("/healthz", healthz, methods=["GET"])

    return app


async def healthz() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


async def gemini_endpoint(request: Request) -> Response:
    """Single action endpoint for generateContent, chat and speech."""
    if request.method == "OPTIONS":
        return Response(status_code=200)
    if request.method != "POST":
        return error_response(405, "Method Not Allowed")

    settings: Settings = request.app.state.settings
    sink: RemoteLogSink = request.app.state.sink
    request_id = uuid.uuid4().hex[:12]
    set_request_context(request_id)

    try:
        if not settings.has_credential:
            logger.error("GEMINI_API_KEY is missing")
            return error_response(500, CONFIG_ERROR_MESSAGE, "GEMINI_API_KEY is not set")

        body = await _read_json_body(request)
        if body is None:
            return error_response(400, "Invalid JSON body")

        raw_action = body.get("action")
        raw_payload = body.get("payload")
        if not raw_action or not raw_payload:
            return error_response(400, "Missing action or payload")
        if not isinstance(raw_payload, dict):
            return error_response(400, "Invalid payload", "payload must be a JSON object")

        try:
            action = parse_action(raw_action)
        except UnknownActionError as exc:
            return error_response(400, str(exc))

        try:
            payload = parse_payload(action, raw_payload)
        except ValidationError as exc:
            return error_response(400, "Invalid payload", _validation_summary(exc))

        set_request_context(request_id, action.value)
        model = getattr(payload, "model", None) or settings.llm_default_model
        logger.info("Processing action: %s, model: %s", action.value, model)
        _emit(sink, "INFO", f"API call: {action.value}", {"model": model, "request_id": request_id})

        try:
            client = request.app.state.client or create_model_client(
                settings.llm_provider, settings
            )
            dispatcher = Dispatcher.from_settings(
                client,
                settings,
                sleep=request.app.state.sleep,
                observer=lambda attempt: _observe(sink, action.value, attempt),
            )
            result = await dispatcher.dispatch(action, payload)
        except DispatchError as exc:
            logger.error("Dispatch failed on %s: %s", exc.model, exc.message)
            _emit(
                sink,
                "ERROR",
                f"API failed: {action.value}",
                {"model": exc.model, "error": exc.message, "attempts": len(exc.attempts)},
            )
            return error_response(500, user_message_for(exc), exc.message)

        _emit(
            sink,
            "INFO",
            f"API success: {action.value}",
            {"model": result.model, "attempts": len(result.attempts)},
        )
        return JSONResponse({"result": result.text})

    except Exception as exc:
        logger.exception("Gateway critical error")
        _emit(sink, "ERROR", "API Critical Error", {"error": repr(exc)})
        return error_response(500, INTERNAL_ERROR_MESSAGE, str(exc))
    finally:
        clear_context()


async def save_content_endpoint(request: Request) -> Response:
    """Archive a piece of generated content through the log sink."""
    if request.method == "OPTIONS":
        return Response(status_code=200)
    if request.method != "POST":
        return error_response(405, "Method Not Allowed")

    body = await _read_json_body(request)
    if body is None:
        return error_response(400, "Invalid JSON body")

    content_type = body.get("contentType")
    title = body.get("title")
    content = body.get("content")
    if not content_type or not title or not content:
        return error_response(400, "Missing required fields")

    sink: RemoteLogSink = request.app.state.sink
    try:
        sink.save_content(str(content_type), str(title), str(content))
    except Exception as exc:  # noqa: BLE001 - archival is best effort
        logger.warning("Content archival could not be scheduled: %s", exc)
    return JSONResponse({"ok": True})


async def _read_json_body(request: Request) -> dict[str, Any] | None:
    """Parse the request body as a JSON object, or return None."""
    raw = await request.body()
    if not raw:
        return None
    try:
        body = json.loads(raw)
        # Some hosts deliver the body as a JSON-encoded string.
        if isinstance(body, str):
            body = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Failed to parse body: %s", exc)
        return None
    return body if isinstance(body, dict) else None


def _validation_summary(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )


def _observe(sink: RemoteLogSink, action: str, attempt: Attempt) -> None:
    if attempt.outcome == "success":
        return
    level: SinkLevel = "WARN" if attempt.outcome == "transient" else "ERROR"
    _emit(
        sink,
        level,
        f"Gemini failure: {attempt.model} (attempt {attempt.attempt_number})",
        {"error": attempt.detail, "action": action},
    )


def _emit(sink: RemoteLogSink, level: SinkLevel, message: str, details: Any = None) -> None:
    try:
        sink.emit(level, message, details)
    except Exception as exc:  # noqa: BLE001 - logging must not alter the response
        logger.debug("Log sink emit failed: %s", exc)
