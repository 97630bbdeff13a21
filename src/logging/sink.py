# src/logging/sink.py — v2
"""Fire-and-forget remote log sink.

Events are POSTed to an external collector (a spreadsheet/Drive webhook in
production) as {auth_token, app_name, level, message, details}. Each send
runs as a detached asyncio task; failures are logged locally and never
reach the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Literal

import httpx

from diarygate.config.settings import Settings

logger = logging.getLogger(__name__)

SinkLevel = Literal["INFO", "WARN", "ERROR"]


class RemoteLogSink:
    """Best-effort event and content archival sink."""

    def __init__(
        self,
        url: str = "",
        auth_token: str = "",
        app_name: str = "6min",
        timeout_s: float = 5.0,
        enabled: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._auth_token = auth_token
        self._app_name = app_name
        self._timeout_s = timeout_s
        self._enabled = enabled and bool(url)
        self._transport = transport
        self._pending: set[asyncio.Task[None]] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> RemoteLogSink:
        return cls(
            url=settings.log_sink_url,
            auth_token=settings.log_sink_token,
            app_name=settings.log_sink_app_name,
            timeout_s=settings.log_sink_timeout_s,
            enabled=settings.log_sink_enabled,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def pending(self) -> int:
        return len(self._pending)

    def emit(self, level: SinkLevel, message: str, details: Any = None) -> None:
        """Queue a log event. Returns immediately."""
        body: dict[str, Any] = {
            "auth_token": self._auth_token,
            "app_name": self._app_name,
            "level": level,
            "message": message,
        }
        if details is not None:
            body["details"] = details
        self._schedule(body)

    def save_content(self, content_type: str, title: str, content: str) -> None:
        """Queue a content archival request. Returns immediately."""
        self._schedule(
            {
                "auth_token": self._auth_token,
                "app_name": self._app_name,
                "action": "content",
                "content_type": content_type,
                "title": title,
                "content": content,
            }
        )

    async def aclose(self) -> None:
        """Wait for in-flight sends to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def _schedule(self, body: dict[str, Any]) -> None:
        if not self._enabled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; dropping sink event")
            return
        task = loop.create_task(self._send(body))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, body: dict[str, Any]) -> None:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.post(self._url, json=body)
            if not response.is_success:
                logger.warning(
                    "Log sink rejected event: HTTP %s", response.status_code
                )
        except httpx.HTTPError as exc:
            logger.warning("Failed to send log to sink: %s", exc)
        except Exception as exc:  # noqa: BLE001 - sink must never raise
            logger.warning("Unexpected log sink failure: %s", exc)
