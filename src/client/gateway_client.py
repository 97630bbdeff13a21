# src/client/gateway_client.py — v1
"""HTTP client for the gateway endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from diarygate.errors import DiarygateError
from diarygate.llm.models import Action, GatewayRequest

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to call the AI gateway"
TIMEOUT_MESSAGE = "The request timed out. Please try again."


class GatewayError(DiarygateError):
    """Gateway call failed; ``message`` is safe to show to the user."""

    def __init__(self, message: str, status_code: int | None = None, details: str | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class GatewayClient:
    """POST {action, payload} to the gateway and return ``result``."""

    def __init__(
        self,
        url: str,
        timeout_s: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout_s = timeout_s
        self._transport = transport

    async def call(self, action: Action | str, payload: dict[str, Any]) -> str:
        """Run one gateway action.

        Raises:
            GatewayError: On transport failure or a non-2xx response.
        """
        body = GatewayRequest(action=action, payload=payload).model_dump(mode="json")
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, transport=self._transport
            ) as client:
                response = await client.post(self._url, json=body)
        except httpx.TimeoutException as exc:
            raise GatewayError(TIMEOUT_MESSAGE, details=str(exc)) from exc
        except httpx.HTTPError as exc:
            raise GatewayError(DEFAULT_ERROR_MESSAGE, details=str(exc)) from exc

        if not response.is_success:
            raise _error_from_response(response)

        try:
            data = response.json()
        except ValueError as exc:
            raise GatewayError(
                DEFAULT_ERROR_MESSAGE, response.status_code, "non-JSON success body"
            ) from exc
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, str):
            raise GatewayError(DEFAULT_ERROR_MESSAGE, response.status_code, "missing result")
        return result


def _error_from_response(response: httpx.Response) -> GatewayError:
    status = response.status_code
    try:
        data = response.json()
    except ValueError:
        # Host timeout pages are HTML, not JSON.
        if status in (502, 504):
            return GatewayError(TIMEOUT_MESSAGE, status)
        return GatewayError(DEFAULT_ERROR_MESSAGE, status)
    if not isinstance(data, dict):
        return GatewayError(DEFAULT_ERROR_MESSAGE, status)
    logger.warning("Gateway returned %s: %s", status, data.get("details"))
    return GatewayError(
        data.get("error") or DEFAULT_ERROR_MESSAGE, status, data.get("details")
    )
