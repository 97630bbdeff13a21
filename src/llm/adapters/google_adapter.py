# src/llm/adapters/google_adapter.py — v3
"""Google Gemini adapter implementing BaseModelClient.

Uses the google-generativeai SDK. Provider exceptions from
google.api_core carry an HTTP status code, which is forwarded on
AdapterError so the retry layer can classify on structure rather than
on message text.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from diarygate.llm.base_client import AdapterError, BaseModelClient
from diarygate.llm.models import ChatPayload, GenerateContentPayload
from diarygate.llm.retry import status_hint_for

logger = logging.getLogger(__name__)


class GoogleAdapter(BaseModelClient):
    """Google Gemini adapter."""

    def __init__(self, api_key: str = "", timeout_s: float = 60.0, **kwargs: Any):
        self._api_key = api_key
        self._timeout_s = timeout_s

    async def generate_content(
        self, model: str, payload: GenerateContentPayload
    ) -> str | None:
        gen_config: dict[str, Any] = {}
        cfg = payload.generation_config
        if cfg is not None:
            if cfg.response_schema is not None:
                gen_config["response_mime_type"] = (
                    cfg.response_mime_type or "application/json"
                )
                gen_config["response_schema"] = cfg.response_schema
            elif cfg.response_mime_type:
                gen_config["response_mime_type"] = cfg.response_mime_type
            if cfg.temperature is not None:
                gen_config["temperature"] = cfg.temperature

        contents = [{"role": "user", "parts": [{"text": payload.prompt}]}]
        return await self._generate(
            model, contents, payload.system_instruction, gen_config or None
        )

    async def chat(self, model: str, payload: ChatPayload) -> str | None:
        contents = [
            {"role": turn.role, "parts": [{"text": turn.text}]}
            for turn in payload.history
        ]
        contents.append({"role": "user", "parts": [{"text": payload.message}]})
        return await self._generate(model, contents, payload.system_instruction, None)

    async def list_models(self) -> list[str]:
        """Names of models that support generateContent."""
        import google.generativeai as genai

        def _collect() -> list[str]:
            # The SDK pages lazily, so iteration blocks as well.
            return [
                m.name
                for m in genai.list_models()
                if "generateContent" in getattr(m, "supported_generation_methods", [])
            ]

        genai.configure(api_key=self._api_key)
        try:
            return await asyncio.to_thread(_collect)
        except Exception as exc:
            raise _wrap(exc) from exc

    async def _generate(
        self,
        model_name: str,
        contents: list[dict[str, Any]],
        system: str | None,
        gen_config: dict[str, Any] | None,
    ) -> str | None:
        import google.generativeai as genai

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(model_name, system_instruction=system)

        try:
            resp = await model.generate_content_async(
                contents,
                generation_config=gen_config,
                request_options={"timeout": self._timeout_s},
            )
        except Exception as exc:
            raise _wrap(exc) from exc

        try:
            return resp.text
        except ValueError:
            # Blocked or candidate-less responses have no text accessor.
            logger.debug("Gemini %s returned no text parts", model_name)
            return None

    @property
    def provider_name(self) -> str:
        return "google"


def _wrap(exc: Exception) -> AdapterError:
    """Convert an SDK / transport exception into an AdapterError."""
    from google.api_core import exceptions as gexc

    status_code: int | None = None
    message = str(exc) or type(exc).__name__
    if isinstance(exc, gexc.GoogleAPICallError):
        code = exc.code
        status_code = int(code) if code is not None else None
        message = exc.message or message
    elif isinstance(exc, (TimeoutError, gexc.RetryError)):
        status_code = 504
    return AdapterError(
        message,
        status_code=status_code,
        status_hint=status_hint_for(status_code, message),
    )
