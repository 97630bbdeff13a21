# src/client/facade.py — v2
"""Diary service facade — builds feature prompts and calls the gateway.

Usage:
    from diarygate.client.facade import DiaryService
    service = DiaryService(GatewayClient(settings.gateway_url))
    feedback = await service.generate_daily_feedback(log, "philosopher")

Structured features degrade to None when the model output does not
parse; daily feedback and chat replies propagate errors to the caller.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from diarygate.client.gateway_client import GatewayClient, GatewayError
from diarygate.client.models import (
    AIFeedback,
    ChatMessage,
    DailyLog,
    EveningEntry,
    ParallelWorld,
)
from diarygate.client import prompts
from diarygate.config.personalities import get_personality
from diarygate.errors import DiarygateError
from diarygate.llm.models import Action

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

DEFAULT_MODEL = "gemini-3-flash-preview"
_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


class ExtractionError(DiarygateError):
    """Model output did not parse as the agreed structure."""

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"Could not parse {target}: {reason}")


def parse_structured(text: str, model_cls: type[T]) -> T:
    """Parse model output as JSON into ``model_cls``.

    Tolerates a surrounding ```json fence.

    Raises:
        ExtractionError: If the text is not valid JSON for ``model_cls``.
    """
    match = _FENCE_RE.match(text)
    raw = match.group(1) if match else text
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ExtractionError(model_cls.__name__, f"invalid JSON: {exc}") from exc
    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise ExtractionError(model_cls.__name__, str(exc)) from exc


class DiaryService:
    """Client-side entry point for every AI-backed diary feature."""

    def __init__(self, client: GatewayClient, model: str = DEFAULT_MODEL) -> None:
        self._client = client
        self._model = model

    async def generate_daily_feedback(
        self,
        log: DailyLog,
        personality: str = "philosopher",
        history: Sequence[DailyLog] = (),
    ) -> AIFeedback:
        """Feedback on a day, in the chosen personality's voice.

        Raises:
            GatewayError: If the gateway call fails.
            ExtractionError: If the feedback does not parse.
        """
        preset = get_personality(personality)
        text = await self._client.call(
            Action.GENERATE_CONTENT,
            {
                "model": self._model,
                "prompt": prompts.feedback_prompt(log, preset.name, history),
                "generationConfig": {
                    "responseMimeType": "application/json",
                    "responseSchema": prompts.FEEDBACK_SCHEMA,
                    "temperature": 1.1,
                },
                "systemInstruction": preset.system_instruction,
            },
        )
        return parse_structured(text, AIFeedback)

    async def generate_souvenir_image(self, log: DailyLog) -> str | None:
        """Illustration for the day, or None when unavailable."""
        if log.evening is None:
            return None
        try:
            return await self._client.call(
                Action.GENERATE_CONTENT,
                {"model": self._model, "prompt": prompts.souvenir_image_prompt(log)},
            )
        except GatewayError as exc:
            logger.warning("Souvenir image generation failed: %s", exc)
            return None

    async def generate_parallel_story(self, log: DailyLog) -> ParallelWorld | None:
        """What-if story for the day, or None when unavailable."""
        if log.evening is None:
            return None
        try:
            text = await self._client.call(
                Action.GENERATE_CONTENT,
                {
                    "model": self._model,
                    "prompt": prompts.parallel_story_prompt(log),
                    "generationConfig": {
                        "responseMimeType": "application/json",
                        "responseSchema": prompts.PARALLEL_WORLD_SCHEMA,
                        "temperature": 1.3,
                    },
                },
            )
            return parse_structured(text, ParallelWorld)
        except (GatewayError, ExtractionError) as exc:
            logger.warning("Parallel world generation failed: %s", exc)
            return None

    async def generate_chat_reply(
        self, messages: Sequence[ChatMessage], personality: str = "philosopher"
    ) -> str:
        """Next model turn of the diary chat.

        Raises:
            ValueError: If ``messages`` is empty.
            GatewayError: If the gateway call fails.
        """
        if not messages:
            raise ValueError("messages must contain at least the user's message")
        preset = get_personality(personality)
        history = [
            {"role": "user" if m.role == "user" else "model", "text": m.text}
            for m in messages[:-1]
        ]
        while history and history[0]["role"] == "model":
            history.pop(0)

        return await self._client.call(
            Action.CHAT,
            {
                "model": self._model,
                "message": messages[-1].text,
                "history": history,
                "systemInstruction": f"{preset.system_instruction}\n{preset.chat_goal}",
            },
        )

    async def extract_log_from_chat(
        self, messages: Sequence[ChatMessage]
    ) -> EveningEntry | None:
        """Evening entry distilled from a chat transcript, or None."""
        try:
            text = await self._client.call(
                Action.GENERATE_CONTENT,
                {
                    "model": self._model,
                    "prompt": prompts.extraction_prompt(messages),
                    "generationConfig": {
                        "responseMimeType": "application/json",
                        "responseSchema": prompts.EVENING_ENTRY_SCHEMA,
                    },
                },
            )
            return parse_structured(text, EveningEntry)
        except (GatewayError, ExtractionError) as exc:
            logger.warning("Extraction error: %s", exc)
            return None

    async def generate_voice_audio(
        self, text: str, personality: str = "philosopher"
    ) -> str | None:
        """Speech for ``text`` in the personality's voice, or None when unavailable."""
        if not text:
            return None
        preset = get_personality(personality)
        try:
            return await self._client.call(
                Action.SPEECH,
                {"model": self._model, "text": text, "voice": preset.name},
            )
        except GatewayError as exc:
            logger.warning("Voice audio generation failed: %s", exc)
            return None
