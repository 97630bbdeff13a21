# src/llm/base_client.py — v3
"""Model invocation capability interface.

BaseModelClient turns a normalized (model, action, payload) triple into
exactly one provider call. Concrete adapters implement the provider
calls; action routing, history normalization and empty-result detection
live here so every adapter behaves the same.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from diarygate.errors import DiarygateError
from diarygate.llm.models import (
    Action,
    ChatPayload,
    ChatTurn,
    GenerateContentPayload,
    Payload,
    SpeechPayload,
    parse_action,
    payload_type,
)


class AdapterError(DiarygateError):
    """Provider or network failure forwarded by an adapter."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        status_hint: str | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.status_hint = status_hint
        super().__init__(message)


class EmptyResponseError(AdapterError):
    """Provider answered without any text."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(
            f"AI returned an empty response ({model}).",
            status_hint="empty-response",
        )


class UnknownActionError(DiarygateError):
    """Action is not one of generateContent, chat, speech."""

    def __init__(self, action: object):
        self.action = action
        super().__init__(f"Unknown action: {action}")


class PayloadMismatchError(DiarygateError, TypeError):
    """Payload type does not belong to the requested action."""

    def __init__(self, action: Action, payload: object):
        self.action = action
        self.payload = payload
        super().__init__(
            f"Action {action.value} expects {payload_type(action).__name__}, "
            f"got {type(payload).__name__}"
        )


def check_payload(action: Action, payload: object) -> None:
    """Raise PayloadMismatchError unless ``payload`` fits ``action``."""
    if not isinstance(payload, payload_type(action)):
        raise PayloadMismatchError(action, payload)


def strip_leading_model_turns(history: Sequence[ChatTurn]) -> list[ChatTurn]:
    """Drop model turns before the first user turn.

    A conversation cannot open with a model turn; everything from the
    first user turn onward is kept as is.
    """
    for index, turn in enumerate(history):
        if turn.role == "user":
            return list(history[index:])
    return []


class BaseModelClient(ABC):
    """Unified interface for generative-model providers."""

    async def invoke(self, model: str, action: Action | str, payload: Payload) -> str:
        """Perform one provider call and return its text.

        Raises:
            UnknownActionError: For an unrecognized action (no call made).
            PayloadMismatchError: When the payload does not fit the action
                (no call made).
            EmptyResponseError: When the provider returns no text.
            AdapterError: On any provider or network error.
        """
        action = parse_action(action)
        check_payload(action, payload)

        if isinstance(payload, GenerateContentPayload):
            text = await self.generate_content(model, payload)
        elif isinstance(payload, ChatPayload):
            history = strip_leading_model_turns(payload.history)
            if len(history) != len(payload.history):
                payload = payload.model_copy(update={"history": history})
            text = await self.chat(model, payload)
        else:
            text = await self.speech(model, payload)

        if not text:
            raise EmptyResponseError(model)
        return text

    @abstractmethod
    async def generate_content(
        self, model: str, payload: GenerateContentPayload
    ) -> str | None:
        """Single-turn generation."""

    @abstractmethod
    async def chat(self, model: str, payload: ChatPayload) -> str | None:
        """Multi-turn generation; history is already normalized."""

    async def speech(self, model: str, payload: SpeechPayload) -> str | None:
        """Speech pass-through. Providers with TTS may override."""
        return payload.text

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (google, ...)."""
