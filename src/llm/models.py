# src/llm/models.py — v3
"""Gateway request types: Action, payloads per action, Attempt.

Wire payloads use the client's camelCase keys; Python attributes are
snake_case. Payload models ignore unknown keys so older clients keep
working.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Action(str, Enum):
    """Recognized gateway actions."""

    GENERATE_CONTENT = "generateContent"
    CHAT = "chat"
    SPEECH = "speech"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GenerationConfig(_WireModel):
    """Provider generation options for generateContent."""

    response_mime_type: str | None = Field(default=None, alias="responseMimeType")
    response_schema: dict[str, Any] | None = Field(default=None, alias="responseSchema")
    temperature: float | None = None


class GenerateContentPayload(_WireModel):
    model: str | None = None
    prompt: str
    system_instruction: str | None = Field(default=None, alias="systemInstruction")
    generation_config: GenerationConfig | None = Field(
        default=None, alias="generationConfig"
    )


class ChatTurn(_WireModel):
    """One prior conversation turn.

    Accepts both {"role", "text"} and the provider-shaped
    {"role", "parts": [{"text": ...}]}.
    """

    role: Literal["user", "model"]
    text: str

    @model_validator(mode="before")
    @classmethod
    def _flatten_parts(cls, data: Any) -> Any:
        if isinstance(data, dict) and "text" not in data and "parts" in data:
            parts = data.get("parts") or []
            text = "".join(
                p.get("text", "") for p in parts if isinstance(p, dict)
            )
            data = {**data, "text": text}
        if isinstance(data, dict) and data.get("role") not in ("user", "model"):
            # Anything that is not the model speaking counts as the user.
            data = {**data, "role": "user"}
        return data


class ChatPayload(_WireModel):
    model: str | None = None
    message: str
    history: list[ChatTurn] = Field(default_factory=list)
    system_instruction: str | None = Field(default=None, alias="systemInstruction")


class SpeechPayload(_WireModel):
    model: str | None = None
    text: str


Payload = Union[GenerateContentPayload, ChatPayload, SpeechPayload]

_PAYLOAD_TYPES: dict[Action, type[BaseModel]] = {
    Action.GENERATE_CONTENT: GenerateContentPayload,
    Action.CHAT: ChatPayload,
    Action.SPEECH: SpeechPayload,
}


def parse_action(value: Any) -> Action:
    """Return the Action for ``value``.

    Raises:
        UnknownActionError: If ``value`` is not a recognized action.
    """
    from diarygate.llm.base_client import UnknownActionError

    if isinstance(value, Action):
        return value
    try:
        return Action(value)
    except ValueError:
        raise UnknownActionError(value) from None


def payload_type(action: Action) -> type[BaseModel]:
    """Payload model accepted by ``action``."""
    return _PAYLOAD_TYPES[action]


def parse_payload(action: Action, raw: dict[str, Any]) -> Payload:
    """Validate a raw payload dict into the typed payload for ``action``.

    Raises:
        pydantic.ValidationError: If required fields are missing.
    """
    return _PAYLOAD_TYPES[action].model_validate(raw)  # type: ignore[return-value]


class GatewayRequest(BaseModel):
    """Inbound gateway body: {action, payload}."""

    action: Action
    payload: dict[str, Any]


class Attempt(BaseModel):
    """One provider call made while serving a request. Never persisted."""

    model: str
    attempt_number: int = Field(ge=1)
    outcome: Literal["success", "transient", "fatal"]
    detail: str = ""
    delay_s: float = 0.0
