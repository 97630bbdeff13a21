# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides a scripted model client, a recording sleep, test settings and
sample diary entries. No network access — all I/O is mocked.
"""

from __future__ import annotations

import logging
from typing import Iterable

import pytest

from diarygate.client.models import DailyLog, EveningEntry, MorningEntry
from diarygate.config.settings import Settings
from diarygate.llm.base_client import AdapterError, BaseModelClient
from diarygate.llm.models import ChatPayload, GenerateContentPayload


# === Scripted model client ===


class ScriptedClient(BaseModelClient):
    """Model client that replays a per-model script of outcomes.

    Each script entry is either the text to return or an exception to
    raise. Once a model's script runs out, its last entry repeats.
    """

    def __init__(self, scripts: dict[str, Iterable[str | Exception | None]] | None = None):
        self._scripts = {model: list(steps) for model, steps in (scripts or {}).items()}
        self._positions: dict[str, int] = {}
        self.calls: list[tuple[str, str, object]] = []

    def _next(self, model: str) -> str | None:
        steps = self._scripts.get(model)
        if not steps:
            raise AdapterError(f"404 model {model} not found", status_code=404)
        index = self._positions.get(model, 0)
        self._positions[model] = index + 1
        step = steps[min(index, len(steps) - 1)]
        if isinstance(step, Exception):
            raise step
        return step

    async def generate_content(self, model: str, payload: GenerateContentPayload) -> str | None:
        self.calls.append((model, "generateContent", payload))
        return self._next(model)

    async def chat(self, model: str, payload: ChatPayload) -> str | None:
        self.calls.append((model, "chat", payload))
        return self._next(model)

    @property
    def provider_name(self) -> str:
        return "scripted"

    def models_called(self) -> list[str]:
        return [model for model, _, _ in self.calls]


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)

    @property
    def total(self) -> float:
        return sum(self.delays)


# === FIXTURES ===


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """Undo setup_logging() so caplog keeps seeing diarygate records."""
    package_logger = logging.getLogger("diarygate")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    propagate = package_logger.propagate
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate


@pytest.fixture
def scripted_client_cls() -> type[ScriptedClient]:
    return ScriptedClient


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a credential, a two-link chain and no .env file."""
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        llm_default_model="model-a",
        llm_fallback_chain="model-a:model-b",
        retry_max_attempts=3,
        retry_base_delay_s=1.0,
        log_sink_enabled=False,
        log_sink_url="",
    )


@pytest.fixture
def sample_log() -> DailyLog:
    return DailyLog(
        date="2026-10-17",
        morning=MorningEntry(
            gratitude=["warm coffee", "sunny sky"],
            today_goal="finish the report",
            stance="stay curious",
        ),
        evening=EveningEntry(
            good_things=["met an old friend", "report submitted"],
            kindness="helped a neighbour carry groceries",
            insights="small steps add up",
            follow_up_question="what will I start tomorrow?",
        ),
    )
