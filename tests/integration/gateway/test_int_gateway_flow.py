# tests/integration/gateway/test_int_gateway_flow.py — v1
"""Integration tests: diary facade -> gateway client -> HTTP app -> dispatcher.

Covers: client/facade.py, client/gateway_client.py, gateway/app.py,
        llm/dispatcher.py, llm/retry.py, llm/fallback.py,
        logging/sink.py, storage/diary_store.py

No network required: the gateway client talks to the app through
httpx.ASGITransport and the app uses a scripted model client.
"""

from __future__ import annotations

import json

import httpx
import pytest

from diarygate.client.facade import DiaryService
from diarygate.client.gateway_client import GatewayClient, GatewayError
from diarygate.client.models import AIFeedback, ChatMessage
from diarygate.config.settings import Settings
from diarygate.gateway.app import create_app
from diarygate.llm.base_client import AdapterError
from diarygate.logging.sink import RemoteLogSink
from diarygate.storage.diary_store import DiaryStore


_FEEDBACK = json.dumps(
    {
        "morningComment": "A bright intention.",
        "eveningComment": "Kindness given freely.",
        "dailySummary": "A day of small victories.",
        "reflectionOnFollowUp": "Start with one step.",
        "oneMinuteAction": "Write tomorrow's first task.",
        "dailyTitle": "Small Steps",
    }
)


def _service(app, model: str = "model-a") -> DiaryService:
    client = GatewayClient("http://test/api/gemini", transport=httpx.ASGITransport(app=app))
    return DiaryService(client, model=model)


def _overloaded() -> AdapterError:
    return AdapterError("503 The model is overloaded.", status_code=503)


# =====================================================================
#  FEEDBACK — retry, fallback and persistence
# =====================================================================

class TestFeedbackFlow:
    @pytest.mark.asyncio
    async def test_feedback_survives_overloaded_primary(
        self, test_settings, scripted_client_cls, recording_sleep, sample_log, tmp_path
    ):
        model_client = scripted_client_cls({"model-a": [_overloaded()], "model-b": [_FEEDBACK]})
        app = create_app(
            test_settings,
            client=model_client,
            sink=RemoteLogSink(enabled=False),
            sleep=recording_sleep,
        )

        feedback = await _service(app).generate_daily_feedback(sample_log, "philosopher")

        assert isinstance(feedback, AIFeedback)
        assert feedback.daily_title == "Small Steps"
        assert model_client.models_called() == ["model-a", "model-a", "model-a", "model-b"]
        assert recording_sleep.delays == [1.0, 2.0]

        store = DiaryStore(tmp_path / "diary.json")
        store.upsert_log(sample_log.model_copy(update={"ai_feedback": feedback}))
        reloaded = DiaryStore(tmp_path / "diary.json").get_log(sample_log.date)
        assert reloaded.ai_feedback.daily_title == "Small Steps"

    @pytest.mark.asyncio
    async def test_exhausted_chain_surfaces_user_message(
        self, test_settings, scripted_client_cls, recording_sleep, sample_log
    ):
        model_client = scripted_client_cls({"model-a": [_overloaded()], "model-b": [_overloaded()]})
        app = create_app(
            test_settings,
            client=model_client,
            sink=RemoteLogSink(enabled=False),
            sleep=recording_sleep,
        )

        with pytest.raises(GatewayError) as exc_info:
            await _service(app).generate_daily_feedback(sample_log)

        assert exc_info.value.status_code == 500
        assert "busy" in exc_info.value.message
        assert exc_info.value.details == "503 The model is overloaded."
        assert len(model_client.calls) == 6
        assert recording_sleep.delays == [1.0, 2.0, 1.0, 2.0]


# =====================================================================
#  CHAT — history normalization end to end
# =====================================================================

class TestChatFlow:
    @pytest.mark.asyncio
    async def test_chat_then_extract(self, test_settings, scripted_client_cls):
        extracted = json.dumps(
            {
                "goodThings": ["sunset walk"],
                "kindness": "called grandma",
                "insights": "slow evenings help",
                "followUpQuestion": "walk again tomorrow?",
            }
        )
        model_client = scripted_client_cls({"model-a": ["Tell me more.", extracted]})
        app = create_app(test_settings, client=model_client, sink=RemoteLogSink(enabled=False))
        service = _service(app)

        messages = [
            ChatMessage(role="model", text="How was today?"),
            ChatMessage(role="user", text="I walked at sunset."),
        ]
        reply = await service.generate_chat_reply(messages, "jinnai")
        assert reply == "Tell me more."
        chat_payload = model_client.calls[0][2]
        assert chat_payload.history == []
        assert chat_payload.message == "I walked at sunset."

        entry = await service.extract_log_from_chat(
            [*messages, ChatMessage(role="model", text=reply)]
        )
        assert entry is not None
        assert entry.good_things == ["sunset walk"]

    @pytest.mark.asyncio
    async def test_missing_credential_reaches_client(self, scripted_client_cls):
        settings = Settings(_env_file=None, gemini_api_key="")
        model_client = scripted_client_cls({})
        app = create_app(settings, client=model_client, sink=RemoteLogSink(enabled=False))

        with pytest.raises(GatewayError) as exc_info:
            await _service(app).generate_chat_reply([ChatMessage(role="user", text="hi")])

        assert "not configured" in exc_info.value.message
        assert model_client.calls == []


# =====================================================================
#  LOG SINK — events reach the collector without changing responses
# =====================================================================

class TestSinkFlow:
    @pytest.mark.asyncio
    async def test_events_posted_for_retries(
        self, test_settings, scripted_client_cls, recording_sleep, sample_log
    ):
        bodies: list[dict] = []

        def collector(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200)

        sink = RemoteLogSink(
            url="http://sink.test", auth_token="t", transport=httpx.MockTransport(collector)
        )
        model_client = scripted_client_cls({"model-a": [_overloaded(), "image"]})
        app = create_app(test_settings, client=model_client, sink=sink, sleep=recording_sleep)

        image = await _service(app).generate_souvenir_image(sample_log)
        await sink.aclose()

        assert image == "image"
        messages = {b["message"] for b in bodies}
        assert "API call: generateContent" in messages
        assert "API success: generateContent" in messages
        assert [b["level"] for b in bodies].count("WARN") == 1
        assert all(b["auth_token"] == "t" for b in bodies)
