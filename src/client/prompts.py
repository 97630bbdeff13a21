# src/client/prompts.py — v2
"""Prompt templates and response schemas for the diary features.

Schemas use the OpenAPI subset accepted by Gemini's response_schema.
"""

from __future__ import annotations

from typing import Sequence

from diarygate.client.models import ChatMessage, DailyLog, EveningEntry

MISSING = "(not entered)"

FEEDBACK_SCHEMA: dict = {
    "description": "Feedback structure",
    "type": "object",
    "properties": {
        "morningComment": {"type": "string"},
        "eveningComment": {"type": "string"},
        "dailySummary": {"type": "string"},
        "reflectionOnFollowUp": {"type": "string"},
        "oneMinuteAction": {"type": "string"},
        "dailyTitle": {"type": "string"},
    },
    "required": [
        "morningComment",
        "eveningComment",
        "dailySummary",
        "reflectionOnFollowUp",
        "oneMinuteAction",
        "dailyTitle",
    ],
}

EVENING_ENTRY_SCHEMA: dict = {
    "description": "Extracted diary entry from chat",
    "type": "object",
    "properties": {
        "goodThings": {"type": "array", "items": {"type": "string"}},
        "kindness": {"type": "string"},
        "insights": {"type": "string"},
        "followUpQuestion": {"type": "string"},
    },
    "required": ["goodThings", "kindness", "insights", "followUpQuestion"],
}

PARALLEL_WORLD_SCHEMA: dict = {
    "description": "Parallel World Story",
    "type": "object",
    "properties": {
        "story": {
            "type": "string",
            "description": "A what-if story: had a different choice been made...",
        },
        "divergencePoint": {
            "type": "string",
            "description": "The moment fate branched",
        },
        "worldDescription": {
            "type": "string",
            "description": "Setting and atmosphere of the parallel world",
        },
    },
    "required": ["story", "divergencePoint", "worldDescription"],
}


def _join(items: Sequence[str]) -> str:
    return ", ".join(items) if items else MISSING


def diary_context(log: DailyLog) -> str:
    """Render the morning and evening fields of a day."""
    m = log.morning
    e = log.evening
    return (
        "[Morning]\n"
        f"- Gratitude: {_join(m.gratitude) if m else MISSING}\n"
        f"- Goal: {(m.today_goal if m else '') or MISSING}\n"
        f"- Stance: {(m.stance if m else '') or MISSING}\n"
        "\n"
        "[Evening]\n"
        f"- Good things: {_join(e.good_things) if e else MISSING}\n"
        f"- Kindness: {(e.kindness if e else '') or MISSING}\n"
        f"- Insights: {(e.insights if e else '') or MISSING}\n"
        f"- Question: {(e.follow_up_question if e else '') or MISSING}\n"
    )


def history_context(history: Sequence[DailyLog]) -> str:
    """Past daily titles, oldest first, or an empty string."""
    if not history:
        return ""
    lines = [
        f"- {h.date}: {h.ai_feedback.daily_title if h.ai_feedback else MISSING}"
        for h in history
    ]
    return "\n[Past entries (reference)]\n" + "\n".join(lines) + "\n"


def feedback_prompt(log: DailyLog, personality: str, history: Sequence[DailyLog]) -> str:
    context = diary_context(log)
    past = history_context(history)
    if personality == "jinnai":
        return (
            "Read today's diary and comment as Jinnai.\n"
            "Skip the shallow praise. If there's a link to the past entries "
            f"{past} like 'yesterday you wrote this, and now this?', call it out.\n"
            "Give me your blunt words that still hit the core.\n\n"
            f"User input:\n{context}"
        )
    return (
        "Read the user's diary and convey, in philosophical language, the unique "
        "beauty of their day.\n"
        f"Drawing on the past entries {past}, reflect deeply on how the user's soul "
        "is evolving.\n\n"
        "[Rules of writing]\n"
        "1. Be concrete: always quote the user's own words.\n"
        "2. Bind the story: connect the morning's intention with the evening's "
        "outcome and complete the day's story.\n\n"
        f"User input:\n{context}"
    )


def _require_evening(log: DailyLog, what: str) -> EveningEntry:
    if log.evening is None:
        raise ValueError(f"{what} requires an evening entry ({log.date})")
    return log.evening


def souvenir_image_prompt(log: DailyLog) -> str:
    evening = _require_evening(log, "Souvenir image")
    return (
        "A masterpiece artistic illustration capturing the essence of this feeling: "
        f"\"{', '.join(evening.good_things)}\".\n"
        f"The mood is \"{evening.insights}\".\n"
        "Style: Whimsical, warm lighting, Studio Ghibli meets Monet, soft pastel "
        "colors, dreamy atmosphere, high quality digital art.\n"
        "No text. A visual metaphor for a fulfilling day."
    )


def parallel_story_prompt(log: DailyLog) -> str:
    evening = _require_evening(log, "Parallel story")
    return (
        "Based on the user's diary for today, write an episode from a parallel world: "
        "what if they had made a different small choice today?\n\n"
        "[Conditions]\n"
        "- Start from a tiny difference (tea instead of coffee, an earlier train) and "
        "let it unfold unexpectedly.\n"
        "- Like a butterfly effect, the small difference leads to a large outcome "
        "(fantasy or sci-fi are both fine).\n"
        "- Keep a slightly eerie, mysterious tone.\n\n"
        "Diary:\n"
        f"- Good things: {', '.join(evening.good_things)}\n"
        f"- Insights: {evening.insights}\n"
    )


def extraction_prompt(messages: Sequence[ChatMessage]) -> str:
    transcript = "\n".join(f"{m.role}: {m.text}" for m in messages)
    return (
        "From the conversation below, extract what should be recorded as the user's "
        "diary for today, as structured data.\n\n"
        f"[Conversation]\n{transcript}\n\n"
        "[Fields]\n"
        "- goodThings: good or fun things (about three, as a list)\n"
        "- kindness: something kind the user did for someone\n"
        "- insights: new discoveries, lessons, emotional shifts\n"
        "- followUpQuestion: a question for tomorrow based on the conversation\n"
    )
