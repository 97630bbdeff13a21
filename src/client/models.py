# src/client/models.py — v1
"""Diary domain types shared by the facade and the local store."""

from __future__ import annotations

import time
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Personality = Literal["philosopher", "jinnai"]


class _DiaryModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MorningEntry(_DiaryModel):
    gratitude: list[str] = Field(default_factory=list)
    today_goal: str = Field(default="", alias="todayGoal")
    stance: str = ""


class EveningEntry(_DiaryModel):
    good_things: list[str] = Field(default_factory=list, alias="goodThings")
    kindness: str = ""
    insights: str = ""
    follow_up_question: str = Field(default="", alias="followUpQuestion")


class AIFeedback(_DiaryModel):
    morning_comment: str = Field(alias="morningComment")
    evening_comment: str = Field(alias="eveningComment")
    daily_summary: str = Field(alias="dailySummary")
    reflection_on_follow_up: str = Field(alias="reflectionOnFollowUp")
    one_minute_action: str = Field(alias="oneMinuteAction")
    daily_title: str = Field(alias="dailyTitle")


class ParallelWorld(_DiaryModel):
    story: str
    divergence_point: str = Field(alias="divergencePoint")
    world_description: str = Field(alias="worldDescription")


class DailyLog(_DiaryModel):
    """One day of the diary, keyed by ISO date."""

    date: str
    morning: MorningEntry | None = None
    evening: EveningEntry | None = None
    ai_feedback: AIFeedback | None = Field(default=None, alias="aiFeedback")
    souvenir_image_url: str | None = Field(default=None, alias="souvenirImageUrl")
    updated_at: int = Field(default_factory=lambda: int(time.time() * 1000), alias="updatedAt")


class UserSettings(_DiaryModel):
    personality: Personality = "philosopher"


class ChatMessage(_DiaryModel):
    """A message in the diary chat, as shown to the user."""

    role: Literal["user", "model"]
    text: str
