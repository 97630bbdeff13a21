# src/storage/diary_store.py — v1
"""Local JSON key-value store for diary logs and user settings.

Everything lives in one JSON file under fixed keys. The file is read
once on construction and rewritten in full on every mutation.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from diarygate.client.models import DailyLog, UserSettings

logger = logging.getLogger(__name__)

LOGS_KEY = "ai_diary_logs"
SETTINGS_KEY = "ai_diary_settings"


class DiaryStore:
    """File-backed store of DailyLog entries (newest first) and UserSettings."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()
        self._logs: list[DailyLog] = []
        self._settings = UserSettings()
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def logs(self) -> list[DailyLog]:
        return list(self._logs)

    def get_log(self, date: str) -> DailyLog | None:
        for log in self._logs:
            if log.date == date:
                return log
        return None

    def upsert_log(self, log: DailyLog) -> None:
        """Insert or replace the entry for ``log.date``, then persist."""
        others = [entry for entry in self._logs if entry.date != log.date]
        self._logs = sorted([log, *others], key=lambda entry: entry.date, reverse=True)
        self._save()

    def settings(self) -> UserSettings:
        return self._settings

    def update_settings(self, settings: UserSettings) -> None:
        self._settings = settings
        self._save()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            self._logs = [DailyLog.model_validate(d) for d in data.get(LOGS_KEY, [])]
            if data.get(SETTINGS_KEY):
                self._settings = UserSettings.model_validate(data[SETTINGS_KEY])
        except (json.JSONDecodeError, AttributeError, ValueError) as e:
            logger.warning("Failed to load diary store %s: %s", self._path, e)
            self._logs = []
            self._settings = UserSettings()

    def _save(self) -> None:
        data: dict[str, Any] = {
            LOGS_KEY: [log.model_dump(mode="json", by_alias=True) for log in self._logs],
            SETTINGS_KEY: self._settings.model_dump(mode="json", by_alias=True),
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8"
        )
