# src/errors.py — v1
"""Root of the diarygate exception hierarchy.

Component-specific exceptions live next to the code that raises them
(llm/base_client.py, llm/dispatcher.py, config/settings.py, client/*)
and all derive from DiarygateError so callers can catch the family.
"""

from __future__ import annotations


class DiarygateError(Exception):
    """Base class for all diarygate errors."""
