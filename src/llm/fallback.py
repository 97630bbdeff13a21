# src/llm/fallback.py — v1
"""Static model fallback chain.

A ModelChain maps a model identifier to the model tried once the first
one is exhausted. It is built once from configuration and only read at
request time. Cycles are rejected at configuration load (see
config/settings.py); the dispatcher itself trusts the chain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True)
class ModelChain:
    """Read-only model -> fallback model mapping."""

    links: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, value: str) -> ModelChain:
        """Parse "a:b,b:c" into a chain.

        Raises:
            ValueError: On an entry without ':' or a model listed twice.
        """
        links: dict[str, str] = {}
        for raw in value.split(","):
            entry = raw.strip()
            if not entry:
                continue
            if ":" not in entry:
                raise ValueError(f"expected 'model:fallback', got {entry!r}")
            model, fallback = (part.strip() for part in entry.split(":", 1))
            if not model or not fallback:
                raise ValueError(f"empty model name in {entry!r}")
            if model in links:
                raise ValueError(f"model {model!r} has more than one fallback")
            links[model] = fallback
        return cls(links=links)

    def next(self, model: str) -> str | None:
        """Return the fallback for ``model``, or None at the end of the chain."""
        fallback = self.links.get(model)
        if fallback is None or fallback == model:
            return None
        return fallback

    def walk(self, model: str) -> list[str]:
        """Models tried for a request starting at ``model``, in order."""
        order = [model]
        seen = {model}
        current = self.next(model)
        while current is not None and current not in seen:
            order.append(current)
            seen.add(current)
            current = self.next(current)
        return order

    def find_cycle(self) -> list[str] | None:
        """Return the first cycle found as a model path, or None."""
        for start in self.links:
            path = [start]
            current = self.links.get(start)
            while current is not None:
                if current in path:
                    return path[path.index(current):] + [current]
                path.append(current)
                current = self.links.get(current)
        return None

    def __len__(self) -> int:
        return len(self.links)
