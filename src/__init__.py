"""diarygate: AI diary backend with a resilient Gemini gateway."""

from diarygate.version import __version__

__all__ = ["__version__"]
