"""
config.py — Runtime settings for the transcript service.

Settings are read from the environment once per call site via
Settings.from_env().  Only YOUTUBE_API_KEY is needed in practice; the
timeout overrides exist for slow networks and for tests.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Browser-like User-Agent.  YouTube serves a stripped-down page (without the
# player response) to clients it doesn't recognise.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _float_from_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r; using %s", name, raw, default)
        return default
    return value


@dataclass(frozen=True)
class Settings:
    """
    Immutable service configuration.

    Attributes:
        youtube_api_key:       Key for the YouTube Data API v3, or None.
                               Enables the second metadata stage.
        transcript_timeout:    Budget (seconds) for each transcript source.
        caption_timeout:       Budget (seconds) for the caption file download.
        metadata_timeout:      Budget (seconds) for each metadata stage.
        min_transcript_length: Minimum cleaned transcript length accepted.
        user_agent:            User-Agent sent with scraping requests.
    """
    youtube_api_key: str | None = None
    transcript_timeout: float = 30.0
    caption_timeout: float = 15.0
    metadata_timeout: float = 10.0
    min_transcript_length: int = 50
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from YOUTUBE_API_KEY and the NOTIVIO_* overrides."""
        api_key = os.getenv("YOUTUBE_API_KEY", "").strip() or None
        return cls(
            youtube_api_key=api_key,
            transcript_timeout=_float_from_env("NOTIVIO_TRANSCRIPT_TIMEOUT", cls.transcript_timeout),
            caption_timeout=_float_from_env("NOTIVIO_CAPTION_TIMEOUT", cls.caption_timeout),
            metadata_timeout=_float_from_env("NOTIVIO_METADATA_TIMEOUT", cls.metadata_timeout),
        )
