"""
metadata.py — Best-effort video title and duration lookup.

Three stages, tried in order:

    1. oEmbed            — no key needed, gives the title only.
    2. YouTube Data API  — only when YOUTUBE_API_KEY is set; title + duration.
    3. Synthetic values  — "YouTube Video {id}" / "Unknown".

fetch_video_metadata() never raises: metadata is decoration on a transcript
response, so a failure here must not cost the caller the transcript.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import httpx

from notivio.config import Settings
from notivio.http_client import fetch_with_timeout

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

OEMBED_URL = "https://www.youtube.com/oembed"
DATA_API_URL = "https://www.googleapis.com/youtube/v3/videos"
UNKNOWN_DURATION = "Unknown"

_ISO_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VideoMetadata:
    """
    Title and human-readable duration of a video.

    Attributes:
        title:    Video title, or a synthetic placeholder.
        duration: "H:MM:SS", "M:SS" or "Unknown".
        source:   Which stage produced the data: "oembed", "data-api"
                  or "fallback".
    """
    title: str
    duration: str
    source: str = "fallback"


def format_iso_duration(raw: str | None) -> str:
    """
    Convert an ISO-8601 duration such as "PT1H2M3S" into "1:02:03".

    Durations under an hour render as "M:SS" ("PT4M5S" → "4:05").  Anything
    that doesn't look like a PT duration gives "Unknown".
    """
    if not raw:
        return UNKNOWN_DURATION
    match = _ISO_DURATION_RE.match(raw)
    if not match:
        return UNKNOWN_DURATION
    hours, minutes, seconds = (int(group or 0) for group in match.groups())
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def fallback_metadata(video_id: str) -> VideoMetadata:
    return VideoMetadata(title=f"YouTube Video {video_id}", duration=UNKNOWN_DURATION)


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

async def _from_oembed(
    video_id: str,
    client: httpx.AsyncClient | None,
    settings: Settings,
) -> VideoMetadata | None:
    response = await fetch_with_timeout(
        OEMBED_URL,
        timeout=settings.metadata_timeout,
        client=client,
        headers={"Accept": "application/json"},
        params={"url": f"https://www.youtube.com/watch?v={video_id}", "format": "json"},
    )
    if not response.is_success:
        logger.warning("oEmbed responded with status %d", response.status_code)
        return None
    data = response.json()
    title = data.get("title") if isinstance(data, dict) else None
    if not title:
        return None
    logger.info("Got title from oEmbed: %s", title)
    # oEmbed has no duration field.
    return VideoMetadata(title=title, duration=UNKNOWN_DURATION, source="oembed")


async def _from_data_api(
    video_id: str,
    client: httpx.AsyncClient | None,
    settings: Settings,
) -> VideoMetadata | None:
    response = await fetch_with_timeout(
        DATA_API_URL,
        timeout=settings.metadata_timeout,
        client=client,
        params={
            "id": video_id,
            "key": settings.youtube_api_key or "",
            "part": "snippet,contentDetails",
        },
    )
    if not response.is_success:
        logger.warning("YouTube Data API responded with status %d", response.status_code)
        return None
    items = response.json().get("items") or []
    if not items:
        logger.warning("Video %s not found in YouTube Data API response", video_id)
        return None
    video = items[0]
    title = (video.get("snippet") or {}).get("title") or "Unknown Title"
    duration = format_iso_duration((video.get("contentDetails") or {}).get("duration"))
    return VideoMetadata(title=title, duration=duration, source="data-api")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

async def fetch_video_metadata(
    video_id: str,
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> VideoMetadata:
    """
    Look up a video's title and duration.  Never raises.

    Args:
        video_id: The 11-character YouTube video ID.
        client:   Optional shared httpx client.
        settings: Supplies the API key and timeout; read from the
                  environment if None.

    Returns:
        VideoMetadata from the first stage that produced a title, or the
        synthetic fallback.
    """
    settings = settings or Settings.from_env()

    try:
        metadata = await _from_oembed(video_id, client, settings)
    except Exception as exc:
        logger.warning("oEmbed failed for %s: %s", video_id, exc)
    else:
        if metadata is not None:
            return metadata

    if settings.youtube_api_key:
        try:
            metadata = await _from_data_api(video_id, client, settings)
        except Exception as exc:
            logger.warning("YouTube Data API failed for %s: %s", video_id, exc)
        else:
            if metadata is not None:
                return metadata
    else:
        logger.debug("No YOUTUBE_API_KEY configured; skipping YouTube Data API")

    return fallback_metadata(video_id)
