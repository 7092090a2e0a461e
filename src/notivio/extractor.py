"""
extractor.py — Core transcript extraction logic.

This is the heart of the Notivio transcript service.  It exposes:

    1. Resolving YouTube URLs / IDs         → resolve_video_id()
    2. The primary transcript source        → fetch_transcript_with_package()
    3. The ordered fallback chain           → fetch_transcript()
    4. Transcript cleanup                   → clean_transcript()
    5. One-call convenience (route body)    → extract()

The fallback scraper lives in scraper.py and metadata lookup in metadata.py.
Every call is independent; nothing is cached between requests.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Awaitable, Callable

import httpx

from notivio.config import Settings
from notivio.errors import (
    InvalidVideoIdError,
    MissingVideoReferenceError,
    PrimaryFetchError,
    TranscriptError,
    TranscriptNotFoundError,
    TranscriptTooShortError,
)
from notivio.metadata import fetch_video_metadata
from notivio.scraper import scrape_transcript

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# A bare video ID is exactly 11 characters from the base64url alphabet.
_BARE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

# URL shapes we accept, tried in this order.  Each captures the ID in "id".
_URL_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"youtube\.com/watch\?v=(?P<id>[A-Za-z0-9_-]{11})"),
    re.compile(r"youtu\.be/(?P<id>[A-Za-z0-9_-]{11})"),
    re.compile(r"youtube\.com/embed/(?P<id>[A-Za-z0-9_-]{11})"),
    re.compile(r"youtube\.com/v/(?P<id>[A-Za-z0-9_-]{11})"),
]

_DEFAULT_LANGUAGES = ["en"]

# youtube-transcript-api occasionally hands back a handful of characters for
# broken videos; anything shorter than this is treated as no transcript.
_MIN_PACKAGE_TRANSCRIPT_LENGTH = 10

# [Music], [Applause], [Laughter] and friends.
_ANNOTATION_RE = re.compile(r"\[[^\]]*\]")
_WHITESPACE_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TranscriptMethod:
    """
    One entry in the fallback chain.

    Attributes:
        name:  Reported to callers as "methodUsed" when this method wins.
        label: Prefix for this method's entry in the error list.
        fetch: Async callable taking a video ID and returning transcript text.
    """
    name: str
    label: str
    fetch: Callable[[str], Awaitable[str]]


@dataclass
class TranscriptResult:
    """
    Outcome of the fallback chain.

    `errors` lists every method that failed before `method_used` succeeded.
    """
    text: str
    method_used: str
    errors: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# URL / ID resolution
# ---------------------------------------------------------------------------

def resolve_video_id(value: str | None) -> str | None:
    """
    Turn a YouTube URL or bare video ID into the 11-character ID.

    A string that already looks like an ID is returned verbatim.  Otherwise
    watch?v=, youtu.be/, embed/ and v/ URLs are tried in that order.

    Args:
        value: A YouTube URL or a raw video ID.

    Returns:
        The video ID, or None if the input isn't a recognisable reference.
    """
    if not value:
        return None
    value = value.strip()

    if _BARE_ID_PATTERN.match(value):
        return value

    for pattern in _URL_PATTERNS:
        match = pattern.search(value)
        if match:
            return match.group("id")

    return None


# ---------------------------------------------------------------------------
# Primary source: youtube-transcript-api
# ---------------------------------------------------------------------------

def _load_transcript_api() -> Any:
    try:
        import youtube_transcript_api
    except ImportError as exc:
        raise PrimaryFetchError(
            "youtube-transcript-api package not available. "
            "Install it with: pip install youtube-transcript-api"
        ) from exc
    return youtube_transcript_api


def _item_text(item: Any) -> str:
    # The library yields snippet objects; older releases returned dicts.
    if isinstance(item, str):
        return item.strip()
    if isinstance(item, dict):
        return str(item.get("text") or "").strip()
    return str(getattr(item, "text", "") or "").strip()


async def fetch_transcript_with_package(
    video_id: str,
    *,
    timeout: float = 30.0,
    languages: list[str] | None = None,
) -> str:
    """
    Fetch a transcript through youtube-transcript-api.

    The library is synchronous, so the call runs in a worker thread and is
    raced against `timeout`.

    Args:
        video_id:  The 11-character YouTube video ID.
        timeout:   Seconds before giving up.
        languages: Language codes in priority order; defaults to ["en"].

    Returns:
        Transcript text with segments joined by single spaces.

    Raises:
        PrimaryFetchError: The library is missing, returned nothing usable,
                           timed out, or reported a known upstream failure.
        Exception:         Unrecognised upstream errors propagate unchanged.
    """
    yta = _load_transcript_api()
    langs = languages or _DEFAULT_LANGUAGES
    logger.info("Fetching transcript via youtube-transcript-api for video %s", video_id)

    try:
        api = yta.YouTubeTranscriptApi()
        # On timeout the worker thread is abandoned, not cancelled. The request
        # fails on time but asyncio.run() still waits for the thread at exit,
        # so a one-shot `notivio get` may linger until the library returns.
        items = await asyncio.wait_for(
            asyncio.to_thread(api.fetch, video_id, languages=langs),
            timeout,
        )
    except asyncio.TimeoutError as exc:
        raise PrimaryFetchError(
            "Request timed out - video may be too long or server is slow"
        ) from exc
    except yta.VideoUnavailable as exc:
        raise PrimaryFetchError("Video is unavailable or private") from exc
    except yta.TranscriptsDisabled as exc:
        raise PrimaryFetchError("Transcripts are disabled for this video") from exc
    except yta.NoTranscriptFound as exc:
        raise PrimaryFetchError("No transcript available for this video") from exc

    texts = [_item_text(item) for item in items or []]
    if not texts:
        raise PrimaryFetchError("No transcript items returned from package")

    transcript = " ".join(text for text in texts if text)
    if len(transcript) < _MIN_PACKAGE_TRANSCRIPT_LENGTH:
        raise PrimaryFetchError("Transcript too short, likely invalid")

    logger.info("Fetched transcript via package: %d characters", len(transcript))
    return transcript


# ---------------------------------------------------------------------------
# Fallback chain
# ---------------------------------------------------------------------------

def default_methods(
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> list[TranscriptMethod]:
    """The production chain: youtube-transcript-api, then page scraping."""
    settings = settings or Settings.from_env()
    return [
        TranscriptMethod(
            name="youtube-transcript package",
            label="Package",
            fetch=partial(fetch_transcript_with_package, timeout=settings.transcript_timeout),
        ),
        TranscriptMethod(
            name="caption scraping",
            label="Scraping",
            fetch=partial(scrape_transcript, client=client, settings=settings),
        ),
    ]


def _describe(exc: Exception) -> str:
    if isinstance(exc, TranscriptError):
        return exc.message
    return str(exc) or type(exc).__name__


async def fetch_transcript(
    video_id: str,
    methods: list[TranscriptMethod],
) -> TranscriptResult:
    """
    Try each method in order until one returns non-empty text.

    Each method is attempted exactly once.  A method that raises or returns
    blank text counts as failed and its reason is recorded.

    Raises:
        TranscriptNotFoundError: Every method failed; `attempts` carries
                                 the collected reasons.
    """
    errors: list[str] = []

    for position, method in enumerate(methods, start=1):
        logger.info("Method %d: %s", position, method.name)
        try:
            text = await method.fetch(video_id)
        except Exception as exc:
            logger.warning("%s method failed: %s", method.label, _describe(exc))
            errors.append(f"{method.label}: {_describe(exc)}")
            continue

        if text and text.strip():
            return TranscriptResult(text=text, method_used=method.name, errors=errors)

        logger.warning("%s method returned an empty transcript", method.label)
        errors.append(f"{method.label}: returned an empty transcript")

    logger.warning("All transcript methods failed for %s", video_id)
    raise TranscriptNotFoundError(video_id, attempts=errors)


# ---------------------------------------------------------------------------
# Cleanup
# ---------------------------------------------------------------------------

def clean_transcript(text: str) -> str:
    """
    Drop bracketed annotations like [Music] and collapse whitespace.

    Idempotent: cleaning already-clean text returns it unchanged.
    """
    text = _ANNOTATION_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


# ---------------------------------------------------------------------------
# High-level convenience function (main public API)
# ---------------------------------------------------------------------------

async def extract(
    value: str | None,
    *,
    methods: list[TranscriptMethod] | None = None,
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> dict:
    """
    One-call interface: resolve ID → fetch transcript → clean → metadata.

    This is what GET /api/video-transcript and `notivio get` run.

    Args:
        value:    A YouTube URL or raw video ID.
        methods:  Fallback chain override; defaults to default_methods().
        settings: Service settings; read from the environment if None.
        client:   Optional shared httpx client for scraping and metadata.

    Returns:
        A JSON-serialisable dict with keys transcript, title, duration,
        videoId, wordCount, methodUsed, success.

    Raises:
        MissingVideoReferenceError: `value` is empty.
        InvalidVideoIdError:        `value` isn't a YouTube URL or ID.
        TranscriptNotFoundError:    Every transcript method failed.
        TranscriptTooShortError:    The cleaned transcript is too short.
    """
    if not value or not value.strip():
        raise MissingVideoReferenceError()

    video_id = resolve_video_id(value)
    if video_id is None:
        raise InvalidVideoIdError(value)
    logger.info("Resolved video ID: %s", video_id)

    settings = settings or Settings.from_env()
    if methods is None:
        methods = default_methods(client=client, settings=settings)

    result = await fetch_transcript(video_id, methods)

    cleaned = clean_transcript(result.text)
    if len(cleaned) < settings.min_transcript_length:
        raise TranscriptTooShortError(video_id, length=len(cleaned))

    logger.info(
        "Final transcript length: %d characters (method: %s)",
        len(cleaned),
        result.method_used,
    )

    metadata = await fetch_video_metadata(video_id, client=client, settings=settings)

    return {
        "transcript": cleaned,
        "title": metadata.title,
        "duration": metadata.duration,
        "videoId": video_id,
        "wordCount": len(cleaned.split(" ")),
        "methodUsed": result.method_used,
        "success": True,
    }
