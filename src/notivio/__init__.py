"""
notivio — YouTube transcripts for study notes.

Public API:
    extract()                 One-call interface (URL/ID → transcript response dict).
    resolve_video_id()        Normalise a YouTube URL or bare ID to the 11-char ID.
    fetch_transcript()        Run an ordered chain of transcript methods.
    clean_transcript()        Strip [Music]-style annotations and collapse whitespace.
    scrape_transcript()       Fallback source: captions scraped from the watch page.
    fetch_video_metadata()    Best-effort title/duration (oEmbed → Data API → placeholder).
    Settings                  Environment-driven configuration.

Exception hierarchy (all importable from this package):
    TranscriptError                  Base exception for all transcript errors.
    ├── MissingVideoReferenceError   No video ID or URL given.
    ├── InvalidVideoIdError          Input isn't a YouTube URL or ID.
    ├── TranscriptNotFoundError      Every transcript method failed.
    ├── TranscriptTooShortError      Transcript too short after cleaning.
    ├── PrimaryFetchError            youtube-transcript-api failed.
    ├── ScrapeError                  Watch-page caption scraping failed.
    └── FetchTimeoutError            An outbound request timed out.

Usage:
    import asyncio
    from notivio import extract
    result = asyncio.run(extract("https://www.youtube.com/watch?v=dQw4w9WgXcQ"))
    print(result["transcript"])
"""

__version__ = "0.1.0"

from notivio.config import Settings
from notivio.errors import (
    FetchTimeoutError,
    InvalidVideoIdError,
    MissingVideoReferenceError,
    PrimaryFetchError,
    ScrapeError,
    TranscriptError,
    TranscriptNotFoundError,
    TranscriptTooShortError,
)
from notivio.extractor import (
    TranscriptMethod,
    TranscriptResult,
    clean_transcript,
    extract,
    fetch_transcript,
    resolve_video_id,
)
from notivio.metadata import VideoMetadata, fetch_video_metadata
from notivio.scraper import CaptionTrack, scrape_transcript

__all__ = [
    "extract",
    "resolve_video_id",
    "fetch_transcript",
    "clean_transcript",
    "scrape_transcript",
    "fetch_video_metadata",
    "Settings",
    "CaptionTrack",
    "TranscriptMethod",
    "TranscriptResult",
    "VideoMetadata",
    "TranscriptError",
    "MissingVideoReferenceError",
    "InvalidVideoIdError",
    "TranscriptNotFoundError",
    "TranscriptTooShortError",
    "PrimaryFetchError",
    "ScrapeError",
    "FetchTimeoutError",
]
