"""
errors.py — Custom exception hierarchy for the Notivio transcript service.

Every exception carries an `http_status` attribute and a `payload()` method
so the FastAPI error handler can translate library-level errors directly
into the correct HTTP response without a separate mapping table.

Hierarchy:
    TranscriptError (base, 500)
    ├── MissingVideoReferenceError (400)
    ├── InvalidVideoIdError (400)
    ├── TranscriptNotFoundError (404)
    ├── TranscriptTooShortError (422)
    ├── PrimaryFetchError (502)
    ├── ScrapeError (502)
    └── FetchTimeoutError (504)
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class TranscriptError(Exception):
    """
    Root exception for all transcript-related errors.

    Attributes:
        message:     Human-readable description of what went wrong.
        http_status: Suggested HTTP status code for the API layer.
    """

    def __init__(self, message: str, http_status: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status

    def payload(self) -> dict:
        """JSON body returned to API callers for this error."""
        return {"error": self.message}


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

class MissingVideoReferenceError(TranscriptError):
    """Raised when neither a video ID nor a URL was supplied.  Maps to 400."""

    EXAMPLE = "?videoId=dQw4w9WgXcQ or ?url=https://www.youtube.com/watch?v=dQw4w9WgXcQ"

    def __init__(self) -> None:
        super().__init__(
            message="Video ID or URL is required",
            http_status=400,
        )

    def payload(self) -> dict:
        return {"error": self.message, "example": self.EXAMPLE}


class InvalidVideoIdError(TranscriptError):
    """
    Raised when the supplied string doesn't resolve to an 11-character ID.

    The raw input is echoed back so the caller can see what was received.
    Maps to HTTP 400.
    """

    EXPECTED = "11-character video ID or valid YouTube URL"

    def __init__(self, received: str) -> None:
        super().__init__(
            message="Invalid YouTube video ID or URL",
            http_status=400,
        )
        self.received = received

    def payload(self) -> dict:
        return {
            "error": self.message,
            "received": self.received,
            "expected": self.EXPECTED,
        }


# ---------------------------------------------------------------------------
# Content errors
# ---------------------------------------------------------------------------

class TranscriptNotFoundError(TranscriptError):
    """
    Raised when every transcript method failed for a video.

    `attempts` holds one "<label>: <message>" entry per failed method, in the
    order the methods were tried.  Maps to HTTP 404.
    """

    SUGGESTIONS = [
        "Verify the video has captions/CC enabled",
        "Check if the video is public and accessible",
        "Try a different video with confirmed captions",
        "Some videos may only have captions in non-English languages",
    ]

    def __init__(self, video_id: str, attempts: list[str]) -> None:
        super().__init__(
            message="No transcript found for this video",
            http_status=404,
        )
        self.video_id = video_id
        self.attempts = list(attempts)

    def payload(self) -> dict:
        return {
            "error": self.message,
            "details": "All extraction methods failed",
            "videoId": self.video_id,
            "attempts": self.attempts,
            "suggestions": list(self.SUGGESTIONS),
        }


class TranscriptTooShortError(TranscriptError):
    """
    Raised when a transcript was found but is too short after cleaning.

    Distinct from TranscriptNotFoundError: something was available, it just
    isn't useful.  Maps to HTTP 422.
    """

    def __init__(self, video_id: str, length: int) -> None:
        super().__init__(
            message="Transcript too short or invalid",
            http_status=422,
        )
        self.video_id = video_id
        self.length = length

    def payload(self) -> dict:
        return {
            "error": self.message,
            "length": self.length,
            "videoId": self.video_id,
        }


# ---------------------------------------------------------------------------
# Upstream errors (per-method, normally collected by the fallback chain)
# ---------------------------------------------------------------------------

class PrimaryFetchError(TranscriptError):
    """
    Raised by the youtube-transcript-api wrapper.

    Covers a missing library, empty or too-short results, and upstream
    errors translated into friendlier wording.  Maps to HTTP 502.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, http_status=502)


class ScrapeError(TranscriptError):
    """Raised when watch-page caption scraping fails at any step.  Maps to 502."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, http_status=502)


class FetchTimeoutError(TranscriptError):
    """Raised when an outbound request exceeds its time budget.  Maps to 504."""

    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(
            message=f"Request to {url} timed out after {timeout:g}s",
            http_status=504,
        )
        self.url = url
        self.timeout = timeout
