"""
test_extractor.py — Unit and integration tests for the core extraction module.

Unit tests (fast, no network):
    - URL / ID resolution for every supported format
    - clean_transcript() behaviour
    - Fallback chain ordering and error accumulation
    - youtube-transcript-api wrapper with the library mocked
    - extract() end to end with injected methods and mocked metadata

Integration tests (need network, marked with @pytest.mark.integration):
    - Fetching a transcript from a real YouTube video
"""

from __future__ import annotations

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import youtube_transcript_api

from notivio.config import Settings
from notivio.errors import (
    InvalidVideoIdError,
    MissingVideoReferenceError,
    PrimaryFetchError,
    ScrapeError,
    TranscriptNotFoundError,
    TranscriptTooShortError,
)
from notivio.extractor import (
    TranscriptMethod,
    clean_transcript,
    default_methods,
    extract,
    fetch_transcript,
    fetch_transcript_with_package,
    resolve_video_id,
)
from notivio.metadata import VideoMetadata


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SETTINGS = Settings(youtube_api_key=None)


class FakeSnippet:
    """Mimics FetchedTranscriptSnippet with .text, .start, .duration."""

    def __init__(self, text: str, start: float = 0.0, duration: float = 1.0) -> None:
        self.text = text
        self.start = start
        self.duration = duration


def _method(name: str, label: str, **mock_kwargs) -> TranscriptMethod:
    return TranscriptMethod(name=name, label=label, fetch=AsyncMock(**mock_kwargs))


# ---------------------------------------------------------------------------
# resolve_video_id — URL parsing
# ---------------------------------------------------------------------------

class TestResolveVideoId:
    """Tests for resolve_video_id covering every URL template + bare IDs."""

    VIDEO_ID = "dQw4w9WgXcQ"

    def test_bare_id_returned_verbatim(self) -> None:
        """An already-valid ID comes back unchanged."""
        assert resolve_video_id(self.VIDEO_ID) == self.VIDEO_ID

    def test_resolving_twice_is_stable(self) -> None:
        """Resolving a resolved ID gives the same ID."""
        once = resolve_video_id(f"https://youtu.be/{self.VIDEO_ID}")
        assert resolve_video_id(once) == once

    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://www.youtube.com/v/dQw4w9WgXcQ",
    ])
    def test_every_template_gives_same_id(self, url: str) -> None:
        """All four supported URL templates resolve to the same ID."""
        assert resolve_video_id(url) == self.VIDEO_ID

    def test_watch_url_with_extra_params(self) -> None:
        """Trailing query parameters don't leak into the ID."""
        url = "https://www.youtube.com/watch?v=dQw4w9WgXcQ&list=PLx&t=42"
        assert resolve_video_id(url) == self.VIDEO_ID

    def test_whitespace_is_trimmed(self) -> None:
        assert resolve_video_id("  dQw4w9WgXcQ  ") == self.VIDEO_ID

    def test_id_with_hyphens_and_underscores(self) -> None:
        """IDs can contain hyphens and underscores (base64url alphabet)."""
        assert resolve_video_id("Ab_Cd-Ef_12") == "Ab_Cd-Ef_12"

    def test_unrelated_string_returns_none(self) -> None:
        assert resolve_video_id("not-a-youtube-url") is None

    def test_empty_and_none_return_none(self) -> None:
        assert resolve_video_id("") is None
        assert resolve_video_id(None) is None

    def test_too_short_id_in_url_returns_none(self) -> None:
        """A watch URL whose ID isn't 11 characters doesn't resolve."""
        assert resolve_video_id("https://www.youtube.com/watch?v=short") is None


# ---------------------------------------------------------------------------
# clean_transcript
# ---------------------------------------------------------------------------

class TestCleanTranscript:
    """Tests for annotation stripping and whitespace collapsing."""

    def test_strips_bracketed_annotations(self) -> None:
        text = "[Music] never gonna [Applause] give you up"
        assert clean_transcript(text) == "never gonna give you up"

    def test_collapses_whitespace(self) -> None:
        assert clean_transcript("  hello\n\n  world\t!  ") == "hello world !"

    def test_idempotent(self) -> None:
        """Cleaning twice gives the same result as cleaning once."""
        raw = "[Music]  we're  no strangers\n to love [Laughter]"
        once = clean_transcript(raw)
        assert clean_transcript(once) == once

    def test_annotation_spanning_lines(self) -> None:
        """A bracketed note broken across lines is removed in one pass."""
        raw = "[Music\nplaying] never gonna give you up"
        once = clean_transcript(raw)
        assert once == "never gonna give you up"
        assert clean_transcript(once) == once

    def test_unclosed_bracket_is_kept(self) -> None:
        once = clean_transcript("[Music] never gonna [give you up")
        assert once == "never gonna [give you up"
        assert clean_transcript(once) == once

    def test_only_annotations_becomes_empty(self) -> None:
        assert clean_transcript("[Music] [Music]") == ""


# ---------------------------------------------------------------------------
# fetch_transcript — fallback chain
# ---------------------------------------------------------------------------

class TestFetchTranscript:
    """Tests for the ordered, first-success-wins fallback chain."""

    def test_primary_success_skips_fallback(self) -> None:
        """When the first method succeeds the second is never called."""
        primary = _method("primary", "Primary", return_value="hello from primary")
        fallback = _method("fallback", "Fallback", return_value="hello from fallback")

        result = asyncio.run(fetch_transcript("dQw4w9WgXcQ", [primary, fallback]))

        assert result.text == "hello from primary"
        assert result.method_used == "primary"
        assert result.errors == []
        fallback.fetch.assert_not_called()

    def test_primary_error_runs_fallback_once(self) -> None:
        """A raising primary hands over to the fallback exactly once."""
        primary = _method("primary", "Primary", side_effect=PrimaryFetchError("nope"))
        fallback = _method("fallback", "Fallback", return_value="hello from fallback")

        result = asyncio.run(fetch_transcript("dQw4w9WgXcQ", [primary, fallback]))

        assert result.method_used == "fallback"
        assert result.errors == ["Primary: nope"]
        fallback.fetch.assert_awaited_once_with("dQw4w9WgXcQ")

    def test_primary_empty_runs_fallback_once(self) -> None:
        """Whitespace-only text counts as failure."""
        primary = _method("primary", "Primary", return_value="   ")
        fallback = _method("fallback", "Fallback", return_value="hello from fallback")

        result = asyncio.run(fetch_transcript("dQw4w9WgXcQ", [primary, fallback]))

        assert result.method_used == "fallback"
        assert len(result.errors) == 1
        fallback.fetch.assert_awaited_once()

    def test_unexpected_exception_is_recorded(self) -> None:
        """Non-library exceptions still move the chain along."""
        primary = _method("primary", "Primary", side_effect=RuntimeError("socket closed"))
        fallback = _method("fallback", "Fallback", return_value="text")

        result = asyncio.run(fetch_transcript("dQw4w9WgXcQ", [primary, fallback]))

        assert result.errors == ["Primary: socket closed"]

    def test_all_fail_raises_with_attempts(self) -> None:
        """Every failure message is carried on TranscriptNotFoundError."""
        primary = _method("primary", "Package", side_effect=PrimaryFetchError("disabled"))
        fallback = _method("fallback", "Scraping", side_effect=ScrapeError("no tracks"))

        with pytest.raises(TranscriptNotFoundError) as exc_info:
            asyncio.run(fetch_transcript("dQw4w9WgXcQ", [primary, fallback]))

        assert exc_info.value.attempts == ["Package: disabled", "Scraping: no tracks"]
        assert exc_info.value.http_status == 404

    def test_default_methods_order(self) -> None:
        """Production chain: package first, scraping second."""
        methods = default_methods(settings=_SETTINGS)
        assert [m.name for m in methods] == ["youtube-transcript package", "caption scraping"]
        assert [m.label for m in methods] == ["Package", "Scraping"]


# ---------------------------------------------------------------------------
# fetch_transcript_with_package — youtube-transcript-api wrapper
# ---------------------------------------------------------------------------

class TestFetchTranscriptWithPackage:
    """Tests for the primary method with YouTubeTranscriptApi mocked."""

    @patch("youtube_transcript_api.YouTubeTranscriptApi")
    def test_joins_snippet_text(self, MockApi: MagicMock) -> None:
        MockApi.return_value.fetch.return_value = [
            FakeSnippet(" Never gonna "),
            FakeSnippet("give you up"),
        ]

        text = asyncio.run(fetch_transcript_with_package("dQw4w9WgXcQ"))

        assert text == "Never gonna give you up"
        MockApi.return_value.fetch.assert_called_once_with("dQw4w9WgXcQ", languages=["en"])

    @patch("youtube_transcript_api.YouTubeTranscriptApi")
    def test_accepts_strings_and_dicts(self, MockApi: MagicMock) -> None:
        """Items may be plain strings or {"text": ...} dicts."""
        MockApi.return_value.fetch.return_value = [
            "Never gonna",
            {"text": "give you up"},
            {"text": ""},
        ]

        text = asyncio.run(fetch_transcript_with_package("dQw4w9WgXcQ"))

        assert text == "Never gonna give you up"

    @patch("youtube_transcript_api.YouTubeTranscriptApi")
    def test_no_items_raises(self, MockApi: MagicMock) -> None:
        MockApi.return_value.fetch.return_value = []

        with pytest.raises(PrimaryFetchError, match="No transcript items"):
            asyncio.run(fetch_transcript_with_package("dQw4w9WgXcQ"))

    @patch("youtube_transcript_api.YouTubeTranscriptApi")
    def test_short_transcript_raises(self, MockApi: MagicMock) -> None:
        MockApi.return_value.fetch.return_value = [FakeSnippet("hi")]

        with pytest.raises(PrimaryFetchError, match="too short"):
            asyncio.run(fetch_transcript_with_package("dQw4w9WgXcQ"))

    @patch("youtube_transcript_api.YouTubeTranscriptApi")
    def test_transcripts_disabled_is_translated(self, MockApi: MagicMock) -> None:
        MockApi.return_value.fetch.side_effect = youtube_transcript_api.TranscriptsDisabled(
            "dQw4w9WgXcQ"
        )

        with pytest.raises(PrimaryFetchError) as exc_info:
            asyncio.run(fetch_transcript_with_package("dQw4w9WgXcQ"))

        assert exc_info.value.message == "Transcripts are disabled for this video"

    @patch("youtube_transcript_api.YouTubeTranscriptApi")
    def test_video_unavailable_is_translated(self, MockApi: MagicMock) -> None:
        MockApi.return_value.fetch.side_effect = youtube_transcript_api.VideoUnavailable(
            "dQw4w9WgXcQ"
        )

        with pytest.raises(PrimaryFetchError) as exc_info:
            asyncio.run(fetch_transcript_with_package("dQw4w9WgXcQ"))

        assert exc_info.value.message == "Video is unavailable or private"

    @patch("youtube_transcript_api.YouTubeTranscriptApi")
    def test_unknown_errors_propagate_unchanged(self, MockApi: MagicMock) -> None:
        MockApi.return_value.fetch.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            asyncio.run(fetch_transcript_with_package("dQw4w9WgXcQ"))

    @patch("youtube_transcript_api.YouTubeTranscriptApi")
    def test_timeout(self, MockApi: MagicMock) -> None:
        """A call slower than the budget fails with a timeout message."""
        MockApi.return_value.fetch.side_effect = lambda *a, **kw: time.sleep(0.5)

        with pytest.raises(PrimaryFetchError, match="timed out"):
            asyncio.run(fetch_transcript_with_package("dQw4w9WgXcQ", timeout=0.05))

    @patch("youtube_transcript_api.YouTubeTranscriptApi")
    def test_timeout_does_not_wait_for_worker(self, MockApi: MagicMock) -> None:
        """The timeout fires on budget even though the worker thread keeps running."""
        MockApi.return_value.fetch.side_effect = lambda *a, **kw: time.sleep(0.5)

        async def run() -> float:
            started = time.monotonic()
            with pytest.raises(PrimaryFetchError, match="timed out"):
                await fetch_transcript_with_package("dQw4w9WgXcQ", timeout=0.05)
            return time.monotonic() - started

        assert asyncio.run(run()) < 0.4

    @patch("notivio.extractor._load_transcript_api")
    def test_missing_library(self, mock_load: MagicMock) -> None:
        """An import failure surfaces as PrimaryFetchError, not ImportError."""
        mock_load.side_effect = PrimaryFetchError("youtube-transcript-api package not available")

        with pytest.raises(PrimaryFetchError, match="not available"):
            asyncio.run(fetch_transcript_with_package("dQw4w9WgXcQ"))


# ---------------------------------------------------------------------------
# extract() — the route body
# ---------------------------------------------------------------------------

_METADATA = VideoMetadata(title="Never Gonna Give You Up", duration="3:33", source="oembed")


@patch("notivio.extractor.fetch_video_metadata", new_callable=AsyncMock, return_value=_METADATA)
class TestExtract:
    """Tests for extract() with injected methods and mocked metadata."""

    def test_missing_value(self, mock_meta: AsyncMock) -> None:
        with pytest.raises(MissingVideoReferenceError):
            asyncio.run(extract(None, settings=_SETTINGS))
        with pytest.raises(MissingVideoReferenceError):
            asyncio.run(extract("   ", settings=_SETTINGS))

    def test_invalid_value(self, mock_meta: AsyncMock) -> None:
        with pytest.raises(InvalidVideoIdError) as exc_info:
            asyncio.run(extract("https://vimeo.com/123", settings=_SETTINGS))

        assert exc_info.value.payload()["received"] == "https://vimeo.com/123"

    def test_scrape_fallback_scenario(self, mock_meta: AsyncMock) -> None:
        """Primary unavailable, scraping yields 200 characters → success."""
        scraped = "abcd " * 39 + "abcde"
        assert len(scraped) == 200
        methods = [
            _method("youtube-transcript package", "Package",
                    side_effect=PrimaryFetchError("youtube-transcript-api package not available")),
            _method("caption scraping", "Scraping", return_value=scraped),
        ]

        result = asyncio.run(extract("dQw4w9WgXcQ", methods=methods, settings=_SETTINGS))

        assert result["success"] is True
        assert result["methodUsed"] == "caption scraping"
        assert result["videoId"] == "dQw4w9WgXcQ"
        assert result["transcript"] == scraped
        assert len(result["transcript"]) == 200
        assert result["wordCount"] == 40
        assert result["title"] == "Never Gonna Give You Up"
        assert result["duration"] == "3:33"
        assert "attempts" not in result
        methods[1].fetch.assert_awaited_once_with("dQw4w9WgXcQ")

    def test_exactly_min_length_passes(self, mock_meta: AsyncMock) -> None:
        methods = [_method("m", "M", return_value="x" * 50)]

        result = asyncio.run(extract("dQw4w9WgXcQ", methods=methods, settings=_SETTINGS))

        assert len(result["transcript"]) == 50

    def test_one_below_min_length_is_rejected(self, mock_meta: AsyncMock) -> None:
        methods = [_method("m", "M", return_value="x" * 49)]

        with pytest.raises(TranscriptTooShortError) as exc_info:
            asyncio.run(extract("dQw4w9WgXcQ", methods=methods, settings=_SETTINGS))

        assert exc_info.value.http_status == 422
        assert exc_info.value.length == 49
        mock_meta.assert_not_awaited()

    def test_length_measured_after_cleaning(self, mock_meta: AsyncMock) -> None:
        """Annotations don't count towards the minimum length."""
        methods = [_method("m", "M", return_value="[Music] " * 20 + "short words")]

        with pytest.raises(TranscriptTooShortError) as exc_info:
            asyncio.run(extract("dQw4w9WgXcQ", methods=methods, settings=_SETTINGS))

        assert exc_info.value.length == len("short words")

    def test_all_methods_failed(self, mock_meta: AsyncMock) -> None:
        methods = [_method("m", "M", side_effect=ScrapeError("No caption tracks found"))]

        with pytest.raises(TranscriptNotFoundError) as exc_info:
            asyncio.run(extract("dQw4w9WgXcQ", methods=methods, settings=_SETTINGS))

        payload = exc_info.value.payload()
        assert payload["attempts"] == ["M: No caption tracks found"]
        assert payload["videoId"] == "dQw4w9WgXcQ"
        assert payload["suggestions"]


# ---------------------------------------------------------------------------
# Integration tests — require network access
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestIntegration:
    """
    Integration tests that hit YouTube's servers.

    Run with:  pytest -m integration
    """

    # "Never Gonna Give You Up" — one of the most stable videos on YouTube,
    # virtually guaranteed to have English captions.
    VIDEO_ID = "dQw4w9WgXcQ"

    def test_extract(self) -> None:
        result = asyncio.run(extract(self.VIDEO_ID))
        assert result["success"] is True
        assert len(result["transcript"]) > 100
