"""
scraper.py — Fallback transcript source: scrape captions from the watch page.

Used when youtube-transcript-api fails.  The steps are:

    1. Fetch the watch page HTML           → scrape_transcript()
    2. Locate the caption track list       → find_caption_tracks()
    3. Pick the best track                 → select_caption_track()
    4. Download the caption XML            → scrape_transcript()
    5. Pull text out of the XML            → extract_caption_segments()

YouTube doesn't document any of this.  The player response layout and the
caption XML format both change without notice, which is why track discovery
has a regex fallback and text extraction tries four progressively looser
strategies.  Expect quality to degrade quietly (later strategies kicking in)
before anything outright breaks.
"""

from __future__ import annotations

import html
import json
import logging
import re
from dataclasses import dataclass
from typing import Callable

import httpx

from notivio.config import Settings
from notivio.errors import ScrapeError
from notivio.http_client import fetch_with_timeout

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

# Start of the player response assignment in the page's inline script.  The
# JSON object itself is decoded with JSONDecoder.raw_decode from the "{"
# that follows, since a regex can't find the end of a nested object.
_PLAYER_RESPONSE_RE = re.compile(r"ytInitialPlayerResponse\s*=\s*(?=\{)")

# Looser patterns tried when the player response is missing or broken.  The
# lookahead leaves the match ending right at the "[" of the track array.
_CAPTION_TRACK_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r'"captionTracks":\s*(?=\[)'),
    re.compile(r'captionTracks":\s*(?=\[)'),
]

_JSON_DECODER = json.JSONDecoder()

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")

# Segments made only of digits, whitespace and time punctuation are
# timestamps, not speech.
_TIMESTAMP_RE = re.compile(r"^[\d\s\-:.,]+$")


# ---------------------------------------------------------------------------
# Caption tracks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CaptionTrack:
    """
    One caption track advertised by the watch page.

    Attributes:
        language_code: BCP-47-ish code, e.g. "en" or "pt-BR".
        kind:          "asr" for speech-recognition captions, "" for manual.
        base_url:      URL of the caption XML for this track.
        name:          Display name ("English (auto-generated)"), may be "".
    """
    language_code: str
    kind: str
    base_url: str
    name: str = ""

    @property
    def is_generated(self) -> bool:
        return self.kind == "asr"

    @classmethod
    def from_dict(cls, raw: dict) -> CaptionTrack:
        """Build a track from one entry of the page's captionTracks array."""
        name = raw.get("name") or {}
        if isinstance(name, dict):
            if "simpleText" in name:
                name = name["simpleText"]
            else:
                name = "".join(run.get("text", "") for run in name.get("runs", []))
        return cls(
            language_code=raw.get("languageCode", ""),
            kind=raw.get("kind", "") or "",
            base_url=raw.get("baseUrl", ""),
            name=str(name),
        )


def _tracks_from_list(raw_tracks: object) -> list[CaptionTrack]:
    if not isinstance(raw_tracks, list):
        return []
    return [
        CaptionTrack.from_dict(raw)
        for raw in raw_tracks
        if isinstance(raw, dict) and raw.get("baseUrl")
    ]


def _decode_json_at(text: str, index: int) -> object | None:
    try:
        value, _ = _JSON_DECODER.raw_decode(text, index)
    except ValueError as exc:
        logger.warning("Failed to parse embedded JSON at offset %d: %s", index, exc)
        return None
    return value


def find_caption_tracks(page_html: str) -> list[CaptionTrack]:
    """
    Locate the caption track list in watch-page HTML.

    Tries the embedded ytInitialPlayerResponse object first, then falls back
    to matching the raw "captionTracks" array.  Returns an empty list when
    neither approach finds any tracks.
    """
    match = _PLAYER_RESPONSE_RE.search(page_html)
    if match:
        player = _decode_json_at(page_html, match.end())
        if isinstance(player, dict):
            captions = player.get("captions") or {}
            renderer = captions.get("playerCaptionsTracklistRenderer") or {}
            raw_tracks = renderer.get("captionTracks")
            tracks = _tracks_from_list(raw_tracks)
            if tracks:
                logger.info("Found %d caption tracks in player response", len(tracks))
                return tracks

    for pattern in _CAPTION_TRACK_PATTERNS:
        match = pattern.search(page_html)
        if not match:
            continue
        tracks = _tracks_from_list(_decode_json_at(page_html, match.end()))
        if tracks:
            logger.info("Found %d caption tracks via regex", len(tracks))
            return tracks

    return []


# Track preference, best first: manual English, auto English, any manual,
# anything at all.
_TRACK_PRIORITIES: list[Callable[[CaptionTrack], bool]] = [
    lambda t: t.language_code == "en" and not t.is_generated,
    lambda t: t.language_code == "en" and t.is_generated,
    lambda t: not t.is_generated,
    lambda t: True,
]


def select_caption_track(tracks: list[CaptionTrack]) -> CaptionTrack | None:
    """
    Pick the most useful track, or None if the list is empty.

    Within a priority level the first track in page order wins.
    """
    for matches in _TRACK_PRIORITIES:
        for track in tracks:
            if matches(track):
                return track
    return None


# ---------------------------------------------------------------------------
# Text extraction strategies
# ---------------------------------------------------------------------------

def _clean_segment(raw: str) -> str:
    text = html.unescape(raw)
    text = _TAG_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _segments_in_tags(pattern: re.Pattern[str], xml: str, min_length: int = 1) -> list[str]:
    segments = []
    for match in pattern.finditer(xml):
        text = _clean_segment(match.group("body"))
        if len(text) >= min_length:
            segments.append(text)
    return segments


_TEXT_TAG_RE = re.compile(r"<text\b[^>]*>(?P<body>.*?)</text>", re.IGNORECASE | re.DOTALL)
_P_TAG_RE = re.compile(r"<p\b[^>]*>(?P<body>.*?)</p>", re.IGNORECASE | re.DOTALL)
_GENERIC_TAG_RE = re.compile(
    r"<(?P<tag>s|span|div)\b[^>]*>(?P<body>.*?)</(?P=tag)>",
    re.IGNORECASE | re.DOTALL,
)
_WRAPPER_RE = re.compile(
    r"<\?xml[^>]*\?>|</?transcript\b[^>]*>|</?timedtext\b[^>]*>",
    re.IGNORECASE,
)
_BETWEEN_TAGS_RE = re.compile(r">([^<]+)<")


def extract_text_tags(xml: str) -> list[str]:
    """Classic timedtext format: <text start=".." dur="..">words</text>."""
    return _segments_in_tags(_TEXT_TAG_RE, xml)


def extract_paragraph_tags(xml: str) -> list[str]:
    """srv3 format: <p t=".." d="..">words</p>, possibly with <s> children."""
    return _segments_in_tags(_P_TAG_RE, xml)


def extract_generic_tags(xml: str) -> list[str]:
    """<s>, <span> or <div> bodies; segments of two characters or less are noise."""
    return _segments_in_tags(_GENERIC_TAG_RE, xml, min_length=3)


def extract_loose_text(xml: str) -> list[str]:
    """
    Last resort: every run of text between two tags.

    The XML declaration and <transcript>/<timedtext> wrappers are removed
    first.  Timestamp-looking runs and runs of three characters or fewer
    are dropped.
    """
    stripped = _WRAPPER_RE.sub("", xml)
    segments = []
    for match in _BETWEEN_TAGS_RE.finditer(stripped):
        text = _WHITESPACE_RE.sub(" ", html.unescape(match.group(1))).strip()
        if len(text) > 3 and not _TIMESTAMP_RE.match(text):
            segments.append(text)
    return segments


# Evaluated in order; the first strategy returning any segment wins.
EXTRACTION_STRATEGIES: list[tuple[str, Callable[[str], list[str]]]] = [
    ("text tags", extract_text_tags),
    ("paragraph tags", extract_paragraph_tags),
    ("generic tags", extract_generic_tags),
    ("loose text", extract_loose_text),
]


def extract_caption_segments(xml: str) -> list[str]:
    """
    Run the extraction strategies in order and return the first non-empty
    result, or an empty list if all four come up empty.
    """
    for name, strategy in EXTRACTION_STRATEGIES:
        segments = strategy(xml)
        logger.debug("Strategy %r found %d segments", name, len(segments))
        if segments:
            return segments
    return []


# ---------------------------------------------------------------------------
# Scraping entry point
# ---------------------------------------------------------------------------

def _page_headers(settings: Settings) -> dict[str, str]:
    return {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Upgrade-Insecure-Requests": "1",
    }


async def scrape_transcript(
    video_id: str,
    *,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> str:
    """
    Fetch a transcript by scraping the watch page and its caption XML.

    Args:
        video_id: The 11-character YouTube video ID.
        client:   Optional shared httpx client.
        settings: Timeouts and User-Agent; read from the environment if None.

    Returns:
        All caption segments joined with single spaces.

    Raises:
        ScrapeError:       A page/caption request failed, no usable track
                           exists, or no text could be extracted.
        FetchTimeoutError: The page or caption download timed out.
    """
    settings = settings or Settings.from_env()
    logger.info("Scraping transcript from watch page for video %s", video_id)

    response = await fetch_with_timeout(
        WATCH_URL.format(video_id=video_id),
        timeout=settings.transcript_timeout,
        client=client,
        headers=_page_headers(settings),
    )
    if not response.is_success:
        raise ScrapeError(
            f"Failed to fetch YouTube page: {response.status_code} {response.reason_phrase}"
        )
    page_html = response.text
    logger.debug("Fetched watch page, %d characters", len(page_html))

    tracks = find_caption_tracks(page_html)
    if not tracks:
        raise ScrapeError("No caption tracks found in page source")

    track = select_caption_track(tracks)
    if track is None:
        raise ScrapeError("No suitable caption track found")
    logger.info(
        "Selected caption track: %s (%s)",
        track.language_code,
        track.kind or "manual",
    )

    caption_response = await fetch_with_timeout(
        track.base_url,
        timeout=settings.caption_timeout,
        client=client,
        headers={"User-Agent": settings.user_agent},
    )
    if not caption_response.is_success:
        raise ScrapeError(f"Failed to fetch caption file: {caption_response.status_code}")
    caption_xml = caption_response.text
    logger.debug("Fetched caption XML, %d characters", len(caption_xml))

    segments = extract_caption_segments(caption_xml)
    if not segments:
        logger.error(
            "All parsing strategies failed (length=%d, has <text>=%s, has <p>=%s)",
            len(caption_xml),
            "<text" in caption_xml,
            "<p" in caption_xml,
        )
        raise ScrapeError(
            "No text segments found in caption file after trying 4 different "
            "parsing strategies. XML may be in an unsupported format."
        )

    transcript = " ".join(segments)
    logger.info(
        "Extracted transcript with %d segments, %d characters",
        len(segments),
        len(transcript),
    )
    return transcript
