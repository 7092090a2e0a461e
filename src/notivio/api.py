"""
api.py — FastAPI REST API for the Notivio transcript service.

Endpoints:
    GET /api/video-transcript   — Transcript + metadata for ?videoId= or ?url=.
    GET /health                 — Simple health-check for load balancers / monitoring.

Run with:
    notivio serve
    # or
    uvicorn notivio.api:app

The TranscriptError handler converts library errors into responses using the
status code and payload stored on the exception.  Anything else is caught by
the catch-all handler and reported as a 500 with a timestamp.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from notivio import __version__
from notivio.errors import TranscriptError
from notivio.extractor import extract

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Notivio Transcript API",
    description="Fetch cleaned YouTube transcripts and basic video metadata "
                "for turning videos into study notes.",
    version=__version__,
)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

@app.exception_handler(TranscriptError)
async def transcript_error_handler(request: Request, exc: TranscriptError) -> JSONResponse:
    """
    Translate any TranscriptError (or subclass) into an HTTP error response.

    http_status drives the response code and payload() the body, so the
    endpoint just raises the right library exception.
    """
    logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.http_status, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.payload(),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last line of defence: log the traceback and return a 500."""
    logger.exception("Unexpected error while handling %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error while fetching transcript",
            "details": str(exc),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/api/video-transcript")
async def video_transcript(
    video_id: str | None = Query(
        default=None,
        alias="videoId",
        description="The 11-character YouTube video ID (e.g. 'dQw4w9WgXcQ').",
    ),
    url: str | None = Query(
        default=None,
        description="A full YouTube URL.  Ignored when videoId is given.",
    ),
) -> JSONResponse:
    """
    Fetch the cleaned transcript and metadata for a single YouTube video.

    On success the body has `transcript`, `title`, `duration`, `videoId`,
    `wordCount`, `methodUsed` and `success: true`.  Errors:

    - 400: missing parameter, or one that isn't a YouTube ID/URL.
    - 404: every transcript method failed; `attempts` says why.
    - 422: a transcript was found but is too short to be useful.
    - 500: unexpected server error.
    """
    value = video_id or url
    logger.info("Video transcript requested for %r", value)

    result = await extract(value)
    return JSONResponse(content=result)


@app.get("/health")
async def health() -> dict:
    """
    Minimal health-check endpoint.

    Returns HTTP 200 with {"status": "ok"}.
    """
    return {"status": "ok"}
