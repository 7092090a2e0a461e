"""
cli.py — Command-line interface for the Notivio transcript service.

Provides the `notivio` command group (registered as a console script in
pyproject.toml):

    get       Fetch a cleaned transcript for a video.
    metadata  Show a video's title and duration.
    serve     Run the HTTP API with uvicorn.

Usage examples:
    notivio get "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    notivio get dQw4w9WgXcQ --format json --output rick.json
    notivio -v metadata https://youtu.be/dQw4w9WgXcQ
    notivio serve --port 8080
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click

from notivio.config import Settings
from notivio.errors import InvalidVideoIdError, TranscriptError
from notivio.extractor import extract, resolve_video_id
from notivio.metadata import fetch_video_metadata


# ---------------------------------------------------------------------------
# CLI group — the top-level `notivio` command
# ---------------------------------------------------------------------------

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log every step at DEBUG level.")
def main(verbose: bool) -> None:
    """
    Notivio — turn YouTube videos into transcripts for study notes.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Subcommand: get — fetch a transcript
# ---------------------------------------------------------------------------

@main.command()
@click.argument("video", metavar="URL_OR_ID")
@click.option(
    "--format", "-f",
    "fmt",                           # avoid shadowing the builtin "format"
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format: transcript text only, or the full JSON response.",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Write output to a file instead of stdout.",
)
def get(video: str, fmt: str, output: str | None) -> None:
    """
    Fetch the cleaned transcript for a YouTube video.

    VIDEO can be a full YouTube URL or an 11-character video ID.
    """
    try:
        result = asyncio.run(extract(video))
    except TranscriptError as exc:
        click.echo(f"Error: {exc.message}", err=True)
        for attempt in getattr(exc, "attempts", []):
            click.echo(f"  - {attempt}", err=True)
        sys.exit(1)

    if fmt == "json":
        text = json.dumps(result, indent=2, ensure_ascii=False)
    else:
        text = result["transcript"]

    if output:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.write("\n")
        click.echo(
            f"Transcript written to {output} "
            f"({result['wordCount']} words via {result['methodUsed']})",
            err=True,
        )
    else:
        click.echo(text)


# ---------------------------------------------------------------------------
# Subcommand: metadata — title and duration only
# ---------------------------------------------------------------------------

@main.command()
@click.argument("video", metavar="URL_OR_ID")
def metadata(video: str) -> None:
    """
    Show the title and duration of a YouTube video.

    Falls back to a placeholder title when YouTube can't be reached.
    """
    video_id = resolve_video_id(video)
    if video_id is None:
        click.echo(f"Error: {InvalidVideoIdError(video).message}", err=True)
        sys.exit(1)

    info = asyncio.run(fetch_video_metadata(video_id, settings=Settings.from_env()))
    click.echo(f"{info.title} ({info.duration})")
    click.echo(f"  ID: {video_id}")


# ---------------------------------------------------------------------------
# Subcommand: serve — run the HTTP API
# ---------------------------------------------------------------------------

@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind.")
@click.option("--port", default=8000, show_default=True, type=int, help="Port to listen on.")
def serve(host: str, port: int) -> None:
    """
    Serve GET /api/video-transcript with uvicorn.
    """
    import uvicorn

    uvicorn.run("notivio.api:app", host=host, port=port)
