"""
test_config.py — Tests for environment-driven settings.
"""

from __future__ import annotations

import pytest

from notivio.config import Settings


class TestSettingsFromEnv:
    """Tests for Settings.from_env() using monkeypatched environment variables."""

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "YOUTUBE_API_KEY",
            "NOTIVIO_TRANSCRIPT_TIMEOUT",
            "NOTIVIO_CAPTION_TIMEOUT",
            "NOTIVIO_METADATA_TIMEOUT",
        ):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self) -> None:
        settings = Settings.from_env()

        assert settings.youtube_api_key is None
        assert settings.transcript_timeout == 30.0
        assert settings.caption_timeout == 15.0
        assert settings.metadata_timeout == 10.0
        assert settings.min_transcript_length == 50

    def test_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YOUTUBE_API_KEY", "  abc123  ")
        assert Settings.from_env().youtube_api_key == "abc123"

    def test_blank_api_key_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YOUTUBE_API_KEY", "   ")
        assert Settings.from_env().youtube_api_key is None

    def test_timeout_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NOTIVIO_CAPTION_TIMEOUT", "5")
        monkeypatch.setenv("NOTIVIO_METADATA_TIMEOUT", "2.5")

        settings = Settings.from_env()

        assert settings.caption_timeout == 5.0
        assert settings.metadata_timeout == 2.5
        assert settings.transcript_timeout == 30.0

    @pytest.mark.parametrize("raw", ["soon", "0", "-3"])
    def test_invalid_timeout_falls_back(self, monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
        monkeypatch.setenv("NOTIVIO_TRANSCRIPT_TIMEOUT", raw)
        assert Settings.from_env().transcript_timeout == 30.0
