"""Tests for gateway/config.py — Settings validation and helpers."""
import pytest
from pydantic import ValidationError

from gateway.config import Settings, _csv, mask_secret, settings


class TestSettings:
    def test_default_framing_is_valid(self):
        assert settings.stream_framing in ("text", "sse")

    @pytest.mark.parametrize("framing", ["text", "sse"])
    def test_known_framings_accepted(self, framing):
        assert Settings(stream_framing=framing).stream_framing == framing

    def test_unknown_framing_rejected(self):
        with pytest.raises(ValidationError):
            Settings(stream_framing="xml")


class TestHelpers:
    def test_csv_trims_and_drops_empty(self):
        assert _csv(" sudo, dd ,,mkfs ") == ["sudo", "dd", "mkfs"]
        assert _csv("") == []

    def test_mask_secret(self):
        assert mask_secret("sk-abcdef1234") == "***1234"
        assert mask_secret("") == "EMPTY"
