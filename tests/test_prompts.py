"""Tests for adoc_sync.translation.prompts."""

import pytest

from adoc_sync.translation.prompts import (
    Direction,
    TranslationMode,
    build_instructions,
    language_name,
)


class TestDirection:
    @pytest.mark.parametrize("value", ["en-sr", "EN-SR", " en->sr "])
    def test_parse(self, value):
        assert Direction.parse(value) == Direction("en", "sr")

    @pytest.mark.parametrize("value", ["en", "en-en", "en-sr-de", ""])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError, match="Invalid translation direction"):
            Direction.parse(value)

    def test_str_and_reversed(self):
        direction = Direction("sr", "en")
        assert str(direction) == "sr-en"
        assert direction.reversed() == Direction("en", "sr")


class TestInstructions:
    def test_language_names(self):
        assert language_name("en") == "English"
        assert language_name("SR") == "Serbian (latin alphabet)"
        assert language_name("de") == "de"

    def test_normal_profile(self):
        text = build_instructions(TranslationMode.NORMAL, Direction("en", "sr"))
        assert text.startswith(
            "You are a professional technical translator from English to Serbian"
        )
        assert "SAFE MODE" not in text
        assert "Do NOT add or remove lines." in text

    def test_strict_profile_names_source_language(self):
        text = build_instructions(TranslationMode.STRICT, Direction("sr", "en"))
        assert "SAFE MODE" in text
        assert "EXACTLY AS IN THE ORIGINAL SERBIAN" in text
