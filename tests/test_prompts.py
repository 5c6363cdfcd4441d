"""Tests for extraction request building."""

from statement_ledger.extraction.prompts import (
    DEFAULT_MAX_INPUT_CHARS,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
    build_extraction_prompt,
    build_extraction_request,
)
from statement_ledger.models.category import CATEGORIES


class TestBuildExtractionPrompt:
    """Tests for build_extraction_prompt."""

    def test_embeds_every_category(self) -> None:
        """Test the whole vocabulary is listed."""
        prompt = build_extraction_prompt("statement text")
        for category in CATEGORIES:
            assert category in prompt

    def test_embeds_rules_and_format(self) -> None:
        """Test formatting rules and the JSON shape are present."""
        prompt = build_extraction_prompt("statement text")
        assert "YYYY-MM-DD" in prompt
        assert '"fixed"' in prompt
        assert '"variable"' in prompt
        assert '"transactions"' in prompt
        assert '"bankName"' in prompt
        assert '"costType"' in prompt

    def test_text_at_end(self) -> None:
        """Test the statement text closes the prompt."""
        prompt = build_extraction_prompt("01/02 COFFEE 3.50")
        assert prompt.endswith("Text:\n01/02 COFFEE 3.50\n\nJSON:")


class TestBuildExtractionRequest:
    """Tests for build_extraction_request."""

    def test_defaults(self) -> None:
        """Test generation parameters default to deterministic-leaning values."""
        request = build_extraction_request("text")
        assert request.temperature == DEFAULT_TEMPERATURE
        assert request.max_output_tokens == DEFAULT_MAX_OUTPUT_TOKENS
        assert "JSON" in request.system_prompt

    def test_short_text_untouched(self) -> None:
        """Test text under the cap is sent whole."""
        request = build_extraction_request("short statement")
        assert request.text == "short statement"

    def test_long_text_truncated_silently(self) -> None:
        """Test text over the cap is cut to the cap."""
        text = "a" * (DEFAULT_MAX_INPUT_CHARS + 500)
        request = build_extraction_request(text)
        assert len(request.text) == DEFAULT_MAX_INPUT_CHARS
        assert request.prompt.endswith("a" * DEFAULT_MAX_INPUT_CHARS + "\n\nJSON:")
        assert "a" * (DEFAULT_MAX_INPUT_CHARS + 1) not in request.prompt

    def test_custom_parameters(self) -> None:
        """Test explicit parameters are carried through."""
        request = build_extraction_request(
            "0123456789abc", max_chars=10, temperature=0.0, max_output_tokens=512
        )
        assert request.text == "0123456789"
        assert request.temperature == 0.0
        assert request.max_output_tokens == 512

    def test_pure(self) -> None:
        """Test the same input builds an equal request."""
        assert build_extraction_request("same text") == build_extraction_request("same text")
