"""Tests for configuration loading."""

import pytest

from statement_ledger.config import (
    DEFAULT_MODEL,
    Config,
    ConfigError,
    ExtractionConfig,
    LoggingConfig,
    load_config,
    load_yaml_file,
)


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_uses_defaults(self, tmp_path) -> None:
        """Test a missing settings file yields the defaults."""
        config = load_config(tmp_path / "missing.yaml")
        assert config == Config()
        assert config.extraction.model == DEFAULT_MODEL
        assert config.extraction.max_input_chars == 8000
        assert config.extraction.request_timeout == 120.0

    def test_sections_loaded(self, tmp_path) -> None:
        """Test values from each section are applied."""
        path = tmp_path / "settings.yaml"
        path.write_text(
            "extraction:\n"
            "  model: claude-test\n"
            "  max_input_chars: 4000\n"
            "  request_timeout: 30\n"
            "recognition:\n"
            "  language: eng+hin\n"
            "  pdf_resolution: 200\n"
            "output:\n"
            "  currency_symbol: $\n"
            "logging:\n"
            "  level: debug\n",
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.extraction.model == "claude-test"
        assert config.extraction.max_input_chars == 4000
        assert config.extraction.request_timeout == 30.0
        assert config.recognition.language == "eng+hin"
        assert config.recognition.pdf_resolution == 200
        assert config.output.currency_symbol == "$"
        assert config.output.decimal_places == 2
        assert config.logging.level == "DEBUG"

    def test_empty_file(self, tmp_path) -> None:
        """Test an empty file yields the defaults."""
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == Config()

    def test_invalid_yaml(self, tmp_path) -> None:
        """Test malformed YAML raises ConfigError."""
        path = tmp_path / "settings.yaml"
        path.write_text("extraction: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_section_not_mapping(self, tmp_path) -> None:
        """Test a scalar section raises ConfigError."""
        path = tmp_path / "settings.yaml"
        path.write_text("output: dollars\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(path)

    def test_invalid_value(self, tmp_path) -> None:
        """Test a non-numeric number raises ConfigError."""
        path = tmp_path / "settings.yaml"
        path.write_text("extraction:\n  max_input_chars: lots\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="extraction"):
            load_config(path)

    def test_top_level_not_mapping(self, tmp_path) -> None:
        """Test a list document raises ConfigError."""
        path = tmp_path / "settings.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_yaml_file(path)

    def test_load_yaml_missing(self, tmp_path) -> None:
        """Test load_yaml_file requires the file."""
        with pytest.raises(FileNotFoundError):
            load_yaml_file(tmp_path / "nope.yaml")


class TestSections:
    """Tests for section parsing."""

    def test_null_timeout_waits_indefinitely(self) -> None:
        """Test a null timeout disables it."""
        assert ExtractionConfig.from_dict({"request_timeout": None}).request_timeout is None

    def test_client_config(self) -> None:
        """Test the client settings are derived from the section."""
        section = ExtractionConfig.from_dict({"api_key_env": "MY_KEY", "model": "m"})
        client_config = section.client_config()
        assert client_config.api_key_env == "MY_KEY"
        assert client_config.model == "m"
        assert client_config.request_timeout == 120.0

    def test_null_log_file_disables_file_logging(self) -> None:
        """Test a null log file becomes an empty path."""
        assert LoggingConfig.from_dict({"file": None}).file == ""
