"""Configuration loading and validation for statement ledger."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from statement_ledger.extraction.client import ExtractionClientConfig
from statement_ledger.extraction.prompts import (
    DEFAULT_MAX_INPUT_CHARS,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
)
from statement_ledger.recognition.document import DEFAULT_MAX_FILE_SIZE_MB, DEFAULT_MIN_TEXT_LENGTH
from statement_ledger.recognition.pdf_rasterizer import DEFAULT_RESOLUTION
from statement_ledger.recognition.tesseract import DEFAULT_LANGUAGE
from statement_ledger.utils.logging_config import DEFAULT_LOG_FILE, get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "settings.yaml"
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_REQUEST_TIMEOUT = 120.0


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


@dataclass
class ExtractionConfig:
    """Configuration for the extraction service.

    Attributes:
        api_key_env: Environment variable holding the API key.
        model: Model used for extraction.
        max_input_chars: Recognized text beyond this many characters is cut.
        max_output_tokens: Output token limit of one call.
        temperature: Sampling temperature.
        request_timeout: Seconds before a call is abandoned (None waits
            indefinitely).
    """

    api_key_env: str = "ANTHROPIC_API_KEY"
    model: str = DEFAULT_MODEL
    max_input_chars: int = DEFAULT_MAX_INPUT_CHARS
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    request_timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ExtractionConfig":
        """Create from dictionary."""
        timeout = data.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)
        return cls(
            api_key_env=str(data.get("api_key_env", "ANTHROPIC_API_KEY")),
            model=str(data.get("model", DEFAULT_MODEL)),
            max_input_chars=int(data.get("max_input_chars", DEFAULT_MAX_INPUT_CHARS)),  # type: ignore[arg-type]
            max_output_tokens=int(data.get("max_output_tokens", DEFAULT_MAX_OUTPUT_TOKENS)),  # type: ignore[arg-type]
            temperature=float(data.get("temperature", DEFAULT_TEMPERATURE)),  # type: ignore[arg-type]
            request_timeout=None if timeout is None else float(timeout),  # type: ignore[arg-type]
        )

    def client_config(self) -> ExtractionClientConfig:
        """Settings the extraction client needs."""
        return ExtractionClientConfig(
            api_key_env=self.api_key_env,
            model=self.model,
            request_timeout=self.request_timeout,
        )


@dataclass
class RecognitionConfig:
    """Configuration for text recognition.

    Attributes:
        language: Tesseract language code(s).
        pdf_resolution: Render resolution of PDF pages in dpi.
        max_file_size_mb: Largest accepted input file.
        min_text_length: Shortest recognized text considered usable.
    """

    language: str = DEFAULT_LANGUAGE
    pdf_resolution: int = DEFAULT_RESOLUTION
    max_file_size_mb: float = DEFAULT_MAX_FILE_SIZE_MB
    min_text_length: int = DEFAULT_MIN_TEXT_LENGTH

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "RecognitionConfig":
        """Create from dictionary."""
        return cls(
            language=str(data.get("language", DEFAULT_LANGUAGE)),
            pdf_resolution=int(data.get("pdf_resolution", DEFAULT_RESOLUTION)),  # type: ignore[arg-type]
            max_file_size_mb=float(data.get("max_file_size_mb", DEFAULT_MAX_FILE_SIZE_MB)),  # type: ignore[arg-type]
            min_text_length=int(data.get("min_text_length", DEFAULT_MIN_TEXT_LENGTH)),  # type: ignore[arg-type]
        )


@dataclass
class OutputConfig:
    """Configuration for output generation.

    Attributes:
        currency_symbol: Currency symbol for display.
        decimal_places: Number of decimal places.
    """

    currency_symbol: str = "₹"
    decimal_places: int = 2

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "OutputConfig":
        """Create from dictionary."""
        return cls(
            currency_symbol=str(data.get("currency_symbol", "₹")),
            decimal_places=int(data.get("decimal_places", 2)),  # type: ignore[arg-type]
        )


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file ("" disables file logging).
    """

    level: str = "INFO"
    file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Create from dictionary."""
        log_file = data.get("file", DEFAULT_LOG_FILE)
        return cls(
            level=str(data.get("level", "INFO")).upper(),
            file="" if log_file is None else str(log_file),
        )


@dataclass
class Config:
    """Main configuration container."""

    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    recognition: RecognitionConfig = field(default_factory=RecognitionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")
    return content


_SECTIONS = {
    "extraction": ExtractionConfig,
    "recognition": RecognitionConfig,
    "output": OutputConfig,
    "logging": LoggingConfig,
}


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration from settings.yaml.

    A missing file yields the defaults. Sections absent from the file keep
    their defaults too.

    Args:
        path: Path to settings.yaml (or None to use config/settings.yaml).

    Returns:
        Complete Config object.

    Raises:
        ConfigError: If the file is malformed.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    config = Config()
    if not path.exists():
        logger.warning(f"Settings file not found: {path}, using defaults")
        return config

    data = load_yaml_file(path)
    for section, section_cls in _SECTIONS.items():
        if section not in data:
            continue
        values = data[section]
        if not isinstance(values, dict):
            raise ConfigError(f"Section '{section}' in {path} must be a mapping")
        try:
            setattr(config, section, section_cls.from_dict(values))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value in section '{section}' of {path}: {e}") from e

    logger.info(f"Loaded settings from {path}")
    return config
