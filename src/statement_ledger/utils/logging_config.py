"""Logging setup for the statement ledger.

Statement text, model replies and service errors all pass through the logs,
so every handler installed here carries a RedactingFilter that masks API
keys before a record is written.
"""

import logging
import re
import sys
import time
from pathlib import Path

DEFAULT_LOG_FILE = "statement_ledger.log"

# Package root; module loggers hang below it
LOGGER_NAME = "statement_ledger"

# Context keys whose values are masked by LogContext
SENSITIVE_FIELDS = {"api_key", "token", "secret", "password", "credential", "account_number"}

# Anthropic-style secret keys as they may appear in error text
API_KEY_PATTERN = re.compile(r"sk-[A-Za-z0-9][A-Za-z0-9_-]{8,}")

# Chatty HTTP client loggers that log every request at INFO
THIRD_PARTY_LOGGERS = ("anthropic", "httpx", "httpcore", "pdfminer", "PIL")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _sanitize_context(context: dict[str, object]) -> dict[str, object]:
    return {k: "***" if k.lower() in SENSITIVE_FIELDS else v for k, v in context.items()}


def redact_secrets(text: str) -> str:
    """Mask anything that looks like an API key."""
    return API_KEY_PATTERN.sub("sk-***", text)


class RedactingFilter(logging.Filter):
    """Masks API keys in the final message of each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Path to log file. None uses DEFAULT_LOG_FILE, an empty
            string disables file logging.
        console_output: Whether to also log to stderr.

    Returns:
        The package logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    redactor = RedactingFilter()
    handlers: list[logging.Handler] = []

    if log_file is None:
        log_file = DEFAULT_LOG_FILE
    if log_file:
        handlers.append(logging.FileHandler(Path(log_file), encoding="utf-8"))
    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        handler.addFilter(redactor)
        logger.addHandler(handler)

    # Request-level chatter only when debugging
    third_party_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the package logger.

    Args:
        name: Module name (typically __name__).

    Returns:
        Logger named after the module.
    """
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


class LogContext:
    """Context manager that logs the start, duration and failure of an operation."""

    def __init__(self, logger: logging.Logger, operation: str, **context: object):
        """Initialize log context.

        Args:
            logger: Logger instance to use.
            operation: Name of the operation being performed.
            **context: Additional context to include in log messages.
        """
        self.logger = logger
        self.operation = operation
        self.context = context
        self.started = 0.0

    @property
    def elapsed(self) -> float:
        """Seconds since the operation started."""
        return time.monotonic() - self.started

    def __enter__(self) -> "LogContext":
        details = ", ".join(f"{k}={v}" for k, v in _sanitize_context(self.context).items())
        self.logger.debug(f"Starting {self.operation}: {details}")
        self.started = time.monotonic()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> bool:
        if exc_type is not None:
            self.logger.warning(
                f"{self.operation} failed after {self.elapsed:.1f}s: {exc_type.__name__}: {exc_val}"
            )
        else:
            self.logger.debug(f"Completed {self.operation} in {self.elapsed:.1f}s")
        return False
