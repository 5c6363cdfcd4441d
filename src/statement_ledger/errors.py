"""Error taxonomy for statement extraction.

Every error raised by one extraction operation derives from LedgerError.
``str(error)`` carries diagnostic detail for logs; ``user_message`` is the
short text shown to the person running the tool.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class LedgerError(Exception):
    """Base exception for extraction pipeline errors."""

    default_user_message = "Something went wrong. Please try again."

    def __init__(self, message: str, user_message: Optional[str] = None):
        """Initialize LedgerError.

        Args:
            message: Diagnostic message.
            user_message: Message safe to show to the user. Defaults to the
                class's default_user_message.
        """
        super().__init__(message)
        self.user_message = user_message or self.default_user_message


class UpstreamInputError(LedgerError):
    """Raised when usable text could not be obtained from an input file."""

    default_user_message = "Could not extract text. Please use a clearer image or PDF."

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        file_path: Optional[Path] = None,
    ):
        self.file_path = file_path
        super().__init__(message, user_message)


class CredentialError(LedgerError):
    """Raised when the extraction service rejects or lacks a credential."""

    default_user_message = "Invalid API key. Please check your API key."


class RateLimitError(LedgerError):
    """Raised when the extraction service throttles the request."""

    default_user_message = "Rate limit exceeded. Please try again in a moment."


class ServiceError(LedgerError):
    """Raised for any other extraction service failure."""

    default_user_message = "The extraction service request failed. Please try again."


class ParseFailure(LedgerError):
    """Raised when a model reply cannot be recovered into JSON."""

    default_user_message = "Failed to parse AI response. Please try again."

    def __init__(self, message: str, raw_response: str = ""):
        """Initialize ParseFailure.

        Args:
            message: Diagnostic message.
            raw_response: The unrecoverable reply, kept for debug logging.
        """
        self.raw_response = raw_response
        super().__init__(message)


class InvalidFormat(LedgerError):
    """Raised when a reply parses but is not a usable result object."""

    default_user_message = "Invalid response format. Please try again."


class EmptyExtraction(LedgerError):
    """Raised when a reply is well-formed but lists no transactions."""

    default_user_message = (
        "No transactions found in the document. Please try a clearer image."
    )


class AllFilesFailedError(LedgerError):
    """Raised when every file of an add-more batch failed.

    Attributes:
        failures: Per-file failures in processing order.
    """

    default_user_message = "None of the files could be processed. Please try again."

    def __init__(self, failures: list["FileFailure"]):
        self.failures = failures
        names = ", ".join(f.source for f in failures)
        super().__init__(f"All {len(failures)} file(s) failed: {names}")


@dataclass
class FileFailure:
    """A file that was skipped during an add-more batch.

    Attributes:
        source: File name.
        error: The error that made the file fail.
    """

    source: str
    error: LedgerError
