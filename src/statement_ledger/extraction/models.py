"""Usage tracking models for the extraction client."""

from dataclasses import dataclass

from statement_ledger.models.transaction import ExtractionUsage


@dataclass
class ClientUsageStats:
    """Cumulative extraction usage for a session.

    Attributes:
        total_requests: Completed API requests.
        total_input_tokens: Input tokens across all requests.
        total_output_tokens: Output tokens across all requests.
    """

    total_requests: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0

    def add_request(self, usage: ExtractionUsage) -> None:
        """Record a completed request."""
        self.total_requests += 1
        self.total_input_tokens += usage.input_tokens
        self.total_output_tokens += usage.output_tokens
