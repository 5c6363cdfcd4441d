"""Anthropic API client wrapper for statement extraction."""

import os
from dataclasses import dataclass, field
from typing import Any

import anthropic

from statement_ledger.errors import CredentialError, RateLimitError, ServiceError
from statement_ledger.extraction.models import ClientUsageStats
from statement_ledger.extraction.prompts import ExtractionRequest
from statement_ledger.models.transaction import ExtractionUsage
from statement_ledger.utils.logging_config import get_logger

logger = get_logger(__name__)

# HTTP statuses the service uses to reject a credential
CREDENTIAL_STATUSES = {401, 403}
RATE_LIMIT_STATUS = 429

CREDENTIAL_CHECK_MAX_TOKENS = 5


@dataclass
class ExtractionClientConfig:
    """Configuration for the extraction client.

    Attributes:
        api_key_env: Environment variable name for the API key.
        model: Model to use for requests.
        request_timeout: Seconds before a request is abandoned (None waits
            indefinitely).
    """

    api_key_env: str = "ANTHROPIC_API_KEY"
    model: str = "claude-sonnet-4-5-20250929"
    request_timeout: float | None = 120.0


@dataclass
class ExtractionClient:
    """Async wrapper for the Anthropic Messages API.

    This client provides:
    - Lazy initialization (only connects when first used)
    - A caller-supplied or environment credential
    - Mapping of service failures onto CredentialError, RateLimitError and
      ServiceError
    - Token usage tracking

    Requests are never retried; the SDK's own retries are disabled.
    """

    config: ExtractionClientConfig = field(default_factory=ExtractionClientConfig)
    api_key: str | None = field(default=None, repr=False)
    _client: Any = field(default=None, init=False, repr=False)
    usage_stats: ClientUsageStats = field(default_factory=ClientUsageStats)

    @property
    def is_available(self) -> bool:
        """Check if a credential is available."""
        return bool(self._resolve_api_key())

    def _resolve_api_key(self) -> str | None:
        return self.api_key or os.environ.get(self.config.api_key_env)

    def _ensure_initialized(self) -> None:
        """Lazily initialize the Anthropic client."""
        if self._client is not None:
            return

        api_key = self._resolve_api_key()
        if not api_key:
            raise CredentialError(
                f"API key not found in environment variable: {self.config.api_key_env}",
                user_message="API key not found. Please add your key.",
            )

        self._client = anthropic.AsyncAnthropic(
            api_key=api_key,
            max_retries=0,
            timeout=self.config.request_timeout,
        )
        logger.info(f"Extraction client initialized with model: {self.config.model}")

    async def complete(self, request: ExtractionRequest) -> tuple[str, ExtractionUsage]:
        """Send one extraction request and return the reply text.

        Args:
            request: Built extraction request.

        Returns:
            Tuple of (reply text, token usage).

        Raises:
            CredentialError: If the key is missing or rejected.
            RateLimitError: If the service throttles the request.
            ServiceError: For any other failure, including timeouts and an
                empty reply.
        """
        self._ensure_initialized()

        response = await self._create(
            max_tokens=request.max_output_tokens,
            temperature=request.temperature,
            system=request.system_prompt,
            messages=[{"role": "user", "content": request.prompt}],
        )

        text = "".join(
            getattr(block, "text", "") for block in (response.content or [])
        )
        usage = ExtractionUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        self.usage_stats.add_request(usage)

        logger.debug(
            f"Request completed: {usage.input_tokens} in, {usage.output_tokens} out, "
            f"stop_reason={getattr(response, 'stop_reason', None)}"
        )

        if not text.strip():
            raise ServiceError(
                "Extraction service returned an empty reply",
                user_message="No response from AI. Please try again.",
            )

        return text, usage

    async def validate_credential(self) -> None:
        """Check the credential with a minimal live request.

        Raises:
            CredentialError: If the key is missing or rejected.
            RateLimitError: If the service throttles the request.
            ServiceError: If the service cannot be reached or fails.
        """
        self._ensure_initialized()
        await self._create(
            max_tokens=CREDENTIAL_CHECK_MAX_TOKENS,
            messages=[{"role": "user", "content": "Hi"}],
        )
        logger.info("Extraction service accepted the credential")

    async def _create(self, **params: Any) -> Any:
        try:
            return await self._client.messages.create(model=self.config.model, **params)
        except anthropic.APIStatusError as e:
            raise self._classify_status_error(e) from e
        except anthropic.APITimeoutError as e:
            raise ServiceError(
                f"Request timed out after {self.config.request_timeout}s",
                user_message="The extraction service did not respond in time. Please try again.",
            ) from e
        except anthropic.APIConnectionError as e:
            raise ServiceError(
                f"Connection error: {e}",
                user_message="Network error. Check your connection.",
            ) from e

    def _classify_status_error(self, error: anthropic.APIStatusError) -> Exception:
        """Map a non-success HTTP status onto the error taxonomy."""
        status = error.status_code
        if status in CREDENTIAL_STATUSES:
            logger.warning(f"Credential rejected by extraction service (HTTP {status})")
            return CredentialError(f"Credential rejected (HTTP {status}): {error.message}")
        if status == RATE_LIMIT_STATUS:
            logger.warning("Extraction service rate limit reached")
            return RateLimitError(f"Rate limited (HTTP {status}): {error.message}")
        logger.error(f"Extraction service error (HTTP {status}): {error.message}")
        return ServiceError(f"Service error (HTTP {status}): {error.message}")

    def get_usage_summary(self) -> str:
        """Get a summary of API usage.

        Returns:
            Human-readable usage summary.
        """
        stats = self.usage_stats
        return (
            f"AI Usage Summary:\n"
            f"  Total requests: {stats.total_requests}\n"
            f"  Input tokens: {stats.total_input_tokens:,}\n"
            f"  Output tokens: {stats.total_output_tokens:,}"
        )
