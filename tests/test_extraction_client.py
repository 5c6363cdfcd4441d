"""Tests for the extraction client."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from statement_ledger.errors import CredentialError, RateLimitError, ServiceError
from statement_ledger.extraction.client import ExtractionClient, ExtractionClientConfig
from statement_ledger.extraction.prompts import build_extraction_request

API_URL = "https://api.anthropic.com/v1/messages"


def make_response(text: str = '{"transactions": []}', input_tokens: int = 120, output_tokens: int = 30) -> MagicMock:
    """Create a mock Messages API response."""
    response = MagicMock()
    response.content = [MagicMock(text=text)]
    response.usage.input_tokens = input_tokens
    response.usage.output_tokens = output_tokens
    response.stop_reason = "end_turn"
    return response


def status_error(error_cls: type, status: int) -> anthropic.APIStatusError:
    """Create an SDK status error for an HTTP status."""
    request = httpx.Request("POST", API_URL)
    return error_cls(
        f"HTTP {status}",
        response=httpx.Response(status, request=request),
        body=None,
    )


def client_with(create: AsyncMock) -> ExtractionClient:
    """Client whose SDK client is already initialized with a mock."""
    client = ExtractionClient(api_key="test-key")
    client._client = MagicMock()
    client._client.messages.create = create
    return client


class TestAvailability:
    """Tests for credential resolution."""

    def test_explicit_key(self) -> None:
        """Test a caller-supplied key makes the client available."""
        with patch.dict("os.environ", {}, clear=True):
            assert ExtractionClient(api_key="sk-test").is_available

    def test_environment_key(self) -> None:
        """Test the configured environment variable is read."""
        config = ExtractionClientConfig(api_key_env="LEDGER_KEY")
        with patch.dict("os.environ", {"LEDGER_KEY": "sk-env"}, clear=True):
            assert ExtractionClient(config).is_available

    def test_missing_key(self) -> None:
        """Test a missing key raises CredentialError before any request."""
        with patch.dict("os.environ", {}, clear=True):
            client = ExtractionClient()
            assert not client.is_available
            with pytest.raises(CredentialError) as exc_info:
                asyncio.run(client.complete(build_extraction_request("text")))
        assert "API key not found" in exc_info.value.user_message


class TestInitialization:
    """Tests for lazy SDK client creation."""

    def test_retries_disabled_and_timeout_set(self) -> None:
        """Test the SDK client is created without retries and with the timeout."""
        config = ExtractionClientConfig(request_timeout=45.0)
        with patch("anthropic.AsyncAnthropic") as mock_cls:
            mock_cls.return_value.messages.create = AsyncMock(return_value=make_response())
            client = ExtractionClient(config, api_key="sk-test")
            asyncio.run(client.complete(build_extraction_request("text")))

        mock_cls.assert_called_once_with(api_key="sk-test", max_retries=0, timeout=45.0)


class TestComplete:
    """Tests for complete."""

    def test_returns_text_and_usage(self) -> None:
        """Test a reply's text and token usage are returned."""
        client = client_with(AsyncMock(return_value=make_response('{"transactions": [1]}', 200, 40)))

        text, usage = asyncio.run(client.complete(build_extraction_request("text")))

        assert text == '{"transactions": [1]}'
        assert usage.input_tokens == 200
        assert usage.output_tokens == 40
        assert client.usage_stats.total_requests == 1
        assert client.usage_stats.total_input_tokens == 200

    def test_sends_request_parameters(self) -> None:
        """Test the request's prompt and parameters reach the API."""
        create = AsyncMock(return_value=make_response())
        client = client_with(create)
        request = build_extraction_request("statement text", temperature=0.0, max_output_tokens=1024)

        asyncio.run(client.complete(request))

        kwargs = create.await_args.kwargs
        assert kwargs["model"] == client.config.model
        assert kwargs["max_tokens"] == 1024
        assert kwargs["temperature"] == 0.0
        assert kwargs["system"] == request.system_prompt
        assert kwargs["messages"] == [{"role": "user", "content": request.prompt}]

    def test_empty_reply(self) -> None:
        """Test an empty reply is a service error."""
        response = make_response()
        response.content = []
        client = client_with(AsyncMock(return_value=response))

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(client.complete(build_extraction_request("text")))
        assert "No response" in exc_info.value.user_message

    def test_whitespace_reply(self) -> None:
        """Test a whitespace-only reply is a service error."""
        client = client_with(AsyncMock(return_value=make_response("  \n ")))
        with pytest.raises(ServiceError):
            asyncio.run(client.complete(build_extraction_request("text")))


class TestErrorMapping:
    """Tests for mapping SDK failures onto the error taxonomy."""

    @pytest.mark.parametrize(
        "error_cls, status",
        [
            (anthropic.AuthenticationError, 401),
            (anthropic.PermissionDeniedError, 403),
        ],
    )
    def test_credential_rejected(self, error_cls, status) -> None:
        """Test 401 and 403 become CredentialError."""
        client = client_with(AsyncMock(side_effect=status_error(error_cls, status)))
        with pytest.raises(CredentialError) as exc_info:
            asyncio.run(client.complete(build_extraction_request("text")))
        assert exc_info.value.user_message == "Invalid API key. Please check your API key."

    def test_rate_limited(self) -> None:
        """Test 429 becomes RateLimitError."""
        client = client_with(AsyncMock(side_effect=status_error(anthropic.RateLimitError, 429)))
        with pytest.raises(RateLimitError) as exc_info:
            asyncio.run(client.complete(build_extraction_request("text")))
        assert "Rate limit" in exc_info.value.user_message

    def test_server_error(self) -> None:
        """Test other statuses become ServiceError."""
        client = client_with(AsyncMock(side_effect=status_error(anthropic.InternalServerError, 500)))
        with pytest.raises(ServiceError, match="HTTP 500"):
            asyncio.run(client.complete(build_extraction_request("text")))

    def test_timeout(self) -> None:
        """Test a timeout becomes ServiceError."""
        error = anthropic.APITimeoutError(request=httpx.Request("POST", API_URL))
        client = client_with(AsyncMock(side_effect=error))
        with pytest.raises(ServiceError, match="timed out"):
            asyncio.run(client.complete(build_extraction_request("text")))

    def test_connection_error(self) -> None:
        """Test a network failure becomes ServiceError."""
        error = anthropic.APIConnectionError(request=httpx.Request("POST", API_URL))
        client = client_with(AsyncMock(side_effect=error))
        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(client.complete(build_extraction_request("text")))
        assert "Network error" in exc_info.value.user_message

    def test_failed_request_not_counted(self) -> None:
        """Test failed requests do not add usage."""
        client = client_with(AsyncMock(side_effect=status_error(anthropic.InternalServerError, 500)))
        with pytest.raises(ServiceError):
            asyncio.run(client.complete(build_extraction_request("text")))
        assert client.usage_stats.total_requests == 0


class TestValidateCredential:
    """Tests for validate_credential."""

    def test_accepted_key(self) -> None:
        """Test an accepted key sends one minimal request."""
        create = AsyncMock(return_value=make_response("Hello"))
        client = client_with(create)

        asyncio.run(client.validate_credential())

        kwargs = create.await_args.kwargs
        assert kwargs["max_tokens"] == 5
        assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]
        assert client.usage_stats.total_requests == 0

    def test_rejected_key(self) -> None:
        """Test a rejected key raises CredentialError."""
        client = client_with(AsyncMock(side_effect=status_error(anthropic.AuthenticationError, 401)))
        with pytest.raises(CredentialError) as exc_info:
            asyncio.run(client.validate_credential())
        assert "Invalid API key" in exc_info.value.user_message

    def test_unreachable_service(self) -> None:
        """Test a connection failure is a service error."""
        error = anthropic.APIConnectionError(request=httpx.Request("POST", API_URL))
        client = client_with(AsyncMock(side_effect=error))
        with pytest.raises(ServiceError):
            asyncio.run(client.validate_credential())

    def test_missing_key(self) -> None:
        """Test a missing key fails without a request."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(CredentialError):
                asyncio.run(ExtractionClient().validate_credential())
