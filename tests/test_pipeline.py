"""Tests for the statement pipeline."""

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from statement_ledger.config import Config
from statement_ledger.errors import (
    AllFilesFailedError,
    CredentialError,
    EmptyExtraction,
    ParseFailure,
    RateLimitError,
    ServiceError,
    UpstreamInputError,
)
from statement_ledger.models.transaction import ExtractionUsage
from statement_ledger.processing.normalizer import RecordNormalizer
from statement_ledger.processing.pipeline import StatementPipeline
from statement_ledger.processing.progress import ProcessingStatus, ProgressState
from statement_ledger.session import SessionState


class FakeReader:
    """Document reader returning canned text per file name."""

    def __init__(self, outcomes: dict[str, object]):
        self.outcomes = outcomes
        self.calls: list[str] = []

    def read(self, path: Path, on_progress=None) -> str:
        self.calls.append(path.name)
        outcome = self.outcomes[path.name]
        if isinstance(outcome, Exception):
            raise outcome
        if on_progress:
            on_progress(1.0)
        return outcome


def reply(*descriptions: str, bank_name: str | None = None, period: str | None = None) -> str:
    """Build a model reply listing one debit per description."""
    return json.dumps(
        {
            "transactions": [
                {"date": f"2024-01-{i + 1:02d}", "description": d, "debit": 10 * (i + 1)}
                for i, d in enumerate(descriptions)
            ],
            "bankName": bank_name,
            "period": period,
        }
    )


def make_client(*outcomes) -> MagicMock:
    """Mock client whose complete() yields each outcome in turn."""
    client = MagicMock()
    client.complete = AsyncMock(
        side_effect=[
            outcome if isinstance(outcome, Exception) else (outcome, ExtractionUsage(100, 50))
            for outcome in outcomes
        ]
    )
    return client


def make_pipeline(client: MagicMock, outcomes: dict[str, object], config: Config | None = None) -> StatementPipeline:
    """Pipeline with a fake reader and a fixed-clock normalizer."""
    return StatementPipeline(
        client,
        reader=FakeReader(outcomes),
        config=config,
        normalizer=RecordNormalizer(clock=lambda: 1000),
    )


class TestExtractText:
    """Tests for extract_text."""

    def test_returns_normalized_records(self) -> None:
        """Test a reply becomes an extraction result."""
        pipeline = make_pipeline(make_client(reply("Coffee", "Taxi", bank_name="HDFC")), {})
        result = asyncio.run(pipeline.extract_text("statement text", batch_offset=2, source="a.png"))
        assert [r.description for r in result.transactions] == ["Coffee", "Taxi"]
        assert result.transactions[0].id == "txn_1000_2_0"
        assert result.transactions[0].source_file == "a.png"
        assert result.bank_name == "HDFC"
        assert result.source == "a.png"
        assert result.usage.total_tokens == 150

    def test_empty_reply_rejected(self) -> None:
        """Test a well-formed reply without transactions is a failure."""
        pipeline = make_pipeline(make_client('{"transactions": [], "bankName": "SBI"}'), {})
        with pytest.raises(EmptyExtraction):
            asyncio.run(pipeline.extract_text("statement text"))

    def test_only_junk_entries_rejected(self) -> None:
        """Test a reply whose entries are all unusable is a failure."""
        pipeline = make_pipeline(make_client('{"transactions": ["junk", 3]}'), {})
        with pytest.raises(EmptyExtraction):
            asyncio.run(pipeline.extract_text("statement text"))

    def test_unparseable_reply(self) -> None:
        """Test an unrecoverable reply raises ParseFailure."""
        pipeline = make_pipeline(make_client("Sorry, I cannot help with that."), {})
        with pytest.raises(ParseFailure):
            asyncio.run(pipeline.extract_text("statement text"))

    def test_request_uses_configured_limits(self) -> None:
        """Test the request is built from the extraction settings."""
        config = Config()
        config.extraction.max_input_chars = 10
        config.extraction.max_output_tokens = 2048
        client = make_client(reply("Coffee"))
        pipeline = make_pipeline(client, {}, config)

        asyncio.run(pipeline.extract_text("0123456789 overflow"))

        request = client.complete.await_args.args[0]
        assert request.text == "0123456789"
        assert request.max_output_tokens == 2048


class TestStartSession:
    """Tests for start_session."""

    def test_new_session_from_file(self) -> None:
        """Test the first file produces a fresh session."""
        client = make_client(reply("Coffee", "Taxi", bank_name="HDFC", period="Jan 2024"))
        pipeline = make_pipeline(client, {"jan.png": "recognized text"})

        state = asyncio.run(pipeline.start_session("jan.png"))

        assert len(state.transactions) == 2
        assert state.bank_name == "HDFC"
        assert state.period == "Jan 2024"
        assert state.files_processed == 1
        assert pipeline.progress.status == ProcessingStatus.COMPLETE
        assert pipeline.progress.overall_percent == 100

    def test_error_propagates(self) -> None:
        """Test a failing first file raises and marks progress failed."""
        client = make_client(reply("Coffee"))
        pipeline = make_pipeline(client, {"blurry.png": UpstreamInputError("too short")})

        with pytest.raises(UpstreamInputError):
            asyncio.run(pipeline.start_session("blurry.png"))

        assert pipeline.progress.status == ProcessingStatus.ERROR
        assert client.complete.await_count == 0

    def test_service_error_propagates(self) -> None:
        """Test service failures reach the caller."""
        pipeline = make_pipeline(make_client(ServiceError("boom")), {"a.png": "text"})
        with pytest.raises(ServiceError):
            asyncio.run(pipeline.start_session("a.png"))


class TestAddFiles:
    """Tests for add_files."""

    def test_failed_file_skipped(self) -> None:
        """Test a failing second file leaves only the first file's records."""
        client = make_client(reply("Coffee", "Taxi"), ServiceError("boom"))
        pipeline = make_pipeline(client, {"one.png": "text one", "two.png": "text two"})

        report = asyncio.run(pipeline.add_files(SessionState(), ["one.png", "two.png"]))

        assert [r.description for r in report.state.transactions] == ["Coffee", "Taxi"]
        assert report.state.files_processed == 2
        assert report.has_failures
        assert [f.source for f in report.failures] == ["two.png"]
        assert isinstance(report.failures[0].error, ServiceError)

    def test_reader_failure_skipped(self) -> None:
        """Test a file without usable text is skipped without calling the service."""
        client = make_client(reply("Coffee"))
        pipeline = make_pipeline(
            client, {"bad.png": UpstreamInputError("unreadable"), "good.png": "text"}
        )

        report = asyncio.run(pipeline.add_files(SessionState(), ["bad.png", "good.png"]))

        assert len(report.state.transactions) == 1
        assert [f.source for f in report.failures] == ["bad.png"]
        assert client.complete.await_count == 1

    def test_rate_limit_skips_only_that_file(self) -> None:
        """Test throttling skips one file and the batch continues."""
        client = make_client(RateLimitError("slow down"), reply("Taxi"))
        pipeline = make_pipeline(client, {"a.png": "text", "b.png": "text"})

        report = asyncio.run(pipeline.add_files(SessionState(), ["a.png", "b.png"]))

        assert [r.description for r in report.state.transactions] == ["Taxi"]
        assert isinstance(report.failures[0].error, RateLimitError)

    def test_undecodable_reply_skips_only_that_file(self) -> None:
        """Test a reply nested too deeply to decode skips that file only."""
        client = make_client(reply("Coffee"), '{"transactions": ' + "[" * 5000)
        pipeline = make_pipeline(client, {"a.png": "text", "b.png": "text"})

        report = asyncio.run(pipeline.add_files(SessionState(), ["a.png", "b.png"]))

        assert [r.description for r in report.state.transactions] == ["Coffee"]
        assert [f.source for f in report.failures] == ["b.png"]
        assert isinstance(report.failures[0].error, ParseFailure)

    def test_credential_error_aborts(self) -> None:
        """Test a rejected credential stops the batch."""
        client = make_client(CredentialError("bad key"), reply("Taxi"))
        reader_outcomes = {"a.png": "text", "b.png": "text"}
        pipeline = make_pipeline(client, reader_outcomes)

        with pytest.raises(CredentialError):
            asyncio.run(pipeline.add_files(SessionState(), ["a.png", "b.png"]))

        assert client.complete.await_count == 1
        assert pipeline.reader.calls == ["a.png"]
        assert pipeline.progress.status == ProcessingStatus.ERROR

    def test_all_failed(self) -> None:
        """Test every file failing raises with each failure listed."""
        client = make_client(ServiceError("boom"), '{"transactions": []}')
        pipeline = make_pipeline(client, {"a.png": "text", "b.png": "text"})
        state = SessionState(files_processed=1)

        with pytest.raises(AllFilesFailedError) as exc_info:
            asyncio.run(pipeline.add_files(state, ["a.png", "b.png"]))

        failures = exc_info.value.failures
        assert [f.source for f in failures] == ["a.png", "b.png"]
        assert isinstance(failures[1].error, EmptyExtraction)
        assert state.files_processed == 1

    def test_empty_path_list(self) -> None:
        """Test adding no files returns the state unchanged."""
        client = make_client()
        pipeline = make_pipeline(client, {})
        state = SessionState(files_processed=3)

        report = asyncio.run(pipeline.add_files(state, []))

        assert report.state is state
        assert not report.has_failures
        assert client.complete.await_count == 0

    def test_batch_offsets_continue_session(self) -> None:
        """Test record IDs use the session's file counter as batch offset."""
        client = make_client(reply("Coffee"), reply("Taxi"), reply("Rent"))
        pipeline = make_pipeline(client, {"a.png": "t", "b.png": "t", "c.png": "t"})

        state = asyncio.run(pipeline.start_session("a.png"))
        report = asyncio.run(pipeline.add_files(state, ["b.png", "c.png"]))

        ids = [r.id for r in report.state.transactions]
        assert ids == ["txn_1000_0_0", "txn_1000_1_0", "txn_1000_2_0"]
        assert report.state.files_processed == 3

    def test_metadata_first_wins(self) -> None:
        """Test the earliest bank name is kept across files."""
        client = make_client(reply("Taxi", bank_name="ICICI"))
        pipeline = make_pipeline(client, {"b.png": "t"})
        state = SessionState(bank_name="HDFC", files_processed=1)

        report = asyncio.run(pipeline.add_files(state, ["b.png"]))

        assert report.state.bank_name == "HDFC"


class TestProcessFiles:
    """Tests for process_files."""

    def test_first_file_starts_session(self) -> None:
        """Test all files are merged in order."""
        client = make_client(reply("Coffee", bank_name="HDFC"), reply("Taxi"))
        pipeline = make_pipeline(client, {"a.pdf": "t", "b.pdf": "t"})

        report = asyncio.run(pipeline.process_files([Path("a.pdf"), Path("b.pdf")]))

        assert [r.description for r in report.state.transactions] == ["Coffee", "Taxi"]
        assert report.state.files_processed == 2
        assert not report.has_failures

    def test_keeps_first_file_when_rest_fail(self) -> None:
        """Test failing additional files still return the first file's session."""
        client = make_client(reply("Coffee"), ServiceError("boom"))
        pipeline = make_pipeline(client, {"a.pdf": "t", "b.pdf": "t"})

        report = asyncio.run(pipeline.process_files(["a.pdf", "b.pdf"]))

        assert [r.description for r in report.state.transactions] == ["Coffee"]
        assert [f.source for f in report.failures] == ["b.pdf"]

    def test_first_file_failure_raises(self) -> None:
        """Test a failing first file is fatal."""
        client = make_client(ServiceError("boom"))
        pipeline = make_pipeline(client, {"a.pdf": "t", "b.pdf": "t"})

        with pytest.raises(ServiceError):
            asyncio.run(pipeline.process_files(["a.pdf", "b.pdf"]))

    def test_requires_files(self) -> None:
        """Test an empty file list is rejected."""
        pipeline = make_pipeline(make_client(), {})
        with pytest.raises(ValueError):
            asyncio.run(pipeline.process_files([]))


class TestProgressState:
    """Tests for ProgressState."""

    def test_recognition_maps_to_ocr_range(self) -> None:
        """Test recognition fractions land in the OCR percent range."""
        progress = ProgressState()
        progress.recognition(0.0)
        assert progress.percent == 10
        progress.recognition(0.5)
        assert progress.status == ProcessingStatus.OCR
        assert progress.percent == 30
        progress.recognition(2.0)
        assert progress.percent == 50

    def test_overall_percent(self) -> None:
        """Test progress across files."""
        progress = ProgressState()
        progress.begin(2)
        progress.update(ProcessingStatus.EXTRACTING, 50)
        assert progress.overall_percent == 25
        progress.file_finished()
        progress.update(ProcessingStatus.EXTRACTING, 50)
        assert progress.overall_percent == 75
        assert progress.is_busy

    def test_fail_keeps_percent(self) -> None:
        """Test failing keeps the last percent and records the message."""
        progress = ProgressState()
        progress.update(ProcessingStatus.EXTRACTING, 55, "Extracting")
        progress.fail("Rate limit exceeded")
        assert progress.status == ProcessingStatus.ERROR
        assert progress.percent == 55
        assert progress.message == "Rate limit exceeded"
        assert not progress.is_busy
