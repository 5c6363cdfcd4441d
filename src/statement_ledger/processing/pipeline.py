"""Statement pipeline: from input files to a merged session.

The pipeline wires the document reader, request builder, extraction client,
response parser, normalizer and merger together. It owns a ProgressState that
consumers poll while an operation runs.

Operations are coroutines. Cancelling the task that awaits one cancels the
in-flight extraction call; the session state passed in is never modified.
Two operations must not run concurrently over the same state snapshot, since
the second result would silently replace the first.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

from statement_ledger.config import Config
from statement_ledger.errors import (
    AllFilesFailedError,
    CredentialError,
    EmptyExtraction,
    FileFailure,
    LedgerError,
    ParseFailure,
)
from statement_ledger.extraction.client import ExtractionClient
from statement_ledger.extraction.prompts import build_extraction_request
from statement_ledger.extraction.response_parser import parse_extraction_response
from statement_ledger.models.transaction import ExtractionResult
from statement_ledger.processing.merger import merge_batches
from statement_ledger.processing.normalizer import RecordNormalizer
from statement_ledger.processing.progress import (
    EXTRACTING_PERCENT,
    PARSING_PERCENT,
    ProcessingStatus,
    ProgressState,
)
from statement_ledger.recognition.document import DocumentReader
from statement_ledger.recognition.pdf_rasterizer import PdfPlumberRasterizer
from statement_ledger.recognition.tesseract import TesseractRecognizer
from statement_ledger.session import SessionState, new_session
from statement_ledger.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


@dataclass
class MergeReport:
    """Outcome of an add-files operation.

    Attributes:
        state: Session state after the merge.
        failures: Files that were skipped, in processing order.
    """

    state: SessionState
    failures: list[FileFailure] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


def build_reader(config: Config) -> DocumentReader:
    """Create the default document reader from configuration."""
    recognition = config.recognition
    return DocumentReader(
        recognizer=TesseractRecognizer(language=recognition.language),
        rasterizer=PdfPlumberRasterizer(resolution=recognition.pdf_resolution),
        max_file_size_mb=recognition.max_file_size_mb,
        min_text_length=recognition.min_text_length,
    )


class StatementPipeline:
    """Runs extraction for one session's files."""

    def __init__(
        self,
        client: ExtractionClient,
        reader: Optional[DocumentReader] = None,
        config: Optional[Config] = None,
        normalizer: Optional[RecordNormalizer] = None,
    ):
        """Initialize pipeline.

        Args:
            client: Extraction service client.
            reader: Document reader (built from config when omitted).
            config: Application configuration.
            normalizer: Record normalizer (wall clock IDs when omitted).
        """
        self.config = config or Config()
        self.client = client
        self.reader = reader or build_reader(self.config)
        self.normalizer = normalizer or RecordNormalizer()
        self.progress = ProgressState()

    async def extract_text(
        self,
        text: str,
        batch_offset: int = 0,
        source: str = "",
    ) -> ExtractionResult:
        """Extract transactions from already-recognized text.

        Args:
            text: Recognized statement text.
            batch_offset: Offset distinguishing this batch's record IDs.
            source: File name the text came from.

        Returns:
            ExtractionResult with at least one transaction.

        Raises:
            CredentialError, RateLimitError, ServiceError: From the client.
            ParseFailure, InvalidFormat: If the reply is unusable.
            EmptyExtraction: If the reply lists no transactions.
        """
        settings = self.config.extraction
        request = build_extraction_request(
            text,
            max_chars=settings.max_input_chars,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
        )

        self.progress.update(
            ProcessingStatus.EXTRACTING, EXTRACTING_PERCENT, "Extracting transactions with AI"
        )
        reply, usage = await self.client.complete(request)

        self.progress.update(ProcessingStatus.EXTRACTING, PARSING_PERCENT, "Parsing response")
        try:
            parsed = parse_extraction_response(reply)
        except ParseFailure as e:
            logger.debug(f"Unrecoverable reply for {source or 'text'}:\n{e.raw_response}")
            raise

        records = self.normalizer.normalize(parsed.transactions, batch_offset, source)
        if not records:
            raise EmptyExtraction(
                f"No transactions in reply for {source or 'text'} "
                f"({len(parsed.transactions)} raw entries)"
            )

        logger.info(
            f"Extracted {len(records)} transactions from {source or 'text'} "
            f"(stage {parsed.stage.value})"
        )
        return ExtractionResult(
            transactions=records,
            bank_name=parsed.bank_name,
            period=parsed.period,
            source=source,
            usage=usage,
        )

    async def extract_file(self, path: PathLike, batch_offset: int = 0) -> ExtractionResult:
        """Recognize one file and extract its transactions.

        Recognition runs in a worker thread so the event loop stays free.

        Raises:
            UpstreamInputError: If no usable text could be read.
            LedgerError: Any extract_text error.
        """
        path = Path(path)
        self.progress.file_started(path.name)
        text = await asyncio.to_thread(self.reader.read, path, self.progress.recognition)
        return await self.extract_text(text, batch_offset, path.name)

    async def start_session(self, path: PathLike) -> SessionState:
        """Start a fresh session from one file.

        Any error propagates; the caller keeps its previous (or an empty)
        state and may retry.

        Returns:
            New session holding the file's transactions.
        """
        path = Path(path)
        state = new_session()
        self.progress.begin(1)

        try:
            with LogContext(logger, "start_session", file=path.name):
                result = await self.extract_file(path, state.files_processed)
        except LedgerError as e:
            self.progress.fail(e.user_message)
            raise
        except asyncio.CancelledError:
            self.progress.fail("Cancelled")
            raise

        state = merge_batches(state, [result], attempted=1)
        self.progress.file_finished()
        self.progress.complete(f"Found {len(state.transactions)} transactions")
        return state

    async def add_files(self, state: SessionState, paths: Sequence[PathLike]) -> MergeReport:
        """Add more files to an existing session.

        Files are processed one at a time in the given order. A file that
        fails is skipped and reported in the result; a rejected credential
        stops the whole operation since every later file would fail too.

        Args:
            state: Current session state.
            paths: Files to add.

        Returns:
            MergeReport with the new state and the skipped files.

        Raises:
            CredentialError: If the credential is missing or rejected.
            AllFilesFailedError: If no file succeeded.
        """
        paths = [Path(p) for p in paths]
        if not paths:
            return MergeReport(state=state)

        self.progress.begin(len(paths))
        batches: list[ExtractionResult] = []
        failures: list[FileFailure] = []

        for index, path in enumerate(paths):
            batch_offset = state.files_processed + index
            try:
                with LogContext(logger, "add_file", file=path.name, batch=batch_offset):
                    result = await self.extract_file(path, batch_offset)
            except CredentialError as e:
                self.progress.fail(e.user_message)
                raise
            except LedgerError as e:
                logger.warning(f"Skipping {path.name}: {e}")
                failures.append(FileFailure(source=path.name, error=e))
            except asyncio.CancelledError:
                self.progress.fail("Cancelled")
                raise
            else:
                batches.append(result)
            self.progress.file_finished()

        if not batches:
            error = AllFilesFailedError(failures)
            self.progress.fail(error.user_message)
            raise error

        new_state = merge_batches(state, batches, attempted=len(paths))
        added = len(new_state.transactions) - len(state.transactions)
        self.progress.complete(f"Added {added} transactions from {len(batches)} file(s)")
        return MergeReport(state=new_state, failures=failures)

    async def process_files(self, paths: Sequence[PathLike]) -> MergeReport:
        """Start a session from the first file and add the rest.

        When every additional file fails, the session from the first file is
        still returned, with the failures reported.

        Raises:
            ValueError: If paths is empty.
            LedgerError: If the first file fails, or the credential is
                rejected while adding the rest.
        """
        if not paths:
            raise ValueError("At least one file is required")

        state = await self.start_session(paths[0])
        if len(paths) == 1:
            return MergeReport(state=state)

        try:
            return await self.add_files(state, paths[1:])
        except AllFilesFailedError as e:
            logger.warning(f"No additional file could be added: {e}")
            return MergeReport(state=state, failures=e.failures)
