"""Polled progress handle written by the pipeline."""

from dataclasses import dataclass
from enum import Enum


class ProcessingStatus(Enum):
    """Stage of the file currently being processed."""

    IDLE = "idle"
    READING = "reading"
    OCR = "ocr"
    EXTRACTING = "extracting"
    COMPLETE = "complete"
    ERROR = "error"


# Percent milestones of a single file
READING_PERCENT = 10
OCR_START_PERCENT = 10
OCR_END_PERCENT = 50
EXTRACTING_PERCENT = 55
PARSING_PERCENT = 90
COMPLETE_PERCENT = 100


@dataclass
class ProgressState:
    """Progress of the running pipeline operation.

    The pipeline is the only writer. Consumers read the attributes whenever
    they like; nothing is pushed to them.

    Attributes:
        status: Current stage.
        percent: Progress of the current file, 0-100.
        message: Short description of the current step.
        files_done: Files finished in the current operation.
        files_total: Files in the current operation.
        current_file: Name of the file being processed.
    """

    status: ProcessingStatus = ProcessingStatus.IDLE
    percent: int = 0
    message: str = ""
    files_done: int = 0
    files_total: int = 0
    current_file: str = ""

    @property
    def is_busy(self) -> bool:
        return self.status in (
            ProcessingStatus.READING,
            ProcessingStatus.OCR,
            ProcessingStatus.EXTRACTING,
        )

    @property
    def overall_percent(self) -> int:
        """Progress across all files of the operation, 0-100."""
        if self.files_total <= 0:
            return self.percent
        finished = self.files_done * 100 + (0 if self.files_done >= self.files_total else self.percent)
        return min(100, finished // self.files_total)

    def begin(self, files_total: int) -> None:
        """Reset for an operation over files_total files."""
        self.status = ProcessingStatus.IDLE
        self.percent = 0
        self.message = ""
        self.files_done = 0
        self.files_total = files_total
        self.current_file = ""

    def update(self, status: ProcessingStatus, percent: int, message: str = "") -> None:
        """Move to a stage, clamping percent into 0-100."""
        self.status = status
        self.percent = max(0, min(100, int(percent)))
        if message:
            self.message = message

    def recognition(self, fraction: float) -> None:
        """Map recognition progress (0.0-1.0) onto the OCR percent range."""
        fraction = max(0.0, min(1.0, fraction))
        span = OCR_END_PERCENT - OCR_START_PERCENT
        self.update(ProcessingStatus.OCR, OCR_START_PERCENT + round(fraction * span))

    def file_started(self, name: str) -> None:
        self.current_file = name
        self.update(ProcessingStatus.READING, READING_PERCENT, f"Reading {name}")

    def file_finished(self) -> None:
        self.files_done += 1

    def complete(self, message: str = "Done") -> None:
        self.update(ProcessingStatus.COMPLETE, COMPLETE_PERCENT, message)

    def fail(self, message: str) -> None:
        self.update(ProcessingStatus.ERROR, self.percent, message)
