"""Record normalizer for converting parsed reply entries into ledger records."""

import time
from typing import Any, Callable, Optional

from statement_ledger.models.category import CostType, resolve_category
from statement_ledger.models.transaction import TransactionRecord
from statement_ledger.utils.decimal_utils import coerce_amount
from statement_ledger.utils.logging_config import get_logger

logger = get_logger(__name__)


def _millis() -> int:
    return time.time_ns() // 1_000_000


class RecordNormalizer:
    """Normalizes raw transaction entries into TransactionRecords.

    The normalizer:
    - Generates session-unique IDs from time, batch offset and entry index
    - Defaults missing text fields to empty strings
    - Coerces amounts to Decimal
    - Maps category and cost type onto the fixed vocabulary

    Dates and amounts are not range-checked; consumers decide what an
    unparseable date means.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        """Initialize normalizer.

        Args:
            clock: Millisecond clock used in IDs (defaults to wall time).
        """
        self.clock = clock or _millis

    def normalize(
        self,
        entries: list[Any],
        batch_offset: int = 0,
        source_file: str = "",
    ) -> list[TransactionRecord]:
        """Normalize the entries of one extraction call.

        Args:
            entries: Raw entries from the parsed reply.
            batch_offset: Distinct offset of this batch within the session.
            source_file: Name of the file the entries came from.

        Returns:
            List of TransactionRecords in entry order.
        """
        stamp = self.clock()
        records = []

        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                logger.warning(f"Skipping non-object transaction entry at index {index}")
                continue
            records.append(
                self.normalize_entry(entry, f"txn_{stamp}_{batch_offset}_{index}", source_file)
            )

        logger.info(f"Normalized {len(records)}/{len(entries)} entries (batch {batch_offset})")
        return records

    def normalize_entry(
        self,
        entry: dict[str, Any],
        record_id: str,
        source_file: str = "",
    ) -> TransactionRecord:
        """Normalize a single entry.

        Args:
            entry: Raw entry object.
            record_id: ID to assign.
            source_file: Name of the source file.

        Returns:
            Normalized TransactionRecord.
        """
        return TransactionRecord(
            id=record_id,
            date=_text(entry.get("date")),
            description=_text(entry.get("description")),
            debit=coerce_amount(entry.get("debit")),
            credit=coerce_amount(entry.get("credit")),
            balance=coerce_amount(entry.get("balance")),
            reference=_text(entry.get("reference")) or None,
            category=resolve_category(entry.get("category")),
            cost_type=CostType.from_value(entry.get("costType")),
            source_file=source_file,
        )


def _text(value: Any) -> str:
    """Render a scalar as text; None and containers become ""."""
    if value is None or isinstance(value, (dict, list, bool)):
        return ""
    return str(value)


def normalize_entries(
    entries: list[Any],
    batch_offset: int = 0,
    source_file: str = "",
) -> list[TransactionRecord]:
    """Convenience function to normalize entries with the wall clock.

    Args:
        entries: Raw entries from the parsed reply.
        batch_offset: Distinct offset of this batch within the session.
        source_file: Name of the file the entries came from.

    Returns:
        List of TransactionRecords.
    """
    return RecordNormalizer().normalize(entries, batch_offset, source_file)
