"""CSV exporter for session transactions."""

import csv
from decimal import Decimal
from pathlib import Path
from typing import Optional, Sequence

from statement_ledger.config import Config
from statement_ledger.models.transaction import TransactionRecord
from statement_ledger.session import SessionState
from statement_ledger.utils.logging_config import get_logger
from statement_ledger.utils.sanitize import sanitize_cell

logger = get_logger(__name__)

CSV_HEADERS = [
    "Date", "Description", "Debit", "Credit", "Balance", "Reference", "Category", "Cost Type"
]


class CSVExporter:
    """Exports session transactions to a single CSV file.

    Amounts are written as plain numbers without currency symbols so the
    file imports cleanly into spreadsheet applications.
    """

    def __init__(self, config: Optional[Config] = None):
        """Initialize CSV exporter.

        Args:
            config: Application configuration.
        """
        self.config = config or Config()
        self.output_config = self.config.output

    def export(
        self,
        output_path: Path,
        state: SessionState,
        transactions: Optional[Sequence[TransactionRecord]] = None,
    ) -> Path:
        """Write the session's transactions to CSV.

        Args:
            output_path: Destination file.
            state: Session to export.
            transactions: Records in the order to write them (defaults to the
                session's collection order).

        Returns:
            Path to the created file.
        """
        records = state.transactions if transactions is None else transactions
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(CSV_HEADERS)

            for txn in records:
                writer.writerow([
                    sanitize_cell(txn.date),
                    sanitize_cell(txn.description),
                    self._amount(txn.debit),
                    self._amount(txn.credit),
                    self._amount(txn.balance),
                    sanitize_cell(txn.reference),
                    sanitize_cell(txn.category),
                    txn.cost_type.value,
                ])

        logger.info(f"Exported {len(records)} transactions to {output_path}")
        return output_path

    def _amount(self, value: Optional[Decimal]) -> str:
        if value is None:
            return ""
        return f"{value:.{self.output_config.decimal_places}f}"
