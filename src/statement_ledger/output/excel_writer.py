"""Excel workbook writer for session transactions and statistics."""

from decimal import Decimal
from pathlib import Path
from typing import Optional, Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from statement_ledger.config import Config
from statement_ledger.models.report import AggregatedStats
from statement_ledger.models.transaction import TransactionRecord
from statement_ledger.processing.analytics import compute_stats, generate_summary_text
from statement_ledger.session import SessionState
from statement_ledger.utils.logging_config import get_logger
from statement_ledger.utils.sanitize import sanitize_cell

logger = get_logger(__name__)


class ExcelWriter:
    """Writes a session to a multi-sheet Excel workbook.

    Generates sheets:
    - Transactions (with a TOTAL row)
    - Summary
    - Categories
    """

    SHEET_TRANSACTIONS = "Transactions"
    SHEET_SUMMARY = "Summary"
    SHEET_CATEGORIES = "Categories"

    TRANSACTION_HEADERS = [
        "Date", "Description", "Debit", "Credit", "Balance", "Reference", "Category", "Cost Type"
    ]

    def __init__(self, config: Optional[Config] = None):
        """Initialize Excel writer.

        Args:
            config: Application configuration.
        """
        self.config = config or Config()
        self.output_config = self.config.output

        # Style definitions
        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        self.bold = Font(bold=True)
        self.money_positive = Font(color="006600")  # Dark green
        self.money_negative = Font(color="CC0000")  # Dark red
        self.centered = Alignment(horizontal="center")
        self.wrapped = Alignment(wrap_text=True, vertical="top")
        self.thin_border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )

    def write(
        self,
        output_path: Path,
        state: SessionState,
        stats: Optional[AggregatedStats] = None,
        transactions: Optional[Sequence[TransactionRecord]] = None,
    ) -> Path:
        """Write the session to an Excel workbook.

        Args:
            output_path: Path for output file.
            state: Session to export.
            stats: Precomputed statistics (computed from state when omitted).
            transactions: Records in the order to write them (defaults to the
                session's collection order).

        Returns:
            Path to the created file.
        """
        logger.info(f"Writing Excel workbook to {output_path}")

        records = list(state.transactions if transactions is None else transactions)
        if stats is None:
            stats = compute_stats(state.transactions)

        wb = Workbook()
        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)

        self._create_transactions_sheet(wb, records, stats)
        self._create_summary_sheet(wb, state, stats)
        self._create_categories_sheet(wb, stats)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        logger.info(f"Excel workbook saved: {output_path}")
        return output_path

    def _write_headers(self, ws: Worksheet, headers: list[str]) -> None:
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.centered
            cell.border = self.thin_border

    def _money_cell(
        self, ws: Worksheet, row: int, column: int, amount: Optional[Decimal]
    ) -> Optional[Cell]:
        if amount is None:
            return None
        cell = ws.cell(row=row, column=column, value=float(amount))
        cell.number_format = self._money_format()
        return cell

    def _create_transactions_sheet(
        self,
        wb: Workbook,
        transactions: list[TransactionRecord],
        stats: AggregatedStats,
    ) -> None:
        """Create the Transactions sheet with a TOTAL row.

        Args:
            wb: Workbook to add sheet to.
            transactions: Records in output order.
            stats: Session statistics (for the totals).
        """
        ws = wb.create_sheet(self.SHEET_TRANSACTIONS)
        self._write_headers(ws, self.TRANSACTION_HEADERS)

        for row, txn in enumerate(transactions, 2):
            ws.cell(row=row, column=1, value=sanitize_cell(txn.date))
            ws.cell(row=row, column=2, value=sanitize_cell(txn.description))

            debit_cell = self._money_cell(ws, row, 3, txn.debit)
            if debit_cell is not None:
                debit_cell.font = self.money_negative
            credit_cell = self._money_cell(ws, row, 4, txn.credit)
            if credit_cell is not None:
                credit_cell.font = self.money_positive
            self._money_cell(ws, row, 5, txn.balance)

            ws.cell(row=row, column=6, value=sanitize_cell(txn.reference))
            ws.cell(row=row, column=7, value=sanitize_cell(txn.category))
            ws.cell(row=row, column=8, value=txn.cost_type.value)

        total_row = len(transactions) + 2
        ws.cell(row=total_row, column=2, value="TOTAL").font = self.bold
        for column, amount in ((3, stats.total_debit), (4, stats.total_credit)):
            cell = self._money_cell(ws, total_row, column, amount)
            cell.font = self.bold
            cell.border = self.thin_border

        widths = [12, 40, 14, 14, 14, 20, 18, 10]
        for i, width in enumerate(widths, 1):
            ws.column_dimensions[get_column_letter(i)].width = width

        # Freeze header row
        ws.freeze_panes = "A2"

    def _create_summary_sheet(
        self,
        wb: Workbook,
        state: SessionState,
        stats: AggregatedStats,
    ) -> None:
        """Create the Summary sheet of headline figures.

        Args:
            wb: Workbook to add sheet to.
            state: Session (for bank name and period).
            stats: Session statistics.
        """
        ws = wb.create_sheet(self.SHEET_SUMMARY)
        self._write_headers(ws, ["Metric", "Value"])

        largest = stats.largest_expense
        rows: list[tuple[str, object]] = [
            ("Bank", state.bank_name or ""),
            ("Statement Period", state.period or stats.period_display),
            ("Files Processed", state.files_processed),
            ("Transactions", stats.transaction_count),
            ("Total Debit", stats.total_debit),
            ("Total Credit", stats.total_credit),
            ("Net Flow", stats.net_flow),
            ("Period (days)", stats.period_days),
            ("Daily Burn Rate", stats.daily_burn_rate),
            ("Top Category", stats.top_category.category),
            ("Top Category Spend", stats.top_category.amount),
            ("Largest Expense", largest.description if largest else "None"),
            ("Largest Expense Amount", largest.debit if largest else None),
            ("Fixed Costs", stats.cost_breakdown.fixed.total),
            ("Variable Costs", stats.cost_breakdown.variable.total),
            ("Fixed Share (%)", stats.cost_breakdown.fixed_percent),
        ]

        for row, (label, value) in enumerate(rows, 2):
            ws.cell(row=row, column=1, value=label).font = self.bold
            if isinstance(value, Decimal):
                if label.endswith("(%)"):
                    cell = ws.cell(row=row, column=2, value=float(value))
                    cell.number_format = "0.0"
                else:
                    self._money_cell(ws, row, 2, value)
            else:
                ws.cell(row=row, column=2, value=sanitize_cell(value) if isinstance(value, str) else value)

        net_cell = ws.cell(row=8, column=2)
        net_cell.font = self.money_positive if stats.is_positive else self.money_negative

        summary_row = len(rows) + 3
        ws.cell(row=summary_row, column=1, value="Summary").font = self.bold
        summary = generate_summary_text(
            stats, state.bank_name, state.period, self.output_config.currency_symbol
        )
        text_cell = ws.cell(row=summary_row, column=2, value=sanitize_cell(summary))
        text_cell.alignment = self.wrapped

        ws.column_dimensions["A"].width = 24
        ws.column_dimensions["B"].width = 60

    def _create_categories_sheet(self, wb: Workbook, stats: AggregatedStats) -> None:
        """Create the Categories sheet, largest spend first.

        Args:
            wb: Workbook to add sheet to.
            stats: Session statistics.
        """
        ws = wb.create_sheet(self.SHEET_CATEGORIES)
        self._write_headers(ws, ["Category", "Amount", "Share (%)"])

        if not stats.category_totals:
            ws.cell(row=2, column=1, value="No spending data")
            return

        total = stats.cost_breakdown.total_expenses
        for row, item in enumerate(stats.category_totals, 2):
            ws.cell(row=row, column=1, value=sanitize_cell(item.category))
            self._money_cell(ws, row, 2, item.amount)
            share = item.amount / total * 100 if total > 0 else Decimal("0")
            share_cell = ws.cell(row=row, column=3, value=float(share))
            share_cell.number_format = "0.0"

        ws.column_dimensions["A"].width = 22
        ws.column_dimensions["B"].width = 14
        ws.column_dimensions["C"].width = 10
        ws.freeze_panes = "A2"

    def _money_format(self) -> str:
        """Get number format for money values.

        Returns:
            Excel number format string.
        """
        symbol = self.output_config.currency_symbol
        return f'{symbol}#,##0.00_);[Red]({symbol}#,##0.00)'
