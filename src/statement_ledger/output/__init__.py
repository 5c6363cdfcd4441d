"""Export sinks for session transactions."""

from statement_ledger.output.csv_exporter import CSVExporter
from statement_ledger.output.excel_writer import ExcelWriter

__all__ = ["CSVExporter", "ExcelWriter"]
