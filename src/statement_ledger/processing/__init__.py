"""Processing of extracted entries into a session and its statistics."""

from statement_ledger.processing.analytics import (
    calculate_burn_rate,
    compute_stats,
    generate_summary_text,
    get_category_totals,
    get_fixed_vs_variable,
    sort_transactions,
)
from statement_ledger.processing.merger import merge_batches
from statement_ledger.processing.normalizer import RecordNormalizer, normalize_entries
from statement_ledger.processing.progress import ProcessingStatus, ProgressState

__all__ = [
    "RecordNormalizer",
    "normalize_entries",
    "merge_batches",
    "compute_stats",
    "calculate_burn_rate",
    "get_category_totals",
    "get_fixed_vs_variable",
    "generate_summary_text",
    "sort_transactions",
    "ProcessingStatus",
    "ProgressState",
]
