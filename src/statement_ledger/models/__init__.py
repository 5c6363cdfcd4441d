"""Data models for statement transactions and derived statistics."""

from statement_ledger.models.category import (
    CATEGORIES,
    DEFAULT_CATEGORY,
    CostType,
    resolve_category,
)
from statement_ledger.models.report import (
    AggregatedStats,
    CategoryTotal,
    CostBreakdown,
    CostBucket,
)
from statement_ledger.models.transaction import (
    ExtractionResult,
    ExtractionUsage,
    TransactionRecord,
)

__all__ = [
    "CATEGORIES",
    "DEFAULT_CATEGORY",
    "CostType",
    "resolve_category",
    "TransactionRecord",
    "ExtractionResult",
    "ExtractionUsage",
    "AggregatedStats",
    "CategoryTotal",
    "CostBreakdown",
    "CostBucket",
]
