"""Derived statistics models for statement analytics."""

from dataclasses import dataclass, field
from decimal import Decimal

from statement_ledger.models.transaction import TransactionRecord


@dataclass(frozen=True)
class CategoryTotal:
    """Debit total for one spending category."""

    category: str
    amount: Decimal


@dataclass
class CostBucket:
    """Debits of one cost type.

    Attributes:
        total: Sum of debits in the bucket.
        items: Records contributing to the bucket, in collection order.
    """

    total: Decimal = field(default_factory=lambda: Decimal("0"))
    items: list[TransactionRecord] = field(default_factory=list)


@dataclass
class CostBreakdown:
    """Fixed versus variable split of all positive debits."""

    fixed: CostBucket = field(default_factory=CostBucket)
    variable: CostBucket = field(default_factory=CostBucket)

    @property
    def total_expenses(self) -> Decimal:
        return self.fixed.total + self.variable.total

    @property
    def fixed_percent(self) -> Decimal:
        """Share of fixed costs in total expenses, 0-100."""
        if self.total_expenses <= 0:
            return Decimal("0")
        return self.fixed.total / self.total_expenses * 100

    @property
    def variable_percent(self) -> Decimal:
        """Share of variable costs in total expenses, 0-100."""
        if self.total_expenses <= 0:
            return Decimal("0")
        return self.variable.total / self.total_expenses * 100


@dataclass
class AggregatedStats:
    """Statistics derived from a transaction collection.

    Recomputed on demand from the session's records and never stored.

    Attributes:
        total_debit: Sum of all debits.
        total_credit: Sum of all credits.
        transaction_count: Number of records.
        start_date: Earliest non-empty date string (lexicographic).
        end_date: Latest non-empty date string (lexicographic).
        period_days: Inclusive day span of start/end, or 30 without dates.
        daily_burn_rate: total_debit / period_days.
        category_totals: Debit totals per category, largest first.
        cost_breakdown: Fixed/variable split.
        top_category: First entry of category_totals, or a "None" placeholder.
        largest_expense: Record with the largest debit, or None.
    """

    total_debit: Decimal
    total_credit: Decimal
    transaction_count: int
    start_date: str | None
    end_date: str | None
    period_days: int
    daily_burn_rate: Decimal
    category_totals: list[CategoryTotal]
    cost_breakdown: CostBreakdown
    top_category: CategoryTotal
    largest_expense: TransactionRecord | None

    @property
    def net_flow(self) -> Decimal:
        """Credits minus debits."""
        return self.total_credit - self.total_debit

    @property
    def is_positive(self) -> bool:
        return self.net_flow >= 0

    @property
    def period_display(self) -> str:
        """Formatted date range string."""
        if self.start_date is None or self.end_date is None:
            return "N/A to N/A"
        return f"{self.start_date} to {self.end_date}"
