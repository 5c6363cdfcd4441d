"""Aggregate statistics over a transaction collection.

Every function here is pure: the same records always produce the same
result, and nothing is cached between calls.
"""

from decimal import Decimal
from typing import Any, Iterable, Optional

from statement_ledger.models.category import DEFAULT_CATEGORY, CostType
from statement_ledger.models.report import (
    AggregatedStats,
    CategoryTotal,
    CostBreakdown,
    CostBucket,
)
from statement_ledger.models.transaction import TransactionRecord
from statement_ledger.utils.date_utils import (
    DEFAULT_PERIOD_DAYS,
    inclusive_day_span,
    safe_parse_date,
)
from statement_ledger.utils.decimal_utils import ZERO, sum_amounts

NO_CATEGORY = CategoryTotal(category="None", amount=ZERO)

SORT_FIELDS = ("date", "description", "debit", "credit", "balance", "category")


def calculate_burn_rate(
    transactions: Iterable[TransactionRecord],
    period_days: int = DEFAULT_PERIOD_DAYS,
) -> Decimal:
    """Average debit per day over a period.

    Args:
        transactions: Records to sum.
        period_days: Days in the period.

    Returns:
        Total debit divided by period_days, or 0 for a non-positive period.
    """
    if period_days <= 0:
        return ZERO
    return sum_amounts([t.debit for t in transactions]) / Decimal(period_days)


def get_category_totals(transactions: Iterable[TransactionRecord]) -> list[CategoryTotal]:
    """Sum positive debits per category.

    Credits are not spending, so records without a positive debit do not
    contribute a category at all.

    Returns:
        Category totals, largest first. Equal totals keep the order in which
        their categories were first seen.
    """
    totals: dict[str, Decimal] = {}

    for t in transactions:
        if not t.has_debit:
            continue
        category = t.category or DEFAULT_CATEGORY
        totals[category] = totals.get(category, ZERO) + t.debit

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [CategoryTotal(category=name, amount=amount) for name, amount in ranked]


def get_fixed_vs_variable(transactions: Iterable[TransactionRecord]) -> CostBreakdown:
    """Split positive debits into fixed and variable buckets."""
    breakdown = CostBreakdown()

    for t in transactions:
        if not t.has_debit:
            continue
        bucket = breakdown.fixed if t.cost_type is CostType.FIXED else breakdown.variable
        bucket.total += t.debit
        bucket.items.append(t)

    return breakdown


def find_largest_expense(transactions: Iterable[TransactionRecord]) -> Optional[TransactionRecord]:
    """Record with the largest debit; the first one wins a tie."""
    largest: Optional[TransactionRecord] = None
    largest_debit = ZERO

    for t in transactions:
        if t.has_debit and t.debit > largest_debit:
            largest = t
            largest_debit = t.debit

    return largest


def compute_stats(transactions: Iterable[TransactionRecord]) -> AggregatedStats:
    """Compute summary statistics for a transaction collection.

    Dates are compared as strings, which is chronological for the
    YYYY-MM-DD dates extraction asks for. The period is the inclusive span
    between the first and last date, or 30 days when there are no usable
    dates.

    Args:
        transactions: Records in collection order.

    Returns:
        AggregatedStats for the collection.
    """
    records = list(transactions)

    total_debit = sum_amounts([t.debit for t in records])
    total_credit = sum_amounts([t.credit for t in records])

    dates = sorted(t.date for t in records if t.date)
    start_date = dates[0] if dates else None
    end_date = dates[-1] if dates else None
    period_days = inclusive_day_span(start_date, end_date)

    category_totals = get_category_totals(records)

    return AggregatedStats(
        total_debit=total_debit,
        total_credit=total_credit,
        transaction_count=len(records),
        start_date=start_date,
        end_date=end_date,
        period_days=period_days,
        daily_burn_rate=calculate_burn_rate(records, period_days),
        category_totals=category_totals,
        cost_breakdown=get_fixed_vs_variable(records),
        top_category=category_totals[0] if category_totals else NO_CATEGORY,
        largest_expense=find_largest_expense(records),
    )


def _fixed(amount: Decimal) -> str:
    return f"{amount:.2f}"


def generate_summary_text(
    stats: AggregatedStats,
    bank_name: Optional[str] = None,
    period: Optional[str] = None,
    currency_symbol: str = "",
) -> str:
    """Build the one-paragraph executive summary of a statement.

    Args:
        stats: Statistics of the session.
        bank_name: Detected bank name, prefixed when present.
        period: Detected statement period. Falls back to the date range.
        currency_symbol: Symbol placed before amounts.

    Returns:
        Summary text.
    """
    parts = []
    if bank_name:
        parts.append(f"{bank_name}.")

    parts.append(f"Statement Period: {period or stats.period_display}.")

    flow = "Positive" if stats.is_positive else "Negative"
    parts.append(
        f"You are Cash Flow {flow} by {currency_symbol}{_fixed(abs(stats.net_flow))}."
    )

    top = stats.top_category
    parts.append(
        f'Your largest spending category is "{top.category}" '
        f"at {currency_symbol}{_fixed(top.amount)}."
    )

    largest = stats.largest_expense
    if largest is not None:
        parts.append(
            f'Largest single expense: "{largest.description}" '
            f"({currency_symbol}{_fixed(largest.debit)})."
        )

    return " ".join(parts)


def _sort_key(record: TransactionRecord, field: str) -> tuple[int, Any]:
    """Key that groups missing or unparseable values after valid ones."""
    if field == "date":
        parsed = safe_parse_date(record.date)
        return (0, parsed) if parsed is not None else (1, "")
    if field in ("debit", "credit", "balance"):
        value = getattr(record, field)
        return (0, value) if value is not None else (1, ZERO)
    return (0, str(getattr(record, field)).casefold())


def sort_transactions(
    transactions: Iterable[TransactionRecord],
    field: str = "date",
    descending: bool = False,
) -> list[TransactionRecord]:
    """Sort records by one field.

    Empty or unparseable values sort after all valid ones in ascending
    order (and first in descending order). Records with equal keys keep
    their collection order in both directions.

    Args:
        transactions: Records to sort.
        field: One of SORT_FIELDS.
        descending: Reverse the order.

    Returns:
        New sorted list.

    Raises:
        ValueError: If field is not sortable.
    """
    if field not in SORT_FIELDS:
        raise ValueError(f"Cannot sort by {field!r}; expected one of {', '.join(SORT_FIELDS)}")

    return sorted(transactions, key=lambda t: _sort_key(t, field), reverse=descending)
