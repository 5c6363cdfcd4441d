"""Spending category and cost type vocabulary.

The extraction prompt asks the model to classify every transaction into one of
CATEGORIES and one cost type; analytics rely on the same closed sets.
"""

from enum import Enum


CATEGORIES: tuple[str, ...] = (
    "Food & Dining",
    "Shopping",
    "Transport",
    "Utilities",
    "Entertainment",
    "Healthcare",
    "Education",
    "Subscriptions",
    "Rent & Housing",
    "Insurance",
    "Transfers",
    "Income",
    "ATM",
    "Other",
)

# Sentinel for missing or unrecognized categories
DEFAULT_CATEGORY = "Other"

_CATEGORY_LOOKUP = {name.casefold(): name for name in CATEGORIES}


class CostType(Enum):
    """Whether a debit is a recurring bill or discretionary spending."""

    FIXED = "fixed"
    VARIABLE = "variable"

    @classmethod
    def from_value(cls, value: object) -> "CostType":
        """Resolve a raw cost type, defaulting to VARIABLE.

        Args:
            value: Raw value from the model or an edit.

        Returns:
            Matching CostType.
        """
        if isinstance(value, CostType):
            return value
        if isinstance(value, str) and value.strip().lower() == cls.FIXED.value:
            return cls.FIXED
        return cls.VARIABLE


def resolve_category(value: object) -> str:
    """Map a raw category onto the vocabulary.

    Matching ignores case and surrounding whitespace.

    Args:
        value: Raw category value.

    Returns:
        Canonical category name, or DEFAULT_CATEGORY.
    """
    if not isinstance(value, str):
        return DEFAULT_CATEGORY
    return _CATEGORY_LOOKUP.get(value.strip().casefold(), DEFAULT_CATEGORY)
