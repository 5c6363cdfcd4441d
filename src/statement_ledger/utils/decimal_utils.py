"""Decimal utilities for monetary values.

All monetary values are held as Decimal so that totals computed from the same
records are always identical.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

# Currency symbols and codes that OCR text and model replies tend to carry
CURRENCY_SYMBOLS = ("$", "€", "£", "¥", "₹", "₽", "₩")
CURRENCY_CODES = re.compile(r"\b(?:INR|USD|EUR|GBP|RS)\b\.?", re.IGNORECASE)

# Regex for parentheses-enclosed negatives: (1,234.56)
PARENS_NEGATIVE_PATTERN = re.compile(r"^\s*\(\s*([^)]+)\s*\)\s*$")

# Regex for trailing DR/CR indicators
DR_CR_PATTERN = re.compile(r"\s*(DR|CR)\.?\s*$", re.IGNORECASE)

ZERO = Decimal("0")


def parse_amount(raw_amount: str) -> Decimal:
    """Parse a raw amount string into a signed Decimal.

    Handles:
    - Standard: 1234.56, -1234.56
    - With currency: $1,234.56, ₹ 1,234.56, INR 1234.56
    - Parentheses for negative: (1,234.56)
    - Indian digit grouping: 1,23,456.78
    - European format: 1.234,56
    - DR/CR suffix: 1234.56 DR (the suffix only sets the sign for DR)

    Args:
        raw_amount: The raw amount string to parse.

    Returns:
        Parsed amount.

    Raises:
        ValueError: If the amount cannot be parsed.
    """
    if not raw_amount or not raw_amount.strip():
        raise ValueError("Empty amount string")

    original = raw_amount
    amount_str = raw_amount.strip()
    is_negative = False

    parens_match = PARENS_NEGATIVE_PATTERN.match(amount_str)
    if parens_match:
        amount_str = parens_match.group(1).strip()
        is_negative = True

    dr_cr_match = DR_CR_PATTERN.search(amount_str)
    if dr_cr_match:
        if dr_cr_match.group(1).upper() == "DR":
            is_negative = True
        amount_str = DR_CR_PATTERN.sub("", amount_str).strip()

    for symbol in CURRENCY_SYMBOLS:
        amount_str = amount_str.replace(symbol, "")
    amount_str = CURRENCY_CODES.sub("", amount_str).strip()

    if amount_str.startswith("-"):
        is_negative = True
        amount_str = amount_str[1:].strip()

    if "," in amount_str and "." in amount_str:
        if amount_str.rfind(",") > amount_str.rfind("."):
            # European: 1.234,56 -> 1234.56
            amount_str = amount_str.replace(".", "").replace(",", ".")
        else:
            amount_str = amount_str.replace(",", "")
    elif "," in amount_str:
        if re.search(r",\d{1,2}$", amount_str):
            # Decimal comma: 1234,56 -> 1234.56
            amount_str = amount_str.replace(",", ".")
        else:
            amount_str = amount_str.replace(",", "")

    amount_str = amount_str.replace(" ", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse amount '{original}': {e}") from e

    if not amount.is_finite():
        raise ValueError(f"Amount is not a finite number: '{original}'")

    return -amount if is_negative else amount


def coerce_amount(value: object) -> Optional[Decimal]:
    """Convert a model-supplied amount into a Decimal.

    JSON numbers arrive as Decimal (floats parsed with ``parse_float=Decimal``)
    or int. Strings go through parse_amount. Booleans, containers and
    unparseable strings yield None.

    Args:
        value: Raw value from the parsed response.

    Returns:
        Decimal amount or None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            return parse_amount(value)
        except ValueError:
            return None
    return None


def format_currency(
    amount: Optional[Decimal],
    currency_symbol: str = "",
    decimal_places: int = 2,
) -> str:
    """Format an amount for display with thousands separators.

    Args:
        amount: The amount to format, or None.
        currency_symbol: Symbol prefixed to the number.
        decimal_places: Number of decimal places.

    Returns:
        Formatted string like "₹1,234.50", or "-" for None.
    """
    if amount is None:
        return "-"
    quantize_str = "1." + "0" * decimal_places if decimal_places > 0 else "1"
    rounded = amount.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{currency_symbol}{abs(rounded):,.{decimal_places}f}"


def sum_amounts(amounts: list[Optional[Decimal]]) -> Decimal:
    """Sum amounts, treating None as zero.

    Args:
        amounts: Amounts to sum.

    Returns:
        Sum as Decimal.
    """
    total = ZERO
    for amount in amounts:
        if amount is not None:
            total += amount
    return total
