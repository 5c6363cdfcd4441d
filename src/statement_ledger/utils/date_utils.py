"""Date parsing helpers for extracted statement dates."""

import re
from datetime import date, datetime

# Dates are requested as YYYY-MM-DD, but models occasionally echo the
# statement's own format. Slash-separated dates are read day-first, which is
# how the statements this tool targets print them.
DATE_PATTERNS = [
    (r"^\d{4}-\d{1,2}-\d{1,2}$", "%Y-%m-%d"),
    (r"^\d{4}/\d{1,2}/\d{1,2}$", "%Y/%m/%d"),
    (r"^\d{1,2}/\d{1,2}/\d{4}$", "%d/%m/%Y"),
    (r"^\d{1,2}-\d{1,2}-\d{4}$", "%d-%m-%Y"),
    (r"^\d{1,2}\.\d{1,2}\.\d{4}$", "%d.%m.%Y"),
    (r"^\d{1,2}-\w{3}-\d{4}$", "%d-%b-%Y"),
    (r"^\d{1,2} \w{3} \d{4}$", "%d %b %Y"),
    (r"^\w{3} \d{1,2}, \d{4}$", "%b %d, %Y"),
]

COMPILED_PATTERNS = [(re.compile(pattern), fmt) for pattern, fmt in DATE_PATTERNS]

# Period used for burn rate when no usable dates exist
DEFAULT_PERIOD_DAYS = 30


def parse_date(raw_date: str) -> date:
    """Parse a date string into a date object.

    Args:
        raw_date: The raw date string to parse.

    Returns:
        Parsed date object.

    Raises:
        ValueError: If the date cannot be parsed.
    """
    if not raw_date or not raw_date.strip():
        raise ValueError("Empty date string")

    date_str = raw_date.strip()

    for pattern, fmt in COMPILED_PATTERNS:
        if pattern.match(date_str):
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                continue

    raise ValueError(f"Cannot parse date: '{raw_date}'")


def safe_parse_date(raw_date: str | None, default: date | None = None) -> date | None:
    """Parse a date string, returning default on failure.

    Args:
        raw_date: The raw date string to parse.
        default: Value returned when parsing fails.

    Returns:
        Parsed date or default.
    """
    if not raw_date:
        return default

    try:
        return parse_date(raw_date)
    except ValueError:
        return default


def inclusive_day_span(start: str | None, end: str | None) -> int:
    """Number of days covered by a start/end date pair, both ends included.

    Args:
        start: Earliest date string.
        end: Latest date string.

    Returns:
        Day count, at least 1, or DEFAULT_PERIOD_DAYS when either date is
        missing or unparseable.
    """
    start_date = safe_parse_date(start)
    end_date = safe_parse_date(end)
    if start_date is None or end_date is None:
        return DEFAULT_PERIOD_DAYS
    return max(1, (end_date - start_date).days + 1)
