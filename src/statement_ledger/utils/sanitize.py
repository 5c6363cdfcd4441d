"""Sanitization of free text before it is written to spreadsheet cells."""

from typing import Optional

# Leading characters that spreadsheet applications evaluate as formulas
# (| covers DDE payloads)
_FORMULA_CHARS = ("=", "+", "-", "@", "\t", "\r", "\n", "|")


def sanitize_cell(value: Optional[str]) -> str:
    """Neutralize formula injection in an exported text cell.

    OCR and model output are untrusted, so descriptions such as
    "=HYPERLINK(...)" are prefixed with a single quote.

    Args:
        value: Text to export, or None.

    Returns:
        Safe text; None becomes an empty string.
    """
    if not value:
        return ""

    if value.startswith(_FORMULA_CHARS):
        return "'" + value

    return value
