"""Recovery parser for model replies that should contain a JSON object.

Replies are not schema-guaranteed: they may be wrapped in a code fence or
prose, carry trailing commas, or be cut off mid-array when the output token
limit is hit. Parsing runs in stages:

1. DIRECT: unwrap the candidate JSON text and parse it.
2. LEADING: keep a complete object at the start of the candidate and drop
   whatever text follows it.
3. REPAIRED: strip trailing commas, then close a truncated document at the
   last complete array element (or the last closing brace), balancing every
   container still open, and parse again.
4. Otherwise raise ParseFailure. Decoder errors of any kind (too deep,
   oversized integers) count as a failed stage.

Each repair step is a plain function so it can be exercised on its own.
Structural scanning ignores brackets inside string literals.
"""

import json
import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from statement_ledger.errors import InvalidFormat, ParseFailure
from statement_ledger.utils.logging_config import get_logger

logger = get_logger(__name__)

FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

_CLOSERS = {"{": "}", "[": "]"}
_NULL_WORDS = {"", "null", "none", "n/a"}

_DECODER = json.JSONDecoder(parse_float=Decimal, parse_constant=lambda _: None)

# JSONDecodeError, int digit limits and nesting depth
_DECODE_ERRORS = (ValueError, RecursionError)


class RecoveryStage(Enum):
    """Which parsing stage produced a result."""

    DIRECT = "direct"
    LEADING = "leading"
    REPAIRED = "repaired"


@dataclass
class StructureScan:
    """Result of scanning text for JSON structure outside string literals.

    Attributes:
        open_stack: Containers ("{" or "[") still open at the end, outermost first.
        in_string: Whether the text ends inside a string literal.
        closing_braces: Offsets of every "}" outside strings.
        element_boundaries: Offsets of every "}" followed (after optional
            whitespace) by "," or "]", i.e. the end of a complete array element.
    """

    open_stack: list[str] = field(default_factory=list)
    in_string: bool = False
    closing_braces: list[int] = field(default_factory=list)
    element_boundaries: list[int] = field(default_factory=list)


@dataclass
class ParsedResponse:
    """Structurally valid extraction reply.

    Attributes:
        transactions: Raw transaction entries as parsed (not yet normalized).
        bank_name: Detected bank name or None.
        period: Detected statement period or None.
        stage: Stage that produced the result.
    """

    transactions: list[Any]
    bank_name: Optional[str] = None
    period: Optional[str] = None
    stage: RecoveryStage = RecoveryStage.DIRECT


def scan_structure(text: str) -> StructureScan:
    """Scan text and track containers, skipping string literals.

    Args:
        text: Candidate JSON text.

    Returns:
        StructureScan describing the text.
    """
    scan = StructureScan()
    in_string = False
    escaped = False
    last_brace: Optional[int] = None

    for i, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
            last_brace = None
        elif char in _CLOSERS:
            scan.open_stack.append(char)
            last_brace = None
        elif char in "}]":
            if scan.open_stack and _CLOSERS[scan.open_stack[-1]] == char:
                scan.open_stack.pop()
            if char == "}":
                scan.closing_braces.append(i)
                last_brace = i
            else:
                if last_brace is not None:
                    scan.element_boundaries.append(last_brace)
                last_brace = None
        elif char == ",":
            if last_brace is not None:
                scan.element_boundaries.append(last_brace)
            last_brace = None
        elif not char.isspace():
            last_brace = None

    scan.in_string = in_string
    return scan


def unwrap_candidate(text: str) -> str:
    """Extract the JSON candidate from a raw reply.

    A fenced code block wins; otherwise text that does not start with "{"
    is sliced from the first "{" to the last "}". When no "}" follows the
    first "{" (a truncated reply after prose), the slice runs to the end.

    Args:
        text: Raw model reply.

    Returns:
        Candidate JSON text.
    """
    candidate = text.strip()

    fence = FENCE_PATTERN.search(text)
    if fence:
        candidate = fence.group(1).strip()

    if not candidate.startswith("{"):
        start = candidate.find("{")
        end = candidate.rfind("}")
        if start != -1 and end > start:
            candidate = candidate[start : end + 1]
        elif start != -1:
            candidate = candidate[start:]

    return candidate


def strip_trailing_commas(text: str) -> str:
    """Remove commas that directly precede a closing "}" or "]".

    Args:
        text: Candidate JSON text.

    Returns:
        Text without trailing commas outside string literals.
    """
    result: list[str] = []
    in_string = False
    escaped = False
    length = len(text)

    for i, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            result.append(char)
            continue

        if char == '"':
            in_string = True
        elif char == ",":
            j = i + 1
            while j < length and text[j].isspace():
                j += 1
            if j < length and text[j] in "}]":
                continue
        result.append(char)

    return "".join(result)


def close_open_structures(text: str) -> str:
    """Append the closers for every container left open, innermost first.

    Args:
        text: Text that ends outside any string literal.

    Returns:
        Text with balanced brackets and braces.
    """
    scan = scan_structure(text)
    closers = "".join(_CLOSERS[opener] for opener in reversed(scan.open_stack))
    return text + closers


def cut_at_last_element(text: str) -> Optional[str]:
    """Cut a truncated document after its last complete array element.

    Args:
        text: Truncated candidate JSON text.

    Returns:
        Closed document, or None if no element boundary exists.
    """
    scan = scan_structure(text)
    if not scan.element_boundaries:
        return None
    return close_open_structures(text[: scan.element_boundaries[-1] + 1])


def cut_at_last_brace(text: str) -> Optional[str]:
    """Cut a truncated document after its last closing brace.

    Args:
        text: Truncated candidate JSON text.

    Returns:
        Closed document, or None if the text has no closing brace.
    """
    scan = scan_structure(text)
    if not scan.closing_braces:
        return None
    return close_open_structures(text[: scan.closing_braces[-1] + 1])


def repair_truncation(text: str) -> str:
    """Turn a truncated document into a balanced one where possible.

    Text ending in "}" outside a string only gets its open containers
    closed. Any other ending is treated as a cut-off reply and trimmed back
    to the last complete element, or failing that the last closing brace.

    Args:
        text: Candidate JSON text, trailing commas already stripped.

    Returns:
        Repaired text (unchanged if nothing could be done).
    """
    stripped = text.rstrip()
    scan = scan_structure(stripped)

    if stripped.endswith("}") and not scan.in_string:
        return close_open_structures(stripped) if scan.open_stack else stripped

    for strategy in (cut_at_last_element, cut_at_last_brace):
        repaired = strategy(stripped)
        if repaired is not None:
            logger.debug(f"Truncated reply repaired by {strategy.__name__}")
            return repaired

    return stripped


def _load(text: str) -> Any:
    return _DECODER.decode(text)


def _load_leading_object(text: str) -> Optional[dict]:
    try:
        data, end = _DECODER.raw_decode(text)
    except _DECODE_ERRORS:
        return None
    if not isinstance(data, dict) or end == len(text):
        return None
    logger.debug(f"Ignoring {len(text) - end} characters after the reply object")
    return data


def _optional_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.lower() in _NULL_WORDS:
        return None
    return text


def parse_extraction_response(text: str) -> ParsedResponse:
    """Parse a model reply into a structurally valid extraction result.

    Args:
        text: Raw model reply.

    Returns:
        ParsedResponse with raw transaction entries and metadata.

    Raises:
        ParseFailure: If no stage produced valid JSON.
        InvalidFormat: If the JSON is not an object, or its transactions
            field is not a list.
    """
    candidate = unwrap_candidate(text)
    stage = RecoveryStage.DIRECT

    try:
        data = _load(candidate)
    except _DECODE_ERRORS as direct_error:
        logger.debug(f"Direct parse failed: {direct_error}")
        data = _load_leading_object(candidate)
        if data is not None:
            stage = RecoveryStage.LEADING
        else:
            repaired = repair_truncation(strip_trailing_commas(candidate))
            try:
                data = _load(repaired)
            except _DECODE_ERRORS as e:
                raise ParseFailure(
                    f"Could not recover JSON from reply: {type(e).__name__}: {e}",
                    raw_response=text,
                ) from e
            stage = RecoveryStage.REPAIRED
            logger.info("Recovered malformed extraction reply")

    if not isinstance(data, dict):
        raise InvalidFormat(f"Reply parsed to {type(data).__name__}, expected an object")

    transactions = data.get("transactions")
    if transactions is None:
        transactions = []
    if not isinstance(transactions, list):
        raise InvalidFormat(
            f"'transactions' must be a list, got {type(transactions).__name__}"
        )

    return ParsedResponse(
        transactions=transactions,
        bank_name=_optional_text(data.get("bankName")),
        period=_optional_text(data.get("period")),
        stage=stage,
    )
