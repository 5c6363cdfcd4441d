"""Prompt templates and request building for statement extraction."""

from dataclasses import dataclass

from statement_ledger.models.category import CATEGORIES
from statement_ledger.utils.logging_config import get_logger

logger = get_logger(__name__)

# Recognized text beyond this many characters is dropped before sending
DEFAULT_MAX_INPUT_CHARS = 8000
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_OUTPUT_TOKENS = 16384

EXTRACTION_SYSTEM_PROMPT = """You are a bank statement parser. \
You receive raw OCR text of a bank statement and return every transaction \
as structured data.

Guidelines:
1. Extract values as they appear; do not invent transactions
2. Money leaving the account is a debit, money arriving is a credit
3. OCR noise (broken words, stray symbols) should be read past, not copied

Response format: Raw JSON only - no markdown code blocks, no explanation outside the JSON."""

RESPONSE_FORMAT = (
    '{"transactions":[{"date":"YYYY-MM-DD","description":"text",'
    '"debit":number|null,"credit":number|null,"balance":number|null,'
    '"reference":"text|null","category":"category","costType":"fixed|variable"}],'
    '"bankName":"name|null","period":"period|null"}'
)


@dataclass(frozen=True)
class ExtractionRequest:
    """Payload for one extraction call.

    Attributes:
        system_prompt: System instructions.
        prompt: User prompt with rules, format and the statement text.
        text: The (possibly truncated) recognized text embedded in prompt.
        temperature: Sampling temperature.
        max_output_tokens: Upper bound on the reply size.
    """

    system_prompt: str
    prompt: str
    text: str
    temperature: float = DEFAULT_TEMPERATURE
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS


def build_extraction_prompt(text: str, categories: tuple[str, ...] = CATEGORIES) -> str:
    """Build the user prompt for a statement's recognized text.

    Args:
        text: Recognized text, already truncated.
        categories: Category vocabulary to classify into.

    Returns:
        Formatted prompt string.
    """
    category_list = ", ".join(categories)

    return f"""Parse this bank statement and return JSON only.

Rules:
1. Classify each transaction into one category: {category_list}
2. Mark costType as "fixed" for recurring bills (rent, insurance, subscriptions, utilities) \
or "variable" for discretionary spending
3. Use YYYY-MM-DD date format
4. Use numbers only for amounts (no currency symbols)

Format: {RESPONSE_FORMAT}

Text:
{text}

JSON:"""


def build_extraction_request(
    text: str,
    max_chars: int = DEFAULT_MAX_INPUT_CHARS,
    temperature: float = DEFAULT_TEMPERATURE,
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
) -> ExtractionRequest:
    """Build the request payload for one extraction call.

    Text longer than max_chars is cut silently.

    Args:
        text: Recognized statement text.
        max_chars: Maximum number of characters of text to send.
        temperature: Sampling temperature.
        max_output_tokens: Maximum reply size in tokens.

    Returns:
        ExtractionRequest ready for the client.
    """
    truncated = text[:max_chars]
    if len(truncated) < len(text):
        logger.debug(f"Recognized text truncated from {len(text)} to {max_chars} characters")

    return ExtractionRequest(
        system_prompt=EXTRACTION_SYSTEM_PROMPT,
        prompt=build_extraction_prompt(truncated),
        text=truncated,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
    )
