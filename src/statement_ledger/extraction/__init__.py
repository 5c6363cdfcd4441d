"""AI-backed extraction of transactions from recognized statement text.

Example usage:
    from statement_ledger.extraction import (
        ExtractionClient,
        build_extraction_request,
        parse_extraction_response,
    )

    client = ExtractionClient()
    request = build_extraction_request(ocr_text)
    reply, usage = await client.complete(request)
    parsed = parse_extraction_response(reply)
"""

from statement_ledger.extraction.client import ExtractionClient, ExtractionClientConfig
from statement_ledger.extraction.models import ClientUsageStats
from statement_ledger.extraction.prompts import (
    ExtractionRequest,
    build_extraction_prompt,
    build_extraction_request,
)
from statement_ledger.extraction.response_parser import (
    ParsedResponse,
    RecoveryStage,
    parse_extraction_response,
)

__all__ = [
    "ExtractionClient",
    "ExtractionClientConfig",
    "ClientUsageStats",
    "ExtractionRequest",
    "build_extraction_prompt",
    "build_extraction_request",
    "ParsedResponse",
    "RecoveryStage",
    "parse_extraction_response",
]
