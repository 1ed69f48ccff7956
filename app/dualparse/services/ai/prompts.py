"""
Fixed instruction prompt and strict output schema for structured extraction.
"""

from ...models import ElementType

# =============================================================================
# Extraction Prompt
# =============================================================================

EXTRACTION_PROMPT = """Analyze this PDF document (likely a bank/credit card statement, receipt, or invoice) and extract its content into a structured JSON format.

## Requirements:

1. **Metadata**: Extract global metadata (title, author, brief summary, detected language, main topic).
2. **Pages**: Iterate through each page and extract the page number, raw text, and a list of structured elements.
3. **Elements**: Classify structured elements as 'heading', 'paragraph', 'list', 'table', 'image_description' (if applicable), or 'other'.
4. **Transactions**: Extract ALL transactions as a top-level array "transactions". For each transaction:
   - Scan for tables or lists containing dates, descriptions, and amounts.
   - Normalize 'post_date' and 'trans_date' to ISO YYYY-MM-DD format. If only one date is present, use it for both.
   - Clean the 'description' (remove extra whitespace or partial URLs).
   - Parse 'amount' as a number. Ensure correct sign: Positive for debits/purchases, Negative for credits/payments/refunds.
   - Infer 'currency' from context (e.g., "$", "LKR", "EUR").
   - Exclude subtotals, balance brought forward, or page totals. Only extract individual line items.
5. If no financial transactions are found, return an empty array for 'transactions'.
6. For metadata values that cannot be determined, return an empty string. DO NOT HALLUCINATE.
7. Ensure the output matches the defined JSON schema perfectly."""


# =============================================================================
# Output Schema
# =============================================================================


def _strict_object(properties: dict) -> dict:
    """Build an object schema in the form strict structured outputs require."""
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


_METADATA_SCHEMA = _strict_object(
    {
        "title": {"type": "string"},
        "author": {"type": "string"},
        "summary": {"type": "string"},
        "language": {"type": "string"},
        "topic": {"type": "string"},
    }
)

_TRANSACTION_SCHEMA = _strict_object(
    {
        "post_date": {"type": "string"},
        "trans_date": {"type": "string"},
        "description": {"type": "string"},
        "amount": {"type": "number"},
        "currency": {"type": "string"},
    }
)

_ELEMENT_SCHEMA = _strict_object(
    {
        "type": {"type": "string", "enum": [t.value for t in ElementType]},
        "content": {"type": "string"},
    }
)

_PAGE_SCHEMA = _strict_object(
    {
        "pageNumber": {"type": "integer"},
        "rawText": {"type": "string"},
        "structuredElements": {"type": "array", "items": _ELEMENT_SCHEMA},
    }
)

PDF_PARSE_RESPONSE_SCHEMA = _strict_object(
    {
        "metadata": _METADATA_SCHEMA,
        "transactions": {"type": "array", "items": _TRANSACTION_SCHEMA},
        "pages": {"type": "array", "items": _PAGE_SCHEMA},
    }
)

RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {
        "name": "pdf_parse_result",
        "strict": True,
        "schema": PDF_PARSE_RESPONSE_SCHEMA,
    },
}
