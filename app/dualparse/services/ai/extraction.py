"""
Structured extraction of a PDF document via the OpenAI API.

The PDF is sent inline as a base64 file part together with a fixed
instruction prompt, and the response is constrained by a strict JSON
schema (structured outputs). The returned JSON is validated into a
PdfParseResult and token usage is attached.
"""

import base64
import json
import logging
from typing import Any

from pydantic import ValidationError

from ...models import PdfParseResult, TokenUsage
from .exceptions import AIServiceError
from .normalization import normalize_transactions
from .prompts import EXTRACTION_PROMPT, RESPONSE_FORMAT

logger = logging.getLogger(__name__)


# =============================================================================
# Helper Functions
# =============================================================================


def _pdf_to_data_url(pdf_bytes: bytes, mime_type: str = "application/pdf") -> str:
    """Encode PDF bytes as a base64 data URL for the API."""
    encoded = base64.b64encode(pdf_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def build_messages(
    pdf_bytes: bytes,
    filename: str,
    mime_type: str = "application/pdf",
) -> list[dict[str, Any]]:
    """Build the chat messages: the inline PDF part followed by the prompt."""
    return [
        {
            "role": "user",
            "content": [
                {
                    "type": "file",
                    "file": {
                        "filename": filename,
                        "file_data": _pdf_to_data_url(pdf_bytes, mime_type),
                    },
                },
                {"type": "text", "text": EXTRACTION_PROMPT},
            ],
        }
    ]


def usage_from_response(response: Any) -> TokenUsage:
    """
    Read token accounting from an API response.

    Absent counters default to zero.
    """
    usage = getattr(response, "usage", None)
    return TokenUsage(
        prompt_tokens=getattr(usage, "prompt_tokens", None) or 0,
        response_tokens=getattr(usage, "completion_tokens", None) or 0,
        total_tokens=getattr(usage, "total_tokens", None) or 0,
    )


def parse_response_text(content: str | None, normalize: bool = False) -> PdfParseResult:
    """
    Parse the model's JSON text into a PdfParseResult.

    Args:
        content: Text payload of the response.
        normalize: Run the local transaction normalization pass first.

    Raises:
        AIServiceError: If the payload is empty, not JSON, or off-schema.
    """
    if not content:
        raise AIServiceError("No response text received from the model.")

    try:
        response_data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse extraction response: %s", content[:500])
        raise AIServiceError(str(e)) from e

    if not isinstance(response_data, dict):
        raise AIServiceError("Extraction response is not a JSON object")

    if normalize:
        response_data["transactions"] = normalize_transactions(
            response_data.get("transactions")
        )

    try:
        return PdfParseResult.model_validate(response_data)
    except ValidationError as e:
        logger.error("Extraction response does not match schema: %s", e)
        raise AIServiceError(str(e)) from e


# =============================================================================
# Main Extraction Function
# =============================================================================


async def extract_structured(
    pdf_bytes: bytes,
    filename: str,
    client: Any,  # AsyncOpenAI client
    model: str = "gpt-4.1",
    mime_type: str = "application/pdf",
    normalize: bool = False,
) -> PdfParseResult:
    """
    Extract metadata, pages and transactions from a PDF.

    Args:
        pdf_bytes: Raw PDF bytes.
        filename: Original filename, forwarded with the file part.
        client: AsyncOpenAI client instance.
        model: Model name to use (must accept PDF file input).
        mime_type: Declared MIME type of the payload.
        normalize: Clean transactions locally before validation.

    Returns:
        PdfParseResult with token_usage set and standard_raw_text unset.

    Raises:
        AIServiceError: On any failure; the underlying message is kept verbatim.
    """
    logger.info(
        "Requesting structured extraction for '%s' (%d bytes, model=%s)",
        filename,
        len(pdf_bytes),
        model,
    )

    try:
        response = await client.chat.completions.create(
            model=model,
            messages=build_messages(pdf_bytes, filename, mime_type),
            response_format=RESPONSE_FORMAT,
        )

        message = response.choices[0].message
        refusal = getattr(message, "refusal", None)
        if refusal:
            raise AIServiceError(refusal)

        result = parse_response_text(message.content, normalize=normalize)
        token_usage = usage_from_response(response)

        logger.info(
            "Extracted %d page(s), %d transaction(s) for '%s' (%d tokens)",
            len(result.pages),
            len(result.transactions),
            filename,
            token_usage.total_tokens,
        )
        return result.model_copy(update={"token_usage": token_usage})

    except AIServiceError:
        raise
    except Exception as e:
        logger.exception("Structured extraction failed")
        raise AIServiceError(str(e)) from e
