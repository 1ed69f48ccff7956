"""
AI service package for structured PDF extraction.

This package provides modular AI functionality split into:
- prompts: Fixed instruction prompt and strict output schema
- extraction: The remote structured-extraction call
- normalization: Optional local clean-up of extracted transactions

The AIService class binds these to a configured OpenAI client.
"""

import logging

from ...config import get_settings
from ...models import PdfParseResult
from .exceptions import AIServiceError
from .extraction import extract_structured as _extract_structured
from .extraction import parse_response_text, usage_from_response
from .normalization import normalize_transactions, parse_amount, parse_date

logger = logging.getLogger(__name__)

__all__ = [
    "AIService",
    "AIServiceError",
    "extract_structured",
    "get_ai_service",
    "normalize_transactions",
    "parse_amount",
    "parse_date",
    "parse_response_text",
    "usage_from_response",
]


class AIService:
    """
    Service for AI-powered structured extraction.

    Sends the whole PDF to an OpenAI model that accepts file input and
    receives metadata, per-page elements and transactions as strict JSON.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        normalize: bool | None = None,
        client=None,
    ):
        """
        Initialize the AI service.

        Args:
            api_key: OpenAI API key. If None, reads from config/environment.
            model: OpenAI model to use. If None, reads from config.
            normalize: Run the local transaction normalization pass.
                If None, reads from config.
            client: Pre-built AsyncOpenAI-compatible client (used by tests).
        """
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.normalize = (
            settings.normalize_transactions if normalize is None else normalize
        )
        self._client = client

        if not self.api_key and client is None:
            logger.warning(
                "OPENAI_API_KEY is not set. Structured extraction will fail until it is configured."
            )

    @property
    def client(self):
        """Lazy-load the AsyncOpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise AIServiceError(
                    "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
                )
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def extract_structured(
        self,
        pdf_bytes: bytes,
        filename: str,
        mime_type: str = "application/pdf",
    ) -> PdfParseResult:
        """
        Extract structured content from a PDF.

        Delegates to the extraction module.

        Args:
            pdf_bytes: Raw PDF bytes.
            filename: Original filename.
            mime_type: Declared MIME type.

        Returns:
            PdfParseResult with token usage attached.
        """
        return await _extract_structured(
            pdf_bytes,
            filename,
            client=self.client,
            model=self.model,
            mime_type=mime_type,
            normalize=self.normalize,
        )


# =============================================================================
# Singleton Factory
# =============================================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get or create the AI service singleton."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service


extract_structured = _extract_structured
