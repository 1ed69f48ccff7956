"""
Local PDF text extraction using pdfplumber.

Produces the plain-text comparison view that sits next to the AI output.
Extraction failures never abort a parse: they degrade to a fixed sentinel.
"""

import asyncio
import io
import logging

import pdfplumber

logger = logging.getLogger(__name__)

RAW_TEXT_ERROR_SENTINEL = "Error: Could not extract raw text from PDF for comparison."


def format_page_block(page_number: int, tokens: list[str]) -> str:
    """
    Format one page of extracted tokens as a marked text block.

    Args:
        page_number: 1-indexed page number.
        tokens: Text tokens in reading order.

    Returns:
        The page block, e.g. "--- PAGE 1 ---\\n\\nHello world\\n\\n".
    """
    return f"--- PAGE {page_number} ---\n\n{' '.join(tokens)}\n\n"


class PDFService:
    """
    Service for local PDF text extraction.

    Uses pdfplumber (pdfminer.six) to read the text layer page by page.
    """

    def __init__(self, keep_blank_chars: bool = False):
        """
        Initialize the PDF service.

        Args:
            keep_blank_chars: Passed to pdfplumber word extraction. When False,
                whitespace splits tokens.
        """
        self.keep_blank_chars = keep_blank_chars

    def _page_tokens(self, page) -> list[str]:
        words = page.extract_words(keep_blank_chars=self.keep_blank_chars)
        return [word["text"] for word in words]

    def extract_raw_text(self, pdf_bytes: bytes) -> str:
        """
        Extract the raw text layer of every page.

        Pages are visited in document order; each page's tokens are joined
        with single spaces and prefixed with a page marker.

        Args:
            pdf_bytes: Raw PDF bytes.

        Returns:
            Concatenated page blocks, or RAW_TEXT_ERROR_SENTINEL if anything
            goes wrong while parsing.
        """
        try:
            blocks: list[str] = []
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                for page_number, page in enumerate(pdf.pages, start=1):
                    blocks.append(format_page_block(page_number, self._page_tokens(page)))

            logger.info("Extracted raw text from %d page(s)", len(blocks))
            return "".join(blocks)

        except Exception:
            logger.exception("Local PDF parsing failed")
            return RAW_TEXT_ERROR_SENTINEL

    async def extract_raw_text_async(self, pdf_bytes: bytes) -> str:
        """Run extract_raw_text in a worker thread so it overlaps the AI call."""
        return await asyncio.to_thread(self.extract_raw_text, pdf_bytes)


# Singleton instance for convenience
_pdf_service: PDFService | None = None


def get_pdf_service() -> PDFService:
    """Get or create the PDF service singleton."""
    global _pdf_service
    if _pdf_service is None:
        _pdf_service = PDFService()
    return _pdf_service
