"""
Dual extraction dispatch.

Runs the remote structured extraction and the local raw-text extraction
concurrently and merges them into one PdfParseResult. The join is all or
nothing: a remote failure fails the whole parse, while the local branch
degrades to a sentinel string on its own.
"""

import asyncio
import logging

from ..models import PdfParseResult
from .ai import AIService
from .pdf_service import PDFService

logger = logging.getLogger(__name__)

SUPPORTED_MIME_TYPE = "application/pdf"


class UnsupportedFileTypeError(Exception):
    """Raised when an upload is not declared as a PDF."""

    pass


def ensure_pdf(mime_type: str | None) -> None:
    """
    Reject anything whose declared MIME type is not exactly application/pdf.

    Raises:
        UnsupportedFileTypeError: For any other MIME type.
    """
    if mime_type != SUPPORTED_MIME_TYPE:
        raise UnsupportedFileTypeError(
            f"Please upload a PDF file (got {mime_type or 'unknown type'})."
        )


def merge_results(structured: PdfParseResult, raw_text: str) -> PdfParseResult:
    """Attach the locally extracted text to the structured result."""
    return structured.model_copy(update={"standard_raw_text": raw_text})


async def parse_document(
    pdf_bytes: bytes,
    mime_type: str | None,
    filename: str,
    ai_service: AIService,
    pdf_service: PDFService,
) -> PdfParseResult:
    """
    Parse a PDF with both parsers in parallel.

    Args:
        pdf_bytes: Raw PDF bytes.
        mime_type: Declared MIME type of the upload.
        filename: Original filename.
        ai_service: Remote structured extraction.
        pdf_service: Local raw-text extraction.

    Returns:
        The structured result with standard_raw_text attached.

    Raises:
        UnsupportedFileTypeError: Before any extraction starts, for non-PDFs.
        AIServiceError: If the remote branch fails.
    """
    ensure_pdf(mime_type)

    logger.info("Parsing '%s' with AI and local extraction in parallel", filename)

    structured, raw_text = await asyncio.gather(
        ai_service.extract_structured(pdf_bytes, filename, mime_type=mime_type),
        pdf_service.extract_raw_text_async(pdf_bytes),
    )

    return merge_results(structured, raw_text)
