"""
Services package for the dual-parse application.

Contains:
- pdf_service: Local raw-text extraction with pdfplumber
- ai: OpenAI structured extraction and transaction normalization
- dual_parse: Parallel dispatch of both parsers and result merge
- session: Status of the current upload
- export_service: Viewer content, downloads and cost estimate
"""

from .ai import AIService
from .pdf_service import PDFService
from .session import ParseSession

__all__ = ["AIService", "PDFService", "ParseSession"]
