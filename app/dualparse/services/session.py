"""
Parse session state.

Tracks the single upload the user is currently looking at through the
four statuses IDLE -> PROCESSING -> SUCCESS | ERROR. A new upload or a
reset discards the previous result; nothing is persisted. Each upload
carries a generation number, and a parse that completes after a reset or
a newer upload leaves the session untouched.
"""

import logging

from ..models import ParseStatus, PdfParseResult, SessionResponse
from .ai import AIService, get_ai_service
from .dual_parse import ensure_pdf, parse_document
from .pdf_service import PDFService, get_pdf_service

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred while parsing the PDF."


class SessionBusyError(Exception):
    """Raised when an upload arrives while another one is still processing."""

    pass


class ParseSession:
    """
    Holds the status and result of the current upload.

    Attributes:
        status: Current ParseStatus.
        file_name: Name of the current upload, if any.
        result: Merged result after a successful parse.
        error_message: Message of the last failure.
    """

    def __init__(
        self,
        ai_service: AIService | None = None,
        pdf_service: PDFService | None = None,
    ):
        self._ai_service = ai_service
        self._pdf_service = pdf_service
        self.status = ParseStatus.IDLE
        self.file_name: str | None = None
        self.result: PdfParseResult | None = None
        self.error_message: str | None = None
        self._generation = 0

    @property
    def ai_service(self) -> AIService:
        return self._ai_service or get_ai_service()

    @property
    def pdf_service(self) -> PDFService:
        return self._pdf_service or get_pdf_service()

    @property
    def is_processing(self) -> bool:
        return self.status == ParseStatus.PROCESSING

    async def process_upload(
        self,
        pdf_bytes: bytes,
        mime_type: str | None,
        filename: str,
    ) -> SessionResponse:
        """
        Run the dual parse for a newly selected file.

        Non-PDF uploads are rejected before the status changes. Remote
        failures are recorded on the session rather than raised. If the
        session was reset or another upload started while this one was
        running, the outcome is returned but not recorded.

        Args:
            pdf_bytes: Raw file bytes.
            mime_type: Declared MIME type.
            filename: Original filename.

        Returns:
            The outcome of this upload (SUCCESS or ERROR).

        Raises:
            UnsupportedFileTypeError: For non-PDF uploads.
            SessionBusyError: While a previous upload is still processing.
        """
        ensure_pdf(mime_type)
        if self.is_processing:
            raise SessionBusyError("A document is already being processed.")

        self._generation += 1
        generation = self._generation
        self.status = ParseStatus.PROCESSING
        self.file_name = filename
        self.result = None
        self.error_message = None

        try:
            result = await parse_document(
                pdf_bytes,
                mime_type,
                filename,
                ai_service=self.ai_service,
                pdf_service=self.pdf_service,
            )
        except Exception as e:
            logger.error("Parsing '%s' failed: %s", filename, e)
            outcome = SessionResponse(
                status=ParseStatus.ERROR,
                file_name=filename,
                error_message=str(e) or UNKNOWN_ERROR_MESSAGE,
            )
        else:
            logger.info("Parsed '%s' successfully", filename)
            outcome = SessionResponse(
                status=ParseStatus.SUCCESS,
                file_name=filename,
                result=result,
            )

        if generation != self._generation:
            logger.info("Discarding outcome of '%s': session moved on", filename)
            return outcome

        self.status = outcome.status
        self.result = outcome.result
        self.error_message = outcome.error_message
        return outcome

    def reset(self) -> None:
        """Return to IDLE, discarding the current file, result and error."""
        self._generation += 1
        self.status = ParseStatus.IDLE
        self.file_name = None
        self.result = None
        self.error_message = None

    def snapshot(self) -> SessionResponse:
        return SessionResponse(
            status=self.status,
            file_name=self.file_name,
            error_message=self.error_message,
            result=self.result,
        )


_parse_session: ParseSession | None = None


def get_parse_session() -> ParseSession:
    """Get or create the application-wide parse session."""
    global _parse_session
    if _parse_session is None:
        _parse_session = ParseSession()
    return _parse_session
