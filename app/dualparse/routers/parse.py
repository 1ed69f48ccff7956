"""
Router for upload and dual extraction endpoints.

Handles:
- PDF upload, parsed by the AI and the local extractor in parallel
- Current session state and reset
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from ..config import get_settings
from ..models import ParseResponse, ParseStatus, SessionResponse
from ..services.dual_parse import ensure_pdf
from ..services.export_service import estimate_cost
from ..services.session import ParseSession, SessionBusyError, get_parse_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["parse"])


@router.post("/parse", response_model=ParseResponse)
async def parse_pdf(
    file: Annotated[UploadFile, File(description="PDF file to parse")],
    session: ParseSession = Depends(get_parse_session),
) -> ParseResponse:
    """
    Upload a PDF and parse it.

    Runs the structured AI extraction and the local raw-text extraction
    concurrently and returns the merged result. Non-PDF uploads are
    rejected before either parser runs.
    """
    try:
        # UnsupportedFileTypeError is mapped to 400 in main
        ensure_pdf(file.content_type)

        file_bytes = await file.read()
        if not file_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Empty file provided",
            )

        filename = file.filename or "document.pdf"
        logger.info("Processing PDF: %s (%d bytes)", filename, len(file_bytes))

        try:
            outcome = await session.process_upload(
                file_bytes, file.content_type, filename
            )
        except SessionBusyError as e:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(e),
            )

        if outcome.status == ParseStatus.ERROR or outcome.result is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=outcome.error_message,
            )

        result = outcome.result
        estimated_cost = None
        if result.token_usage is not None:
            settings = get_settings()
            estimated_cost = estimate_cost(
                result.token_usage,
                input_rate=settings.input_token_rate,
                output_rate=settings.output_token_rate,
            )

        return ParseResponse(
            status=outcome.status,
            file_name=filename,
            result=result,
            estimated_cost=estimated_cost,
        )

    finally:
        await file.close()


@router.get("/session", response_model=SessionResponse)
async def get_session(
    session: ParseSession = Depends(get_parse_session),
) -> SessionResponse:
    """Return the status and result of the current upload."""
    return session.snapshot()


@router.post("/session/reset", response_model=SessionResponse)
async def reset_session(
    session: ParseSession = Depends(get_parse_session),
) -> SessionResponse:
    """Discard the current file and result."""
    session.reset()
    return session.snapshot()
