"""
Router for viewing and exporting the current result.

Handles:
- Text content of a viewer tab (copy to clipboard)
- File download of a viewer tab (JSON, TXT or CSV)
- Rendered transaction table rows
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import PlainTextResponse

from ..models import ParseStatus, PdfParseResult
from ..services.export_service import (
    ExportError,
    ResultView,
    TransactionRow,
    build_download,
    build_transaction_rows,
    view_content,
)
from ..services.session import ParseSession, get_parse_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/result", tags=["exports"])


def _current_result(session: ParseSession) -> PdfParseResult:
    if session.status != ParseStatus.SUCCESS or session.result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No parsed result available",
        )
    return session.result


def _parse_view(view: str) -> ResultView:
    try:
        return ResultView(view)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown view '{view}'. Use one of: {', '.join(v.value for v in ResultView)}",
        )


@router.get("/transactions/table", response_model=list[TransactionRow])
async def get_transaction_table(
    session: ParseSession = Depends(get_parse_session),
) -> list[TransactionRow]:
    """Transaction rows as displayed: date, description, signed amount."""
    result = _current_result(session)
    return build_transaction_rows(result.transactions)


@router.get("/{view}", response_class=PlainTextResponse)
async def get_view_content(
    view: str,
    session: ParseSession = Depends(get_parse_session),
) -> PlainTextResponse:
    """Return the text behind a viewer tab, as copied to the clipboard."""
    result_view = _parse_view(view)
    result = _current_result(session)
    try:
        content = view_content(result, result_view)
    except ExportError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
    return PlainTextResponse(content)


@router.get("/{view}/download")
async def download_view(
    view: str,
    session: ParseSession = Depends(get_parse_session),
) -> Response:
    """
    Download a viewer tab as a file.

    ai-json -> .json, raw-text -> .txt, transactions -> .csv
    """
    result_view = _parse_view(view)
    result = _current_result(session)
    try:
        export = build_download(result, result_view, session.file_name)
    except ExportError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{export.filename}"',
        },
    )
