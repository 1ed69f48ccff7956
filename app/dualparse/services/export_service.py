"""
Views and exports of a parse result.

Produces the text behind each viewer tab (for copy-to-clipboard), the
downloadable files (JSON, plain text, CSV), the transaction table rows
and the cost estimate shown after a successful parse.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum

from ..models import PdfParseResult, TokenUsage, Transaction

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Post Date", "Trans Date", "Description", "Amount", "Currency"]
DEFAULT_FILE_STEM = "parsed-output"


class ResultView(str, Enum):
    """Viewer tabs."""

    AI_JSON = "ai-json"
    RAW_TEXT = "raw-text"
    TRANSACTIONS = "transactions"


class ExportError(Exception):
    """Raised when a view cannot be exported for the given result."""

    pass


@dataclass(frozen=True)
class ExportFile:
    """A file ready to be downloaded."""

    content: str
    media_type: str
    filename: str


@dataclass(frozen=True)
class TransactionRow:
    """One rendered row of the transaction table."""

    date: str
    description: str
    amount: str
    is_credit: bool
    post_note: str | None = None


# =============================================================================
# Formatting Helpers
# =============================================================================


def result_to_json(result: PdfParseResult) -> str:
    """Pretty-print the full result with its wire (camelCase) field names."""
    return json.dumps(
        result.model_dump(mode="json", by_alias=True),
        indent=2,
        ensure_ascii=False,
    )


def transactions_to_json(transactions: list[Transaction]) -> str:
    return json.dumps(
        [t.model_dump(mode="json") for t in transactions],
        indent=2,
        ensure_ascii=False,
    )


def format_number(value: float) -> str:
    """Render a number the way JSON does: 1500.0 -> "1500", -200.5 -> "-200.5"."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def quote_csv_field(value: str) -> str:
    """Wrap a value in double quotes, doubling any embedded quotes."""
    return '"' + value.replace('"', '""') + '"'


def transactions_to_csv(transactions: list[Transaction]) -> str:
    """
    Render transactions as CSV.

    Columns: Post Date, Trans Date, Description, Amount, Currency. Only the
    description is quoted. Rows are joined with "\\n", header first, no
    trailing newline.
    """
    lines = [",".join(CSV_HEADERS)]
    for t in transactions:
        lines.append(
            ",".join(
                [
                    t.post_date,
                    t.trans_date,
                    quote_csv_field(t.description),
                    format_number(t.amount),
                    t.currency,
                ]
            )
        )
    return "\n".join(lines)


def format_amount(transaction: Transaction) -> str:
    """
    Display a signed amount.

    Debits show the bare magnitude, credits a leading '+':
    1500.0 LKR -> "1500.00 LKR", -200.0 LKR -> "+200.00 LKR".
    """
    sign = "+" if transaction.is_credit else ""
    text = f"{sign}{transaction.magnitude:.2f}"
    if transaction.currency:
        text = f"{text} {transaction.currency}"
    return text


def format_dates(transaction: Transaction) -> tuple[str, str | None]:
    """
    Main date and the note shown beneath it.

    The transaction date leads (falling back to the post date when it is
    missing); "Post: <post_date>" is added only when the two differ.
    """
    main = transaction.trans_date or transaction.post_date
    if transaction.post_date and transaction.post_date != main:
        return main, f"Post: {transaction.post_date}"
    return main, None


def build_transaction_rows(transactions: list[Transaction]) -> list[TransactionRow]:
    rows = []
    for t in transactions:
        date, post_note = format_dates(t)
        rows.append(
            TransactionRow(
                date=date,
                description=t.description,
                amount=format_amount(t),
                is_credit=t.is_credit,
                post_note=post_note,
            )
        )
    return rows


def safe_file_stem(file_name: str | None) -> str:
    """
    Sanitize an upload name for use in download filenames.

    Characters outside [A-Za-z0-9._-] become '_' and the extension is dropped.
    """
    if not file_name:
        return DEFAULT_FILE_STEM
    safe = re.sub(r"[^a-zA-Z0-9._-]", "_", file_name)
    return re.sub(r"\.[^/.]+$", "", safe)


def estimate_cost(
    usage: TokenUsage,
    input_rate: float = 0.075,
    output_rate: float = 0.30,
) -> str:
    """
    Estimate the USD cost of a call from its token usage.

    Args:
        usage: Token usage of the call.
        input_rate: USD per 1M prompt tokens.
        output_rate: USD per 1M response tokens.

    Returns:
        Cost formatted with six decimals, e.g. "0.000375".
    """
    input_cost = usage.prompt_tokens / 1_000_000 * input_rate
    output_cost = usage.response_tokens / 1_000_000 * output_rate
    return f"{input_cost + output_cost:.6f}"


# =============================================================================
# Views and Downloads
# =============================================================================


def available_views(result: PdfParseResult) -> list[ResultView]:
    """Tabs offered for a result; transactions only when there are any."""
    views = [ResultView.AI_JSON]
    if result.has_transactions:
        views.append(ResultView.TRANSACTIONS)
    views.append(ResultView.RAW_TEXT)
    return views


def _check_view(result: PdfParseResult, view: ResultView) -> None:
    if view not in available_views(result):
        raise ExportError(f"View '{view.value}' is not available for this result")


def view_content(result: PdfParseResult, view: ResultView) -> str:
    """
    Text behind a tab, as copied to the clipboard.

    Raises:
        ExportError: If the view is not offered for this result.
    """
    _check_view(result, view)
    if view == ResultView.AI_JSON:
        return result_to_json(result)
    if view == ResultView.RAW_TEXT:
        return result.standard_raw_text or ""
    return transactions_to_json(result.transactions)


def build_download(
    result: PdfParseResult,
    view: ResultView,
    file_name: str | None = None,
) -> ExportFile:
    """
    Build the downloadable file for a tab.

    JSON for the structured view, plain text for the raw view and CSV for
    transactions. Named "<stem>_<view>.<ext>".

    Raises:
        ExportError: If the view is not offered for this result.
    """
    _check_view(result, view)
    if view == ResultView.AI_JSON:
        content, media_type, extension = result_to_json(result), "application/json", "json"
    elif view == ResultView.RAW_TEXT:
        content, media_type, extension = result.standard_raw_text or "", "text/plain", "txt"
    else:
        content, media_type, extension = (
            transactions_to_csv(result.transactions),
            "text/csv",
            "csv",
        )

    filename = f"{safe_file_stem(file_name)}_{view.value}.{extension}"
    logger.info("Prepared download %s (%d chars)", filename, len(content))
    return ExportFile(content=content, media_type=media_type, filename=filename)
