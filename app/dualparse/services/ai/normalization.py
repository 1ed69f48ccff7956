"""
Local normalization pass for model-extracted transactions.

The model is instructed to emit ISO dates, signed numeric amounts and
currency codes, but nothing guarantees it. This optional pass cleans the
raw transaction dicts before they are validated:

- Dates re-parsed to YYYY-MM-DD (python-dateutil), originals kept when unparseable
- A missing post/trans date filled from the other one
- String amounts parsed with price-parser, keeping their sign
- Whitespace collapsed in descriptions, alphabetic currency codes upper-cased

Signs are never flipped: the debit/credit convention stays the model's call.
"""

import logging
import re
from datetime import datetime
from typing import Any

from dateutil import parser as date_parser
from price_parser import Price

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(value: Any, dayfirst: bool = False) -> str | None:
    """
    Parse various date formats to YYYY-MM-DD.

    Returns None if parsing fails.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)

    value = value.strip()
    if not value:
        return None

    if _ISO_DATE.match(value):
        try:
            datetime.strptime(value, "%Y-%m-%d")
        except ValueError:
            return None
        return value

    try:
        dt = date_parser.parse(value, dayfirst=dayfirst)
    except (ValueError, OverflowError):
        return None
    return dt.strftime("%Y-%m-%d")


def _is_negative(value: str) -> bool:
    """Detect a leading minus (before the first digit) or accounting parentheses."""
    if value.startswith("(") and value.endswith(")"):
        return True
    first_digit = re.search(r"\d", value)
    head = value[: first_digit.start()] if first_digit else value
    return "-" in head


def parse_amount(value: Any) -> float | None:
    """
    Parse a signed amount from a number or a currency string.

    Handles "$1,234.56", "-200.00", "(45.10)", "LKR 1.500,00" and plain numbers.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None

    value = value.strip()
    if not value:
        return None

    price = Price.fromstring(value)
    if price.amount_float is None:
        return None

    magnitude = abs(price.amount_float)
    return -magnitude if _is_negative(value) else magnitude


def clean_description(value: Any) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def clean_currency(value: Any) -> str:
    if value is None:
        return ""
    currency = str(value).strip()
    return currency.upper() if currency.isalpha() else currency


def normalize_transaction(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Normalize a single raw transaction dict.

    Args:
        raw: Transaction as returned by the model.

    Returns:
        A new dict; unknown keys are passed through untouched.
    """
    item = dict(raw)

    post_date = parse_date(raw.get("post_date")) or (raw.get("post_date") or "")
    trans_date = parse_date(raw.get("trans_date")) or (raw.get("trans_date") or "")
    item["post_date"] = post_date or trans_date
    item["trans_date"] = trans_date or post_date

    amount = parse_amount(raw.get("amount"))
    if amount is not None:
        item["amount"] = amount
    else:
        logger.warning("Could not parse transaction amount: %r", raw.get("amount"))

    item["description"] = clean_description(raw.get("description"))
    item["currency"] = clean_currency(raw.get("currency"))
    return item


def normalize_transactions(transactions: list[Any] | None) -> list[dict[str, Any]]:
    """Normalize every transaction dict, dropping null entries."""
    if not transactions:
        return []
    normalized = [normalize_transaction(t) for t in transactions if isinstance(t, dict)]
    logger.info("Normalized %d transaction(s)", len(normalized))
    return normalized
