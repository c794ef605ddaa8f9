# soa_recon/core/normalizers.py

"""
Data normalization utilities for source records.

Ensures consistent values regardless of how the upstream store or
ingestion layer formatted them.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
import re


# Optional sign, currency symbol or upper-case ISO code, digits with
# optional thousands commas and decimals, optional trailing symbol or code
_AMOUNT_PATTERN = re.compile(
    r'(?P<sign>-)?\s*(?:[A-Z]{3}\s+|[$€£¥]\s*)?(?P<inner_sign>-)?'
    r'(?P<number>\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)'
    r'(?:\s*[$€£¥]|\s+[A-Z]{3})?'
)


def normalize_amount(amount: Any) -> Decimal | None:
    """
    Normalize amount to Decimal.

    Handles:
    - Integers and Decimals
    - Floats (through str() so binary noise never reaches Decimal)
    - Strings with a currency symbol or ISO code, thousands separators and
      accounting parentheses, e.g. "(1,250.00)", "USD 99.95"

    Returns None when the value is missing or cannot be parsed. A string
    is parsed only if it is nothing but those decorations around a number;
    "1e5", "N/A 5" or "INV-12" are rejected, never read as digits.
    """
    if amount is None or isinstance(amount, bool):
        return None

    if isinstance(amount, Decimal):
        return amount if amount.is_finite() else None

    if isinstance(amount, int):
        return Decimal(amount)

    if isinstance(amount, float):
        value = Decimal(str(amount))
        return value if value.is_finite() else None

    if isinstance(amount, str):
        cleaned = amount.strip()
        negative = cleaned.startswith("(") and cleaned.endswith(")")
        if negative:
            cleaned = cleaned[1:-1].strip()

        parsed = _AMOUNT_PATTERN.fullmatch(cleaned)
        if parsed is None:
            return None
        signs = [s for s in (parsed.group("sign"), parsed.group("inner_sign")) if s]
        if len(signs) > 1 or (negative and signs):
            return None

        value = Decimal(parsed.group("number").replace(",", ""))
        return -value if negative or signs else value

    return None


def normalize_date(d: Any) -> date | None:
    """
    Normalize date to date object.

    Handles:
    - datetime objects
    - date objects
    - ISO strings
    - Day-first and year-first slashed/dotted strings
    """
    if d is None:
        return None

    if isinstance(d, datetime):
        return d.date()

    if isinstance(d, date):
        return d

    if isinstance(d, str):
        d = d.strip()
        if not d:
            return None

        # Try ISO format first
        try:
            return datetime.fromisoformat(d.replace('Z', '+00:00')).date()
        except ValueError:
            pass

        # Try common statement formats
        formats = [
            '%Y-%m-%d',
            '%d/%m/%Y',
            '%Y/%m/%d',
            '%d.%m.%Y',
        ]
        for fmt in formats:
            try:
                return datetime.strptime(d, fmt).date()
            except ValueError:
                continue

    return None


def normalize_currency(code: Any) -> str | None:
    """Upper-case a currency code; None if it is not a 3-letter code."""
    if not isinstance(code, str):
        return None
    code = code.strip().upper()
    if re.fullmatch(r'[A-Z]{3}', code):
        return code
    return None


def normalize_string(s: str | None) -> str:
    """
    Normalize free text for exact comparison.

    - Trim surrounding whitespace
    - Upper-case
    """
    if not s:
        return ""
    return str(s).strip().upper()


def normalize_document_number(doc_no: str | None) -> str:
    """
    Normalize a document number for fuzzy comparison.

    - Upper-case
    - Strip leading zeros from each run of digits ("INV-0042" -> "INV42")
    - Drop everything that is not a letter or digit

    Separators split digit runs before zeros are stripped, so
    "INV/2025/0007" and "INV-2025-7" agree. A run made only of zeros keeps
    a single "0".
    """
    if not doc_no:
        return ""

    s = str(doc_no).upper()
    s = re.sub(r'[^A-Z0-9]+', ' ', s)
    s = re.sub(r'(?<!\d)0+(?=\d)', '', s)
    return s.replace(' ', '')
