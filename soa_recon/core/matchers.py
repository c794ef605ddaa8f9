# soa_recon/core/matchers.py

"""
Comparison primitives shared by every match pass.

All functions are pure. Amount checks include the currency: two amounts in
different currencies never compare equal, whatever their values.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from soa_recon.config import MatchingConfig
from soa_recon.core.normalizers import normalize_document_number, normalize_string
from soa_recon.models import Invoice, StatementLine


# ============================================
# Document number
# ============================================

def documents_match_exact(reference: str | None, invoice_number: str | None) -> bool:
    """Trimmed, case-insensitive equality. Empty references never match."""
    left = normalize_string(reference)
    return bool(left) and left == normalize_string(invoice_number)


def documents_match_normalized(reference: str | None, invoice_number: str | None) -> bool:
    """Equality after stripping punctuation and leading zeros."""
    left = normalize_document_number(reference)
    return bool(left) and left == normalize_document_number(invoice_number)


# ============================================
# Date
# ============================================

def date_difference_days(first: date | None, second: date | None) -> Optional[int]:
    """Absolute difference in calendar days, or None if a date is missing."""
    if first is None or second is None:
        return None
    return abs((first - second).days)


def date_within_window(
    first: date | None,
    second: date | None,
    window_days: int,
) -> Optional[bool]:
    """
    Compare two dates against a tolerance window.

    Returns None when either date is absent. Callers decide what that means:
    a pass that requires a date match treats None as a failure, a pass that
    only refuses contradicting dates treats it as acceptable.
    """
    days = date_difference_days(first, second)
    if days is None:
        return None
    return days <= window_days


# ============================================
# Amount
# ============================================

def amount_difference(line: StatementLine, invoice: Invoice) -> Decimal:
    return abs(line.amount - invoice.total_amount)


def amounts_equal(line: StatementLine, invoice: Invoice) -> bool:
    """Same currency and the same amount."""
    return line.currency == invoice.currency and line.amount == invoice.total_amount


def amount_tolerance(invoice_amount: Decimal, config: MatchingConfig) -> Decimal:
    """The looser of the absolute and relative bounds."""
    relative = abs(invoice_amount) * config.amount_tolerance_percent / Decimal(100)
    return max(config.amount_tolerance_absolute, relative)


def amounts_within_tolerance(
    line: StatementLine,
    invoice: Invoice,
    config: MatchingConfig,
) -> bool:
    """Same currency and the difference is inside the amount tolerance."""
    if line.currency != invoice.currency:
        return False
    return amount_difference(line, invoice) <= amount_tolerance(invoice.total_amount, config)


def is_partial_settlement(line: StatementLine, invoice: Invoice) -> bool:
    """The line pays part of the invoice and leaves a positive residual."""
    return (
        line.currency == invoice.currency
        and Decimal(0) < line.amount < invoice.total_amount
    )
