# soa_recon/core/passes.py

"""
The five match passes, strictest first.

Pass | Document   | Amount                      | Date
-----+------------+-----------------------------+--------------------------
  1  | exact      | exact                       | equal when both present
  2  | exact      | exact                       | within window (required)
  3  | normalized | exact                       | -
  4  | exact      | within tolerance            | -
  5  | normalized | within tolerance or partial | not outside window

Pass 5 only runs for lines in "partial" mode or when the run allows it.
Each check returns the criteria that held (for the audit trail) or None
when the invoice is not eligible.
"""

from typing import Callable, Optional

from soa_recon.config import MatchingConfig
from soa_recon.core.matchers import (
    amount_difference,
    amounts_equal,
    amounts_within_tolerance,
    date_difference_days,
    date_within_window,
    documents_match_exact,
    documents_match_normalized,
    is_partial_settlement,
)
from soa_recon.core.normalizers import normalize_document_number
from soa_recon.models import ConfidenceLevel, Invoice, MatchType, StatementLine

PassCheck = Callable[[StatementLine, Invoice, MatchingConfig], Optional[dict]]


class MatchPass:
    """One matching strategy in the fixed pipeline."""

    def __init__(
        self,
        number: int,
        name: str,
        check: PassCheck,
        match_score: int,
        confidence_level: ConfidenceLevel,
        match_type: MatchType,
        opt_in: bool = False,
    ):
        self.number = number
        self.name = name
        self.check = check
        self.match_score = match_score
        self.confidence_level = confidence_level
        self.match_type = match_type
        self.opt_in = opt_in

    def applies_to(self, line: StatementLine, allow_partial: bool) -> bool:
        """Opt-in passes need the run flag or a line in partial mode."""
        if not self.opt_in:
            return True
        return allow_partial or line.match_mode == "partial"

    def __repr__(self) -> str:
        return f"MatchPass({self.number}, {self.name!r})"


def _document_keys(line: StatementLine, invoice: Invoice) -> dict:
    """Raw and normalized references, kept so a reviewer can replay the comparison."""
    return {
        "reference_text": line.reference_text,
        "invoice_number": invoice.invoice_number,
        "normalized_reference": normalize_document_number(line.reference_text),
        "normalized_invoice_number": normalize_document_number(invoice.invoice_number),
    }


# ============================================
# Pass checks
# ============================================

def check_exact(line: StatementLine, invoice: Invoice, config: MatchingConfig) -> Optional[dict]:
    if not documents_match_exact(line.reference_text, invoice.invoice_number):
        return None
    if not amounts_equal(line, invoice):
        return None
    have_both_dates = line.line_date is not None and invoice.invoice_date is not None
    if have_both_dates and line.line_date != invoice.invoice_date:
        return None
    return {
        "invoice_number": True,
        "amount": True,
        "currency": True,
        "date": have_both_dates,
    }


def check_date_tolerance(line: StatementLine, invoice: Invoice, config: MatchingConfig) -> Optional[dict]:
    if not documents_match_exact(line.reference_text, invoice.invoice_number):
        return None
    if not amounts_equal(line, invoice):
        return None
    # Dateless lines cannot pass a pass that requires a date match
    if date_within_window(line.line_date, invoice.invoice_date, config.date_tolerance_days) is not True:
        return None
    return {
        "invoice_number": True,
        "amount": True,
        "currency": True,
        "date": True,
        "date_tolerance": date_difference_days(line.line_date, invoice.invoice_date),
    }


def check_fuzzy_document(line: StatementLine, invoice: Invoice, config: MatchingConfig) -> Optional[dict]:
    if not documents_match_normalized(line.reference_text, invoice.invoice_number):
        return None
    if not amounts_equal(line, invoice):
        return None
    return {
        "invoice_number": True,
        "amount": True,
        "currency": True,
        "date": False,
        "fuzzy_document": True,
        **_document_keys(line, invoice),
    }


def check_amount_tolerance(line: StatementLine, invoice: Invoice, config: MatchingConfig) -> Optional[dict]:
    if not documents_match_exact(line.reference_text, invoice.invoice_number):
        return None
    if not amounts_within_tolerance(line, invoice, config):
        return None
    return {
        "invoice_number": True,
        "amount": True,
        "currency": True,
        "date": False,
        "amount_tolerance": str(amount_difference(line, invoice)),
    }


def check_partial(line: StatementLine, invoice: Invoice, config: MatchingConfig) -> Optional[dict]:
    if not documents_match_normalized(line.reference_text, invoice.invoice_number):
        return None
    if date_within_window(line.line_date, invoice.invoice_date, config.date_tolerance_days) is False:
        return None

    within_tolerance = amounts_within_tolerance(line, invoice, config)
    partial = not within_tolerance and is_partial_settlement(line, invoice)
    if not (within_tolerance or partial):
        return None

    criteria = {
        "invoice_number": True,
        "amount": within_tolerance,
        "currency": True,
        "date": line.line_date is not None and invoice.invoice_date is not None,
        "partial_match": partial,
        **_document_keys(line, invoice),
    }
    if partial:
        criteria["remaining_amount"] = str(invoice.total_amount - line.amount)
    return criteria


PASSES: tuple[MatchPass, ...] = (
    MatchPass(1, "exact", check_exact, 100, "high", "deterministic"),
    MatchPass(2, "date_tolerance", check_date_tolerance, 95, "high", "probabilistic"),
    MatchPass(3, "fuzzy_document", check_fuzzy_document, 90, "medium", "probabilistic"),
    MatchPass(4, "amount_tolerance", check_amount_tolerance, 85, "medium", "probabilistic"),
    MatchPass(5, "partial", check_partial, 75, "low", "probabilistic", opt_in=True),
)
