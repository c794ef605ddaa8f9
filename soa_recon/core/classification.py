# soa_recon/core/classification.py

"""
Discrepancy classification for statement lines.

Every statement line that no pass could resolve gets exactly one
discrepancy. Severity is a fixed lookup by type, never computed.
"""

from decimal import Decimal
from typing import Sequence

from soa_recon.config import MatchingConfig
from soa_recon.core.matchers import (
    amount_tolerance,
    amounts_within_tolerance,
    date_difference_days,
    date_within_window,
    documents_match_exact,
    documents_match_normalized,
)
from soa_recon.models import (
    Discrepancy,
    DiscrepancySeverity,
    DiscrepancyType,
    Invoice,
    Match,
    StatementLine,
)

SEVERITY_BY_TYPE: dict[DiscrepancyType, DiscrepancySeverity] = {
    "no_invoice_found": "high",
    "amount_mismatch": "medium",
    "date_mismatch": "low",
    "multiple_candidates": "medium",
    "currency_mismatch": "high",
    "duplicate_payment": "critical",
}


def classify_unmatched_line(
    line: StatementLine,
    remaining_invoices: Sequence[Invoice],
    claimed_invoices: Sequence[Invoice],
    config: MatchingConfig,
) -> Discrepancy:
    """
    Classify a statement line that ended the pipeline unmatched.

    Precedence:
    0. reference only found on an invoice another line already claimed
    1. no remaining invoice carries the reference
    2. one same-currency candidate, amount or date out of tolerance
    3. several same-currency candidates
    4. candidates exist, none in the line's currency
    """
    candidates = [
        inv for inv in remaining_invoices
        if documents_match_normalized(line.reference_text, inv.invoice_number)
    ]
    same_currency = [inv for inv in candidates if inv.currency == line.currency]

    # ============================================
    # Already settled by another line
    # ============================================
    if not candidates:
        settled = [
            inv for inv in claimed_invoices
            if inv.currency == line.currency
            and documents_match_normalized(line.reference_text, inv.invoice_number)
        ]
        if settled:
            invoice = settled[0]
            return _discrepancy(
                line,
                "duplicate_payment",
                f"Statement line {line.line_ref} references {invoice.invoice_number} "
                f"({invoice.currency} {invoice.total_amount:,.2f}), which another line in this "
                f"statement already settled.",
                invoice_number=invoice.invoice_number,
                candidate_invoice_numbers=tuple(inv.invoice_number for inv in settled),
                actual_value=str(line.amount),
            )

    # ============================================
    # Nothing carries the reference
    # ============================================
    if not candidates:
        reference = line.reference_text or "(no reference)"
        return _discrepancy(
            line,
            "no_invoice_found",
            f"No open invoice matches reference {reference!r} "
            f"({line.currency} {line.amount:,.2f}) on statement line {line.line_ref}.",
            actual_value=str(line.amount),
        )

    # ============================================
    # One candidate that diverges
    # ============================================
    if len(same_currency) == 1:
        return _classify_divergence(line, same_currency[0], config)

    # ============================================
    # Ambiguous
    # ============================================
    if len(same_currency) > 1:
        numbers = tuple(inv.invoice_number for inv in same_currency)
        return _discrepancy(
            line,
            "multiple_candidates",
            f"Reference {line.reference_text!r} fits {len(numbers)} open invoices "
            f"({', '.join(numbers)}); ambiguous matches are never resolved automatically.",
            candidate_invoice_numbers=numbers,
            actual_value=str(line.amount),
        )

    # ============================================
    # Currency differs from every candidate
    # ============================================
    currencies = sorted({inv.currency for inv in candidates})
    return _discrepancy(
        line,
        "currency_mismatch",
        f"Statement line {line.line_ref} is in {line.currency} but invoices matching "
        f"{line.reference_text!r} are in {', '.join(currencies)}.",
        invoice_number=candidates[0].invoice_number if len(candidates) == 1 else None,
        candidate_invoice_numbers=tuple(inv.invoice_number for inv in candidates),
        expected_value=", ".join(currencies),
        actual_value=line.currency,
    )


def _classify_divergence(
    line: StatementLine,
    invoice: Invoice,
    config: MatchingConfig,
) -> Discrepancy:
    difference = line.amount - invoice.total_amount
    tolerance = amount_tolerance(invoice.total_amount, config)

    if not amounts_within_tolerance(line, invoice, config):
        return _discrepancy(
            line,
            "amount_mismatch",
            f"Statement shows {line.currency} {line.amount:,.2f} against {invoice.invoice_number} "
            f"for {invoice.currency} {invoice.total_amount:,.2f}; the {abs(difference):,.2f} "
            f"difference exceeds the {tolerance:,.2f} tolerance.",
            invoice=invoice,
            difference_amount=difference,
        )

    if date_within_window(line.line_date, invoice.invoice_date, config.date_tolerance_days) is False:
        days = date_difference_days(line.line_date, invoice.invoice_date)
        return _discrepancy(
            line,
            "date_mismatch",
            f"Statement date {line.line_date.isoformat()} and invoice {invoice.invoice_number} "
            f"date {invoice.invoice_date.isoformat()} are {days} days apart "
            f"(window is {config.date_tolerance_days} days).",
            invoice=invoice,
            expected_value=invoice.invoice_date.isoformat(),
            actual_value=line.line_date.isoformat(),
            difference_amount=difference,
        )

    # Amount inside tolerance but not exact, reference only equal after
    # normalization: only the opt-in pass could take it
    return _discrepancy(
        line,
        "amount_mismatch",
        f"Statement shows {line.currency} {line.amount:,.2f} against {invoice.invoice_number} "
        f"for {invoice.currency} {invoice.total_amount:,.2f}. The difference is within tolerance "
        f"but the reference {line.reference_text!r} only matches after normalization; "
        f"enable partial matching for this line to accept it.",
        invoice=invoice,
        difference_amount=difference,
    )


def _discrepancy(
    line: StatementLine,
    discrepancy_type: DiscrepancyType,
    description: str,
    invoice: Invoice | None = None,
    **fields,
) -> Discrepancy:
    if invoice is not None:
        fields.setdefault("invoice_number", invoice.invoice_number)
        fields.setdefault("candidate_invoice_numbers", (invoice.invoice_number,))
        fields.setdefault("expected_value", str(invoice.total_amount))
        fields.setdefault("actual_value", str(line.amount))
    return Discrepancy(
        statement_line_ref=line.line_ref,
        discrepancy_type=discrepancy_type,
        severity=SEVERITY_BY_TYPE[discrepancy_type],
        description=description,
        **fields,
    )


def describe_match_variance(
    line: StatementLine,
    invoice: Invoice,
    match: Match,
) -> tuple[str, ...]:
    """Notes on a matched pair whose amounts or dates are not identical."""
    notes: list[str] = []

    if match.residual_amount is not None:
        notes.append(
            f"Partial settlement: {line.currency} {line.amount:,.2f} paid, "
            f"{match.residual_amount:,.2f} outstanding on {invoice.invoice_number}"
        )
    elif match.amount_difference != Decimal(0):
        notes.append(
            f"Amount differs by {abs(match.amount_difference):,.2f} "
            f"({'short' if match.amount_difference < 0 else 'over'} payment)"
        )

    if match.date_difference_days:
        notes.append(f"Dates {match.date_difference_days} days apart")

    if "normalized_reference" in match.match_criteria and not documents_match_exact(
        line.reference_text, invoice.invoice_number
    ):
        notes.append(
            f"Reference {line.reference_text!r} matched {invoice.invoice_number!r} after normalization"
        )

    return tuple(notes)
