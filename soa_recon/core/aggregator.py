# soa_recon/core/aggregator.py

"""
Builds the reconciliation report from per-line pipeline outcomes.

Every statement line ends up either matched or in the discrepancy list,
every invoice either matched or unmatched. Lists keep input order so two
runs over the same batch can be diffed directly.
"""

from collections import Counter
from decimal import Decimal
from typing import Sequence

from soa_recon.config import MatchingConfig
from soa_recon.core.classification import classify_unmatched_line, describe_match_variance
from soa_recon.models import (
    AcknowledgementType,
    Invoice,
    MatchedPair,
    MatchResult,
    ReconciliationReport,
    ReconciliationSummary,
    StatementLine,
)


def build_report(
    statement_lines: Sequence[StatementLine],
    invoices: Sequence[Invoice],
    results: Sequence[MatchResult],
    claims: dict[int, int],
    allow_partial: bool,
    config: MatchingConfig,
) -> ReconciliationReport:
    """
    Combine pipeline outcomes into a report.

    `results` is parallel to `statement_lines`; `claims` maps a line index
    to the index of the invoice it claimed.
    """
    claimed_indexes = set(claims.values())
    remaining = [inv for j, inv in enumerate(invoices) if j not in claimed_indexes]
    claimed = [inv for j, inv in enumerate(invoices) if j in claimed_indexes]

    matched: list[MatchedPair] = []
    unmatched_lines: list[StatementLine] = []
    discrepancies = []

    for i, (line, result) in enumerate(zip(statement_lines, results)):
        if result.match is not None:
            invoice = invoices[claims[i]]
            matched.append(MatchedPair(
                statement_line=line,
                invoice=invoice,
                match=result.match,
                variance_notes=describe_match_variance(line, invoice, result.match),
            ))
        else:
            unmatched_lines.append(line)
            discrepancies.append(classify_unmatched_line(line, remaining, claimed, config))

    summary = _summarize(statement_lines, invoices, matched, discrepancies, remaining)

    return ReconciliationReport(
        matched=tuple(matched),
        unmatched_lines=tuple(unmatched_lines),
        unmatched_invoices=tuple(remaining),
        discrepancies=tuple(discrepancies),
        summary=summary,
        allow_partial=allow_partial,
    )


def _summarize(
    statement_lines: Sequence[StatementLine],
    invoices: Sequence[Invoice],
    matched: list[MatchedPair],
    discrepancies: list,
    remaining: list[Invoice],
) -> ReconciliationSummary:
    by_pass = Counter(pair.match.pass_number for pair in matched)
    net_variance = sum(
        (pair.statement_line.amount - pair.invoice.total_amount for pair in matched),
        Decimal("0"),
    )

    return ReconciliationSummary(
        total_lines=len(statement_lines),
        matched_lines=len(matched),
        unmatched_lines=len(statement_lines) - len(matched),
        discrepancy_count=len(discrepancies),
        total_invoices=len(invoices),
        unmatched_invoices=len(remaining),
        matches_by_pass={number: by_pass.get(number, 0) for number in range(1, 6)},
        net_variance=net_variance,
        acknowledgement_type=_acknowledgement_type(matched, discrepancies),
    )


def _acknowledgement_type(matched: list[MatchedPair], discrepancies: list) -> AcknowledgementType:
    """How the statement can be signed off."""
    if discrepancies:
        return "with_exceptions"
    if any(pair.match.residual_amount is not None for pair in matched):
        return "partial"
    return "full"
