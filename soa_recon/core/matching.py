# soa_recon/core/matching.py

"""
Core statement-of-account matching engine.

Runs the five match passes in order over a batch of statement lines and a
batch of invoices, then hands the outcome to the aggregator. The run is a
pure function of its inputs and flags: no clock, no random ids, no I/O.
"""

import logging
from typing import Iterable, Optional, Sequence

from soa_recon.config import MatchingConfig, check_config, get_settings
from soa_recon.core.aggregator import build_report
from soa_recon.core.mapper import assign_line_refs, map_invoices, map_statement_lines
from soa_recon.core.matchers import date_difference_days
from soa_recon.core.passes import PASSES, MatchPass
from soa_recon.models import (
    Invoice,
    Match,
    MatchResult,
    ReconciliationReport,
    StatementLine,
)

logger = logging.getLogger(__name__)


def reconcile(
    statement_lines: Iterable[StatementLine],
    invoices: Iterable[Invoice],
    allow_partial: Optional[bool] = None,
    config: Optional[MatchingConfig] = None,
) -> ReconciliationReport:
    """
    Main reconciliation function.

    Matches statement lines against invoices using a multi-pass approach:
    1. Exact document, amount and date
    2. Exact document and amount, date within the window
    3. Normalized document, exact amount
    4. Exact document, amount within tolerance
    5. Normalized document, tolerance or partial settlement (opt-in only)

    A line is matched by the first pass that finds exactly one unclaimed
    invoice for it. Claimed invoices leave the pool for every later pass.

    Lines without a line_ref are named `line-<n>` by position; repeated
    identifiers raise MappingError before any pass runs. Settings are only
    read when allow_partial or config is left out.
    """
    if allow_partial is None or config is None:
        settings = get_settings()
        if allow_partial is None:
            allow_partial = settings.allow_partial
        if config is None:
            config = MatchingConfig.from_settings(settings)
    config = check_config(config)

    lines = assign_line_refs(statement_lines)
    invoice_pool = list(invoices)

    results, claims = run_passes(lines, invoice_pool, allow_partial, config)

    if not allow_partial:
        _warn_gated_lines(lines, invoice_pool, results, claims, config)

    report = build_report(lines, invoice_pool, results, claims, allow_partial, config)

    logger.info(
        f"Reconciled {report.summary.total_lines} statement lines against "
        f"{report.summary.total_invoices} invoices: {report.summary.matched_lines} matched, "
        f"{report.summary.discrepancy_count} discrepancies, "
        f"{report.summary.unmatched_invoices} invoices unmatched"
    )
    return report


def reconcile_records(
    statement_records: Iterable,
    invoice_records: Iterable,
    allow_partial: Optional[bool] = None,
    config: Optional[MatchingConfig] = None,
) -> ReconciliationReport:
    """Map raw source records to canonical shape, then reconcile them."""
    lines = map_statement_lines(statement_records)
    invoices = map_invoices(invoice_records)
    return reconcile(lines, invoices, allow_partial=allow_partial, config=config)


def run_passes(
    statement_lines: Sequence[StatementLine],
    invoices: Sequence[Invoice],
    allow_partial: bool,
    config: MatchingConfig,
) -> tuple[list[MatchResult], dict[int, int]]:
    """
    Run every pass to exhaustion, strictest first.

    Lines must already carry unique identifiers (see assign_line_refs).

    Returns one MatchResult per line (in line order) and the claims made,
    as a mapping of line index to invoice index.
    """
    matches: list[Optional[Match]] = [None] * len(statement_lines)
    claims: dict[int, int] = {}

    for match_pass in PASSES:
        _exhaust_pass(match_pass, statement_lines, invoices, matches, claims, allow_partial, config)

    results = [
        MatchResult(statement_line_ref=line.line_ref, match=match)
        for line, match in zip(statement_lines, matches)
    ]
    return results, claims


def _exhaust_pass(
    match_pass: MatchPass,
    statement_lines: Sequence[StatementLine],
    invoices: Sequence[Invoice],
    matches: list[Optional[Match]],
    claims: dict[int, int],
    allow_partial: bool,
    config: MatchingConfig,
) -> None:
    """
    Sweep unresolved lines in order until a sweep claims nothing new.

    A claim can shrink another line's candidate set, so a line that was
    ambiguous earlier in the pass gets another chance in the next sweep.
    """
    ambiguous: dict[int, list[str]] = {}

    while True:
        claimed_this_sweep = 0
        ambiguous.clear()

        for i, line in enumerate(statement_lines):
            if matches[i] is not None or not match_pass.applies_to(line, allow_partial):
                continue

            candidates = _find_candidates(match_pass, line, invoices, claims, config)

            if len(candidates) == 1:
                j, criteria = candidates[0]
                matches[i] = _create_match(match_pass, line, invoices[j], criteria)
                claims[i] = j
                claimed_this_sweep += 1
                logger.debug(
                    f"Pass {match_pass.number} ({match_pass.name}) matched line "
                    f"{line.line_ref} to invoice {invoices[j].invoice_number}"
                )
            elif len(candidates) > 1:
                ambiguous[i] = [invoices[j].invoice_number for j, _ in candidates]

        if not claimed_this_sweep:
            break

    for i, numbers in ambiguous.items():
        logger.debug(
            f"Pass {match_pass.number} ({match_pass.name}) left line "
            f"{statement_lines[i].line_ref} unresolved: {len(numbers)} candidates ({', '.join(numbers)})"
        )


def _find_candidates(
    match_pass: MatchPass,
    line: StatementLine,
    invoices: Sequence[Invoice],
    claims: dict[int, int],
    config: MatchingConfig,
) -> list[tuple[int, dict]]:
    """Unclaimed invoices this pass would accept for the line, in invoice order."""
    claimed = set(claims.values())
    candidates: list[tuple[int, dict]] = []

    for j, invoice in enumerate(invoices):
        if j in claimed:
            continue
        criteria = match_pass.check(line, invoice, config)
        if criteria is not None:
            candidates.append((j, criteria))

    return candidates


def _create_match(
    match_pass: MatchPass,
    line: StatementLine,
    invoice: Invoice,
    criteria: dict,
) -> Match:
    """Create a match record."""
    residual = None
    if criteria.get("partial_match"):
        residual = invoice.total_amount - line.amount

    return Match(
        invoice_number=invoice.invoice_number,
        pass_number=match_pass.number,
        confidence_level=match_pass.confidence_level,
        match_score=match_pass.match_score,
        match_type=match_pass.match_type,
        is_exact_match=match_pass.number == 1,
        match_criteria=criteria,
        amount_difference=line.amount - invoice.total_amount,
        date_difference_days=date_difference_days(line.line_date, invoice.invoice_date),
        residual_amount=residual,
    )


def _warn_gated_lines(
    statement_lines: Sequence[StatementLine],
    invoices: Sequence[Invoice],
    results: Sequence[MatchResult],
    claims: dict[int, int],
    config: MatchingConfig,
) -> None:
    """Log strict lines that the opt-in pass would have matched."""
    loose_pass = PASSES[-1]

    for line, result in zip(statement_lines, results):
        if result.matched or loose_pass.applies_to(line, allow_partial=False):
            continue
        candidates = _find_candidates(loose_pass, line, invoices, claims, config)
        if candidates:
            logger.warning(
                f"Statement line {line.line_ref} is strict and stays unmatched; "
                f"pass {loose_pass.number} would consider {len(candidates)} invoice(s) "
                f"({', '.join(invoices[j].invoice_number for j, _ in candidates)})"
            )
