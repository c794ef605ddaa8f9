# soa_recon/core/__init__.py

from soa_recon.core.matching import reconcile, reconcile_records, run_passes
from soa_recon.core.mapper import (
    assign_line_refs,
    map_invoice,
    map_invoices,
    map_statement_line,
    map_statement_lines,
)
from soa_recon.core.classification import classify_unmatched_line, describe_match_variance
from soa_recon.core.aggregator import build_report
from soa_recon.core.matchers import (
    amounts_equal,
    amounts_within_tolerance,
    date_within_window,
    documents_match_exact,
    documents_match_normalized,
)
from soa_recon.core.normalizers import (
    normalize_amount,
    normalize_date,
    normalize_document_number,
)

__all__ = [
    "reconcile",
    "reconcile_records",
    "run_passes",
    "assign_line_refs",
    "map_invoice",
    "map_invoices",
    "map_statement_line",
    "map_statement_lines",
    "classify_unmatched_line",
    "describe_match_variance",
    "build_report",
    "amounts_equal",
    "amounts_within_tolerance",
    "date_within_window",
    "documents_match_exact",
    "documents_match_normalized",
    "normalize_amount",
    "normalize_date",
    "normalize_document_number",
]
