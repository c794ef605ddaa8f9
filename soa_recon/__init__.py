# soa_recon/__init__.py

from soa_recon.config import MatchingConfig, Settings, get_settings
from soa_recon.errors import ConfigurationError, MappingError, ReconciliationError
from soa_recon.core import (
    reconcile,
    reconcile_records,
    assign_line_refs,
    map_invoice,
    map_invoices,
    map_statement_line,
    map_statement_lines,
)
from soa_recon.models import (
    Invoice,
    StatementLine,
    Match,
    MatchResult,
    MatchedPair,
    Discrepancy,
    ReconciliationReport,
    ReconciliationSummary,
)

__version__ = "1.0.0"

__all__ = [
    "MatchingConfig",
    "Settings",
    "get_settings",
    "ConfigurationError",
    "MappingError",
    "ReconciliationError",
    "reconcile",
    "reconcile_records",
    "assign_line_refs",
    "map_invoice",
    "map_invoices",
    "map_statement_line",
    "map_statement_lines",
    "Invoice",
    "StatementLine",
    "Match",
    "MatchResult",
    "MatchedPair",
    "Discrepancy",
    "ReconciliationReport",
    "ReconciliationSummary",
]
