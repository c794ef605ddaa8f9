# soa_recon/models/__init__.py

from soa_recon.models.records import (
    Invoice,
    StatementLine,
    MatchMode,
)
from soa_recon.models.match import (
    ConfidenceLevel,
    MatchType,
    Match,
    MatchResult,
    MatchedPair,
    Discrepancy,
    DiscrepancyType,
    DiscrepancySeverity,
)
from soa_recon.models.report import (
    AcknowledgementType,
    ReconciliationSummary,
    ReconciliationReport,
)

__all__ = [
    # Records
    "Invoice",
    "StatementLine",
    "MatchMode",
    # Match
    "ConfidenceLevel",
    "MatchType",
    "Match",
    "MatchResult",
    "MatchedPair",
    "Discrepancy",
    "DiscrepancyType",
    "DiscrepancySeverity",
    # Report
    "AcknowledgementType",
    "ReconciliationSummary",
    "ReconciliationReport",
]
