# soa_recon/models/report.py

from decimal import Decimal
from types import MappingProxyType
from typing import Literal, Mapping
from pydantic import BaseModel, field_serializer, field_validator

from soa_recon.models.records import Invoice, StatementLine
from soa_recon.models.match import Discrepancy, MatchedPair


AcknowledgementType = Literal["full", "partial", "with_exceptions"]


# ============================================
# Reconciliation Report
# ============================================

class ReconciliationSummary(BaseModel):
    """Summary of a reconciliation run."""

    total_lines: int
    matched_lines: int
    unmatched_lines: int
    discrepancy_count: int
    total_invoices: int
    unmatched_invoices: int
    matches_by_pass: Mapping[int, int]
    net_variance: Decimal
    acknowledgement_type: AcknowledgementType

    class Config:
        frozen = True

    @field_validator("matches_by_pass")
    @classmethod
    def _freeze_counts(cls, value: Mapping[int, int]) -> Mapping[int, int]:
        return MappingProxyType(dict(value))

    @field_serializer("matches_by_pass")
    def _dump_counts(self, value: Mapping[int, int]) -> dict:
        return dict(value)


class ReconciliationReport(BaseModel):
    """Output of one reconciliation run. Never modified after it is built."""

    matched: tuple[MatchedPair, ...] = ()
    unmatched_lines: tuple[StatementLine, ...] = ()
    unmatched_invoices: tuple[Invoice, ...] = ()
    discrepancies: tuple[Discrepancy, ...] = ()
    summary: ReconciliationSummary
    allow_partial: bool = False

    class Config:
        frozen = True

    @property
    def discrepancies_by_severity(self) -> dict[str, list[Discrepancy]]:
        """Group discrepancies by severity, keeping report order."""
        grouped: dict[str, list[Discrepancy]] = {
            "critical": [],
            "high": [],
            "medium": [],
            "low": [],
        }
        for discrepancy in self.discrepancies:
            grouped[discrepancy.severity].append(discrepancy)
        return grouped

    def to_dict(self) -> dict:
        """Convert to a JSON-safe dictionary."""
        return self.model_dump(mode="json")
