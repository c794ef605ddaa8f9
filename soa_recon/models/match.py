# soa_recon/models/match.py

from decimal import Decimal
from types import MappingProxyType
from typing import Any, Mapping, Optional, Literal
from pydantic import BaseModel, Field, field_serializer, field_validator

from soa_recon.models.records import Invoice, StatementLine


# ============================================
# Match Confidence
# ============================================

ConfidenceLevel = Literal["high", "medium", "low"]
MatchType = Literal["deterministic", "probabilistic"]


class Match(BaseModel):
    """
    How a statement line was matched.

    Confidence is ordinal and comes from the pass alone; passes never
    compete for the same line so no score blending is needed.
    """

    invoice_number: str
    pass_number: int = Field(ge=1, le=5)
    confidence_level: ConfidenceLevel
    match_score: int = Field(ge=0, le=100)
    match_type: MatchType
    is_exact_match: bool = False
    match_criteria: Mapping[str, Any] = Field(default_factory=lambda: MappingProxyType({}))
    amount_difference: Decimal = Decimal("0")
    date_difference_days: Optional[int] = None
    residual_amount: Optional[Decimal] = None

    class Config:
        frozen = True

    @field_validator("match_criteria")
    @classmethod
    def _freeze_criteria(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        # Read-only view over a private copy
        return MappingProxyType(dict(value))

    @field_serializer("match_criteria")
    def _dump_criteria(self, value: Mapping[str, Any]) -> dict:
        return dict(value)


class MatchResult(BaseModel):
    """Outcome of the pipeline for one statement line."""

    statement_line_ref: str
    match: Optional[Match] = None

    class Config:
        frozen = True

    @property
    def matched(self) -> bool:
        return self.match is not None


class MatchedPair(BaseModel):
    """A statement line together with the invoice it claimed."""

    statement_line: StatementLine
    invoice: Invoice
    match: Match
    variance_notes: tuple[str, ...] = ()

    class Config:
        frozen = True


# ============================================
# Discrepancy Classification
# ============================================

DiscrepancyType = Literal[
    "no_invoice_found",
    "amount_mismatch",
    "date_mismatch",
    "multiple_candidates",
    "currency_mismatch",
    "duplicate_payment",
]

DiscrepancySeverity = Literal["low", "medium", "high", "critical"]


class Discrepancy(BaseModel):
    """Why a statement line could not be matched."""

    statement_line_ref: str
    discrepancy_type: DiscrepancyType
    severity: DiscrepancySeverity
    description: str
    invoice_number: Optional[str] = None
    candidate_invoice_numbers: tuple[str, ...] = ()
    expected_value: Optional[str] = None
    actual_value: Optional[str] = None
    difference_amount: Optional[Decimal] = None

    class Config:
        frozen = True
