# soa_recon/models/records.py

from datetime import date
from decimal import Decimal
from typing import Optional, Literal
from pydantic import BaseModel, Field

MatchMode = Literal["strict", "partial"]


class Invoice(BaseModel):
    """An invoice in canonical shape."""

    invoice_number: str = Field(min_length=1)
    total_amount: Decimal = Field(ge=0)
    currency: str = Field(pattern=r"^[A-Z]{3}$")
    invoice_date: Optional[date] = None
    invoice_id: Optional[str] = None

    class Config:
        frozen = True


class StatementLine(BaseModel):
    """A statement-of-account line item in canonical shape."""

    line_ref: Optional[str] = None
    reference_text: str = ""
    amount: Decimal
    currency: str = Field(pattern=r"^[A-Z]{3}$")
    line_date: Optional[date] = None
    match_mode: MatchMode = "strict"
    description: Optional[str] = None

    class Config:
        frozen = True
