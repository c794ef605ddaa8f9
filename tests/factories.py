# tests/factories.py

from datetime import date
from decimal import Decimal

from soa_recon.models import Invoice, StatementLine


def make_invoice(
    number: str,
    amount,
    currency: str = "USD",
    invoice_date: date = None,
) -> Invoice:
    return Invoice(
        invoice_number=number,
        total_amount=Decimal(str(amount)),
        currency=currency,
        invoice_date=invoice_date,
    )


def make_line(
    reference: str,
    amount,
    currency: str = "USD",
    line_date: date = None,
    match_mode: str = "strict",
    line_ref: str = None,
) -> StatementLine:
    return StatementLine(
        line_ref=line_ref,
        reference_text=reference,
        amount=Decimal(str(amount)),
        currency=currency,
        line_date=line_date,
        match_mode=match_mode,
    )
