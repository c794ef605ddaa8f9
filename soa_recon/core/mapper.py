# soa_recon/core/mapper.py

"""
Canonical shape mapper.

Turns source records, whatever store or ingestion layer produced them, into
the Invoice and StatementLine shapes the matcher works on. The matcher never
reads storage field names; renamed columns only touch the alias lists here.

Malformed records raise MappingError. Nothing is defaulted silently except
the currency, and only when a default currency is configured.
"""

import logging
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from soa_recon.config import get_settings
from soa_recon.core.normalizers import normalize_amount, normalize_currency, normalize_date
from soa_recon.errors import MappingError
from soa_recon.models import Invoice, StatementLine

logger = logging.getLogger(__name__)

# Field names seen in source records, first match wins
INVOICE_NUMBER_FIELDS = ["invoice_number", "invoice_num", "invoiceNumber", "doc_no", "document_number"]
INVOICE_AMOUNT_FIELDS = ["total_amount", "totalAmount", "amount"]
INVOICE_DATE_FIELDS = ["invoice_date", "invoiceDate", "date"]
INVOICE_ID_FIELDS = ["invoice_id", "id"]

REFERENCE_FIELDS = ["reference_text", "referenceText", "invoice_number", "doc_no", "reference_number", "reference"]
LINE_AMOUNT_FIELDS = ["amount", "line_amount"]
LINE_DATE_FIELDS = ["line_date", "lineDate", "invoice_date", "invoiceDate", "date"]
LINE_REF_FIELDS = ["line_ref", "id", "line_number"]

CURRENCY_FIELDS = ["currency", "currency_code", "currencyCode"]
MATCH_MODE_FIELDS = ["match_mode", "matchMode"]


def map_invoice(record: Any, position: Optional[int] = None) -> Invoice:
    """Map one source record to a canonical Invoice."""
    number = _text(_first(record, INVOICE_NUMBER_FIELDS))
    if not number:
        raise MappingError("Invoice has no invoice number", field="invoice_number", position=position)

    amount = _amount(record, INVOICE_AMOUNT_FIELDS, position)
    if amount < 0:
        raise MappingError(
            f"Invoice {number} has a negative total ({amount})",
            field="total_amount",
            position=position,
        )

    invoice_id = _first(record, INVOICE_ID_FIELDS)

    try:
        return Invoice(
            invoice_number=number,
            total_amount=amount,
            currency=_currency(record, position),
            invoice_date=_date(record, INVOICE_DATE_FIELDS, position),
            invoice_id=str(invoice_id) if invoice_id is not None else None,
        )
    except ValidationError as e:
        raise MappingError(f"Invoice {number} is not valid: {e}", position=position) from e


def map_statement_line(record: Any, position: Optional[int] = None) -> StatementLine:
    """
    Map one source record to a canonical StatementLine.

    `position` is the 1-based place of the record in its batch; it names the
    line when the record carries no identifier of its own. Without either,
    line_ref stays None until the batch is numbered by assign_line_refs.
    """
    reference = _text(_first(record, REFERENCE_FIELDS))
    amount = _amount(record, LINE_AMOUNT_FIELDS, position)
    currency = _currency(record, position)
    line_date = _date(record, LINE_DATE_FIELDS, position)

    if not reference and line_date is None:
        raise MappingError(
            "Statement line needs a document reference or a date",
            field="reference_text",
            position=position,
        )

    line_ref = _text(_first(record, LINE_REF_FIELDS))
    if not line_ref:
        line_ref = f"line-{position}" if position is not None else None

    description = _first(record, ["description"])

    try:
        return StatementLine(
            line_ref=line_ref,
            reference_text=reference,
            amount=amount,
            currency=currency,
            line_date=line_date,
            match_mode=_match_mode(record, position),
            description=str(description) if description is not None else None,
        )
    except ValidationError as e:
        raise MappingError(f"Statement line {line_ref or reference} is not valid: {e}", position=position) from e


def map_invoices(records: Iterable[Any]) -> list[Invoice]:
    """Map a batch of invoices. Invoice numbers must be unique in the batch."""
    invoices: list[Invoice] = []
    seen: dict[str, int] = {}

    for position, record in enumerate(records, start=1):
        invoice = map_invoice(record, position)
        key = invoice.invoice_number.strip().upper()
        if key in seen:
            raise MappingError(
                f"Invoice number {invoice.invoice_number} repeats record {seen[key]}",
                field="invoice_number",
                position=position,
            )
        seen[key] = position
        invoices.append(invoice)

    logger.debug(f"Mapped {len(invoices)} invoices")
    return invoices


def map_statement_lines(records: Iterable[Any]) -> list[StatementLine]:
    """Map a batch of statement lines. Line identifiers must be unique in the batch."""
    lines = assign_line_refs(
        map_statement_line(record, position) for position, record in enumerate(records, start=1)
    )

    logger.debug(f"Mapped {len(lines)} statement lines")
    return lines


def assign_line_refs(lines: Iterable[StatementLine]) -> list[StatementLine]:
    """
    Give every line a unique identifier.

    A line without line_ref is named `line-<n>` after its 1-based place in
    the batch. Identifiers that repeat raise MappingError, since the report
    names lines by identifier only.
    """
    numbered: list[StatementLine] = []
    seen: dict[str, int] = {}

    for position, line in enumerate(lines, start=1):
        if line.line_ref is None:
            line = line.model_copy(update={"line_ref": f"line-{position}"})
        if line.line_ref in seen:
            raise MappingError(
                f"Statement line identifier {line.line_ref} repeats line {seen[line.line_ref]}",
                field="line_ref",
                position=position,
            )
        seen[line.line_ref] = position
        numbered.append(line)

    return numbered


# ============================================
# Field helpers
# ============================================

def _first(record: Any, fields: list[str]) -> Any:
    """First non-empty value among the candidate field names."""
    for field in fields:
        if isinstance(record, Mapping):
            value = record.get(field)
        else:
            value = getattr(record, field, None)
        if value is not None and value != "":
            return value
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _amount(record: Any, fields: list[str], position: Optional[int]):
    raw = _first(record, fields)
    if raw is None:
        raise MappingError("Amount is missing", field="amount", position=position)
    amount = normalize_amount(raw)
    if amount is None:
        raise MappingError(f"Amount {raw!r} cannot be parsed", field="amount", position=position)
    return amount


def _currency(record: Any, position: Optional[int]) -> str:
    raw = _first(record, CURRENCY_FIELDS)
    if raw is None:
        default = get_settings().default_currency
        if default is None:
            raise MappingError("Currency is missing", field="currency", position=position)
        raw = default
    currency = normalize_currency(raw)
    if currency is None:
        raise MappingError(f"Currency {raw!r} is not an ISO code", field="currency", position=position)
    return currency


def _date(record: Any, fields: list[str], position: Optional[int]):
    raw = _first(record, fields)
    if raw is None:
        return None
    parsed = normalize_date(raw)
    if parsed is None:
        raise MappingError(f"Date {raw!r} cannot be parsed", field="date", position=position)
    return parsed


def _match_mode(record: Any, position: Optional[int]) -> str:
    raw = _first(record, MATCH_MODE_FIELDS)
    if raw is None:
        return "partial" if _first(record, ["allow_partial"]) is True else "strict"
    mode = str(raw).strip().lower()
    if mode not in ("strict", "partial"):
        raise MappingError(f"Unknown match mode {raw!r}", field="match_mode", position=position)
    return mode
