# tests/test_mapper.py

"""
Tests for the canonical shape mapper.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

from soa_recon.config import Settings
from soa_recon.core import mapper
from soa_recon.core.mapper import (
    map_invoice,
    map_invoices,
    map_statement_line,
    map_statement_lines,
)
from soa_recon.core.normalizers import normalize_amount, normalize_date
from soa_recon.errors import MappingError


# ============================================
# Normalizer Tests
# ============================================

class TestNormalizers:
    """Amount and date parsing."""

    @pytest.mark.parametrize("raw,expected", [
        (100, Decimal("100")),
        (0.1, Decimal("0.1")),
        ("1,250.00", Decimal("1250.00")),
        ("$ 99.95", Decimal("99.95")),
        ("MYR 10.00", Decimal("10.00")),
        ("(45.10)", Decimal("-45.10")),
        ("-3", Decimal("-3")),
        (Decimal("7.5"), Decimal("7.5")),
    ])
    def test_normalize_amount(self, raw, expected):
        assert normalize_amount(raw) == expected

    @pytest.mark.parametrize("raw", [
        None, "", "abc", "1.2.3", True, float("nan"),
        "1e5", "N/A 5", "12 34", "INV-12", "1,25", "--5", "(-5)",
    ])
    def test_unparsable_amount_is_none(self, raw):
        assert normalize_amount(raw) is None

    @pytest.mark.parametrize("raw,expected", [
        (date(2025, 1, 10), date(2025, 1, 10)),
        (datetime(2025, 1, 10, 15, 30), date(2025, 1, 10)),
        ("2025-01-10", date(2025, 1, 10)),
        ("2025-01-10T08:00:00Z", date(2025, 1, 10)),
        ("10/01/2025", date(2025, 1, 10)),
        ("2025/01/10", date(2025, 1, 10)),
        ("10.01.2025", date(2025, 1, 10)),
    ])
    def test_normalize_date(self, raw, expected):
        assert normalize_date(raw) == expected

    def test_normalize_datetime_returns_plain_date(self):
        assert type(normalize_date(datetime(2025, 1, 10, 15, 30))) is date


# ============================================
# Invoice Mapping Tests
# ============================================

class TestInvoiceMapping:
    """Source invoices to canonical Invoice."""

    def test_maps_store_columns(self):
        invoice = map_invoice({
            "id": 17,
            "invoice_number": "INV-100",
            "total_amount": "500.00",
            "currency_code": "usd",
            "invoice_date": "2025-01-10",
        })

        assert invoice.invoice_number == "INV-100"
        assert invoice.total_amount == Decimal("500.00")
        assert invoice.currency == "USD"
        assert invoice.invoice_date == date(2025, 1, 10)
        assert invoice.invoice_id == "17"

    def test_maps_legacy_aliases(self):
        invoice = map_invoice({"invoice_num": "A-1", "amount": 20, "currency": "EUR", "date": "2025-02-01"})

        assert invoice.invoice_number == "A-1"
        assert invoice.total_amount == Decimal("20")
        assert invoice.invoice_date == date(2025, 2, 1)

    def test_maps_attribute_objects(self):
        record = SimpleNamespace(invoiceNumber="INV-9", totalAmount=Decimal("9.99"), currencyCode="GBP")

        invoice = map_invoice(record)

        assert invoice.invoice_number == "INV-9"
        assert invoice.currency == "GBP"
        assert invoice.invoice_date is None

    def test_missing_invoice_number(self):
        with pytest.raises(MappingError) as exc:
            map_invoice({"total_amount": 1, "currency": "USD"})

        assert exc.value.field == "invoice_number"

    def test_negative_total(self):
        with pytest.raises(MappingError) as exc:
            map_invoice({"invoice_number": "INV-1", "total_amount": "-1.00", "currency": "USD"})

        assert exc.value.field == "total_amount"

    def test_unparsable_date(self):
        with pytest.raises(MappingError) as exc:
            map_invoice({"invoice_number": "INV-1", "total_amount": 1, "currency": "USD", "invoice_date": "soon"})

        assert exc.value.field == "date"

    def test_duplicate_invoice_numbers(self):
        records = [
            {"invoice_number": "INV-1", "total_amount": 1, "currency": "USD"},
            {"invoice_number": " inv-1", "total_amount": 2, "currency": "USD"},
        ]

        with pytest.raises(MappingError) as exc:
            map_invoices(records)

        assert exc.value.position == 2
        assert str(exc.value).startswith("Record 2:")


# ============================================
# Statement Line Mapping Tests
# ============================================

class TestStatementLineMapping:
    """Source statement items to canonical StatementLine."""

    def test_maps_soa_item_columns(self):
        line = map_statement_line({
            "id": "soa-1",
            "invoice_number": "INV-100",
            "amount": "500.00",
            "currency_code": "USD",
            "invoice_date": "2025-01-10",
            "description": "Payment received",
        })

        assert line.line_ref == "soa-1"
        assert line.reference_text == "INV-100"
        assert line.amount == Decimal("500.00")
        assert line.line_date == date(2025, 1, 10)
        assert line.match_mode == "strict"
        assert line.description == "Payment received"

    def test_position_names_lines_without_identifier(self):
        lines = map_statement_lines([
            {"reference_text": "INV-1", "amount": 1, "currency": "USD"},
            {"reference_text": "INV-2", "amount": 2, "currency": "USD"},
        ])

        assert [line.line_ref for line in lines] == ["line-1", "line-2"]

    def test_date_without_reference_is_enough(self):
        line = map_statement_line({"amount": 5, "currency": "USD", "date": "2025-01-01"}, position=3)

        assert line.reference_text == ""
        assert line.line_ref == "line-3"

    def test_needs_reference_or_date(self):
        with pytest.raises(MappingError) as exc:
            map_statement_line({"amount": 5, "currency": "USD"})

        assert exc.value.field == "reference_text"

    @pytest.mark.parametrize("record,field", [
        ({"reference_text": "INV-1", "currency": "USD"}, "amount"),
        ({"reference_text": "INV-1", "amount": "n/a", "currency": "USD"}, "amount"),
        ({"reference_text": "INV-1", "amount": 1}, "currency"),
        ({"reference_text": "INV-1", "amount": 1, "currency": "dollars"}, "currency"),
        ({"reference_text": "INV-1", "amount": 1, "currency": "USD", "match_mode": "loose"}, "match_mode"),
    ])
    def test_malformed_records(self, record, field):
        with pytest.raises(MappingError) as exc:
            map_statement_line(record)

        assert exc.value.field == field

    @pytest.mark.parametrize("raw", ["1e5", "N/A 5", "12 34", "INV-12"])
    def test_junk_amounts_are_rejected(self, raw):
        with pytest.raises(MappingError) as line_exc:
            map_statement_line({"reference_text": "INV-1", "amount": raw, "currency": "USD"})
        with pytest.raises(MappingError) as invoice_exc:
            map_invoice({"invoice_number": "INV-1", "total_amount": raw, "currency": "USD"})

        assert line_exc.value.field == "amount"
        assert invoice_exc.value.field == "amount"

    def test_single_record_without_identifier_is_left_unnamed(self):
        line = map_statement_line({"reference_text": "INV-1", "amount": 1, "currency": "USD"})

        assert line.line_ref is None

    def test_match_mode(self):
        explicit = map_statement_line({"reference_text": "A", "amount": 1, "currency": "USD", "matchMode": "PARTIAL"})
        flagged = map_statement_line({"reference_text": "A", "amount": 1, "currency": "USD", "allow_partial": True})

        assert explicit.match_mode == "partial"
        assert flagged.match_mode == "partial"

    def test_default_currency_applies_only_when_configured(self, monkeypatch):
        monkeypatch.setattr(mapper, "get_settings", lambda: Settings(default_currency="myr"))

        line = map_statement_line({"reference_text": "INV-1", "amount": 1})

        assert line.currency == "MYR"

    def test_duplicate_line_identifiers(self):
        records = [
            {"id": "x", "reference_text": "INV-1", "amount": 1, "currency": "USD"},
            {"id": "x", "reference_text": "INV-2", "amount": 1, "currency": "USD"},
        ]

        with pytest.raises(MappingError) as exc:
            map_statement_lines(records)

        assert exc.value.field == "line_ref"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
