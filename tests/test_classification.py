# tests/test_classification.py

"""
Tests for discrepancy classification.
"""

import pytest
from datetime import date
from decimal import Decimal

from soa_recon.config import MatchingConfig
from soa_recon.core.classification import (
    SEVERITY_BY_TYPE,
    classify_unmatched_line,
    describe_match_variance,
)
from soa_recon.core.matching import reconcile

from tests.factories import make_invoice, make_line


class TestDiscrepancyClassification:
    """Precedence and severity of unmatched-line discrepancies."""

    def setup_method(self):
        self.config = MatchingConfig()

    def test_no_invoice_found(self):
        line = make_line("INV-999", 100, line_ref="line-1")

        discrepancy = classify_unmatched_line(line, [make_invoice("INV-1", 100)], [], self.config)

        assert discrepancy.discrepancy_type == "no_invoice_found"
        assert discrepancy.severity == "high"
        assert discrepancy.invoice_number is None

    def test_line_without_reference_is_no_invoice_found(self):
        line = make_line("", 100, line_date=date(2025, 1, 1), line_ref="line-1")

        discrepancy = classify_unmatched_line(line, [make_invoice("INV-1", 100)], [], self.config)

        assert discrepancy.discrepancy_type == "no_invoice_found"
        assert "(no reference)" in discrepancy.description

    def test_amount_mismatch(self):
        line = make_line("INV-1", "80.00", line_ref="line-1")
        invoice = make_invoice("INV-1", "100.00")

        discrepancy = classify_unmatched_line(line, [invoice], [], self.config)

        assert discrepancy.discrepancy_type == "amount_mismatch"
        assert discrepancy.severity == "medium"
        assert discrepancy.invoice_number == "INV-1"
        assert discrepancy.expected_value == "100.00"
        assert discrepancy.actual_value == "80.00"
        assert discrepancy.difference_amount == Decimal("-20.00")

    def test_amount_checked_before_date(self):
        line = make_line("INV-1", "80.00", line_date=date(2025, 3, 1), line_ref="line-1")
        invoice = make_invoice("INV-1", "100.00", invoice_date=date(2025, 1, 1))

        discrepancy = classify_unmatched_line(line, [invoice], [], self.config)

        assert discrepancy.discrepancy_type == "amount_mismatch"

    def test_date_mismatch(self):
        """Fuzzy reference, amount within tolerance, dates far apart."""
        line = make_line("inv42", "199.50", line_date=date(2025, 3, 1), line_ref="line-1")
        invoice = make_invoice("INV-0042", "200.00", invoice_date=date(2025, 1, 1))

        report = reconcile([line], [invoice])

        discrepancy = report.discrepancies[0]
        assert discrepancy.discrepancy_type == "date_mismatch"
        assert discrepancy.severity == "low"
        assert discrepancy.expected_value == "2025-01-01"
        assert discrepancy.actual_value == "2025-03-01"
        assert "59 days apart" in discrepancy.description

    def test_fuzzy_reference_inside_tolerance_needs_partial_mode(self):
        line = make_line("inv42", "199.50", line_ref="line-1")
        invoice = make_invoice("INV-0042", "200.00")

        report = reconcile([line], [invoice])

        discrepancy = report.discrepancies[0]
        assert discrepancy.discrepancy_type == "amount_mismatch"
        assert "partial matching" in discrepancy.description

    def test_multiple_candidates(self):
        line = make_line("INV42", 100, line_ref="line-1")
        invoices = [make_invoice("INV-42", 100), make_invoice("INV-042", 100), make_invoice("INV-7", 100)]

        discrepancy = classify_unmatched_line(line, invoices, [], self.config)

        assert discrepancy.discrepancy_type == "multiple_candidates"
        assert discrepancy.candidate_invoice_numbers == ("INV-42", "INV-042")

    def test_single_same_currency_candidate_wins_over_other_currencies(self):
        line = make_line("INV42", "50.00", line_ref="line-1")
        invoices = [make_invoice("INV-42", "100.00", currency="EUR"), make_invoice("INV-042", "100.00")]

        discrepancy = classify_unmatched_line(line, invoices, [], self.config)

        assert discrepancy.discrepancy_type == "amount_mismatch"
        assert discrepancy.invoice_number == "INV-042"

    def test_currency_mismatch(self):
        line = make_line("INV-5", 100, currency="USD", line_ref="line-1")
        invoices = [make_invoice("INV-5", 100, currency="EUR")]

        discrepancy = classify_unmatched_line(line, invoices, [], self.config)

        assert discrepancy.discrepancy_type == "currency_mismatch"
        assert discrepancy.severity == "high"
        assert discrepancy.expected_value == "EUR"
        assert discrepancy.actual_value == "USD"

    def test_duplicate_payment(self):
        line = make_line("INV-1", 100, line_ref="line-1")
        settled = [make_invoice("INV-1", 100)]

        discrepancy = classify_unmatched_line(line, [], settled, self.config)

        assert discrepancy.discrepancy_type == "duplicate_payment"
        assert discrepancy.severity == "critical"
        assert discrepancy.invoice_number == "INV-1"

    def test_settled_invoice_in_other_currency_is_not_duplicate(self):
        line = make_line("INV-1", 100, currency="USD", line_ref="line-1")
        settled = [make_invoice("INV-1", 100, currency="EUR")]

        discrepancy = classify_unmatched_line(line, [], settled, self.config)

        assert discrepancy.discrepancy_type == "no_invoice_found"

    def test_severity_table_is_fixed(self):
        assert SEVERITY_BY_TYPE == {
            "no_invoice_found": "high",
            "amount_mismatch": "medium",
            "date_mismatch": "low",
            "multiple_candidates": "medium",
            "currency_mismatch": "high",
            "duplicate_payment": "critical",
        }


class TestMatchVariance:
    """Notes attached to matched pairs."""

    def test_exact_match_has_no_notes(self):
        report = reconcile([make_line("INV-1", 100)], [make_invoice("INV-1", 100)])

        assert report.matched[0].variance_notes == ()

    def test_date_tolerance_note(self):
        report = reconcile(
            [make_line("INV-1", 100, line_date=date(2025, 1, 4))],
            [make_invoice("INV-1", 100, invoice_date=date(2025, 1, 1))],
        )

        assert report.matched[0].variance_notes == ("Dates 3 days apart",)

    def test_partial_settlement_note(self):
        line = make_line("INV-1", "60.00", match_mode="partial")
        invoice = make_invoice("INV-1", "100.00")
        report = reconcile([line], [invoice])

        notes = describe_match_variance(line, invoice, report.matched[0].match)

        assert notes == ("Partial settlement: USD 60.00 paid, 40.00 outstanding on INV-1",)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
