"""Unit tests for contribution extraction."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from processors.engine import normalize_text
from stubtrack.sdk.contributions import extract_contributions
from stubtrack.sdk.schemas import Contribution


PAY_DATE = date(2024, 6, 14)


def extract(text, catalog, **kwargs):
    return extract_contributions(normalize_text(text), catalog, PAY_DATE, **kwargs)


class TestExtractContributions:
    def test_roth_and_match(self, catalog):
        text = "ROTH (AFTER-TAX)  150.00\n401K EMPLOYER MATCH  75.00"
        contributions = extract(text, catalog)

        assert contributions == [
            Contribution(pay_date=PAY_DATE, type="Roth 401k", employee=Decimal("150.00")),
            Contribution(pay_date=PAY_DATE, type="401k Match", employer=Decimal("75.00")),
        ]

    def test_negative_deduction_is_absolute(self, catalog):
        contributions = extract("HSA EMPLOYEE CONT   -150.00   1,950.00", catalog)
        assert len(contributions) == 1
        assert contributions[0].type == "HSA Employee"
        assert contributions[0].employee == Decimal("150.00")
        assert contributions[0].employer == Decimal("0.00")

    @pytest.mark.parametrize("label", ["AFTER-TAX 401K", "401K (AFTER-TAX)"])
    def test_after_tax_label_variants(self, catalog, label):
        contributions = extract(f"{label}  500.00", catalog)
        assert [(c.type, c.employee) for c in contributions] == [("After-tax 401k", Decimal("500.00"))]

    def test_both_after_tax_variants_emit_once(self, catalog):
        """Two label variants on one stub still give one contribution."""
        text = "AFTER-TAX 401K  500.00\n401K (AFTER-TAX)  500.00"
        contributions = extract(text, catalog)
        assert [c.type for c in contributions] == ["After-tax 401k"]

    def test_hsa_employer_takes_current_column(self, catalog):
        contributions = extract("HSA EMPLOYER                 25.00       500.00", catalog)
        assert contributions[0].type == "HSA Employer"
        assert contributions[0].employer == Decimal("25.00")
        assert contributions[0].employee == Decimal("0.00")

    def test_full_stub(self, catalog, fixture_text):
        contributions = extract(fixture_text("stub_2024-06-14.txt"), catalog, file_id="stub.pdf")

        assert [(c.type, c.employee, c.employer) for c in contributions] == [
            ("Roth 401k", Decimal("200.00"), Decimal("0.00")),
            ("401k Match", Decimal("0.00"), Decimal("200.00")),
            ("After-tax 401k", Decimal("500.00"), Decimal("0.00")),
            ("HSA Employee", Decimal("150.00"), Decimal("0.00")),
            ("HSA Employer", Decimal("0.00"), Decimal("0.00")),
        ]
        assert all(c.pay_date == PAY_DATE for c in contributions)
        assert all(c.file_id == "stub.pdf" for c in contributions)

    def test_no_type_twice(self, catalog, fixture_text):
        contributions = extract(fixture_text("stub_2024-06-14.txt"), catalog)
        types = [c.type for c in contributions]
        assert len(types) == len(set(types))

    def test_nothing_found(self, catalog):
        assert extract("GROSS PAY 100.00", catalog) == []

    def test_label_without_amount(self, catalog):
        assert extract("ROTH (AFTER-TAX) n/a", catalog) == []


class TestContributionModel:
    def test_one_side_only(self):
        with pytest.raises(ValidationError, match="cannot both be set"):
            Contribution(
                pay_date=PAY_DATE, type="Roth 401k",
                employee=Decimal("1.00"), employer=Decimal("1.00"),
            )

    def test_crypto_may_carry_both_sides(self):
        """Manually entered entries are not bound to one side."""
        c = Contribution(pay_date=PAY_DATE, type="Crypto", employee=Decimal("10.00"), employer=Decimal("5.00"))
        assert c.total == Decimal("15.00")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            Contribution(pay_date=PAY_DATE, type="Roth 401k", employee=Decimal("-1.00"))

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            Contribution(pay_date=PAY_DATE, type="Pension", employee=Decimal("1.00"))
