"""Unit tests for aggregate summaries over parsed stubs."""

from datetime import date
from decimal import Decimal

from stubtrack.sdk.schemas import Contribution, PaystubRecord, TaxAmount
from stubtrack.sdk.summary import (
    contribution_breakdown,
    contribution_totals,
    espp_by_quarter,
    goal_progress,
    merge_by_pay_date,
    paycheck_summary,
)


def make_record(pay_date, gross="1000.00", taxes="200.00", net="600.00", espp=None, file_id=None):
    return PaystubRecord(
        pay_date=pay_date,
        gross=TaxAmount(cur=Decimal(gross)),
        net=TaxAmount(cur=Decimal(net)),
        taxes_cur=Decimal(taxes),
        espp_cur=Decimal(espp) if espp is not None else None,
        file_id=file_id,
    )


JAN = date(2024, 1, 15)
FEB = date(2024, 2, 15)
MAY = date(2024, 5, 15)


class TestPaycheckSummary:
    def test_totals(self):
        records = [make_record(JAN, espp="50.00"), make_record(FEB, espp="50.00")]
        contributions = [
            Contribution(pay_date=JAN, type="Roth 401k", employee=Decimal("100.00")),
            Contribution(pay_date=FEB, type="Roth 401k", employee=Decimal("100.00")),
            Contribution(pay_date=FEB, type="401k Match", employer=Decimal("100.00")),
        ]
        summary = paycheck_summary(records, contributions)

        assert summary.stub_count == 2
        assert summary.gross == Decimal("2000.00")
        assert summary.taxes == Decimal("400.00")
        assert summary.investments == Decimal("200.00")
        assert summary.espp == Decimal("100.00")
        assert summary.net == Decimal("1200.00")
        assert summary.after_invest == Decimal("1400.00")
        assert summary.tax_rate == Decimal("20.0")
        assert summary.invest_rate == Decimal("10.0")
        assert summary.after_invest_rate == Decimal("70.0")

    def test_contributions_off_stub_dates_ignored(self):
        contributions = [Contribution(pay_date=MAY, type="Crypto", employee=Decimal("500.00"))]
        summary = paycheck_summary([make_record(JAN)], contributions)
        assert summary.investments == Decimal("0.00")

    def test_no_records(self):
        summary = paycheck_summary([], [])
        assert summary.stub_count == 0
        assert summary.gross == Decimal("0.00")
        assert summary.tax_rate == Decimal("0.0")


class TestEsppByQuarter:
    def test_groups_by_calendar_quarter(self):
        records = [
            make_record(JAN, espp="100.00"),
            make_record(FEB, espp="-50.00"),
            make_record(MAY, espp="75.00"),
            make_record(date(2024, 11, 1)),
        ]
        quarters = espp_by_quarter(records)

        assert quarters == {
            "Q1 (Jan-Mar)": Decimal("150.00"),
            "Q2 (Apr-Jun)": Decimal("75.00"),
            "Q3 (Jul-Sep)": Decimal("0.00"),
            "Q4 (Oct-Dec)": Decimal("0.00"),
        }

    def test_quarter_order(self):
        assert list(espp_by_quarter([])) == ["Q1 (Jan-Mar)", "Q2 (Apr-Jun)", "Q3 (Jul-Sep)", "Q4 (Oct-Dec)"]


class TestContributionViews:
    def test_breakdown_by_date_and_type(self):
        contributions = [
            Contribution(pay_date=JAN, type="Roth 401k", employee=Decimal("100.00")),
            Contribution(pay_date=JAN, type="401k Match", employer=Decimal("50.00")),
            Contribution(pay_date=FEB, type="Roth 401k", employee=Decimal("100.00")),
            Contribution(pay_date=FEB, type="Roth 401k", employee=Decimal("20.00")),
        ]
        assert contribution_breakdown(contributions) == {
            JAN: {"Roth 401k": Decimal("100.00"), "401k Match": Decimal("50.00")},
            FEB: {"Roth 401k": Decimal("120.00")},
        }

    def test_totals_by_group(self):
        contributions = [
            Contribution(pay_date=JAN, type="Roth 401k", employee=Decimal("100.00")),
            Contribution(pay_date=JAN, type="HSA Employer", employer=Decimal("40.00")),
            Contribution(pay_date=FEB, type="Crypto", employee=Decimal("25.00")),
        ]
        totals = contribution_totals(contributions)

        assert totals["401k"]["Roth 401k"] == Decimal("100.00")
        assert totals["401k"]["401k Match"] == Decimal("0.00")
        assert totals["hsa"]["HSA Employer"] == Decimal("40.00")
        assert totals["crypto"]["Crypto"] == Decimal("25.00")


class TestGoalProgress:
    def test_every_type_counts(self):
        """Employer money and manually entered crypto count toward the goal."""
        contributions = [
            Contribution(pay_date=JAN, type="Roth 401k", employee=Decimal("1000.00")),
            Contribution(pay_date=JAN, type="401k Match", employer=Decimal("500.00")),
            Contribution(pay_date=FEB, type="HSA Employer", employer=Decimal("250.00")),
            Contribution(pay_date=MAY, type="Crypto", employee=Decimal("250.00"), employer=Decimal("0.00")),
        ]
        progress = goal_progress(contributions, 20000)

        assert progress.invested_total == Decimal("2000.00")
        assert progress.goal == Decimal("20000")
        assert progress.percent == Decimal("10.0")
        assert progress.remaining == Decimal("18000.00")

    def test_capped_at_100(self):
        contributions = [Contribution(pay_date=JAN, type="Crypto", employee=Decimal("5000.00"))]
        progress = goal_progress(contributions, "1000")
        assert progress.percent == Decimal("100.0")
        assert progress.remaining == Decimal("0.00")

    def test_no_goal(self):
        contributions = [Contribution(pay_date=JAN, type="Roth 401k", employee=Decimal("10.00"))]
        assert goal_progress(contributions, 0).percent == Decimal("0.0")


class TestMergeByPayDate:
    def test_incoming_wins_and_sorted_newest_first(self):
        existing = [make_record(JAN, file_id="old-jan"), make_record(FEB, file_id="old-feb")]
        incoming = [make_record(FEB, file_id="new-feb"), make_record(MAY, file_id="new-may")]

        merged = merge_by_pay_date(existing, incoming)

        assert [r.file_id for r in merged] == ["new-may", "new-feb", "old-jan"]

    def test_empty(self):
        assert merge_by_pay_date([], []) == []
