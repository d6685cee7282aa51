"""Aggregate views over parsed stubs and contributions.

Pure computations for callers that display totals; nothing here renders.
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List

from .schemas import ZERO, Contribution, PaystubRecord


QUARTERS = ("Q1 (Jan-Mar)", "Q2 (Apr-Jun)", "Q3 (Jul-Sep)", "Q4 (Oct-Dec)")

CONTRIBUTION_GROUPS = {
    "401k": ("Roth 401k", "401k Match", "After-tax 401k"),
    "hsa": ("HSA Employee", "HSA Employer"),
    "crypto": ("Crypto",),
}


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return Decimal("0.0")
    return (part / whole * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


@dataclass
class PaycheckSummary:
    """Totals across a set of pay stubs."""

    stub_count: int
    gross: Decimal
    taxes: Decimal
    investments: Decimal  # employee side only; employer money is not deducted
    espp: Decimal
    net: Decimal

    @property
    def after_invest(self) -> Decimal:
        return self.gross - self.taxes - self.investments

    @property
    def tax_rate(self) -> Decimal:
        return _percent(self.taxes, self.gross)

    @property
    def invest_rate(self) -> Decimal:
        return _percent(self.investments, self.gross)

    @property
    def after_invest_rate(self) -> Decimal:
        return _percent(self.after_invest, self.gross)


def paycheck_summary(
    records: Iterable[PaystubRecord],
    contributions: Iterable[Contribution],
) -> PaycheckSummary:
    """Sum gross, taxes, investments, ESPP and net pay.

    Only contributions dated on one of the given stubs count toward
    investments (manually entered entries on other dates are ignored).
    """
    records = list(records)
    stub_dates = {r.pay_date for r in records}

    investments = sum(
        (c.employee for c in contributions if c.pay_date in stub_dates),
        ZERO,
    )

    return PaycheckSummary(
        stub_count=len(records),
        gross=sum((r.gross.cur for r in records), ZERO),
        taxes=sum((r.taxes_cur for r in records), ZERO),
        investments=investments,
        espp=sum((abs(r.espp_cur) for r in records if r.espp_cur is not None), ZERO),
        net=sum((r.net.cur for r in records), ZERO),
    )


def espp_by_quarter(records: Iterable[PaystubRecord]) -> Dict[str, Decimal]:
    """Sum absolute ESPP withholding into calendar quarters by pay date."""
    quarters = {label: ZERO for label in QUARTERS}
    for record in records:
        if not record.espp_cur:
            continue
        label = QUARTERS[(record.pay_date.month - 1) // 3]
        quarters[label] += abs(record.espp_cur)
    return quarters


def contribution_breakdown(contributions: Iterable[Contribution]) -> Dict[date, Dict[str, Decimal]]:
    """Map pay date -> contribution type -> employee + employer total."""
    breakdown: Dict[date, Dict[str, Decimal]] = {}
    for c in contributions:
        by_type = breakdown.setdefault(c.pay_date, {})
        by_type[c.type] = by_type.get(c.type, ZERO) + c.total
    return breakdown


def contribution_totals(contributions: Iterable[Contribution]) -> Dict[str, Dict[str, Decimal]]:
    """Group contribution totals into 401k, HSA and crypto buckets."""
    groups = {
        group: {ctype: ZERO for ctype in types}
        for group, types in CONTRIBUTION_GROUPS.items()
    }
    for c in contributions:
        for group, types in CONTRIBUTION_GROUPS.items():
            if c.type in types:
                groups[group][c.type] += c.total
                break
    return groups


@dataclass
class GoalProgress:
    """Invested total measured against a yearly investment goal."""

    invested_total: Decimal
    goal: Decimal

    @property
    def percent(self) -> Decimal:
        """Percent of goal reached, capped at 100; 0 when no goal is set."""
        if self.goal <= 0:
            return Decimal("0.0")
        return min(_percent(self.invested_total, self.goal), Decimal("100.0"))

    @property
    def remaining(self) -> Decimal:
        return max(self.goal - self.invested_total, ZERO)


def goal_progress(contributions: Iterable[Contribution], goal) -> GoalProgress:
    """Progress toward a yearly goal.

    Every contribution type counts, employer money and Crypto included.
    """
    invested = sum((c.total for c in contributions), ZERO)
    return GoalProgress(invested_total=invested, goal=Decimal(str(goal)))


def merge_by_pay_date(
    existing: Iterable[PaystubRecord],
    incoming: Iterable[PaystubRecord],
) -> List[PaystubRecord]:
    """Upsert records by pay date; incoming wins. Sorted newest first."""
    merged = {r.pay_date: r for r in existing}
    for record in incoming:
        merged[record.pay_date] = record
    return sorted(merged.values(), key=lambda r: r.pay_date, reverse=True)
