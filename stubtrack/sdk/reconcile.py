"""Reconciliation check for extracted pay stubs.

A complete extraction balances:

    gross.cur - taxes_cur - employee-side investments - |espp_cur| - net.cur == 0

ESPP is take-home cash rather than a retirement investment, so it is kept out
of the investment sum but still deducted. Any residual beyond the tolerance
means a missed field or an unmodeled line item.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional, Union

from .schemas import EMPLOYEE_DEDUCTED_TYPES, ZERO, Contribution, PaystubRecord, Reconciliation


logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = Decimal("0.01")


def invested_employee_side(contributions: Iterable[Contribution]) -> Decimal:
    """Sum employee amounts of paycheck-deducted contribution types."""
    return sum(
        (c.employee for c in contributions if c.type in EMPLOYEE_DEDUCTED_TYPES),
        ZERO,
    )


def reconcile(
    record: PaystubRecord,
    contributions: Iterable[Contribution],
    tolerance: Optional[Union[Decimal, str]] = None,
) -> Reconciliation:
    """Cross-check a record against its sibling contributions.

    Only contributions sharing the record's pay date are counted.

    Returns:
        Reconciliation; balanced is False when |residual| >= tolerance
    """
    tolerance = DEFAULT_TOLERANCE if tolerance is None else Decimal(tolerance)

    contributions = list(contributions)
    siblings = [c for c in contributions if c.pay_date == record.pay_date]
    if len(siblings) != len(contributions):
        logger.debug(
            f"Ignoring {len(contributions) - len(siblings)} contribution(s) "
            f"not dated {record.pay_date.isoformat()}"
        )

    invested = invested_employee_side(siblings)
    espp = abs(record.espp_cur) if record.espp_cur is not None else ZERO
    residual = record.gross.cur - record.taxes_cur - invested - espp - record.net.cur

    return Reconciliation(
        invested_employee_side=invested,
        espp=espp,
        residual=residual,
        tolerance=tolerance,
        balanced=abs(residual) < tolerance,
    )
