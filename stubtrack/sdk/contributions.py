"""Contribution extraction.

A parallel view over the stub text, not derived from the PaystubRecord. The
pay date is passed in by the caller so both views share one resolution.
"""

import logging
from datetime import date
from typing import List, Optional

from processors.engine import RuleCatalog

from .schemas import ZERO, Contribution


logger = logging.getLogger(__name__)


def extract_contributions(
    text: str,
    catalog: RuleCatalog,
    pay_date: date,
    file_id: Optional[str] = None,
) -> List[Contribution]:
    """Emit one Contribution per matching catalogue rule, in catalogue order.

    Each rule fires at most once, so no type appears twice. Amounts are
    absolute; the rule's side decides employee vs employer.
    """
    contributions = []

    for rule in catalog.contributions:
        amount = rule.locate(text)
        if amount is None:
            continue

        contributions.append(Contribution(
            pay_date=pay_date,
            type=rule.contribution_type,
            employee=amount if rule.is_employee else ZERO,
            employer=ZERO if rule.is_employee else amount,
            file_id=file_id,
        ))

    logger.debug(f"{len(contributions)} contribution(s) found for {pay_date.isoformat()}")
    return contributions
