"""Assemble a PaystubRecord from the field locators.

Tax totals use a two-tier strategy:

    granular      sum of absolute current/YTD values over every tax category
                  that matched. Preferred, because it keeps per-category detail.
    consolidated  one "taxes withheld" line, used verbatim. Tried once, and
                  only when the granular current total is zero (no category
                  matched, usually a different vendor layout).
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple

from processors.engine import RuleCatalog

from .schemas import ZERO, PaystubRecord, TaxAmount


logger = logging.getLogger(__name__)

# Catalogue tax category -> PaystubRecord field
TAX_FIELDS = {
    "federal": "tax_federal",
    "state": "tax_state",
    "city": "tax_city",
    "social_security": "tax_social_security",
    "medicare": "tax_medicare",
    "disability": "tax_disability",
    "fli": "tax_fli",
}


class TaxStrategy(str, Enum):
    """Which tier supplies the tax totals."""

    GRANULAR = "granular"
    CONSOLIDATED = "consolidated"


def choose_tax_strategy(granular_cur: Decimal) -> TaxStrategy:
    """Decide the tax tier from the granular current-period total."""
    if granular_cur == 0:
        return TaxStrategy.CONSOLIDATED
    return TaxStrategy.GRANULAR


def locate_taxes(text: str, catalog: RuleCatalog) -> Dict[str, TaxAmount]:
    """Run every tax category locator; absent categories are left out."""
    taxes = {}
    for name, locator in catalog.taxes.items():
        amounts = locator.locate(text)
        if amounts is not None:
            cur, ytd = amounts
            taxes[name] = TaxAmount(cur=cur, ytd=ytd)
    return taxes


def aggregate_taxes(
    text: str,
    catalog: RuleCatalog,
    taxes: Dict[str, TaxAmount],
) -> Tuple[Decimal, Decimal, TaxStrategy]:
    """Compute (taxes_cur, taxes_ytd, strategy actually used)."""
    cur_total = sum((abs(t.cur) for t in taxes.values()), ZERO)
    ytd_total = sum((abs(t.ytd) for t in taxes.values()), ZERO)

    if choose_tax_strategy(cur_total) is TaxStrategy.GRANULAR:
        return cur_total, ytd_total, TaxStrategy.GRANULAR

    if catalog.consolidated_taxes is None:
        logger.debug("No tax categories matched and catalogue has no consolidated rule")
        return cur_total, ytd_total, TaxStrategy.GRANULAR

    consolidated = catalog.consolidated_taxes.locate(text)
    if consolidated is None:
        logger.debug("No tax categories matched and no consolidated taxes line found")
        return cur_total, ytd_total, TaxStrategy.GRANULAR

    cur, ytd = consolidated
    logger.info(f"Using consolidated taxes withheld line: {cur} current, {ytd} YTD")
    return cur, ytd, TaxStrategy.CONSOLIDATED


def _locate_money(text: str, catalog: RuleCatalog, name: str) -> Optional[Decimal]:
    locator = catalog.money.get(name)
    return locator.locate(text) if locator else None


def _locate_line_end(text: str, catalog: RuleCatalog, name: str) -> Optional[Decimal]:
    locator = catalog.line_end.get(name)
    return locator.locate(text) if locator else None


def _amount_pair(text: str, catalog: RuleCatalog, cur_name: str, ytd_name: str) -> TaxAmount:
    cur = _locate_money(text, catalog, cur_name)
    ytd = _locate_line_end(text, catalog, ytd_name)
    return TaxAmount(cur=cur if cur is not None else ZERO, ytd=ytd if ytd is not None else ZERO)


def build_record(
    text: str,
    catalog: RuleCatalog,
    pay_date,
    pay_date_source: str,
    file_id: Optional[str] = None,
) -> PaystubRecord:
    """Build a PaystubRecord from normalized text.

    Args:
        text: Normalized stub text
        catalog: Compiled rule catalogue
        pay_date: Already resolved pay date (shared with contribution extraction)
        pay_date_source: Chain entry the pay date came from
        file_id: Back-reference to the source document

    Returns:
        PaystubRecord; missing fields are None or zero, never an error
    """
    period_end_locator = catalog.date_locator("period_end")
    period_end = period_end_locator.locate(text) if period_end_locator else None
    period_begin_locator = catalog.dates.get("period_begin")
    period_begin = period_begin_locator.locate(text) if period_begin_locator else None

    check_number = catalog.check_number.locate(text) if catalog.check_number else None

    taxes = locate_taxes(text, catalog)
    taxes_cur, taxes_ytd, strategy = aggregate_taxes(text, catalog, taxes)

    fields = {TAX_FIELDS[name]: amount for name, amount in taxes.items()}

    return PaystubRecord(
        pay_date=pay_date,
        pay_date_source=pay_date_source,
        period_begin=period_begin,
        period_end=period_end,
        check_number=check_number,
        gross=_amount_pair(text, catalog, "gross_cur", "gross_ytd"),
        net=_amount_pair(text, catalog, "net_cur", "net_ytd"),
        taxes_cur=taxes_cur,
        taxes_ytd=taxes_ytd,
        tax_strategy=strategy.value,
        after_tax_401k_cur=_locate_money(text, catalog, "after_tax_401k_cur"),
        espp_cur=_locate_money(text, catalog, "espp_cur"),
        raw_text=text,
        file_id=file_id,
        **fields,
    )
