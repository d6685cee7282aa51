"""
Pay stub parse pipeline.

raw text -> normalize -> resolve pay date once -> {record builder,
contribution extractor} -> reconciliation -> ParseResult

Error policy:
    - A field that is not found is None/zero on the record, never an error.
    - An unbalanced reconciliation is a warning on the result; the record is
      still returned.
    - Only missing text (ExtractionImpossibleError) fails a parse. In a batch
      that failure is recorded per file and the remaining files continue.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterable, List, Optional, Union

from processors.engine import RuleCatalog, get_catalog, normalize_text, resolve_pay_date

from .contributions import extract_contributions
from .reconcile import reconcile
from .record_builder import build_record
from .schemas import ParseResult
from .sources import ExtractionImpossibleError, extract_text


logger = logging.getLogger(__name__)


@dataclass
class BatchItem:
    """Outcome of parsing one file in a batch."""

    source: str
    result: Optional[ParseResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def parse_text(
    text: str,
    file_id: Optional[str] = None,
    catalog: Optional[RuleCatalog] = None,
    today: Optional[date] = None,
    tolerance: Optional[Union[Decimal, str]] = None,
) -> ParseResult:
    """Parse one stub's text into a record, contributions and reconciliation.

    Args:
        text: Text blob from PDF text layer or OCR
        file_id: Back-reference to the source document
        catalog: Compiled rule catalogue (bundled default if None)
        today: Processing date used when the text has no pay date
        tolerance: Reconciliation tolerance (0.01 if None)

    Raises:
        ExtractionImpossibleError: text is empty
    """
    if not text or not text.strip():
        raise ExtractionImpossibleError(file_id or "<text>", "empty text")

    catalog = catalog or get_catalog()
    normalized = normalize_text(text)
    warnings = []

    pay_date, pay_date_source = resolve_pay_date(normalized, catalog, today)
    if pay_date_source == "processing_date":
        warnings.append(
            f"No Check Date or Period End Date found; pay date {pay_date.isoformat()} "
            "is the processing date"
        )

    record = build_record(normalized, catalog, pay_date, pay_date_source, file_id)
    contributions = extract_contributions(normalized, catalog, pay_date, file_id)

    reconciliation = reconcile(record, contributions, tolerance)
    if not reconciliation.balanced:
        message = (
            f"Stub {pay_date.isoformat()} does not reconcile: residual "
            f"{reconciliation.residual} (gross {record.gross.cur} - taxes {record.taxes_cur} "
            f"- invested {reconciliation.invested_employee_side} - ESPP {reconciliation.espp} "
            f"- net {record.net.cur})"
        )
        logger.warning(message)
        warnings.append(message)

    record = record.model_copy(update={"reconciliation": reconciliation})

    return ParseResult(
        record=record,
        contributions=contributions,
        reconciliation=reconciliation,
        warnings=warnings,
    )


def parse_file(
    path: Union[str, Path],
    file_id: Optional[str] = None,
    catalog: Optional[RuleCatalog] = None,
    today: Optional[date] = None,
    tolerance: Optional[Union[Decimal, str]] = None,
) -> ParseResult:
    """Acquire text for a stub file and parse it.

    file_id defaults to the file name.
    """
    path = Path(path)
    text = extract_text(path)
    return parse_text(text, file_id or path.name, catalog, today, tolerance)


def parse_batch(
    paths: Iterable[Union[str, Path]],
    catalog: Optional[RuleCatalog] = None,
    today: Optional[date] = None,
    tolerance: Optional[Union[Decimal, str]] = None,
) -> List[BatchItem]:
    """Parse several stub files independently.

    A file whose text cannot be extracted gets an error item; it does not
    stop the batch.
    """
    catalog = catalog or get_catalog()
    items = []

    for path in paths:
        path = Path(path)
        try:
            result = parse_file(path, catalog=catalog, today=today, tolerance=tolerance)
        except ExtractionImpossibleError as e:
            logger.error(str(e))
            items.append(BatchItem(source=str(path), error=e.reason))
            continue
        items.append(BatchItem(source=str(path), result=result))

    failed = sum(1 for item in items if not item.ok)
    logger.info(f"Parsed {len(items) - failed}/{len(items)} file(s)")
    return items
