"""Paystub Tracker SDK - pay stub extraction, reconciliation and summaries."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    get_rules_path,
    get_tolerance,
    ConfigError,
    KNOWN_SETTINGS,
)

from .schemas import (
    TaxAmount,
    PaystubRecord,
    Contribution,
    ContributionType,
    Reconciliation,
    ParseResult,
    EMPLOYEE_DEDUCTED_TYPES,
)

from .sources import (
    extract_text,
    extract_text_from_pdf,
    ExtractionImpossibleError,
)

from .record_builder import (
    build_record,
    choose_tax_strategy,
    TaxStrategy,
)

from .contributions import extract_contributions

from .reconcile import (
    reconcile,
    invested_employee_side,
    DEFAULT_TOLERANCE,
)

from .pipeline import (
    parse_text,
    parse_file,
    parse_batch,
    BatchItem,
)

from .summary import (
    PaycheckSummary,
    paycheck_summary,
    espp_by_quarter,
    contribution_breakdown,
    contribution_totals,
    GoalProgress,
    goal_progress,
    merge_by_pay_date,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "get_rules_path",
    "get_tolerance",
    "ConfigError",
    "KNOWN_SETTINGS",
    # Schemas
    "TaxAmount",
    "PaystubRecord",
    "Contribution",
    "ContributionType",
    "Reconciliation",
    "ParseResult",
    "EMPLOYEE_DEDUCTED_TYPES",
    # Text sources
    "extract_text",
    "extract_text_from_pdf",
    "ExtractionImpossibleError",
    # Extraction
    "build_record",
    "choose_tax_strategy",
    "TaxStrategy",
    "extract_contributions",
    # Reconciliation
    "reconcile",
    "invested_employee_side",
    "DEFAULT_TOLERANCE",
    # Pipeline
    "parse_text",
    "parse_file",
    "parse_batch",
    "BatchItem",
    # Summaries
    "PaycheckSummary",
    "paycheck_summary",
    "espp_by_quarter",
    "contribution_breakdown",
    "contribution_totals",
    "GoalProgress",
    "goal_progress",
    "merge_by_pay_date",
]
