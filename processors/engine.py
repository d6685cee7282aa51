"""
YAML-driven field locator engine.

Pay stub layouts differ between payroll vendors, so field extraction is driven
by a rule catalogue (parsers/default.yaml) instead of vendor-specific code.

The engine:
1. Loads a YAML rule catalogue and pre-compiles every label pattern
2. Builds named locators (date, check number, money, line-end, dual amount)
3. Builds the ordered contribution rule list
4. Applies locators to normalized text; a locator that finds nothing
   returns None and never raises

Label patterns are regular expressions. The engine appends the value capture
for the locator kind, so catalogue authors only describe the label.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml


logger = logging.getLogger(__name__)

PARSERS_DIR = Path(__file__).parent / "parsers"
DEFAULT_CATALOG_PATH = PARSERS_DIR / "default.yaml"

# Exactly two fraction digits, optional thousands separators, optional minus
AMOUNT = r'-?\d[\d,]*\.\d{2}'
# Accounting negative notation: (1,234.56)
PAREN_AMOUNT = r'\(\d[\d,]*\.\d{2}\)'
DUAL_VALUE = rf'({AMOUNT}|{PAREN_AMOUNT})'
DATE_VALUE = r'([A-Za-z]{3,9}\.?\s+\d{1,2},\s*\d{4}|\d{1,2}/\d{1,2}/\d{4})'

DATE_FORMATS = [
    "%B %d, %Y",
    "%b %d, %Y",
    "%m/%d/%Y",
]

PAY_DATE_SOURCES = ("check_date", "period_end")
DATE_FIELDS = ("period_begin",)
MONEY_FIELDS = ("gross_cur", "net_cur", "after_tax_401k_cur", "espp_cur")
LINE_END_FIELDS = ("gross_ytd", "net_ytd")
TAX_CATEGORIES = (
    "federal",
    "state",
    "city",
    "social_security",
    "medicare",
    "disability",
    "fli",
)
CONTRIBUTION_TYPES = (
    "Roth 401k",
    "401k Match",
    "After-tax 401k",
    "HSA Employee",
    "HSA Employer",
)
SIDES = ("employee", "employer")

FLAG_MAP = {
    "IGNORECASE": re.IGNORECASE,
    "MULTILINE": re.MULTILINE,
    "DOTALL": re.DOTALL,
    "I": re.IGNORECASE,
    "M": re.MULTILINE,
    "S": re.DOTALL,
}


class CatalogError(Exception):
    """Raised when a rule catalogue cannot be loaded or compiled."""
    pass


# =============================================================================
# Text helpers
# =============================================================================


def normalize_text(text: str) -> str:
    """Normalize raw OCR/PDF text without changing its content.

    Only line endings, non-breaking spaces and Unicode minus signs are
    rewritten. Whitespace runs are left alone; patterns tolerate them.
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\u00a0", " ")
    return text.replace("\u2212", "-")


def parse_amount(value_str: Optional[str]) -> Optional[Decimal]:
    """Parse a matched amount into a non-negative Decimal.

    Handles thousands separators, a leading minus and parenthesized
    (accounting negative) notation. The sign is discarded.
    """
    if not value_str:
        return None

    cleaned = value_str.strip().replace(",", "")
    is_negative = cleaned.startswith("-") or (cleaned.startswith("(") and cleaned.endswith(")"))
    cleaned = cleaned.strip("()").lstrip("-")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None

    if is_negative:
        amount = -amount
    return abs(amount)


def parse_date(date_str: Optional[str]) -> Optional[date]:
    """Parse 'June 5, 2024', 'Jun. 5, 2024', 'Sept. 5, 2024' or '06/05/2024' into a date."""
    if not date_str:
        return None

    cleaned = re.sub(r'\s+', ' ', date_str.strip())
    cleaned = cleaned.replace(".", "")
    cleaned = re.sub(r',\s*', ', ', cleaned)

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue

    # Nonstandard abbreviations like "Sept": retry on the three letter prefix
    abbreviated = re.sub(r'^([A-Za-z]{3})[A-Za-z]+', r'\1', cleaned)
    if abbreviated != cleaned:
        try:
            return datetime.strptime(abbreviated, "%b %d, %Y").date()
        except ValueError:
            pass

    return None


def _first_match(patterns: Tuple[re.Pattern, ...], text: str, rule_name: str) -> Optional[re.Match]:
    """Try patterns in order and return the first match in the text."""
    for i, pattern in enumerate(patterns):
        match = pattern.search(text)
        if match:
            logger.debug(f"{rule_name}: pattern {i} matched {match.group(0)[:100]!r}")
            return match
    logger.debug(f"{rule_name}: no match")
    return None


# =============================================================================
# Locators
# =============================================================================


@dataclass(frozen=True)
class DateLocator:
    """Label followed by a calendar date."""

    name: str
    patterns: Tuple[re.Pattern, ...]

    def locate(self, text: str) -> Optional[date]:
        for i, pattern in enumerate(self.patterns):
            match = pattern.search(text)
            if not match:
                continue
            parsed = parse_date(match.group(1))
            if parsed:
                logger.debug(f"{self.name}: pattern {i} matched {parsed.isoformat()}")
                return parsed
            logger.debug(f"{self.name}: unparseable date {match.group(1)!r}")
        return None


@dataclass(frozen=True)
class MoneyLocator:
    """Label followed by a single amount."""

    name: str
    patterns: Tuple[re.Pattern, ...]

    def locate(self, text: str) -> Optional[Decimal]:
        match = _first_match(self.patterns, text, self.name)
        return parse_amount(match.group(1)) if match else None


@dataclass(frozen=True)
class LineEndLocator(MoneyLocator):
    """Last amount on the label's line (the YTD column of a one-line item).

    Same capture as MoneyLocator; the compiled suffix anchors it to the line end.
    """


@dataclass(frozen=True)
class DualAmountLocator:
    """Label followed by current and YTD amounts within a bounded window."""

    name: str
    patterns: Tuple[re.Pattern, ...]

    def locate(self, text: str) -> Optional[Tuple[Decimal, Decimal]]:
        match = _first_match(self.patterns, text, self.name)
        if not match:
            return None
        return parse_amount(match.group(1)), parse_amount(match.group(2))


@dataclass(frozen=True)
class CheckNumberLocator:
    """Label followed by an alphanumeric check number token."""

    name: str
    patterns: Tuple[re.Pattern, ...]

    def locate(self, text: str) -> Optional[str]:
        match = _first_match(self.patterns, text, self.name)
        if not match:
            return None

        candidate = match.group(1)
        # OCR placeholders like "----" or a neighbouring label
        if not re.search(r'\d', candidate):
            logger.debug(f"{self.name}: rejected candidate {candidate!r}")
            return None

        return candidate.lstrip("#") or None


@dataclass(frozen=True)
class ContributionRule:
    """Maps label variants to a contribution type and the side it credits."""

    contribution_type: str
    side: str
    patterns: Tuple[re.Pattern, ...]

    @property
    def is_employee(self) -> bool:
        return self.side == "employee"

    def locate(self, text: str) -> Optional[Decimal]:
        match = _first_match(self.patterns, text, f"contribution[{self.contribution_type}]")
        return parse_amount(match.group(1)) if match else None


@dataclass(frozen=True)
class PayDateRule:
    """One link of the pay date resolution chain."""

    source: str
    locator: DateLocator


@dataclass(frozen=True)
class RuleCatalog:
    """Compiled rule catalogue."""

    name: str
    source_file: str
    pay_date: Tuple[PayDateRule, ...]
    dates: Dict[str, DateLocator]
    check_number: Optional[CheckNumberLocator]
    money: Dict[str, MoneyLocator]
    line_end: Dict[str, LineEndLocator]
    taxes: Dict[str, DualAmountLocator]
    consolidated_taxes: Optional[DualAmountLocator]
    contributions: Tuple[ContributionRule, ...]

    def date_locator(self, source: str) -> Optional[DateLocator]:
        for rule in self.pay_date:
            if rule.source == source:
                return rule.locator
        return None

    def describe(self) -> Dict[str, Any]:
        """Summarize rules by name for display."""
        return {
            "name": self.name,
            "source_file": self.source_file,
            "pay_date": [r.source for r in self.pay_date],
            "dates": list(self.dates),
            "check_number": self.check_number is not None,
            "money": list(self.money),
            "line_end": list(self.line_end),
            "taxes": list(self.taxes),
            "consolidated_taxes": self.consolidated_taxes is not None,
            "contributions": [
                {"type": r.contribution_type, "side": r.side, "variants": len(r.patterns)}
                for r in self.contributions
            ],
        }


# =============================================================================
# Catalogue loading
# =============================================================================


class _RuleCompiler:
    """Compiles YAML rule definitions into locators."""

    def __init__(self, catalog_def: Dict, source_file: str):
        self.source_file = source_file
        self.defaults = catalog_def.get("defaults", {}) or {}

    def _get_flags(self, rule_def: Dict, pattern_def: Union[str, Dict]) -> int:
        """Get regex flags from pattern, rule, or catalogue defaults."""
        flag_list = self.defaults.get("flags", [])
        if isinstance(rule_def, dict) and "flags" in rule_def:
            flag_list = rule_def["flags"]
        if isinstance(pattern_def, dict) and "flags" in pattern_def:
            flag_list = pattern_def["flags"]

        if isinstance(flag_list, str):
            flag_list = [flag_list]

        flags = 0
        for flag_name in flag_list or []:
            if isinstance(flag_name, str):
                flags |= FLAG_MAP.get(flag_name.upper(), 0)
        return flags

    def _setting(self, rule_def: Dict, key: str, fallback: Any) -> Any:
        if isinstance(rule_def, dict) and key in rule_def:
            return rule_def[key]
        return self.defaults.get(key, fallback)

    def compile(self, rule_def: Any, rule_name: str, suffix: str, extra_flags: int = 0) -> Tuple[re.Pattern, ...]:
        """Compile every label pattern of a rule with the value suffix appended."""
        if isinstance(rule_def, dict):
            pattern_defs = rule_def.get("patterns", [])
        else:
            pattern_defs = rule_def

        if isinstance(pattern_defs, str):
            pattern_defs = [pattern_defs]
        if not pattern_defs:
            raise CatalogError(f"{self.source_file}: rule '{rule_name}' has no patterns")

        compiled = []
        for i, pattern_def in enumerate(pattern_defs):
            if isinstance(pattern_def, str):
                label = pattern_def
            elif isinstance(pattern_def, dict):
                label = pattern_def.get("regex", "")
            else:
                raise CatalogError(f"{self.source_file}: {rule_name}[{i}] must be a string or mapping")

            if not label:
                raise CatalogError(f"{self.source_file}: {rule_name}[{i}] is empty")

            flags = self._get_flags(rule_def, pattern_def) | extra_flags
            try:
                compiled.append(re.compile(f"(?:{label}){suffix}", flags))
            except re.error as e:
                raise CatalogError(f"{self.source_file}: {rule_name}[{i}]: {e}") from e

        return tuple(compiled)

    def between(self, rule_def: Dict) -> str:
        return self._setting(rule_def, "between", r'\s+')

    def window(self, rule_def: Dict) -> Tuple[int, int]:
        window = self._setting(rule_def, "window", 60)
        gap = self._setting(rule_def, "gap", 20)
        if not isinstance(window, int) or not isinstance(gap, int) or window < 0 or gap < 0:
            raise CatalogError(f"{self.source_file}: window/gap must be non-negative integers")
        return window, gap

    def dual_suffix(self, rule_def: Dict) -> str:
        window, gap = self.window(rule_def)
        return rf'[\s\S]{{0,{window}}}?{DUAL_VALUE}[\s\S]{{0,{gap}}}?{DUAL_VALUE}'


def _check_names(found, allowed, section: str, source_file: str) -> None:
    unknown = [name for name in found if name not in allowed]
    if unknown:
        raise CatalogError(
            f"{source_file}: unknown {section} entries {unknown}; expected one of {list(allowed)}"
        )


def compile_catalog(catalog_def: Dict, source_file: str = "<memory>") -> RuleCatalog:
    """Compile a parsed YAML catalogue definition."""
    if not isinstance(catalog_def, dict):
        raise CatalogError(f"{source_file}: catalogue must be a mapping")

    compiler = _RuleCompiler(catalog_def, source_file)

    pay_date = []
    for entry in catalog_def.get("pay_date", []) or []:
        source = entry.get("source")
        _check_names([source], PAY_DATE_SOURCES, "pay_date", source_file)
        patterns = compiler.compile(entry, f"pay_date.{source}", rf'[:\s]+{DATE_VALUE}')
        pay_date.append(PayDateRule(source=source, locator=DateLocator(source, patterns)))

    date_defs = catalog_def.get("dates", {}) or {}
    _check_names(date_defs, DATE_FIELDS, "dates", source_file)
    dates = {
        name: DateLocator(name, compiler.compile(rule_def, f"dates.{name}", rf'[:\s]+{DATE_VALUE}'))
        for name, rule_def in date_defs.items()
    }

    check_number = None
    check_def = catalog_def.get("check_number")
    if check_def:
        patterns = compiler.compile(check_def, "check_number", r'[\s:]*([A-Za-z0-9#-]+)')
        check_number = CheckNumberLocator("check_number", patterns)

    money_defs = catalog_def.get("money", {}) or {}
    _check_names(money_defs, MONEY_FIELDS, "money", source_file)
    money = {
        name: MoneyLocator(name, compiler.compile(rule_def, f"money.{name}", f"{compiler.between(rule_def)}({AMOUNT})"))
        for name, rule_def in money_defs.items()
    }

    line_end_defs = catalog_def.get("line_end", {}) or {}
    _check_names(line_end_defs, LINE_END_FIELDS, "line_end", source_file)
    line_end = {
        name: LineEndLocator(
            name,
            compiler.compile(rule_def, f"line_end.{name}", rf'[^\n]+?({AMOUNT})[ \t]*$', re.MULTILINE),
        )
        for name, rule_def in line_end_defs.items()
    }

    tax_defs = catalog_def.get("taxes", {}) or {}
    _check_names(tax_defs, TAX_CATEGORIES, "taxes", source_file)
    taxes = {
        name: DualAmountLocator(f"taxes.{name}", compiler.compile(rule_def, f"taxes.{name}", compiler.dual_suffix(rule_def)))
        for name, rule_def in tax_defs.items()
    }

    consolidated = None
    consolidated_def = catalog_def.get("consolidated_taxes")
    if consolidated_def:
        consolidated = DualAmountLocator(
            "consolidated_taxes",
            compiler.compile(consolidated_def, "consolidated_taxes", compiler.dual_suffix(consolidated_def)),
        )

    contributions = []
    seen_types = set()
    for entry in catalog_def.get("contributions", []) or []:
        ctype = entry.get("type")
        side = entry.get("side")
        _check_names([ctype], CONTRIBUTION_TYPES, "contributions", source_file)
        _check_names([side], SIDES, "contribution side", source_file)
        if ctype in seen_types:
            raise CatalogError(
                f"{source_file}: contribution type '{ctype}' listed twice; "
                "put label variants under one entry"
            )
        seen_types.add(ctype)
        patterns = compiler.compile(entry, f"contributions.{ctype}", f"{compiler.between(entry)}({AMOUNT})")
        contributions.append(ContributionRule(ctype, side, patterns))

    return RuleCatalog(
        name=catalog_def.get("name", Path(source_file).stem),
        source_file=source_file,
        pay_date=tuple(pay_date),
        dates=dates,
        check_number=check_number,
        money=money,
        line_end=line_end,
        taxes=taxes,
        consolidated_taxes=consolidated,
        contributions=tuple(contributions),
    )


def load_catalog(path: Optional[Union[str, Path]] = None) -> RuleCatalog:
    """Load and compile a YAML rule catalogue (bundled default if no path)."""
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH

    if not catalog_path.exists():
        raise CatalogError(f"Rule catalogue not found: {catalog_path}")

    try:
        catalog_def = yaml.safe_load(catalog_path.read_text())
    except yaml.YAMLError as e:
        raise CatalogError(f"{catalog_path.name}: invalid YAML: {e}") from e

    catalog = compile_catalog(catalog_def, catalog_path.name)
    logger.debug(
        f"Loaded catalogue '{catalog.name}' from {catalog_path}: "
        f"{len(catalog.taxes)} tax rules, {len(catalog.contributions)} contribution rules"
    )
    return catalog


# Compiled catalogues by resolved path; entries are read-only once built
_catalog_cache: Dict[str, RuleCatalog] = {}


def get_catalog(path: Optional[Union[str, Path]] = None) -> RuleCatalog:
    """Get or load a compiled catalogue, cached per path."""
    key = str(Path(path).resolve()) if path else str(DEFAULT_CATALOG_PATH)
    if key not in _catalog_cache:
        _catalog_cache[key] = load_catalog(path)
    return _catalog_cache[key]


def clear_catalog_cache() -> None:
    """Drop cached catalogues (after editing a catalogue file)."""
    _catalog_cache.clear()


def resolve_pay_date(text: str, catalog: RuleCatalog, today: Optional[date] = None) -> Tuple[date, str]:
    """Resolve the canonical pay date.

    Walks the catalogue's pay date chain in order (Check Date, then Period
    End Date) and falls back to the processing date.

    Returns:
        (pay_date, source) where source is the chain entry that matched or
        "processing_date".
    """
    for rule in catalog.pay_date:
        found = rule.locator.locate(text)
        if found:
            return found, rule.source

    fallback = today or date.today()
    logger.warning(f"No pay date found in text; using processing date {fallback.isoformat()}")
    return fallback, "processing_date"
