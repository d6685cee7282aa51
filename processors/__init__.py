"""
Pay stub field locators driven by YAML rule catalogues.

Vendor layouts are described in parsers/*.yaml, not in code.
"""

from .engine import (
    CatalogError,
    RuleCatalog,
    clear_catalog_cache,
    get_catalog,
    load_catalog,
    normalize_text,
    parse_amount,
    resolve_pay_date,
)

__all__ = [
    "CatalogError",
    "RuleCatalog",
    "clear_catalog_cache",
    "get_catalog",
    "load_catalog",
    "normalize_text",
    "parse_amount",
    "resolve_pay_date",
]
