"""Reference resolvers — map an item code to its supplier and category.

Supplier rules are matched by code prefix, most specific (longest) prefix
first. An exact code-to-category table, when loaded, overrides the category
a prefix rule would give.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from salesagg.errors import ConfigurationError

logger = logging.getLogger(__name__)

UNKNOWN_SUPPLIER = "Unknown"
UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class SupplierRule:
    """One row of the supplier table."""

    prefix: str
    supplier: str = UNKNOWN_SUPPLIER
    category: str | None = None


@dataclass(frozen=True)
class Resolution:
    supplier: str
    category: str


class SupplierResolver:
    """Longest-prefix-wins supplier lookup."""

    def __init__(self, rules: list[SupplierRule]):
        # sorted() is stable, so equal-length prefixes keep table order
        self.rules = sorted(
            (r for r in rules if r.prefix),
            key=lambda r: len(r.prefix),
            reverse=True,
        )

    def match(self, code: str) -> SupplierRule | None:
        for rule in self.rules:
            if code.startswith(rule.prefix):
                return rule
        return None


@dataclass
class ReferenceResolver:
    """Combined supplier/category resolution for an item code."""

    suppliers: SupplierResolver
    categories: dict[str, str] = field(default_factory=dict)

    def resolve(self, code: str) -> Resolution:
        rule = self.suppliers.match(code)
        supplier = rule.supplier if rule else UNKNOWN_SUPPLIER
        category = (rule.category if rule else None) or UNCATEGORIZED
        if code in self.categories:
            category = self.categories[code]
        return Resolution(supplier=supplier, category=category)

    @classmethod
    def from_tables(
        cls,
        rules: list[tuple[str, str] | tuple[str, str, str | None]],
        categories: dict[str, str] | None = None,
    ) -> ReferenceResolver:
        """Build from in-memory rows of ``(prefix, supplier[, category])``."""
        return cls(
            suppliers=SupplierResolver([SupplierRule(*row) for row in rules]),
            categories=dict(categories or {}),
        )


# ---------------------------------------------------------------------------
# Workbook loaders
# ---------------------------------------------------------------------------


def _read_table(path: str | Path):
    """First sheet of a reference workbook as strings, header row skipped."""
    import zipfile

    import pandas as pd
    from openpyxl.utils.exceptions import InvalidFileException

    try:
        return pd.read_excel(path, sheet_name=0, header=0, dtype=str)
    except (OSError, ValueError, KeyError, zipfile.BadZipFile, InvalidFileException) as exc:
        raise ConfigurationError(
            f"Cannot read reference table {Path(path).name}", detail=str(exc)
        ) from exc


def _cell(row, index: int) -> str:
    import pandas as pd

    if index >= len(row):
        return ""
    value = row.iloc[index]
    if pd.isna(value):
        return ""
    return str(value).strip()


def load_supplier_rules(path: str | Path) -> list[SupplierRule]:
    """Read supplier rules: column A prefix, B supplier, D fallback category.

    Rows without both a prefix and a supplier are ignored.

    Raises:
        ConfigurationError: If the workbook is missing or unreadable.
    """
    df = _read_table(path)
    rules: list[SupplierRule] = []
    for _, row in df.iterrows():
        prefix = _cell(row, 0)
        supplier = _cell(row, 1)
        if not prefix or not supplier:
            continue
        rules.append(SupplierRule(prefix=prefix, supplier=supplier, category=_cell(row, 3) or None))
    logger.info("Loaded %d supplier rules from %s", len(rules), Path(path).name)
    return rules


def load_category_map(path: str | Path) -> dict[str, str]:
    """Read the exact code-to-category table: column A code, D category."""
    df = _read_table(path)
    mapping: dict[str, str] = {}
    for _, row in df.iterrows():
        code = _cell(row, 0)
        category = _cell(row, 3)
        if code and category:
            mapping[code] = category
    logger.info("Loaded %d category mappings from %s", len(mapping), Path(path).name)
    return mapping


def load_resolver(
    suppliers_path: str | Path,
    categories_path: str | Path | None = None,
) -> ReferenceResolver:
    """Load both reference tables; a missing categories file is skipped.

    Raises:
        ConfigurationError: If the suppliers table is missing, or either
            table cannot be read.
    """
    rules = load_supplier_rules(suppliers_path)
    categories: dict[str, str] = {}
    if categories_path and Path(categories_path).exists():
        categories = load_category_map(categories_path)
    elif categories_path:
        logger.warning("Categories table %s not found; using prefix categories only", categories_path)
    return ReferenceResolver(suppliers=SupplierResolver(rules), categories=categories)
