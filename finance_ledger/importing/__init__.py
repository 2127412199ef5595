"""
Importing Package

CSV ingestion and source-category normalization.
"""

from finance_ledger.importing.categories import (
    DEFAULT_CATEGORY_ALIASES,
    CategoryMapper,
    original_category_tag,
)
from finance_ledger.importing.csv_import import (
    EMPTY_FILE_ERROR,
    CsvParseOutcome,
    CsvTransactionImporter,
    parse_csv_line,
)

__all__ = [
    "DEFAULT_CATEGORY_ALIASES",
    "CategoryMapper",
    "original_category_tag",
    "EMPTY_FILE_ERROR",
    "CsvParseOutcome",
    "CsvTransactionImporter",
    "parse_csv_line",
]
