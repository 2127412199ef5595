"""
Category Mapping

Bank and budgeting-app exports use their own category names. This module
normalizes them onto ExpenseCategory. The alias table is data: new aliases
are registered on a mapper, not added as code.
"""

from collections.abc import Mapping
from typing import Optional

from finance_ledger.models.finance import ORIGINAL_CATEGORY_TAG_PREFIX, ExpenseCategory


DEFAULT_CATEGORY_ALIASES: Mapping[str, ExpenseCategory] = {
    "groceries": ExpenseCategory.FOOD,
    "coffee": ExpenseCategory.FOOD,
    "drinks & dining": ExpenseCategory.FOOD,
    "food": ExpenseCategory.FOOD,
    "auto & transport": ExpenseCategory.TRANSPORTATION,
    "transportation": ExpenseCategory.TRANSPORTATION,
    "gasoline": ExpenseCategory.TRANSPORTATION,
    "entertainment": ExpenseCategory.ENTERTAINMENT,
    "suscriptions": ExpenseCategory.ENTERTAINMENT,  # sic, as exported
    "shopping": ExpenseCategory.SHOPPING,
    "bills": ExpenseCategory.BILLS,
    "household": ExpenseCategory.BILLS,
    "electric bill": ExpenseCategory.BILLS,
    "car insurance": ExpenseCategory.BILLS,
    "phone bill": ExpenseCategory.BILLS,
    "healthcare": ExpenseCategory.HEALTHCARE,
    "pets": ExpenseCategory.HEALTHCARE,
    "education": ExpenseCategory.EDUCATION,
    "travel & vacation": ExpenseCategory.TRAVEL,
    "travel": ExpenseCategory.TRAVEL,
    "piloto": ExpenseCategory.EDUCATION,  # flight training
    "one time expense": ExpenseCategory.OTHER,
    "unnecessary": ExpenseCategory.OTHER,
    "unexpected": ExpenseCategory.OTHER,
    "other": ExpenseCategory.OTHER,
}


def original_category_tag(source: str) -> str:
    return f"{ORIGINAL_CATEGORY_TAG_PREFIX}{source}"


class CategoryMapper:
    """
    Many-to-one lookup from free-text source categories to ExpenseCategory.

    Lookups are case-insensitive and ignore surrounding whitespace.
    Unknown categories map to the fallback (OTHER by default).
    """

    def __init__(
        self,
        aliases: Optional[Mapping[str, ExpenseCategory | str]] = None,
        fallback: ExpenseCategory = ExpenseCategory.OTHER,
    ):
        source = DEFAULT_CATEGORY_ALIASES if aliases is None else aliases
        self._aliases: dict[str, ExpenseCategory] = {}
        self.fallback = fallback
        for name, category in source.items():
            self.register(name, category)

    def register(self, alias: str, category: ExpenseCategory | str) -> None:
        """Add or replace an alias."""
        key = alias.strip().lower()
        if not key:
            raise ValueError("Category alias cannot be empty")
        self._aliases[key] = ExpenseCategory(category)

    def lookup(self, source: str) -> Optional[ExpenseCategory]:
        """Return the mapped category, or None if the alias is unknown."""
        return self._aliases.get(source.strip().lower())

    def resolve(self, source: str) -> ExpenseCategory:
        """Return the mapped category, falling back for unknown aliases."""
        return self.lookup(source) or self.fallback

    def __contains__(self, source: str) -> bool:
        return self.lookup(source) is not None

    def __len__(self) -> int:
        return len(self._aliases)
