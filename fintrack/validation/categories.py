"""
Category Canonicalization

Expenses and budgets name their categories independently ("Food & Dining",
"food", "fooddining"). Every place that decides whether an expense belongs
to a budget goes through `categories_match`, so the write path
(apply_expense), budget lookup, reconciliation and the overlap check can
never disagree.

Canonical form: lowercase, drop every non-alphanumeric character, then map
through the synonym table. Extra synonyms can be configured with
FINTRACK_ENGINE_CATEGORY_SYNONYMS.
"""

import re
from typing import Optional

from fintrack.config import get_settings


_NON_ALPHANUMERIC = re.compile(r"[^0-9a-z]+")

# Keys are already stripped of non-alphanumerics
CATEGORY_SYNONYMS: dict[str, str] = {
    "food": "food",
    "fooddining": "food",
    "dining": "food",
    "transport": "transport",
    "transportation": "transport",
    "entertainment": "entertainment",
    "shopping": "shopping",
    "bills": "bills",
    "billsutilities": "bills",
    "utilities": "bills",
    "health": "health",
    "healthmedical": "health",
    "healthcare": "health",
    "medical": "health",
    "education": "education",
    "travel": "travel",
    "groceries": "groceries",
    "other": "others",
    "others": "others",
}

# Display labels for the canonical keys
BUDGET_CATEGORIES: dict[str, str] = {
    "food": "Food & Dining",
    "transport": "Transportation",
    "entertainment": "Entertainment",
    "shopping": "Shopping",
    "bills": "Bills & Utilities",
    "health": "Health & Medical",
    "education": "Education",
    "travel": "Travel",
    "others": "Others",
}


def _strip(raw: str) -> str:
    return _NON_ALPHANUMERIC.sub("", raw.lower())


def canonicalize_category(
    raw: str,
    extra_synonyms: Optional[dict[str, str]] = None,
) -> str:
    """
    Reduce a category name to its canonical key.

    Args:
        raw: Category as entered by the user or stored on a record
        extra_synonyms: Additional synonyms; defaults to the configured ones

    Returns:
        Canonical key, e.g. "food" for "Food & Dining". Unknown categories
        map to their stripped form.
    """
    key = _strip(raw or "")

    if extra_synonyms is None:
        extra_synonyms = get_settings().engine.category_synonyms

    for synonym, target in extra_synonyms.items():
        if _strip(synonym) == key:
            key = _strip(target)
            break

    return CATEGORY_SYNONYMS.get(key, key)


def categories_match(
    a: str,
    b: str,
    extra_synonyms: Optional[dict[str, str]] = None,
) -> bool:
    """True when both names reduce to the same canonical key."""
    if extra_synonyms is None:
        extra_synonyms = get_settings().engine.category_synonyms
    return (
        canonicalize_category(a, extra_synonyms)
        == canonicalize_category(b, extra_synonyms)
    )


def category_label(raw: str) -> str:
    """Display label for a category, falling back to the raw name."""
    return BUDGET_CATEGORIES.get(canonicalize_category(raw), raw)


__all__ = [
    "BUDGET_CATEGORIES",
    "CATEGORY_SYNONYMS",
    "canonicalize_category",
    "categories_match",
    "category_label",
]
