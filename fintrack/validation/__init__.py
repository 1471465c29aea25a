"""Validation package: category canonicalization and entity validation."""

from fintrack.validation.categories import (
    BUDGET_CATEGORIES,
    canonicalize_category,
    categories_match,
    category_label,
)
from fintrack.validation.validator import EntityValidator

__all__ = [
    "BUDGET_CATEGORIES",
    "EntityValidator",
    "canonicalize_category",
    "categories_match",
    "category_label",
]
