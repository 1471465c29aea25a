"""Shared helpers."""

from fintrack.utils.decimal_utils import coerce_decimal, percentage_of
from fintrack.utils.time_utils import utcnow

__all__ = ["coerce_decimal", "percentage_of", "utcnow"]
