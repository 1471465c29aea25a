"""Helpers for Decimal normalization."""

from decimal import Decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def coerce_decimal(value) -> Decimal:
    """Normalize numeric values to Decimal.

    Floats go through ``str`` so that 0.1 stays 0.1 instead of its binary
    expansion.

    Args:
        value: Raw numeric value from a collaborator.

    Returns:
        Decimal: Normalized numeric value (0 for None).
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def percentage_of(part: Decimal, whole: Decimal) -> Decimal:
    """Return ``part / whole * 100``, or 0 when ``whole`` is 0."""
    if whole == 0:
        return ZERO
    return part / whole * HUNDRED


__all__ = ["ZERO", "HUNDRED", "coerce_decimal", "percentage_of"]
