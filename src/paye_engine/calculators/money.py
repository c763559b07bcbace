"""Rounding of Decimal amounts to whole pence."""

from __future__ import annotations

from decimal import ROUND_FLOOR, ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal

PENNY = Decimal("1")


def round_half_up(amount: Decimal | int) -> int:
    """Nearest penny, halves away from zero."""
    return int(Decimal(amount).quantize(PENNY, rounding=ROUND_HALF_UP))


def round_half_down(amount: Decimal | int) -> int:
    """Nearest penny, halves towards zero (NI contributions)."""
    return int(Decimal(amount).quantize(PENNY, rounding=ROUND_HALF_DOWN))


def round_down(amount: Decimal | int) -> int:
    """Whole pence below (student loan deductions)."""
    return int(Decimal(amount).quantize(PENNY, rounding=ROUND_FLOOR))
