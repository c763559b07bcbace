"""Conversion between annual and per-period figures, and tax-year dates."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from paye_engine.calculators.money import round_half_up
from paye_engine.calculators.types import PayFrequency

# UK tax year runs 6 April to 5 April
TAX_YEAR_START_MONTH = 4
TAX_YEAR_START_DAY = 6


def periodize_amount(annual_pence: int, frequency: PayFrequency | str) -> int:
    """Convert an annual amount to one pay period's share, to the nearest penny."""
    freq = PayFrequency(frequency)
    return round_half_up(Decimal(annual_pence) / freq.periods_per_year)


def annualize_amount(period_pence: int, frequency: PayFrequency | str) -> int:
    """Convert a per-period amount to its annual equivalent."""
    return period_pence * PayFrequency(frequency).periods_per_year


def tax_year_for_date(on: date) -> str:
    """Return the tax year label ("2025-26") containing a date."""
    start = on.year if (on.month, on.day) >= (TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY) else on.year - 1
    return f"{start}-{(start + 1) % 100:02d}"


def tax_year_start(tax_year: str) -> date:
    """First day of a tax year label."""
    return date(int(tax_year[:4]), TAX_YEAR_START_MONTH, TAX_YEAR_START_DAY)


def period_number_for_date(on: date, frequency: PayFrequency | str) -> int:
    """Tax period number for a pay date.

    Weekly and biweekly count whole weeks (fortnights) from 6 April. Monthly
    uses tax months, each starting on the 6th. A week 53 or fortnight 27 at
    the end of the year is folded into the last regular period.
    """
    freq = PayFrequency(frequency)

    if freq == PayFrequency.MONTHLY:
        offset = 0 if on.day >= TAX_YEAR_START_DAY else 1
        return (on.month - TAX_YEAR_START_MONTH - offset) % 12 + 1

    days = (on - tax_year_start(tax_year_for_date(on))).days
    length = 7 if freq == PayFrequency.WEEKLY else 14
    return min(days // length + 1, freq.periods_per_year)
