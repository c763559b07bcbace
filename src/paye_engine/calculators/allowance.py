"""Tax-free allowance for a pay period or for the year to date."""

from __future__ import annotations

from decimal import Decimal

from paye_engine.calculators.money import round_down, round_half_up
from paye_engine.calculators.types import ParsedTaxCode, PayFrequency
from paye_engine.tables.types import TaxYearTables


def period_allowance(parsed: ParsedTaxCode, frequency: PayFrequency) -> int:
    """Allowance for one period on the non-cumulative basis.

    Negative for K codes.
    """
    annual = parsed.annual_allowance_pence
    if annual == 0:
        return 0
    return round_half_up(Decimal(annual) / frequency.periods_per_year)


def allowance_to_date(parsed: ParsedTaxCode, frequency: PayFrequency, period_number: int) -> int:
    """Allowance accrued from the start of the tax year through ``period_number``.

    Negative for K codes.
    """
    annual = parsed.annual_allowance_pence
    if annual == 0:
        return 0
    return round_half_up(Decimal(annual) * period_number / frequency.periods_per_year)


def taxable_after_allowance(pay_pence: int, allowance_pence: int) -> int:
    """Pay less allowance, never below zero.

    A negative (K code) allowance increases taxable pay.
    """
    return max(0, pay_pence - allowance_pence)


def tapered_personal_allowance(annual_income_pence: int, tables: TaxYearTables) -> int:
    """Personal allowance after the high-income taper.

    The allowance drops by the taper rate of every pound of adjusted net
    income over the limit, in whole pounds, and never goes below zero.
    """
    pa = tables.personal_allowance
    excess = max(0, annual_income_pence - pa.income_limit_pence)
    reduction_pounds = round_down(Decimal(excess) / 100 * pa.taper_rate)
    return max(0, pa.amount_pence - reduction_pounds * 100)
