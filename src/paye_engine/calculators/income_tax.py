"""Income tax for one pay period using banded rates from tax tables."""

from __future__ import annotations

import logging
from decimal import Decimal

from paye_engine.calculators.allowance import (
    allowance_to_date,
    period_allowance,
    taxable_after_allowance,
)
from paye_engine.calculators.money import round_half_up
from paye_engine.calculators.types import (
    IncomeTaxBandResult,
    IncomeTaxResult,
    ParsedTaxCode,
    PayFrequency,
)
from paye_engine.tables.types import (
    IncomeTaxBand,
    IncomeTaxSchedule,
    TaxTablesConfigError,
    TaxYearTables,
)

logger = logging.getLogger(__name__)


def scale_bands(
    bands: tuple[IncomeTaxBand, ...], numerator: int, denominator: int
) -> tuple[IncomeTaxBand, ...]:
    """Scale annual band limits to a window of the year.

    Each limit becomes ``limit * numerator / denominator`` rounded half-up to
    the penny. Open upper limits stay open.
    """
    def scale(value: int) -> int:
        return round_half_up(Decimal(value) * numerator / denominator)

    return tuple(
        IncomeTaxBand(
            name=band.name,
            lower_pence=scale(band.lower_pence),
            upper_pence=scale(band.upper_pence) if band.upper_pence is not None else None,
            rate=band.rate,
        )
        for band in bands
    )


def banded_liability(
    taxable_pence: int, bands: tuple[IncomeTaxBand, ...]
) -> tuple[Decimal, tuple[IncomeTaxBandResult, ...]]:
    """Exact tax on taxable income over progressive bands.

    Returns the unrounded liability and a per-band breakdown with each band's
    tax rounded half-up for display.
    """
    liability = Decimal("0")
    rows: list[IncomeTaxBandResult] = []

    for band in bands:
        if taxable_pence <= band.lower_pence:
            break

        top = taxable_pence if band.upper_pence is None else min(band.upper_pence, taxable_pence)
        in_band = top - band.lower_pence
        if in_band <= 0:
            continue

        band_tax = band.rate * in_band
        liability += band_tax
        rows.append(
            IncomeTaxBandResult(
                band=band.name,
                rate=band.rate,
                taxable_amount_pence=in_band,
                tax_pence=round_half_up(band_tax),
            )
        )

    return liability, tuple(rows)


class IncomeTaxCalculator:
    """Calculates PAYE income tax for a period.

    Cumulative codes tax the year to date and subtract tax already paid.
    Non-cumulative codes tax this period's pay against one period's share of
    the allowance and bands. Fixed-rate codes apply a single rate to all pay.
    """

    def __init__(self, tables: TaxYearTables):
        self.tables = tables

    def calculate(
        self,
        parsed: ParsedTaxCode,
        frequency: PayFrequency,
        period_pay_pence: int,
        period_number: int = 1,
        cumulative_taxable_income_pence: int = 0,
        cumulative_tax_paid_pence: int = 0,
        cumulative_gross_pay_pence: int | None = None,
    ) -> IncomeTaxResult:
        schedule = self.tables.schedule_for(parsed.regime.value)

        if parsed.no_tax:
            return IncomeTaxResult(
                tax_pence=0,
                taxable_income_pence=period_pay_pence,
                regime=parsed.regime,
                cumulative=False,
                allowance_pence=0,
            )

        if parsed.is_fixed_rate:
            return self._calculate_fixed_rate(parsed, period_pay_pence)

        if not parsed.cumulative:
            return self._calculate_non_cumulative(parsed, schedule, frequency, period_pay_pence)

        return self._calculate_cumulative(
            parsed,
            schedule,
            frequency,
            period_pay_pence,
            period_number,
            cumulative_taxable_income_pence,
            cumulative_tax_paid_pence,
            cumulative_gross_pay_pence,
        )

    def fixed_rate_for(self, parsed: ParsedTaxCode) -> Decimal:
        """Rate for a BR/D0/D1 code in the code's regime."""
        schedule = self.tables.schedule_for(parsed.regime.value)
        try:
            return schedule.fixed_rates[parsed.fixed_code]
        except KeyError:
            raise TaxTablesConfigError(
                self.tables.tax_year,
                f"no {parsed.fixed_code} rate for regime '{parsed.regime.value}'",
            ) from None

    def _calculate_fixed_rate(
        self,
        parsed: ParsedTaxCode,
        period_pay_pence: int,
    ) -> IncomeTaxResult:
        rate = parsed.fixed_rate if parsed.fixed_rate is not None else self.fixed_rate_for(parsed)
        tax = round_half_up(rate * period_pay_pence)
        return IncomeTaxResult(
            tax_pence=tax,
            taxable_income_pence=period_pay_pence,
            regime=parsed.regime,
            cumulative=False,
            allowance_pence=0,
            fixed_rate=rate,
            bands=(
                IncomeTaxBandResult(
                    band=parsed.fixed_code,
                    rate=rate,
                    taxable_amount_pence=period_pay_pence,
                    tax_pence=tax,
                ),
            ),
        )

    def _calculate_non_cumulative(
        self,
        parsed: ParsedTaxCode,
        schedule: IncomeTaxSchedule,
        frequency: PayFrequency,
        period_pay_pence: int,
    ) -> IncomeTaxResult:
        allowance = period_allowance(parsed, frequency)
        taxable = taxable_after_allowance(period_pay_pence, allowance)

        bands = scale_bands(schedule.bands, 1, frequency.periods_per_year)
        liability, rows = banded_liability(taxable, bands)

        return IncomeTaxResult(
            tax_pence=round_half_up(liability),
            taxable_income_pence=taxable,
            regime=parsed.regime,
            cumulative=False,
            allowance_pence=allowance,
            bands=rows,
        )

    def _calculate_cumulative(
        self,
        parsed: ParsedTaxCode,
        schedule: IncomeTaxSchedule,
        frequency: PayFrequency,
        period_pay_pence: int,
        period_number: int,
        cumulative_taxable_income_pence: int,
        cumulative_tax_paid_pence: int,
        cumulative_gross_pay_pence: int | None,
    ) -> IncomeTaxResult:
        if cumulative_gross_pay_pence is None:
            cumulative_gross_pay_pence = reconstruct_cumulative_gross(
                parsed, frequency, period_number, cumulative_taxable_income_pence
            )

        gross_to_date = cumulative_gross_pay_pence + period_pay_pence
        allowance = allowance_to_date(parsed, frequency, period_number)
        taxable_to_date = taxable_after_allowance(gross_to_date, allowance)

        bands = scale_bands(schedule.bands, period_number, frequency.periods_per_year)
        liability, rows = banded_liability(taxable_to_date, bands)
        liability_pence = round_half_up(liability)

        due = liability_pence - cumulative_tax_paid_pence
        refund_withheld = 0
        if due < 0:
            # No refunds through payroll: the overpayment is reported, not paid
            refund_withheld = -due
            logger.info(
                "Withholding income tax refund of %d pence (period %d, code %s)",
                refund_withheld,
                period_number,
                parsed.raw_code,
            )
            due = 0

        return IncomeTaxResult(
            tax_pence=due,
            taxable_income_pence=max(0, taxable_to_date - max(0, cumulative_taxable_income_pence)),
            regime=parsed.regime,
            cumulative=True,
            allowance_pence=allowance,
            taxable_income_to_date_pence=taxable_to_date,
            liability_to_date_pence=liability_pence,
            refund_withheld_pence=refund_withheld,
            bands=rows,
        )


def reconstruct_cumulative_gross(
    parsed: ParsedTaxCode,
    frequency: PayFrequency,
    period_number: int,
    cumulative_taxable_income_pence: int,
) -> int:
    """Gross pay to the end of the previous period.

    Used when the caller only carries taxable income to date. Exact when
    that figure is the unfloored ``new_cumulative_taxable_income_pence`` of
    the previous calculation on a cumulative code.
    """
    prior_allowance = allowance_to_date(parsed, frequency, period_number - 1)
    return max(0, cumulative_taxable_income_pence + prior_allowance)
