"""Class 1 National Insurance, employee and employer, for one pay period."""

from __future__ import annotations

from paye_engine.calculators.money import round_half_down
from paye_engine.calculators.types import NationalInsuranceResult, NICategory, PayFrequency
from paye_engine.tables.types import TaxYearTables


def _slice(pay_pence: int, lower: int, upper: int | None) -> int:
    """Portion of pay between two thresholds."""
    top = pay_pence if upper is None else min(pay_pence, upper)
    return max(0, top - lower)


class NationalInsuranceCalculator:
    """Calculates Class 1 NI on a single period's earnings.

    NI is never cumulative: each period uses the threshold row of its pay
    frequency. Employer NI is a cost to the employer and is not deducted from
    the employee's pay.
    """

    def __init__(self, tables: TaxYearTables):
        self.tables = tables

    def calculate(
        self,
        earnings_pence: int,
        frequency: PayFrequency,
        category: NICategory,
    ) -> NationalInsuranceResult:
        thresholds = self.tables.ni_thresholds
        rates = self.tables.ni_category(category.value)
        row = frequency.value

        lel = thresholds.lower_earnings_limit.for_frequency(row)
        pt = thresholds.primary_threshold.for_frequency(row)
        uel = thresholds.upper_earnings_limit.for_frequency(row)
        st = thresholds.secondary_threshold.for_frequency(row)
        ust = thresholds.upper_secondary_threshold.for_frequency(row)

        main_band = _slice(earnings_pence, pt, uel)
        upper_band = _slice(earnings_pence, uel, None)
        employee = (
            rates.employee_main_rate * main_band + rates.employee_upper_rate * upper_band
        )

        if rates.employer_relief_to_ust:
            # Earnings between ST and UST carry a 0% employer rate
            employer = rates.employer_rate * _slice(earnings_pence, ust, None)
        else:
            employer = rates.employer_rate * _slice(earnings_pence, st, None)

        return NationalInsuranceResult(
            category=category,
            employee_pence=round_half_down(employee),
            employer_pence=round_half_down(employer),
            earnings_to_lel_pence=min(max(earnings_pence, 0), lel),
            earnings_lel_to_pt_pence=_slice(earnings_pence, lel, pt),
            earnings_pt_to_uel_pence=main_band,
            earnings_above_uel_pence=upper_band,
        )
