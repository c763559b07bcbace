"""Workplace pension contributions."""

from __future__ import annotations

from decimal import Decimal

from paye_engine.calculators.money import round_half_up
from paye_engine.calculators.types import PayFrequency, PensionBasis, PensionResult
from paye_engine.tables.types import TaxYearTables

BASIS_POINTS_PER_UNIT = Decimal("10000")

# Basic rate relief grossed up: 20% of the gross contribution is 25% of the net
RELIEF_AT_SOURCE_RATE = Decimal("0.25")


def contribution(pensionable_pence: int, basis_points: int) -> int:
    """Basis points of pensionable pay, to the nearest penny."""
    return round_half_up(Decimal(basis_points) / BASIS_POINTS_PER_UNIT * pensionable_pence)


class PensionCalculator:
    """Employee and employer contributions for an opted-in employee."""

    def __init__(self, tables: TaxYearTables):
        self.tables = tables

    def pensionable_pay(
        self, total_gross_pence: int, frequency: PayFrequency, basis: PensionBasis
    ) -> int:
        if basis == PensionBasis.GROSS:
            return total_gross_pence

        # Only earnings inside the qualifying band count
        qe = self.tables.qualifying_earnings
        lower = qe.lower.for_frequency(frequency.value)
        upper = qe.upper.for_frequency(frequency.value)
        return max(0, min(total_gross_pence, upper) - lower)

    def calculate(
        self,
        total_gross_pence: int,
        frequency: PayFrequency,
        opted_in: bool,
        employee_basis_points: int,
        employer_basis_points: int,
        basis: PensionBasis = PensionBasis.GROSS,
        relief_at_source: bool = False,
    ) -> PensionResult:
        """Contributions on pensionable pay.

        Under relief at source the scheme claims basic rate relief on the
        employee contribution, so the employee's own cost is the contribution
        less that relief. Net pay is still reduced by the full contribution.
        """
        if not opted_in:
            return PensionResult(opted_in=False, basis=basis, relief_at_source=relief_at_source)

        pensionable = self.pensionable_pay(total_gross_pence, frequency, basis)
        employee = contribution(pensionable, employee_basis_points)
        relief = round_half_up(employee * RELIEF_AT_SOURCE_RATE) if relief_at_source else 0
        return PensionResult(
            opted_in=True,
            basis=basis,
            pensionable_pay_pence=pensionable,
            employee_pence=employee,
            employer_pence=contribution(pensionable, employer_basis_points),
            relief_at_source=relief_at_source,
            tax_relief_pence=relief,
            employee_net_deduction_pence=employee - relief,
        )
