"""Student loan deductions."""

from __future__ import annotations

from paye_engine.calculators.money import round_down
from paye_engine.calculators.periods import periodize_amount
from paye_engine.calculators.types import PayFrequency, StudentLoanPlan, StudentLoanResult
from paye_engine.tables.types import TaxYearTables


class StudentLoanCalculator:
    """Deducts the plan rate on period earnings above the periodized threshold.

    Deductions are rounded down to the whole penny.
    """

    def __init__(self, tables: TaxYearTables):
        self.tables = tables

    def calculate(
        self,
        earnings_pence: int,
        frequency: PayFrequency,
        plan: StudentLoanPlan | None,
    ) -> StudentLoanResult:
        if plan is None:
            return StudentLoanResult(plan=None)

        terms = self.tables.student_loan(plan.value)
        threshold = periodize_amount(terms.threshold_pence, frequency)
        excess = max(0, earnings_pence - threshold)

        return StudentLoanResult(
            plan=plan,
            deduction_pence=round_down(terms.rate * excess),
            period_threshold_pence=threshold,
        )
