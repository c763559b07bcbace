"""PAYE calculation engine - main orchestrator."""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import replace
from typing import Any, Mapping
from uuid import UUID

from paye_engine.calculators.income_tax import IncomeTaxCalculator, reconstruct_cumulative_gross
from paye_engine.calculators.national_insurance import NationalInsuranceCalculator
from paye_engine.calculators.pension import PensionCalculator
from paye_engine.calculators.student_loan import StudentLoanCalculator
from paye_engine.calculators.tax_code import parse_tax_code
from paye_engine.calculators.types import (
    PayrollBreakdown,
    PayrollCalculationInput,
    PayrollCalculationResult,
)
from paye_engine.calculators.validation import build_input
from paye_engine.tables.loader import load_tax_year_tables
from paye_engine.tables.types import TaxTablesConfigError, TaxYearTables

logger = logging.getLogger(__name__)


class PayrollEngine:
    """Calculates one employee's pay period against one tax year's tables.

    Calculation pipeline (stable order):
    1) Parse the tax code
    2) Income tax (allowance, taxable pay, banding, tax already paid)
    3) Employee and employer NI on this period's pay
    4) Student loan
    5) Pension contributions
    6) Net pay and new year-to-date totals

    The engine holds only read-only tables, so one instance can be shared
    across employees and threads.
    """

    def __init__(self, tables: TaxYearTables):
        self.tables = tables
        self.income_tax = IncomeTaxCalculator(tables)
        self.national_insurance = NationalInsuranceCalculator(tables)
        self.student_loan = StudentLoanCalculator(tables)
        self.pension = PensionCalculator(tables)

    def calculate(self, inp: PayrollCalculationInput) -> PayrollCalculationResult:
        """Calculate a validated, normalized input (see ``build_input``)."""
        if inp.tax_year != self.tables.tax_year:
            raise TaxTablesConfigError(
                inp.tax_year,
                f"engine was built with tables for {self.tables.tax_year}",
            )

        frequency = inp.pay_frequency
        gross = inp.total_gross_pence

        parsed = parse_tax_code(inp.tax_code)
        if parsed.is_fixed_rate:
            parsed = replace(parsed, fixed_rate=self.income_tax.fixed_rate_for(parsed))

        prior_gross = inp.cumulative_gross_pay_pence
        if prior_gross is None:
            prior_gross = reconstruct_cumulative_gross(
                parsed, frequency, inp.period_number, inp.cumulative_taxable_income_pence
            )

        income_tax = self.income_tax.calculate(
            parsed,
            frequency,
            gross,
            period_number=inp.period_number,
            cumulative_taxable_income_pence=inp.cumulative_taxable_income_pence,
            cumulative_tax_paid_pence=inp.cumulative_tax_paid_pence,
            cumulative_gross_pay_pence=prior_gross,
        )
        ni = self.national_insurance.calculate(gross, frequency, inp.ni_category)
        student_loan = self.student_loan.calculate(gross, frequency, inp.student_loan_plan)
        pension = self.pension.calculate(
            gross,
            frequency,
            opted_in=inp.pension_opt_in,
            employee_basis_points=inp.pension_contribution_basis_points,
            employer_basis_points=inp.employer_pension_basis_points,
            basis=inp.pension_basis,
            relief_at_source=inp.pension_relief_at_source,
        )

        if income_tax.cumulative:
            # Unfloored, so the next period can rebuild pay to date from it
            new_cumulative_taxable = prior_gross + gross - income_tax.allowance_pence
        else:
            new_cumulative_taxable = (
                inp.cumulative_taxable_income_pence + income_tax.taxable_income_pence
            )

        net = (
            gross
            - income_tax.tax_pence
            - ni.employee_pence
            - student_loan.deduction_pence
            - pension.employee_pence
            - inp.other_deductions_pence
        )
        if net < 0:
            logger.warning(
                "Negative net pay %d pence for period %d (deductions exceed pay)",
                net,
                inp.period_number,
            )

        result = PayrollCalculationResult(
            gross_pay_pence=gross,
            taxable_income_pence=income_tax.taxable_income_pence,
            income_tax_pence=income_tax.tax_pence,
            employee_ni_pence=ni.employee_pence,
            employer_ni_pence=ni.employer_pence,
            student_loan_deduction_pence=student_loan.deduction_pence,
            pension_employee_contribution_pence=pension.employee_pence,
            pension_employer_contribution_pence=pension.employer_pence,
            other_deductions_pence=inp.other_deductions_pence,
            net_pay_pence=net,
            new_cumulative_taxable_income_pence=new_cumulative_taxable,
            new_cumulative_tax_paid_pence=inp.cumulative_tax_paid_pence + income_tax.tax_pence,
            new_cumulative_gross_pay_pence=prior_gross + gross,
            breakdown=PayrollBreakdown(
                tax_code=parsed,
                income_tax=income_tax,
                national_insurance=ni,
                student_loan=student_loan,
                pension=pension,
            ),
        )

        logger.debug(
            "Calculated %s period %d (%s, code %s): gross=%d tax=%d ni=%d net=%d",
            self.tables.tax_year,
            inp.period_number,
            frequency.value,
            parsed.raw_code,
            gross,
            result.income_tax_pence,
            result.employee_ni_pence,
            net,
        )
        return result


def calculate_payroll(
    data: PayrollCalculationInput | Mapping[str, Any],
    tables: TaxYearTables | None = None,
) -> PayrollCalculationResult:
    """Calculate gross-to-net pay for one employee and one period.

    Args:
        data: A PayrollCalculationInput or a mapping with the same field names.
        tables: Tables to calculate against. Defaults to the bundled tables
            for the input's tax year.

    Raises:
        PayrollInputError: If the input fails validation.
        UnsupportedTaxYearError: If there are no tables for the tax year.
        TaxTablesConfigError: If the tables are malformed or for another year.
    """
    inp = build_input(data)
    if tables is None:
        tables = load_tax_year_tables(inp.tax_year)
    return PayrollEngine(tables).calculate(inp)


def generate_calculation_id(inp: PayrollCalculationInput, engine_version: str) -> UUID:
    """Deterministic calculation ID for an input and engine version."""
    data = {
        "engine_version": engine_version,
        "inputs": inp.to_canonical_dict(),
    }
    json_str = json.dumps(data, sort_keys=True)
    hash_bytes = hashlib.sha256(json_str.encode()).digest()
    return UUID(bytes=hash_bytes[:16])
