"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from paye_engine.calculators.periods import (
    period_number_for_date,
    periodize_amount,
    tax_year_for_date,
)
from paye_engine.calculators.types import PayFrequency
from paye_engine.calculators.validation import PayrollInputError
from paye_engine.tables.types import PeriodThreshold, TaxYearTables


# ============================================================================
# Payroll calculation schemas
# ============================================================================


class PayrollCalculationRequest(BaseModel):
    """Schema for a calculation or validation request.

    Enum values, ranges and the tax code are checked by
    validate_payroll_inputs, not by pydantic.
    """

    model_config = ConfigDict(extra="forbid")

    gross_pay_pence: int | None = None
    annual_salary_pence: int | None = Field(
        default=None, description="Used to derive gross_pay_pence when it is omitted"
    )
    tax_code: str | None = None
    pay_frequency: str | None = None
    tax_year: str | None = None
    pay_date: date | None = Field(
        default=None, description="Used to derive period_number and tax_year"
    )
    ni_category: str = "A"
    period_number: int | None = None
    cumulative_taxable_income_pence: int = 0
    cumulative_tax_paid_pence: int = 0
    cumulative_gross_pay_pence: int | None = None
    pension_opt_in: bool = False
    pension_contribution_basis_points: int = 0
    employer_pension_basis_points: int = 300
    pension_basis: str = "gross"
    pension_relief_at_source: bool = False
    student_loan_plan: str | None = None
    bonus_pence: int = 0
    commission_pence: int = 0
    other_deductions_pence: int = 0

    def to_engine_input(self, default_tax_year: str) -> dict[str, Any]:
        """Resolve derived fields and return the engine's input mapping.

        Raises:
            PayrollInputError: If ``pay_date`` falls outside an explicit
                ``tax_year``.
        """
        data = self.model_dump(exclude={"annual_salary_pence", "pay_date"})

        frequency = None
        if self.pay_frequency in {f.value for f in PayFrequency}:
            frequency = PayFrequency(self.pay_frequency)

        if data["gross_pay_pence"] is None and self.annual_salary_pence is not None and frequency:
            data["gross_pay_pence"] = periodize_amount(self.annual_salary_pence, frequency)

        if self.pay_date is not None:
            date_tax_year = tax_year_for_date(self.pay_date)
            if data["tax_year"] not in (None, date_tax_year):
                raise PayrollInputError(
                    {"pay_date": f"Falls in tax year {date_tax_year}, not {data['tax_year']}"}
                )
            data["tax_year"] = date_tax_year
        elif data["tax_year"] is None:
            data["tax_year"] = default_tax_year

        if data["period_number"] is None:
            data["period_number"] = (
                period_number_for_date(self.pay_date, frequency)
                if self.pay_date and frequency
                else 1
            )

        return data


class CalculationAmounts(BaseModel):
    """Monetary results of a calculation, in pence."""

    gross_pay_pence: int
    taxable_income_pence: int
    income_tax_pence: int
    employee_ni_pence: int
    employer_ni_pence: int
    student_loan_deduction_pence: int
    pension_employee_contribution_pence: int
    pension_employer_contribution_pence: int
    other_deductions_pence: int
    net_pay_pence: int
    new_cumulative_taxable_income_pence: int
    new_cumulative_tax_paid_pence: int
    new_cumulative_gross_pay_pence: int


class CalculationMeta(BaseModel):
    """Provenance of a calculation."""

    tax_year: str
    period_number: int
    calculation_id: UUID
    engine_version: str
    computed_at: datetime


class PayrollCalculationResponse(BaseModel):
    """Schema for calculation response."""

    calculation: CalculationAmounts
    breakdown: dict[str, Any]
    meta: CalculationMeta


class ValidationResultResponse(BaseModel):
    """Schema for validation response."""

    is_valid: bool
    errors: dict[str, str]


class PeriodizeResponse(BaseModel):
    """Schema for periodize response."""

    annual_amount_pence: int
    frequency: PayFrequency
    periods_per_year: int
    period_amount_pence: int


# ============================================================================
# Tax year schemas
# ============================================================================


class TaxYearListResponse(BaseModel):
    """Schema for listing available tax years."""

    tax_years: list[str]
    default_tax_year: str


class TaxYearTablesResponse(BaseModel):
    """Schema for one tax year's rates and thresholds."""

    tax_year: str
    start_date: date
    end_date: date
    source_url: str | None = None
    personal_allowance: dict[str, Any]
    income_tax: dict[str, Any]
    national_insurance: dict[str, Any]
    student_loan: dict[str, Any]
    pension: dict[str, Any]

    @classmethod
    def from_tables(cls, tables: TaxYearTables) -> "TaxYearTablesResponse":
        def rows(threshold: PeriodThreshold) -> dict[str, int]:
            return dict(threshold.rows)

        ni = tables.ni_thresholds
        return cls(
            tax_year=tables.tax_year,
            start_date=tables.start_date,
            end_date=tables.end_date,
            source_url=tables.source_url,
            personal_allowance={
                "amount_pence": tables.personal_allowance.amount_pence,
                "income_limit_pence": tables.personal_allowance.income_limit_pence,
                "taper_rate": str(tables.personal_allowance.taper_rate),
            },
            income_tax={
                regime: {
                    "bands": [
                        {
                            "name": band.name,
                            "lower_pence": band.lower_pence,
                            "upper_pence": band.upper_pence,
                            "rate": str(band.rate),
                        }
                        for band in schedule.bands
                    ],
                    "fixed_rates": {code: str(rate) for code, rate in schedule.fixed_rates.items()},
                }
                for regime, schedule in sorted(tables.income_tax.items())
            },
            national_insurance={
                "thresholds": {
                    "lower_earnings_limit": rows(ni.lower_earnings_limit),
                    "primary_threshold": rows(ni.primary_threshold),
                    "upper_earnings_limit": rows(ni.upper_earnings_limit),
                    "secondary_threshold": rows(ni.secondary_threshold),
                    "upper_secondary_threshold": rows(ni.upper_secondary_threshold),
                },
                "categories": {
                    letter: {
                        "employee_main_rate": str(rates.employee_main_rate),
                        "employee_upper_rate": str(rates.employee_upper_rate),
                        "employer_rate": str(rates.employer_rate),
                        "employer_relief_to_ust": rates.employer_relief_to_ust,
                    }
                    for letter, rates in sorted(tables.ni_categories.items())
                },
            },
            student_loan={
                plan: {"threshold_pence": terms.threshold_pence, "rate": str(terms.rate)}
                for plan, terms in sorted(tables.student_loans.items())
            },
            pension={
                "qualifying_earnings": {
                    "lower": rows(tables.qualifying_earnings.lower),
                    "upper": rows(tables.qualifying_earnings.upper),
                }
            },
        )


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None


class FieldError(BaseModel):
    """One invalid field."""

    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """Schema for validation error response."""

    detail: str
    code: str = "VALIDATION_ERROR"
    details: list[FieldError]
