"""Pre-flight validation of payroll calculation inputs.

Validation collects every problem instead of stopping at the first one, so a
caller can show all field errors together. It never raises; the engine turns
an invalid result into PayrollInputError.
"""

from __future__ import annotations

import re
from dataclasses import MISSING, dataclass, field, fields
from enum import Enum
from typing import Any, Mapping

from paye_engine.calculators.allowance import allowance_to_date
from paye_engine.calculators.tax_code import is_valid_tax_code, parse_tax_code
from paye_engine.calculators.types import (
    NICategory,
    PayFrequency,
    PayrollCalculationInput,
    PensionBasis,
    StudentLoanPlan,
)

TAX_YEAR_PATTERN = re.compile(r"^\d{4}-\d{2}$")

MAX_BASIS_POINTS = 10000

NON_NEGATIVE_PENCE_FIELDS = (
    "gross_pay_pence",
    "bonus_pence",
    "commission_pence",
    "other_deductions_pence",
    "cumulative_tax_paid_pence",
)

REQUIRED_FIELDS = tuple(
    f.name
    for f in fields(PayrollCalculationInput)
    if f.default is MISSING and f.default_factory is MISSING
)

DEFAULTS = {
    f.name: f.default for f in fields(PayrollCalculationInput) if f.default is not MISSING
}


class PayrollInputError(ValueError):
    """Raised by the engine when inputs fail validation."""

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        detail = "; ".join(f"{name}: {message}" for name, message in sorted(self.errors.items()))
        super().__init__(f"Invalid payroll input: {detail}")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one input."""

    is_valid: bool
    errors: dict[str, str] = field(default_factory=dict)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _enum_member(enum_cls: type[Enum], value: Any) -> Enum | None:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _allowed(enum_cls: type[Enum]) -> str:
    return ", ".join(member.value for member in enum_cls)


def input_as_dict(data: PayrollCalculationInput | Mapping[str, Any]) -> dict[str, Any]:
    """Field values with defaults applied for anything a mapping leaves out."""
    if isinstance(data, PayrollCalculationInput):
        return {f.name: getattr(data, f.name) for f in fields(data)}
    return {**DEFAULTS, **dict(data)}


def validate_payroll_inputs(data: PayrollCalculationInput | Mapping[str, Any]) -> ValidationResult:
    """Check structure and ranges of a calculation input.

    Does not check whether tables exist for the tax year; that is a
    configuration problem reported by the engine.
    """
    if not isinstance(data, (PayrollCalculationInput, Mapping)):
        return ValidationResult(
            is_valid=False,
            errors={"input": "Expected a PayrollCalculationInput or a mapping"},
        )

    values = input_as_dict(data)
    errors: dict[str, str] = {}

    known = {f.name for f in fields(PayrollCalculationInput)}
    for name in sorted(set(values) - known):
        errors[name] = "Unknown field"

    for name in REQUIRED_FIELDS:
        if values.get(name) is None:
            errors[name] = "This field is required"

    for name in NON_NEGATIVE_PENCE_FIELDS:
        value = values.get(name)
        if name in errors:
            continue
        if not _is_int(value):
            errors[name] = "Must be an integer amount in pence"
        elif value < 0:
            errors[name] = "Must not be negative"

    cumulative_gross = values.get("cumulative_gross_pay_pence")
    if cumulative_gross is not None:
        if not _is_int(cumulative_gross):
            errors["cumulative_gross_pay_pence"] = "Must be an integer amount in pence"
        elif cumulative_gross < 0:
            errors["cumulative_gross_pay_pence"] = "Must not be negative"

    tax_code = values.get("tax_code")
    if "tax_code" not in errors and not is_valid_tax_code(tax_code):
        errors["tax_code"] = f"Invalid tax code: {tax_code!r}"

    tax_year = values.get("tax_year")
    if "tax_year" not in errors and not (
        isinstance(tax_year, str) and TAX_YEAR_PATTERN.match(tax_year)
    ):
        errors["tax_year"] = "Must be a tax year like '2025-26'"

    frequency = _enum_member(PayFrequency, values.get("pay_frequency"))
    if "pay_frequency" not in errors and frequency is None:
        errors["pay_frequency"] = f"Must be one of: {_allowed(PayFrequency)}"

    if _enum_member(NICategory, values.get("ni_category")) is None:
        errors["ni_category"] = f"Must be one of: {_allowed(NICategory)}"

    plan = values.get("student_loan_plan")
    if plan is not None and _enum_member(StudentLoanPlan, plan) is None:
        errors["student_loan_plan"] = f"Must be one of: {_allowed(StudentLoanPlan)}"

    if _enum_member(PensionBasis, values.get("pension_basis")) is None:
        errors["pension_basis"] = f"Must be one of: {_allowed(PensionBasis)}"

    for name in ("pension_opt_in", "pension_relief_at_source"):
        if not isinstance(values.get(name), bool):
            errors[name] = "Must be true or false"

    period_number = values.get("period_number")
    if not _is_int(period_number):
        errors["period_number"] = "Must be an integer"
    elif frequency is not None and not 1 <= period_number <= frequency.periods_per_year:
        errors["period_number"] = (
            f"Must be between 1 and {frequency.periods_per_year} for {frequency.value} pay"
        )
    elif period_number < 1:
        errors["period_number"] = "Must be at least 1"

    cumulative_taxable = values.get("cumulative_taxable_income_pence")
    if not _is_int(cumulative_taxable):
        errors["cumulative_taxable_income_pence"] = "Must be an integer amount in pence"
    elif cumulative_taxable < 0:
        lowest = _lowest_cumulative_taxable(values, frequency, errors)
        if lowest is None or cumulative_taxable < lowest:
            errors["cumulative_taxable_income_pence"] = (
                f"Must not be below {lowest}" if lowest else "Must not be negative"
            )

    for name in ("pension_contribution_basis_points", "employer_pension_basis_points"):
        value = values.get(name)
        if not _is_int(value):
            errors[name] = "Must be an integer number of basis points"
        elif not 0 <= value <= MAX_BASIS_POINTS:
            errors[name] = f"Must be between 0 and {MAX_BASIS_POINTS}"

    return ValidationResult(is_valid=not errors, errors=errors)


def _lowest_cumulative_taxable(
    values: dict[str, Any], frequency: PayFrequency | None, errors: dict[str, str]
) -> int | None:
    """Carried taxable income can fall to minus the allowance used so far."""
    if frequency is None or "tax_code" in errors or "period_number" in errors:
        return None
    parsed = parse_tax_code(values["tax_code"])
    return min(0, -allowance_to_date(parsed, frequency, values["period_number"] - 1))


def build_input(data: PayrollCalculationInput | Mapping[str, Any]) -> PayrollCalculationInput:
    """Validate and return a normalized PayrollCalculationInput.

    Enum fields are converted to their enum members and the tax code is
    left as given (the parser normalizes it).

    Raises:
        PayrollInputError: If validation fails.
    """
    result = validate_payroll_inputs(data)
    if not result.is_valid:
        raise PayrollInputError(result.errors)

    values = input_as_dict(data)
    plan = values["student_loan_plan"]
    values.update(
        pay_frequency=PayFrequency(values["pay_frequency"]),
        ni_category=NICategory(values["ni_category"]),
        student_loan_plan=StudentLoanPlan(plan) if plan is not None else None,
        pension_basis=PensionBasis(values["pension_basis"]),
    )
    return PayrollCalculationInput(**values)
