"""PAYE calculation engine."""

from paye_engine.calculators.engine import (
    PayrollEngine,
    calculate_payroll,
    generate_calculation_id,
)
from paye_engine.calculators.periods import (
    annualize_amount,
    period_number_for_date,
    periodize_amount,
    tax_year_for_date,
)
from paye_engine.calculators.tax_code import (
    InvalidTaxCodeError,
    is_valid_tax_code,
    parse_tax_code,
)
from paye_engine.calculators.types import (
    NICategory,
    ParsedTaxCode,
    PayFrequency,
    PayrollCalculationInput,
    PayrollCalculationResult,
    PensionBasis,
    StudentLoanPlan,
    TaxRegime,
)
from paye_engine.calculators.validation import (
    PayrollInputError,
    ValidationResult,
    build_input,
    validate_payroll_inputs,
)

__all__ = [
    "PayrollEngine",
    "calculate_payroll",
    "generate_calculation_id",
    "annualize_amount",
    "period_number_for_date",
    "periodize_amount",
    "tax_year_for_date",
    "InvalidTaxCodeError",
    "is_valid_tax_code",
    "parse_tax_code",
    "NICategory",
    "ParsedTaxCode",
    "PayFrequency",
    "PayrollCalculationInput",
    "PayrollCalculationResult",
    "PensionBasis",
    "StudentLoanPlan",
    "TaxRegime",
    "PayrollInputError",
    "ValidationResult",
    "build_input",
    "validate_payroll_inputs",
]
