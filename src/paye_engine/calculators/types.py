"""Type definitions for the PAYE calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any


class TaxRegime(str, Enum):
    """Income tax regime, selected by the tax code prefix."""

    STANDARD = "standard"
    SCOTTISH = "scottish"
    WELSH = "welsh"


class PayFrequency(str, Enum):
    """Pay frequency."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @property
    def periods_per_year(self) -> int:
        return _PERIODS_PER_YEAR[self.value]


_PERIODS_PER_YEAR = {"weekly": 52, "biweekly": 26, "monthly": 12}


class NICategory(str, Enum):
    """National Insurance category letter."""

    A = "A"
    B = "B"
    C = "C"
    H = "H"
    J = "J"
    M = "M"
    Z = "Z"

    @property
    def description(self) -> str:
        return _NI_CATEGORY_DESCRIPTIONS[self.value]


_NI_CATEGORY_DESCRIPTIONS = {
    "A": "Standard rate",
    "B": "Married women and widows reduced rate",
    "C": "Over State Pension age",
    "H": "Apprentice under 25",
    "J": "Deferred",
    "M": "Under 21",
    "Z": "Under 21, deferred",
}


class StudentLoanPlan(str, Enum):
    """Student loan repayment plan."""

    PLAN1 = "plan1"
    PLAN2 = "plan2"
    PLAN4 = "plan4"
    PLAN5 = "plan5"
    POSTGRAD = "postgrad"


class PensionBasis(str, Enum):
    """What counts as pensionable pay."""

    GROSS = "gross"
    QUALIFYING_EARNINGS = "qualifying_earnings"


@dataclass(frozen=True)
class ParsedTaxCode:
    """A tax code decoded into its computation parameters."""

    raw_code: str
    regime: TaxRegime
    allowance_pence: int | None = None  # negative for K codes
    fixed_rate: Decimal | None = None  # resolved from tables by the engine
    fixed_code: str | None = None  # BR, D0, D1, NT or 0T
    suffix: str | None = None  # L, M, N, P, T, Y
    is_negative_allowance: bool = False
    cumulative: bool = True
    no_tax: bool = False

    @property
    def is_fixed_rate(self) -> bool:
        return self.fixed_code in ("BR", "D0", "D1")

    @property
    def annual_allowance_pence(self) -> int:
        """Annual allowance, zero for codes without one."""
        return self.allowance_pence or 0


@dataclass(frozen=True)
class PayrollCalculationInput:
    """Everything needed to calculate one employee's pay period.

    All money is integer pence. ``cumulative_*`` figures are year-to-date
    totals up to the end of the previous period, as returned by the previous
    calculation. On a cumulative code the carried taxable income is pay to
    date less allowance to date without a floor, so it is negative while the
    allowance to date exceeds pay to date.
    """

    gross_pay_pence: int
    tax_code: str
    pay_frequency: PayFrequency | str
    tax_year: str
    ni_category: NICategory | str = NICategory.A
    period_number: int = 1
    cumulative_taxable_income_pence: int = 0
    cumulative_tax_paid_pence: int = 0
    pension_opt_in: bool = False
    pension_contribution_basis_points: int = 0
    employer_pension_basis_points: int = 300
    student_loan_plan: StudentLoanPlan | str | None = None
    bonus_pence: int = 0
    commission_pence: int = 0
    other_deductions_pence: int = 0
    cumulative_gross_pay_pence: int | None = None
    pension_basis: PensionBasis | str = PensionBasis.GROSS
    pension_relief_at_source: bool = False

    @property
    def total_gross_pence(self) -> int:
        return self.gross_pay_pence + self.bonus_pence + self.commission_pence

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "gross_pay_pence": self.gross_pay_pence,
            "tax_code": self.tax_code,
            "pay_frequency": _enum_value(self.pay_frequency),
            "tax_year": self.tax_year,
            "ni_category": _enum_value(self.ni_category),
            "period_number": self.period_number,
            "cumulative_taxable_income_pence": self.cumulative_taxable_income_pence,
            "cumulative_tax_paid_pence": self.cumulative_tax_paid_pence,
            "pension_opt_in": self.pension_opt_in,
            "pension_contribution_basis_points": self.pension_contribution_basis_points,
            "employer_pension_basis_points": self.employer_pension_basis_points,
            "student_loan_plan": _enum_value(self.student_loan_plan),
            "bonus_pence": self.bonus_pence,
            "commission_pence": self.commission_pence,
            "other_deductions_pence": self.other_deductions_pence,
            "cumulative_gross_pay_pence": self.cumulative_gross_pay_pence,
            "pension_basis": _enum_value(self.pension_basis),
            "pension_relief_at_source": self.pension_relief_at_source,
        }


@dataclass(frozen=True)
class IncomeTaxBandResult:
    """Tax charged in one band, for display."""

    band: str
    rate: Decimal
    taxable_amount_pence: int
    tax_pence: int


@dataclass(frozen=True)
class IncomeTaxResult:
    """Income tax for the period and how it was reached."""

    tax_pence: int
    taxable_income_pence: int
    regime: TaxRegime
    cumulative: bool
    allowance_pence: int  # to date when cumulative, for the period otherwise
    taxable_income_to_date_pence: int | None = None
    liability_to_date_pence: int | None = None
    refund_withheld_pence: int = 0
    fixed_rate: Decimal | None = None
    bands: tuple[IncomeTaxBandResult, ...] = ()


@dataclass(frozen=True)
class NationalInsuranceResult:
    """Class 1 NI for the period with LEL/PT/UEL earnings buckets."""

    category: NICategory
    employee_pence: int
    employer_pence: int
    earnings_to_lel_pence: int = 0
    earnings_lel_to_pt_pence: int = 0
    earnings_pt_to_uel_pence: int = 0
    earnings_above_uel_pence: int = 0


@dataclass(frozen=True)
class StudentLoanResult:
    """Student loan deduction for the period."""

    plan: StudentLoanPlan | None
    deduction_pence: int = 0
    period_threshold_pence: int = 0


@dataclass(frozen=True)
class PensionResult:
    """Pension contributions for the period."""

    opted_in: bool
    basis: PensionBasis
    pensionable_pay_pence: int = 0
    employee_pence: int = 0
    employer_pence: int = 0
    relief_at_source: bool = False
    tax_relief_pence: int = 0  # claimed by the scheme from HMRC
    employee_net_deduction_pence: int = 0


@dataclass(frozen=True)
class PayrollBreakdown:
    """Per-component detail behind a PayrollCalculationResult."""

    tax_code: ParsedTaxCode
    income_tax: IncomeTaxResult
    national_insurance: NationalInsuranceResult
    student_loan: StudentLoanResult
    pension: PensionResult

    def to_dict(self) -> dict[str, Any]:
        it = self.income_tax
        ni = self.national_insurance
        return {
            "tax_code": {
                "raw_code": self.tax_code.raw_code,
                "regime": self.tax_code.regime.value,
                "allowance_pence": self.tax_code.allowance_pence,
                "fixed_code": self.tax_code.fixed_code,
                "suffix": self.tax_code.suffix,
                "fixed_rate": (
                    str(self.tax_code.fixed_rate) if self.tax_code.fixed_rate is not None else None
                ),
                "is_negative_allowance": self.tax_code.is_negative_allowance,
                "cumulative": self.tax_code.cumulative,
                "no_tax": self.tax_code.no_tax,
            },
            "income_tax": {
                "tax_pence": it.tax_pence,
                "taxable_income_pence": it.taxable_income_pence,
                "regime": it.regime.value,
                "cumulative": it.cumulative,
                "allowance_pence": it.allowance_pence,
                "taxable_income_to_date_pence": it.taxable_income_to_date_pence,
                "liability_to_date_pence": it.liability_to_date_pence,
                "refund_withheld_pence": it.refund_withheld_pence,
                "fixed_rate": str(it.fixed_rate) if it.fixed_rate is not None else None,
                "bands": [
                    {
                        "band": b.band,
                        "rate": str(b.rate),
                        "taxable_amount_pence": b.taxable_amount_pence,
                        "tax_pence": b.tax_pence,
                    }
                    for b in it.bands
                ],
            },
            "national_insurance": {
                "category": ni.category.value,
                "employee_pence": ni.employee_pence,
                "employer_pence": ni.employer_pence,
                "earnings_to_lel_pence": ni.earnings_to_lel_pence,
                "earnings_lel_to_pt_pence": ni.earnings_lel_to_pt_pence,
                "earnings_pt_to_uel_pence": ni.earnings_pt_to_uel_pence,
                "earnings_above_uel_pence": ni.earnings_above_uel_pence,
            },
            "student_loan": {
                "plan": _enum_value(self.student_loan.plan),
                "deduction_pence": self.student_loan.deduction_pence,
                "period_threshold_pence": self.student_loan.period_threshold_pence,
            },
            "pension": {
                "opted_in": self.pension.opted_in,
                "basis": self.pension.basis.value,
                "pensionable_pay_pence": self.pension.pensionable_pay_pence,
                "employee_pence": self.pension.employee_pence,
                "employer_pence": self.pension.employer_pence,
                "relief_at_source": self.pension.relief_at_source,
                "tax_relief_pence": self.pension.tax_relief_pence,
                "employee_net_deduction_pence": self.pension.employee_net_deduction_pence,
            },
        }


@dataclass(frozen=True)
class PayrollCalculationResult:
    """Gross-to-net for one period plus updated year-to-date totals."""

    gross_pay_pence: int  # base + bonus + commission
    taxable_income_pence: int
    income_tax_pence: int
    employee_ni_pence: int
    employer_ni_pence: int
    student_loan_deduction_pence: int
    pension_employee_contribution_pence: int
    pension_employer_contribution_pence: int
    other_deductions_pence: int
    net_pay_pence: int  # may be negative
    new_cumulative_taxable_income_pence: int
    new_cumulative_tax_paid_pence: int
    new_cumulative_gross_pay_pence: int
    breakdown: PayrollBreakdown = field(repr=False)

    @property
    def total_deductions_pence(self) -> int:
        return (
            self.income_tax_pence
            + self.employee_ni_pence
            + self.student_loan_deduction_pence
            + self.pension_employee_contribution_pence
            + self.other_deductions_pence
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dict; identical results give identical dicts."""
        return {
            "gross_pay_pence": self.gross_pay_pence,
            "taxable_income_pence": self.taxable_income_pence,
            "income_tax_pence": self.income_tax_pence,
            "employee_ni_pence": self.employee_ni_pence,
            "employer_ni_pence": self.employer_ni_pence,
            "student_loan_deduction_pence": self.student_loan_deduction_pence,
            "pension_employee_contribution_pence": self.pension_employee_contribution_pence,
            "pension_employer_contribution_pence": self.pension_employer_contribution_pence,
            "other_deductions_pence": self.other_deductions_pence,
            "net_pay_pence": self.net_pay_pence,
            "new_cumulative_taxable_income_pence": self.new_cumulative_taxable_income_pence,
            "new_cumulative_tax_paid_pence": self.new_cumulative_tax_paid_pence,
            "new_cumulative_gross_pay_pence": self.new_cumulative_gross_pay_pence,
            "breakdown": self.breakdown.to_dict(),
        }


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value
