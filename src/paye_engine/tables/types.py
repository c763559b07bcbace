"""Type definitions for per-tax-year rate tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping


class TaxTablesError(Exception):
    """Base class for tax table configuration problems."""


class UnsupportedTaxYearError(TaxTablesError):
    """Raised when no tables exist for the requested tax year."""

    def __init__(self, tax_year: str, available: list[str] | None = None):
        self.tax_year = tax_year
        self.available = sorted(available or [])
        msg = f"Unsupported tax year '{tax_year}'"
        if self.available:
            msg += f". Available: {', '.join(self.available)}"
        super().__init__(msg)


class TaxTablesConfigError(TaxTablesError):
    """Raised when a tax table payload is missing data or breaks an invariant."""

    def __init__(self, tax_year: str, reason: str):
        self.tax_year = tax_year
        self.reason = reason
        super().__init__(f"Invalid tax tables for {tax_year}: {reason}")


@dataclass(frozen=True)
class IncomeTaxBand:
    """A band of taxable income (income after allowance)."""

    name: str
    lower_pence: int
    upper_pence: int | None  # None = no upper limit
    rate: Decimal


@dataclass(frozen=True)
class IncomeTaxSchedule:
    """Bands and fixed-rate code rates for one tax regime."""

    regime: str
    bands: tuple[IncomeTaxBand, ...]
    fixed_rates: Mapping[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class PersonalAllowance:
    """Standard personal allowance and its taper."""

    amount_pence: int
    income_limit_pence: int
    taper_rate: Decimal


@dataclass(frozen=True)
class PeriodThreshold:
    """A threshold with a published row per pay frequency."""

    rows: Mapping[str, int]  # frequency value or "annual" -> pence

    def for_frequency(self, frequency: str) -> int:
        return self.rows[frequency]

    @property
    def annual(self) -> int:
        return self.rows["annual"]


@dataclass(frozen=True)
class NIThresholds:
    """Class 1 National Insurance thresholds."""

    lower_earnings_limit: PeriodThreshold
    primary_threshold: PeriodThreshold
    upper_earnings_limit: PeriodThreshold
    secondary_threshold: PeriodThreshold
    upper_secondary_threshold: PeriodThreshold


@dataclass(frozen=True)
class NICategoryRates:
    """Employee and employer rates for one NI category letter."""

    category: str
    employee_main_rate: Decimal
    employee_upper_rate: Decimal
    employer_rate: Decimal
    employer_relief_to_ust: bool = False


@dataclass(frozen=True)
class StudentLoanTerms:
    """Annual repayment threshold and rate for a student loan plan."""

    plan: str
    threshold_pence: int
    rate: Decimal


@dataclass(frozen=True)
class QualifyingEarnings:
    """Auto-enrolment qualifying earnings band."""

    lower: PeriodThreshold
    upper: PeriodThreshold


@dataclass(frozen=True)
class TaxYearTables:
    """All rates and thresholds for a single UK tax year.

    Tables are data, not logic: calculators read them, never branch on the
    tax year itself. Instances are immutable and safe to share between
    concurrent calculations.
    """

    tax_year: str
    start_date: date
    end_date: date
    personal_allowance: PersonalAllowance
    income_tax: Mapping[str, IncomeTaxSchedule]  # regime value -> schedule
    ni_thresholds: NIThresholds
    ni_categories: Mapping[str, NICategoryRates]
    student_loans: Mapping[str, StudentLoanTerms]
    qualifying_earnings: QualifyingEarnings
    source_url: str | None = None

    def __post_init__(self) -> None:
        # Freeze the mappings so a shared instance cannot drift mid-run
        for name in ("income_tax", "ni_categories", "student_loans"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def schedule_for(self, regime: str) -> IncomeTaxSchedule:
        """Get the income tax schedule for a regime."""
        try:
            return self.income_tax[regime]
        except KeyError:
            raise TaxTablesConfigError(
                self.tax_year, f"no income tax bands for regime '{regime}'"
            ) from None

    def ni_category(self, category: str) -> NICategoryRates:
        """Get NI rates for a category letter."""
        try:
            return self.ni_categories[category]
        except KeyError:
            raise TaxTablesConfigError(
                self.tax_year, f"no National Insurance rates for category '{category}'"
            ) from None

    def student_loan(self, plan: str) -> StudentLoanTerms:
        """Get repayment terms for a student loan plan."""
        try:
            return self.student_loans[plan]
        except KeyError:
            raise TaxTablesConfigError(
                self.tax_year, f"no student loan terms for plan '{plan}'"
            ) from None
