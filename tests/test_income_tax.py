"""Unit tests for IncomeTaxCalculator."""

from decimal import Decimal

import pytest

from paye_engine.calculators.income_tax import (
    IncomeTaxCalculator,
    banded_liability,
    reconstruct_cumulative_gross,
    scale_bands,
)
from paye_engine.calculators.tax_code import parse_tax_code
from paye_engine.calculators.types import PayFrequency
from paye_engine.tables.types import IncomeTaxBand

MONTHLY = PayFrequency.MONTHLY


def bands():
    return (
        IncomeTaxBand("basic", 0, 1000, Decimal("0.10")),
        IncomeTaxBand("higher", 1000, 5000, Decimal("0.20")),
        IncomeTaxBand("top", 5000, None, Decimal("0.50")),
    )


class TestBandedLiability:
    """Progressive banding."""

    def test_single_band(self):
        liability, rows = banded_liability(500, bands())
        assert liability == Decimal("50.00")
        assert [r.band for r in rows] == ["basic"]

    def test_multiple_bands(self):
        liability, rows = banded_liability(6000, bands())
        # 1000 @ 10% + 4000 @ 20% + 1000 @ 50%
        assert liability == Decimal("100") + Decimal("800") + Decimal("500")
        assert [(r.band, r.taxable_amount_pence) for r in rows] == [
            ("basic", 1000),
            ("higher", 4000),
            ("top", 1000),
        ]

    def test_zero_income(self):
        liability, rows = banded_liability(0, bands())
        assert liability == 0
        assert rows == ()

    def test_liability_is_not_rounded(self):
        liability, rows = banded_liability(5, bands())
        assert liability == Decimal("0.50")
        assert rows[0].tax_pence == 1  # display rounding only


class TestScaleBands:
    """Band limits scaled to a window of the year."""

    def test_scales_and_rounds_half_up(self, tables):
        scaled = scale_bands(tables.schedule_for("standard").bands, 1, 12)
        # 3770000 / 12 = 314166.67, 12514000 / 12 = 1042833.33
        assert [(b.lower_pence, b.upper_pence) for b in scaled] == [
            (0, 314167),
            (314167, 1042833),
            (1042833, None),
        ]

    def test_full_year_is_unchanged(self, tables):
        original = tables.schedule_for("scottish").bands
        assert scale_bands(original, 12, 12) == original


class TestCumulativeTax:
    """Cumulative (year-to-date) codes."""

    def test_first_month(self, tables):
        """1257L, £3,000 in month 1: £1,952.50 taxable at 20%."""
        result = IncomeTaxCalculator(tables).calculate(parse_tax_code("1257L"), MONTHLY, 300000)
        assert result.allowance_pence == 104750
        assert result.taxable_income_pence == 195250
        assert result.tax_pence == 39050
        assert result.cumulative is True
        assert result.refund_withheld_pence == 0

    def test_second_month_with_carried_totals(self, tables):
        result = IncomeTaxCalculator(tables).calculate(
            parse_tax_code("1257L"),
            MONTHLY,
            300000,
            period_number=2,
            cumulative_taxable_income_pence=195250,
            cumulative_tax_paid_pence=39050,
            cumulative_gross_pay_pence=300000,
        )
        assert result.allowance_pence == 209500
        assert result.taxable_income_to_date_pence == 390500
        assert result.liability_to_date_pence == 78100
        assert result.taxable_income_pence == 195250
        assert result.tax_pence == 39050

    def test_reconstructs_gross_to_date_when_missing(self, tables):
        """Without cumulative gross, prior gross is taxable to date plus prior allowance."""
        calc = IncomeTaxCalculator(tables)
        parsed = parse_tax_code("1257L")
        with_gross = calc.calculate(parsed, MONTHLY, 300000, 2, 195250, 39050, 300000)
        without_gross = calc.calculate(parsed, MONTHLY, 300000, 2, 195250, 39050, None)
        assert with_gross == without_gross

    def test_refund_is_withheld(self, tables):
        """A pay cut after tax was paid gives zero tax, not a refund."""
        result = IncomeTaxCalculator(tables).calculate(
            parse_tax_code("1257L"),
            MONTHLY,
            0,
            period_number=2,
            cumulative_taxable_income_pence=195250,
            cumulative_tax_paid_pence=39050,
            cumulative_gross_pay_pence=300000,
        )
        # To date: 300000 - 209500 = 90500 taxable, liability 18100
        assert result.tax_pence == 0
        assert result.refund_withheld_pence == 39050 - 18100
        assert result.taxable_income_pence == 0

    def test_zero_t_taxes_all_pay(self, tables):
        result = IncomeTaxCalculator(tables).calculate(parse_tax_code("0T"), MONTHLY, 300000)
        assert result.taxable_income_pence == 300000
        assert result.tax_pence == 60000

    def test_k_code_adds_to_taxable_pay(self, tables):
        result = IncomeTaxCalculator(tables).calculate(parse_tax_code("K475"), MONTHLY, 300000)
        # 300000 + 39583 = 339583; 314167 @ 20% + 25416 @ 40% = 72999.8
        assert result.taxable_income_pence == 339583
        assert result.tax_pence == 73000

    def test_scottish_bands(self, tables):
        result = IncomeTaxCalculator(tables).calculate(parse_tax_code("S1257L"), MONTHLY, 300000)
        # starter 23558 @ 19%, basic 100784 @ 20%, intermediate 70908 @ 21% = 39523.50
        assert [row.band for row in result.bands] == ["starter", "basic", "intermediate"]
        assert result.tax_pence == 39524

    def test_welsh_matches_standard(self, tables):
        calc = IncomeTaxCalculator(tables)
        welsh = calc.calculate(parse_tax_code("C1257L"), MONTHLY, 500000)
        standard = calc.calculate(parse_tax_code("1257L"), MONTHLY, 500000)
        assert welsh.tax_pence == standard.tax_pence


class TestNonCumulativeTax:
    """W1/M1/X codes."""

    def test_month_one_basis_ignores_history(self, tables):
        result = IncomeTaxCalculator(tables).calculate(
            parse_tax_code("1257LM1"),
            MONTHLY,
            300000,
            period_number=7,
            cumulative_taxable_income_pence=999999,
            cumulative_tax_paid_pence=999999,
        )
        assert result.cumulative is False
        assert result.allowance_pence == 104750
        assert result.taxable_income_pence == 195250
        assert result.tax_pence == 39050

    def test_higher_rate(self, tables):
        result = IncomeTaxCalculator(tables).calculate(parse_tax_code("1257LM1"), MONTHLY, 1000000)
        # 895250 taxable: 314167 @ 20% + 581083 @ 40% = 295266.6
        assert result.tax_pence == 295267

    def test_k_code_non_cumulative(self, tables):
        result = IncomeTaxCalculator(tables).calculate(parse_tax_code("K475M1"), MONTHLY, 300000)
        assert result.tax_pence == 73000


class TestFixedRateCodes:
    """BR, D0, D1 and NT."""

    def test_br_weekly(self, tables):
        """BR on £500 a week is exactly £100."""
        result = IncomeTaxCalculator(tables).calculate(
            parse_tax_code("BR"), PayFrequency.WEEKLY, 50000,
            period_number=30, cumulative_taxable_income_pence=123456,
            cumulative_tax_paid_pence=65432,
        )
        assert result.tax_pence == 10000
        assert result.fixed_rate == Decimal("0.20")
        assert result.taxable_income_pence == 50000

    @pytest.mark.parametrize(
        "code,expected",
        [("D0", 40000), ("D1", 45000), ("SD0", 21000), ("SD1", 42000), ("SBR", 20000)],
    )
    def test_fixed_rates_by_regime(self, tables, code, expected):
        result = IncomeTaxCalculator(tables).calculate(parse_tax_code(code), MONTHLY, 100000)
        assert result.tax_pence == expected

    def test_fixed_rate_rounds_half_up(self, tables):
        # 20% of 3 pence is 0.6, of 1 penny 0.2
        calc = IncomeTaxCalculator(tables)
        assert calc.calculate(parse_tax_code("BR"), MONTHLY, 3).tax_pence == 1
        assert calc.calculate(parse_tax_code("BR"), MONTHLY, 1).tax_pence == 0

    def test_no_tax(self, tables):
        result = IncomeTaxCalculator(tables).calculate(parse_tax_code("NT"), MONTHLY, 10000000)
        assert result.tax_pence == 0
        assert result.taxable_income_pence == 10000000


class TestReconstructCumulativeGross:
    """Estimated gross to the end of the previous period."""

    def test_first_period_has_no_prior_allowance(self):
        assert reconstruct_cumulative_gross(parse_tax_code("1257L"), MONTHLY, 1, 0) == 0

    def test_adds_prior_allowance(self):
        assert reconstruct_cumulative_gross(parse_tax_code("1257L"), MONTHLY, 3, 1000) == 1000 + 209500

    def test_k_code_never_negative(self):
        assert reconstruct_cumulative_gross(parse_tax_code("K475"), MONTHLY, 3, 0) == 0
