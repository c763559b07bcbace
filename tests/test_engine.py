"""Unit tests for the PAYE calculation engine."""

import json

import pytest

from paye_engine.calculators.engine import (
    PayrollEngine,
    calculate_payroll,
    generate_calculation_id,
)
from paye_engine.calculators.types import PayFrequency
from paye_engine.calculators.validation import PayrollInputError
from paye_engine.tables.types import TaxTablesConfigError, UnsupportedTaxYearError


def net_from(result):
    return (
        result.gross_pay_pence
        - result.income_tax_pence
        - result.employee_ni_pence
        - result.student_loan_deduction_pence
        - result.pension_employee_contribution_pence
        - result.other_deductions_pence
    )


class TestReferenceScenarios:
    """Known pay slips."""

    def test_monthly_1257l_first_period(self, make_input):
        """£3,000 in month 1 on 1257L."""
        result = calculate_payroll(make_input())

        assert result.gross_pay_pence == 300000
        assert result.breakdown.income_tax.allowance_pence == 104750
        assert result.taxable_income_pence == 195250
        assert result.income_tax_pence == 39050
        assert result.employee_ni_pence == 15616
        assert result.employer_ni_pence == 38745
        assert result.student_loan_deduction_pence == 0
        assert result.pension_employee_contribution_pence == 0
        assert result.net_pay_pence == 300000 - 39050 - 15616
        assert result.new_cumulative_taxable_income_pence == 195250
        assert result.new_cumulative_tax_paid_pence == 39050
        assert result.new_cumulative_gross_pay_pence == 300000

    def test_br_weekly(self, make_input):
        """BR on £500 a week is £100 whatever the year to date."""
        result = calculate_payroll(
            make_input(
                tax_code="BR",
                pay_frequency="weekly",
                gross_pay_pence=50000,
                period_number=20,
                cumulative_taxable_income_pence=1000000,
                cumulative_tax_paid_pence=200000,
            )
        )
        assert result.income_tax_pence == 10000
        assert result.breakdown.tax_code.fixed_rate is not None

    def test_nt_pays_no_tax(self, make_input):
        result = calculate_payroll(make_input(tax_code="NT", gross_pay_pence=1000000))
        assert result.income_tax_pence == 0
        assert result.employee_ni_pence > 0

    def test_all_deductions(self, make_input):
        result = calculate_payroll(
            make_input(
                student_loan_plan="plan2",
                pension_opt_in=True,
                pension_contribution_basis_points=500,
            )
        )
        # plan2: (300000 - 237250) @ 9% = 5647.5, floored
        assert result.student_loan_deduction_pence == 5647
        assert result.pension_employee_contribution_pence == 15000
        assert result.pension_employer_contribution_pence == 9000
        assert result.net_pay_pence == 300000 - 39050 - 15616 - 5647 - 15000

    def test_relief_at_source_leaves_net_pay_formula(self, make_input):
        result = calculate_payroll(
            make_input(
                pension_opt_in=True,
                pension_contribution_basis_points=500,
                pension_relief_at_source=True,
            )
        )
        pension = result.breakdown.pension
        assert pension.tax_relief_pence == 3750
        assert pension.employee_net_deduction_pence == 11250
        assert result.pension_employee_contribution_pence == 15000
        assert result.net_pay_pence == 300000 - 39050 - 15616 - 15000
        assert result.to_dict()["breakdown"]["pension"]["tax_relief_pence"] == 3750

    def test_breakdown_shows_resolved_tax_code(self, make_input):
        fixed = calculate_payroll(make_input(tax_code="SD1")).to_dict()["breakdown"]
        assert fixed["tax_code"]["fixed_rate"] == "0.42"
        assert fixed["income_tax"]["fixed_rate"] == "0.42"

        k_code = calculate_payroll(make_input(tax_code="K475")).to_dict()["breakdown"]
        assert k_code["tax_code"]["is_negative_allowance"] is True
        assert k_code["tax_code"]["fixed_rate"] is None

    def test_bonus_and_commission_are_pay(self, make_input):
        split = calculate_payroll(
            make_input(gross_pay_pence=200000, bonus_pence=60000, commission_pence=40000)
        )
        whole = calculate_payroll(make_input(gross_pay_pence=300000))
        assert split.gross_pay_pence == 300000
        assert split.income_tax_pence == whole.income_tax_pence
        assert split.employee_ni_pence == whole.employee_ni_pence
        assert split.net_pay_pence == whole.net_pay_pence

    def test_previous_tax_year(self, make_input):
        result = calculate_payroll(make_input(tax_year="2024-25"))
        assert result.income_tax_pence == 39050
        assert result.employer_ni_pence == 30940

    def test_net_pay_may_be_negative(self, make_input):
        result = calculate_payroll(make_input(other_deductions_pence=400000))
        assert result.net_pay_pence == 300000 - 39050 - 15616 - 400000


class TestCumulativeYear:
    """Carrying totals from one period to the next."""

    def run_year(self, make_input, pays, carry_gross=True):
        taxable = tax = gross = 0
        results = []
        for period, pay in enumerate(pays, start=1):
            result = calculate_payroll(
                make_input(
                    gross_pay_pence=pay,
                    period_number=period,
                    cumulative_taxable_income_pence=taxable,
                    cumulative_tax_paid_pence=tax,
                    cumulative_gross_pay_pence=gross if carry_gross else None,
                )
            )
            taxable = result.new_cumulative_taxable_income_pence
            tax = result.new_cumulative_tax_paid_pence
            gross = result.new_cumulative_gross_pay_pence
            results.append(result)
        return results

    def test_steady_pay_matches_annual_liability(self, make_input):
        """£36,000 a year: (36000 - 12570) @ 20% = £4,686."""
        results = self.run_year(make_input, [300000] * 12)
        assert results[-1].new_cumulative_tax_paid_pence == 468600
        assert all(r.income_tax_pence == 39050 for r in results)

    def test_reconstructed_gross_gives_same_result(self, make_input):
        carried = self.run_year(make_input, [300000] * 12)
        reconstructed = self.run_year(make_input, [300000] * 12, carry_gross=False)
        assert [r.to_dict() for r in carried] == [r.to_dict() for r in reconstructed]

    def test_low_month_with_taxable_and_tax_only(self, make_input):
        """Allowance unused in a low month is available in the next one."""
        results = self.run_year(make_input, [50000, 300000], carry_gross=False)

        assert results[0].income_tax_pence == 0
        assert results[0].new_cumulative_taxable_income_pence == 50000 - 104750
        # (350000 - 209500) @ 20%
        assert results[1].income_tax_pence == 28100
        assert results[1].taxable_income_pence == 140500

    def test_uneven_pay_needs_no_cumulative_gross(self, make_input):
        pays = [0, 50000, 400000, 120000, 0, 900000, 300000, 0, 0, 250000, 80000, 300000]
        carried = self.run_year(make_input, pays)
        reconstructed = self.run_year(make_input, pays, carry_gross=False)
        assert [r.to_dict() for r in carried] == [r.to_dict() for r in reconstructed]

    def test_k_code_carried_taxable_stays_positive(self, make_input):
        results = self.run_year(
            lambda **kw: make_input(tax_code="K475", **kw), [0, 100000], carry_gross=False
        )
        # K475 adds 4750 / 12 = 395.83 a month to taxable pay
        assert results[0].new_cumulative_taxable_income_pence == 39583
        assert results[1].new_cumulative_gross_pay_pence == 100000

    def test_tax_paid_never_decreases(self, make_input):
        pays = [500000, 500000, 100000, 0, 0, 300000, 800000, 0, 200000, 200000, 0, 1000000]
        results = self.run_year(make_input, pays)
        paid = [r.new_cumulative_tax_paid_pence for r in results]
        assert paid == sorted(paid)
        assert all(r.income_tax_pence >= 0 for r in results)

    def test_pay_cut_withholds_refund(self, make_input):
        results = self.run_year(make_input, [800000, 0])
        assert results[1].income_tax_pence == 0
        assert results[1].breakdown.income_tax.refund_withheld_pence > 0

    def test_non_cumulative_code_still_accumulates(self, make_input):
        first = calculate_payroll(make_input(tax_code="1257LM1"))
        second = calculate_payroll(
            make_input(
                tax_code="1257LM1",
                period_number=2,
                cumulative_taxable_income_pence=first.new_cumulative_taxable_income_pence,
                cumulative_tax_paid_pence=first.new_cumulative_tax_paid_pence,
            )
        )
        assert second.income_tax_pence == first.income_tax_pence
        assert second.new_cumulative_tax_paid_pence == 2 * first.income_tax_pence
        assert second.new_cumulative_taxable_income_pence == 2 * first.taxable_income_pence


class TestProperties:
    """Invariants over many inputs."""

    @pytest.mark.parametrize("tax_code", ["1257L", "K475", "BR", "D1", "NT", "0T", "S1257LW1"])
    @pytest.mark.parametrize("frequency", ["weekly", "biweekly", "monthly"])
    def test_net_pay_formula(self, make_input, tax_code, frequency):
        for gross in (0, 12345, 250000, 1500000):
            result = calculate_payroll(
                make_input(
                    tax_code=tax_code,
                    pay_frequency=frequency,
                    gross_pay_pence=gross,
                    bonus_pence=1000,
                    other_deductions_pence=500,
                    student_loan_plan="plan1",
                    pension_opt_in=True,
                    pension_contribution_basis_points=400,
                )
            )
            assert result.net_pay_pence == net_from(result)

    def test_idempotent(self, make_input):
        inp = make_input(student_loan_plan="postgrad", pension_opt_in=True)
        assert calculate_payroll(inp).to_dict() == calculate_payroll(inp).to_dict()

    def test_result_is_json_serializable(self, make_input):
        result = calculate_payroll(make_input(tax_code="SD0"))
        json.dumps(result.to_dict())

    def test_tax_and_ni_monotonic_in_gross(self, make_input):
        previous_tax = previous_ni = 0
        for gross in range(0, 2000001, 25000):
            result = calculate_payroll(make_input(gross_pay_pence=gross))
            assert result.income_tax_pence >= previous_tax
            assert result.employee_ni_pence >= previous_ni
            previous_tax = result.income_tax_pence
            previous_ni = result.employee_ni_pence


class TestInputsAndErrors:
    """Input forms and failure modes."""

    def test_accepts_mapping(self):
        result = calculate_payroll(
            {
                "gross_pay_pence": 300000,
                "tax_code": "1257l",
                "pay_frequency": "monthly",
                "tax_year": "2025-26",
            }
        )
        assert result.income_tax_pence == 39050

    def test_invalid_input_raises(self, make_input):
        with pytest.raises(PayrollInputError) as exc_info:
            calculate_payroll(make_input(gross_pay_pence=-1, tax_code="XYZ"))
        assert set(exc_info.value.errors) == {"gross_pay_pence", "tax_code"}

    def test_unsupported_tax_year(self, make_input):
        with pytest.raises(UnsupportedTaxYearError) as exc_info:
            calculate_payroll(make_input(tax_year="2019-20"))
        assert "2025-26" in exc_info.value.available

    def test_tables_for_another_year_are_rejected(self, make_input, tables_2024):
        with pytest.raises(TaxTablesConfigError):
            calculate_payroll(make_input(tax_year="2025-26"), tables=tables_2024)

    def test_plan_missing_from_tables(self, make_input):
        with pytest.raises(TaxTablesConfigError):
            calculate_payroll(make_input(tax_year="2024-25", student_loan_plan="plan5"))

    def test_explicit_tables(self, make_input, tables):
        engine = PayrollEngine(tables)
        inp = make_input(pay_frequency=PayFrequency.MONTHLY)
        assert engine.calculate(inp).income_tax_pence == calculate_payroll(inp, tables).income_tax_pence


class TestCalculationId:
    """Deterministic calculation IDs."""

    def test_same_input_same_id(self, make_input):
        assert generate_calculation_id(make_input(), "1.0.0") == generate_calculation_id(
            make_input(), "1.0.0"
        )

    def test_id_depends_on_input_and_version(self, make_input):
        base = generate_calculation_id(make_input(), "1.0.0")
        assert generate_calculation_id(make_input(gross_pay_pence=300001), "1.0.0") != base
        assert generate_calculation_id(make_input(), "1.0.1") != base

    def test_enum_and_string_inputs_match(self, make_input):
        assert generate_calculation_id(make_input(pay_frequency="monthly"), "1") == generate_calculation_id(
            make_input(pay_frequency=PayFrequency.MONTHLY), "1"
        )
