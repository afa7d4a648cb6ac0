"""Unit tests for variants.py: validation and result assembly per calculator."""
from decimal import Decimal

import pytest

from investment_calculator.calculator import ConvergenceError, InvalidPeriods, PaymentTiming
from investment_calculator.variants import (
    VARIANTS,
    CalculationInput,
    MissingInput,
    run,
    run_annualized_rate_from_report,
    run_future_value,
    run_future_value_monthly,
    run_required_rate,
)

ZERO = Decimal("0")


class TestFutureValueVariants:
    def test_monthly_breakdown(self):
        result = run_future_value_monthly(CalculationInput(
            periods=120,
            annual_rate=Decimal("0.08"),
            periodic_payment=Decimal("500"),
        ))
        assert result.primary_kind == "amount"
        assert abs(result.primary_value - Decimal("91473")) < Decimal("1")
        assert result.final_amount == result.primary_value
        assert result.total_invested == Decimal("60000")
        assert result.profit == result.final_amount - result.total_invested
        assert abs(result.profit_percent - Decimal("52.455")) < Decimal("0.01")
        assert result.period_unit == "month"
        assert result.period_descriptor == "10 years"

    def test_yearly_periods_described_in_years(self):
        result = run_future_value(CalculationInput(
            periods=10,
            annual_rate=Decimal("0.05"),
            periodic_payment=Decimal("1000"),
            payment_timing=PaymentTiming.DUE,
        ))
        assert abs(result.primary_value - Decimal("13206.79")) < Decimal("0.01")
        assert result.period_unit == "year"
        assert result.period_descriptor == "10 years"

    def test_negative_inputs_treated_as_outflows(self):
        result = run_future_value(CalculationInput(
            periods=3,
            annual_rate=ZERO,
            periodic_payment=Decimal("-100"),
            present_value=Decimal("-1000"),
        ))
        assert result.primary_value == Decimal("1300")
        assert result.total_invested == Decimal("1300")
        assert result.periodic_payment == Decimal("100")

    def test_nothing_invested_reports_undefined_return(self):
        result = run_future_value(CalculationInput(
            periods=5,
            annual_rate=Decimal("0.05"),
            periodic_payment=ZERO,
        ))
        assert result.total_invested == ZERO
        assert result.profit == ZERO
        assert result.profit_percent is None


class TestRateVariants:
    def test_required_rate(self):
        result = run_required_rate(CalculationInput(
            periods=10,
            periodic_payment=Decimal("1000"),
            future_value_target=Decimal("12577.89"),
        ))
        assert result.primary_kind == "rate"
        assert abs(result.primary_value - Decimal("0.05")) < Decimal("1e-5")
        assert result.final_amount == Decimal("12577.89")
        assert result.profit == Decimal("2577.89")

    def test_annual_rate_from_report(self):
        result = run_annualized_rate_from_report(CalculationInput(
            periods=36,
            total_investment_sum=Decimal("18000"),
            present_value=Decimal("5000"),
            future_value_target=Decimal("25000"),
        ))
        assert ZERO < result.primary_value < Decimal("0.5")
        assert result.periodic_payment == Decimal("500")
        assert result.total_invested == Decimal("23000")
        assert result.profit == Decimal("2000")
        assert result.period_descriptor == "3 years"

    def test_unrealistic_report_raises(self):
        with pytest.raises(ConvergenceError):
            run_annualized_rate_from_report(CalculationInput(
                periods=36,
                total_investment_sum=Decimal("18000"),
                present_value=Decimal("5000"),
                future_value_target=Decimal("1000000"),
            ))


class TestValidation:
    @pytest.mark.parametrize("key", list(VARIANTS))
    def test_zero_periods_rejected(self, key):
        inputs = CalculationInput(
            periods=0,
            periodic_payment=Decimal("100"),
            annual_rate=Decimal("0.05"),
            future_value_target=Decimal("1000"),
            total_investment_sum=Decimal("1000"),
        )
        with pytest.raises(InvalidPeriods):
            run(key, inputs)

    def test_missing_rate(self):
        with pytest.raises(MissingInput, match="annual_rate"):
            run("future-value", CalculationInput(periods=10, periodic_payment=Decimal("100")))

    def test_report_variant_does_not_need_payment(self):
        assert "periodic_payment" not in VARIANTS["annual-rate"].required_fields
        assert "total_investment_sum" in VARIANTS["annual-rate"].required_fields

    def test_unknown_variant(self):
        with pytest.raises(ValueError, match="Unknown calculator"):
            run("mortgage", CalculationInput(periods=1))
