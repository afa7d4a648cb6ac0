"""Calculator variants: input validation and result assembly.

Each variant reads a subset of CalculationInput, runs one core calculation
and packs the answer together with the derived breakdown (invested amount,
final amount, profit, return %) into a CalculationResult.

Variants:
  future-value          FV, yearly periods, annual rate
  future-value-monthly  FV, monthly periods, annual rate / 12
  required-rate         periodic rate needed to reach a goal
  annual-rate           annual rate implied by a fund report (total deposited)
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from loguru import logger

from .calculator import (
    DivisionUndefined,
    CalculatorError,
    InvalidPeriods,
    PaymentTiming,
    annualized_rate_from_report,
    derive_metrics,
    describe_period,
    future_value,
    implied_monthly_payment,
    required_rate,
    total_invested,
)
from .config import DEFAULT_RATE_GUESS, MONTHS_PER_YEAR, PeriodUnit, PrimaryKind, ZERO


class MissingInput(CalculatorError, ValueError):
    """Raised when a variant's required field was not supplied."""


@dataclass
class CalculationInput:
    """Raw user-supplied values.  None means 'not provided'."""
    periods: int
    periodic_payment: Optional[Decimal] = None
    present_value: Decimal = ZERO
    future_value_target: Optional[Decimal] = None
    annual_rate: Optional[Decimal] = None       # fraction, e.g. 0.08 for 8 %
    total_investment_sum: Optional[Decimal] = None
    payment_timing: PaymentTiming = PaymentTiming.ORDINARY


@dataclass(frozen=True)
class CalculationResult:
    primary_value: Decimal        # future value, or rate as a fraction
    primary_kind: PrimaryKind
    total_invested: Decimal
    final_amount: Decimal
    profit: Decimal
    profit_percent: Optional[Decimal]  # None when undefined (nothing invested)
    periods: int
    period_unit: PeriodUnit
    period_descriptor: str
    periodic_payment: Decimal


@dataclass(frozen=True)
class Variant:
    key: str
    title: str
    required_fields: tuple[str, ...]
    runner: Callable[[CalculationInput], CalculationResult]


def validate(variant: Variant, inputs: CalculationInput) -> None:
    """Raise InvalidPeriods / MissingInput before any computation happens."""
    periods = inputs.periods
    if isinstance(periods, bool) or not isinstance(periods, int):
        raise InvalidPeriods(f"Number of periods must be a whole number (got {periods!r}).")
    if periods <= 0:
        raise InvalidPeriods(f"Number of periods must be at least 1 (got {periods}).")

    missing = [name for name in variant.required_fields if getattr(inputs, name) is None]
    if missing:
        raise MissingInput(f"{variant.title}: missing {', '.join(missing)}.")


def _breakdown(
    *,
    primary_value: Decimal,
    primary_kind: PrimaryKind,
    invested: Decimal,
    final_amount: Decimal,
    periods: int,
    period_unit: PeriodUnit,
    periodic_payment: Decimal,
) -> CalculationResult:
    try:
        metrics = derive_metrics(invested, final_amount)
        profit, profit_percent = metrics.profit, metrics.profit_percent
    except DivisionUndefined:
        profit, profit_percent = final_amount - invested, None

    months = periods * MONTHS_PER_YEAR if period_unit == "year" else periods
    return CalculationResult(
        primary_value=primary_value,
        primary_kind=primary_kind,
        total_invested=invested,
        final_amount=final_amount,
        profit=profit,
        profit_percent=profit_percent,
        periods=periods,
        period_unit=period_unit,
        period_descriptor=describe_period(months),
        periodic_payment=periodic_payment,
    )


# ──────────────────────────────────────────────────────────────────────────────
# Runners
# ──────────────────────────────────────────────────────────────────────────────

def run_future_value(inputs: CalculationInput) -> CalculationResult:
    validate(VARIANTS["future-value"], inputs)
    fv = future_value(
        inputs.annual_rate,
        inputs.periods,
        inputs.periodic_payment,
        inputs.present_value,
        inputs.payment_timing,
    )
    logger.debug("future-value: n={} years -> {}", inputs.periods, fv)
    return _breakdown(
        primary_value=fv,
        primary_kind="amount",
        invested=total_invested(inputs.periods, inputs.periodic_payment, inputs.present_value),
        final_amount=fv,
        periods=inputs.periods,
        period_unit="year",
        periodic_payment=abs(inputs.periodic_payment),
    )


def run_future_value_monthly(inputs: CalculationInput) -> CalculationResult:
    validate(VARIANTS["future-value-monthly"], inputs)
    monthly_rate = inputs.annual_rate / MONTHS_PER_YEAR
    fv = future_value(
        monthly_rate,
        inputs.periods,
        inputs.periodic_payment,
        inputs.present_value,
        inputs.payment_timing,
    )
    logger.debug("future-value-monthly: n={} months -> {}", inputs.periods, fv)
    return _breakdown(
        primary_value=fv,
        primary_kind="amount",
        invested=total_invested(inputs.periods, inputs.periodic_payment, inputs.present_value),
        final_amount=fv,
        periods=inputs.periods,
        period_unit="month",
        periodic_payment=abs(inputs.periodic_payment),
    )


def run_required_rate(inputs: CalculationInput) -> CalculationResult:
    validate(VARIANTS["required-rate"], inputs)
    rate = required_rate(
        inputs.periods,
        inputs.periodic_payment,
        inputs.present_value,
        inputs.future_value_target,
        inputs.payment_timing,
        initial_guess=DEFAULT_RATE_GUESS,
    )
    logger.debug("required-rate: n={} -> {}", inputs.periods, rate)
    return _breakdown(
        primary_value=rate,
        primary_kind="rate",
        invested=total_invested(inputs.periods, inputs.periodic_payment, inputs.present_value),
        final_amount=inputs.future_value_target,
        periods=inputs.periods,
        period_unit="year",
        periodic_payment=abs(inputs.periodic_payment),
    )


def run_annualized_rate_from_report(inputs: CalculationInput) -> CalculationResult:
    validate(VARIANTS["annual-rate"], inputs)
    rate = annualized_rate_from_report(
        inputs.periods,
        inputs.total_investment_sum,
        inputs.present_value,
        inputs.future_value_target,
        inputs.payment_timing,
    )
    logger.debug("annual-rate: n={} months -> {}", inputs.periods, rate)
    return _breakdown(
        primary_value=rate,
        primary_kind="rate",
        invested=abs(inputs.present_value) + abs(inputs.total_investment_sum),
        final_amount=inputs.future_value_target,
        periods=inputs.periods,
        period_unit="month",
        periodic_payment=implied_monthly_payment(inputs.periods, inputs.total_investment_sum),
    )


VARIANTS: dict[str, Variant] = {
    "future-value": Variant(
        key="future-value",
        title="Future Value",
        required_fields=("annual_rate", "periodic_payment"),
        runner=run_future_value,
    ),
    "future-value-monthly": Variant(
        key="future-value-monthly",
        title="Future Value (Monthly Contributions)",
        required_fields=("annual_rate", "periodic_payment"),
        runner=run_future_value_monthly,
    ),
    "required-rate": Variant(
        key="required-rate",
        title="Required Interest Rate",
        required_fields=("periodic_payment", "future_value_target"),
        runner=run_required_rate,
    ),
    "annual-rate": Variant(
        key="annual-rate",
        title="Annual Rate from Fund Report",
        required_fields=("total_investment_sum", "future_value_target"),
        runner=run_annualized_rate_from_report,
    ),
}


def run(key: str, inputs: CalculationInput) -> CalculationResult:
    """Run the variant registered under *key*."""
    try:
        variant = VARIANTS[key]
    except KeyError:
        raise ValueError(f"Unknown calculator '{key}'. Choose from: {', '.join(VARIANTS)}") from None
    return variant.runner(inputs)
