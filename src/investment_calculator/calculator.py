"""Core financial calculation functions.

All monetary values use decimal.Decimal. Amounts are kept at full precision;
rounding happens only when results are formatted for display.

Sign convention: payments and the present value are always treated as
outflows. Callers pass plain amounts and the functions below negate them
internally, so a positive contribution yields a positive future value.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, Overflow
from enum import IntEnum
from typing import Callable, Optional, Union

from loguru import logger

from .config import (
    DEFAULT_MONTHLY_RATE_GUESS,
    DEFAULT_RATE_GUESS,
    HUNDRED,
    MAX_REALISTIC_ANNUAL_RATE,
    MONTHS_PER_YEAR,
    SOLVER_MAX_ITERATIONS,
    SOLVER_TOLERANCE,
    ZERO,
)

Number = Union[Decimal, int, float, str]

# Below this the closed form loses precision; use the r -> 0 limit instead.
_ZERO_RATE_EPSILON = 1e-12

# Root bracketing: start the lower bound here, give up after this many widenings.
_BRACKET_LOW = -0.5
_BRACKET_STEPS = 40


class PaymentTiming(IntEnum):
    """When periodic payments are made within each period."""
    ORDINARY = 0  # end of period
    DUE = 1       # start of period


class CalculatorError(Exception):
    """Base class for every domain error raised by the calculators."""


class InvalidPeriods(CalculatorError, ValueError):
    """Raised when the number of periods is not a positive integer."""


class ConvergenceError(CalculatorError):
    """Raised when the rate solver cannot find a realistic root."""


class DivisionUndefined(CalculatorError, ZeroDivisionError):
    """Raised when a return percentage is requested on a zero investment."""


class CalculationOverflow(CalculatorError, ArithmeticError):
    """Raised when a result is too large (or too small) to represent."""


@dataclass(frozen=True)
class Metrics:
    profit: Decimal
    profit_percent: Decimal


def _dec(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _outflow(value: Number) -> Decimal:
    return -abs(_dec(value))


def _check_periods(periods: int) -> None:
    if isinstance(periods, bool) or not isinstance(periods, int):
        raise InvalidPeriods(f"periods must be an integer (got {periods!r})")
    if periods <= 0:
        raise InvalidPeriods(f"periods must be > 0 (got {periods})")


# ──────────────────────────────────────────────────────────────────────────────
# Future value
# ──────────────────────────────────────────────────────────────────────────────

def future_value(
    rate: Number,
    periods: int,
    payment: Number,
    present_value: Number,
    timing: PaymentTiming = PaymentTiming.ORDINARY,
) -> Decimal:
    """Return the future value of a present value plus equal periodic payments.

    Uses the standard annuity formula with PV and PMT as outflows:
        FV = -(PV * (1+r)^n + PMT * ((1+r)^n - 1) / r * (1 + r*timing))

    Special case: if rate == 0, FV = -(PV + PMT * n) regardless of timing.

    The function is period-agnostic: for monthly contributions pass
    annual_rate / 12 and the number of months.
    """
    _check_periods(periods)
    r = _dec(rate)
    pv = _outflow(present_value)
    pmt = _outflow(payment)

    if r == ZERO:
        return -(pv + pmt * periods)

    try:
        factor = (1 + r) ** periods
        annuity = (factor - 1) / r * (1 + r * int(timing))
        return -(pv * factor + pmt * annuity)
    except (Overflow, InvalidOperation) as exc:
        raise CalculationOverflow(
            f"future value over {periods} periods at rate {r} cannot be represented"
        ) from exc


def total_invested(periods: int, payment: Number, present_value: Number) -> Decimal:
    """Total money put in: |PV| + |PMT| * n."""
    _check_periods(periods)
    return abs(_dec(present_value)) + abs(_dec(payment)) * periods


# ──────────────────────────────────────────────────────────────────────────────
# Rate solving
# ──────────────────────────────────────────────────────────────────────────────

def _rate_equation(
    r: float, n: int, pmt: float, pv: float, fv: float, t: int
) -> tuple[float, float]:
    """Return f(r) and f'(r) for f(r) = PV*g + PMT*(1+r*t)*(g-1)/r + FV, g = (1+r)^n."""
    if abs(r) < _ZERO_RATE_EPSILON:
        f = pv + pmt * n + fv
        df = pv * n + pmt * (t * n + n * (n - 1) / 2)
        return f, df

    growth_minus_one = math.expm1(n * math.log1p(r))  # (1+r)^n - 1 without cancellation
    g = growth_minus_one + 1
    dg = n * g / (1 + r)
    s = growth_minus_one / r
    ds = (dg * r - growth_minus_one) / (r * r)
    f = pv * g + pmt * (1 + r * t) * s + fv
    df = pv * dg + pmt * (t * s + (1 + r * t) * ds)
    return f, df


def _bracket(
    equation: Callable[[float], tuple[float, float]], guess: float
) -> Optional[tuple[float, float]]:
    """Find lo < hi with f(lo) > 0 >= f(hi); f is decreasing for r > -1.

    Returns None when no rate above -100 % reaches the target.
    """
    lo = min(_BRACKET_LOW, guess) if guess > -1 else _BRACKET_LOW
    for _ in range(_BRACKET_STEPS):
        if equation(lo)[0] > 0:
            break
        lo = -1 + (1 + lo) / 2
    else:
        return None

    below = lo
    hi = guess if guess > lo else lo + 1
    for _ in range(_BRACKET_STEPS):
        try:
            f_hi = equation(hi)[0]
        except OverflowError:
            # Growth too large to evaluate: the root lies between below and hi.
            hi = (below + hi) / 2
            continue
        if f_hi <= 0:
            return lo, hi
        below = hi
        hi = 2 * hi + 1  # doubles the growth factor 1 + r
    return None


def required_rate(
    periods: int,
    payment: Number,
    present_value: Number,
    future_value_target: Number,
    timing: PaymentTiming = PaymentTiming.ORDINARY,
    initial_guess: float = DEFAULT_RATE_GUESS,
    max_rate: Optional[Number] = None,
) -> Decimal:
    """Solve for the periodic rate that grows the inputs to *future_value_target*.

    Safeguarded Newton-Raphson: the root is bracketed first (f is monotone
    for r > -1 because PV and PMT are outflows), then Newton steps are taken
    from *initial_guess*, falling back to bisection whenever a step would
    leave the bracket. Iteration stops once successive estimates differ by
    less than SOLVER_TOLERANCE. No bracket, more than SOLVER_MAX_ITERATIONS
    steps, or a root above *max_rate* raise ConvergenceError.
    """
    _check_periods(periods)

    n = periods
    pmt = float(_outflow(payment))
    pv = float(_outflow(present_value))
    fv = float(_dec(future_value_target))
    t = int(timing)

    def _fail(reason: str) -> ConvergenceError:
        logger.warning(
            "Rate solver failed (n={}, pmt={}, pv={}, fv={}): {}", n, pmt, pv, fv, reason
        )
        return ConvergenceError(reason)

    def equation(r: float) -> tuple[float, float]:
        return _rate_equation(r, n, pmt, pv, fv, t)

    if pmt == 0 and pv == 0:
        raise _fail("no payment and no initial amount: any rate gives a future value of 0")
    if not math.isfinite(fv):
        raise _fail(f"target {fv!r} is not finite")

    bracket = _bracket(equation, float(initial_guess))
    if bracket is None:
        raise _fail("no rate above -100 % reaches the target")
    lo, hi = bracket
    logger.debug("Root bracketed in [{!r}, {!r}]", lo, hi)

    r = float(initial_guess)
    if not lo < r < hi:
        r = hi
    step_before = hi - lo
    for iteration in range(1, SOLVER_MAX_ITERATIONS + 1):
        f, df = equation(r)
        if f == 0:
            break
        if f > 0:
            lo = r
        else:
            hi = r

        # Bisect when Newton leaves the bracket or stops halving its step.
        newton = r - f / df if df != 0 else math.nan
        if math.isfinite(newton) and lo < newton < hi and abs(newton - r) <= abs(step_before) / 2:
            r_new = newton
        else:
            r_new = (lo + hi) / 2
        logger.debug("iteration {}: rate={!r} f={!r}", iteration, r_new, f)

        if abs(r_new - r) < SOLVER_TOLERANCE:
            r = r_new
            break
        step_before = r_new - r
        r = r_new
    else:
        raise _fail(f"no convergence within {SOLVER_MAX_ITERATIONS} iterations")

    rate = Decimal(repr(r))
    if max_rate is not None and rate > _dec(max_rate):
        raise _fail(f"rate {rate} exceeds the realistic ceiling of {max_rate}")

    logger.debug("Converged to periodic rate {} after {} iterations", rate, iteration)
    return rate


def required_rate_monthly(
    periods_months: int,
    payment: Number,
    present_value: Number,
    future_value_target: Number,
    timing: PaymentTiming = PaymentTiming.ORDINARY,
    initial_guess: float = DEFAULT_MONTHLY_RATE_GUESS,
    max_annual_rate: Optional[Number] = None,
) -> Decimal:
    """Solve for the monthly rate and return it annualised (monthly * 12)."""
    max_rate = None if max_annual_rate is None else _dec(max_annual_rate) / MONTHS_PER_YEAR
    monthly = required_rate(
        periods_months,
        payment,
        present_value,
        future_value_target,
        timing,
        initial_guess=initial_guess,
        max_rate=max_rate,
    )
    return monthly * MONTHS_PER_YEAR


def annualized_rate_from_report(
    periods: int,
    total_investment_sum: Number,
    present_value: Number,
    future_value_target: Number,
    timing: PaymentTiming = PaymentTiming.ORDINARY,
) -> Decimal:
    """Annual rate implied by a fund report.

    Fund reports state the total deposited rather than the monthly amount, so
    the monthly payment is derived as total_investment_sum / periods.
    """
    _check_periods(periods)
    payment = implied_monthly_payment(periods, total_investment_sum)
    return required_rate_monthly(
        periods,
        payment,
        present_value,
        future_value_target,
        timing,
        initial_guess=DEFAULT_MONTHLY_RATE_GUESS,
        max_annual_rate=MAX_REALISTIC_ANNUAL_RATE,
    )


def implied_monthly_payment(periods: int, total_investment_sum: Number) -> Decimal:
    _check_periods(periods)
    return abs(_dec(total_investment_sum)) / periods


# ──────────────────────────────────────────────────────────────────────────────
# Derived metrics
# ──────────────────────────────────────────────────────────────────────────────

def derive_metrics(total_invested: Number, final_amount: Number) -> Metrics:
    """profit = final - invested; profit_percent = profit / invested * 100."""
    invested = _dec(total_invested)
    profit = _dec(final_amount) - invested
    if invested == ZERO:
        raise DivisionUndefined("return percentage is undefined when nothing was invested")
    return Metrics(profit=profit, profit_percent=profit / invested * HUNDRED)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def describe_period(total_months: int) -> str:
    """Human-readable span, e.g. 25 -> '2 years and 1 month', 0 -> '0 months'."""
    if total_months < 0:
        raise InvalidPeriods(f"total_months must be >= 0 (got {total_months})")
    years, months = divmod(total_months, MONTHS_PER_YEAR)
    if years == 0:
        return _plural(months, "month")
    if months == 0:
        return _plural(years, "year")
    return f"{_plural(years, 'year')} and {_plural(months, 'month')}"
