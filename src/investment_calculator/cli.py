"""Command-line front end, one click sub-command per calculator variant.

Each sub-command:
  1. Takes its values from options, prompting for any that are missing.
  2. Runs the variant (validation + core calculation + breakdown).
  3. Renders the headline value and the breakdown, or a single error message.

Rates are entered as percentages (8 means 8 %), amounts as plain numbers.
"""
from __future__ import annotations

import sys
from decimal import Decimal, InvalidOperation
from typing import Optional

import click
from loguru import logger
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .calculator import CalculationOverflow, ConvergenceError, InvalidPeriods, PaymentTiming
from .config import DEFAULT_CURRENCY, DEFAULT_LOCALE, HUNDRED
from .formatting import format_money, format_percent, format_rate
from .variants import VARIANTS, CalculationInput, CalculationResult, MissingInput, run

console = Console()
err_console = Console(stderr=True, style="bold red")

_TIMINGS = {"end": PaymentTiming.ORDINARY, "start": PaymentTiming.DUE}

# ──────────────────────────────────────────────────────────────────────────────
# Result display
# ──────────────────────────────────────────────────────────────────────────────

def _headline_caption(key: str, result: CalculationResult) -> str:
    if key == "future-value":
        return f"Future value of your investment after {result.period_descriptor}"
    if key == "future-value-monthly":
        return (
            f"Future value of your monthly investment after "
            f"{result.period_descriptor} ({result.periods} months)"
        )
    if key == "required-rate":
        return f"Required annual interest rate to reach your goal in {result.period_descriptor}"
    return (
        f"Annual interest rate earned over {result.period_descriptor} "
        f"({result.periods} months)"
    )


def display_result(key: str, result: CalculationResult, currency: str, locale: str) -> None:
    def money(value: Decimal) -> str:
        return format_money(value, currency, locale)

    headline = money(result.primary_value) if result.primary_kind == "amount" else format_rate(result.primary_value)

    console.print()
    console.print(Panel(
        f"[bold green]{VARIANTS[key].title}[/bold green]\n"
        f"[bold]{headline}[/bold]\n"
        f"{_headline_caption(key, result)}",
        expand=False,
    ))

    t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    t.add_column("Field", style="cyan")
    t.add_column("Value", justify="right")

    if key == "annual-rate":
        t.add_row("Monthly payment", money(result.periodic_payment))
    t.add_row("Total invested", money(result.total_invested))
    t.add_row("Final amount", money(result.final_amount))
    t.add_row("Profit", money(result.profit))
    t.add_row("Return", format_percent(result.profit_percent))
    t.add_row("Period", result.period_descriptor)
    console.print(t)


# ──────────────────────────────────────────────────────────────────────────────
# Input helpers
# ──────────────────────────────────────────────────────────────────────────────

def _to_decimal(raw: str) -> Decimal:
    value = Decimal(raw.replace(",", ".").replace(" ", ""))
    if not value.is_finite():
        raise InvalidOperation(f"{raw!r} is not a finite number")
    return value


def _parse_opt(s: Optional[str], name: str) -> Optional[Decimal]:
    if s is None:
        return None
    try:
        return _to_decimal(s)
    except InvalidOperation:
        err_console.print(f"Invalid value for --{name}: '{s}'")
        sys.exit(1)


def _prompt_decimal(prompt: str, *, default: Optional[Decimal] = None) -> Decimal:
    hint = f" (press Enter for {default})" if default is not None else ""
    while True:
        raw = console.input(f"[bold]{prompt}{hint}[/bold] ").strip()
        if not raw and default is not None:
            return default
        try:
            return _to_decimal(raw)
        except InvalidOperation:
            err_console.print(f"  Invalid number: '{raw}'")


def _prompt_int(prompt: str, *, min_val: int = 1) -> int:
    while True:
        raw = console.input(f"[bold]{prompt}[/bold] ").strip()
        try:
            value = int(raw)
        except ValueError:
            err_console.print(f"  Invalid integer: '{raw}'")
            continue
        if value < min_val:
            err_console.print(f"  Value must be >= {min_val}.")
            continue
        return value


def _amount(raw: Optional[str], name: str, prompt: str, *, default: Optional[Decimal] = None) -> Decimal:
    value = _parse_opt(raw, name)
    if value is None:
        value = _prompt_decimal(prompt, default=default)
    return value


def _rate(raw: Optional[str], prompt: str) -> Decimal:
    """Percent in, fraction out."""
    return _amount(raw, "rate", prompt) / HUNDRED


def _periods(value: Optional[int], prompt: str) -> int:
    return value if value is not None else _prompt_int(prompt)


# ──────────────────────────────────────────────────────────────────────────────
# Runner
# ──────────────────────────────────────────────────────────────────────────────

def run_calculation(ctx: click.Context, key: str, inputs: CalculationInput) -> None:
    """Run a variant; print the result, or one error message and exit 1."""
    try:
        result = run(key, inputs)
    except (InvalidPeriods, MissingInput) as exc:
        err_console.print(f"Parameter error: {exc}")
        sys.exit(1)
    except (ConvergenceError, CalculationOverflow):
        console.print(Panel(
            "[bold red]Calculation error[/bold red]\n"
            "Please check your inputs. The inputs are unrealistic for the given parameters.",
            expand=False,
        ))
        sys.exit(1)

    display_result(key, result, ctx.obj["currency"], ctx.obj["locale"])


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "ERROR")


# ──────────────────────────────────────────────────────────────────────────────
# Click entry point
# ──────────────────────────────────────────────────────────────────────────────

_timing_option = click.option(
    "--timing",
    type=click.Choice(sorted(_TIMINGS)),
    default="end",
    show_default=True,
    help="Payments at the end or the start of each period",
)


@click.group()
@click.option("--currency", default=DEFAULT_CURRENCY, show_default=True, help="ISO 4217 currency code for amounts")
@click.option("--locale", default=DEFAULT_LOCALE, show_default=True, help="Locale used to format amounts")
@click.option("-v", "--verbose", is_flag=True, help="Show solver debug output")
@click.pass_context
def main(ctx: click.Context, currency: str, locale: str, verbose: bool) -> None:
    """Investment calculators: future value and required / annual rate."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["currency"] = currency.upper()
    ctx.obj["locale"] = locale


@main.command("future-value")
@click.option("--rate", type=str, default=None, help="Annual interest rate in percent")
@click.option("--years", type=int, default=None, help="Number of yearly periods")
@click.option("--payment", type=str, default=None, help="Payment made every year")
@click.option("--present-value", type=str, default=None, help="Initial amount")
@_timing_option
@click.pass_context
def future_value_cmd(
    ctx: click.Context,
    rate: Optional[str],
    years: Optional[int],
    payment: Optional[str],
    present_value: Optional[str],
    timing: str,
) -> None:
    """Future value of yearly payments plus an initial amount."""
    inputs = CalculationInput(
        annual_rate=_rate(rate, "Annual interest rate (%)?"),
        periods=_periods(years, "Number of years?"),
        periodic_payment=_amount(payment, "payment", "Yearly payment?"),
        present_value=_amount(present_value, "present-value", "Initial amount?", default=Decimal("0")),
        payment_timing=_TIMINGS[timing],
    )
    run_calculation(ctx, "future-value", inputs)


@main.command("future-value-monthly")
@click.option("--rate", type=str, default=None, help="Annual interest rate in percent")
@click.option("--months", type=int, default=None, help="Number of monthly periods")
@click.option("--payment", type=str, default=None, help="Payment made every month")
@click.option("--present-value", type=str, default=None, help="Initial amount")
@_timing_option
@click.pass_context
def future_value_monthly_cmd(
    ctx: click.Context,
    rate: Optional[str],
    months: Optional[int],
    payment: Optional[str],
    present_value: Optional[str],
    timing: str,
) -> None:
    """Future value of monthly payments; the annual rate is compounded monthly."""
    inputs = CalculationInput(
        annual_rate=_rate(rate, "Annual interest rate (%)?"),
        periods=_periods(months, "Number of months?"),
        periodic_payment=_amount(payment, "payment", "Monthly payment?"),
        present_value=_amount(present_value, "present-value", "Initial amount?", default=Decimal("0")),
        payment_timing=_TIMINGS[timing],
    )
    run_calculation(ctx, "future-value-monthly", inputs)


@main.command("required-rate")
@click.option("--years", type=int, default=None, help="Number of yearly periods")
@click.option("--payment", type=str, default=None, help="Payment made every year")
@click.option("--present-value", type=str, default=None, help="Initial amount")
@click.option("--goal", type=str, default=None, help="Target future value")
@_timing_option
@click.pass_context
def required_rate_cmd(
    ctx: click.Context,
    years: Optional[int],
    payment: Optional[str],
    present_value: Optional[str],
    goal: Optional[str],
    timing: str,
) -> None:
    """Annual interest rate needed to reach a goal with yearly payments."""
    inputs = CalculationInput(
        periods=_periods(years, "Number of years?"),
        periodic_payment=_amount(payment, "payment", "Yearly payment?"),
        present_value=_amount(present_value, "present-value", "Initial amount?", default=Decimal("0")),
        future_value_target=_amount(goal, "goal", "Goal amount?"),
        payment_timing=_TIMINGS[timing],
    )
    run_calculation(ctx, "required-rate", inputs)


@main.command("annual-rate")
@click.option("--months", type=int, default=None, help="Number of months covered by the report")
@click.option("--total-investment", type=str, default=None, help="Total deposited over the period")
@click.option("--present-value", type=str, default=None, help="Initial amount")
@click.option("--final-amount", type=str, default=None, help="Current value stated in the report")
@_timing_option
@click.pass_context
def annual_rate_cmd(
    ctx: click.Context,
    months: Optional[int],
    total_investment: Optional[str],
    present_value: Optional[str],
    final_amount: Optional[str],
    timing: str,
) -> None:
    """Annual interest rate implied by an investment fund report."""
    inputs = CalculationInput(
        periods=_periods(months, "Number of months?"),
        total_investment_sum=_amount(total_investment, "total-investment", "Total investment sum?"),
        present_value=_amount(present_value, "present-value", "Initial amount?", default=Decimal("0")),
        future_value_target=_amount(final_amount, "final-amount", "Final amount?"),
        payment_timing=_TIMINGS[timing],
    )
    run_calculation(ctx, "annual-rate", inputs)
