"""Display formatting for amounts, rates and return percentages."""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from babel.numbers import format_currency

from .config import DEFAULT_CURRENCY, DEFAULT_LOCALE, HUNDRED


def format_money(
    amount: Decimal,
    currency: str = DEFAULT_CURRENCY,
    locale: str = DEFAULT_LOCALE,
) -> str:
    """Locale-aware currency string, e.g. 91473.5 -> '₪91,473.50' for en_IL/ILS."""
    return format_currency(amount, currency, locale=locale)


def format_rate(fraction: Decimal) -> str:
    """0.0523 -> '5.23%'."""
    return format_percent(fraction * HUNDRED)


def format_percent(value: Optional[Decimal]) -> str:
    """Value already in percent; None (undefined return) -> 'N/A'."""
    if value is None:
        return "N/A"
    return f"{value:.2f}%"
