"""Application-wide constants and configuration defaults.

All tuneable defaults live here so there is a single place to adjust them.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Literal

# ── Type aliases ──────────────────────────────────────────────────────────────

PeriodUnit = Literal["year", "month"]
PrimaryKind = Literal["amount", "rate"]

# ── Period conversion ─────────────────────────────────────────────────────────

MONTHS_PER_YEAR: int = 12

# ── Rate solver (Newton-Raphson) ──────────────────────────────────────────────

SOLVER_MAX_ITERATIONS: int = 100
SOLVER_TOLERANCE: float = 1e-10

DEFAULT_RATE_GUESS: float = 0.1           # per-period guess, yearly calculators
DEFAULT_MONTHLY_RATE_GUESS: float = 0.01  # per-month guess, fund report calculator

# Annualized rates above this are reported as unrealistic (1.00 = 100 %/year)
MAX_REALISTIC_ANNUAL_RATE = Decimal("1.00")

# ── Presentation defaults ─────────────────────────────────────────────────────

DEFAULT_CURRENCY: str = "ILS"
DEFAULT_LOCALE: str = "en_IL"

# ── Numeric convenience ───────────────────────────────────────────────────────

ZERO = Decimal("0")
HUNDRED = Decimal("100")
