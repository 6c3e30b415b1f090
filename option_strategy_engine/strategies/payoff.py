"""Expiry P&L of legs and bundles.

Payoff functions accept a scalar price or a numpy array of prices and return
the same shape; premiums are per unit and quantities are already applied.
"""

from __future__ import annotations

import numpy as np

from option_strategy_engine.exceptions import InvalidInputError
from option_strategy_engine.models.legs import OptionLeg, StrategyBundle
from option_strategy_engine.utils.validation import require_positive

DEFAULT_REFERENCE = 100.0
MIN_PRICE = 0.01


def leg_payoff_at(price, leg: OptionLeg):
    """P&L of ``leg`` at terminal ``price``; stock legs use ``premium`` as entry basis."""

    if leg.kind == "stock":
        pnl = price - leg.premium
        return leg.quantity * (pnl if leg.side == "long" else -pnl)
    if leg.kind == "call":
        intrinsic = np.maximum(price - leg.strike, 0.0)
    else:
        intrinsic = np.maximum(leg.strike - price, 0.0)
    pnl = intrinsic - leg.premium
    return leg.quantity * (pnl if leg.side == "long" else -pnl)


def payoff_at(price, bundle: StrategyBundle):
    total = np.zeros_like(price, dtype=float) if isinstance(price, np.ndarray) else 0.0
    for leg in bundle:
        total = total + leg_payoff_at(price, leg)
    return total if isinstance(price, np.ndarray) else float(total)


def breakpoints(bundle: StrategyBundle) -> list[float]:
    """Sorted unique strikes, where the payoff slope can change."""

    return bundle.strikes


def _reference_levels(bundle: StrategyBundle) -> list[float]:
    levels = set(bundle.strikes)
    levels.update(leg.premium for leg in bundle.stocks if leg.premium > 0)
    return sorted(levels)


def suggest_bounds(bundle: StrategyBundle, spot: float | None = None) -> tuple[float, float]:
    """Price interval covering spot and every strike with a 30-50% margin.

    Without ``spot`` the strikes (and stock entry levels) anchor the interval;
    with nothing to anchor on it centres on 100.
    """

    levels = _reference_levels(bundle)
    if spot is not None:
        spot = require_positive("spot", spot)
    fallback = spot if spot is not None else DEFAULT_REFERENCE
    k_min = levels[0] if levels else fallback
    k_max = levels[-1] if levels else fallback

    lo = max(MIN_PRICE, (spot if spot is not None else k_min) * 0.5)
    hi = (spot if spot is not None else k_max) * 1.5
    if levels:
        lo = min(lo, k_min * 0.7)
        hi = max(hi, k_max * 1.3)
    lo = max(MIN_PRICE, lo)
    if not hi > lo:
        hi = lo + 1.0
    return float(lo), float(hi)


def payoff_curve(
    bundle: StrategyBundle,
    lo: float | None = None,
    hi: float | None = None,
    samples: int = 201,
    spot: float | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Prices and P&L for charting; bounds default to ``suggest_bounds``."""

    if samples < 2:
        raise InvalidInputError(f"samples must be >= 2, got {samples}")
    if lo is None or hi is None:
        auto_lo, auto_hi = suggest_bounds(bundle, spot)
        lo = auto_lo if lo is None else lo
        hi = auto_hi if hi is None else hi
    if not hi > lo:
        raise InvalidInputError(f"hi must exceed lo, got [{lo}, {hi}]")
    prices = np.linspace(lo, hi, samples)
    return prices, payoff_at(prices, bundle)


__all__ = ["breakpoints", "leg_payoff_at", "payoff_at", "payoff_curve", "suggest_bounds"]
