"""Monte Carlo terminal-price statistics for a strategy.

Terminal prices are drawn in one shot from GBM with the context drift:
S_T = S0·exp((μ − σ²/2)T + σ√T·Z). The strategy P&L is evaluated on the whole
array with ``payoff_at``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from option_strategy_engine.exceptions import InvalidInputError, SimulationError
from option_strategy_engine.models.legs import StrategyBundle
from option_strategy_engine.models.market import MarketContext
from option_strategy_engine.strategies.payoff import payoff_at
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="analytics.montecarlo")

MAX_PATHS = 1_000_000
DEFAULT_PATHS = 20_000
BAND = (0.025, 0.975)
QUANTILES = (0.05, 0.25, 0.5, 0.75, 0.95)
MIN_PREMIUM = 1e-12


@dataclass(frozen=True)
class TerminalStats:
    n_paths: int
    mean: float
    lo: float
    hi: float
    quantiles: dict[float, float] = field(default_factory=dict)
    win_rate: float | None = None
    expected_pnl: float | None = None
    expected_return: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "n_paths": self.n_paths,
            "mean": self.mean,
            "lo": self.lo,
            "hi": self.hi,
            "quantiles": {f"q{round(q * 100):02d}": v for q, v in self.quantiles.items()},
            "win_rate": self.win_rate,
            "expected_pnl": self.expected_pnl,
            "expected_return": self.expected_return,
        }


def _check_paths(n_paths: int) -> int:
    try:
        count = int(n_paths)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidInputError(f"n_paths must be an integer, got {n_paths!r}") from exc
    if isinstance(n_paths, bool) or count != n_paths:
        raise InvalidInputError(f"n_paths must be an integer, got {n_paths!r}")
    if not 1 <= count <= MAX_PATHS:
        raise InvalidInputError(f"n_paths must be in [1, {MAX_PATHS}], got {count}")
    return count


def simulate_terminal_prices(ctx: MarketContext, n_paths: int = DEFAULT_PATHS, seed: int | None = None) -> np.ndarray:
    """Draw ``n_paths`` terminal prices; the same seed reproduces the same array."""

    n_paths = _check_paths(n_paths)
    rng = np.random.default_rng(seed)
    shocks = rng.standard_normal(n_paths)
    drift = (ctx.drift - 0.5 * ctx.vol * ctx.vol) * ctx.tenor
    diffusion = ctx.vol * math.sqrt(ctx.tenor)
    prices = ctx.spot * np.exp(drift + diffusion * shocks)

    if not np.isfinite(prices).all() or (prices <= 0).any():
        raise SimulationError("Simulated terminal prices contain non-positive or non-finite values")
    return prices


def simulate_terminal(
    bundle: StrategyBundle,
    ctx: MarketContext,
    n_paths: int = DEFAULT_PATHS,
    seed: int | None = None,
) -> TerminalStats:
    """Terminal-price mean, 95% band and quantiles, plus strategy win rate and mean P&L.

    A path wins when its P&L is strictly positive. Expected return divides the
    mean P&L by the absolute net premium, or by spot when the premium nets to zero.
    Win rate and P&L are None for an empty bundle.
    """

    prices = simulate_terminal_prices(ctx, n_paths, seed)
    lo, hi = np.quantile(prices, BAND)
    quantiles = dict(zip(QUANTILES, (float(v) for v in np.quantile(prices, QUANTILES))))

    win_rate = expected_pnl = expected_return = None
    if len(bundle):
        pnl = payoff_at(prices, bundle)
        win_rate = float(np.mean(pnl > 0))
        expected_pnl = float(pnl.mean())
        premium = abs(bundle.net_premium)
        expected_return = expected_pnl / (premium if premium > MIN_PREMIUM else ctx.spot)

    log.debug("simulated terminal prices", extra={"method": "monte_carlo"})
    return TerminalStats(
        n_paths=len(prices),
        mean=float(prices.mean()),
        lo=float(lo),
        hi=float(hi),
        quantiles=quantiles,
        win_rate=win_rate,
        expected_pnl=expected_pnl,
        expected_return=expected_return,
    )


__all__ = ["MAX_PATHS", "TerminalStats", "simulate_terminal", "simulate_terminal_prices"]
