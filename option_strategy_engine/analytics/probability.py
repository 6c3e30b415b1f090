"""Analytic probability of profit for a whole strategy.

The strategy's break-evens split the price axis into profit and loss regions.
Only the outermost two break-evens are used: with one threshold the profitable
side is read from the P&L at spot, with two the P&L at their midpoint decides
whether profit lies inside or outside the band. Probabilities come from the
lognormal CDF of S_T with the context drift.
"""

from __future__ import annotations

from typing import Sequence

from option_strategy_engine.models.legs import StrategyBundle
from option_strategy_engine.models.market import MarketContext
from option_strategy_engine.pricing.normal import gbm_mean, lognormal_cdf, vol_sqrt_t
from option_strategy_engine.strategies.breakeven import compute_break_even
from option_strategy_engine.strategies.payoff import payoff_at
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="analytics.probability")

EDGE_NUDGE = 1.001


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def strategy_prob_of_profit(
    bundle: StrategyBundle,
    ctx: MarketContext,
    break_evens: Sequence[float] | None = None,
) -> float | None:
    """P(P&L at expiry >= 0) for ``bundle`` under ``ctx``.

    ``break_evens`` defaults to ``compute_break_even(bundle, spot=ctx.spot)``.
    Returns None for an empty bundle or when the payoff never crosses zero.
    When σ√T is zero S_T is deterministic and the result is 0 or 1.
    """

    if len(bundle) == 0:
        return None

    if vol_sqrt_t(ctx.vol, ctx.tenor) == 0.0:
        terminal = gbm_mean(ctx.spot, ctx.drift, ctx.tenor)
        return 1.0 if payoff_at(terminal, bundle) >= 0 else 0.0

    if break_evens is None:
        break_evens = compute_break_even(bundle, spot=ctx.spot).be
    levels = sorted(float(b) for b in break_evens or ())
    if not levels:
        log.debug("no break-even, strategy PoP undefined", extra={"method": "analytic"})
        return None

    def cdf(level: float) -> float:
        return lognormal_cdf(level, ctx.spot, ctx.drift, ctx.vol, ctx.tenor)  # type: ignore[return-value]

    if len(levels) == 1:
        level = levels[0]
        if ctx.spot < level:
            spot_side = "below"
        elif ctx.spot > level:
            spot_side = "above"
        else:
            spot_side = "above" if payoff_at(level * EDGE_NUDGE, bundle) >= 0 else "below"
        if payoff_at(ctx.spot, bundle) >= 0:
            region = spot_side
        else:
            region = "below" if spot_side == "above" else "above"
        below = cdf(level)
        return _clamp01(below if region == "below" else 1.0 - below)

    lower, upper = levels[0], levels[-1]
    inside = _clamp01(cdf(upper) - cdf(lower))
    if payoff_at(0.5 * (lower + upper), bundle) >= 0:
        return inside
    return _clamp01(1.0 - inside)


__all__ = ["strategy_prob_of_profit"]
