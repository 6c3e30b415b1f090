"""Per-leg and strategy-level risk/return metrics.

Each leg is evaluated per unit of underlying (``raw``) and then scaled by
quantity and contract multiplier (``scaled``). Greeks are scaled by the
signed quantity so that short legs flip sign. Stock legs are handled
analytically from the lognormal terminal distribution.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any

from option_strategy_engine.analytics.expected_value import LegExpectation, evaluate_leg, sharpe
from option_strategy_engine.analytics.probability import strategy_prob_of_profit
from option_strategy_engine.exceptions import InvalidInputError
from option_strategy_engine.interfaces.pricing import ZERO_GREEKS, Greeks
from option_strategy_engine.models.legs import OptionLeg, StrategyBundle
from option_strategy_engine.models.market import MarketContext
from option_strategy_engine.pricing.black_scholes import BlackScholesPricer, BSMInputs
from option_strategy_engine.pricing.normal import d1, dbar, norm_cdf, vol_sqrt_t
from option_strategy_engine.utils.logging import get_logger
from option_strategy_engine.utils.validation import require_finite, require_non_negative, require_positive

log = get_logger(__name__, component="analytics.metrics")

MIN_PREMIUM = 1e-12


def tenor_from_days(days: float, basis: float = 365.0) -> float:
    """Years from a day count; days are floored with a one-day minimum."""

    days = require_non_negative("days", days)
    basis = require_positive("day-count basis", basis)
    return max(1, math.floor(days)) / basis


@dataclass(frozen=True)
class LegMetrics:
    kind: str
    side: str
    strike: float | None
    premium: float
    quantity: float
    tenor: float
    break_even: float
    prob_of_profit: float
    expected_profit: float
    expected_return: float | None
    expected_gain: float
    expected_loss: float
    stdev: float
    sharpe: float | None
    price: float
    greeks: Greeks

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "side": self.side,
            "strike": self.strike,
            "premium": self.premium,
            "quantity": self.quantity,
            "tenor": self.tenor,
            "break_even": self.break_even,
            "prob_of_profit": self.prob_of_profit,
            "expected_profit": self.expected_profit,
            "expected_return": self.expected_return,
            "expected_gain": self.expected_gain,
            "expected_loss": self.expected_loss,
            "stdev": self.stdev,
            "sharpe": self.sharpe,
            "price": self.price,
            "greeks": self.greeks.to_dict(),
        }


@dataclass(frozen=True)
class LegReport:
    raw: LegMetrics
    scaled: LegMetrics


@dataclass(frozen=True)
class StrategyMetrics:
    """Totals across legs; PoP comes from the strategy break-evens, not the legs."""

    expected_profit: float
    expected_return: float | None
    expected_gain: float
    expected_loss: float
    stdev: float | None
    sharpe: float | None
    greeks: Greeks
    legs: tuple[LegReport, ...]
    prob_of_profit: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "expected_profit": self.expected_profit,
            "expected_return": self.expected_return,
            "expected_gain": self.expected_gain,
            "expected_loss": self.expected_loss,
            "stdev": self.stdev,
            "sharpe": self.sharpe,
            "prob_of_profit": self.prob_of_profit,
            "greeks": self.greeks.to_dict(),
            "legs": [report.scaled.to_dict() for report in self.legs],
        }


def _expected_return(profit: float, premium: float) -> float | None:
    if premium <= 0:
        return None
    return profit / max(MIN_PREMIUM, premium)


def _stock_leg(leg: OptionLeg, ctx: MarketContext) -> LegMetrics:
    drift = ctx.drift
    basis = leg.premium
    forward = ctx.spot * math.exp(drift * ctx.tenor)
    long_profit = forward - basis
    degenerate = vol_sqrt_t(ctx.vol, ctx.tenor) == 0.0

    if degenerate:
        long_gain, prob_above, variance = max(0.0, long_profit), None, 0.0
    else:
        variance = forward * forward * math.expm1(ctx.vol * ctx.vol * ctx.tenor)
        if basis <= 0:
            long_gain, prob_above = forward, 1.0
        else:
            first = d1(ctx.spot, basis, drift, ctx.vol, ctx.tenor)
            bar = dbar(ctx.spot, basis, drift, ctx.vol, ctx.tenor)
            long_gain = max(0.0, long_profit, forward * norm_cdf(first) - basis * norm_cdf(bar))
            prob_above = norm_cdf(bar)
    long_loss = max(0.0, long_gain - long_profit)

    if leg.side == "long":
        profit, gain, loss = long_profit, long_gain, long_loss
        pop = prob_above
    else:
        profit, gain, loss = -long_profit, long_loss, long_gain
        pop = None if prob_above is None else 1.0 - prob_above
    if pop is None:
        pop = 1.0 if profit > 0 else 0.0

    stdev = math.sqrt(max(0.0, variance))
    return LegMetrics(
        kind=leg.kind,
        side=leg.side,
        strike=None,
        premium=leg.premium,
        quantity=leg.quantity,
        tenor=ctx.tenor,
        break_even=basis,
        prob_of_profit=pop,
        expected_profit=profit,
        expected_return=_expected_return(profit, leg.premium),
        expected_gain=gain,
        expected_loss=loss,
        stdev=stdev,
        sharpe=sharpe(profit, stdev),
        price=ctx.spot,
        greeks=replace(ZERO_GREEKS, delta=1.0),
    )


def _option_leg(leg: OptionLeg, ctx: MarketContext, pricer: BlackScholesPricer) -> LegMetrics:
    if leg.strike is None:
        raise InvalidInputError(f"strike is required for a {leg.kind} leg")
    result = evaluate_leg(
        LegExpectation(
            option_type=leg.kind,  # type: ignore[arg-type]
            position=leg.side,
            strike=leg.strike,
            premium=leg.premium,
            spot=ctx.spot,
            vol=ctx.vol,
            tenor=ctx.tenor,
            drift=ctx.drift,
        )
    )
    priced = pricer.evaluate(
        leg.kind,  # type: ignore[arg-type]
        BSMInputs(
            spot=ctx.spot,
            strike=leg.strike,
            tenor=ctx.tenor,
            vol=ctx.vol,
            rate=ctx.rate,
            carry=ctx.carry,
        ),
    )
    return LegMetrics(
        kind=leg.kind,
        side=leg.side,
        strike=leg.strike,
        premium=leg.premium,
        quantity=leg.quantity,
        tenor=ctx.tenor,
        break_even=result.break_even,
        prob_of_profit=result.prob_of_profit,
        expected_profit=result.expected_profit,
        expected_return=_expected_return(result.expected_profit, leg.premium),
        expected_gain=result.expected_gain,
        expected_loss=result.expected_loss,
        stdev=result.stdev,
        sharpe=result.sharpe,
        price=priced.price,
        greeks=priced.greeks,
    )


def compute_leg_metrics(
    leg: OptionLeg,
    ctx: MarketContext,
    contract_multiplier: float = 1.0,
    pricer: BlackScholesPricer | None = None,
) -> LegReport:
    """Evaluate one leg; ``scaled`` multiplies money figures by qty × multiplier."""

    multiplier = require_finite("contract_multiplier", contract_multiplier)
    if multiplier < 1:
        raise InvalidInputError(f"contract_multiplier must be >= 1, got {multiplier}")
    if leg.is_option:
        raw = _option_leg(leg, ctx, pricer or BlackScholesPricer())
    else:
        raw = _stock_leg(leg, ctx)

    size = leg.quantity * multiplier
    scaled = replace(
        raw,
        expected_profit=raw.expected_profit * size,
        expected_gain=raw.expected_gain * size,
        expected_loss=raw.expected_loss * size,
        stdev=raw.stdev * size,
        greeks=raw.greeks.scaled(leg.direction * size),
    )
    return LegReport(raw=raw, scaled=scaled)


def aggregate_strategy_metrics(
    bundle: StrategyBundle,
    ctx: MarketContext,
    contract_multiplier: float = 1.0,
) -> StrategyMetrics:
    """Sum scaled leg metrics.

    Stdev is √Σvar, which treats legs as independent; expected return is
    weighted by premium spent. PoP is analytic from the strategy break-evens.
    """

    pricer = BlackScholesPricer()
    reports = tuple(compute_leg_metrics(leg, ctx, contract_multiplier, pricer) for leg in bundle)

    profit = gain = loss = sum_var = 0.0
    weighted_return = return_weight = 0.0
    greeks = ZERO_GREEKS
    for leg, report in zip(bundle, reports):
        scaled = report.scaled
        profit += scaled.expected_profit
        gain += scaled.expected_gain
        loss += scaled.expected_loss
        sum_var += scaled.stdev * scaled.stdev
        greeks = greeks + scaled.greeks
        if report.raw.expected_return is not None:
            weight = leg.premium * leg.quantity
            weighted_return += report.raw.expected_return * weight
            return_weight += weight

    stdev = math.sqrt(sum_var) if sum_var > 0 else None
    log.debug("aggregated strategy metrics", extra={"method": "sum_of_legs"})
    return StrategyMetrics(
        expected_profit=profit,
        expected_return=weighted_return / return_weight if return_weight > 0 else None,
        expected_gain=gain,
        expected_loss=loss,
        stdev=stdev,
        sharpe=sharpe(profit, stdev) if stdev is not None else None,
        greeks=greeks,
        legs=reports,
        prob_of_profit=strategy_prob_of_profit(bundle, ctx),
    )


__all__ = [
    "LegMetrics",
    "LegReport",
    "StrategyMetrics",
    "aggregate_strategy_metrics",
    "compute_leg_metrics",
    "tenor_from_days",
]
