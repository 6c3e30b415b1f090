"""Expected-value analytics for a single option leg under lognormal S_T.

All quantities are per unit of underlying. Long-side gain and profit are
computed in closed form from truncated lognormal moments; the remaining
figures follow from the identities

    E[X] = E[X+] - E[X-]
    X_short = -X_long

so the short side never re-enters the long-side formulas. When σ√T is zero
the terminal price is deterministic, S_T = S0·e^{μT}.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from option_strategy_engine.exceptions import InvalidInputError
from option_strategy_engine.models.legs import SIDES, OptionType, Side
from option_strategy_engine.pricing.normal import norm_cdf, vol_sqrt_t
from option_strategy_engine.utils.validation import (
    require_finite,
    require_non_negative,
    require_positive,
)

BREAK_EVEN_EPSILON = 1e-9


@dataclass(frozen=True, slots=True)
class LegExpectation:
    """One option leg plus the lognormal model it is evaluated under.

    ``drift`` is μ: r − q for risk-neutral valuation or a CAPM return.
    """

    option_type: OptionType
    position: Side
    strike: float
    premium: float
    spot: float
    vol: float
    tenor: float
    drift: float = 0.0

    def __post_init__(self) -> None:
        if self.option_type not in {"call", "put"}:
            raise InvalidInputError(f"option_type must be 'call' or 'put', got {self.option_type!r}")
        if self.position not in SIDES:
            raise InvalidInputError(f"position must be 'long' or 'short', got {self.position!r}")
        object.__setattr__(self, "strike", require_positive("strike", self.strike))
        object.__setattr__(self, "premium", require_non_negative("premium", self.premium))
        object.__setattr__(self, "spot", require_positive("spot", self.spot))
        object.__setattr__(self, "vol", require_non_negative("vol", self.vol))
        object.__setattr__(self, "tenor", require_non_negative("tenor", self.tenor))
        object.__setattr__(self, "drift", require_finite("drift", self.drift))

    @property
    def vol_sqrt_t(self) -> float:
        return vol_sqrt_t(self.vol, self.tenor)

    @property
    def is_degenerate(self) -> bool:
        return self.vol_sqrt_t == 0.0

    @property
    def forward(self) -> float:
        """E[S_T] = S0·e^{μT}."""
        return self.spot * math.exp(self.drift * self.tenor)


@dataclass(frozen=True, slots=True)
class ExpectedValueResult:
    break_even: float
    prob_of_profit: float
    expected_profit: float
    expected_gain: float
    expected_loss: float
    variance: float
    stdev: float
    sharpe: float | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "break_even": self.break_even,
            "prob_of_profit": self.prob_of_profit,
            "expected_profit": self.expected_profit,
            "expected_gain": self.expected_gain,
            "expected_loss": self.expected_loss,
            "variance": self.variance,
            "stdev": self.stdev,
            "sharpe": self.sharpe,
        }


def break_even(option_type: OptionType, strike: float, premium: float) -> float:
    """Expiry break-even of a single leg: K + p for calls, K − p for puts.

    A put whose premium exceeds its strike never breaks even at a positive
    price; the result is clamped to a tiny positive epsilon for display.
    """

    strike = require_positive("strike", strike)
    premium = require_non_negative("premium", premium)
    if option_type == "call":
        return strike + premium
    if option_type == "put":
        return max(BREAK_EVEN_EPSILON, strike - premium)
    raise InvalidInputError(f"option_type must be 'call' or 'put', got {option_type!r}")


def _intrinsic(option_type: OptionType, price: float, strike: float) -> float:
    if option_type == "call":
        return max(price - strike, 0.0)
    return max(strike - price, 0.0)


def _truncated(leg: LegExpectation, level: float) -> tuple[float, float]:
    """Return (d1, d̄) at threshold ``level`` with μ in place of r − q."""

    v = leg.vol_sqrt_t
    log_moneyness = math.log(leg.spot / level)
    first = (log_moneyness + (leg.drift + 0.5 * leg.vol * leg.vol) * leg.tenor) / v
    bar = (log_moneyness + (leg.drift - 0.5 * leg.vol * leg.vol) * leg.tenor) / v
    return first, bar


def _forward_payoff(leg: LegExpectation, level: float) -> float:
    """E[(S_T − level)+] for calls, E[(level − S_T)+] for puts."""

    if leg.is_degenerate:
        return _intrinsic(leg.option_type, leg.forward, level)
    first, bar = _truncated(leg, level)
    if leg.option_type == "call":
        return leg.forward * norm_cdf(first) - level * norm_cdf(bar)
    return level * norm_cdf(-bar) - leg.forward * norm_cdf(-first)


def expected_payoff(leg: LegExpectation) -> float:
    """Expected option payoff (not P&L) of one long unit."""

    return _forward_payoff(leg, leg.strike)


def _profit_long(leg: LegExpectation) -> float:
    return expected_payoff(leg) - leg.premium


def _gain_long(leg: LegExpectation) -> float:
    """E[X+] for the long leg: the payoff beyond the break-even threshold.

    Floored at max(0, E[X]), which E[X+] can never undercut.
    """

    floor = max(0.0, _profit_long(leg))
    if leg.option_type == "call":
        threshold = leg.strike + leg.premium
    else:
        threshold = leg.strike - leg.premium
        if threshold <= 0:
            return floor
    return max(floor, _forward_payoff(leg, threshold))


def _loss_long(leg: LegExpectation) -> float:
    return max(0.0, _gain_long(leg) - _profit_long(leg))


def expected_profit(leg: LegExpectation) -> float:
    profit = _profit_long(leg)
    return profit if leg.position == "long" else -profit


def expected_gain(leg: LegExpectation) -> float:
    """E[X+], reported non-negative."""

    return _gain_long(leg) if leg.position == "long" else _loss_long(leg)


def expected_loss(leg: LegExpectation) -> float:
    """E[X−], reported non-negative."""

    return _loss_long(leg) if leg.position == "long" else _gain_long(leg)


def variance_payoff(leg: LegExpectation) -> float:
    """Variance of the payoff; premium is a constant shift so this is also the P&L variance."""

    if leg.is_degenerate:
        return 0.0

    v = leg.vol_sqrt_t
    strike = leg.strike
    first, bar = _truncated(leg, strike)
    second_moment = leg.spot * leg.spot * math.exp(2.0 * leg.drift * leg.tenor + leg.vol * leg.vol * leg.tenor)

    if leg.option_type == "call":
        s1 = leg.forward * norm_cdf(first)
        s2 = second_moment * norm_cdf(first + v)
        mean = s1 - strike * norm_cdf(bar)
        raw = s2 - 2.0 * strike * s1 + strike * strike * norm_cdf(bar)
    else:
        s1 = leg.forward * norm_cdf(-first)
        s2 = second_moment * norm_cdf(-(first + v))
        mean = strike * norm_cdf(-bar) - s1
        raw = strike * strike * norm_cdf(-bar) - 2.0 * strike * s1 + s2
    return max(0.0, raw - mean * mean)


def stdev_payoff(leg: LegExpectation) -> float:
    return math.sqrt(variance_payoff(leg))


def sharpe(expected_profit: float, stdev: float) -> float | None:
    """Expected profit per unit of payoff stdev; None when stdev is not positive."""

    if not (math.isfinite(expected_profit) and math.isfinite(stdev)) or stdev <= 0:
        return None
    return expected_profit / stdev


def _needs_above(leg: LegExpectation) -> bool:
    return (leg.option_type == "call") == (leg.position == "long")


def prob_of_profit(leg: LegExpectation) -> float:
    """P(position finishes profitable) relative to the break-even threshold.

    Long call and short put need S_T above it; short call and long put need
    S_T below it.
    """

    if leg.is_degenerate:
        return 1.0 if expected_profit(leg) > 0 else 0.0

    threshold = break_even(leg.option_type, leg.strike, leg.premium)
    z = (math.log(threshold / leg.spot) - (leg.drift - 0.5 * leg.vol * leg.vol) * leg.tenor) / leg.vol_sqrt_t
    below = norm_cdf(z)
    return 1.0 - below if _needs_above(leg) else below


def evaluate_leg(leg: LegExpectation) -> ExpectedValueResult:
    profit = expected_profit(leg)
    variance = variance_payoff(leg)
    stdev = math.sqrt(variance)
    return ExpectedValueResult(
        break_even=break_even(leg.option_type, leg.strike, leg.premium),
        prob_of_profit=prob_of_profit(leg),
        expected_profit=profit,
        expected_gain=expected_gain(leg),
        expected_loss=expected_loss(leg),
        variance=variance,
        stdev=stdev,
        sharpe=sharpe(profit, stdev),
    )


__all__ = [
    "BREAK_EVEN_EPSILON",
    "ExpectedValueResult",
    "LegExpectation",
    "break_even",
    "evaluate_leg",
    "expected_gain",
    "expected_loss",
    "expected_payoff",
    "expected_profit",
    "prob_of_profit",
    "sharpe",
    "stdev_payoff",
    "variance_payoff",
]
