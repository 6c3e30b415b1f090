"""Black-Scholes-Merton pricer with continuous carry.

All Greeks are for a long position of one unit; side and quantity scaling is
applied when legs are aggregated. Vega is reported per 1 vol-point and theta
per calendar day. When σ√T is zero the model collapses to the discounted
intrinsic value and the Greeks of that deterministic payoff.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from option_strategy_engine.exceptions import InvalidInputError
from option_strategy_engine.interfaces.pricing import Greeks, OptionPricer, PricingResult
from option_strategy_engine.models.legs import OptionType
from option_strategy_engine.utils.validation import (
    require_finite,
    require_non_negative,
    require_positive,
)
from option_strategy_engine.pricing.normal import d1, norm_cdf, norm_pdf, vol_sqrt_t

DAYS_PER_YEAR = 365.0
VOL_POINT = 100.0


@dataclass(frozen=True, slots=True)
class BSMInputs:
    """Pricer inputs: S0 > 0, K > 0, T >= 0 (years), σ >= 0, r and q continuous."""

    spot: float
    strike: float
    tenor: float
    vol: float
    rate: float = 0.0
    carry: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "spot", require_positive("spot", self.spot))
        object.__setattr__(self, "strike", require_positive("strike", self.strike))
        object.__setattr__(self, "tenor", require_non_negative("tenor", self.tenor))
        object.__setattr__(self, "vol", require_non_negative("vol", self.vol))
        object.__setattr__(self, "rate", require_finite("rate", self.rate))
        object.__setattr__(self, "carry", require_finite("carry", self.carry))

    @property
    def is_degenerate(self) -> bool:
        return vol_sqrt_t(self.vol, self.tenor) == 0.0

    @property
    def spot_discount(self) -> float:
        return math.exp(-self.carry * self.tenor)

    @property
    def strike_discount(self) -> float:
        return math.exp(-self.rate * self.tenor)

    def with_vol(self, vol: float) -> "BSMInputs":
        return BSMInputs(self.spot, self.strike, self.tenor, vol, self.rate, self.carry)


def _check_type(option_type: str) -> None:
    if option_type not in {"call", "put"}:
        raise InvalidInputError(f"option_type must be 'call' or 'put', got {option_type!r}")


def _d1_d2(inputs: BSMInputs) -> tuple[float, float]:
    first = d1(inputs.spot, inputs.strike, inputs.rate - inputs.carry, inputs.vol, inputs.tenor)
    if first is None:
        raise InvalidInputError("d1 is undefined when vol * sqrt(tenor) is zero")
    return first, first - vol_sqrt_t(inputs.vol, inputs.tenor)


def call_price(inputs: BSMInputs) -> float:
    fwd_spot = inputs.spot * inputs.spot_discount
    pv_strike = inputs.strike * inputs.strike_discount
    if inputs.is_degenerate:
        return max(fwd_spot - pv_strike, 0.0)
    first, second = _d1_d2(inputs)
    return fwd_spot * norm_cdf(first) - pv_strike * norm_cdf(second)


def put_price(inputs: BSMInputs) -> float:
    fwd_spot = inputs.spot * inputs.spot_discount
    pv_strike = inputs.strike * inputs.strike_discount
    if inputs.is_degenerate:
        return max(pv_strike - fwd_spot, 0.0)
    first, second = _d1_d2(inputs)
    return pv_strike * norm_cdf(-second) - fwd_spot * norm_cdf(-first)


def option_price(option_type: OptionType, inputs: BSMInputs) -> float:
    _check_type(option_type)
    return call_price(inputs) if option_type == "call" else put_price(inputs)


def vega(inputs: BSMInputs) -> float:
    """Vega per 1.00 change in σ (not per vol-point); 0.0 in the degenerate branch."""

    if inputs.is_degenerate:
        return 0.0
    first, _ = _d1_d2(inputs)
    return inputs.spot * inputs.spot_discount * norm_pdf(first) * math.sqrt(inputs.tenor)


def _degenerate_greeks(option_type: OptionType, inputs: BSMInputs) -> Greeks:
    fwd_spot = inputs.spot * inputs.spot_discount
    pv_strike = inputs.strike * inputs.strike_discount
    if option_type == "call":
        if fwd_spot <= pv_strike:
            return Greeks(delta=0.0, gamma=0.0, vega=0.0, theta=0.0, rho=0.0)
        theta_year = inputs.carry * fwd_spot - inputs.rate * pv_strike
        return Greeks(
            delta=inputs.spot_discount,
            gamma=0.0,
            vega=0.0,
            theta=theta_year / DAYS_PER_YEAR,
            rho=inputs.tenor * pv_strike,
        )
    if pv_strike <= fwd_spot:
        return Greeks(delta=0.0, gamma=0.0, vega=0.0, theta=0.0, rho=0.0)
    theta_year = inputs.rate * pv_strike - inputs.carry * fwd_spot
    return Greeks(
        delta=-inputs.spot_discount,
        gamma=0.0,
        vega=0.0,
        theta=theta_year / DAYS_PER_YEAR,
        rho=-inputs.tenor * pv_strike,
    )


def option_greeks(option_type: OptionType, inputs: BSMInputs) -> Greeks:
    _check_type(option_type)
    if inputs.is_degenerate:
        return _degenerate_greeks(option_type, inputs)

    first, second = _d1_d2(inputs)
    sqrt_t = math.sqrt(inputs.tenor)
    dfq = inputs.spot_discount
    dfr = inputs.strike_discount
    density = norm_pdf(first)

    gamma = dfq * density / (inputs.spot * inputs.vol * sqrt_t)
    vega_points = inputs.spot * dfq * density * sqrt_t / VOL_POINT
    decay = -inputs.spot * dfq * density * inputs.vol / (2.0 * sqrt_t)

    if option_type == "call":
        delta = dfq * norm_cdf(first)
        theta_year = (
            decay
            - inputs.rate * inputs.strike * dfr * norm_cdf(second)
            + inputs.carry * inputs.spot * dfq * norm_cdf(first)
        )
        rho = inputs.strike * inputs.tenor * dfr * norm_cdf(second)
    else:
        delta = -dfq * norm_cdf(-first)
        theta_year = (
            decay
            + inputs.rate * inputs.strike * dfr * norm_cdf(-second)
            - inputs.carry * inputs.spot * dfq * norm_cdf(-first)
        )
        rho = -inputs.strike * inputs.tenor * dfr * norm_cdf(-second)

    return Greeks(delta=delta, gamma=gamma, vega=vega_points, theta=theta_year / DAYS_PER_YEAR, rho=rho)


def call_greeks(inputs: BSMInputs) -> Greeks:
    return option_greeks("call", inputs)


def put_greeks(inputs: BSMInputs) -> Greeks:
    return option_greeks("put", inputs)


class BlackScholesPricer(OptionPricer):
    """European BSM pricer with continuous dividend yield / borrow."""

    def price(self, option_type: OptionType, inputs: BSMInputs) -> float:
        return option_price(option_type, inputs)

    def greeks(self, option_type: OptionType, inputs: BSMInputs) -> Greeks:
        return option_greeks(option_type, inputs)


def price_option(option_type: OptionType, inputs: BSMInputs) -> PricingResult:
    return BlackScholesPricer().evaluate(option_type, inputs)


__all__ = [
    "BSMInputs",
    "BlackScholesPricer",
    "call_greeks",
    "call_price",
    "option_greeks",
    "option_price",
    "price_option",
    "put_greeks",
    "put_price",
    "vega",
]
