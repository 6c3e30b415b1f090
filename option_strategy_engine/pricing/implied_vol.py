"""Implied volatility inversion of the BSM pricer.

Newton-Raphson runs first; when vega collapses (deep ITM/OTM, very short
tenor) or Newton fails to converge, the solver brackets the root and bisects.
An unreachable target returns None rather than raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from option_strategy_engine.exceptions import InvalidInputError
from option_strategy_engine.models.legs import OptionType
from option_strategy_engine.pricing.black_scholes import BSMInputs, option_price, vega
from option_strategy_engine.utils.validation import (
    require_finite,
    require_non_negative,
    require_positive,
)
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="implied_vol")

SIGMA_MIN = 1e-6
SIGMA_MAX = 5.0
MIN_VEGA = 1e-10
BOUND_SLACK = 1e-10
BRACKET_GROWTH = 1.6
BRACKET_STEPS = 25
BISECTION_STEPS = 80


@dataclass(frozen=True, slots=True)
class ImpliedVolRequest:
    """Observed option price plus the market inputs needed to invert it."""

    option_type: OptionType
    price: float
    spot: float
    strike: float
    tenor: float
    rate: float = 0.0
    carry: float = 0.0
    sigma_init: float = 0.2
    tol: float = 1e-8
    max_iter: int = 50

    def __post_init__(self) -> None:
        if self.option_type not in {"call", "put"}:
            raise InvalidInputError(f"option_type must be 'call' or 'put', got {self.option_type!r}")
        object.__setattr__(self, "price", require_non_negative("price", self.price))
        object.__setattr__(self, "spot", require_positive("spot", self.spot))
        object.__setattr__(self, "strike", require_positive("strike", self.strike))
        object.__setattr__(self, "tenor", require_non_negative("tenor", self.tenor))
        object.__setattr__(self, "rate", require_finite("rate", self.rate))
        object.__setattr__(self, "carry", require_finite("carry", self.carry))
        object.__setattr__(self, "sigma_init", require_positive("sigma_init", self.sigma_init))
        object.__setattr__(self, "tol", require_positive("tol", self.tol))
        if int(self.max_iter) < 1:
            raise InvalidInputError(f"max_iter must be >= 1, got {self.max_iter}")
        object.__setattr__(self, "max_iter", int(self.max_iter))

    def inputs(self, vol: float) -> BSMInputs:
        return BSMInputs(
            spot=self.spot,
            strike=self.strike,
            tenor=self.tenor,
            vol=vol,
            rate=self.rate,
            carry=self.carry,
        )

    def price_bounds(self) -> tuple[float, float]:
        """No-arbitrage price interval for the option under continuous carry."""

        fwd_spot = self.spot * math.exp(-self.carry * self.tenor)
        pv_strike = self.strike * math.exp(-self.rate * self.tenor)
        if self.option_type == "call":
            return max(0.0, fwd_spot - pv_strike), fwd_spot
        return max(0.0, pv_strike - fwd_spot), pv_strike


def _clamp(sigma: float) -> float:
    return min(SIGMA_MAX, max(SIGMA_MIN, sigma))


def _newton(request: ImpliedVolRequest) -> tuple[float | None, float]:
    """Return (root or None, last iterate) so bisection can seed its bracket."""

    sigma = _clamp(request.sigma_init)
    for _ in range(request.max_iter):
        inputs = request.inputs(sigma)
        diff = option_price(request.option_type, inputs) - request.price
        if abs(diff) <= request.tol:
            return sigma, sigma
        slope = vega(inputs)
        if not math.isfinite(slope) or slope < MIN_VEGA:
            log.debug("vega collapsed during Newton", extra={"method": "newton", "option_type": request.option_type})
            return None, sigma
        sigma = _clamp(sigma - diff / slope)
    return None, sigma


def _bisect(request: ImpliedVolRequest, seed: float) -> float | None:
    def objective(sigma: float) -> float:
        return option_price(request.option_type, request.inputs(sigma)) - request.price

    lo = SIGMA_MIN
    hi = min(SIGMA_MAX, max(1.0, 2.0 * seed))
    f_lo = objective(lo)
    if abs(f_lo) <= request.tol:
        return lo
    f_hi = objective(hi)
    steps = 0
    while f_lo * f_hi > 0 and steps < BRACKET_STEPS:
        if hi >= SIGMA_MAX:
            break
        hi = min(SIGMA_MAX, hi * BRACKET_GROWTH)
        f_hi = objective(hi)
        steps += 1
    if f_lo * f_hi > 0:
        log.debug("implied vol not bracketed", extra={"method": "bisection", "option_type": request.option_type})
        return None

    for _ in range(BISECTION_STEPS):
        mid = 0.5 * (lo + hi)
        f_mid = objective(mid)
        if abs(f_mid) <= request.tol:
            return mid
        if f_lo * f_mid <= 0:
            hi = mid
        else:
            lo, f_lo = mid, f_mid
    return 0.5 * (lo + hi)


def implied_vol(request: ImpliedVolRequest) -> float | None:
    """Solve for σ such that the BSM price matches ``request.price``.

    Returns 0.0 at expiry when the price equals intrinsic value, and None when
    the price violates no-arbitrage bounds or no bracket can be found.
    """

    if request.tenor == 0:
        intrinsic = option_price(request.option_type, request.inputs(0.0))
        return 0.0 if abs(request.price - intrinsic) <= request.tol else None

    lower, upper = request.price_bounds()
    if request.price < lower - BOUND_SLACK or request.price > upper + BOUND_SLACK:
        log.debug(
            "price outside no-arbitrage bounds",
            extra={"option_type": request.option_type},
        )
        return None

    root, last = _newton(request)
    if root is not None:
        return root
    log.debug("newton failed, falling back to bisection", extra={"method": "bisection"})
    return _bisect(request, last)


def implied_vol_call(price: float, spot: float, strike: float, tenor: float, rate: float = 0.0, carry: float = 0.0) -> float | None:
    return implied_vol(ImpliedVolRequest("call", price, spot, strike, tenor, rate, carry))


def implied_vol_put(price: float, spot: float, strike: float, tenor: float, rate: float = 0.0, carry: float = 0.0) -> float | None:
    return implied_vol(ImpliedVolRequest("put", price, spot, strike, tenor, rate, carry))


__all__ = ["ImpliedVolRequest", "implied_vol", "implied_vol_call", "implied_vol_put"]
