"""Standard normal and lognormal utilities.

erf uses the Abramowitz-Stegun 7.1.26 rational approximation (absolute error
below 1.5e-7), which is accurate enough for display-grade option analytics and
keeps the core free of special-function dependencies.
"""

from __future__ import annotations

import math

SQRT_2PI = math.sqrt(2.0 * math.pi)
Z_975 = 1.959963984540054

_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911


def erf(x: float) -> float:
    sign = -1.0 if x < 0 else 1.0
    x = abs(x)
    t = 1.0 / (1.0 + _P * x)
    y = 1.0 - ((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x)
    return sign * y


def norm_cdf(z: float) -> float:
    """Standard normal CDF Φ(z)."""
    return 0.5 * (1.0 + erf(z / math.sqrt(2.0)))


def norm_pdf(z: float) -> float:
    """Standard normal density φ(z)."""
    return math.exp(-0.5 * z * z) / SQRT_2PI


def vol_sqrt_t(vol: float, tenor: float) -> float:
    """Return σ√T, or 0.0 when either factor is non-positive (degenerate)."""

    if vol <= 0 or tenor <= 0:
        return 0.0
    return vol * math.sqrt(tenor)


def d1(spot: float, strike: float, drift: float, vol: float, tenor: float) -> float | None:
    """d1 with drift μ in the numerator: [ln(S/K) + (μ + σ²/2)T] / σ√T.

    Pass ``drift = r - q`` for the risk-neutral pricer. Returns None when σ√T is 0.
    """

    v = vol_sqrt_t(vol, tenor)
    if v == 0.0:
        return None
    return (math.log(spot / strike) + (drift + 0.5 * vol * vol) * tenor) / v


def d2(spot: float, strike: float, drift: float, vol: float, tenor: float) -> float | None:
    value = d1(spot, strike, drift, vol, tenor)
    if value is None:
        return None
    return value - vol_sqrt_t(vol, tenor)


def dbar(spot: float, strike: float, drift: float, vol: float, tenor: float) -> float | None:
    """d̄ = [ln(S/K) + (μ − σ²/2)T] / σ√T, so that P(S_T > K) = Φ(d̄)."""

    v = vol_sqrt_t(vol, tenor)
    if v == 0.0:
        return None
    return (math.log(spot / strike) + (drift - 0.5 * vol * vol) * tenor) / v


def lognormal_cdf(x: float, spot: float, drift: float, vol: float, tenor: float) -> float | None:
    """P(S_T <= x) for geometric Brownian motion started at ``spot``."""

    v = vol_sqrt_t(vol, tenor)
    if x <= 0 or spot <= 0 or v == 0.0:
        return None
    z = (math.log(x / spot) - (drift - 0.5 * vol * vol) * tenor) / v
    return norm_cdf(z)


def lognormal_pdf(x: float, spot: float, drift: float, vol: float, tenor: float) -> float | None:
    v = vol_sqrt_t(vol, tenor)
    if x <= 0 or spot <= 0 or v == 0.0:
        return None
    y = (math.log(x / spot) - (drift - 0.5 * vol * vol) * tenor) / v
    return math.exp(-0.5 * y * y) / (x * v * SQRT_2PI)


def gbm_mean(spot: float, drift: float, tenor: float) -> float:
    """E[S_T] = S0·e^{μT}."""
    return spot * math.exp(drift * tenor)


def gbm_ci95(spot: float, drift: float, vol: float, tenor: float) -> tuple[float, float]:
    """Central 95% interval of S_T under GBM."""

    v = vol * math.sqrt(max(0.0, tenor))
    m = math.log(max(1e-12, spot)) + (drift - 0.5 * vol * vol) * tenor
    return math.exp(m - Z_975 * v), math.exp(m + Z_975 * v)


__all__ = [
    "d1",
    "d2",
    "dbar",
    "erf",
    "gbm_ci95",
    "gbm_mean",
    "lognormal_cdf",
    "lognormal_pdf",
    "norm_cdf",
    "norm_pdf",
    "vol_sqrt_t",
]
