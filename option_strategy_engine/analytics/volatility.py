"""Volatility inputs: constant-maturity ATM implied vol and realized estimators.

Volatilities are annualized decimals (0.25 = 25%). Day counts use ACT/365 for
option tenors and 252 periods per year for return series.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable

import numpy as np
import pandas as pd

from option_strategy_engine.exceptions import SchemaError
from option_strategy_engine.utils.validation import require_finite, require_non_negative, require_positive
from option_strategy_engine.pricing.implied_vol import ImpliedVolRequest, implied_vol
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="analytics.volatility")

CHAIN_COLUMNS = ("expiry_days", "strike", "option_type", "mid")
LAMBDA_MIN = 0.5
LAMBDA_MAX = 0.9999


@dataclass(frozen=True)
class ConstantMaturityIV:
    """ATM implied vol at a target maturity plus how it was obtained."""

    iv: float | None
    method: str | None
    meta: dict[str, Any] = field(default_factory=dict)


def variance_blend(iv1: float, t1: float, iv2: float, t2: float, t_star: float) -> float:
    """Blend two IV points linearly in total variance weights; T* is clamped into [T1, T2]."""

    iv1, iv2 = require_non_negative("iv1", iv1), require_non_negative("iv2", iv2)
    t1, t2 = require_finite("t1", t1), require_finite("t2", t2)
    t_star = require_finite("t_star", t_star)
    if t1 == t2:
        return iv1
    (ta, iva), (tb, ivb) = sorted([(t1, iv1), (t2, iv2)])
    t = min(max(t_star, ta), tb)
    w1 = (tb - t) / (tb - ta)
    blended = w1 * iva * iva + (1.0 - w1) * ivb * ivb
    return math.sqrt(max(blended, 0.0))


def atm_by_forward(
    expiry: pd.DataFrame,
    spot: float,
    tenor: float,
    rate: float = 0.0,
    carry: float = 0.0,
) -> pd.Series | None:
    """Return the chain row whose strike is closest to F0 = S0·e^{(r−q)T}."""

    strikes = pd.to_numeric(expiry.get("strike"), errors="coerce")
    valid = expiry[strikes.notna() & (strikes > 0)].reset_index(drop=True)
    if valid.empty:
        return None
    forward = require_positive("spot", spot) * math.exp((rate - carry) * tenor)
    distance = (pd.to_numeric(valid["strike"]) - forward).abs()
    return valid.loc[distance.idxmin()]


def _row_iv(row: pd.Series, spot: float, tenor: float, rate: float, carry: float) -> float | None:
    vendor = row.get("implied_vol")
    if vendor is not None and pd.notna(vendor):
        iv = float(vendor)
        if iv > 1:
            iv /= 100.0
        if 0 < iv < 10:
            return iv
    mid = row.get("mid")
    if mid is None or pd.isna(mid) or float(mid) <= 0 or tenor <= 0:
        return None
    return implied_vol(
        ImpliedVolRequest(
            option_type=str(row["option_type"]).lower(),  # type: ignore[arg-type]
            price=float(mid),
            spot=spot,
            strike=float(row["strike"]),
            tenor=tenor,
            rate=rate,
            carry=carry,
        )
    )


def constant_maturity_atm_iv(
    chain: pd.DataFrame,
    spot: float,
    *,
    rate: float = 0.0,
    carry: float = 0.0,
    target_days: float = 30.0,
    basis: float = 365.0,
) -> ConstantMaturityIV:
    """ATM IV at ``target_days`` from the two expiries that bracket it.

    ``chain`` needs ``expiry_days``, ``strike``, ``option_type`` and ``mid``
    columns; an ``implied_vol`` column is preferred when present (percent
    values are normalized). With a single usable expiry its ATM IV is returned
    as is.
    """

    missing = [col for col in CHAIN_COLUMNS if col not in chain.columns]
    if missing:
        raise SchemaError(f"options chain is missing columns: {missing}")
    spot = require_positive("spot", spot)
    if chain.empty:
        return ConstantMaturityIV(iv=None, method=None, meta={"note": "no_expiries"})

    expiries = sorted(float(d) for d in chain["expiry_days"].dropna().unique())
    below = [d for d in expiries if d < target_days]
    above = [d for d in expiries if d >= target_days]
    near = below[-1] if below else expiries[0]
    far = above[0] if above else expiries[-1]

    def atm_point(days: float) -> tuple[float | None, dict[str, Any]]:
        tenor = max(0.0, days) / basis
        row = atm_by_forward(chain[chain["expiry_days"] == days], spot, tenor, rate, carry)
        if row is None:
            return None, {"days": days, "tenor": tenor}
        iv = _row_iv(row, spot, tenor, rate, carry)
        return iv, {"days": days, "tenor": tenor, "strike": float(row["strike"]), "side": str(row["option_type"])}

    if near == far:
        iv, meta = atm_point(near)
        return ConstantMaturityIV(iv=iv, method="atm_single" if iv is not None else None, meta=meta)

    iv1, meta1 = atm_point(near)
    iv2, meta2 = atm_point(far)
    if iv1 is None and iv2 is None:
        log.debug("no usable ATM quotes around target maturity", extra={"method": "cm_variance_blend"})
        return ConstantMaturityIV(iv=None, method=None, meta={"note": "no_iv"})
    if iv1 is None:
        return ConstantMaturityIV(iv=iv2, method="atm_single", meta=meta2)
    if iv2 is None:
        return ConstantMaturityIV(iv=iv1, method="atm_single", meta=meta1)

    t_star = target_days / basis
    blended = variance_blend(iv1, meta1["tenor"], iv2, meta2["tenor"], t_star)
    return ConstantMaturityIV(
        iv=blended,
        method="cm_variance_blend",
        meta={"t_star": t_star, "near": meta1, "far": meta2},
    )


def log_returns(closes: pd.Series | Iterable[float]) -> pd.Series:
    """Log returns ln(S_i / S_{i-1}) after dropping non-positive or non-finite prices."""

    prices = pd.Series(closes, dtype=float) if not isinstance(closes, pd.Series) else closes.astype(float)
    prices = prices[np.isfinite(prices) & (prices > 0)]
    return np.log(prices / prices.shift(1)).dropna()


def winsorize(values: pd.Series, p: float = 0.01) -> pd.Series:
    """Clamp values to their [p, 1 − p] quantiles (linear interpolation)."""

    if values.empty or p <= 0:
        return values
    lo, hi = values.quantile(p), values.quantile(1.0 - p)
    return values.clip(lower=lo, upper=hi)


def realized_vol(
    closes: pd.Series | Iterable[float],
    window: int | None = None,
    winsor_p: float = 0.01,
    periods_per_year: int = 252,
) -> float | None:
    """Annualized sample stdev of (optionally winsorized) log returns.

    ``window`` keeps only the most recent returns. None with fewer than two.
    """

    returns = log_returns(closes)
    if window is not None:
        returns = returns.tail(int(window))
    if len(returns) < 2:
        return None
    returns = winsorize(returns, winsor_p)
    return float(returns.std(ddof=1)) * math.sqrt(max(1, periods_per_year))


def _clamp_lambda(lam: float) -> float:
    if not math.isfinite(lam):
        return 0.94
    return min(max(lam, LAMBDA_MIN), LAMBDA_MAX)


def _clean(returns: pd.Series | Iterable[float]) -> np.ndarray:
    arr = np.asarray(list(returns) if not isinstance(returns, pd.Series) else returns.to_numpy(), dtype=float)
    return arr[np.isfinite(arr)]


def ewma_vol(returns: pd.Series | Iterable[float], lam: float = 0.94, periods_per_year: int = 252) -> float | None:
    """Annualized EWMA stdev around the EWMA mean with normalized weights (newest heaviest)."""

    r = _clean(returns)
    if r.size < 2:
        return None
    decay = _clamp_lambda(lam)
    weights = (1.0 - decay) * decay ** np.arange(r.size - 1, -1, -1, dtype=float)
    weights /= weights.sum()
    mean = float(np.dot(weights, r))
    variance = float(np.dot(weights, (r - mean) ** 2))
    return math.sqrt(max(variance, 0.0)) * math.sqrt(max(1, periods_per_year))


def riskmetrics_vol(
    returns: pd.Series | Iterable[float],
    lam: float = 0.94,
    periods_per_year: int = 252,
    seed_var: float | None = None,
) -> float | None:
    """Annualized RiskMetrics sigma: σ²_t = λσ²_{t−1} + (1 − λ)r²_{t−1}, seeded with r_0²."""

    r = _clean(returns)
    if r.size == 0:
        return None
    decay = _clamp_lambda(lam)
    variance = float(seed_var) if seed_var is not None else float(r[0] * r[0])
    for prev in r[:-1]:
        variance = decay * variance + (1.0 - decay) * float(prev * prev)
    if not math.isfinite(variance) or variance < 0:
        return None
    return math.sqrt(variance) * math.sqrt(max(1, periods_per_year))


__all__ = [
    "ConstantMaturityIV",
    "atm_by_forward",
    "constant_maturity_atm_iv",
    "ewma_vol",
    "log_returns",
    "realized_vol",
    "riskmetrics_vol",
    "variance_blend",
    "winsorize",
]
