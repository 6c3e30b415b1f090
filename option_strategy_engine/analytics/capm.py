"""CAPM helpers and drift selection for the expected-value analytics."""

from __future__ import annotations

import math

import numpy as np
import pandas as pd

from option_strategy_engine.exceptions import InvalidInputError
from option_strategy_engine.utils.validation import require_finite
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="analytics.capm")


def capm_expected_return(
    rf: float,
    beta: float,
    *,
    erp: float | None = None,
    market_return: float | None = None,
) -> float:
    """E[Ri] = rf + β·ERP.

    ``erp`` wins when both are given; otherwise ERP = market_return − rf, and 0
    when neither is supplied.
    """

    rf = require_finite("rf", rf)
    beta = require_finite("beta", beta)
    if erp is not None:
        premium = require_finite("erp", erp)
    elif market_return is not None:
        premium = require_finite("market_return", market_return) - rf
    else:
        premium = 0.0
    return rf + beta * premium


def capm_alpha(
    realized: float,
    rf: float,
    beta: float,
    *,
    erp: float | None = None,
    market_return: float | None = None,
) -> float:
    """Jensen's alpha: realized return minus the CAPM-implied return."""

    return require_finite("realized", realized) - capm_expected_return(
        rf, beta, erp=erp, market_return=market_return
    )


def beta_from_cov_var(cov: float, var: float) -> float | None:
    cov = require_finite("cov", cov)
    var = require_finite("var", var)
    if var == 0:
        return None
    return cov / var


def beta_from_corr(corr: float, stdev_asset: float, stdev_market: float) -> float | None:
    corr = require_finite("corr", corr)
    stdev_asset = require_finite("stdev_asset", stdev_asset)
    stdev_market = require_finite("stdev_market", stdev_market)
    if stdev_market == 0:
        return None
    return corr * (stdev_asset / stdev_market)


def beta_from_returns(asset: pd.Series, market: pd.Series, *, min_obs: int = 20) -> float | None:
    """Sample beta of ``asset`` against ``market`` after aligning on the index.

    Non-finite observations are dropped. Returns None with fewer than
    ``min_obs`` aligned observations or zero market variance.
    """

    frame = pd.concat([asset.rename("asset"), market.rename("market")], axis=1, join="inner")
    frame = frame.replace([np.inf, -np.inf], np.nan).dropna()
    if len(frame) < max(2, min_obs):
        log.debug("not enough aligned returns for beta", extra={"method": "returns"})
        return None
    var = float(frame["market"].var(ddof=1))
    if not math.isfinite(var) or var <= 0:
        return None
    cov = float(frame["asset"].cov(frame["market"]))
    return cov / var


def drift_from_capm(
    rf: float,
    beta: float,
    *,
    erp: float | None = None,
    market_return: float | None = None,
) -> float:
    """Physical drift μ implied by CAPM; pair with ``drift_from_mode("capm", ...)``."""

    return capm_expected_return(rf, beta, erp=erp, market_return=market_return)


def drift_from_mode(
    mode: str,
    *,
    rate: float = 0.0,
    carry: float = 0.0,
    mu_capm: float | None = None,
) -> float:
    """Resolve μ: ``risk_neutral`` gives r − q, ``capm`` gives the supplied CAPM drift."""

    if mode == "capm":
        if mu_capm is None:
            raise InvalidInputError("mu_capm is required when drift mode is 'capm'")
        return require_finite("mu_capm", mu_capm)
    if mode == "risk_neutral":
        return require_finite("rate", rate) - require_finite("carry", carry)
    raise InvalidInputError(f"drift mode must be 'risk_neutral' or 'capm', got {mode!r}")


__all__ = [
    "beta_from_corr",
    "beta_from_cov_var",
    "beta_from_returns",
    "capm_alpha",
    "capm_expected_return",
    "drift_from_capm",
    "drift_from_mode",
]
