import math

import numpy as np
import pandas as pd
import pytest

from option_strategy_engine.analytics.volatility import (
    atm_by_forward,
    constant_maturity_atm_iv,
    ewma_vol,
    log_returns,
    realized_vol,
    riskmetrics_vol,
    variance_blend,
    winsorize,
)
from option_strategy_engine.exceptions import SchemaError
from option_strategy_engine.pricing.black_scholes import BSMInputs, call_price


def test_variance_blend_interpolates_and_clamps():
    assert variance_blend(0.2, 0.1, 0.3, 0.3, 0.2) == pytest.approx(math.sqrt(0.065))
    assert variance_blend(0.3, 0.3, 0.2, 0.1, 0.2) == pytest.approx(math.sqrt(0.065))
    assert variance_blend(0.2, 0.1, 0.3, 0.3, 1.0) == pytest.approx(0.3)
    assert variance_blend(0.2, 0.1, 0.3, 0.3, 0.0) == pytest.approx(0.2)
    assert variance_blend(0.25, 0.2, 0.4, 0.2, 0.5) == 0.25


def test_atm_by_forward_picks_strike_nearest_forward():
    expiry = pd.DataFrame({"strike": [90.0, 95.0, 100.0, 105.0], "option_type": ["call"] * 4})
    row = atm_by_forward(expiry, spot=100.0, tenor=1.0, rate=0.05)
    assert row["strike"] == 105.0
    assert atm_by_forward(expiry.iloc[0:0], spot=100.0, tenor=1.0) is None


def _chain_row(days, strike, option_type, mid, implied=None):
    return {"expiry_days": days, "strike": strike, "option_type": option_type, "mid": mid, "implied_vol": implied}


def test_constant_maturity_blends_vendor_ivs():
    chain = pd.DataFrame(
        [
            _chain_row(20, 95.0, "call", 6.0, 0.25),
            _chain_row(20, 100.0, "call", 3.0, 0.2),
            _chain_row(40, 100.0, "call", 4.5, 30.0),  # percent-quoted vendor IV
            _chain_row(40, 105.0, "call", 2.0, 0.31),
        ]
    )
    result = constant_maturity_atm_iv(chain, 100.0, target_days=30)
    assert result.method == "cm_variance_blend"
    assert result.iv == pytest.approx(math.sqrt(0.5 * 0.04 + 0.5 * 0.09))
    assert result.meta["near"]["strike"] == 100.0


def test_constant_maturity_inverts_mid_for_single_expiry():
    mid = call_price(BSMInputs(spot=100.0, strike=100.0, tenor=30 / 365, vol=0.25))
    chain = pd.DataFrame([_chain_row(30, 100.0, "call", mid)])
    result = constant_maturity_atm_iv(chain, 100.0, target_days=30)
    assert result.method == "atm_single"
    assert result.iv == pytest.approx(0.25, abs=1e-4)


def test_constant_maturity_requires_chain_columns():
    with pytest.raises(SchemaError):
        constant_maturity_atm_iv(pd.DataFrame({"strike": [100.0]}), 100.0)


def test_log_returns_drop_bad_prices():
    returns = log_returns([100.0, 110.0, 0.0, 121.0])
    assert list(returns) == pytest.approx([math.log(1.1), math.log(1.1)])


def test_winsorize_clips_tails():
    values = pd.Series(np.arange(101, dtype=float))
    clipped = winsorize(values, 0.05)
    assert clipped.min() == pytest.approx(5.0)
    assert clipped.max() == pytest.approx(95.0)
    assert winsorize(values, 0.0).equals(values)


def test_realized_vol_recovers_simulated_sigma():
    rng = np.random.default_rng(42)
    daily = rng.normal(0.0, 0.01, 4000)
    closes = 100.0 * np.exp(np.cumsum(daily))
    assert realized_vol(closes, winsor_p=0.0) == pytest.approx(0.01 * math.sqrt(252), rel=0.05)
    assert realized_vol(closes, window=500, winsor_p=0.0) == pytest.approx(0.01 * math.sqrt(252), rel=0.15)
    assert realized_vol([100.0, 101.0]) is None


def test_ewma_vol_weights_and_lambda_clamp():
    flat = [0.01] * 50
    assert ewma_vol(flat) == pytest.approx(0.0, abs=1e-12)
    rng = np.random.default_rng(5)
    returns = rng.normal(0, 0.02, 200)
    assert ewma_vol(returns, lam=0.1) == pytest.approx(ewma_vol(returns, lam=0.5))
    assert ewma_vol([0.01]) is None


def test_riskmetrics_recursion():
    assert riskmetrics_vol([0.01, 0.02]) == pytest.approx(0.01 * math.sqrt(252))
    expected_var = 0.94 * 4e-4 + 0.06 * 1e-4
    assert riskmetrics_vol([0.01, 0.03], seed_var=4e-4, periods_per_year=1) == pytest.approx(math.sqrt(expected_var))
    assert riskmetrics_vol([]) is None
