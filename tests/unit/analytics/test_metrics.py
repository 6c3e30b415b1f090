import math

import pytest

from option_strategy_engine.analytics.metrics import (
    aggregate_strategy_metrics,
    compute_leg_metrics,
    tenor_from_days,
)
from option_strategy_engine.exceptions import InvalidInputError
from option_strategy_engine.models.legs import OptionLeg, StrategyBundle
from option_strategy_engine.models.market import MarketContext
from option_strategy_engine.pricing.normal import lognormal_cdf, norm_cdf

CTX = MarketContext(spot=100.0, vol=0.25, tenor=0.5, rate=0.04, carry=0.01)


def test_tenor_from_days_floors_with_one_day_minimum():
    assert tenor_from_days(30) == pytest.approx(30 / 365)
    assert tenor_from_days(30.9) == pytest.approx(30 / 365)
    assert tenor_from_days(0.2) == pytest.approx(1 / 365)
    assert tenor_from_days(63, basis=252) == pytest.approx(0.25)
    with pytest.raises(InvalidInputError):
        tenor_from_days(30, basis=0)


def test_leg_metrics_scale_by_quantity_and_multiplier():
    leg = OptionLeg(kind="call", side="long", strike=105.0, premium=3.0, quantity=2)
    report = compute_leg_metrics(leg, CTX, contract_multiplier=100)
    raw, scaled = report.raw, report.scaled
    assert scaled.expected_profit == pytest.approx(raw.expected_profit * 200)
    assert scaled.stdev == pytest.approx(raw.stdev * 200)
    assert scaled.greeks.delta == pytest.approx(raw.greeks.delta * 200)
    assert scaled.prob_of_profit == raw.prob_of_profit
    assert raw.break_even == 108.0
    assert raw.expected_return == pytest.approx(raw.expected_profit / 3.0)
    assert raw.expected_profit == pytest.approx(raw.expected_gain - raw.expected_loss, abs=1e-9)


def test_short_leg_greeks_flip_sign():
    long_leg = compute_leg_metrics(OptionLeg("put", "long", 4.0, strike=95.0), CTX)
    short_leg = compute_leg_metrics(OptionLeg("put", "short", 4.0, strike=95.0), CTX)
    assert short_leg.scaled.greeks.delta == pytest.approx(-long_leg.scaled.greeks.delta)
    assert short_leg.raw.greeks == long_leg.raw.greeks
    assert short_leg.raw.expected_profit == pytest.approx(-long_leg.raw.expected_profit)


def test_stock_leg_uses_lognormal_terminal_price():
    report = compute_leg_metrics(OptionLeg("stock", "long", 100.0), CTX)
    raw = report.raw
    drift = 0.03
    forward = 100.0 * math.exp(drift * 0.5)
    v = 0.25 * math.sqrt(0.5)
    assert raw.expected_profit == pytest.approx(forward - 100.0)
    assert raw.expected_profit == pytest.approx(raw.expected_gain - raw.expected_loss, abs=1e-9)
    assert raw.prob_of_profit == pytest.approx(norm_cdf((drift - 0.5 * 0.25**2) * 0.5 / v))
    assert raw.stdev == pytest.approx(forward * math.sqrt(math.expm1(0.25**2 * 0.5)))
    assert raw.greeks.delta == 1.0
    assert raw.break_even == 100.0

    short = compute_leg_metrics(OptionLeg("stock", "short", 100.0, quantity=3), CTX)
    assert short.raw.prob_of_profit == pytest.approx(1 - raw.prob_of_profit)
    assert short.scaled.greeks.delta == pytest.approx(-3.0)


def test_aggregate_covered_call():
    bundle = StrategyBundle(
        (
            OptionLeg("stock", "long", 100.0),
            OptionLeg("call", "short", 3.5, strike=110.0),
        )
    )
    totals = aggregate_strategy_metrics(bundle, CTX)
    stock, call = totals.legs
    assert totals.expected_profit == pytest.approx(stock.scaled.expected_profit + call.scaled.expected_profit)
    assert totals.stdev == pytest.approx(math.hypot(stock.scaled.stdev, call.scaled.stdev))
    assert totals.sharpe == pytest.approx(totals.expected_profit / totals.stdev)
    assert totals.greeks.delta == pytest.approx(1.0 - call.raw.greeks.delta)
    assert totals.prob_of_profit == pytest.approx(1 - lognormal_cdf(96.5, 100.0, CTX.drift, 0.25, 0.5))
    payload = totals.to_dict()
    assert len(payload["legs"]) == 2


def test_aggregate_without_spread_has_no_stdev():
    flat = MarketContext(spot=100.0, vol=0.0, tenor=0.5)
    totals = aggregate_strategy_metrics(StrategyBundle((OptionLeg("call", "long", 1.0, strike=90.0),)), flat)
    assert totals.stdev is None
    assert totals.sharpe is None
    assert totals.expected_profit == pytest.approx(9.0)
    assert totals.prob_of_profit == 1.0


@pytest.mark.parametrize("multiplier", [0.5, 0.0, -100.0, float("nan"), None])
def test_out_of_range_multiplier_is_rejected(multiplier):
    leg = OptionLeg("call", "long", 5.0, strike=100.0)
    with pytest.raises(InvalidInputError):
        compute_leg_metrics(leg, CTX, contract_multiplier=multiplier)
    with pytest.raises(InvalidInputError):
        aggregate_strategy_metrics(StrategyBundle((leg,)), CTX, contract_multiplier=multiplier)


def test_fractional_multiplier_above_one_is_applied_as_given():
    leg = OptionLeg("call", "long", 5.0, strike=100.0)
    report = compute_leg_metrics(leg, CTX, contract_multiplier=2.5)
    assert report.scaled.expected_profit == pytest.approx(report.raw.expected_profit * 2.5)


@pytest.mark.parametrize("days", [-5, float("nan"), None, "thirty"])
def test_tenor_from_days_rejects_bad_day_counts(days):
    with pytest.raises(InvalidInputError):
        tenor_from_days(days)


def test_option_leg_without_strike_is_rejected():
    leg = OptionLeg("call", "long", 5.0, strike=100.0)
    object.__setattr__(leg, "strike", None)
    with pytest.raises(InvalidInputError):
        compute_leg_metrics(leg, CTX)
