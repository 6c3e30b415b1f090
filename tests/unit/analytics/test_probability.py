import pytest

from option_strategy_engine.analytics.metrics import compute_leg_metrics
from option_strategy_engine.analytics.probability import strategy_prob_of_profit
from option_strategy_engine.models.legs import OptionLeg, StrategyBundle
from option_strategy_engine.models.market import MarketContext
from option_strategy_engine.pricing.normal import lognormal_cdf

CTX = MarketContext(spot=100.0, vol=0.25, tenor=0.5, rate=0.04, carry=0.01)


def cdf(level, ctx=CTX):
    return lognormal_cdf(level, ctx.spot, ctx.drift, ctx.vol, ctx.tenor)


def bundle(*legs):
    return StrategyBundle(tuple(legs))


def test_short_strangle_profits_inside_the_band():
    strangle = bundle(OptionLeg("call", "short", 2.0, strike=110.0), OptionLeg("put", "short", 2.0, strike=90.0))
    assert strategy_prob_of_profit(strangle, CTX) == pytest.approx(cdf(114.0) - cdf(86.0))


def test_long_straddle_profits_outside_the_band():
    straddle = bundle(OptionLeg("call", "long", 4.0, strike=100.0), OptionLeg("put", "long", 3.0, strike=100.0))
    assert strategy_prob_of_profit(straddle, CTX) == pytest.approx(1.0 - (cdf(107.0) - cdf(93.0)))


def test_long_call_profits_above_break_even():
    leg = OptionLeg("call", "long", 5.0, strike=100.0)
    pop = strategy_prob_of_profit(bundle(leg), CTX)
    assert pop == pytest.approx(1.0 - cdf(105.0))
    assert pop == pytest.approx(compute_leg_metrics(leg, CTX).raw.prob_of_profit)

    short = strategy_prob_of_profit(bundle(OptionLeg("call", "short", 5.0, strike=100.0)), CTX)
    assert pop + short == pytest.approx(1.0)


def test_credit_spread_profitable_at_spot():
    spread = bundle(OptionLeg("put", "short", 4.0, strike=100.0), OptionLeg("put", "long", 1.0, strike=90.0))
    assert strategy_prob_of_profit(spread, CTX) == pytest.approx(1.0 - cdf(97.0))


def test_explicit_break_evens_use_outer_pair():
    strangle = bundle(OptionLeg("call", "short", 2.0, strike=110.0), OptionLeg("put", "short", 2.0, strike=90.0))
    pop = strategy_prob_of_profit(strangle, CTX, break_evens=[114.0, 100.0, 86.0])
    assert pop == pytest.approx(cdf(114.0) - cdf(86.0))


@pytest.mark.parametrize("ctx", [MarketContext(spot=100.0, vol=0.0, tenor=0.5), MarketContext(spot=100.0, vol=0.3, tenor=0.0)])
def test_degenerate_market_is_all_or_nothing(ctx):
    assert strategy_prob_of_profit(bundle(OptionLeg("call", "long", 1.0, strike=90.0)), ctx) == 1.0
    assert strategy_prob_of_profit(bundle(OptionLeg("call", "long", 1.0, strike=110.0)), ctx) == 0.0


def test_undefined_without_break_even():
    flat = bundle(
        OptionLeg("stock", "long", 100.0),
        OptionLeg("put", "long", 3.0, strike=100.0),
        OptionLeg("call", "short", 2.0, strike=100.0),
    )
    assert strategy_prob_of_profit(flat, CTX) is None
    assert strategy_prob_of_profit(StrategyBundle(), CTX) is None
