import itertools
import math

import numpy as np
import pytest

from option_strategy_engine.analytics.expected_value import (
    BREAK_EVEN_EPSILON,
    LegExpectation,
    break_even,
    evaluate_leg,
    expected_gain,
    expected_loss,
    expected_payoff,
    expected_profit,
    prob_of_profit,
    sharpe,
    stdev_payoff,
    variance_payoff,
)
from option_strategy_engine.exceptions import InvalidInputError
from option_strategy_engine.pricing.black_scholes import BSMInputs, call_price, put_price

COMBOS = list(itertools.product(["call", "put"], ["long", "short"]))


def _random_legs(seed: int, count: int):
    rng = np.random.default_rng(seed)
    for _ in range(count):
        for option_type, position in COMBOS:
            yield LegExpectation(
                option_type=option_type,
                position=position,
                strike=float(rng.uniform(50, 150)),
                premium=float(rng.uniform(0.0, 20.0)),
                spot=100.0,
                vol=float(rng.uniform(0.05, 1.2)),
                tenor=float(rng.uniform(0.02, 3.0)),
                drift=float(rng.uniform(-0.05, 0.15)),
            )


def test_break_even_examples():
    assert break_even("call", 100.0, 5.0) == 105.0
    assert break_even("put", 100.0, 5.0) == 95.0
    clamped = break_even("put", 3.0, 5.0)
    assert clamped == BREAK_EVEN_EPSILON
    assert clamped > 0


def test_break_even_rejects_invalid():
    with pytest.raises(InvalidInputError):
        break_even("call", 0.0, 1.0)
    with pytest.raises(InvalidInputError):
        break_even("put", 100.0, -1.0)


def test_profit_equals_gain_minus_loss():
    for leg in _random_legs(11, 50):
        profit = expected_profit(leg)
        assert profit == pytest.approx(expected_gain(leg) - expected_loss(leg), abs=1e-9)
        assert expected_gain(leg) >= 0
        assert expected_loss(leg) >= 0


def test_short_side_mirrors_long_side():
    for leg in _random_legs(12, 30):
        if leg.position != "long":
            continue
        short = LegExpectation(
            leg.option_type, "short", leg.strike, leg.premium, leg.spot, leg.vol, leg.tenor, leg.drift
        )
        assert expected_gain(short) == expected_loss(leg)
        assert expected_loss(short) == expected_gain(leg)
        assert expected_profit(short) == -expected_profit(leg)


def test_variance_non_negative_and_stdev_is_root():
    for leg in _random_legs(13, 40):
        variance = variance_payoff(leg)
        assert variance >= 0
        assert stdev_payoff(leg) == pytest.approx(math.sqrt(variance))


def test_risk_neutral_expected_payoff_is_forward_option_value():
    leg = LegExpectation("call", "long", 105.0, 4.0, 100.0, 0.25, 0.75, drift=0.04)
    inputs = BSMInputs(spot=100.0, strike=105.0, tenor=0.75, vol=0.25, rate=0.04)
    assert expected_payoff(leg) * math.exp(-0.04 * 0.75) == pytest.approx(call_price(inputs), abs=1e-9)

    put = LegExpectation("put", "long", 105.0, 4.0, 100.0, 0.25, 0.75, drift=0.04)
    assert expected_payoff(put) * math.exp(-0.04 * 0.75) == pytest.approx(put_price(inputs), abs=1e-9)


def test_prob_of_profit_is_complementary_across_sides():
    long_call = LegExpectation("call", "long", 100.0, 5.0, 100.0, 0.2, 1.0, 0.05)
    short_call = LegExpectation("call", "short", 100.0, 5.0, 100.0, 0.2, 1.0, 0.05)
    pop = prob_of_profit(long_call)
    assert 0 < pop < 1
    assert pop + prob_of_profit(short_call) == pytest.approx(1.0)

    # long call profits above 105: z = (ln(1.05) - 0.03) / 0.2
    z = (math.log(1.05) - 0.03) / 0.2
    assert pop == pytest.approx(1 - 0.5 * (1 + math.erf(z / math.sqrt(2))), abs=1e-7)


def test_degenerate_leg_is_deterministic():
    leg = LegExpectation("call", "long", 100.0, 3.0, 100.0, 0.0, 1.0, drift=0.1)
    terminal = 100.0 * math.exp(0.1)
    assert expected_profit(leg) == pytest.approx(terminal - 100.0 - 3.0)
    assert variance_payoff(leg) == 0.0
    assert prob_of_profit(leg) == 1.0
    result = evaluate_leg(leg)
    assert result.sharpe is None
    assert result.expected_loss == pytest.approx(0.0)

    losing = LegExpectation("put", "long", 100.0, 3.0, 100.0, 0.2, 0.0, drift=0.0)
    assert expected_profit(losing) == pytest.approx(-3.0)
    assert prob_of_profit(losing) == 0.0
    assert expected_loss(losing) == pytest.approx(3.0)


def test_put_gain_is_zero_when_threshold_not_positive():
    leg = LegExpectation("put", "long", 3.0, 5.0, 100.0, 0.3, 1.0, 0.0)
    assert expected_gain(leg) == 0.0
    assert expected_loss(leg) == pytest.approx(-expected_profit(leg))


def test_sharpe_requires_positive_stdev():
    assert sharpe(1.0, 0.0) is None
    assert sharpe(1.0, 2.0) == 0.5


def test_evaluate_leg_bundles_all_figures():
    leg = LegExpectation("put", "short", 95.0, 2.5, 100.0, 0.3, 0.5, 0.02)
    result = evaluate_leg(leg)
    assert result.break_even == 92.5
    assert result.expected_profit == pytest.approx(expected_profit(leg))
    assert result.stdev == pytest.approx(stdev_payoff(leg))
    assert set(result.to_dict()) == {
        "break_even",
        "prob_of_profit",
        "expected_profit",
        "expected_gain",
        "expected_loss",
        "variance",
        "stdev",
        "sharpe",
    }


def test_leg_expectation_validation():
    with pytest.raises(InvalidInputError):
        LegExpectation("call", "sideways", 100.0, 1.0, 100.0, 0.2, 1.0)  # type: ignore[arg-type]
    with pytest.raises(InvalidInputError):
        LegExpectation("call", "long", 100.0, 1.0, 100.0, -0.2, 1.0)
