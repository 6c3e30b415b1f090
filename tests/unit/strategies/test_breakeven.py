import itertools

import numpy as np
import pytest

from option_strategy_engine.models.legs import OptionLeg, StrategyBundle
from option_strategy_engine.strategies.breakeven import (
    closed_form_break_even,
    compute_break_even,
    find_break_evens,
)
from option_strategy_engine.strategies.classifier import infer_strategy
from option_strategy_engine.strategies.payoff import payoff_at


def call(side, strike, premium, qty=1.0):
    return OptionLeg("call", side, premium, quantity=qty, strike=strike)


def put(side, strike, premium, qty=1.0):
    return OptionLeg("put", side, premium, quantity=qty, strike=strike)


def stock(side, basis):
    return OptionLeg("stock", side, basis)


def test_bull_call_spread():
    result = compute_break_even([call("long", 100, 5), call("short", 110, 2)], "bull_call_spread")
    assert result.be == [103.0]
    assert result.meta.to_dict() == {"used": "bull_call_spread", "resolved_by": "explicit", "method": "formula"}


def test_short_straddle():
    result = compute_break_even([call("short", 100, 4), put("short", 100, 3)], "short_straddle")
    assert result.be == [93.0, 107.0]


def test_mismatched_straddle_is_solved_as_strangle():
    result = compute_break_even([call("short", 105, 4), put("short", 95, 3)], "short straddle")
    assert result.be == [88.0, 112.0]
    assert result.meta.used == "short_strangle"
    assert result.meta.resolved_by == "disambiguated"
    assert result.meta.method == "formula"


def test_iron_butterfly_inferred():
    legs = [put("long", 95, 1.2), call("long", 105, 1.1), put("short", 100, 3.2), call("short", 100, 3.3)]
    result = compute_break_even(legs)
    assert result.be == pytest.approx([95.8, 104.2])
    assert result.meta.used == "iron_butterfly"
    assert result.meta.resolved_by == "inferred"


def test_empty_legs():
    result = compute_break_even([])
    assert result.be is None
    assert result.meta.to_dict() == {"used": None, "resolved_by": "none", "method": None}


def test_uninferred_iron_condor_goes_numeric():
    legs = [put("long", 90, 1.0), put("short", 95, 2.5), call("short", 105, 2.5), call("long", 110, 1.0)]
    result = compute_break_even(legs)
    assert result.be == pytest.approx([92.0, 108.0], abs=1e-6)
    assert result.meta.to_dict() == {"used": None, "resolved_by": "none", "method": "numeric"}

    named = compute_break_even(legs, "iron condor")
    assert named.be == pytest.approx([92.0, 108.0])
    assert named.meta.method == "formula"


def test_explicit_key_that_does_not_fit_falls_back_to_numeric():
    result = compute_break_even([call("long", 100, 5), call("short", 110, 2)], "iron_condor")
    assert result.be == pytest.approx([103.0], abs=1e-6)
    assert result.meta.used == "iron_condor"
    assert result.meta.resolved_by == "explicit"
    assert result.meta.method == "numeric"


def test_quantities_are_per_unit():
    result = compute_break_even([call("long", 100, 5, qty=2), call("short", 110, 2, qty=2)])
    assert result.be == [103.0]
    assert result.meta.method == "formula"


def test_ratio_is_solved_numerically():
    legs = [call("long", 100, 5), call("short", 110, 2, qty=2)]
    result = compute_break_even(legs, spot=100.0)
    assert result.meta.used is None
    assert result.meta.method == "numeric"
    # P&L: -1 below 100, rises to +9 at 110, then falls one-for-one
    assert result.be == pytest.approx([101.0, 119.0], abs=1e-6)


def test_mapping_records_are_accepted():
    records = [
        {"type": "call", "side": "long", "strike": 100, "premium": 5},
        {"type": "call", "side": "short", "strike": 110, "premium": 2},
    ]
    assert compute_break_even(records).be == [103.0]


def test_stock_combinations():
    assert compute_break_even([stock("long", 100), call("short", 105, 2)]).be == [98.0]
    assert compute_break_even([stock("long", 100), put("long", 95, 3)]).be == [103.0]
    assert compute_break_even([stock("short", 100), put("short", 95, 2)]).be == [102.0]
    collar = compute_break_even([stock("long", 100), put("long", 95, 1.5), call("short", 110, 1.0)])
    assert collar.be == [100.5]
    assert collar.meta.used == "collar"


def test_constant_payoff_has_no_break_even():
    legs = [stock("long", 100), put("long", 100, 3), call("short", 100, 2)]
    result = compute_break_even(legs)
    assert result.be is None
    assert result.meta.used == "collar"
    assert result.meta.method == "numeric"


def test_closed_form_rejects_non_positive_roots():
    bundle = StrategyBundle((put("long", 2, 5),))
    assert closed_form_break_even("long_put", bundle) is None
    assert closed_form_break_even("unknown", bundle) is None


def test_numeric_search_widens_bounds():
    bundle = StrategyBundle((call("long", 100, 5),))
    assert find_break_evens(bundle, bounds=(10.0, 60.0)) == pytest.approx([105.0], abs=1e-6)


def test_leg_order_does_not_matter():
    legs = [put("long", 95, 1.2), call("long", 105, 1.1), put("short", 100, 3.2), call("short", 100, 3.3)]
    assert compute_break_even(legs).to_dict() == compute_break_even(list(reversed(legs))).to_dict()


def _random_bundles(rng, count):
    for _ in range(count):
        k = rng.uniform(50, 150)
        width = rng.uniform(5, 20)
        short_p = rng.uniform(0.5, 3.0)
        debit = rng.uniform(0.1, width - 0.1)
        yield "bull_call_spread", [call("long", k, short_p + debit), call("short", k + width, short_p)]
        yield "long_straddle", [call("long", k, rng.uniform(1, 5)), put("long", k, rng.uniform(1, 5))]
        yield "short_strangle", [call("short", k + width, rng.uniform(1, 5)), put("short", k, rng.uniform(1, 5))]
        yield "short_put", [put("short", k, rng.uniform(0.5, 10))]

        credit = rng.uniform(0.1, width - 0.1)
        yield "bear_call_spread", [call("short", k, short_p + credit), call("long", k + width, short_p)]
        yield "bear_put_spread", [put("long", k + width, short_p + debit), put("short", k, short_p)]
        yield "bull_put_spread", [put("short", k + width, short_p + credit), put("long", k, short_p)]

        wing_call, wing_put = rng.uniform(0.2, 1.0), rng.uniform(0.2, 1.0)
        core = 0.5 * (credit + wing_call + wing_put)
        yield "iron_butterfly", [
            put("long", k - width, wing_put),
            put("short", k, core),
            call("short", k, core),
            call("long", k + width, wing_call),
        ]


def test_closed_forms_agree_with_numeric_roots():
    rng = np.random.default_rng(7)
    for key, legs in _random_bundles(rng, 25):
        bundle = StrategyBundle(tuple(legs))
        closed = closed_form_break_even(key, bundle)
        assert closed is not None, key
        numeric = find_break_evens(bundle)
        assert numeric == pytest.approx(closed, abs=1e-3), key
        for root in closed:
            assert abs(payoff_at(root, bundle)) < 1e-5


@pytest.mark.parametrize(
    "legs,key",
    [
        ([put("long", 95, 1.2), call("long", 105, 1.1), put("short", 100, 3.2), call("short", 100, 3.3)], "iron_butterfly"),
        ([stock("long", 100), put("long", 95, 1.5), call("short", 110, 1.0)], "collar"),
        ([call("short", 105, 4), put("short", 95, 3)], "short_strangle"),
    ],
)
def test_every_leg_order_gives_the_same_answer(legs, key):
    expected = compute_break_even(legs).to_dict()
    for order in itertools.permutations(legs):
        assert infer_strategy(order) == key
        assert compute_break_even(list(order)).to_dict() == expected
