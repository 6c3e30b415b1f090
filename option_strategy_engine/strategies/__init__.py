"""Strategy classification, payoff and break-even solving."""

from option_strategy_engine.strategies.aliases import normalize_strategy_key
from option_strategy_engine.strategies.breakeven import BreakEvenMeta, BreakEvenResult, compute_break_even
from option_strategy_engine.strategies.classifier import (
    StrategyLabel,
    classify_strategy,
    disambiguate_straddle,
    infer_strategy,
)
from option_strategy_engine.strategies.payoff import (
    breakpoints,
    leg_payoff_at,
    payoff_at,
    payoff_curve,
    suggest_bounds,
)

__all__ = [
    "BreakEvenMeta",
    "BreakEvenResult",
    "StrategyLabel",
    "breakpoints",
    "classify_strategy",
    "compute_break_even",
    "disambiguate_straddle",
    "infer_strategy",
    "leg_payoff_at",
    "normalize_strategy_key",
    "payoff_at",
    "payoff_curve",
    "suggest_bounds",
]
