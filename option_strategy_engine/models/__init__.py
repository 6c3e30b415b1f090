"""Value objects shared by the pricing, analytics and strategy layers."""

from option_strategy_engine.models.legs import (
    LegKind,
    OptionLeg,
    OptionType,
    Side,
    StrategyBundle,
    legs_from_records,
)
from option_strategy_engine.models.market import DriftMode, MarketContext

__all__ = [
    "DriftMode",
    "LegKind",
    "MarketContext",
    "OptionLeg",
    "OptionType",
    "Side",
    "StrategyBundle",
    "legs_from_records",
]
