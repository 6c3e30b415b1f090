"""Shared interfaces between the pricing and analytics layers."""

from option_strategy_engine.interfaces.pricing import Greeks, OptionPricer, PricingResult

__all__ = ["Greeks", "OptionPricer", "PricingResult"]
