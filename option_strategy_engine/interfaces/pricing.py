"""Option pricer interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from option_strategy_engine.models.legs import OptionType
    from option_strategy_engine.pricing.black_scholes import BSMInputs


@dataclass(frozen=True, slots=True)
class Greeks:
    """Option Greeks for a long position of one unit.

    ``vega`` is per 1 vol-point (0.01 in σ) and ``theta`` is per calendar day.
    """

    delta: float
    gamma: float
    vega: float
    theta: float
    rho: float

    def scaled(self, factor: float) -> "Greeks":
        """Return Greeks multiplied by ``factor`` (signed quantity × multiplier)."""

        return Greeks(
            delta=self.delta * factor,
            gamma=self.gamma * factor,
            vega=self.vega * factor,
            theta=self.theta * factor,
            rho=self.rho * factor,
        )

    def __add__(self, other: "Greeks") -> "Greeks":
        return Greeks(
            delta=self.delta + other.delta,
            gamma=self.gamma + other.gamma,
            vega=self.vega + other.vega,
            theta=self.theta + other.theta,
            rho=self.rho + other.rho,
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "delta": self.delta,
            "gamma": self.gamma,
            "vega": self.vega,
            "theta": self.theta,
            "rho": self.rho,
        }


ZERO_GREEKS = Greeks(delta=0.0, gamma=0.0, vega=0.0, theta=0.0, rho=0.0)


@dataclass(frozen=True, slots=True)
class PricingResult:
    """Theoretical price plus Greeks for one unit of a long option."""

    price: float
    greeks: Greeks

    def to_dict(self) -> dict[str, float]:
        return {"price": self.price, **self.greeks.to_dict()}


class OptionPricer(ABC):
    """Base option pricer interface.

    Implementations price European exercise only.
    """

    @abstractmethod
    def price(self, option_type: "OptionType", inputs: "BSMInputs") -> float:
        """Return the theoretical premium per unit of underlying."""

    @abstractmethod
    def greeks(self, option_type: "OptionType", inputs: "BSMInputs") -> Greeks:
        """Return Greeks for a long position of one unit."""

    def evaluate(self, option_type: "OptionType", inputs: "BSMInputs") -> PricingResult:
        return PricingResult(price=self.price(option_type, inputs), greeks=self.greeks(option_type, inputs))


__all__ = ["Greeks", "OptionPricer", "PricingResult", "ZERO_GREEKS"]
