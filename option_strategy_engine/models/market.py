"""Market context supplied by the surrounding data layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from option_strategy_engine.analytics.capm import drift_from_mode
from option_strategy_engine.exceptions import InvalidInputError
from option_strategy_engine.utils.validation import (
    require_finite,
    require_non_negative,
    require_positive,
)

DriftMode = Literal["risk_neutral", "capm"]
DRIFT_MODES = frozenset({"risk_neutral", "capm"})


@dataclass(frozen=True, slots=True)
class MarketContext:
    """Spot, volatility, tenor and rates for one valuation.

    ``vol`` is an annualized decimal, ``tenor`` is in years, ``rate`` and
    ``carry`` (dividend yield or borrow) are continuously compounded.
    """

    spot: float
    vol: float
    tenor: float
    rate: float = 0.0
    carry: float = 0.0
    drift_mode: DriftMode = "risk_neutral"
    mu_capm: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "spot", require_positive("spot", self.spot))
        object.__setattr__(self, "vol", require_non_negative("vol", self.vol))
        object.__setattr__(self, "tenor", require_non_negative("tenor", self.tenor))
        object.__setattr__(self, "rate", require_finite("rate", self.rate))
        object.__setattr__(self, "carry", require_finite("carry", self.carry))
        if self.drift_mode not in DRIFT_MODES:
            raise InvalidInputError(f"drift_mode must be one of {sorted(DRIFT_MODES)}, got {self.drift_mode!r}")
        if self.mu_capm is not None:
            object.__setattr__(self, "mu_capm", require_finite("mu_capm", self.mu_capm))
        if self.drift_mode == "capm" and self.mu_capm is None:
            raise InvalidInputError("mu_capm is required when drift_mode is 'capm'")

    @property
    def drift(self) -> float:
        """Expected log-drift of the underlying used by the expected-value analytics."""

        return drift_from_mode(self.drift_mode, rate=self.rate, carry=self.carry, mu_capm=self.mu_capm)


__all__ = ["DRIFT_MODES", "DriftMode", "MarketContext"]
