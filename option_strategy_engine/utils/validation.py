"""Input guards shared by the parameter structs."""

from __future__ import annotations

import math

from option_strategy_engine.exceptions import InvalidInputError


def require_finite(name: str, value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    return number


def require_positive(name: str, value: float) -> float:
    number = require_finite(name, value)
    if number <= 0:
        raise InvalidInputError(f"{name} must be > 0, got {number}")
    return number


def require_non_negative(name: str, value: float) -> float:
    number = require_finite(name, value)
    if number < 0:
        raise InvalidInputError(f"{name} must be >= 0, got {number}")
    return number


__all__ = ["require_finite", "require_positive", "require_non_negative"]
