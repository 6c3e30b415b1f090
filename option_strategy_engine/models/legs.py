"""Option leg and strategy bundle data model.

Quantity is always non-negative; direction is carried by ``side``. For stock
legs ``premium`` is the entry basis and ``strike`` is unused.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Mapping

from option_strategy_engine.exceptions import InvalidInputError, SchemaError
from option_strategy_engine.utils.validation import (
    require_finite,
    require_non_negative,
    require_positive,
)

OptionType = Literal["call", "put"]
LegKind = Literal["call", "put", "stock"]
Side = Literal["long", "short"]

OPTION_KINDS = frozenset({"call", "put"})
LEG_KINDS = frozenset({"call", "put", "stock"})
SIDES = frozenset({"long", "short"})


@dataclass(frozen=True, slots=True)
class OptionLeg:
    """Single option or stock position inside a strategy."""

    kind: LegKind
    side: Side
    premium: float
    quantity: float = 1.0
    strike: float | None = None

    def __post_init__(self) -> None:
        if self.kind not in LEG_KINDS:
            raise InvalidInputError(f"kind must be one of {sorted(LEG_KINDS)}, got {self.kind!r}")
        if self.side not in SIDES:
            raise InvalidInputError(f"side must be 'long' or 'short', got {self.side!r}")
        object.__setattr__(self, "premium", require_non_negative("premium", self.premium))
        object.__setattr__(self, "quantity", require_non_negative("quantity", self.quantity))
        if self.kind in OPTION_KINDS:
            if self.strike is None:
                raise InvalidInputError(f"strike is required for a {self.kind} leg")
            object.__setattr__(self, "strike", require_positive("strike", self.strike))
        elif self.strike is not None:
            object.__setattr__(self, "strike", require_finite("strike", self.strike))

    @property
    def is_option(self) -> bool:
        return self.kind in OPTION_KINDS

    @property
    def direction(self) -> int:
        return 1 if self.side == "long" else -1

    def signed_quantity(self) -> float:
        """Return signed quantity (positive for long, negative for short)."""
        return self.direction * self.quantity


@dataclass(frozen=True, slots=True)
class StrategyBundle:
    """Ordered collection of legs; order carries no meaning for the math."""

    legs: tuple[OptionLeg, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        legs = tuple(self.legs)
        for leg in legs:
            if not isinstance(leg, OptionLeg):
                raise SchemaError(f"bundle legs must be OptionLeg instances, got {type(leg).__name__}")
        object.__setattr__(self, "legs", legs)

    def __len__(self) -> int:
        return len(self.legs)

    def __iter__(self):
        return iter(self.legs)

    @property
    def options(self) -> tuple[OptionLeg, ...]:
        return tuple(leg for leg in self.legs if leg.is_option)

    @property
    def stocks(self) -> tuple[OptionLeg, ...]:
        return tuple(leg for leg in self.legs if leg.kind == "stock")

    @property
    def strikes(self) -> list[float]:
        return sorted({float(leg.strike) for leg in self.options})

    @property
    def net_premium(self) -> float:
        """Quantity-weighted option premium: positive for a net debit, negative for a net credit."""

        return sum(leg.direction * leg.premium * leg.quantity for leg in self.options)


def _pick(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def legs_from_records(records: Iterable[Mapping[str, Any]]) -> list[OptionLeg]:
    """Build legs from loosely-shaped UI or options-chain payloads.

    Accepts ``kind`` or ``type`` for the leg kind and ``qty`` or ``quantity`` for
    the size (default 1). Strings are case-insensitive. Out-of-domain numbers are
    rejected, not clamped.
    """

    legs: list[OptionLeg] = []
    for idx, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise SchemaError(f"leg {idx} must be a mapping, got {type(record).__name__}")
        kind = str(_pick(record, "kind", "type") or "").strip().lower()
        side = str(_pick(record, "side", "pos", "position") or "").strip().lower()
        if not kind or not side:
            raise SchemaError(f"leg {idx} is missing kind/type or side")
        premium = _pick(record, "premium", "price", "basis")
        quantity = _pick(record, "qty", "quantity")
        strike = _pick(record, "strike", "K")
        legs.append(
            OptionLeg(
                kind=kind,  # type: ignore[arg-type]
                side=side,  # type: ignore[arg-type]
                premium=0.0 if premium is None else premium,
                quantity=1.0 if quantity is None else quantity,
                strike=strike,
            )
        )
    return legs


__all__ = [
    "LEG_KINDS",
    "LegKind",
    "OPTION_KINDS",
    "OptionLeg",
    "OptionType",
    "SIDES",
    "Side",
    "StrategyBundle",
    "legs_from_records",
]
