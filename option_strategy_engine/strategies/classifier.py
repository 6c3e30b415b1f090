"""Strategy inference from leg shapes.

A leg shape is the count of active legs per (kind, side) bucket. Inference
looks the shape up in a fixed table; each entry then resolves the canonical
key from strike relations. Shapes outside the table (iron condors, calendars,
ratios, boxes) are not inferred and only resolve when named explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Literal

from option_strategy_engine.models.legs import OptionLeg
from option_strategy_engine.strategies.aliases import normalize_strategy_key
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="strategies.classifier")

STRIKE_TOL = 1e-8
QTY_TOL = 1e-12

Provenance = Literal["explicit", "inferred", "disambiguated"]

BUCKETS = (
    ("call", "long"),
    ("call", "short"),
    ("put", "long"),
    ("put", "short"),
    ("stock", "long"),
    ("stock", "short"),
)

# (long calls, short calls, long puts, short puts, long stock, short stock)
Shape = tuple[int, int, int, int, int, int]


@dataclass(frozen=True, slots=True)
class StrategyLabel:
    key: str
    provenance: Provenance


class LegGroups:
    """Active legs (quantity > 0) bucketed by kind and side."""

    def __init__(self, legs: Iterable[OptionLeg]) -> None:
        self.legs = [leg for leg in legs if leg.quantity > 0]
        self.buckets: dict[tuple[str, str], list[OptionLeg]] = {bucket: [] for bucket in BUCKETS}
        for leg in self.legs:
            self.buckets[(leg.kind, leg.side)].append(leg)

    @property
    def shape(self) -> Shape:
        return tuple(len(self.buckets[bucket]) for bucket in BUCKETS)  # type: ignore[return-value]

    def one(self, kind: str, side: str) -> OptionLeg:
        return self.buckets[(kind, side)][0]

    def strike(self, kind: str, side: str) -> float:
        return float(self.one(kind, side).strike)  # type: ignore[arg-type]

    def unit_quantity(self) -> float | None:
        """Common quantity of every active leg, or None when sizes differ."""

        if not self.legs:
            return None
        first = self.legs[0].quantity
        if all(abs(leg.quantity - first) <= QTY_TOL * max(1.0, first) for leg in self.legs):
            return first
        return None


def _same_strike(a: float, b: float) -> bool:
    return abs(a - b) <= STRIKE_TOL


def _call_vertical(groups: LegGroups) -> str:
    long_k, short_k = groups.strike("call", "long"), groups.strike("call", "short")
    return "bull_call_spread" if long_k < short_k else "bear_call_spread"


def _put_vertical(groups: LegGroups) -> str:
    long_k, short_k = groups.strike("put", "long"), groups.strike("put", "short")
    return "bear_put_spread" if long_k > short_k else "bull_put_spread"


def _combo(side: str) -> Callable[[LegGroups], str]:
    def resolve(groups: LegGroups) -> str:
        same = _same_strike(groups.strike("call", side), groups.strike("put", side))
        return f"{side}_straddle" if same else f"{side}_strangle"

    return resolve


def _iron_butterfly(groups: LegGroups) -> str | None:
    core_call, core_put = groups.strike("call", "short"), groups.strike("put", "short")
    if not _same_strike(core_call, core_put):
        return None
    if groups.strike("call", "long") > core_call and groups.strike("put", "long") < core_put:
        return "iron_butterfly"
    return None


def _collar(groups: LegGroups) -> str | None:
    if groups.strike("put", "long") <= groups.strike("call", "short"):
        return "collar"
    return None


def _fixed(key: str) -> Callable[[LegGroups], str]:
    return lambda groups: key


SHAPES: dict[Shape, Callable[[LegGroups], str | None]] = {
    (1, 0, 0, 0, 0, 0): _fixed("long_call"),
    (0, 1, 0, 0, 0, 0): _fixed("short_call"),
    (0, 0, 1, 0, 0, 0): _fixed("long_put"),
    (0, 0, 0, 1, 0, 0): _fixed("short_put"),
    (1, 1, 0, 0, 0, 0): _call_vertical,
    (0, 0, 1, 1, 0, 0): _put_vertical,
    (1, 0, 1, 0, 0, 0): _combo("long"),
    (0, 1, 0, 1, 0, 0): _combo("short"),
    (1, 1, 1, 1, 0, 0): _iron_butterfly,
    (0, 1, 0, 0, 1, 0): _fixed("covered_call"),
    (0, 0, 1, 0, 1, 0): _fixed("protective_put"),
    (0, 0, 0, 1, 0, 1): _fixed("covered_put"),
    (0, 1, 1, 0, 1, 0): _collar,
}

SINGLE_LEG_SHAPES = frozenset(shape for shape in SHAPES if sum(shape) == 1)


def infer_strategy(legs: Iterable[OptionLeg]) -> str | None:
    """Canonical strategy key for ``legs`` or None when the shape is not recognized.

    Only legs with positive quantity count. Multi-leg shapes require every
    leg to carry the same quantity; mixed sizes are ratios and stay unresolved.
    """

    groups = LegGroups(legs)
    resolver = SHAPES.get(groups.shape)
    if resolver is None:
        return None
    if groups.shape not in SINGLE_LEG_SHAPES and groups.unit_quantity() is None:
        return None
    return resolver(groups)


def disambiguate_straddle(key: str, legs: Iterable[OptionLeg]) -> str:
    """Reclassify an explicit straddle whose call and put strikes differ to the matching strangle."""

    if key not in {"long_straddle", "short_straddle"}:
        return key
    side = key.split("_", 1)[0]
    groups = LegGroups(legs)
    calls, puts = groups.buckets[("call", side)], groups.buckets[("put", side)]
    if not calls or not puts:
        return key
    if _same_strike(float(calls[0].strike), float(puts[0].strike)):  # type: ignore[arg-type]
        return key
    strangle = f"{side}_strangle"
    log.debug("straddle strikes differ, using strangle", extra={"strategy": strangle})
    return strangle


def classify_strategy(legs: Iterable[OptionLeg], explicit: str | None = None) -> StrategyLabel | None:
    """Resolve a label: explicit alias (with straddle disambiguation), else inference."""

    legs = list(legs)
    key = normalize_strategy_key(explicit)
    if key is not None:
        resolved = disambiguate_straddle(key, legs)
        return StrategyLabel(key=resolved, provenance="explicit" if resolved == key else "disambiguated")
    inferred = infer_strategy(legs)
    if inferred is None:
        return None
    return StrategyLabel(key=inferred, provenance="inferred")


__all__ = [
    "LegGroups",
    "Provenance",
    "StrategyLabel",
    "classify_strategy",
    "disambiguate_straddle",
    "infer_strategy",
]
