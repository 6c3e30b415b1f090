"""Break-even solver: closed forms keyed by strategy, numeric roots otherwise.

Closed forms run on per-unit figures (legs must share one quantity) and are
only accepted when every root is positive and reproduces a zero P&L. Anything
else falls back to scanning the payoff for sign changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Literal, Mapping

import numpy as np

from option_strategy_engine.models.legs import OptionLeg, StrategyBundle, legs_from_records
from option_strategy_engine.strategies.classifier import LegGroups, StrategyLabel, classify_strategy
from option_strategy_engine.strategies.payoff import MIN_PRICE, breakpoints, payoff_at, suggest_bounds
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="strategies.breakeven")

MIN_SAMPLES = 2001
ROOT_DIGITS = 6
ROOT_TOL = 1e-6
WIDEN_STEPS = (0.5, 1.0)

ResolvedBy = Literal["explicit", "inferred", "disambiguated", "none"]
Method = Literal["formula", "numeric"]


@dataclass(frozen=True, slots=True)
class BreakEvenMeta:
    used: str | None
    resolved_by: ResolvedBy
    method: Method | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"used": self.used, "resolved_by": self.resolved_by, "method": self.method}


@dataclass(frozen=True, slots=True)
class BreakEvenResult:
    be: list[float] | None
    meta: BreakEvenMeta = field(default_factory=lambda: BreakEvenMeta(used=None, resolved_by="none"))

    def to_dict(self) -> dict[str, Any]:
        return {"be": None if self.be is None else list(self.be), "meta": self.meta.to_dict()}


class _Unit:
    """Per-unit view of a bundle whose legs share one quantity."""

    def __init__(self, groups: LegGroups, quantity: float) -> None:
        self.groups = groups
        self.net_premium = (
            sum(leg.direction * leg.premium * leg.quantity for leg in groups.legs if leg.is_option) / quantity
        )

    @property
    def debit(self) -> float:
        return self.net_premium

    @property
    def credit(self) -> float:
        return -self.net_premium

    def strike(self, kind: str, side: str) -> float:
        return self.groups.strike(kind, side)

    def basis(self, side: str) -> float:
        return self.groups.one("stock", side).premium


Formula = Callable[[_Unit], list[float] | None]


def _iron_condor(u: _Unit) -> list[float] | None:
    lp, sp = u.strike("put", "long"), u.strike("put", "short")
    sc, lc = u.strike("call", "short"), u.strike("call", "long")
    if not lp < sp <= sc < lc:
        return None
    return [sp - u.credit, sc + u.credit]


def _straddle(u: _Unit, side: str, offset: float) -> list[float] | None:
    k_call, k_put = u.strike("call", side), u.strike("put", side)
    if abs(k_call - k_put) > 1e-8:
        return None
    return [k_call - offset, k_call + offset]


def _iron_butterfly(u: _Unit) -> list[float] | None:
    core = _straddle(u, "short", u.credit)
    if core is None:
        return None
    k = u.strike("call", "short")
    if not (u.strike("call", "long") > k and u.strike("put", "long") < k):
        return None
    return core


# shape (long calls, short calls, long puts, short puts, long stock, short stock) -> formula
FORMULAS: dict[str, tuple[tuple[int, ...], Formula]] = {
    "long_call": ((1, 0, 0, 0, 0, 0), lambda u: [u.strike("call", "long") + u.debit]),
    "short_call": ((0, 1, 0, 0, 0, 0), lambda u: [u.strike("call", "short") + u.credit]),
    "long_put": ((0, 0, 1, 0, 0, 0), lambda u: [u.strike("put", "long") - u.debit]),
    "short_put": ((0, 0, 0, 1, 0, 0), lambda u: [u.strike("put", "short") - u.credit]),
    "bull_call_spread": ((1, 1, 0, 0, 0, 0), lambda u: [u.strike("call", "long") + u.debit]),
    "bear_call_spread": ((1, 1, 0, 0, 0, 0), lambda u: [u.strike("call", "short") + u.credit]),
    "bear_put_spread": ((0, 0, 1, 1, 0, 0), lambda u: [u.strike("put", "long") - u.debit]),
    "bull_put_spread": ((0, 0, 1, 1, 0, 0), lambda u: [u.strike("put", "short") - u.credit]),
    "long_straddle": ((1, 0, 1, 0, 0, 0), lambda u: _straddle(u, "long", u.debit)),
    "short_straddle": ((0, 1, 0, 1, 0, 0), lambda u: _straddle(u, "short", u.credit)),
    "long_strangle": (
        (1, 0, 1, 0, 0, 0),
        lambda u: [u.strike("put", "long") - u.debit, u.strike("call", "long") + u.debit],
    ),
    "short_strangle": (
        (0, 1, 0, 1, 0, 0),
        lambda u: [u.strike("put", "short") - u.credit, u.strike("call", "short") + u.credit],
    ),
    "iron_butterfly": ((1, 1, 1, 1, 0, 0), _iron_butterfly),
    "iron_condor": ((1, 1, 1, 1, 0, 0), _iron_condor),
    "covered_call": ((0, 1, 0, 0, 1, 0), lambda u: [u.basis("long") - u.credit]),
    "protective_put": ((0, 0, 1, 0, 1, 0), lambda u: [u.basis("long") + u.debit]),
    "covered_put": ((0, 0, 0, 1, 0, 1), lambda u: [u.basis("short") + u.credit]),
    "collar": ((0, 1, 1, 0, 1, 0), lambda u: [u.basis("long") + u.net_premium]),
}


def closed_form_break_even(key: str, bundle: StrategyBundle) -> list[float] | None:
    """Closed-form roots for ``key`` or None when the legs do not fit its formula."""

    entry = FORMULAS.get(key)
    if entry is None:
        return None
    shape, formula = entry
    groups = LegGroups(bundle)
    if groups.shape != shape:
        return None
    quantity = groups.unit_quantity()
    if quantity is None:
        return None
    roots = formula(_Unit(groups, quantity))
    if roots is None:
        return None
    if any(r <= 0 for r in roots):
        return None
    scale = max(1.0, quantity)
    if any(abs(payoff_at(r, bundle)) > ROOT_TOL * scale * max(1.0, r) for r in roots):
        log.debug("closed-form roots do not zero the payoff", extra={"strategy": key, "method": "formula"})
        return None
    return sorted({round(float(r), ROOT_DIGITS) for r in roots})


def _scan(bundle: StrategyBundle, lo: float, hi: float, samples: int) -> list[float]:
    grid = np.linspace(lo, hi, max(MIN_SAMPLES, samples))
    kinks = [k for k in breakpoints(bundle) if lo < k < hi]
    if kinks:
        grid = np.union1d(grid, kinks)
    values = payoff_at(grid, bundle)
    signs = np.sign(values)

    roots: list[float] = []
    crossing = np.flatnonzero(signs[:-1] * signs[1:] < 0)
    for i in crossing:
        y0, y1 = values[i], values[i + 1]
        t = -y0 / (y1 - y0)
        roots.append(float(grid[i] + t * (grid[i + 1] - grid[i])))
    for i in np.flatnonzero(signs == 0):
        left = signs[i - 1] if i > 0 else 0.0
        right = signs[i + 1] if i + 1 < len(signs) else 0.0
        if left != 0 or right != 0:
            roots.append(float(grid[i]))
    return sorted({round(r, ROOT_DIGITS) for r in roots})


def find_break_evens(
    bundle: StrategyBundle,
    spot: float | None = None,
    samples: int = MIN_SAMPLES,
    bounds: tuple[float, float] | None = None,
) -> list[float]:
    """Numeric break-evens: sign changes over the bounds, widened at most twice."""

    lo0, hi0 = bounds if bounds is not None else suggest_bounds(bundle, spot)
    roots = _scan(bundle, lo0, hi0, samples)
    span = hi0 - lo0
    for widen in WIDEN_STEPS:
        if roots:
            break
        lo, hi = max(MIN_PRICE, lo0 - span * widen), hi0 + span * widen
        log.debug("no break-even found, widening search", extra={"method": "numeric"})
        roots = _scan(bundle, lo, hi, samples)
    return roots


def _as_bundle(legs: StrategyBundle | Iterable[OptionLeg | Mapping[str, Any]]) -> StrategyBundle:
    if isinstance(legs, StrategyBundle):
        return legs
    items = list(legs)
    if items and all(isinstance(item, Mapping) for item in items):
        return StrategyBundle(tuple(legs_from_records(items)))
    return StrategyBundle(tuple(items))


def compute_break_even(
    legs: StrategyBundle | Iterable[OptionLeg | Mapping[str, Any]],
    strategy: str | None = None,
    *,
    spot: float | None = None,
    samples: int = MIN_SAMPLES,
) -> BreakEvenResult:
    """Break-even prices at expiry for a bundle of legs.

    ``strategy`` is an optional alias; when it is unknown or absent the key
    is inferred from the legs. Strategies without a closed form, or whose
    legs do not fit it, are solved numerically.
    """

    bundle = _as_bundle(legs)
    if len(bundle) == 0:
        return BreakEvenResult(be=None, meta=BreakEvenMeta(used=None, resolved_by="none"))

    label: StrategyLabel | None = classify_strategy(bundle, strategy)
    used = label.key if label is not None else None
    resolved_by: ResolvedBy = label.provenance if label is not None else "none"

    if used is not None:
        roots = closed_form_break_even(used, bundle)
        if roots is not None:
            return BreakEvenResult(be=roots, meta=BreakEvenMeta(used=used, resolved_by=resolved_by, method="formula"))

    roots = find_break_evens(bundle, spot=spot, samples=samples)
    log.debug("numeric break-even", extra={"strategy": used, "method": "numeric"})
    return BreakEvenResult(
        be=roots or None,
        meta=BreakEvenMeta(used=used, resolved_by=resolved_by, method="numeric"),
    )


__all__ = [
    "BreakEvenMeta",
    "BreakEvenResult",
    "closed_form_break_even",
    "compute_break_even",
    "find_break_evens",
]
