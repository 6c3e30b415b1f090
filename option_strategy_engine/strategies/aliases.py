"""Strategy name aliases mapped onto canonical snake_case keys."""

from __future__ import annotations

import re
from types import MappingProxyType

STRATEGY_KEYS = frozenset(
    {
        "long_call",
        "short_call",
        "long_put",
        "short_put",
        "bull_call_spread",
        "bear_call_spread",
        "bull_put_spread",
        "bear_put_spread",
        "long_straddle",
        "short_straddle",
        "long_strangle",
        "short_strangle",
        "iron_condor",
        "iron_butterfly",
        "call_ratio",
        "put_ratio",
        "call_calendar",
        "put_calendar",
        "long_box",
        "short_box",
        "covered_call",
        "protective_put",
        "covered_put",
        "collar",
    }
)

_EXTRA_ALIASES = {
    "leaps": "long_call",
    "nakedcall": "short_call",
    "uncoveredcall": "short_call",
    "nakedput": "short_put",
    "cashsecuredput": "short_put",
    "debitcallspread": "bull_call_spread",
    "longcallspread": "bull_call_spread",
    "creditcallspread": "bear_call_spread",
    "shortcallspread": "bear_call_spread",
    "creditputspread": "bull_put_spread",
    "shortputspread": "bull_put_spread",
    "debitputspread": "bear_put_spread",
    "longputspread": "bear_put_spread",
    "ironfly": "iron_butterfly",
    "marriedput": "protective_put",
    "buywrite": "covered_call",
    "fence": "collar",
    "callratiospread": "call_ratio",
    "putratiospread": "put_ratio",
    "callhorizontal": "call_calendar",
    "puthorizontal": "put_calendar",
}


def _compact(key: str) -> str:
    return key.replace("_", "")


STRATEGY_ALIASES = MappingProxyType(
    {
        **{key: key for key in STRATEGY_KEYS},
        **{_compact(key): key for key in STRATEGY_KEYS},
        **_EXTRA_ALIASES,
    }
)

_STRIP = re.compile(r"[\s\-]+")


def normalize_strategy_key(name: str | None) -> str | None:
    """Canonical key for ``name``: lowercase, whitespace and hyphens removed; None if unknown."""

    if not name:
        return None
    compact = _STRIP.sub("", str(name).lower())
    return STRATEGY_ALIASES.get(compact)


__all__ = ["STRATEGY_ALIASES", "STRATEGY_KEYS", "normalize_strategy_key"]
