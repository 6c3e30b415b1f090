"""CLI input helpers: tenor resolution and leg payload parsing."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from option_strategy_engine.analytics.metrics import tenor_from_days
from option_strategy_engine.exceptions import ConfigConflictError, ConfigValidationError, SchemaError
from option_strategy_engine.models.legs import OptionLeg, legs_from_records

LEG_FILE_SUFFIXES = {".json", ".yml", ".yaml"}


def resolve_tenor(tenor: float | None, days: float | None, basis: float) -> float:
    """Tenor in years from ``--tenor`` or ``--days``; exactly one must be given."""

    if tenor is not None and days is not None:
        raise ConfigConflictError("pass either --tenor or --days, not both")
    if tenor is not None:
        return tenor
    if days is not None:
        return tenor_from_days(days, basis)
    raise ConfigValidationError("one of --tenor or --days is required")


def _read_payload(source: str) -> Any:
    path = Path(source)
    if path.suffix.lower() in LEG_FILE_SUFFIXES and path.exists():
        try:
            return yaml.safe_load(path.read_text())
        except yaml.YAMLError as exc:
            raise SchemaError(f"could not parse legs file {path}: {exc}") from exc
    try:
        return json.loads(source)
    except json.JSONDecodeError as exc:
        raise SchemaError(f"legs must be a JSON array of leg objects: {exc}") from exc


def parse_legs(source: str) -> list[OptionLeg]:
    """Legs from an inline JSON array or a JSON/YAML file holding one (or a ``legs`` key)."""

    payload = _read_payload(source)
    if isinstance(payload, dict) and "legs" in payload:
        payload = payload["legs"]
    if not isinstance(payload, list):
        raise SchemaError("legs must be a list of leg objects")
    return legs_from_records(payload)


__all__ = ["parse_legs", "resolve_tenor"]
