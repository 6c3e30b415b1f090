"""Config loading with CLI > ENV > file > defaults precedence."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from option_strategy_engine.exceptions import ConfigError, ConfigValidationError
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="config")

Caster = Callable[[Any], Any]


def _load_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    text = path.read_text()
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigValidationError(f"could not parse config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigValidationError(f"config file {path} must contain a mapping at the top level")
    return dict(data)


def _env_values(prefix: str, keys: set[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for key in keys:
        env_key = f"{prefix}{key.upper()}"
        if env_key in os.environ:
            values[key] = os.environ[env_key]
    return values


def load_config_with_precedence(
    config_path: Path | str | None = None,
    env_prefix: str = "OSE_",
    cli_values: Mapping[str, Any] | None = None,
    defaults: Mapping[str, Any] | None = None,
    casters: Mapping[str, Caster] | None = None,
) -> dict[str, Any]:
    """Merge configuration sources; later sources win and ``None`` never overrides.

    Environment variables are looked up as ``<env_prefix><KEY>`` for every key
    known from defaults, CLI values or casters. Casters are applied after the
    merge; a failing caster raises ConfigValidationError.
    """

    defaults = dict(defaults or {})
    cli_values = dict(cli_values or {})
    casters = dict(casters or {})

    merged: dict[str, Any] = dict(defaults)
    sources = ["defaults"]
    if config_path is not None:
        file_values = _load_file(Path(config_path))
        merged.update({k: v for k, v in file_values.items() if v is not None})
        sources.append("file")

    known = set(defaults) | set(cli_values) | set(casters)
    env_values = _env_values(env_prefix, known)
    if env_values:
        merged.update(env_values)
        sources.append("env")

    overrides = {k: v for k, v in cli_values.items() if v is not None}
    if overrides:
        merged.update(overrides)
        sources.append("cli")

    for key, caster in casters.items():
        value = merged.get(key)
        if value is None:
            continue
        try:
            merged[key] = caster(value)
        except (TypeError, ValueError) as exc:
            raise ConfigValidationError(f"invalid value for {key!r}: {value!r}") from exc

    log.debug("configuration merged", extra={"method": ">".join(reversed(sources))})
    return merged


__all__ = ["load_config_with_precedence"]
