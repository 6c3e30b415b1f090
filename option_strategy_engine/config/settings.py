"""Numeric knobs of the engine, passed explicitly to the callers that need them."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from option_strategy_engine.analytics.montecarlo import DEFAULT_PATHS, MAX_PATHS
from option_strategy_engine.config.loader import load_config_with_precedence
from option_strategy_engine.exceptions import ConfigValidationError
from option_strategy_engine.models.market import DRIFT_MODES

MIN_BREAKEVEN_SAMPLES = 2001


@dataclass(frozen=True, slots=True)
class EngineSettings:
    iv_sigma_init: float = 0.2
    iv_tol: float = 1e-8
    iv_max_iter: int = 50
    breakeven_samples: int = MIN_BREAKEVEN_SAMPLES
    day_count_basis: float = 365.0
    contract_multiplier: float = 1.0
    drift_mode: str = "risk_neutral"
    mc_paths: int = DEFAULT_PATHS

    def __post_init__(self) -> None:
        if not 0 < self.iv_sigma_init <= 5:
            raise ConfigValidationError("iv_sigma_init must be in (0, 5]")
        if self.iv_tol <= 0:
            raise ConfigValidationError("iv_tol must be > 0")
        if self.iv_max_iter < 1:
            raise ConfigValidationError("iv_max_iter must be >= 1")
        if self.breakeven_samples < MIN_BREAKEVEN_SAMPLES:
            raise ConfigValidationError(f"breakeven_samples must be >= {MIN_BREAKEVEN_SAMPLES}")
        if self.day_count_basis <= 0:
            raise ConfigValidationError("day_count_basis must be > 0")
        if self.contract_multiplier < 1:
            raise ConfigValidationError("contract_multiplier must be >= 1")
        if self.drift_mode not in DRIFT_MODES:
            raise ConfigValidationError(f"drift_mode must be one of {sorted(DRIFT_MODES)}")
        if not 1 <= self.mc_paths <= MAX_PATHS:
            raise ConfigValidationError(f"mc_paths must be in [1, {MAX_PATHS}]")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EngineSettings":
        names = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - names)
        if unknown:
            raise ConfigValidationError(f"unknown settings: {unknown}")
        return cls(**{k: v for k, v in data.items() if v is not None})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


CASTERS = {
    "iv_sigma_init": float,
    "iv_tol": float,
    "iv_max_iter": int,
    "breakeven_samples": int,
    "day_count_basis": float,
    "contract_multiplier": float,
    "drift_mode": lambda v: str(v).strip().lower(),
    "mc_paths": int,
}


def load_settings(
    config_path: Path | str | None = None,
    cli_values: Mapping[str, Any] | None = None,
    env_prefix: str = "OSE_",
) -> EngineSettings:
    """Build EngineSettings from CLI values, ``OSE_*`` variables, a YAML/JSON file and defaults."""

    merged = load_config_with_precedence(
        config_path=config_path,
        env_prefix=env_prefix,
        cli_values=cli_values,
        defaults=EngineSettings().to_dict(),
        casters=CASTERS,
    )
    return EngineSettings.from_mapping(merged)


__all__ = ["CASTERS", "EngineSettings", "load_settings"]
