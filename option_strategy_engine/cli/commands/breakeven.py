"""Break-even CLI command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from option_strategy_engine.cli.output import emit
from option_strategy_engine.cli.validation import parse_legs
from option_strategy_engine.config.settings import load_settings
from option_strategy_engine.strategies.breakeven import compute_break_even
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="cli.breakeven")


def breakeven(
    legs: str = typer.Option(..., "--legs", help="JSON array of legs, or a path to a JSON/YAML file"),
    strategy: Optional[str] = typer.Option(None, "--strategy", help="Strategy name or alias (optional)"),
    spot: Optional[float] = typer.Option(None, "--spot", help="Spot used to centre the numeric search"),
    config: Optional[Path] = typer.Option(None, "--config", help="Optional YAML/JSON config path"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table"),
) -> None:
    """Break-even prices at expiry for a set of legs."""

    settings = load_settings(config)
    result = compute_break_even(parse_legs(legs), strategy, spot=spot, samples=settings.breakeven_samples)
    log.info(
        "Computed break-even",
        extra={"strategy": result.meta.used, "method": result.meta.method},
    )
    emit(result.to_dict(), title="Break-even", as_json=as_json)
