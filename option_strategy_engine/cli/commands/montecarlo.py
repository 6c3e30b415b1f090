"""Monte Carlo terminal-price CLI command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from option_strategy_engine.analytics.montecarlo import simulate_terminal
from option_strategy_engine.cli.output import emit
from option_strategy_engine.cli.validation import parse_legs, resolve_tenor
from option_strategy_engine.config.settings import load_settings
from option_strategy_engine.models.legs import StrategyBundle
from option_strategy_engine.models.market import MarketContext
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="cli.simulate")


def simulate(
    spot: float = typer.Option(..., "--spot", help="Underlying spot price"),
    vol: float = typer.Option(..., "--vol", help="Annualized volatility (decimal)"),
    legs: Optional[str] = typer.Option(None, "--legs", help="JSON array of legs, or a path to a JSON/YAML file"),
    tenor: Optional[float] = typer.Option(None, "--tenor", help="Time to expiry in years"),
    days: Optional[float] = typer.Option(None, "--days", help="Calendar days to expiry"),
    rate: float = typer.Option(0.0, "--rate", help="Continuous risk-free rate"),
    carry: float = typer.Option(0.0, "--carry", help="Continuous dividend yield / borrow"),
    drift_mode: Optional[str] = typer.Option(None, "--drift-mode", help="risk_neutral or capm"),
    mu_capm: Optional[float] = typer.Option(None, "--mu-capm", help="CAPM drift used when --drift-mode capm"),
    paths: Optional[int] = typer.Option(None, "--paths", help="Number of simulated terminal prices"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducible runs"),
    config: Optional[Path] = typer.Option(None, "--config", help="Optional YAML/JSON config path"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table"),
) -> None:
    """Simulated terminal-price band and, with --legs, strategy win rate and mean P&L."""

    settings = load_settings(config, cli_values={"drift_mode": drift_mode, "mc_paths": paths})
    ctx = MarketContext(
        spot=spot,
        vol=vol,
        tenor=resolve_tenor(tenor, days, settings.day_count_basis),
        rate=rate,
        carry=carry,
        drift_mode=settings.drift_mode,  # type: ignore[arg-type]
        mu_capm=mu_capm,
    )
    bundle = StrategyBundle(tuple(parse_legs(legs))) if legs else StrategyBundle()
    stats = simulate_terminal(bundle, ctx, settings.mc_paths, seed)
    log.info("Simulated terminal prices", extra={"method": "monte_carlo"})
    emit(stats.to_dict(), title="Monte Carlo", as_json=as_json)
