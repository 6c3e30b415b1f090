"""Strategy metrics CLI command."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from option_strategy_engine.analytics.metrics import aggregate_strategy_metrics
from option_strategy_engine.cli.output import console, emit
from option_strategy_engine.cli.validation import parse_legs, resolve_tenor
from option_strategy_engine.config.settings import load_settings
from option_strategy_engine.models.legs import StrategyBundle
from option_strategy_engine.models.market import MarketContext
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="cli.metrics")


def metrics(
    legs: str = typer.Option(..., "--legs", help="JSON array of legs, or a path to a JSON/YAML file"),
    spot: float = typer.Option(..., "--spot", help="Underlying spot price"),
    vol: float = typer.Option(..., "--vol", help="Annualized volatility (decimal)"),
    tenor: Optional[float] = typer.Option(None, "--tenor", help="Time to expiry in years"),
    days: Optional[float] = typer.Option(None, "--days", help="Calendar days to expiry"),
    rate: float = typer.Option(0.0, "--rate", help="Continuous risk-free rate"),
    carry: float = typer.Option(0.0, "--carry", help="Continuous dividend yield / borrow"),
    drift_mode: Optional[str] = typer.Option(None, "--drift-mode", help="risk_neutral or capm"),
    mu_capm: Optional[float] = typer.Option(None, "--mu-capm", help="CAPM drift used when --drift-mode capm"),
    multiplier: Optional[float] = typer.Option(None, "--multiplier", help="Contract multiplier"),
    config: Optional[Path] = typer.Option(None, "--config", help="Optional YAML/JSON config path"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of tables"),
) -> None:
    """Expected profit, gain/loss, stdev, Sharpe and Greeks for a strategy."""

    settings = load_settings(
        config,
        cli_values={"drift_mode": drift_mode, "contract_multiplier": multiplier},
    )
    ctx = MarketContext(
        spot=spot,
        vol=vol,
        tenor=resolve_tenor(tenor, days, settings.day_count_basis),
        rate=rate,
        carry=carry,
        drift_mode=settings.drift_mode,  # type: ignore[arg-type]
        mu_capm=mu_capm,
    )
    bundle = StrategyBundle(tuple(parse_legs(legs)))
    result = aggregate_strategy_metrics(bundle, ctx, settings.contract_multiplier)
    log.info("Computed strategy metrics")

    payload = result.to_dict()
    if as_json:
        typer.echo(json.dumps(payload, indent=2, default=str))
        return

    table = Table(title="Legs (scaled)")
    for column in ("Leg", "BE", "PoP", "E[P&L]", "E[gain]", "E[loss]", "Stdev", "Delta"):
        table.add_column(column)
    for idx, report in enumerate(result.legs, start=1):
        leg = report.scaled
        strike = "" if leg.strike is None else f" {leg.strike:g}"
        table.add_row(
            f"{idx}: {leg.side} {leg.kind}{strike} x{leg.quantity:g}",
            f"{leg.break_even:.4f}",
            f"{leg.prob_of_profit:.2%}",
            f"{leg.expected_profit:.4f}",
            f"{leg.expected_gain:.4f}",
            f"{leg.expected_loss:.4f}",
            f"{leg.stdev:.4f}",
            f"{leg.greeks.delta:.4f}",
        )
    console.print(table)
    totals = {k: v for k, v in payload.items() if k != "legs"}
    emit(totals, title="Strategy totals", as_json=False)
