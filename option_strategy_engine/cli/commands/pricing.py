"""Pricing CLI commands: theoretical price/Greeks and implied volatility."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from option_strategy_engine.cli.output import emit
from option_strategy_engine.cli.validation import resolve_tenor
from option_strategy_engine.config.settings import load_settings
from option_strategy_engine.exceptions import ConfigValidationError
from option_strategy_engine.pricing.black_scholes import BSMInputs, price_option
from option_strategy_engine.pricing.implied_vol import ImpliedVolRequest, implied_vol
from option_strategy_engine.utils.logging import get_logger

log = get_logger(__name__, component="cli.pricing")


def _option_type(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in {"call", "put"}:
        raise ConfigValidationError("--type must be 'call' or 'put'")
    return normalized


def price(
    option_type: str = typer.Option(..., "--type", help="call or put"),
    spot: float = typer.Option(..., "--spot", help="Underlying spot price"),
    strike: float = typer.Option(..., "--strike", help="Option strike"),
    vol: float = typer.Option(..., "--vol", help="Annualized volatility (decimal)"),
    tenor: Optional[float] = typer.Option(None, "--tenor", help="Time to expiry in years"),
    days: Optional[float] = typer.Option(None, "--days", help="Calendar days to expiry"),
    rate: float = typer.Option(0.0, "--rate", help="Continuous risk-free rate"),
    carry: float = typer.Option(0.0, "--carry", help="Continuous dividend yield / borrow"),
    config: Optional[Path] = typer.Option(None, "--config", help="Optional YAML/JSON config path"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table"),
) -> None:
    """Black-Scholes-Merton price and Greeks for one long unit."""

    settings = load_settings(config)
    kind = _option_type(option_type)
    inputs = BSMInputs(
        spot=spot,
        strike=strike,
        tenor=resolve_tenor(tenor, days, settings.day_count_basis),
        vol=vol,
        rate=rate,
        carry=carry,
    )
    result = price_option(kind, inputs)  # type: ignore[arg-type]
    log.info("Priced option", extra={"option_type": kind})
    emit({"option_type": kind, "tenor": inputs.tenor, **result.to_dict()}, title="BSM price", as_json=as_json)


def iv(
    option_type: str = typer.Option(..., "--type", help="call or put"),
    premium: float = typer.Option(..., "--price", help="Observed option price"),
    spot: float = typer.Option(..., "--spot", help="Underlying spot price"),
    strike: float = typer.Option(..., "--strike", help="Option strike"),
    tenor: Optional[float] = typer.Option(None, "--tenor", help="Time to expiry in years"),
    days: Optional[float] = typer.Option(None, "--days", help="Calendar days to expiry"),
    rate: float = typer.Option(0.0, "--rate", help="Continuous risk-free rate"),
    carry: float = typer.Option(0.0, "--carry", help="Continuous dividend yield / borrow"),
    sigma_init: Optional[float] = typer.Option(None, "--sigma-init", help="Newton starting volatility"),
    config: Optional[Path] = typer.Option(None, "--config", help="Optional YAML/JSON config path"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table"),
) -> None:
    """Implied volatility from an observed price (null when unsolvable)."""

    settings = load_settings(config, cli_values={"iv_sigma_init": sigma_init})
    kind = _option_type(option_type)
    request = ImpliedVolRequest(
        option_type=kind,  # type: ignore[arg-type]
        price=premium,
        spot=spot,
        strike=strike,
        tenor=resolve_tenor(tenor, days, settings.day_count_basis),
        rate=rate,
        carry=carry,
        sigma_init=settings.iv_sigma_init,
        tol=settings.iv_tol,
        max_iter=settings.iv_max_iter,
    )
    sigma = implied_vol(request)
    if sigma is None:
        log.warning("Implied volatility not solvable", extra={"option_type": kind})
    emit({"option_type": kind, "implied_vol": sigma}, title="Implied volatility", as_json=as_json)
