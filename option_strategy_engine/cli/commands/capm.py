"""CAPM CLI command."""

from __future__ import annotations

from typing import Optional

import typer

from option_strategy_engine.analytics.capm import capm_alpha, capm_expected_return
from option_strategy_engine.cli.output import emit


def capm(
    rf: float = typer.Option(..., "--rf", help="Risk-free rate (annual decimal)"),
    beta: float = typer.Option(..., "--beta", help="Asset beta"),
    erp: Optional[float] = typer.Option(None, "--erp", help="Equity risk premium"),
    market_return: Optional[float] = typer.Option(None, "--market-return", help="Expected market return"),
    realized: Optional[float] = typer.Option(None, "--realized", help="Realized return for Jensen's alpha"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table"),
) -> None:
    """CAPM expected return (and alpha when a realized return is given)."""

    expected = capm_expected_return(rf, beta, erp=erp, market_return=market_return)
    payload = {"expected_return": expected, "drift": expected}
    if realized is not None:
        payload["alpha"] = capm_alpha(realized, rf, beta, erp=erp, market_return=market_return)
    emit(payload, title="CAPM", as_json=as_json)
