"""Typer CLI entrypoint with structured error handling."""

from __future__ import annotations

import sys

import typer

from option_strategy_engine.cli.commands.breakeven import breakeven
from option_strategy_engine.cli.commands.capm import capm
from option_strategy_engine.cli.commands.metrics import metrics
from option_strategy_engine.cli.commands.montecarlo import simulate
from option_strategy_engine.cli.commands.pricing import iv, price
from option_strategy_engine.exceptions import ConfigError, InvalidInputError, SchemaError, SimulationError
from option_strategy_engine.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Option Strategy Engine CLI")


app.command()(price)
app.command()(iv)
app.command()(breakeven)
app.command()(metrics)
app.command()(capm)
app.command()(simulate)


log = get_logger(__name__, component="cli")


def main() -> None:
    configure_logging(component="cli")
    try:
        app()
    except (ConfigError, InvalidInputError, SimulationError) as exc:
        log.error(str(exc))
        sys.exit(1)
    except SchemaError as exc:
        log.error(f"Invalid leg payload: {exc}")
        sys.exit(2)
    except KeyboardInterrupt:
        log.info("Interrupted")
        sys.exit(130)
    except Exception:
        log.exception("Unhandled exception")
        sys.exit(255)


if __name__ == "__main__":
    main()
