"""Rendering helpers shared by the CLI commands."""

from __future__ import annotations

import json
import math
from typing import Any, Mapping

import typer
from rich.console import Console
from rich.table import Table

console = Console()


def _fmt(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        if not math.isfinite(value):
            return str(value)
        return f"{value:.6g}"
    if isinstance(value, (list, tuple)):
        return ", ".join(_fmt(v) for v in value) or "-"
    return str(value)


def emit(payload: Mapping[str, Any], *, title: str, as_json: bool) -> None:
    """Print ``payload`` as indented JSON or as a two-column rich table."""

    if as_json:
        typer.echo(json.dumps(payload, indent=2, default=str))
        return
    table = Table(title=title)
    table.add_column("Field")
    table.add_column("Value", justify="right")
    for key, value in payload.items():
        if isinstance(value, Mapping):
            for sub_key, sub_value in value.items():
                table.add_row(f"{key}.{sub_key}", _fmt(sub_value))
        else:
            table.add_row(key, _fmt(value))
    console.print(table)


__all__ = ["console", "emit"]
