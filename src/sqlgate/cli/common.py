"""Helpers shared by the sqlgate commands."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from sqlgate.cli.errors import err_config, err_no_db
from sqlgate.config import ConfigError, load_config
from sqlgate.db.database import Database

console = Console()

_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?")


def coerce_arg(raw: str) -> Any:
    """Turn a --arg string into the value it is bound as.

    ``null`` → None, integer text → int, decimal text → float, else str.
    """
    if raw.lower() == "null":
        return None
    if _INT_RE.fullmatch(raw):
        return int(raw)
    if _FLOAT_RE.fullmatch(raw):
        return float(raw)
    return raw


def open_database(db: Path | None, *, must_exist: bool = True) -> Database:
    """Build a Database from config, with --db (when given) overriding the path."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc
    if db is not None:
        cfg.database.path = str(db)
    if must_exist and not Path(cfg.database.path).exists():
        console.print(err_no_db(cfg.database.path))
        raise typer.Exit(1)
    return Database.from_config(cfg)
