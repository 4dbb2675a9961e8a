"""Shared CLI helpers.

Provides ``get_store()``, ``load_or_exit()`` and ``fail()`` so the
``cli_commands/*.py`` modules can share them without importing cli.py.
"""

from __future__ import annotations

import json as json_mod
import sys
from typing import NoReturn

import click

from ticketflow.supplement import SupplementAccessError, SupplementStore


def get_store() -> SupplementStore:
    """Return the SupplementStore resolved by the top-level ``cli`` group."""
    ctx = click.get_current_context()
    store: SupplementStore = ctx.find_root().obj["store"]
    return store


def fail(message: str, *, as_json: bool = False, code: str = "error", **extra: str) -> NoReturn:
    """Print an error (JSON on stdout or text on stderr) and exit 1."""
    if as_json:
        click.echo(json_mod.dumps({"error": message, "code": code, **extra}))
    else:
        click.echo(f"Error: {message}", err=True)
        for value in extra.values():
            click.echo(f"  {value}", err=True)
    sys.exit(1)


def access_error(exc: SupplementAccessError, *, as_json: bool = False) -> NoReturn:
    """Halt on an unreadable/unwritable supplement, naming the path."""
    fail(
        exc.reason,
        as_json=as_json,
        code="supplement_unreadable",
        path=str(exc.path),
        hint="Fix the file permissions or re-run `ticketflow configure`.",
    )


def load_or_exit(store: SupplementStore, *, as_json: bool = False) -> dict[str, str] | None:
    """Load the supplement; exit on I/O failure. Returns None when absent."""
    try:
        return store.load()
    except SupplementAccessError as exc:
        access_error(exc, as_json=as_json)


def require_supplement(store: SupplementStore, *, as_json: bool = False) -> dict[str, str]:
    """Load the supplement or exit telling the operator to configure it."""
    supplement = load_or_exit(store, as_json=as_json)
    if supplement is None:
        fail(
            f"No supplement found at {store.path}",
            as_json=as_json,
            code="not_configured",
            hint="Run 'ticketflow configure' first.",
        )
    return supplement


def enable_logging(store: SupplementStore) -> None:
    """Attach the JSON file log beside the supplement (best-effort)."""
    from ticketflow.logging import setup_logging

    try:
        setup_logging(store.path.parent)
    except OSError as exc:
        click.echo(f"Warning: file logging disabled ({exc})", err=True)
