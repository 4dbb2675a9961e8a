"""CLI commands for the supplement: configure, show, get, reset."""

from __future__ import annotations

import json as json_mod

import click

from ticketflow.cli_common import access_error, enable_logging, fail, get_store, load_or_exit, require_supplement
from ticketflow.questionnaire import Questionnaire, QuestionnaireAborted
from ticketflow.supplement import SupplementAccessError


@click.command()
@click.option("--force", is_flag=True, help="Answer the questions again, replacing the existing supplement")
def configure(force: bool) -> None:
    """Run the setup questionnaire and write the supplement."""
    store = get_store()
    if load_or_exit(store) is not None and not force:
        click.echo(f"Supplement already exists at {store.path}")
        click.echo("Edit it by hand, or run 'ticketflow configure --force' to answer the questions again.")
        return

    enable_logging(store)
    click.echo("Ticket workflow setup. Answers are saved only once every question is answered.")
    try:
        result = Questionnaire(store).run_all()
    except QuestionnaireAborted as exc:
        fail(
            f"{exc.reason}; nothing was saved",
            path=str(store.path),
            hint="Re-run 'ticketflow configure' to start over.",
        )
    except SupplementAccessError as exc:
        access_error(exc)

    click.echo(f"\nSaved {len(result.answers)} settings to {result.path}")
    click.echo("Next: ticketflow start <TICKET_ID>")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(as_json: bool) -> None:
    """Print the supplement."""
    store = get_store()
    supplement = require_supplement(store, as_json=as_json)
    if as_json:
        click.echo(json_mod.dumps({"path": str(store.path), "supplement": supplement}, indent=2))
        return
    click.echo(f"Supplement: {store.path}")
    width = max((len(k) for k in supplement), default=0)
    for key, value in supplement.items():
        click.echo(f"  {key:<{width}}  {value}")


@click.command()
@click.argument("key")
@click.option("--default", "default", default=None, help="Value to print when KEY is not configured")
def get(key: str, default: str | None) -> None:
    """Print one supplement value."""
    store = get_store()
    supplement = require_supplement(store)
    if key in supplement:
        click.echo(supplement[key])
    elif default is not None:
        click.echo(default)
    else:
        fail(f"Not configured: {key}", path=str(store.path))


@click.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
def reset(yes: bool) -> None:
    """Delete the supplement so the questionnaire runs again."""
    store = get_store()
    if not store.exists():
        click.echo(f"No supplement at {store.path}")
        return
    if not yes:
        click.confirm(f"Delete {store.path}?", abort=True)
    enable_logging(store)
    try:
        store.delete()
    except SupplementAccessError as exc:
        access_error(exc)
    click.echo(f"Deleted {store.path}")
    click.echo("Next: ticketflow configure")
