"""CLI commands for the phase sequence: phases, phase, start, render."""

from __future__ import annotations

import json as json_mod

import click

from ticketflow.cli_common import access_error, enable_logging, fail, get_store, load_or_exit, require_supplement
from ticketflow.phases import (
    WorkflowState,
    get_phase,
    load_phases,
    plan_phases,
    referenced_variables,
    render,
    render_phase,
    resolve_state,
    select_sections,
    start_workflow,
)
from ticketflow.questionnaire import Questionnaire, QuestionnaireAborted
from ticketflow.supplement import SupplementAccessError

TICKET_ID_KEY = "TICKET_ID"


def _ticket_vars(ticket: str | None) -> dict[str, str]:
    return {TICKET_ID_KEY: ticket} if ticket else {}


@click.command()
@click.option("--all", "show_all", is_flag=True, help="Include phases and sections that do not apply")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def phases(show_all: bool, as_json: bool) -> None:
    """List the phase sequence for the current supplement."""
    store = get_store()
    supplement = load_or_exit(store, as_json=as_json)
    state = resolve_state(supplement)
    sequence = list(load_phases()) if show_all else plan_phases(state, supplement)

    if as_json:
        data = {
            "state": state.value,
            "phases": [
                {
                    "number": p.number,
                    "name": p.name,
                    "title": p.title,
                    "sections": [s.title for s in p.sections],
                }
                for p in sequence
            ],
        }
        click.echo(json_mod.dumps(data, indent=2))
        return

    click.echo(f"State: {state.value}")
    for p in sequence:
        click.echo(f"  {p.number}  {p.title}")
        for s in p.sections:
            click.echo(f"       - {s.title}")
    if state is WorkflowState.SUPPLEMENT_MISSING:
        click.echo("\nNext: ticketflow configure")


@click.command()
@click.argument("number", type=int)
@click.option("--ticket", default=None, help="Ticket ID substituted for $TICKET_ID")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def phase(number: int, ticket: str | None, as_json: bool) -> None:
    """Render a single phase with supplement values substituted."""
    store = get_store()
    try:
        definition = get_phase(number)
    except KeyError:
        fail(f"Unknown phase: {number}", as_json=as_json, code="not_found")

    if number == 0:
        supplement = load_or_exit(store, as_json=as_json) or {}
    else:
        supplement = require_supplement(store, as_json=as_json)

    rendered = render_phase(select_sections(definition, supplement), supplement, extra=_ticket_vars(ticket))
    if as_json:
        click.echo(json_mod.dumps(rendered.to_dict(), indent=2))
    else:
        click.echo(rendered.to_markdown(), nl=False)


@click.command()
@click.argument("ticket", required=False, default=None)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON (never prompts)")
def start(ticket: str | None, as_json: bool) -> None:
    """Run the workflow: configure if needed, then print every applicable phase."""
    store = get_store()
    if as_json:
        # --json never prompts
        require_supplement(store, as_json=True)
    enable_logging(store)

    try:
        run = start_workflow(store, Questionnaire(store), extra=_ticket_vars(ticket))
    except QuestionnaireAborted as exc:
        fail(
            f"{exc.reason}; nothing was saved",
            as_json=as_json,
            code="aborted",
            path=str(store.path),
            hint="Re-run 'ticketflow start' to answer the questions again.",
        )
    except SupplementAccessError as exc:
        access_error(exc, as_json=as_json)

    if as_json:
        data = {
            "state": run.state.value,
            "ticket": ticket,
            "phases": [p.to_dict() for p in run.phases],
        }
        click.echo(json_mod.dumps(data, indent=2))
        return

    if run.initial_state is WorkflowState.SUPPLEMENT_MISSING:
        click.echo(f"\nSaved supplement to {store.path}\n")
    heading = f"# Ticket workflow: {ticket}" if ticket else "# Ticket workflow"
    click.echo(heading)
    for p in run.phases:
        click.echo("")
        click.echo(p.to_markdown(), nl=False)


@click.command("render")
@click.argument("template")
@click.option("--var", "variables", multiple=True, help="Extra variable as KEY=VALUE (repeatable)")
def render_cmd(template: str, variables: tuple[str, ...]) -> None:
    """Substitute $VARIABLES in TEMPLATE from the supplement."""
    extra: dict[str, str] = {}
    for v in variables:
        if "=" not in v:
            fail(f"Invalid variable format: {v} (expected KEY=VALUE)")
        k, val = v.split("=", 1)
        extra[k] = val

    store = get_store()
    supplement = load_or_exit(store)
    values = dict(supplement or {})
    values.update(extra)
    unset = [name for name in referenced_variables(template) if name not in values]
    if supplement is None:
        click.echo(f"Warning: no supplement at {store.path}; variables render empty", err=True)
    elif unset:
        click.echo(f"Warning: not configured, rendered empty: {', '.join(unset)}", err=True)
    click.echo(render(template, values))
