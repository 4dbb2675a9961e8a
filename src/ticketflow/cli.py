"""CLI for the ticket-workflow skill.

Convention-based: the supplement lives at
~/.claude/skills/ticket-workflow/.supplement.md unless overridden with
--supplement or $TICKETFLOW_SUPPLEMENT.

Usage:
    ticketflow configure                         # Run the questionnaire
    ticketflow show                              # Print the supplement
    ticketflow get MAIN_BRANCH                   # Print one value
    ticketflow reset --yes                       # Delete the supplement
    ticketflow phases                            # List applicable phases
    ticketflow phase 5 --ticket PROJ-123         # Render one phase
    ticketflow start PROJ-123                    # Configure if needed, render all phases
    ticketflow render 'git checkout $MAIN_BRANCH'
    ticketflow install                           # Install the skill pack
    ticketflow skills                            # List bundled skills
    ticketflow doctor                            # Health check
"""

from __future__ import annotations

from pathlib import Path

import click

from ticketflow import __version__
from ticketflow.cli_commands.admin import doctor, install, skills
from ticketflow.cli_commands.supplement import configure, get, reset, show
from ticketflow.cli_commands.workflow import phase, phases, render_cmd, start
from ticketflow.core import resolve_supplement_path
from ticketflow.supplement import SupplementStore


@click.group()
@click.version_option(version=__version__, prog_name="ticketflow")
@click.option(
    "--supplement",
    "supplement_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Supplement file (default: $TICKETFLOW_SUPPLEMENT or ~/.claude/skills/ticket-workflow/.supplement.md)",
)
@click.pass_context
def cli(ctx: click.Context, supplement_path: Path | None) -> None:
    """ticketflow -- ticket-workflow supplement and phase renderer."""
    ctx.ensure_object(dict)
    ctx.obj["store"] = SupplementStore(resolve_supplement_path(supplement_path))


for _command in (configure, show, get, reset, phases, phase, start, render_cmd, install, skills, doctor):
    cli.add_command(_command)


if __name__ == "__main__":
    cli()
