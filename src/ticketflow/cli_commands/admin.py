"""CLI commands for admin: install, skills, doctor."""

from __future__ import annotations

import json as json_mod
import sys
from pathlib import Path

import click

from ticketflow.cli_common import enable_logging, get_store
from ticketflow.core import SKILL_NAME, skills_root


@click.command()
@click.option(
    "--scope",
    type=click.Choice(["user", "project"], case_sensitive=False),
    default="user",
    show_default=True,
    help="Install under ~/.claude/skills (user) or ./.claude/skills (project)",
)
@click.option("--codex", is_flag=True, help="Also install into ./.agents/skills for Codex")
@click.option("--skill", "skill_name", default=SKILL_NAME, show_default=True, help="Bundled skill to install")
def install(scope: str, codex: bool, skill_name: str) -> None:
    """Install the skill pack. An existing .supplement.md is kept."""
    from ticketflow.install import install_codex_skills, install_skills

    enable_logging(get_store())
    project_root = Path.cwd()
    results: list[tuple[str, bool, str]] = []

    ok, msg = install_skills(skills_root(scope.lower(), project_root=project_root), skill_name)
    results.append(("Claude Code skills", ok, msg))
    if codex:
        ok, msg = install_codex_skills(project_root, skill_name)
        results.append(("Codex skills", ok, msg))

    for name, ok, msg in results:
        icon = "OK" if ok else "!!"
        click.echo(f"  {icon}  {name}: {msg}")

    if not all(ok for _, ok, _ in results):
        sys.exit(1)
    click.echo("\nNext: ticketflow configure")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def skills(as_json: bool) -> None:
    """List the bundled skills."""
    from ticketflow.install import list_skills

    found = list_skills()
    if as_json:
        click.echo(json_mod.dumps([{"name": s.name, "description": s.description} for s in found], indent=2))
        return
    if not found:
        click.echo("No bundled skills found.")
        return
    for s in found:
        click.echo(f"  {s.name}: {s.description}")


@click.command()
@click.option("--verbose", "-v", is_flag=True, help="Show passing checks too")
def doctor(verbose: bool) -> None:
    """Run health checks on the ticketflow installation."""
    from ticketflow.install import run_doctor

    results = run_doctor(get_store())

    passed = sum(1 for r in results if r.passed)
    failed = sum(1 for r in results if not r.passed)

    click.echo(f"ticketflow doctor  --  {passed} passed  {failed} issues")
    click.echo()

    for r in results:
        if r.passed and not verbose:
            continue
        click.echo(f"  {r.icon}  {r.name}: {r.message}")
        if not r.passed and r.fix_hint:
            click.echo(f"       -> {r.fix_hint}")

    if failed == 0:
        click.echo("\nAll checks passed.")
    else:
        sys.exit(1)
