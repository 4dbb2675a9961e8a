"""Skill pack installation and health checks for ticketflow.

Handles:
- Copying the bundled ticket-workflow skill into ``.claude/skills/`` (and
  ``.agents/skills/`` for Codex) without touching an existing supplement
- Listing the bundled skills from their SKILL.md front matter
- Health checks (doctor)
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from ticketflow.core import (
    CLAUDE_DIR_NAME,
    CODEX_DIR_NAME,
    SKILL_MARKER,
    SKILL_NAME,
    SUPPLEMENT_FILENAME,
    find_ticketflow_command,
    skills_root,
)
from ticketflow.logging import LOG_FILENAME
from ticketflow.questionnaire import NONE_TOKEN, load_questions
from ticketflow.supplement import SupplementAccessError, SupplementStore, parse_supplement

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Bundled skills
# ---------------------------------------------------------------------------

_FRONT_MATTER_FENCE = "---"


@dataclass(frozen=True)
class SkillInfo:
    """Name and description from a skill's SKILL.md front matter."""

    name: str
    description: str
    path: Path


def _get_skills_source_dir() -> Path:
    """Return the path to the bundled skills directory inside the package."""
    return Path(__file__).parent / "skills"


def read_skill_metadata(skill_md: Path) -> dict[str, str]:
    """Parse the ``---`` fenced front matter of a SKILL.md file.

    Front matter uses the same ``key: value`` lines as the supplement.
    Returns an empty dict when the file has no front matter.
    """
    lines = skill_md.read_text(encoding="utf-8").splitlines()
    if not lines or lines[0].strip() != _FRONT_MATTER_FENCE:
        return {}
    try:
        end = next(i for i, line in enumerate(lines[1:], start=1) if line.strip() == _FRONT_MATTER_FENCE)
    except StopIteration:
        return {}
    return parse_supplement("\n".join(lines[1:end]))


def list_skills(source_dir: Path | None = None) -> list[SkillInfo]:
    """List every ``<name>/SKILL.md`` under source_dir (default: bundled skills)."""
    root = source_dir or _get_skills_source_dir()
    skills: list[SkillInfo] = []
    if not root.is_dir():
        return skills
    for skill_md in sorted(root.glob(f"*/{SKILL_MARKER}")):
        meta = read_skill_metadata(skill_md)
        skills.append(
            SkillInfo(
                name=meta.get("name", skill_md.parent.name),
                description=meta.get("description", ""),
                path=skill_md.parent,
            )
        )
    return skills


def _is_preserved(name: str) -> bool:
    """Files the installer must never overwrite or remove."""
    return name == SUPPLEMENT_FILENAME or name.startswith(LOG_FILENAME)


def _copy_skill(skill_source: Path, target_dir: Path) -> None:
    target_dir.mkdir(parents=True, exist_ok=True)
    # Drop stale bundled files, keep the operator's supplement and logs
    for child in target_dir.iterdir():
        if _is_preserved(child.name):
            continue
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
    shutil.copytree(skill_source, target_dir, dirs_exist_ok=True)


def install_skills(skills_dir: Path, skill_name: str = SKILL_NAME) -> tuple[bool, str]:
    """Copy a bundled skill into ``skills_dir/<skill_name>``.

    Idempotent -- refreshes bundled files to match the installed ticketflow
    version while keeping an existing ``.supplement.md``.
    """
    skill_source = _get_skills_source_dir() / skill_name
    if not skill_source.is_dir():
        return False, f"Skill source not found at {skill_source}"

    target_dir = skills_dir / skill_name
    kept_supplement = (target_dir / SUPPLEMENT_FILENAME).is_file()
    _copy_skill(skill_source, target_dir)
    logger.info("Installed skill %s to %s", skill_name, target_dir)

    note = " (kept existing supplement)" if kept_supplement else ""
    return True, f"Installed skill pack to {target_dir}{note}"


def install_codex_skills(project_root: Path, skill_name: str = SKILL_NAME) -> tuple[bool, str]:
    """Copy a bundled skill into ``.agents/skills/`` for Codex.

    Codex discovers skills at ``.agents/skills/<name>/SKILL.md``.
    Uses the same skill content as Claude Code.
    """
    return install_skills(skills_root("project", project_root=project_root, agent_dir=CODEX_DIR_NAME), skill_name)


# ---------------------------------------------------------------------------
# Doctor checks
# ---------------------------------------------------------------------------


class CheckResult:
    """Result of a single doctor check."""

    def __init__(self, name: str, passed: bool, message: str, *, fix_hint: str = "") -> None:
        self.name = name
        self.passed = passed
        self.message = message
        self.fix_hint = fix_hint

    @property
    def icon(self) -> str:
        return "OK" if self.passed else "!!"


def _check_supplement(store: SupplementStore) -> tuple[CheckResult, dict[str, str] | None]:
    try:
        supplement = store.load()
    except SupplementAccessError as exc:
        return (
            CheckResult(
                SUPPLEMENT_FILENAME,
                False,
                f"Unreadable: {exc.reason}",
                fix_hint=f"Fix permissions on {store.path} or run: ticketflow reset --yes && ticketflow configure",
            ),
            None,
        )
    if supplement is None:
        return (
            CheckResult(
                SUPPLEMENT_FILENAME,
                False,
                f"Not found at {store.path}",
                fix_hint="Run: ticketflow configure",
            ),
            None,
        )
    return CheckResult(SUPPLEMENT_FILENAME, True, f"{len(supplement)} keys at {store.path}"), supplement


def _check_required_keys(supplement: dict[str, str]) -> CheckResult:
    missing = [q.key for q in load_questions() if q.applies(supplement) and not supplement.get(q.key)]
    if missing:
        return CheckResult(
            "Required keys",
            False,
            f"Not configured: {', '.join(missing)}",
            fix_hint=f"Add the keys by hand or re-run: ticketflow configure --force (use '{NONE_TOKEN}' where a key does not apply)",
        )
    return CheckResult("Required keys", True, "All questionnaire keys configured")


def _check_skill_installed(project_root: Path) -> CheckResult:
    candidates = [
        skills_root("user") / SKILL_NAME / SKILL_MARKER,
        skills_root("project", project_root=project_root, agent_dir=CLAUDE_DIR_NAME) / SKILL_NAME / SKILL_MARKER,
    ]
    for skill_md in candidates:
        if skill_md.is_file():
            return CheckResult("Claude Code skill", True, f"{SKILL_NAME} installed at {skill_md.parent}")
    return CheckResult(
        "Claude Code skill",
        False,
        f"{SKILL_NAME} skill not found in ~/.claude/skills/ or ./.claude/skills/",
        fix_hint="Run: ticketflow install",
    )


def _check_cli_on_path() -> CheckResult:
    command = find_ticketflow_command()
    if len(command) == 1:
        return CheckResult("ticketflow CLI", True, f"Found at {command[0]}")
    return CheckResult(
        "ticketflow CLI",
        False,
        "ticketflow is not on PATH; agents will need the module form",
        fix_hint=f"Add {Path(command[0]).parent} to PATH or use: {' '.join(command)}",
    )


def run_doctor(store: SupplementStore, project_root: Path | None = None) -> list[CheckResult]:
    """Run all health checks. Returns list of CheckResult."""
    results: list[CheckResult] = []
    check, supplement = _check_supplement(store)
    results.append(check)
    if supplement is not None:
        results.append(_check_required_keys(supplement))
    results.append(_check_skill_installed(project_root or Path.cwd()))
    results.append(_check_cli_on_path())
    return results
