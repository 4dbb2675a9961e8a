"""Path conventions and shared file helpers for ticketflow.

Convention-based: the ticket-workflow skill lives at
``~/.claude/skills/ticket-workflow/`` and keeps its supplement
(``.supplement.md``) next to ``SKILL.md``.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import sys
import tempfile
from pathlib import Path

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

SKILL_NAME = "ticket-workflow"
SKILL_MARKER = "SKILL.md"
SUPPLEMENT_FILENAME = ".supplement.md"
SUPPLEMENT_ENV_VAR = "TICKETFLOW_SUPPLEMENT"
CLAUDE_DIR_NAME = ".claude"
CODEX_DIR_NAME = ".agents"
SKILLS_DIR_NAME = "skills"

VALID_SCOPES: frozenset[str] = frozenset({"user", "project"})


def skills_root(scope: str = "user", *, project_root: Path | None = None, agent_dir: str = CLAUDE_DIR_NAME) -> Path:
    """Return the skills directory for an install scope.

    ``user`` resolves under the home directory, ``project`` under
    ``project_root`` (default cwd).
    """
    if scope not in VALID_SCOPES:
        msg = f"Invalid scope '{scope}': must be one of {sorted(VALID_SCOPES)}"
        raise ValueError(msg)
    base = Path.home() if scope == "user" else (project_root or Path.cwd())
    return base / agent_dir / SKILLS_DIR_NAME


def default_supplement_path() -> Path:
    """Fixed default location of the supplement file."""
    return skills_root("user") / SKILL_NAME / SUPPLEMENT_FILENAME


def resolve_supplement_path(explicit: str | Path | None = None) -> Path:
    """Resolve the supplement path.

    Resolution order:
    1. ``explicit`` argument (``--supplement``)
    2. ``$TICKETFLOW_SUPPLEMENT``
    3. ``~/.claude/skills/ticket-workflow/.supplement.md``
    """
    if explicit:
        return Path(explicit).expanduser()
    env_value = os.environ.get(SUPPLEMENT_ENV_VAR, "").strip()
    if env_value:
        return Path(env_value).expanduser()
    return default_supplement_path()


# ---------------------------------------------------------------------------
# Shared CLI / file helpers
# ---------------------------------------------------------------------------


def find_ticketflow_command() -> list[str]:
    """Locate the ticketflow CLI command as a list of argument tokens.

    Resolution order:
    1. shutil.which("ticketflow") -- absolute path if on PATH
    2. Sibling of running Python interpreter (covers venv case)
    3. sys.executable -m ticketflow -- module invocation fallback
    """
    which = shutil.which("ticketflow")
    if which:
        return [which]

    candidate = Path(sys.executable).parent / "ticketflow"
    if candidate.is_file():
        return [str(candidate)]

    return [sys.executable, "-m", "ticketflow"]


def write_atomic(path: Path, content: str) -> None:
    """Write content to path atomically via temp file + os.replace().

    The temp file is created in the target directory so the rename never
    crosses filesystems. On any failure the temp file is removed and the
    previous file (if any) is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise
