"""Supplement store -- the ticket-workflow settings file.

The supplement is a flat ``KEY: value`` file kept beside the installed skill.
Lines that are not of that shape (``#`` comments, ``##`` Markdown headings,
blank lines, prose) are ignored on read, so the file stays hand-editable.

A missing file is the normal first-run state: ``load()`` returns ``None`` and
the caller runs the questionnaire.

Reading accepts any identifier as a key (SKILL.md front matter uses the same
parser), but ``save`` only writes upper-case keys, the only ones phase
templates can reference as ``$KEY``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import Path

from ticketflow.core import write_atomic

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")
_LINE_PATTERN = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*:\s*(.*?)\s*$")

SUPPLEMENT_HEADER = (
    "# Ticket Workflow Supplement\n"
    "# Generated by ticketflow. Edit values freely; delete this file to re-run the questionnaire.\n"
)


class SupplementAccessError(OSError):
    """Raised when the supplement exists but cannot be read or written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot access supplement at {path}: {reason}")


def parse_supplement(text: str) -> dict[str, str]:
    """Parse supplement text into a mapping. Best-effort: bad lines are skipped."""
    result: dict[str, str] = {}
    # Only \n ends a line: splitlines() would also break on \x0c, \x85, \u2028 ...
    for lineno, raw in enumerate(text.split("\n"), start=1):
        raw = raw.removesuffix("\r")
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue
        m = _LINE_PATTERN.match(raw)
        if m is None or not m.group(2):
            logger.debug("Skipping malformed supplement line %d: %r", lineno, raw)
            continue
        # Duplicate keys: last write wins
        result[m.group(1)] = m.group(2)
    return result


def validate_entry(key: str, value: str) -> None:
    """Raise ValueError if key/value cannot survive a save/load round trip."""
    if not isinstance(key, str) or not KEY_PATTERN.match(key):
        msg = f"Invalid supplement key {key!r}: must match ^[A-Z][A-Z0-9_]*$"
        raise ValueError(msg)
    if not isinstance(value, str):
        msg = f"Value for {key} must be a string, got {type(value).__name__}"
        raise ValueError(msg)
    if "\n" in value or "\r" in value:
        msg = f"Value for {key} must be a single line"
        raise ValueError(msg)
    if not value.strip():
        msg = f"Value for {key} must be a non-empty string"
        raise ValueError(msg)
    if value != value.strip():
        msg = f"Value for {key} must not start or end with whitespace"
        raise ValueError(msg)


def format_supplement(mapping: Mapping[str, str], groups: Mapping[str, str] | None = None) -> str:
    """Serialize a mapping to supplement text.

    ``groups`` maps key -> section heading. Consecutive keys sharing a heading
    are emitted under one ``## heading`` line; headings are comments to the
    parser.
    """
    lines: list[str] = [SUPPLEMENT_HEADER]
    current: str | None = None
    for key, value in mapping.items():
        validate_entry(key, value)
        heading = (groups or {}).get(key)
        if heading and heading != current:
            lines.append(f"\n## {heading}\n")
            current = heading
        lines.append(f"{key}: {value}\n")
    return "".join(lines)


class SupplementStore:
    """Persist and retrieve the flat supplement mapping at a fixed path.

    ``get`` serves from the last load but re-reads the file once its mtime or
    size changes, so hand edits are seen by long-lived stores (the MCP server).
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._data: dict[str, str] | None = None
        self._loaded = False
        self._seen: tuple[int, int] | None = None

    def __repr__(self) -> str:
        return f"SupplementStore({str(self.path)!r})"

    def exists(self) -> bool:
        return self.path.is_file()

    def _file_stamp(self) -> tuple[int, int] | None:
        try:
            st = self.path.stat()
        except OSError:
            return None
        return st.st_mtime_ns, st.st_size

    def load(self) -> dict[str, str] | None:
        """Read the store. Returns None if the file does not exist.

        Raises SupplementAccessError if the file exists but cannot be read.
        """
        stamp = self._file_stamp()
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self._data, self._loaded, self._seen = None, True, None
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise SupplementAccessError(self.path, str(exc)) from exc
        self._data = parse_supplement(text)
        self._loaded, self._seen = True, stamp
        return dict(self._data)

    def save(self, mapping: Mapping[str, str], *, groups: Mapping[str, str] | None = None) -> None:
        """Write the full mapping, replacing any existing file atomically.

        Raises ValueError (nothing written) if any entry would not load back
        unchanged.
        """
        content = format_supplement(mapping, groups)
        try:
            write_atomic(self.path, content)
        except OSError as exc:
            raise SupplementAccessError(self.path, str(exc)) from exc
        self._data = dict(mapping)
        self._loaded, self._seen = True, self._file_stamp()
        logger.info("Saved supplement with %d keys", len(mapping), extra={"path": str(self.path)})

    def get(self, key: str, default: str = "") -> str:
        """Return the value for key, else default."""
        if not self._loaded or self._file_stamp() != self._seen:
            self.load()
        if self._data is None:
            return default
        return self._data.get(key, default)

    def delete(self) -> bool:
        """Remove the supplement file. Returns False if it did not exist."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise SupplementAccessError(self.path, str(exc)) from exc
        self._data, self._loaded, self._seen = None, True, None
        logger.info("Deleted supplement", extra={"path": str(self.path)})
        return True
