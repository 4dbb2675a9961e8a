"""Shared pytest fixtures for ticketflow tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from tests._helpers import SAMPLE_SUPPLEMENT
from ticketflow.core import SKILL_NAME, SUPPLEMENT_ENV_VAR, SUPPLEMENT_FILENAME
from ticketflow.logging import LOG_LEVEL_ENV_VAR, shutdown_logging
from ticketflow.supplement import SupplementStore


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep tests away from the real home directory and drop file log handlers afterwards."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv(SUPPLEMENT_ENV_VAR, raising=False)
    monkeypatch.delenv(LOG_LEVEL_ENV_VAR, raising=False)
    yield
    shutdown_logging()


@pytest.fixture
def supplement_path(tmp_path: Path) -> Path:
    """Supplement location inside an installed-skill style directory (not created)."""
    return tmp_path / "skills" / SKILL_NAME / SUPPLEMENT_FILENAME


@pytest.fixture
def store(supplement_path: Path) -> SupplementStore:
    """Empty store: the supplement file does not exist yet."""
    return SupplementStore(supplement_path)


@pytest.fixture
def configured_store(store: SupplementStore) -> SupplementStore:
    """Store with SAMPLE_SUPPLEMENT saved."""
    store.save(SAMPLE_SUPPLEMENT)
    return SupplementStore(store.path)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()
