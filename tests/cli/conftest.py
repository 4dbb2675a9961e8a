"""Fixtures for CLI interface tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from click.testing import CliRunner, Result

from tests._helpers import SAMPLE_ANSWERS
from ticketflow.cli import cli

Invoke = Callable[..., Result]


@pytest.fixture
def invoke(cli_runner: CliRunner, supplement_path: Path) -> Invoke:
    """Run the CLI against the test supplement path."""

    def _invoke(*args: str, input: str | None = None) -> Result:
        return cli_runner.invoke(cli, ["--supplement", str(supplement_path), *args], input=input)

    return _invoke


@pytest.fixture
def answers_input() -> str:
    """Questionnaire answers as typed on stdin."""
    return "\n".join(SAMPLE_ANSWERS) + "\n"
