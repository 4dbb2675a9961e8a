"""CLI tests for configure, show, get, reset."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from tests._helpers import SAMPLE_SUPPLEMENT
from tests.cli.conftest import Invoke
from ticketflow.cli import cli
from ticketflow.core import SUPPLEMENT_ENV_VAR
from ticketflow.supplement import SupplementStore


class TestConfigure:
    def test_questionnaire_writes_supplement(self, invoke: Invoke, answers_input: str, supplement_path: Path) -> None:
        result = invoke("configure", input=answers_input)
        assert result.exit_code == 0, result.output
        assert f"Saved {len(SAMPLE_SUPPLEMENT)} settings to {supplement_path}" in result.output
        assert "Next: ticketflow start <TICKET_ID>" in result.output
        assert SupplementStore(supplement_path).load() == SAMPLE_SUPPLEMENT

    def test_numbered_option_and_reprompt(self, invoke: Invoke, supplement_path: Path) -> None:
        # blank answer re-asks; "1" picks the first listed option
        lines = ["", "1", "3", "github", "none", "trunk", "feat/x", "2", "make test", "none", "4"]
        result = invoke("configure", input="\n".join(lines) + "\n")
        assert result.exit_code == 0, result.output
        assert "An answer is required." in result.output
        supplement = SupplementStore(supplement_path).load()
        assert supplement is not None
        assert supplement["TICKET_SYSTEM"] == "jira"
        assert supplement["TICKET_ACCESS"] == "manual"
        assert supplement["VCS_CLI"] == "none"
        assert supplement["COMMIT_CONVENTION"] == "ticket-prefix"
        assert supplement["ARCHITECTURE"] == "ddd"
        assert "TICKET_MCP_TOOL" not in supplement
        assert "TICKET_CLI" not in supplement

    def test_interrupted_saves_nothing(self, invoke: Invoke, supplement_path: Path) -> None:
        result = invoke("configure", input="jira\nmcp\n")
        assert result.exit_code == 1
        assert "nothing was saved" in result.output
        assert not supplement_path.exists()

    def test_existing_supplement_left_alone(self, invoke: Invoke, configured_store: SupplementStore) -> None:
        before = configured_store.path.read_text()
        result = invoke("configure")
        assert result.exit_code == 0
        assert "already exists" in result.output
        assert configured_store.path.read_text() == before

    def test_force_replaces_supplement(
        self, invoke: Invoke, configured_store: SupplementStore, answers_input: str
    ) -> None:
        result = invoke("configure", "--force", input=answers_input.replace("\nmain\n", "\ndevelop\n"))
        assert result.exit_code == 0, result.output
        assert SupplementStore(configured_store.path).get("MAIN_BRANCH") == "develop"


class TestShow:
    def test_text(self, invoke: Invoke, configured_store: SupplementStore) -> None:
        result = invoke("show")
        assert result.exit_code == 0
        assert f"Supplement: {configured_store.path}" in result.output
        assert "MAIN_BRANCH" in result.output
        assert "vendor/bin/phpunit" in result.output

    def test_json(self, invoke: Invoke, configured_store: SupplementStore) -> None:
        result = invoke("show", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["path"] == str(configured_store.path)
        assert data["supplement"] == SAMPLE_SUPPLEMENT

    def test_not_configured(self, invoke: Invoke) -> None:
        result = invoke("show")
        assert result.exit_code == 1
        assert "No supplement found" in result.output
        assert "ticketflow configure" in result.output

    def test_not_configured_json(self, invoke: Invoke) -> None:
        result = invoke("show", "--json")
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["code"] == "not_configured"

    def test_unreadable_json(self, invoke: Invoke, supplement_path: Path) -> None:
        supplement_path.mkdir(parents=True)
        result = invoke("show", "--json")
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["code"] == "supplement_unreadable"
        assert data["path"] == str(supplement_path)

    def test_unreadable_text_names_path_and_fix(self, invoke: Invoke, supplement_path: Path) -> None:
        supplement_path.mkdir(parents=True)
        result = invoke("get", "MAIN_BRANCH")
        assert result.exit_code == 1
        assert str(supplement_path) in result.output
        assert "Fix the file permissions" in result.output


class TestGet:
    def test_present(self, invoke: Invoke, configured_store: SupplementStore) -> None:
        result = invoke("get", "MAIN_BRANCH")
        assert result.exit_code == 0
        assert result.output == "main\n"

    def test_missing_key(self, invoke: Invoke, configured_store: SupplementStore) -> None:
        result = invoke("get", "NOPE")
        assert result.exit_code == 1
        assert "Not configured: NOPE" in result.output

    def test_missing_key_with_default(self, invoke: Invoke, configured_store: SupplementStore) -> None:
        result = invoke("get", "NOPE", "--default", "fallback")
        assert result.exit_code == 0
        assert result.output == "fallback\n"

    def test_env_var_path(
        self, cli_runner: CliRunner, configured_store: SupplementStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(SUPPLEMENT_ENV_VAR, str(configured_store.path))
        result = cli_runner.invoke(cli, ["get", "VCS_CLI"])
        assert result.exit_code == 0
        assert result.output == "gh\n"


class TestReset:
    def test_yes_deletes(self, invoke: Invoke, configured_store: SupplementStore) -> None:
        result = invoke("reset", "--yes")
        assert result.exit_code == 0
        assert "Deleted" in result.output
        assert not configured_store.path.exists()

    def test_declined_confirmation_keeps_file(self, invoke: Invoke, configured_store: SupplementStore) -> None:
        result = invoke("reset", input="n\n")
        assert result.exit_code == 1
        assert configured_store.path.exists()

    def test_nothing_to_delete(self, invoke: Invoke) -> None:
        result = invoke("reset", "--yes")
        assert result.exit_code == 0
        assert "No supplement at" in result.output

    def test_reset_then_configure_asks_again(
        self, invoke: Invoke, configured_store: SupplementStore, answers_input: str
    ) -> None:
        invoke("reset", "--yes")
        result = invoke("configure", input=answers_input)
        assert result.exit_code == 0
        assert "Saved" in result.output
