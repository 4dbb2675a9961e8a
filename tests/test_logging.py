"""Tests for structured logging."""

from __future__ import annotations

import json
import logging
import logging.handlers
import os
import threading
from pathlib import Path
from typing import Any

import pytest

from ticketflow.logging import (
    LOG_FILENAME,
    LOG_LEVEL_ENV_VAR,
    LOGGER_NAME,
    log_level,
    setup_logging,
    shutdown_logging,
)
from ticketflow.supplement import SupplementStore


def _records(log_dir: Path) -> list[dict[str, Any]]:
    for handler in logging.getLogger(LOGGER_NAME).handlers:
        handler.flush()
    return [json.loads(line) for line in (log_dir / LOG_FILENAME).read_text().splitlines()]


def _file_handlers() -> list[logging.handlers.RotatingFileHandler]:
    logger = logging.getLogger(LOGGER_NAME)
    return [h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]


class TestSetupLogging:
    def test_writes_json_lines(self, tmp_path: Path) -> None:
        logger = setup_logging(tmp_path)
        logger.info("tool_call", extra={"tool": "get_phase", "args_data": {"number": 3}, "duration_ms": 42.5})
        (record,) = _records(tmp_path)
        assert record["msg"] == "tool_call"
        assert record["tool"] == "get_phase"
        assert record["args"] == {"number": 3}
        assert record["duration_ms"] == 42.5
        assert record["level"] == "INFO"
        assert record["logger"] == LOGGER_NAME

    def test_no_file_until_first_record(self, tmp_path: Path) -> None:
        setup_logging(tmp_path / "a" / "b")
        assert (tmp_path / "a" / "b").is_dir()
        assert not (tmp_path / "a" / "b" / LOG_FILENAME).exists()

    def test_supplement_events_carry_path(self, tmp_path: Path) -> None:
        setup_logging(tmp_path)
        store = SupplementStore(tmp_path / ".supplement.md")
        store.save({"MAIN_BRANCH": "main"})
        store.delete()
        records = [r for r in _records(tmp_path) if r["logger"] == "ticketflow.supplement"]
        assert [r["msg"] for r in records] == ["Saved supplement with 1 keys", "Deleted supplement"]
        assert all(r["path"] == str(store.path) for r in records)

    def test_exception_recorded(self, tmp_path: Path) -> None:
        logger = setup_logging(tmp_path)
        try:
            raise ValueError("bad phase")
        except ValueError:
            logger.error("tool_error", exc_info=True)
        (record,) = _records(tmp_path)
        assert record["exception"] == "ValueError: bad phase"

    def test_idempotent_setup(self, tmp_path: Path) -> None:
        logger1 = setup_logging(tmp_path)
        logger2 = setup_logging(tmp_path)
        assert logger1 is logger2
        assert len(_file_handlers()) == 1

    def test_new_directory_replaces_handler(self, tmp_path: Path) -> None:
        setup_logging(tmp_path / "one")
        setup_logging(tmp_path / "two")
        handlers = _file_handlers()
        assert len(handlers) == 1
        assert handlers[0].baseFilename == os.path.abspath(str(tmp_path / "two" / LOG_FILENAME))

    def test_no_duplicate_handlers_via_symlink(self, tmp_path: Path) -> None:
        real_dir = tmp_path / "real"
        real_dir.mkdir()
        link_dir = tmp_path / "link"
        os.symlink(str(real_dir), str(link_dir))
        setup_logging(link_dir)
        setup_logging(link_dir)
        assert len(_file_handlers()) == 1

    def test_no_duplicate_handlers_under_concurrency(self, tmp_path: Path) -> None:
        results: list[logging.Logger] = []
        barrier = threading.Barrier(4)

        def call_setup() -> None:
            barrier.wait()
            results.append(setup_logging(tmp_path))

        threads = [threading.Thread(target=call_setup) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 4
        assert all(r is results[0] for r in results)
        assert len(_file_handlers()) == 1

    def test_shutdown_detaches_handler(self, tmp_path: Path) -> None:
        setup_logging(tmp_path)
        shutdown_logging()
        assert _file_handlers() == []


class TestLogLevel:
    def test_default_info(self) -> None:
        assert log_level() == logging.INFO

    def test_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(LOG_LEVEL_ENV_VAR, "debug")
        logger = setup_logging(tmp_path)
        logger.debug("detail")
        assert [r["msg"] for r in _records(tmp_path)] == ["detail"]

    def test_unknown_name_falls_back_to_info(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(LOG_LEVEL_ENV_VAR, "chatty")
        assert log_level() == logging.INFO

    def teardown_method(self) -> None:
        logging.getLogger(LOGGER_NAME).setLevel(logging.NOTSET)
