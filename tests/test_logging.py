# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the loguru setup."""

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from paramex import expand_text
from paramex.logging import PACKAGE, setup_logging

# ###############
# Helpers
# ###############


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logger.remove()
    logger.disable(PACKAGE)


def _expand() -> None:
    expand_text("fn t(a: u32, b: u32)", "a, case(1), case(2)")


# ###############
# Public Interface
# ###############


def test_level_filters_debug_records(capsys: pytest.CaptureFixture) -> None:
    """Below the configured level nothing reaches stderr."""
    setup_logging(level="WARNING")
    _expand()
    assert capsys.readouterr().err == ""


def test_debug_records_as_text(capsys: pytest.CaptureFixture) -> None:
    """At DEBUG the stages of an expansion are logged with their module."""
    setup_logging(level="DEBUG")
    _expand()
    err = capsys.readouterr().err
    assert "DEBUG" in err
    assert "paramex.engine.matcher" in err
    assert "Matched 1 declared and 1 implicit argument(s) of 't'" in err


def test_json_output(capsys: pytest.CaptureFixture) -> None:
    """With json_output every stderr line is one serialized record."""
    setup_logging(level="DEBUG", json_output=True)
    _expand()
    lines = [line for line in capsys.readouterr().err.splitlines() if line]
    records = [json.loads(line)["record"] for line in lines]
    assert records
    assert {r["level"]["name"] for r in records} == {"DEBUG"}
    assert any(r["message"].startswith("Matched") for r in records)


def test_log_file_receives_debug_records(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    """The log file gets debug records even when stderr only shows warnings."""
    log_file = tmp_path / "paramex.log"
    setup_logging(level="WARNING", log_file=log_file)
    _expand()
    logger.remove()

    assert capsys.readouterr().err == ""
    content = log_file.read_text(encoding="utf-8")
    assert "| DEBUG    | paramex.engine.matcher:match:" in content


def test_log_file_as_json(tmp_path: Path) -> None:
    """With json_output the log file holds JSON lines too."""
    log_file = tmp_path / "paramex.jsonl"
    setup_logging(json_output=True, log_file=log_file)
    _expand()
    logger.remove()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert lines
    assert all(json.loads(line)["record"]["name"].startswith(PACKAGE) for line in lines)


def test_setup_replaces_previous_sinks(tmp_path: Path) -> None:
    """A second call drops the sinks of the first."""
    first = tmp_path / "first.log"
    setup_logging(log_file=first)
    setup_logging()
    _expand()
    logger.remove()

    assert first.read_text(encoding="utf-8") == ""
