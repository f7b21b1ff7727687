"""Fixtures for CLI interface tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from praelatus.cli import cli


@pytest.fixture
def cli_in_project(
    tmp_path: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch
) -> Generator[tuple[CliRunner, Path], None, None]:
    """Initialize a praelatus project in tmp_path and return (runner, project_root)."""
    monkeypatch.chdir(tmp_path)
    result = cli_runner.invoke(cli, ["init", "--project", "PROJ"])
    assert result.exit_code == 0, result.output
    yield cli_runner, tmp_path
    logger = logging.getLogger("praelatus")
    for h in logger.handlers[:]:
        logger.removeHandler(h)
        h.close()


@pytest.fixture
def cli_seeded(cli_in_project: tuple[CliRunner, Path]) -> tuple[CliRunner, Path]:
    """Project with two users, a status, a type, and a Priority option field."""
    runner, root = cli_in_project
    for args in (
        ["add-user", "alice", "--email", "alice@example.com"],
        ["add-user", "bob", "--admin"],
        ["add-status", "Open"],
        ["add-type", "Bug"],
        ["add-field", "Priority", "OPT", "-o", "Low", "-o", "High"],
        ["add-field", "Points", "int"],
    ):
        result = runner.invoke(cli, args)
        assert result.exit_code == 0, result.output
    return runner, root


def create_args(summary: str, *extra: str) -> list[str]:
    return [
        "create",
        summary,
        "--assignee",
        "alice",
        "--reporter",
        "bob",
        "--status",
        "Open",
        "--type",
        "Bug",
        *extra,
    ]
