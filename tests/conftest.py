"""Shared pytest fixtures for praelatus tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from praelatus.core import TicketStore
from praelatus.models import Field
from tests._db_factory import Seed, make_store, seed_store


@pytest.fixture
def store(tmp_path: Path) -> Generator[TicketStore, None, None]:
    """Fresh TicketStore for each test."""
    s = make_store(tmp_path)
    yield s
    s.close()


@pytest.fixture
def seed(store: TicketStore) -> Seed:
    """Store pre-populated with two projects, two users, a status, and a type."""
    return seed_store(store)


@pytest.fixture
def fields(store: TicketStore) -> dict[str, Field]:
    """One custom field per data type, keyed by data type."""
    return {
        "INT": store.create_field("Story Points", "INT"),
        "FLOAT": store.create_field("Estimate Hours", "FLOAT"),
        "STRING": store.create_field("Component", "STRING"),
        "DATE": store.create_field("Due Date", "DATE"),
        "OPT": store.create_field("Priority", "OPT", options=["Low", "Medium", "High"]),
    }


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()
