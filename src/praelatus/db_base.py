"""Shared utilities and Protocol for the store mixins."""

from __future__ import annotations

import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class DBMixinProtocol(Protocol):
    """Shared attributes and methods that store mixins access via self.

    Mixins inherit this Protocol so mypy can type-check ``self.conn``,
    ``self.worker_conn()``, etc. Actual implementations are provided by
    ``TicketStore`` at composition time.
    """

    db_path: Path
    _conn: sqlite3.Connection | None

    @property
    def conn(self) -> sqlite3.Connection: ...

    @property
    def executor(self) -> ThreadPoolExecutor: ...

    def worker_conn(self) -> sqlite3.Connection: ...
