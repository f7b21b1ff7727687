"""Core database operations for the ticket store.

Single source of truth for all SQLite operations on tickets, their custom
field values, and their comments. No daemon and no cache: every read goes to
the database, which runs in WAL mode so the field-population workers can
read while the caller's connection is busy.

Convention-based discovery: each project has a `.praelatus/` directory
containing `praelatus.db` (SQLite) and `config.json` (project key, name).
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from praelatus.db_comments import CommentsMixin
from praelatus.db_fields import FieldsMixin
from praelatus.db_keys import KeysMixin
from praelatus.db_reference import ReferenceMixin
from praelatus.db_schema import CURRENT_SCHEMA_VERSION, SCHEMA_SQL
from praelatus.db_tickets import TicketsMixin
from praelatus.errors import translate_errors
from praelatus.types.core import ProjectConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

PRAELATUS_DIR_NAME = ".praelatus"
DB_FILENAME = "praelatus.db"
CONFIG_FILENAME = "config.json"


def find_praelatus_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for .praelatus/ directory.

    Returns the .praelatus/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / PRAELATUS_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {PRAELATUS_DIR_NAME}/ directory found in {current} or any parent"
    raise FileNotFoundError(msg)


def read_config(praelatus_dir: Path) -> ProjectConfig:
    """Read .praelatus/config.json. Returns defaults if missing or corrupt."""
    defaults = ProjectConfig(project="PROJ", name="", version=1)
    config_path = praelatus_dir / CONFIG_FILENAME
    if not config_path.exists():
        return defaults
    try:
        result: ProjectConfig = json.loads(config_path.read_text())
        return result
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return defaults


def write_config(praelatus_dir: Path, config: dict[str, Any] | ProjectConfig) -> None:
    """Write .praelatus/config.json."""
    config_path = praelatus_dir / CONFIG_FILENAME
    config_path.write_text(json.dumps(config, indent=2) + "\n")


# ---------------------------------------------------------------------------
# TicketStore
# ---------------------------------------------------------------------------


class TicketStore(TicketsMixin, CommentsMixin, FieldsMixin, KeysMixin, ReferenceMixin):
    """Direct SQLite operations for the Ticket aggregate.

    Use one store per thread. Every write runs on the store's single primary
    connection, so threads sharing it would share one transaction, and a
    ``commit()`` from one thread could land between the deletes of another
    thread's ``remove_ticket()``. The default ``check_same_thread=True``
    makes such sharing fail with ``StoreError``; pass ``False`` only when the
    caller serializes all access itself. Separate stores on the same file are
    safe: WAL and ``busy_timeout`` arbitrate between their connections.
    """

    def __init__(
        self,
        db_path: str | Path,
        *,
        max_workers: int = 2,
        check_same_thread: bool = True,
    ) -> None:
        if str(db_path) == ":memory:":
            # Worker threads open their own connections and would each see an empty database.
            msg = "TicketStore needs a file-backed database"
            raise ValueError(msg)
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._check_same_thread = check_same_thread
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._local = threading.local()
        self._worker_conns: list[sqlite3.Connection] = []
        self._worker_lock = threading.Lock()

    @classmethod
    def from_project(cls, project_path: Path | None = None) -> TicketStore:
        """Create a TicketStore by discovering .praelatus/ from project_path (or cwd)."""
        praelatus_dir = find_praelatus_root(project_path)
        store = cls(praelatus_dir / DB_FILENAME)
        store.initialize()
        return store

    def __enter__(self) -> TicketStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _connect(self, *, check_same_thread: bool) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.db_path),
            isolation_level="DEFERRED",
            check_same_thread=check_same_thread,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute("PRAGMA busy_timeout=5000")
        return conn

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = self._connect(check_same_thread=self._check_same_thread)
            self._conn.execute("PRAGMA journal_mode=WAL")
        return self._conn

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="praelatus-fields")
        return self._executor

    def worker_conn(self) -> sqlite3.Connection:
        """Return the calling worker thread's own read connection, opening it on first use."""
        conn: sqlite3.Connection | None = getattr(self._local, "conn", None)
        if conn is None:
            # Closed from the owning store's thread in close(), so not thread-checked.
            conn = self._connect(check_same_thread=False)
            self._local.conn = conn
            with self._worker_lock:
                self._worker_conns.append(conn)
        return conn

    def initialize(self) -> None:
        """Create tables on a fresh database and stamp the schema version."""
        with translate_errors():
            if self.get_schema_version() == 0:
                self.conn.executescript(SCHEMA_SQL)
                self.conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION}")
            self.conn.commit()

    def get_schema_version(self) -> int:
        """Return the current schema version from PRAGMA user_version."""
        result: int = self.conn.execute("PRAGMA user_version").fetchone()[0]
        return result

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
        with self._worker_lock:
            for conn in self._worker_conns:
                conn.close()
            self._worker_conns.clear()
        self._local = threading.local()
        if self._conn is not None:
            self._conn.close()
            self._conn = None
