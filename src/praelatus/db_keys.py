"""KeysMixin: human-readable, per-project ticket keys."""

from __future__ import annotations

from typing import TYPE_CHECKING

from praelatus.db_base import DBMixinProtocol
from praelatus.db_reference import ProjectRef, project_params
from praelatus.errors import translate_errors

if TYPE_CHECKING:
    from praelatus.models import Project


class KeysMixin(DBMixinProtocol):
    if TYPE_CHECKING:

        def get_project(self, project: ProjectRef) -> Project: ...

    def next_key(self, project: ProjectRef) -> str:
        """Return ``<project key><ticket count + 1>``, e.g. ``PROJ1`` for an empty project.

        Nothing is reserved: two calls without a ``create_ticket()`` in
        between return the same key, and concurrent creators can race. The
        ``UNIQUE (project_id, key)`` constraint turns such a collision into
        DuplicateEntryError at insert time.
        """
        owner = self.get_project(project)
        project_id, project_key = project_params(owner)
        with translate_errors():
            count: int = self.conn.execute(
                "SELECT COUNT(t.id) FROM tickets AS t "
                "JOIN projects AS p ON p.id = t.project_id "
                "WHERE p.id = ? OR p.key = ?",
                (project_id, project_key),
            ).fetchone()[0]
        return f"{owner.key}{count + 1}"
