"""ReferenceMixin: the lookup rows a ticket points at.

Users, statuses, ticket types, projects, and labels are owned by other
services; the store only needs to create and resolve them so that tickets
have something to reference.
"""

from __future__ import annotations

from praelatus.db_base import DBMixinProtocol, _now_iso
from praelatus.errors import NotFoundError, ValidationError, translate_errors
from praelatus.models import Project, Status, TicketType, User
from praelatus.validation import sanitize_label, validate_key

ProjectRef = Project | int | str


def project_params(project: ProjectRef) -> tuple[int | None, str | None]:
    """Split a project reference into ``(id, key)`` for ``id = ? OR key = ?`` matching."""
    if isinstance(project, Project):
        return project.id, project.key
    if isinstance(project, bool):
        msg = "Project reference must be a Project, id, or key"
        raise ValidationError(msg)
    if isinstance(project, int):
        return project, None
    return None, project


class ReferenceMixin(DBMixinProtocol):
    """Create and resolve users, statuses, ticket types, projects, and labels."""

    # -- Users ---------------------------------------------------------------

    def add_user(
        self,
        username: str,
        *,
        email: str = "",
        full_name: str = "",
        profile_pic: str = "",
        is_admin: bool = False,
    ) -> User:
        if not username or not username.strip():
            msg = "Username cannot be empty"
            raise ValidationError(msg)
        with translate_errors():
            try:
                cursor = self.conn.execute(
                    "INSERT INTO users (username, email, full_name, profile_pic, is_admin) VALUES (?, ?, ?, ?, ?)",
                    (username.strip(), email, full_name, profile_pic, is_admin),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        return User(
            id=cursor.lastrowid or 0,
            username=username.strip(),
            email=email,
            full_name=full_name,
            profile_pic=profile_pic,
            is_admin=is_admin,
        )

    def get_user(self, username: str) -> User:
        with translate_errors():
            row = self.conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()
        if row is None:
            msg = f"User not found: {username}"
            raise NotFoundError(msg)
        return User.from_dict(dict(row))

    # -- Statuses / types ----------------------------------------------------

    def add_status(self, name: str) -> Status:
        return Status(id=self._insert_named("statuses", name), name=name.strip())

    def get_status(self, name: str) -> Status:
        row = self._get_named("statuses", name)
        return Status(id=row[0], name=row[1])

    def add_ticket_type(self, name: str) -> TicketType:
        return TicketType(id=self._insert_named("ticket_types", name), name=name.strip())

    def get_ticket_type(self, name: str) -> TicketType:
        row = self._get_named("ticket_types", name)
        return TicketType(id=row[0], name=row[1])

    def _insert_named(self, table: str, name: str) -> int:
        """*table* is always a hardcoded literal at the call site."""
        if not name or not name.strip():
            msg = f"{table} name cannot be empty"
            raise ValidationError(msg)
        with translate_errors():
            try:
                cursor = self.conn.execute(f"INSERT INTO {table} (name) VALUES (?)", (name.strip(),))
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        return cursor.lastrowid or 0

    def _get_named(self, table: str, name: str) -> tuple[int, str]:
        with translate_errors():
            row = self.conn.execute(f"SELECT id, name FROM {table} WHERE name = ?", (name,)).fetchone()
        if row is None:
            msg = f"Not found in {table}: {name}"
            raise NotFoundError(msg)
        return row["id"], row["name"]

    # -- Projects ------------------------------------------------------------

    def add_project(self, key: str, name: str = "", *, lead: User | None = None) -> Project:
        cleaned, err = validate_key(key)
        if err:
            raise ValidationError(err)
        with translate_errors():
            try:
                cursor = self.conn.execute(
                    "INSERT INTO projects (key, name, lead_id, created_at) VALUES (?, ?, ?, ?)",
                    (cleaned, name or cleaned, lead.id if lead else None, _now_iso()),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        return Project(id=cursor.lastrowid, key=cleaned, name=name or cleaned)

    def get_project(self, project: ProjectRef) -> Project:
        project_id, project_key = project_params(project)
        with translate_errors():
            row = self.conn.execute(
                "SELECT id, key, name FROM projects WHERE id = ? OR key = ?",
                (project_id, project_key),
            ).fetchone()
        if row is None:
            msg = f"Project not found: {project_key if project_key is not None else project_id}"
            raise NotFoundError(msg)
        return Project(id=row["id"], key=row["key"], name=row["name"])

    # -- Labels --------------------------------------------------------------

    def add_label(self, ticket_id: int, label: str) -> bool:
        """Attach *label* to a ticket, creating the label row if needed.

        Returns False when the ticket already carries the label.
        """
        cleaned, err = sanitize_label(label)
        if err:
            raise ValidationError(err)
        with translate_errors():
            try:
                self.conn.execute("INSERT OR IGNORE INTO labels (name) VALUES (?)", (cleaned,))
                label_id = self.conn.execute("SELECT id FROM labels WHERE name = ?", (cleaned,)).fetchone()["id"]
                cursor = self.conn.execute(
                    "INSERT OR IGNORE INTO tickets_labels (ticket_id, label_id) VALUES (?, ?)",
                    (ticket_id, label_id),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        return cursor.rowcount > 0

    def get_labels(self, ticket_id: int) -> list[str]:
        with translate_errors():
            rows = self.conn.execute(
                "SELECT l.name FROM tickets_labels AS tl JOIN labels AS l ON l.id = tl.label_id "
                "WHERE tl.ticket_id = ? ORDER BY l.name",
                (ticket_id,),
            ).fetchall()
        return [r["name"] for r in rows]
