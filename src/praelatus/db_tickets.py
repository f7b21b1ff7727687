"""TicketsMixin: reading and writing Ticket aggregates.

A ticket read is two phases: the joined ticket row (with assignee, reporter,
status, and type embedded as JSON objects) and the ticket's field values.
The field values are loaded on the store's worker pool while the embedded
references are decoded on the calling thread; the aggregate is returned only
once both have finished.

All methods access ``self.conn``, ``self.executor``, etc. via Python's MRO
when composed into ``TicketStore``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from praelatus import codec
from praelatus.db_base import DBMixinProtocol, _now_iso
from praelatus.db_reference import ProjectRef, project_params
from praelatus.errors import NotFoundError, PraelatusError, ValidationError, translate_errors
from praelatus.models import FieldValue, Status, Ticket, TicketType, User
from praelatus.validation import validate_ticket_key

if TYPE_CHECKING:
    from praelatus.models import Project

logger = logging.getLogger(__name__)

TicketRef = Ticket | int | str


def _user_json(alias: str) -> str:
    return (
        f"json_object('id', {alias}.id, 'username', {alias}.username, 'email', {alias}.email, "
        f"'full_name', {alias}.full_name, 'profile_pic', {alias}.profile_pic, 'is_admin', {alias}.is_admin)"
    )


TICKET_SELECT = (
    "SELECT t.id, t.key, t.created_at, t.updated_at, t.summary, t.description, "
    f"{_user_json('a')} AS assignee, "
    f"{_user_json('r')} AS reporter, "
    "json_object('id', s.id, 'name', s.name) AS status, "
    "json_object('id', tt.id, 'name', tt.name) AS ticket_type "
    "FROM tickets AS t "
    "JOIN users AS a ON a.id = t.assignee_id "
    "JOIN users AS r ON r.id = t.reporter_id "
    "JOIN statuses AS s ON s.id = t.status_id "
    "JOIN ticket_types AS tt ON tt.id = t.ticket_type_id"
)


def ticket_params(ticket: TicketRef) -> tuple[int | None, str | None]:
    """Split a ticket reference into ``(id, key)`` for ``id = ? OR key = ?`` matching."""
    if isinstance(ticket, Ticket):
        return ticket.id, ticket.key or None
    if isinstance(ticket, bool):
        msg = "Ticket reference must be a Ticket, id, or key"
        raise ValidationError(msg)
    if isinstance(ticket, int):
        return ticket, None
    return None, ticket


class TicketsMixin(DBMixinProtocol):
    """Ticket Reader and Ticket Writer.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    """

    if TYPE_CHECKING:
        # From FieldsMixin
        def _fetch_field_values(
            self,
            ticket_id: int,
            *,
            conn: sqlite3.Connection | None = None,
            cancelled: threading.Event | None = None,
        ) -> list[FieldValue]: ...

        def _check_option_selection(self, fv: FieldValue) -> None: ...

        # From ReferenceMixin
        def get_project(self, project: ProjectRef) -> Project: ...

    # -- Reader --------------------------------------------------------------

    def get_ticket(self, ticket: TicketRef) -> Ticket:
        """Fetch one ticket by numeric id or project-scoped key."""
        ticket_id, key = ticket_params(ticket)
        with translate_errors():
            row = self.conn.execute(
                f"{TICKET_SELECT} WHERE t.id = ? OR t.key = ? ORDER BY t.id LIMIT 1",
                (ticket_id, key),
            ).fetchone()
        if row is None:
            msg = f"Ticket not found: {key if key is not None else ticket_id}"
            raise NotFoundError(msg)
        return self._build_ticket(row)

    def get_all_tickets(self) -> list[Ticket]:
        return self._build_listing(f"{TICKET_SELECT} ORDER BY t.id", ())

    def get_tickets_by_project(self, project: ProjectRef) -> list[Ticket]:
        project_id, project_key = project_params(project)
        return self._build_listing(
            f"{TICKET_SELECT} JOIN projects AS p ON p.id = t.project_id WHERE p.id = ? OR p.key = ? ORDER BY t.id",
            (project_id, project_key),
        )

    def _build_listing(self, sql: str, params: Sequence[Any]) -> list[Ticket]:
        """Stream *sql* and build each row into a full ticket.

        Any failure aborts the listing. Tickets built so far ride along on
        the raised error's ``partial`` attribute.
        """
        tickets: list[Ticket] = []
        try:
            with translate_errors():
                for row in self.conn.execute(sql, params):
                    tickets.append(self._build_ticket(row))
        except PraelatusError as exc:
            logger.warning("Error getting tickets after %d rows: %s", len(tickets), exc)
            exc.partial = tuple(tickets)
            raise
        return tickets

    def _build_ticket(self, row: sqlite3.Row) -> Ticket:
        ticket_id: int = row["id"]
        cancelled = threading.Event()
        future = self.executor.submit(self._populate_fields, ticket_id, cancelled)

        try:
            with translate_errors():
                assignee = User.from_dict(json.loads(row["assignee"]))
                reporter = User.from_dict(json.loads(row["reporter"]))
                status = Status.from_dict(json.loads(row["status"]))
                ticket_type = TicketType.from_dict(json.loads(row["ticket_type"]))
        except PraelatusError:
            cancelled.set()
            future.cancel()
            logger.warning("Failed to decode references of ticket %s", ticket_id, extra={"ticket": ticket_id})
            raise

        try:
            fields = future.result()
        except PraelatusError:
            logger.warning("Errored while getting fields of ticket %s", ticket_id, extra={"ticket": ticket_id})
            raise

        return Ticket(
            id=ticket_id,
            key=row["key"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            summary=row["summary"],
            description=row["description"],
            assignee=assignee,
            reporter=reporter,
            status=status,
            type=ticket_type,
            fields=fields,
        )

    def _populate_fields(self, ticket_id: int, cancelled: threading.Event) -> list[FieldValue]:
        """Worker-pool task: load field values on this thread's own connection."""
        if cancelled.is_set():
            return []
        with translate_errors():
            conn = self.worker_conn()
        return self._fetch_field_values(ticket_id, conn=conn, cancelled=cancelled)

    def _resolve_ticket_id(self, ticket: TicketRef) -> int:
        if isinstance(ticket, Ticket) and ticket.id is not None:
            return ticket.id
        ticket_id, key = ticket_params(ticket)
        with translate_errors():
            row = self.conn.execute(
                "SELECT id FROM tickets WHERE id = ? OR key = ? ORDER BY id LIMIT 1",
                (ticket_id, key),
            ).fetchone()
        if row is None:
            msg = f"Ticket not found: {key if key is not None else ticket_id}"
            raise NotFoundError(msg)
        return int(row["id"])

    # -- Writer --------------------------------------------------------------

    def _validate_field_values(self, fields: Sequence[FieldValue]) -> None:
        for fv in fields:
            if fv.field.id is None:
                msg = f"Field '{fv.name}' has no id; create the field definition first"
                raise ValidationError(msg)
            codec.encode(fv)
            self._check_option_selection(fv)

    def create_ticket(self, project: ProjectRef, ticket: Ticket) -> Ticket:
        """Persist *ticket* under *project* and return it with ids assigned.

        The key is used as given; call ``next_key()`` first to derive one.
        The ticket row is committed before its field values. If a field value
        then fails, the ticket row stays and the error is raised.
        """
        key, err = validate_ticket_key(ticket.key)
        if err:
            raise ValidationError(err)
        if not ticket.summary or not ticket.summary.strip():
            msg = "Summary cannot be empty"
            raise ValidationError(msg)
        # Validate all inputs BEFORE any writes
        self._validate_field_values(ticket.fields)
        owner = self.get_project(project)

        now = _now_iso()
        with translate_errors():
            try:
                cursor = self.conn.execute(
                    "INSERT INTO tickets (project_id, key, created_at, updated_at, summary, description, "
                    "assignee_id, reporter_id, status_id, ticket_type_id) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        owner.id,
                        key,
                        now,
                        now,
                        ticket.summary,
                        ticket.description,
                        ticket.assignee.id,
                        ticket.reporter.id,
                        ticket.status.id,
                        ticket.type.id,
                    ),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise

        ticket.id = cursor.lastrowid
        ticket.key = key
        ticket.created_at = now
        ticket.updated_at = now
        logger.info(
            "Created ticket %s (id=%s) in project %s",
            key,
            ticket.id,
            owner.key,
            extra={"ticket": key, "project": owner.key},
        )

        saved: list[FieldValue] = []
        for fv in ticket.fields:
            try:
                saved.append(self._insert_field_value(ticket.id, fv))
            except PraelatusError:
                logger.warning(
                    "Ticket %s was created but field '%s' failed to persist",
                    key,
                    fv.name,
                    extra={"ticket": key, "project": owner.key, "field": fv.name},
                )
                ticket.fields = saved + ticket.fields[len(saved) :]
                raise
        ticket.fields = saved
        return ticket

    def add_field_value(self, ticket: TicketRef, fv: FieldValue) -> FieldValue:
        """Attach a new field value to an existing ticket."""
        self._validate_field_values([fv])
        ticket_id = self._resolve_ticket_id(ticket)
        saved = self._insert_field_value(ticket_id, fv)
        if isinstance(ticket, Ticket):
            ticket.fields.append(saved)
        return saved

    def _insert_field_value(self, ticket_id: int, fv: FieldValue) -> FieldValue:
        slots = codec.encode(fv)
        with translate_errors():
            try:
                cursor = self.conn.execute(
                    "INSERT INTO field_values (ticket_id, field_id, int_value, flt_value, str_value, opt_value, dte_value) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (ticket_id, fv.field.id, *(slots[c] for c in codec.VALUE_COLUMNS)),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        return replace(fv, id=cursor.lastrowid)

    def update_ticket(self, ticket: Ticket) -> Ticket:
        """Save summary, description, and every field value of *ticket*.

        Not atomic across field values: each one is its own committed
        statement, and a failure stops the batch with earlier updates kept.
        """
        if ticket.id is None:
            msg = "Ticket has no id; create it first"
            raise ValidationError(msg)
        for fv in ticket.fields:
            if fv.id is None:
                msg = f"Field value '{fv.name}' has no id; use add_field_value()"
                raise ValidationError(msg)
        self._validate_field_values(ticket.fields)

        now = _now_iso()
        with translate_errors():
            try:
                cursor = self.conn.execute(
                    "UPDATE tickets SET summary = ?, description = ?, updated_at = ? WHERE id = ?",
                    (ticket.summary, ticket.description, now, ticket.id),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        if cursor.rowcount == 0:
            msg = f"Ticket not found: {ticket.id}"
            raise NotFoundError(msg)
        ticket.updated_at = now

        for fv in ticket.fields:
            self._update_field_value(ticket.id, fv)
        return ticket

    def _update_field_value(self, ticket_id: int, fv: FieldValue) -> None:
        slots = codec.encode(fv)
        with translate_errors():
            try:
                cursor = self.conn.execute(
                    "UPDATE field_values SET int_value = ?, flt_value = ?, str_value = ?, opt_value = ?, dte_value = ? "
                    "WHERE id = ? AND ticket_id = ?",
                    (*(slots[c] for c in codec.VALUE_COLUMNS), fv.id, ticket_id),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                logger.warning(
                    "Field value %s of ticket %s failed to update",
                    fv.id,
                    ticket_id,
                    extra={"ticket": ticket_id, "field": fv.name},
                )
                raise
        if cursor.rowcount == 0:
            msg = f"Field value {fv.id} not found on ticket {ticket_id}"
            raise NotFoundError(msg)

    def remove_ticket(self, ticket: TicketRef) -> None:
        """Delete a ticket with its field values and label links, all or nothing.

        Comments are left in place.
        """
        ticket_id = self._resolve_ticket_id(ticket)
        with translate_errors():
            try:
                self.conn.execute("DELETE FROM field_values WHERE ticket_id = ?", (ticket_id,))
                self.conn.execute("DELETE FROM tickets_labels WHERE ticket_id = ?", (ticket_id,))
                cursor = self.conn.execute("DELETE FROM tickets WHERE id = ?", (ticket_id,))
                if cursor.rowcount == 0:
                    msg = f"Ticket not found: {ticket_id}"
                    raise NotFoundError(msg)
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                logger.warning("Removing ticket %s failed; rolled back", ticket_id, extra={"ticket": ticket_id})
                raise
        logger.info("Removed ticket %s", ticket_id, extra={"ticket": ticket_id})
