"""CommentsMixin: comment threads, loaded separately from the ticket aggregate."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from praelatus.db_base import DBMixinProtocol, _now_iso
from praelatus.db_tickets import TicketRef, ticket_params
from praelatus.errors import NotFoundError, ValidationError, translate_errors
from praelatus.models import Comment, Ticket, User


class CommentsMixin(DBMixinProtocol):
    """Comment read and write methods.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    """

    if TYPE_CHECKING:

        def _resolve_ticket_id(self, ticket: TicketRef) -> int: ...

    def get_comments(self, ticket: TicketRef) -> list[Comment]:
        ticket_id, key = ticket_params(ticket)
        with translate_errors():
            rows = self.conn.execute(
                "SELECT c.id, c.created_at, c.updated_at, c.body, "
                "json_object('id', u.id, 'username', u.username, 'email', u.email, "
                "'full_name', u.full_name, 'profile_pic', u.profile_pic, 'is_admin', u.is_admin) AS author "
                "FROM comments AS c "
                "JOIN tickets AS t ON t.id = c.ticket_id "
                "JOIN users AS u ON u.id = c.author_id "
                "WHERE t.id = ? OR t.key = ? "
                "ORDER BY c.created_at, c.id",
                (ticket_id, key),
            ).fetchall()
            return [
                Comment(
                    id=r["id"],
                    created_at=r["created_at"],
                    updated_at=r["updated_at"],
                    body=r["body"],
                    author=User.from_dict(json.loads(r["author"])),
                )
                for r in rows
            ]

    def add_comment(self, ticket: TicketRef, comment: Comment) -> Comment:
        """Insert *comment* on *ticket* and touch the ticket's updated_at."""
        if not comment.body or not comment.body.strip():
            msg = "Comment body cannot be empty"
            raise ValidationError(msg)
        ticket_id = self._resolve_ticket_id(ticket)
        now = _now_iso()
        with translate_errors():
            try:
                touched = self.conn.execute("UPDATE tickets SET updated_at = ? WHERE id = ?", (now, ticket_id))
                if touched.rowcount == 0:
                    msg = f"Ticket not found: {ticket_id}"
                    raise NotFoundError(msg)
                cursor = self.conn.execute(
                    "INSERT INTO comments (ticket_id, author_id, body, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                    (ticket_id, comment.author.id, comment.body, now, now),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        comment.id = cursor.lastrowid
        comment.created_at = now
        comment.updated_at = now
        if isinstance(ticket, Ticket):
            ticket.updated_at = now
        return comment

    def update_comment(self, comment: Comment) -> Comment:
        if comment.id is None:
            msg = "Comment has no id; add it first"
            raise ValidationError(msg)
        if not comment.body or not comment.body.strip():
            msg = "Comment body cannot be empty"
            raise ValidationError(msg)
        now = _now_iso()
        with translate_errors():
            try:
                cursor = self.conn.execute(
                    "UPDATE comments SET body = ?, updated_at = ?, author_id = ? WHERE id = ?",
                    (comment.body, now, comment.author.id, comment.id),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        if cursor.rowcount == 0:
            msg = f"Comment not found: {comment.id}"
            raise NotFoundError(msg)
        comment.updated_at = now
        return comment

    def remove_comment(self, comment: Comment | int) -> None:
        comment_id = comment.id if isinstance(comment, Comment) else comment
        with translate_errors():
            try:
                cursor = self.conn.execute("DELETE FROM comments WHERE id = ?", (comment_id,))
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        if cursor.rowcount == 0:
            msg = f"Comment not found: {comment_id}"
            raise NotFoundError(msg)
