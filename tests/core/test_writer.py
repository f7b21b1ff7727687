"""Tests for create/update/remove and their multi-statement consistency rules."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import patch

import pytest

from praelatus.core import TicketStore
from praelatus.errors import DuplicateEntryError, NotFoundError, StoreError, ValidationError
from praelatus.models import Comment, Field, FieldOption, FieldValue
from tests._db_factory import Seed


def _count(store: TicketStore, table: str, ticket_id: int | None) -> int:
    column = "id" if table == "tickets" else "ticket_id"
    return store.conn.execute(f"SELECT COUNT(*) FROM {table} WHERE {column} = ?", (ticket_id,)).fetchone()[0]


def _fail_on(store: TicketStore, sql: str) -> None:
    """Install a trigger that aborts the given statement kind."""
    store.conn.execute(sql)
    store.conn.commit()


class TestCreate:
    def test_assigns_identity_and_timestamps(self, seed: Seed) -> None:
        with patch("praelatus.db_tickets._now_iso", return_value="2026-10-17T10:00:00+00:00"):
            ticket = seed.store.create_ticket(seed.project, seed.ticket("PROJ1"))
        assert ticket.id is not None
        assert ticket.created_at == ticket.updated_at == "2026-10-17T10:00:00+00:00"

    def test_field_values_get_ids(self, seed: Seed, fields: dict[str, Field]) -> None:
        ticket = seed.store.create_ticket(
            seed.project,
            seed.ticket(
                "PROJ1",
                fields=[FieldValue(field=fields["INT"], value=3), FieldValue(field=fields["STRING"], value="ui")],
            ),
        )
        assert all(fv.id is not None for fv in ticket.fields)
        assert _count(seed.store, "field_values", ticket.id) == 2

    def test_key_is_used_as_given(self, seed: Seed) -> None:
        ticket = seed.store.create_ticket(seed.project, seed.ticket("PROJ-77"))
        assert ticket.key == "PROJ-77"
        assert seed.store.next_key(seed.project) == "PROJ2"

    def test_duplicate_key_in_project(self, seed: Seed) -> None:
        seed.store.create_ticket(seed.project, seed.ticket("PROJ1"))
        with pytest.raises(DuplicateEntryError):
            seed.store.create_ticket(seed.project, seed.ticket("PROJ1"))

    def test_same_key_in_another_project_is_allowed(self, seed: Seed) -> None:
        seed.store.create_ticket(seed.project, seed.ticket("X1"))
        seed.store.create_ticket(seed.other_project, seed.ticket("X1"))
        assert len(seed.store.get_all_tickets()) == 2

    def test_empty_key_rejected(self, seed: Seed) -> None:
        with pytest.raises(ValidationError):
            seed.store.create_ticket(seed.project, seed.ticket(""))

    def test_unknown_project_not_found(self, seed: Seed) -> None:
        with pytest.raises(NotFoundError):
            seed.store.create_ticket("NOPE", seed.ticket("NOPE1"))

    def test_option_outside_catalog_rejected_before_writes(self, seed: Seed, fields: dict[str, Field]) -> None:
        bad = FieldValue(field=fields["OPT"], value=FieldOption("Urgent"))
        with pytest.raises(ValidationError, match="not an option"):
            seed.store.create_ticket(seed.project, seed.ticket("PROJ1", fields=[bad]))
        assert seed.store.get_all_tickets() == []

    def test_undefined_field_rejected(self, seed: Seed) -> None:
        loose = FieldValue(field=Field(id=None, name="Ad hoc", data_type="STRING"), value="x")
        with pytest.raises(ValidationError):
            seed.store.create_ticket(seed.project, seed.ticket("PROJ1", fields=[loose]))

    def test_field_failure_keeps_ticket_row(self, seed: Seed, fields: dict[str, Field]) -> None:
        _fail_on(
            seed.store,
            "CREATE TRIGGER fail_fv BEFORE INSERT ON field_values BEGIN SELECT RAISE(ABORT, 'injected'); END",
        )
        with pytest.raises(StoreError):
            seed.store.create_ticket(seed.project, seed.ticket("PROJ1", fields=[FieldValue(field=fields["INT"], value=1)]))
        survivor = seed.store.get_ticket("PROJ1")
        assert survivor.fields == []

    def test_out_of_range_int_rejected_before_writes(self, seed: Seed, fields: dict[str, Field]) -> None:
        with pytest.raises(ValidationError):
            FieldValue(field=fields["INT"], value=2**63)
        # A value that slipped past construction is still caught before the ticket row is written.
        fv = FieldValue(field=fields["INT"], value=1)
        object.__setattr__(fv, "value", 2**63)
        with pytest.raises(ValidationError, match="64-bit"):
            seed.store.create_ticket(seed.project, seed.ticket("PROJ1", fields=[fv]))
        assert seed.store.get_all_tickets() == []


class TestUpdate:
    def test_updates_scalars_and_fields(self, seed: Seed, fields: dict[str, Field]) -> None:
        values = [FieldValue(field=fields["INT"], value=1), FieldValue(field=fields["OPT"], value=FieldOption("Low"))]
        ticket = seed.store.create_ticket(seed.project, seed.ticket("PROJ1", fields=values))
        ticket.summary = "New summary"
        ticket.description = "New description"
        points, priority = ticket.fields
        ticket.fields = [replace(points, value=2), replace(priority, value=FieldOption("High"))]
        with patch("praelatus.db_tickets._now_iso", return_value="2099-01-01T00:00:00+00:00"):
            seed.store.update_ticket(ticket)

        fresh = seed.store.get_ticket("PROJ1")
        assert fresh.summary == "New summary"
        assert fresh.description == "New description"
        assert fresh.updated_at == "2099-01-01T00:00:00+00:00"
        assert fresh.created_at != fresh.updated_at
        assert [fv.value for fv in fresh.fields] == [2, FieldOption("High", ("Low", "Medium", "High"))]

    def test_is_not_atomic_across_field_values(self, seed: Seed, fields: dict[str, Field]) -> None:
        ticket = seed.store.create_ticket(
            seed.project,
            seed.ticket("PROJ1", fields=[FieldValue(field=fields["INT"], value=1), FieldValue(field=fields["STRING"], value="old")]),
        )
        second_id = ticket.fields[1].id
        _fail_on(
            seed.store,
            f"CREATE TRIGGER fail_second BEFORE UPDATE ON field_values WHEN NEW.id = {second_id} "
            "BEGIN SELECT RAISE(ABORT, 'injected'); END",
        )
        ticket.summary = "Renamed"
        ticket.fields = [
            FieldValue(field=fields["INT"], value=9, id=ticket.fields[0].id),
            FieldValue(field=fields["STRING"], value="new", id=second_id),
        ]
        with pytest.raises(StoreError):
            seed.store.update_ticket(ticket)

        fresh = seed.store.get_ticket("PROJ1")
        assert fresh.summary == "Renamed"
        assert [fv.value for fv in fresh.fields] == [9, "old"]

    def test_missing_ticket_not_found(self, seed: Seed) -> None:
        ghost = seed.ticket("PROJ9")
        ghost.id = 999
        with pytest.raises(NotFoundError):
            seed.store.update_ticket(ghost)

    def test_unsaved_ticket_rejected(self, seed: Seed) -> None:
        with pytest.raises(ValidationError):
            seed.store.update_ticket(seed.ticket("PROJ1"))

    def test_new_field_value_needs_add_field_value(self, seed: Seed, fields: dict[str, Field]) -> None:
        ticket = seed.store.create_ticket(seed.project, seed.ticket("PROJ1"))
        ticket.fields.append(FieldValue(field=fields["INT"], value=4))
        with pytest.raises(ValidationError, match="add_field_value"):
            seed.store.update_ticket(ticket)

    def test_add_field_value(self, seed: Seed, fields: dict[str, Field]) -> None:
        ticket = seed.store.create_ticket(seed.project, seed.ticket("PROJ1"))
        saved = seed.store.add_field_value(ticket, FieldValue(field=fields["STRING"], value="db"))
        assert saved.id is not None
        assert ticket.fields == [saved]
        assert seed.store.get_ticket("PROJ1").fields == [saved]


class TestRemove:
    def _full_ticket(self, seed: Seed, fields: dict[str, Field]) -> int:
        ticket = seed.store.create_ticket(seed.project, seed.ticket("PROJ1", fields=[FieldValue(field=fields["INT"], value=1)]))
        assert ticket.id is not None
        seed.store.add_label(ticket.id, "backend")
        seed.store.add_label(ticket.id, "urgent")
        return ticket.id

    def test_removes_ticket_fields_and_labels(self, seed: Seed, fields: dict[str, Field]) -> None:
        ticket_id = self._full_ticket(seed, fields)
        seed.store.remove_ticket(ticket_id)
        for table in ("tickets", "field_values", "tickets_labels"):
            assert _count(seed.store, table, ticket_id) == 0
        with pytest.raises(NotFoundError):
            seed.store.get_ticket(ticket_id)

    def test_remove_by_key(self, seed: Seed, fields: dict[str, Field]) -> None:
        self._full_ticket(seed, fields)
        seed.store.remove_ticket("PROJ1")
        assert seed.store.get_all_tickets() == []

    def test_failure_on_last_delete_rolls_everything_back(self, seed: Seed, fields: dict[str, Field]) -> None:
        ticket_id = self._full_ticket(seed, fields)
        before = seed.store.get_ticket(ticket_id).to_dict()
        _fail_on(
            seed.store,
            "CREATE TRIGGER fail_ticket_delete BEFORE DELETE ON tickets BEGIN SELECT RAISE(ABORT, 'injected'); END",
        )
        with pytest.raises(StoreError):
            seed.store.remove_ticket(ticket_id)

        assert _count(seed.store, "tickets", ticket_id) == 1
        assert _count(seed.store, "field_values", ticket_id) == 1
        assert _count(seed.store, "tickets_labels", ticket_id) == 2
        assert seed.store.get_ticket(ticket_id).to_dict() == before
        assert seed.store.get_labels(ticket_id) == ["backend", "urgent"]

    def test_comments_are_not_removed(self, seed: Seed, fields: dict[str, Field]) -> None:
        ticket_id = self._full_ticket(seed, fields)
        seed.store.add_comment(ticket_id, Comment(body="first!", author=seed.alice))
        seed.store.remove_ticket(ticket_id)
        assert _count(seed.store, "comments", ticket_id) == 1

    def test_missing_ticket_not_found(self, seed: Seed) -> None:
        with pytest.raises(NotFoundError):
            seed.store.remove_ticket(12345)


class TestOutOfRangeIds:
    def test_update(self, seed: Seed) -> None:
        ghost = seed.ticket("PROJ1")
        ghost.id = 2**63
        with pytest.raises(StoreError):
            seed.store.update_ticket(ghost)
        assert not seed.store.conn.in_transaction

    def test_remove(self, seed: Seed) -> None:
        with pytest.raises(StoreError):
            seed.store.remove_ticket(2**63)
        assert not seed.store.conn.in_transaction

    def test_next_key(self, seed: Seed) -> None:
        with pytest.raises(StoreError):
            seed.store.next_key(2**63)
