"""FieldsMixin: custom field definitions, option catalogs, and value decoding.

All methods access ``self.conn`` etc. via Python's MRO when composed into
``TicketStore``.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Iterable, Mapping
from typing import Any

from praelatus import codec
from praelatus.db_base import DBMixinProtocol
from praelatus.errors import NotFoundError, ValidationError, translate_errors
from praelatus.models import DATA_TYPES, Field, FieldOption, FieldValue, field_options

logger = logging.getLogger(__name__)

FIELD_VALUE_SELECT = (
    "SELECT fv.id, f.id AS field_id, f.name, f.data_type, "
    "fv.int_value, fv.flt_value, fv.str_value, fv.opt_value, fv.dte_value "
    "FROM field_values AS fv "
    "JOIN fields AS f ON f.id = fv.field_id"
)


class FieldsMixin(DBMixinProtocol):
    """Field definitions, the option catalog loader, and the FieldValue codec.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    """

    # -- Definitions ---------------------------------------------------------

    def create_field(self, name: str, data_type: str, *, options: Iterable[str] = ()) -> Field:
        if not name or not name.strip():
            msg = "Field name cannot be empty"
            raise ValidationError(msg)
        if data_type not in DATA_TYPES:
            msg = f"Unknown data type '{data_type}'. Valid types: {', '.join(sorted(DATA_TYPES))}"
            raise ValidationError(msg)
        catalog = field_options(options)
        if catalog and data_type != "OPT":
            msg = f"Only OPT fields carry options, not {data_type}"
            raise ValidationError(msg)

        with translate_errors():
            try:
                cursor = self.conn.execute(
                    "INSERT INTO fields (name, data_type) VALUES (?, ?)",
                    (name.strip(), data_type),
                )
                field_id = cursor.lastrowid
                for position, option in enumerate(catalog):
                    self.conn.execute(
                        "INSERT INTO field_options (field_id, option, position) VALUES (?, ?, ?)",
                        (field_id, option, position),
                    )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise
        return Field(id=field_id, name=name.strip(), data_type=data_type)

    def get_field(self, field_id: int) -> Field:
        with translate_errors():
            row = self.conn.execute("SELECT id, name, data_type FROM fields WHERE id = ?", (field_id,)).fetchone()
        if row is None:
            msg = f"Field not found: {field_id}"
            raise NotFoundError(msg)
        return Field(id=row["id"], name=row["name"], data_type=row["data_type"])

    def get_field_by_name(self, name: str) -> Field:
        with translate_errors():
            row = self.conn.execute("SELECT id, name, data_type FROM fields WHERE name = ?", (name,)).fetchone()
        if row is None:
            msg = f"Field not found: {name}"
            raise NotFoundError(msg)
        return Field(id=row["id"], name=row["name"], data_type=row["data_type"])

    def list_fields(self) -> list[Field]:
        with translate_errors():
            rows = self.conn.execute("SELECT id, name, data_type FROM fields ORDER BY id").fetchall()
        return [Field(id=r["id"], name=r["name"], data_type=r["data_type"]) for r in rows]

    # -- Option catalog ------------------------------------------------------

    def load_options(self, field_id: int, *, conn: sqlite3.Connection | None = None) -> list[str]:
        """Return the ordered option catalog for *field_id* (empty when none)."""
        conn = conn or self.conn
        with translate_errors():
            rows = conn.execute(
                "SELECT option FROM field_options WHERE field_id = ? ORDER BY position, id",
                (field_id,),
            ).fetchall()
        return [r["option"] for r in rows]

    # -- Codec ---------------------------------------------------------------

    def encode_field_value(self, fv: FieldValue) -> dict[str, Any]:
        return codec.encode(fv)

    def decode_field_value(self, row: Mapping[str, Any], *, conn: sqlite3.Connection | None = None) -> FieldValue:
        """Decode one joined field-value row, loading the catalog for OPT fields."""
        conn = conn or self.conn
        with translate_errors():
            return codec.decode(row, lambda fid: self.load_options(fid, conn=conn))

    def _check_option_selection(self, fv: FieldValue) -> None:
        """Reject an OPT selection that is not in the field's stored catalog."""
        if not isinstance(fv.value, FieldOption) or fv.field.id is None:
            return
        catalog = self.load_options(fv.field.id)
        if catalog and fv.value.selected not in catalog:
            msg = f"'{fv.value.selected}' is not an option of field '{fv.name}' ({', '.join(catalog)})"
            raise ValidationError(msg)

    def _fetch_field_values(
        self,
        ticket_id: int,
        *,
        conn: sqlite3.Connection | None = None,
        cancelled: threading.Event | None = None,
    ) -> list[FieldValue]:
        """Load and decode every field value of one ticket, in insertion order.

        Stops early (returning what it has) once *cancelled* is set; the
        caller discards that result.
        """
        conn = conn or self.conn
        values: list[FieldValue] = []
        with translate_errors():
            cursor = conn.execute(f"{FIELD_VALUE_SELECT} WHERE fv.ticket_id = ? ORDER BY fv.id", (ticket_id,))
            for row in cursor:
                if cancelled is not None and cancelled.is_set():
                    logger.debug("Field population for ticket %s cancelled", ticket_id)
                    cursor.close()
                    break
                values.append(self.decode_field_value(row, conn=conn))
        return values
