"""Data classes for the Ticket aggregate and the rows it references.

Custom field values are a tagged union: ``FieldValue.field.data_type`` is
the tag, and ``FieldValue.value`` must be the matching Python type. A
mismatch is rejected when the ``FieldValue`` is built, not when it is
persisted.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from praelatus.errors import ValidationError
from praelatus.types.core import (
    CommentDict,
    FieldDict,
    FieldOptionDict,
    FieldValueDict,
    ISOTimestamp,
    NamedRefDict,
    ProjectDict,
    TicketDict,
    UserDict,
)

# ---------------------------------------------------------------------------
# Field data types
# ---------------------------------------------------------------------------

DataType = Literal["FLOAT", "INT", "STRING", "DATE", "OPT"]

DATA_TYPES: frozenset[str] = frozenset({"FLOAT", "INT", "STRING", "DATE", "OPT"})


@dataclass(frozen=True)
class FieldOption:
    """Realized value of an OPT field: the selection plus the field's catalog."""

    selected: str
    options: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.selected, str):
            msg = f"Option selection must be a string, got {type(self.selected).__name__}"
            raise ValidationError(msg)
        object.__setattr__(self, "options", tuple(self.options))

    def to_dict(self) -> FieldOptionDict:
        return {"selected": self.selected, "options": list(self.options)}


# SQLite INTEGER is a signed 64-bit value.
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1

_VALUE_TYPES: dict[str, type] = {
    "INT": int,
    "FLOAT": float,
    "STRING": str,
    "DATE": datetime,
    "OPT": FieldOption,
}


def check_value(data_type: str, value: Any) -> None:
    """Raise ValidationError if *value* cannot be stored under *data_type*.

    ``None`` (no value set) is legal for every tag. Unknown tags admit only
    ``None``.
    """
    if value is None:
        return
    expected = _VALUE_TYPES.get(data_type)
    if expected is None:
        msg = f"Unknown field data type {data_type!r}; only None can be stored"
        raise ValidationError(msg)
    # bool is an int subclass; it is never a valid INT or FLOAT value.
    if isinstance(value, bool) or not isinstance(value, expected):
        msg = f"{data_type} field requires {expected.__name__}, got {type(value).__name__}"
        raise ValidationError(msg)
    if data_type == "INT" and not _INT_MIN <= value <= _INT_MAX:
        msg = f"INT field value {value} is outside the 64-bit integer range"
        raise ValidationError(msg)


@dataclass(frozen=True)
class Field:
    """Schema-level definition of a custom attribute."""

    id: int | None
    name: str
    data_type: str

    def to_dict(self) -> FieldDict:
        return {"id": self.id, "name": self.name, "data_type": self.data_type}


@dataclass(frozen=True)
class FieldValue:
    field: Field
    value: Any = None
    id: int | None = None

    def __post_init__(self) -> None:
        check_value(self.field.data_type, self.value)

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def data_type(self) -> str:
        return self.field.data_type

    def to_dict(self) -> FieldValueDict:
        value: Any = self.value
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, FieldOption):
            value = value.to_dict()
        return {
            "id": self.id,
            "name": self.field.name,
            "data_type": self.field.data_type,
            "field_id": self.field.id,
            "value": value,
        }


# ---------------------------------------------------------------------------
# Referenced entities (embedded into a Ticket at read time)
# ---------------------------------------------------------------------------


@dataclass
class User:
    id: int
    username: str
    email: str = ""
    full_name: str = ""
    profile_pic: str = ""
    is_admin: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> User:
        return cls(
            id=int(data["id"]),
            username=str(data["username"]),
            email=data.get("email") or "",
            full_name=data.get("full_name") or "",
            profile_pic=data.get("profile_pic") or "",
            is_admin=bool(data.get("is_admin", False)),
        )

    def to_dict(self) -> UserDict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "full_name": self.full_name,
            "profile_pic": self.profile_pic,
            "is_admin": self.is_admin,
        }


@dataclass
class Status:
    id: int
    name: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Status:
        return cls(id=int(data["id"]), name=str(data["name"]))

    def to_dict(self) -> NamedRefDict:
        return {"id": self.id, "name": self.name}


@dataclass
class TicketType:
    id: int
    name: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TicketType:
        return cls(id=int(data["id"]), name=str(data["name"]))

    def to_dict(self) -> NamedRefDict:
        return {"id": self.id, "name": self.name}


@dataclass
class Project:
    id: int | None
    key: str
    name: str = ""

    def to_dict(self) -> ProjectDict:
        return {"id": self.id, "key": self.key, "name": self.name}


# ---------------------------------------------------------------------------
# Aggregate root
# ---------------------------------------------------------------------------


@dataclass
class Comment:
    body: str
    author: User
    id: int | None = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> CommentDict:
        return {
            "id": self.id,
            "created_at": ISOTimestamp(self.created_at),
            "updated_at": ISOTimestamp(self.updated_at),
            "body": self.body,
            "author": self.author.to_dict(),
        }


@dataclass
class Ticket:
    summary: str
    assignee: User
    reporter: User
    status: Status
    type: TicketType
    key: str = ""
    description: str = ""
    id: int | None = None
    created_at: str = ""
    updated_at: str = ""
    fields: list[FieldValue] = field(default_factory=list)
    # Comments are not part of the default fetch; see TicketStore.get_comments().

    def field_value(self, name: str) -> FieldValue | None:
        for fv in self.fields:
            if fv.name == name:
                return fv
        return None

    def to_dict(self) -> TicketDict:
        return {
            "id": self.id,
            "key": self.key,
            "created_at": ISOTimestamp(self.created_at),
            "updated_at": ISOTimestamp(self.updated_at),
            "summary": self.summary,
            "description": self.description,
            "assignee": self.assignee.to_dict(),
            "reporter": self.reporter.to_dict(),
            "status": self.status.to_dict(),
            "type": self.type.to_dict(),
            "fields": [fv.to_dict() for fv in self.fields],
        }


def field_options(values: Iterable[str]) -> tuple[str, ...]:
    """Normalize an option catalog to a de-duplicated, order-preserving tuple."""
    return tuple(dict.fromkeys(values))
