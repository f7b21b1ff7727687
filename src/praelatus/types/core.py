"""Foundational TypedDicts for dataclass to_dict() returns."""

from __future__ import annotations

from typing import Any, NewType, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)


class ProjectConfig(TypedDict, total=False):
    """Shape of .praelatus/config.json."""

    project: str
    name: str
    version: int


class UserDict(TypedDict):
    id: int
    username: str
    email: str
    full_name: str
    profile_pic: str
    is_admin: bool


class NamedRefDict(TypedDict):
    """Status and TicketType share this shape."""

    id: int
    name: str


class ProjectDict(TypedDict):
    id: int | None
    key: str
    name: str


class FieldDict(TypedDict):
    id: int | None
    name: str
    data_type: str


class FieldOptionDict(TypedDict):
    selected: str
    options: list[str]


class FieldValueDict(TypedDict):
    id: int | None
    name: str
    data_type: str
    field_id: int | None
    # Scalar, ISO timestamp for DATE, FieldOptionDict for OPT, None when unknown.
    value: Any


class CommentDict(TypedDict):
    id: int | None
    created_at: ISOTimestamp
    updated_at: ISOTimestamp
    body: str
    author: UserDict


class TicketDict(TypedDict):
    id: int | None
    key: str
    created_at: ISOTimestamp
    updated_at: ISOTimestamp
    summary: str
    description: str
    assignee: UserDict
    reporter: UserDict
    status: NamedRefDict
    type: NamedRefDict
    fields: list[FieldValueDict]
