# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, models.py, or any mixin (circular imports).
"""Typed return-value contracts for the store's ``to_dict()`` methods."""

from __future__ import annotations

from praelatus.types.core import (
    CommentDict,
    FieldDict,
    FieldOptionDict,
    FieldValueDict,
    ISOTimestamp,
    NamedRefDict,
    ProjectConfig,
    ProjectDict,
    TicketDict,
    UserDict,
)

__all__ = [
    "CommentDict",
    "FieldDict",
    "FieldOptionDict",
    "FieldValueDict",
    "ISOTimestamp",
    "NamedRefDict",
    "ProjectConfig",
    "ProjectDict",
    "TicketDict",
    "UserDict",
]
