"""Praelatus: ticket aggregate persistence for an issue tracker."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("praelatus")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from praelatus.core import TicketStore
from praelatus.errors import DuplicateEntryError, NotFoundError, PraelatusError, StoreError, ValidationError
from praelatus.models import Comment, Field, FieldOption, FieldValue, Project, Status, Ticket, TicketType, User

__all__ = [
    "Comment",
    "DuplicateEntryError",
    "Field",
    "FieldOption",
    "FieldValue",
    "NotFoundError",
    "PraelatusError",
    "Project",
    "Status",
    "StoreError",
    "Ticket",
    "TicketStore",
    "TicketType",
    "User",
    "ValidationError",
    "__version__",
]
