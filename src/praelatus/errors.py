"""Error taxonomy for the ticket store.

Every failure leaving ``TicketStore`` is one of the classes below. Raw
``sqlite3`` errors are classified by ``translate_errors()`` at the
boundary and chained as ``__cause__``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger(__name__)


class PraelatusError(Exception):
    """Base class for all store errors.

    ``partial`` holds rows a listing had already built when it failed; it is
    diagnostic only and never a valid result.
    """

    partial: tuple[Any, ...] = ()


class NotFoundError(PraelatusError, KeyError):
    """An identity or key matched no row."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class DuplicateEntryError(PraelatusError):
    """A unique constraint was violated (e.g. a project-scoped key collision)."""


class StoreError(PraelatusError):
    """Generic I/O, driver, or decode failure."""


class ValidationError(PraelatusError, ValueError):
    """A value's shape does not match its declared field type."""


def classify(exc: BaseException) -> PraelatusError:
    """Map a lower-level exception onto the store taxonomy."""
    if isinstance(exc, PraelatusError):
        return exc
    if isinstance(exc, sqlite3.IntegrityError) and "UNIQUE constraint failed" in str(exc):
        return DuplicateEntryError(str(exc))
    if isinstance(exc, (sqlite3.Error, json.JSONDecodeError)):
        return StoreError(str(exc))
    return StoreError(f"{type(exc).__name__}: {exc}")


@contextmanager
def translate_errors() -> Iterator[None]:
    """Re-raise anything that is not already a ``PraelatusError`` as one.

    ``ValidationError`` and ``NotFoundError`` pass through untouched.
    """
    try:
        yield
    except PraelatusError:
        raise
    except (sqlite3.Error, json.JSONDecodeError, OverflowError, TypeError, ValueError, KeyError) as exc:
        classified = classify(exc)
        logger.debug("Classified %s as %s", type(exc).__name__, type(classified).__name__)
        raise classified from exc
