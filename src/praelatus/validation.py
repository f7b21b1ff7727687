"""Shared validation functions for keys and labels.

Pure functions with no Click or sqlite3 dependencies. Each returns
``(cleaned, None)`` on success or ``("", error_message)`` on failure.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

_MAX_KEY_LENGTH = 64
_MAX_LABEL_LENGTH = 64
_PROJECT_KEY_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


def _first_control_char(value: str) -> str | None:
    for ch in value:
        if unicodedata.category(ch).startswith("C"):  # Cc (control) and Cf (format)
            return ch
    return None


def validate_key(value: Any) -> tuple[str, str | None]:
    """Validate a project key: a letter followed by letters, digits, or underscores."""
    if not isinstance(value, str):
        return ("", "key must be a string")
    cleaned = value.strip()
    if not cleaned:
        return ("", "key must not be empty")
    if len(cleaned) > _MAX_KEY_LENGTH:
        return ("", f"key must be at most {_MAX_KEY_LENGTH} characters")
    if not _PROJECT_KEY_RE.match(cleaned):
        return ("", f"key {cleaned!r} must start with a letter and contain only letters, digits, or '_'")
    return (cleaned, None)


def validate_ticket_key(value: Any) -> tuple[str, str | None]:
    """Validate a ticket key such as ``PROJ-3`` or ``PROJ3``."""
    if not isinstance(value, str):
        return ("", "ticket key must be a string")
    ch = _first_control_char(value)
    if ch is not None:
        return ("", f"ticket key must not contain control characters (found U+{ord(ch):04X})")
    cleaned = value.strip()
    if not cleaned:
        return ("", "ticket key must not be empty")
    if any(c.isspace() for c in cleaned):
        return ("", "ticket key must not contain whitespace")
    if len(cleaned) > _MAX_KEY_LENGTH:
        return ("", f"ticket key must be at most {_MAX_KEY_LENGTH} characters")
    return (cleaned, None)


def sanitize_label(value: Any) -> tuple[str, str | None]:
    """Validate and clean a label name (lower-cased)."""
    if not isinstance(value, str):
        return ("", "label must be a string")
    # Check before stripping: reject "\nbad" rather than absorbing the newline.
    ch = _first_control_char(value)
    if ch is not None:
        return ("", f"label must not contain control characters (found U+{ord(ch):04X})")
    cleaned = value.strip().lower()
    if not cleaned:
        return ("", "label must not be empty")
    if len(cleaned) > _MAX_LABEL_LENGTH:
        return ("", f"label must be at most {_MAX_LABEL_LENGTH} characters")
    return (cleaned, None)
