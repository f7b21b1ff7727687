"""Shared CLI helpers used by ``cli.py`` and the ``cli_commands/*`` modules."""

from __future__ import annotations

import json as json_mod
import sys
from datetime import datetime
from typing import Any, NoReturn

import click

from praelatus.core import PRAELATUS_DIR_NAME, TicketStore, find_praelatus_root, read_config
from praelatus.errors import ValidationError
from praelatus.logging import setup_logging
from praelatus.models import Field, FieldOption, FieldValue


def get_store() -> TicketStore:
    """Discover .praelatus/ and return an initialized TicketStore."""
    try:
        praelatus_dir = find_praelatus_root()
    except FileNotFoundError:
        click.echo(f"No {PRAELATUS_DIR_NAME}/ found. Run 'praelatus init' first.", err=True)
        sys.exit(1)
    setup_logging(praelatus_dir)
    return TicketStore.from_project(praelatus_dir.parent)


def current_project_key() -> str:
    """Project key from .praelatus/config.json."""
    return read_config(find_praelatus_root()).get("project", "PROJ")


def fail(message: str, *, as_json: bool = False) -> NoReturn:
    if as_json:
        click.echo(json_mod.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def parse_field_value(field: Field, raw: str) -> FieldValue:
    """Convert a command-line string into a FieldValue of *field*'s type."""
    value: Any
    try:
        match field.data_type:
            case "INT":
                value = int(raw)
            case "FLOAT":
                value = float(raw)
            case "DATE":
                value = datetime.fromisoformat(raw)
            case "OPT":
                value = FieldOption(raw)
            case _:
                value = raw
    except ValueError as e:
        msg = f"Invalid {field.data_type} value for '{field.name}': {raw!r}"
        raise ValidationError(msg) from e
    return FieldValue(field=field, value=value)
