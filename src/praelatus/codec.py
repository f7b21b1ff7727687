"""FieldValue codec: typed in-memory values <-> ``field_values`` rows.

A row carries one storage slot per primitive type. Decoding reads every
slot, then keeps the one named by the field's data type. Encoding writes the
matching slot and leaves the others NULL.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from praelatus.models import Field, FieldOption, FieldValue, check_value

logger = logging.getLogger(__name__)

VALUE_COLUMNS = ("int_value", "flt_value", "str_value", "opt_value", "dte_value")

SLOT_FOR_TYPE: dict[str, str] = {
    "INT": "int_value",
    "FLOAT": "flt_value",
    "STRING": "str_value",
    "OPT": "opt_value",
    "DATE": "dte_value",
}

OptionLoader = Callable[[int], list[str]]


def encode(fv: FieldValue) -> dict[str, Any]:
    """Return the storage slots for *fv* as ``{column: value}``.

    Raises ValidationError if the value does not match the field's type.
    """
    check_value(fv.data_type, fv.value)
    row: dict[str, Any] = dict.fromkeys(VALUE_COLUMNS)
    slot = SLOT_FOR_TYPE.get(fv.data_type)
    if slot is None or fv.value is None:
        return row
    value = fv.value
    if isinstance(value, datetime):
        value = value.isoformat()
    elif isinstance(value, FieldOption):
        value = value.selected
    row[slot] = value
    return row


def decode(row: Mapping[str, Any], load_options: OptionLoader) -> FieldValue:
    """Build a FieldValue from a joined ``field_values``/``fields`` row.

    *row* needs ``id``, ``field_id``, ``name``, ``data_type`` and every
    column in VALUE_COLUMNS. An unrecognised data type yields a None value.
    Malformed slot contents raise ValueError/TypeError; callers classify them.
    """
    int_value = row["int_value"]
    flt_value = row["flt_value"]
    str_value = row["str_value"]
    opt_value = row["opt_value"]
    dte_value = row["dte_value"]

    data_type = row["data_type"]
    fld = Field(id=row["field_id"], name=row["name"], data_type=data_type)

    value: Any
    match data_type:
        case "FLOAT":
            value = None if flt_value is None else float(flt_value)
        case "INT":
            value = None if int_value is None else _as_int(int_value)
        case "STRING":
            value = None if str_value is None else str(str_value)
        case "DATE":
            value = None if dte_value is None else datetime.fromisoformat(dte_value)
        case "OPT":
            value = None if opt_value is None else FieldOption(str(opt_value), tuple(load_options(row["field_id"])))
        case _:
            logger.debug("Unknown data type %r on field %r; value left empty", data_type, fld.name)
            value = None

    return FieldValue(field=fld, value=value, id=row["id"])


def _as_int(raw: Any) -> int:
    if isinstance(raw, float) and not raw.is_integer():
        msg = f"Non-integral value {raw!r} in int_value"
        raise ValueError(msg)
    return int(raw)
