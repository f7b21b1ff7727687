"""Tests for the FieldValue codec and the OPT option catalog."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from praelatus import codec
from praelatus.core import TicketStore
from praelatus.errors import StoreError, ValidationError
from praelatus.models import Field, FieldOption, FieldValue


def _row(fv: FieldValue, slots: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": fv.id,
        "field_id": fv.field.id,
        "name": fv.field.name,
        "data_type": fv.field.data_type,
        **slots,
    }


def _no_options(field_id: int) -> list[str]:
    return []


class TestRoundTrip:
    @pytest.mark.parametrize(
        ("data_type", "value"),
        [
            ("INT", 42),
            ("FLOAT", 2.5),
            ("STRING", "backend"),
            ("DATE", datetime(2026, 3, 14, 9, 30, tzinfo=UTC)),
            ("OPT", FieldOption("Medium", ("Low", "Medium", "High"))),
        ],
    )
    def test_decode_of_encode_is_identity(self, data_type: str, value: Any) -> None:
        fv = FieldValue(field=Field(id=3, name="f", data_type=data_type), value=value, id=11)
        row = _row(fv, codec.encode(fv))
        decoded = codec.decode(row, lambda field_id: ["Low", "Medium", "High"])
        assert decoded == fv

    def test_encode_fills_only_the_matching_slot(self) -> None:
        fv = FieldValue(field=Field(id=1, name="Component", data_type="STRING"), value="api")
        slots = codec.encode(fv)
        assert slots == {"int_value": None, "flt_value": None, "str_value": "api", "opt_value": None, "dte_value": None}

    def test_opt_stores_only_the_selection(self) -> None:
        fv = FieldValue(field=Field(id=1, name="Priority", data_type="OPT"), value=FieldOption("High", ("Low", "High")))
        assert codec.encode(fv)["opt_value"] == "High"

    def test_none_value_encodes_to_all_null(self) -> None:
        fv = FieldValue(field=Field(id=1, name="Points", data_type="INT"))
        assert set(codec.encode(fv).values()) == {None}


class TestDecode:
    def test_unknown_type_tag_yields_none(self) -> None:
        row = {
            "id": 1,
            "field_id": 2,
            "name": "Legacy",
            "data_type": "BLOB",
            "int_value": 7,
            "flt_value": 1.5,
            "str_value": "x",
            "opt_value": "y",
            "dte_value": None,
        }
        fv = codec.decode(row, _no_options)
        assert fv.value is None
        assert fv.data_type == "BLOB"

    def test_ignores_slots_of_other_types(self) -> None:
        row = {
            "id": 1,
            "field_id": 2,
            "name": "Points",
            "data_type": "INT",
            "int_value": 5,
            "flt_value": 9.9,
            "str_value": "noise",
            "opt_value": "noise",
            "dte_value": "2020-01-01T00:00:00",
        }
        assert codec.decode(row, _no_options).value == 5

    def test_opt_loads_catalog_for_its_field(self) -> None:
        seen: list[int] = []

        def loader(field_id: int) -> list[str]:
            seen.append(field_id)
            return ["Low", "Medium", "High"]

        row = {
            "id": 1,
            "field_id": 9,
            "name": "Priority",
            "data_type": "OPT",
            "int_value": None,
            "flt_value": None,
            "str_value": None,
            "opt_value": "Medium",
            "dte_value": None,
        }
        fv = codec.decode(row, loader)
        assert seen == [9]
        assert fv.value.selected == "Medium"
        assert fv.value.options == ("Low", "Medium", "High")

    def test_malformed_date_raises(self) -> None:
        row = {
            "id": 1,
            "field_id": 2,
            "name": "Due",
            "data_type": "DATE",
            "int_value": None,
            "flt_value": None,
            "str_value": None,
            "opt_value": None,
            "dte_value": "next tuesday",
        }
        with pytest.raises(ValueError):
            codec.decode(row, _no_options)

    def test_store_classifies_malformed_row_as_store_error(self, store: TicketStore) -> None:
        row = {
            "id": 1,
            "field_id": 2,
            "name": "Points",
            "data_type": "INT",
            "int_value": "many",
            "flt_value": None,
            "str_value": None,
            "opt_value": None,
            "dte_value": None,
        }
        with pytest.raises(StoreError):
            store.decode_field_value(row)


class TestValueShape:
    @pytest.mark.parametrize(
        ("data_type", "value"),
        [
            ("INT", "5"),
            ("INT", True),
            ("FLOAT", 3),
            ("STRING", 12),
            ("DATE", "2026-01-01"),
            ("OPT", "High"),
            ("MYSTERY", "anything"),
            ("INT", 2**63),
            ("INT", -(2**63) - 1),
        ],
    )
    def test_mismatched_value_rejected_at_construction(self, data_type: str, value: Any) -> None:
        with pytest.raises(ValidationError):
            FieldValue(field=Field(id=1, name="f", data_type=data_type), value=value)

    def test_unknown_type_accepts_none(self) -> None:
        fv = FieldValue(field=Field(id=1, name="f", data_type="MYSTERY"))
        assert fv.value is None

    def test_validation_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            FieldValue(field=Field(id=1, name="f", data_type="INT"), value=1.5)

    def test_int_range_bounds_are_storable(self) -> None:
        for value in (2**63 - 1, -(2**63)):
            fv = FieldValue(field=Field(id=1, name="f", data_type="INT"), value=value)
            assert codec.encode(fv)["int_value"] == value
