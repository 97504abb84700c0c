"""
tests/test_row_normalizer.py

Pytest unit tests for RowNormalizer.

Coverage
--------
- Required cells, reported against the source column
- Enum validation (case-insensitive component TYPE, case-sensitive weld enums)
- Quantity parsing: negative, fractional, zero, above the configured ceiling
- X-RAY % parsing: suffix, fractions, range
- Metadata carried separately; unmapped optional fields absent
- Canonical re-serialization
"""

from __future__ import annotations

import pytest

from app.domain.import_fields import COMPONENT_IMPORT, FIELD_WELD_IMPORT
from app.domain.import_models import NormalizedRow, RowError, RowErrorCode
from app.mappers.column_matcher import ColumnMatcher
from app.validators.row_normalizer import RowNormalizer


def _mapping(definition, headers):
    return ColumnMatcher().match(
        headers,
        definition.field_names,
        definition.synonyms,
        required_fields=definition.required_fields,
    )


COMPONENT_HEADERS = ["DWG", "Type", "Quantity", "CMDTY CODE", "SIZE", "Area", "Notes"]
WELD_HEADERS = ["Weld #", "ISO", "Weld Type", "X-RAY %", "NDE", "NDE Result"]


@pytest.fixture()
def components() -> tuple[RowNormalizer, object]:
    return RowNormalizer(COMPONENT_IMPORT), _mapping(COMPONENT_IMPORT, COMPONENT_HEADERS)


@pytest.fixture()
def welds() -> tuple[RowNormalizer, object]:
    return RowNormalizer(FIELD_WELD_IMPORT), _mapping(FIELD_WELD_IMPORT, WELD_HEADERS)


def _component_row(**overrides: str) -> dict[str, str]:
    row = {
        "DWG": "P-101",
        "Type": "Valve",
        "Quantity": "2",
        "CMDTY CODE": "VBALL-2",
        "SIZE": '2"',
        "Area": "North",
        "Notes": "",
    }
    row.update(overrides)
    return row


def _weld_row(**overrides: str) -> dict[str, str]:
    row = {
        "Weld #": "W-1",
        "ISO": "ISO-7",
        "Weld Type": "BW",
        "X-RAY %": "10%",
        "NDE": "RT",
        "NDE Result": "PASS",
    }
    row.update(overrides)
    return row


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


class TestComponentRows:
    def test_valid_row_is_typed(self, components) -> None:
        normalizer, mapping = components

        result = normalizer.normalize(_component_row(), mapping, 1)

        assert isinstance(result, NormalizedRow)
        assert result.row_number == 1
        assert result.import_type == "components"
        assert result.values["DRAWING"] == "P-101"
        assert result.values["QTY"] == 2
        assert result.values["SIZE"] == '2"'
        assert result.values["COMMENTS"] is None
        assert result.metadata == {"AREA": "North"}

    def test_unmapped_optional_fields_are_absent(self, components) -> None:
        normalizer, mapping = components

        result = normalizer.normalize(_component_row(), mapping, 1)

        assert "SPEC" not in result.values
        assert "DESCRIPTION" not in result.values
        assert result.get("SPEC") is None

    def test_blank_required_cell_names_source_column(self, components) -> None:
        normalizer, mapping = components

        result = normalizer.normalize(_component_row(Quantity="   "), mapping, 3)

        assert isinstance(result, RowError)
        assert result.row == 3
        assert result.column == "Quantity"
        assert result.code == RowErrorCode.MISSING_REQUIRED_FIELD
        assert "required" in result.message

    def test_required_check_runs_before_enum_check(self, components) -> None:
        normalizer, mapping = components

        result = normalizer.normalize(_component_row(Type="Gizmo", DWG=""), mapping, 1)

        assert result.code == RowErrorCode.MISSING_REQUIRED_FIELD
        assert result.column == "DWG"

    def test_component_type_is_case_insensitive_and_canonicalized(self, components) -> None:
        normalizer, mapping = components

        result = normalizer.normalize(_component_row(Type="threaded_pipe"), mapping, 1)

        assert result.values["TYPE"] == "Threaded_Pipe"

    def test_unknown_component_type_is_rejected(self, components) -> None:
        normalizer, mapping = components

        result = normalizer.normalize(_component_row(Type="Gizmo"), mapping, 1)

        assert result.code == RowErrorCode.INVALID_ENUM_VALUE
        assert result.column == "Type"
        assert "Gizmo" in result.message

    def test_enum_check_runs_before_numeric_check(self, components) -> None:
        normalizer, mapping = components

        result = normalizer.normalize(_component_row(Type="Gizmo", Quantity="abc"), mapping, 1)

        assert result.code == RowErrorCode.INVALID_ENUM_VALUE

    @pytest.mark.parametrize(
        ("raw", "code"),
        [
            ("abc", RowErrorCode.INVALID_NUMBER),
            ("-1", RowErrorCode.INVALID_QUANTITY),
            ("1.5", RowErrorCode.INVALID_QUANTITY),
            ("0", RowErrorCode.ZERO_QUANTITY),
        ],
    )
    def test_bad_quantities(self, components, raw: str, code: str) -> None:
        normalizer, mapping = components

        result = normalizer.normalize(_component_row(Quantity=raw), mapping, 1)

        assert isinstance(result, RowError)
        assert result.code == code
        assert result.column == "Quantity"

    def test_quantity_accepts_integral_decimal_and_thousands(self, components) -> None:
        normalizer, mapping = components

        assert normalizer.normalize(_component_row(Quantity="4.0"), mapping, 1).values["QTY"] == 4
        assert normalizer.normalize(_component_row(Quantity="1,200"), mapping, 1).values["QTY"] == 1200

    @pytest.mark.parametrize("raw", ["1E+12", "10001", "1,000,000"])
    def test_quantity_above_ceiling_is_rejected(self, components, raw: str) -> None:
        normalizer, mapping = components

        result = normalizer.normalize(_component_row(Quantity=raw), mapping, 1)

        assert isinstance(result, RowError)
        assert result.code == RowErrorCode.INVALID_QUANTITY
        assert "10000" in result.message

    def test_quantity_ceiling_is_configurable(self) -> None:
        normalizer = RowNormalizer(COMPONENT_IMPORT, max_quantity=5)
        mapping = _mapping(COMPONENT_IMPORT, COMPONENT_HEADERS)

        assert normalizer.normalize(_component_row(Quantity="5"), mapping, 1).values["QTY"] == 5
        assert normalizer.normalize(_component_row(Quantity="6"), mapping, 1).code == RowErrorCode.INVALID_QUANTITY

    def test_canonical_dict_matches_direct_construction(self, components) -> None:
        normalizer, mapping = components

        result = normalizer.normalize(_component_row(), mapping, 1)

        assert result.to_canonical_dict() == {
            "DRAWING": "P-101",
            "TYPE": "Valve",
            "QTY": 2,
            "CMDTY CODE": "VBALL-2",
            "SIZE": '2"',
            "COMMENTS": None,
            "AREA": "North",
        }


# ---------------------------------------------------------------------------
# Field welds
# ---------------------------------------------------------------------------


class TestFieldWeldRows:
    def test_valid_row(self, welds) -> None:
        normalizer, mapping = welds

        result = normalizer.normalize(_weld_row(), mapping, 1)

        assert isinstance(result, NormalizedRow)
        assert result.values["Weld ID Number"] == "W-1"
        assert result.values["X-RAY %"] == 10.0
        assert result.values["Type of NDE Performed"] == "RT"

    def test_weld_enums_are_case_sensitive(self, welds) -> None:
        normalizer, mapping = welds

        result = normalizer.normalize(_weld_row(**{"Weld Type": "bw"}), mapping, 1)

        assert result.code == RowErrorCode.INVALID_ENUM_VALUE
        assert result.column == "Weld Type"

    def test_blank_optional_enum_is_none(self, welds) -> None:
        normalizer, mapping = welds

        result = normalizer.normalize(_weld_row(**{"NDE Result": ""}), mapping, 1)

        assert result.values["NDE Result"] is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("5", 5.0), ("5%", 5.0), ("0.05", 5.0), ("1", 100.0), ("0", 0.0), ("100 %", 100.0)],
    )
    def test_xray_percentages(self, welds, raw: str, expected: float) -> None:
        normalizer, mapping = welds

        result = normalizer.normalize(_weld_row(**{"X-RAY %": raw}), mapping, 1)

        assert result.values["X-RAY %"] == pytest.approx(expected)

    @pytest.mark.parametrize("raw", ["150", "-5", "lots"])
    def test_bad_xray_percentages(self, welds, raw: str) -> None:
        normalizer, mapping = welds

        result = normalizer.normalize(_weld_row(**{"X-RAY %": raw}), mapping, 1)

        assert isinstance(result, RowError)
        assert result.code == RowErrorCode.INVALID_NUMBER
        assert result.column == "X-RAY %"
