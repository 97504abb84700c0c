from __future__ import annotations

import unittest

from app.domain.import_fields import COMPONENT_IMPORT
from app.domain.import_models import ColumnMappingResult
from app.mappers.column_matcher import ColumnMatcher
from app.validators.mapping_validator import (
    MissingRequiredFieldsError,
    ensure_required_fields_mapped,
)


class TestRequiredFieldGate(unittest.TestCase):
    def setUp(self) -> None:
        self.matcher = ColumnMatcher()

    def _mapping(self, headers: list[str]) -> ColumnMappingResult:
        return self.matcher.match(
            headers,
            COMPONENT_IMPORT.field_names,
            COMPONENT_IMPORT.synonyms,
            required_fields=COMPONENT_IMPORT.required_fields,
        )

    def test_complete_mapping_passes(self) -> None:
        ensure_required_fields_mapped(self._mapping(["DRAWING", "TYPE", "QTY", "CMDTY CODE"]))

    def test_synonym_matches_count_as_mapped(self) -> None:
        ensure_required_fields_mapped(self._mapping(["DWG", "type", "Quantity", "Commodity Code"]))

    def test_raises_on_missing_required_fields(self) -> None:
        with self.assertRaises(MissingRequiredFieldsError) as ctx:
            ensure_required_fields_mapped(self._mapping(["DRAWING", "TYPE", "QTY", "Vendor"]))

        self.assertEqual(ctx.exception.missing_fields, ("CMDTY CODE",))
        self.assertEqual(ctx.exception.unmapped_columns, ("Vendor",))
        self.assertIn("CMDTY CODE", ctx.exception.message)

    def test_error_payload_lists_fields_in_declared_order(self) -> None:
        with self.assertRaises(MissingRequiredFieldsError) as ctx:
            ensure_required_fields_mapped(self._mapping(["QTY"]))

        payload = ctx.exception.to_dict()
        self.assertEqual(payload["missing_fields"], ["DRAWING", "TYPE", "CMDTY CODE"])
        self.assertEqual(payload["message"], "Missing required fields: DRAWING, TYPE, CMDTY CODE.")


if __name__ == "__main__":
    unittest.main()
