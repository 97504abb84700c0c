"""
tests/test_identity_resolver.py

Pytest unit tests for IdentityResolver and the drawing/size normalizers.
"""

from __future__ import annotations

import pytest

from app.domain.import_models import NormalizedRow, ResolvedEntity, RowError, RowErrorCode
from app.resolvers.identity_resolver import (
    NO_SIZE,
    IdentityResolver,
    normalize_drawing_number,
    normalize_size,
)


def _component(row_number: int, *, drawing="P-101", cmdty="VBALL-2", size='2"', type_="Valve", qty=1):
    return NormalizedRow(
        row_number=row_number,
        import_type="components",
        values={"DRAWING": drawing, "TYPE": type_, "QTY": qty, "CMDTY CODE": cmdty, "SIZE": size},
    )


def _weld(row_number: int, weld_id: str, drawing: str = "ISO-1") -> NormalizedRow:
    return NormalizedRow(
        row_number=row_number,
        import_type="field_welds",
        values={
            "Weld ID Number": weld_id,
            "Drawing / Isometric Number": drawing,
            "Weld Type": "BW",
        },
    )


@pytest.fixture()
def resolver() -> IdentityResolver:
    return IdentityResolver()


# ---------------------------------------------------------------------------
# Normalizers
# ---------------------------------------------------------------------------


class TestNormalizers:
    def test_drawing_number_is_trimmed_upper_single_spaced(self) -> None:
        assert normalize_drawing_number("  p-101   sht  2 ") == "P-101 SHT 2"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [('1/2"', "1X2"), (' 2 " ', "2"), ("3/4", "3X4"), ("", NO_SIZE), ("   ", NO_SIZE), (None, NO_SIZE)],
    )
    def test_size(self, raw, expected: str) -> None:
        assert normalize_size(raw) == expected


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


class TestComponentResolution:
    def test_quantity_explodes_into_consecutive_seqs(self, resolver: IdentityResolver) -> None:
        entity = resolver.resolve(_component(1, qty=3))

        assert isinstance(entity, ResolvedEntity)
        assert [key.seq for key in entity.identity_keys] == [1, 2, 3]
        assert entity.identity_key.as_dict() == {
            "drawing_norm": "P-101",
            "commodity_code": "VBALL-2",
            "size": "2",
            "seq": 1,
        }

    def test_scope_counter_continues_across_rows(self, resolver: IdentityResolver) -> None:
        resolver.resolve(_component(1, qty=2))
        entity = resolver.resolve(_component(2, drawing=" p-101 ", qty=1))

        assert entity.identity_key.seq == 3

    def test_different_size_is_a_separate_scope(self, resolver: IdentityResolver) -> None:
        resolver.resolve(_component(1, qty=2))
        entity = resolver.resolve(_component(2, size="3"))

        assert entity.identity_key.seq == 1

    @pytest.mark.parametrize("type_", ["Spool", "Field_Weld", "Instrument", "Threaded_Pipe"])
    def test_single_instance_types_ignore_quantity(self, resolver: IdentityResolver, type_: str) -> None:
        entity = resolver.resolve(_component(1, type_=type_, qty=5))

        assert len(entity.identity_keys) == 1

    @pytest.mark.parametrize(
        ("type_", "identity", "token"),
        [
            ("Spool", {"spool_id": "VBALL-2"}, "spool_id:VBALL-2"),
            ("Field_Weld", {"weld_number": "VBALL-2"}, "weld_number:VBALL-2"),
            (
                "Instrument",
                {"drawing_norm": "P-101", "commodity_code": "VBALL-2", "size": "2", "seq": 1},
                "P-101|VBALL-2|2|1",
            ),
            ("Threaded_Pipe", {"pipe_id": "P-101-2-VBALL-2-AGG"}, "pipe_id:P-101-2-VBALL-2-AGG"),
        ],
    )
    def test_single_instance_identity_shapes(
        self, resolver: IdentityResolver, type_: str, identity: dict, token: str
    ) -> None:
        entity = resolver.resolve(_component(1, type_=type_, qty=3))

        assert entity.identity_key.as_dict() == identity
        assert entity.identity_key.unique_token() == token

    def test_instrument_does_not_advance_scope_counter(self, resolver: IdentityResolver) -> None:
        resolver.resolve(_component(1, type_="Instrument"))
        entity = resolver.resolve(_component(2, qty=2))

        assert [key.seq for key in entity.identity_keys] == [1, 2]

    @pytest.mark.parametrize("type_", ["Spool", "Field_Weld", "Instrument"])
    def test_repeated_single_instance_is_duplicate(self, resolver: IdentityResolver, type_: str) -> None:
        resolver.resolve(_component(1, type_=type_))
        second = resolver.resolve(_component(2, type_=type_))

        assert isinstance(second, RowError)
        assert second.code == RowErrorCode.DUPLICATE_IDENTIFIER
        assert second.column == "CMDTY CODE"

    def test_threaded_pipe_rows_share_one_aggregate_key(self, resolver: IdentityResolver) -> None:
        first = resolver.resolve(_component(1, type_="Threaded_Pipe", qty=20))
        second = resolver.resolve(_component(2, type_="Threaded_Pipe", drawing="p-101", qty=15))
        other_size = resolver.resolve(_component(3, type_="Threaded_Pipe", size="1"))

        assert first.identity_key.is_aggregate
        assert second.identity_key.unique_token() == first.identity_key.unique_token()
        assert other_size.identity_key.unique_token() != first.identity_key.unique_token()

    def test_unique_tokens_differ_per_instance(self, resolver: IdentityResolver) -> None:
        entity = resolver.resolve(_component(1, qty=2))

        tokens = [key.unique_token() for key in entity.identity_keys]
        assert tokens == ["P-101|VBALL-2|2|1", "P-101|VBALL-2|2|2"]


# ---------------------------------------------------------------------------
# Field welds
# ---------------------------------------------------------------------------


class TestFieldWeldResolution:
    def test_seq_counts_per_drawing_with_interleaving(self, resolver: IdentityResolver) -> None:
        seqs = []
        for row_number, (weld_id, drawing) in enumerate(
            [("W1", "A"), ("W1", "B"), ("W2", "A"), ("W2", "B"), ("W3", "A")],
            start=1,
        ):
            entity = resolver.resolve(_weld(row_number, weld_id, drawing))
            seqs.append((drawing, entity.identity_key.seq))

        assert seqs == [("A", 1), ("B", 1), ("A", 2), ("B", 2), ("A", 3)]

    def test_duplicate_weld_id_on_same_drawing(self, resolver: IdentityResolver) -> None:
        first = resolver.resolve(_weld(1, "W-10"))
        second = resolver.resolve(_weld(2, "w-10", drawing=" iso-1 "))

        assert isinstance(first, ResolvedEntity)
        assert isinstance(second, RowError)
        assert second.row == 2
        assert second.code == RowErrorCode.DUPLICATE_IDENTIFIER
        assert "duplicate identifier within import" in second.message

    def test_duplicate_does_not_consume_seq(self, resolver: IdentityResolver) -> None:
        resolver.resolve(_weld(1, "W-10"))
        resolver.resolve(_weld(2, "W-10"))
        third = resolver.resolve(_weld(3, "W-11"))

        assert third.identity_key.seq == 2

    def test_same_weld_id_on_two_drawings(self, resolver: IdentityResolver) -> None:
        first = resolver.resolve(_weld(1, "W-10", "ISO-1"))
        second = resolver.resolve(_weld(2, "W-10", "ISO-2"))

        assert isinstance(first, ResolvedEntity)
        assert isinstance(second, ResolvedEntity)
        assert second.identity_key.as_dict() == {"weld_id": "W-10", "drawing_norm": "ISO-2", "seq": 1}
        assert second.identity_key.unique_token() == "ISO-2|W-10"

    def test_fresh_resolver_starts_over(self) -> None:
        IdentityResolver().resolve(_weld(1, "W-10"))
        entity = IdentityResolver().resolve(_weld(1, "W-10"))

        assert isinstance(entity, ResolvedEntity)
        assert entity.identity_key.seq == 1
