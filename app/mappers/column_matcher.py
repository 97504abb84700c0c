"""
app/mappers/column_matcher.py

Three-tier column matching engine for takeoff and field weld imports.
"""

from __future__ import annotations

import re
from typing import Mapping, Sequence

from app.domain.import_models import ColumnMapping, ColumnMappingResult, MatchTier

_WHITESPACE_RE = re.compile(r"\s+")
_SLASH_RE = re.compile(r"\s*/\s*")


def normalize_header(header: str) -> str:
    """
    Normalize a column name for synonym matching.

    Trims, collapses whitespace runs, drops spaces around ``/`` and
    case-folds, so ``"Drawing/Isometric  Number"`` and
    ``"drawing / isometric number"`` compare equal.
    """

    collapsed = _WHITESPACE_RE.sub(" ", header.strip())
    return _SLASH_RE.sub("/", collapsed).casefold()


class ColumnMatcher:
    """
    Resolves raw source headers into canonical field mappings.

    Fields are processed in the given order; for each field the tiers are
    tried in order (exact, case-insensitive, synonym) and the first unclaimed
    header in file order that qualifies wins. A claimed header is never
    offered to a later field.
    """

    def match(
        self,
        headers: Sequence[str],
        expected_fields: Sequence[str],
        synonyms: Mapping[str, Sequence[str]] | None = None,
        *,
        required_fields: Sequence[str] = (),
    ) -> ColumnMappingResult:
        candidates: list[str] = [header for header in headers if header and header.strip()]
        synonym_table = synonyms or {}

        mappings: list[ColumnMapping] = []
        claimed: set[int] = set()

        for expected_field in expected_fields:
            hit = self._find_match(
                expected_field=expected_field,
                candidates=candidates,
                claimed=claimed,
                synonyms=synonym_table.get(expected_field, ()),
            )
            if hit is None:
                continue
            index, tier = hit
            claimed.add(index)
            mappings.append(
                ColumnMapping(
                    csv_column=candidates[index],
                    expected_field=expected_field,
                    match_tier=tier,
                )
            )

        mapped_fields = {mapping.expected_field for mapping in mappings}
        unmapped = tuple(
            header for index, header in enumerate(candidates) if index not in claimed
        )
        missing = tuple(field for field in required_fields if field not in mapped_fields)

        return ColumnMappingResult(
            mappings=tuple(mappings),
            unmapped_columns=unmapped,
            missing_required_fields=missing,
        )

    def _find_match(
        self,
        *,
        expected_field: str,
        candidates: Sequence[str],
        claimed: set[int],
        synonyms: Sequence[str],
    ) -> tuple[int, MatchTier] | None:
        open_headers = [
            (index, header) for index, header in enumerate(candidates) if index not in claimed
        ]

        for index, header in open_headers:
            if header == expected_field:
                return index, MatchTier.EXACT

        folded_field = expected_field.casefold()
        for index, header in open_headers:
            if header.casefold() == folded_field:
                return index, MatchTier.CASE_INSENSITIVE

        normalized_synonyms = {
            normalize_header(value) for value in (expected_field, *synonyms) if value and value.strip()
        }
        for index, header in open_headers:
            if normalize_header(header) in normalized_synonyms:
                return index, MatchTier.SYNONYM

        return None
