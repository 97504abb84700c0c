"""
app/resolvers/identity_resolver.py

Identity key assignment with per-scope sequence numbers.
"""

from __future__ import annotations

import re
from collections import defaultdict

from app.domain.import_fields import (
    WELD_DRAWING_FIELD,
    WELD_ID_FIELD,
    ImportType,
)
from app.domain.import_models import (
    IdentityKey,
    IdentityKind,
    NormalizedRow,
    ResolvedEntity,
    RowError,
    RowErrorCode,
)

_WHITESPACE_RE = re.compile(r"\s+")
_SIZE_STRIP_RE = re.compile(r"[\"'\s]")

NO_SIZE = "NOSIZE"

_SINGLE_INSTANCE_KINDS: dict[str, str] = {
    "Spool": IdentityKind.SPOOL,
    "Field_Weld": IdentityKind.TAKEOFF_WELD,
    "Instrument": IdentityKind.COMPONENT,
    "Threaded_Pipe": IdentityKind.THREADED_PIPE,
}


def normalize_drawing_number(raw: str) -> str:
    """
    Normalize a drawing number for exact matching (trim, upper, single spaces).
    """

    return _WHITESPACE_RE.sub(" ", raw.strip()).upper()


def normalize_size(raw: str | None) -> str:
    """
    Normalize a nominal size for identity keys: ``1/2"`` -> ``1X2``.
    """

    if raw is None or not raw.strip():
        return NO_SIZE
    return _SIZE_STRIP_RE.sub("", raw).replace("/", "X").upper()


class IdentityResolver:
    """
    Assigns identity keys to normalized rows in file order.

    Owns the per-scope counter table and the identifiers seen in this run;
    build one instance per import run.
    """

    def __init__(self) -> None:
        self._counters: defaultdict[tuple[str, ...], int] = defaultdict(int)
        self._seen_weld_ids: set[tuple[str, str]] = set()
        self._seen_single_instances: set[tuple[str, str]] = set()

    def resolve(self, row: NormalizedRow) -> ResolvedEntity | RowError:
        if row.import_type == ImportType.FIELD_WELDS:
            return self._resolve_weld(row)
        return self._resolve_component(row)

    def _resolve_component(self, row: NormalizedRow) -> ResolvedEntity | RowError:
        drawing_norm = normalize_drawing_number(str(row.values["DRAWING"]))
        commodity_code = str(row.values["CMDTY CODE"])
        size = normalize_size(_as_text(row.values.get("SIZE")))
        component_type = str(row.values["TYPE"])

        kind = _SINGLE_INSTANCE_KINDS.get(component_type)
        if kind is None:
            quantity = int(row.values["QTY"] or 0)
            scope = (drawing_norm, commodity_code, size)
            keys = tuple(
                IdentityKey(
                    kind=IdentityKind.COMPONENT,
                    drawing_norm=drawing_norm,
                    commodity_code=commodity_code,
                    size=size,
                    seq=self._next_seq(scope),
                )
                for _ in range(max(1, quantity))
            )
            return ResolvedEntity(row=row, identity_keys=keys)

        # Single-instance types never draw from the scope counter.
        key = IdentityKey(
            kind=kind,
            drawing_norm=drawing_norm,
            commodity_code=commodity_code,
            size=size,
            seq=1,
        )
        if not key.is_aggregate:
            seen_key = (component_type, key.unique_token())
            if seen_key in self._seen_single_instances:
                return RowError(
                    row=row.row_number,
                    column="CMDTY CODE",
                    message=(
                        f"{component_type} {commodity_code!r} on drawing {drawing_norm!r}: "
                        "duplicate identifier within import."
                    ),
                    code=RowErrorCode.DUPLICATE_IDENTIFIER,
                )
            self._seen_single_instances.add(seen_key)
        return ResolvedEntity(row=row, identity_keys=(key,))

    def _resolve_weld(self, row: NormalizedRow) -> ResolvedEntity | RowError:
        drawing_norm = normalize_drawing_number(str(row.values[WELD_DRAWING_FIELD]))
        weld_id = str(row.values[WELD_ID_FIELD])

        seen_key = (drawing_norm, weld_id.upper())
        if seen_key in self._seen_weld_ids:
            return RowError(
                row=row.row_number,
                column=WELD_ID_FIELD,
                message=(
                    f"Weld {weld_id!r} on drawing {drawing_norm!r}: "
                    "duplicate identifier within import."
                ),
                code=RowErrorCode.DUPLICATE_IDENTIFIER,
            )
        self._seen_weld_ids.add(seen_key)

        key = IdentityKey(
            kind=IdentityKind.FIELD_WELD,
            drawing_norm=drawing_norm,
            weld_id=weld_id,
            seq=self._next_seq((drawing_norm,)),
        )
        return ResolvedEntity(row=row, identity_keys=(key,))

    def _next_seq(self, scope: tuple[str, ...]) -> int:
        self._counters[scope] += 1
        return self._counters[scope]


def _as_text(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
