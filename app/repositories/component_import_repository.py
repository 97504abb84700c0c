"""
app/repositories/component_import_repository.py

PostgreSQL persistence for resolved component and field weld batches.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.dml import Insert

from app.domain.import_fields import ImportType, get_import_definition
from app.domain.import_models import ResolvedEntity
from app.services.import_orchestrator import BatchPersistenceError, BatchResult
from db.models.component import Component
from db.models.drawing import Drawing

_DRAWING_CONSTRAINT = "uq_drawings_project_norm"
_IDENTITY_CONSTRAINT = "uq_components_project_type_identity"
_FIELD_WELD_TYPE = "field_weld"
_THREADED_PIPE_TYPE = "threaded_pipe"

# PostgreSQL wire protocol limit on bind parameters per statement.
MAX_BIND_PARAMETERS = 65_535
_SIMILAR_DRAWING_LIMIT = 5


class ComponentImportRepository:
    """
    ``ImportSink`` backed by the ``drawings`` and ``components`` tables.

    Each batch runs in one transaction (a savepoint when the session is
    already in one). Takeoff imports create drawings on first reference;
    field weld imports only attach to existing drawings and report the rest
    as unknown. Components are inserted with ``ON CONFLICT DO NOTHING``, in
    as many statements as the bind parameter limit requires; rows whose
    identity keys were not inserted are reported back as rejected. Threaded
    pipe rows are folded into one aggregate component per pipe, adding to an
    existing aggregate when the project already has one.
    """

    def __init__(
        self,
        session: Session,
        *,
        project_id: uuid.UUID,
        import_type: str,
    ) -> None:
        self._session = session
        self._project_id = project_id
        definition = get_import_definition(import_type)
        self._import_type = definition.import_type
        self._drawing_field = definition.drawing_field
        self._creates_drawings = definition.creates_drawings
        self._rows_per_insert = max(1, MAX_BIND_PARAMETERS // len(Component.__table__.columns))

    def persist_batch(self, entities: Sequence[ResolvedEntity]) -> BatchResult:
        if not entities:
            return BatchResult(inserted=0)

        try:
            with self._transaction_context():
                drawing_ids, unknown_drawings = self._resolve_drawings(entities)
                placed = [entity for entity in entities if entity.row_number not in unknown_drawings]
                payloads, aggregates = self._component_payloads(placed, drawing_ids)
                inserted_tokens = self._insert_components(payloads)
                merged_tokens = self._merge_aggregates(aggregates)
        except SQLAlchemyError as exc:
            raise BatchPersistenceError(
                f"Could not persist rows {entities[0].row_number}-{entities[-1].row_number}: {exc}"
            ) from exc

        stored_tokens = inserted_tokens | merged_tokens
        rejected: dict[int, str] = {}
        for entity in placed:
            conflicts = [
                key.unique_token()
                for key in entity.identity_keys
                if key.unique_token() not in stored_tokens
            ]
            if conflicts:
                rejected[entity.row_number] = (
                    f"Identity already exists in project: {', '.join(conflicts)}."
                )

        return BatchResult(
            inserted=len(inserted_tokens),
            rejected=rejected,
            unknown_drawings=unknown_drawings,
        )

    def build_drawing_insert(self, drawings: Mapping[str, str]) -> Insert:
        """
        INSERT for missing drawings keyed by normalized number -> raw spelling.
        """

        return (
            insert(Drawing)
            .values(
                [
                    {
                        "project_id": self._project_id,
                        "drawing_no_norm": drawing_norm,
                        "drawing_no_raw": drawing_raw,
                    }
                    for drawing_norm, drawing_raw in drawings.items()
                ]
            )
            .on_conflict_do_nothing(constraint=_DRAWING_CONSTRAINT)
        )

    def build_component_insert(self, payloads: Sequence[dict[str, Any]]) -> Insert:
        return (
            insert(Component)
            .values(list(payloads))
            .on_conflict_do_nothing(constraint=_IDENTITY_CONSTRAINT)
            .returning(Component.identity_token)
        )

    # ------------------------------------------------------------------
    # Drawings
    # ------------------------------------------------------------------

    def _resolve_drawings(
        self,
        entities: Sequence[ResolvedEntity],
    ) -> tuple[dict[str, uuid.UUID], dict[int, str]]:
        drawings: dict[str, str] = {}
        for entity in entities:
            drawing_norm = entity.identity_key.drawing_norm
            if drawing_norm not in drawings:
                drawings[drawing_norm] = self._raw_drawing_number(entity)

        if self._creates_drawings:
            self._session.execute(self.build_drawing_insert(drawings))
        stmt = select(Drawing.drawing_no_norm, Drawing.id).where(
            Drawing.project_id == self._project_id,
            Drawing.drawing_no_norm.in_(list(drawings)),
        )
        drawing_ids = {
            drawing_norm: drawing_id for drawing_norm, drawing_id in self._session.execute(stmt).all()
        }

        unknown: dict[int, str] = {}
        messages: dict[str, str] = {}
        for entity in entities:
            drawing_norm = entity.identity_key.drawing_norm
            if drawing_norm in drawing_ids:
                continue
            if drawing_norm not in messages:
                messages[drawing_norm] = self._drawing_not_found_message(
                    drawing_norm, self._raw_drawing_number(entity)
                )
            unknown[entity.row_number] = messages[drawing_norm]
        return drawing_ids, unknown

    def _drawing_not_found_message(self, drawing_norm: str, drawing_raw: str) -> str:
        # Sheet-numbered drawings share the prefix before the first hyphen.
        base = drawing_norm.split("-")[0]
        stmt = (
            select(Drawing.drawing_no_norm)
            .where(
                Drawing.project_id == self._project_id,
                Drawing.drawing_no_norm.startswith(f"{base}-", autoescape=True),
            )
            .order_by(Drawing.drawing_no_norm)
            .limit(_SIMILAR_DRAWING_LIMIT)
        )
        similar = list(self._session.scalars(stmt).all())
        if similar:
            return (
                f"Drawing not found: {drawing_raw} (found similar: {', '.join(similar)} "
                "- did you forget the sheet number?)"
            )
        return f"Drawing not found: {drawing_raw} (normalized: {drawing_norm})"

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def _component_payloads(
        self,
        entities: Sequence[ResolvedEntity],
        drawing_ids: Mapping[str, uuid.UUID],
    ) -> tuple[list[dict[str, Any]], dict[str, dict[str, Any]]]:
        payloads: list[dict[str, Any]] = []
        aggregates: dict[str, dict[str, Any]] = {}
        for entity in entities:
            attributes = entity.row.to_canonical_dict()
            component_type = self._component_type(entity)
            for key in entity.identity_keys:
                token = key.unique_token()
                if key.is_aggregate and token in aggregates:
                    aggregates[token]["attributes"] = merge_pipe_attributes(
                        aggregates[token]["attributes"],
                        _pipe_attributes(attributes, entity),
                    )
                    continue
                payload = {
                    "project_id": self._project_id,
                    "drawing_id": drawing_ids.get(key.drawing_norm),
                    "component_type": component_type,
                    "identity_key": key.as_dict(),
                    "identity_token": token,
                    "attributes": attributes,
                    "source_row": entity.row_number,
                }
                if key.is_aggregate:
                    payload["attributes"] = _pipe_attributes(attributes, entity)
                    aggregates[token] = payload
                else:
                    payloads.append(payload)
        return payloads, aggregates

    def _insert_components(self, payloads: Sequence[dict[str, Any]]) -> set[str]:
        inserted: set[str] = set()
        for start in range(0, len(payloads), self._rows_per_insert):
            chunk = payloads[start : start + self._rows_per_insert]
            inserted.update(self._session.scalars(self.build_component_insert(chunk)).all())
        return inserted

    def _merge_aggregates(self, aggregates: dict[str, dict[str, Any]]) -> set[str]:
        if not aggregates:
            return set()

        pending = dict(aggregates)
        stmt = (
            select(Component)
            .where(
                Component.project_id == self._project_id,
                Component.component_type == _THREADED_PIPE_TYPE,
                Component.identity_token.in_(list(pending)),
            )
            .with_for_update()
        )
        merged: set[str] = set()
        for component in self._session.scalars(stmt).all():
            payload = pending.pop(component.identity_token)
            component.attributes = merge_pipe_attributes(component.attributes or {}, payload["attributes"])
            merged.add(component.identity_token)

        return merged | self._insert_components(list(pending.values()))

    def _component_type(self, entity: ResolvedEntity) -> str:
        if self._import_type == ImportType.FIELD_WELDS:
            return _FIELD_WELD_TYPE
        return str(entity.row.values["TYPE"]).lower()

    def _raw_drawing_number(self, entity: ResolvedEntity) -> str:
        value = entity.row.values.get(self._drawing_field)
        if value is not None:
            return str(value).strip()
        return entity.identity_key.drawing_norm

    def _transaction_context(self) -> Any:
        if self._session.in_transaction():
            return self._session.begin_nested()
        return self._session.begin()


def merge_pipe_attributes(existing: Mapping[str, Any], incoming: Mapping[str, Any]) -> dict[str, Any]:
    """
    Add ``incoming`` linear feet and line numbers onto an aggregate pipe.
    """

    merged = dict(existing)
    merged["total_linear_feet"] = existing.get("total_linear_feet", 0) + incoming.get("total_linear_feet", 0)
    line_numbers = list(existing.get("line_numbers", []))
    for line_number in incoming.get("line_numbers", []):
        if line_number not in line_numbers:
            line_numbers.append(line_number)
    merged["line_numbers"] = line_numbers
    return merged


def _pipe_attributes(attributes: Mapping[str, Any], entity: ResolvedEntity) -> dict[str, Any]:
    pipe = dict(attributes)
    pipe["total_linear_feet"] = int(entity.row.values.get("QTY") or 0)
    pipe["line_numbers"] = [str(entity.row_number)]
    return pipe
