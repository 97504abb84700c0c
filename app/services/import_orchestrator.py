"""
app/services/import_orchestrator.py

Service layer for component and field weld import orchestration.

One run walks the stages

    parsing -> matching -> (required_fields_missing -> aborted)
            | normalizing_row -> resolving -> batching -> persisting -> completed

with ``cancelled`` reachable between rows. File-level failures (unreadable
file, limits exceeded, unmapped required fields) abort the run before any
persistence call. Row-level failures are collected and never stop later rows.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from functools import lru_cache
from itertools import islice
from typing import Any, BinaryIO, Mapping, Protocol, Sequence

from app.config import get_import_settings
from app.domain.import_fields import (
    ImportDefinition,
    UnknownImportTypeError,
    get_import_definition,
)
from app.domain.import_models import (
    ColumnMappingResult,
    ImportStage,
    ImportSummary,
    ResolvedEntity,
    RowError,
    RowErrorCode,
)
from app.logging_utils import log_event
from app.mappers.column_matcher import ColumnMatcher
from app.parsers.file_reader import FileReadError, read_import_file
from app.resolvers.identity_resolver import IdentityResolver
from app.validators.mapping_validator import MissingRequiredFieldsError, ensure_required_fields_mapped
from app.validators.row_normalizer import RowNormalizer

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_ABORTED = "aborted"
STATUS_CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Persistence contract
# ---------------------------------------------------------------------------


class BatchPersistenceError(RuntimeError):
    """
    Raised by a sink when a whole batch could not be persisted.
    """


@dataclass(frozen=True)
class BatchResult:
    """
    Outcome of one persisted batch.

    ``inserted`` counts stored identity keys. ``rejected`` maps row numbers
    whose keys already existed to a human-readable reason;
    ``unknown_drawings`` does the same for rows whose drawing is not in the
    project.
    """

    inserted: int
    rejected: Mapping[int, str] = field(default_factory=dict)
    unknown_drawings: Mapping[int, str] = field(default_factory=dict)


class ImportSink(Protocol):
    def persist_batch(self, entities: Sequence[ResolvedEntity]) -> BatchResult:
        ...


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


@dataclass
class _RunState:
    import_type: str
    drawing_column: str | None = None
    total_rows: int = 0
    success_count: int = 0
    error_count: int = 0
    errors: list[RowError] = field(default_factory=list)
    cancelled: bool = False


class ImportOrchestrator:
    """
    Coordinates file reading, column matching, row normalization, identity
    resolution and batched persistence for one import at a time.
    """

    def __init__(
        self,
        *,
        batch_size: int,
        max_rows: int,
        max_file_bytes: int,
        max_validation_errors: int,
        log_validation_errors: bool,
        max_quantity: int = 10_000,
        matcher: ColumnMatcher | None = None,
    ) -> None:
        self._batch_size = max(1, batch_size)
        self._max_rows = max(1, max_rows)
        self._max_file_bytes = max(1, max_file_bytes)
        self._max_validation_errors = max(1, max_validation_errors)
        self._log_validation_errors = log_validation_errors
        self._max_quantity = max(1, max_quantity)
        self._matcher = matcher or ColumnMatcher()

    def run(
        self,
        file: bytes | BinaryIO,
        import_type: str,
        *,
        sink: ImportSink,
        synonyms: Mapping[str, Sequence[str]] | None = None,
        cancel_event: threading.Event | None = None,
        filename: str | None = None,
    ) -> ImportSummary:
        """
        Import one file and return the run summary.

        Args:
            file:          Raw CSV/XLSX bytes or a binary stream.
            import_type:   ``components`` or ``field_welds``.
            sink:          Persistence collaborator receiving resolved batches.
            synonyms:      Per-field synonym overrides merged over the defaults.
            cancel_event:  Checked between rows and before each flush.
            filename:      Used to pick the reader for ``.xlsx`` uploads.
        """
        try:
            definition = get_import_definition(import_type)
        except UnknownImportTypeError as exc:
            return self._aborted(import_type=import_type, message=str(exc))
        import_type = definition.import_type

        self._log_stage(ImportStage.PARSING, import_type=import_type, filename=filename)
        try:
            sheet = read_import_file(file, filename=filename, max_bytes=self._max_file_bytes)
            # Nothing reaches the sink before the row limit is checked.
            rows = list(islice(sheet.rows, self._max_rows + 1))
        except FileReadError as exc:
            return self._aborted(import_type=import_type, message=str(exc))
        if len(rows) > self._max_rows:
            return self._aborted(
                import_type=import_type,
                message=f"File has more than {self._max_rows} data rows.",
            )

        self._log_stage(ImportStage.MATCHING, import_type=import_type, headers=len(sheet.headers))
        mapping = self._matcher.match(
            sheet.headers,
            definition.field_names,
            definition.merged_synonyms(synonyms),
            required_fields=definition.required_fields,
        )
        try:
            ensure_required_fields_mapped(mapping)
        except MissingRequiredFieldsError as exc:
            self._log_stage(
                ImportStage.REQUIRED_FIELDS_MISSING,
                import_type=import_type,
                missing=list(exc.missing_fields),
            )
            return self._aborted(
                import_type=import_type,
                message=exc.message,
                missing_required_fields=exc.missing_fields,
                column_mapping=mapping,
            )

        state = _RunState(
            import_type=import_type,
            drawing_column=mapping.column_for(definition.drawing_field),
        )
        self._process_rows(
            rows=rows,
            definition=definition,
            mapping=mapping,
            sink=sink,
            state=state,
            cancel_event=cancel_event,
        )

        status = STATUS_CANCELLED if state.cancelled else STATUS_COMPLETED
        self._log_stage(
            ImportStage.CANCELLED if state.cancelled else ImportStage.COMPLETED,
            import_type=import_type,
        )
        log_event(
            logger,
            logging.INFO,
            "import.completed",
            import_type=import_type,
            status=status,
            total_rows=state.total_rows,
            success_count=state.success_count,
            error_count=state.error_count,
        )
        return ImportSummary(
            import_type=import_type,
            status=status,
            total_rows=state.total_rows,
            success_count=state.success_count,
            error_count=state.error_count,
            errors=state.errors,
            column_mapping=mapping,
        )

    # ------------------------------------------------------------------
    # Row loop
    # ------------------------------------------------------------------

    def _process_rows(
        self,
        *,
        rows: Sequence[Mapping[str, Any]],
        definition: ImportDefinition,
        mapping: ColumnMappingResult,
        sink: ImportSink,
        state: _RunState,
        cancel_event: threading.Event | None,
    ) -> None:
        normalizer = RowNormalizer(definition, max_quantity=self._max_quantity)
        resolver = IdentityResolver()
        batch: list[ResolvedEntity] = []

        for row_number, raw_row in enumerate(rows, start=1):
            if _is_set(cancel_event):
                state.cancelled = True
                break
            state.total_rows += 1

            self._log_stage(ImportStage.NORMALIZING_ROW, level=logging.DEBUG, row=row_number)
            normalized = normalizer.normalize(raw_row, mapping, row_number)
            if isinstance(normalized, RowError):
                self._record_error(state, normalized)
                continue

            self._log_stage(ImportStage.RESOLVING, level=logging.DEBUG, row=row_number)
            resolved = resolver.resolve(normalized)
            if isinstance(resolved, RowError):
                self._record_error(state, _with_source_column(resolved, mapping))
                continue

            batch.append(resolved)
            if len(batch) >= self._batch_size:
                if _is_set(cancel_event):
                    state.cancelled = True
                    break
                self._flush(sink=sink, batch=batch, state=state)
                batch = []

        if batch and not state.cancelled and _is_set(cancel_event):
            state.cancelled = True

        if state.cancelled:
            for entity in batch:
                self._record_error(
                    state,
                    RowError(
                        row=entity.row_number,
                        message="Import was cancelled before this row was persisted.",
                        code=RowErrorCode.IMPORT_CANCELLED,
                    ),
                )
            return

        if batch:
            self._flush(sink=sink, batch=batch, state=state)

    def _flush(
        self,
        *,
        sink: ImportSink,
        batch: Sequence[ResolvedEntity],
        state: _RunState,
    ) -> None:
        self._log_stage(ImportStage.BATCHING, import_type=state.import_type, rows=len(batch))
        self._log_stage(ImportStage.PERSISTING, import_type=state.import_type, rows=len(batch))
        first_row = batch[0].row_number
        last_row = batch[-1].row_number

        try:
            result = sink.persist_batch(list(batch))
        except BatchPersistenceError as exc:
            log_event(
                logger,
                logging.ERROR,
                "import.batch_failed",
                import_type=state.import_type,
                first_row=first_row,
                last_row=last_row,
                error=str(exc),
            )
            for entity in batch:
                self._record_error(
                    state,
                    RowError(
                        row=entity.row_number,
                        message=f"Batch persistence failed: {exc}",
                        code=RowErrorCode.BATCH_FAILED,
                    ),
                )
            return

        rejected = dict(result.rejected)
        unknown_drawings = dict(result.unknown_drawings)
        for entity in batch:
            if entity.row_number in unknown_drawings:
                error = RowError(
                    row=entity.row_number,
                    column=state.drawing_column,
                    message=unknown_drawings[entity.row_number],
                    code=RowErrorCode.DRAWING_NOT_FOUND,
                )
            elif entity.row_number in rejected:
                error = RowError(
                    row=entity.row_number,
                    message=rejected[entity.row_number],
                    code=RowErrorCode.IDENTITY_CONFLICT,
                )
            else:
                state.success_count += 1
                continue
            self._record_error(state, error)

        log_event(
            logger,
            logging.INFO,
            "import.batch_persisted",
            import_type=state.import_type,
            first_row=first_row,
            last_row=last_row,
            inserted=result.inserted,
            rejected=len(rejected),
            unknown_drawings=len(unknown_drawings),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record_error(self, state: _RunState, error: RowError) -> None:
        state.error_count += 1
        if len(state.errors) < self._max_validation_errors:
            state.errors.append(error)
        if self._log_validation_errors:
            log_event(
                logger,
                logging.WARNING,
                "import.row_error",
                import_type=state.import_type,
                **error.to_dict(),
            )

    def _aborted(
        self,
        *,
        import_type: str,
        message: str,
        missing_required_fields: Sequence[str] = (),
        column_mapping: ColumnMappingResult | None = None,
    ) -> ImportSummary:
        self._log_stage(ImportStage.ABORTED, import_type=import_type, reason=message)
        return ImportSummary(
            import_type=import_type,
            status=STATUS_ABORTED,
            total_rows=0,
            success_count=0,
            error_count=0,
            file_error=message,
            missing_required_fields=tuple(missing_required_fields),
            column_mapping=column_mapping,
        )

    @staticmethod
    def _log_stage(stage: ImportStage, *, level: int = logging.INFO, **fields: Any) -> None:
        log_event(logger, level, "import.stage", stage=stage.value, **fields)


def _is_set(cancel_event: threading.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def _with_source_column(error: RowError, mapping: ColumnMappingResult) -> RowError:
    # Resolver errors name the canonical field; report the file's header.
    if error.column is None:
        return error
    source_column = mapping.column_for(error.column)
    if source_column is None:
        return error
    return replace(error, column=source_column)


@lru_cache(maxsize=1)
def get_import_orchestrator() -> ImportOrchestrator:
    """
    Return cached import orchestrator configured from environment settings.
    """

    settings = get_import_settings()
    return ImportOrchestrator(
        batch_size=settings.batch_size,
        max_rows=settings.max_rows,
        max_file_bytes=settings.max_file_bytes,
        max_validation_errors=settings.max_validation_errors,
        log_validation_errors=settings.log_validation_errors,
        max_quantity=settings.max_quantity,
    )
