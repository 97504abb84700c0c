"""
tests/test_import_router.py

HTTP tests for the import endpoint using FastAPI's TestClient with the
database session and orchestrator dependencies overridden.
"""

from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.routers import component_import
from app.api.routers.component_import import router
from app.domain.import_models import ImportSummary, ResolvedEntity, RowError
from app.services.import_orchestrator import BatchResult, ImportOrchestrator, get_import_orchestrator
from db.session import get_db

PROJECT_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
CSV_BODY = b"DRAWING,TYPE,QTY,CMDTY CODE\nP-1,Valve,2,VB-1\nP-2,Gizmo,1,VB-2\n"


class StubOrchestrator:
    def __init__(self, summary: ImportSummary) -> None:
        self.summary = summary
        self.calls: list[dict] = []

    def run(self, file, import_type, *, sink, synonyms=None, cancel_event=None, filename=None):
        self.calls.append(
            {
                "content": file.read(),
                "import_type": import_type,
                "sink": sink,
                "synonyms": synonyms,
                "filename": filename,
            }
        )
        return self.summary


class InMemorySink:
    def __init__(self, *args, **kwargs) -> None:
        self.entities: list[ResolvedEntity] = []

    def persist_batch(self, entities):
        self.entities.extend(entities)
        return BatchResult(inserted=sum(len(entity.identity_keys) for entity in entities))


@pytest.fixture()
def db_session() -> MagicMock:
    session = MagicMock()
    session.execute.return_value.scalars.return_value.first.return_value = None
    return session


def _client(db_session: MagicMock, orchestrator) -> TestClient:
    application = FastAPI()
    application.include_router(router)
    application.dependency_overrides[get_db] = lambda: db_session
    application.dependency_overrides[get_import_orchestrator] = lambda: orchestrator
    return TestClient(application)


def _completed_summary() -> ImportSummary:
    return ImportSummary(
        import_type="components",
        status="completed",
        total_rows=2,
        success_count=1,
        error_count=1,
        errors=[RowError(row=2, column="TYPE", message="Invalid TYPE 'Gizmo'.", code="invalid_enum_value")],
    )


class TestImportEndpoint:
    def test_returns_summary_and_commits(self, db_session: MagicMock) -> None:
        orchestrator = StubOrchestrator(_completed_summary())
        client = _client(db_session, orchestrator)

        response = client.post(
            f"/projects/{PROJECT_ID}/imports/components",
            files={"file": ("takeoff.csv", CSV_BODY, "text/csv")},
        )

        assert response.status_code == 200
        payload = response.json()
        assert payload["status"] == "completed"
        assert payload["total_rows"] == 2
        assert payload["errors"] == [
            {"row": 2, "column": "TYPE", "message": "Invalid TYPE 'Gizmo'.", "code": "invalid_enum_value"}
        ]
        call = orchestrator.calls[0]
        assert call["content"] == CSV_BODY
        assert call["import_type"] == "components"
        assert call["filename"] == "takeoff.csv"
        assert call["synonyms"] is None
        db_session.commit.assert_called_once()

    def test_aborted_summary_is_not_an_http_error(self, db_session: MagicMock) -> None:
        summary = ImportSummary(
            import_type="components",
            status="aborted",
            total_rows=0,
            success_count=0,
            error_count=0,
            file_error="Missing required fields: CMDTY CODE.",
            missing_required_fields=("CMDTY CODE",),
        )
        client = _client(db_session, StubOrchestrator(summary))

        response = client.post(
            f"/projects/{PROJECT_ID}/imports/components",
            files={"file": ("takeoff.csv", b"DRAWING\nP-1\n", "text/csv")},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "aborted"
        assert response.json()["missing_required_fields"] == ["CMDTY CODE"]

    def test_unknown_import_type_is_rejected(self, db_session: MagicMock) -> None:
        orchestrator = StubOrchestrator(_completed_summary())
        client = _client(db_session, orchestrator)

        response = client.post(
            f"/projects/{PROJECT_ID}/imports/spools",
            files={"file": ("takeoff.csv", CSV_BODY, "text/csv")},
        )

        assert response.status_code == 400
        assert orchestrator.calls == []

    def test_unsupported_upload_is_rejected(self, db_session: MagicMock) -> None:
        client = _client(db_session, StubOrchestrator(_completed_summary()))

        response = client.post(
            f"/projects/{PROJECT_ID}/imports/components",
            files={"file": ("takeoff.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 400

    def test_unknown_mapping_config_is_not_found(self, db_session: MagicMock) -> None:
        client = _client(db_session, StubOrchestrator(_completed_summary()))

        response = client.post(
            f"/projects/{PROJECT_ID}/imports/components",
            params={"mapping_config_name": "legacy"},
            files={"file": ("takeoff.csv", CSV_BODY, "text/csv")},
        )

        assert response.status_code == 404

    def test_stored_overrides_are_passed_through(self, db_session: MagicMock) -> None:
        config = MagicMock()
        config.synonym_overrides_json = {"DRAWING": ["SHEET"]}
        db_session.execute.return_value.scalars.return_value.first.return_value = config
        orchestrator = StubOrchestrator(_completed_summary())
        client = _client(db_session, orchestrator)

        response = client.post(
            f"/projects/{PROJECT_ID}/imports/components",
            params={"mapping_config_name": "legacy"},
            files={"file": ("takeoff.csv", CSV_BODY, "text/csv")},
        )

        assert response.status_code == 200
        assert orchestrator.calls[0]["synonyms"] == {"DRAWING": ["SHEET"]}

    def test_end_to_end_with_real_orchestrator(
        self,
        db_session: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        sinks: list[InMemorySink] = []

        def _sink_factory(*args, **kwargs) -> InMemorySink:
            sink = InMemorySink()
            sinks.append(sink)
            return sink

        monkeypatch.setattr(component_import, "ComponentImportRepository", _sink_factory)
        orchestrator = ImportOrchestrator(
            batch_size=10,
            max_rows=100,
            max_file_bytes=1024 * 1024,
            max_validation_errors=100,
            log_validation_errors=False,
        )
        client = _client(db_session, orchestrator)

        response = client.post(
            f"/projects/{PROJECT_ID}/imports/components",
            files={"file": ("takeoff.csv", CSV_BODY, "text/csv")},
        )

        payload = response.json()
        assert response.status_code == 200
        assert payload["success_count"] == 1
        assert payload["error_count"] == 1
        assert payload["errors"][0]["code"] == "invalid_enum_value"
        assert payload["column_mapping"]["has_all_required_fields"] is True
        assert [key.seq for key in sinks[0].entities[0].identity_keys] == [1, 2]
