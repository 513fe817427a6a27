"""Tests for batch upload, list, detail and results endpoints.

The API is wired to real db services on in-memory SQLite so uploads run the
full parse, persist and calculate workflow.
"""

from __future__ import annotations

from io import BytesIO
from uuid import uuid4

from fastapi.testclient import TestClient
from openpyxl import Workbook

from pdr1_ledger.api.application import create_api_application
from pdr1_ledger.bootstrap import bootstrap_build_batch_orchestrator
from pdr1_ledger.config import AppSettings
from pdr1_ledger.db import (
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyUploadBatchService,
    db_create_engine,
    db_create_schema,
)

_XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _api_build_workbook(sheets: dict[str, list[list[object]]]) -> bytes:
    """Serialize one in-memory workbook with the given sheets.

    Args:
        sheets: Row matrices keyed by sheet title.

    Returns:
        bytes: `.xlsx` payload.

    Raises:
        ValueError: Raised by openpyxl when a sheet title is invalid.
    """

    workbook = Workbook()
    workbook.remove(workbook.active)
    for sheet_name, rows in sheets.items():
        worksheet = workbook.create_sheet(sheet_name)
        for row in rows:
            worksheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _api_im_deal_upload() -> tuple[str, bytes, str]:
    payload = _api_build_workbook(
        {
            "Details": [
                ["Portfolio", "Category", "Value Date", "Opn Type", "Quantity"],
                ["FVLG1", "CENTRAL GOVT BONDS", "01-Apr-2024", "BUY", 50000000],
                ["FVSS2", "TREASURY BILLS", "01-Apr-2024", "SELL", 20000000],
            ]
        }
    )
    return ("im_deal.xlsx", payload, _XLSX_CONTENT_TYPE)


def _api_build_client(api_max_limit: int = 200) -> TestClient:
    """Create a test client backed by a fresh in-memory database.

    Args:
        api_max_limit: Maximum list limit applied by the list endpoint.

    Returns:
        TestClient: Client for the fully wired application.

    Raises:
        ValueError: Raised when settings are invalid.
    """

    engine = db_create_engine("sqlite://")
    db_create_schema(engine)
    settings = AppSettings(
        environment_name="test",
        database_url="sqlite://",
        institution_code="TEST_PD",
        api_default_limit=1,
        api_max_limit=api_max_limit,
    )
    application = create_api_application(
        settings=settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine),
        upload_batch_repository=SQLAlchemyUploadBatchService(engine),
        batch_orchestrator=bootstrap_build_batch_orchestrator(settings=settings, engine=engine),
    )
    return TestClient(application)


def test_api_batch_upload_processes_workbooks_and_returns_line_items() -> None:
    """Upload an IM-Deal workbook and return computed outright line-items.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when the response payload differs.
    """

    client = _api_build_client()

    response = client.post("/batches", files={"im_deal": _api_im_deal_upload()})

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["status"] == "completed"
    assert payload["processedData"] == {"1A1": {"01-Apr-2024": 5.0}, "1B1": {"01-Apr-2024": 2.0}}
    assert payload["dealDates"] == ["01-Apr-2024"]
    assert payload["summary"]["totalRecords"] == 2
    assert payload["summary"]["processedRecords"] == 2
    assert "error" not in payload

    detail_response = client.get(f"/batches/{payload['batchId']}")
    assert detail_response.status_code == 200
    assert detail_response.json()["status"] == "completed"
    assert detail_response.json()["uploaded_by"] == "TEST_PD"
    assert detail_response.json()["uploaded_sources"] == ["IM_DEAL"]

    results_response = client.get(f"/batches/{payload['batchId']}/results")
    assert results_response.status_code == 200
    assert results_response.json()["processedData"] == payload["processedData"]


def test_api_batch_upload_returns_unprocessable_entity_on_structural_failure() -> None:
    """Return HTTP 422 with the failure message when a workbook is malformed.

    Returns:
        None: Assertions validate failure responses.

    Raises:
        AssertionError: Raised when status or payload differ.
    """

    client = _api_build_client()
    broken_upload = ("im_deal.xlsx", _api_build_workbook({"Summary": [["Total", 1]]}), _XLSX_CONTENT_TYPE)

    response = client.post("/batches", files={"im_deal": broken_upload})

    assert response.status_code == 422
    payload = response.json()
    assert payload["success"] is False
    assert payload["status"] == "failed"
    assert "Details sheet not found" in payload["error"]

    detail_payload = client.get(f"/batches/{payload['batchId']}").json()
    assert detail_payload["status"] == "failed"
    assert detail_payload["errors"]["error_code"] == "BATCH_STRUCTURAL_ERROR"


def test_api_batch_list_applies_limit_cap_and_offset() -> None:
    """Page through batches and cap the requested limit."""

    client = _api_build_client(api_max_limit=2)
    for _ in range(3):
        client.post("/batches", files={"im_deal": _api_im_deal_upload()})

    default_page = client.get("/batches").json()
    capped_page = client.get("/batches", params={"limit": 10, "offset": 2}).json()

    assert default_page["page"] == {"limit": 1, "applied_limit": 1, "offset": 0, "returned": 1}
    assert capped_page["page"] == {"limit": 10, "applied_limit": 2, "offset": 2, "returned": 1}
    assert capped_page["items"][0]["status"] == "completed"


def test_api_batch_detail_and_results_return_not_found_for_unknown_batch() -> None:
    """Return HTTP 404 with a stable payload for unknown batch identifiers."""

    client = _api_build_client()
    unknown_batch_id = uuid4()

    detail_response = client.get(f"/batches/{unknown_batch_id}")
    results_response = client.get(f"/batches/{unknown_batch_id}/results")

    assert detail_response.status_code == 404
    assert detail_response.json() == {"status": "error", "message": "upload batch not found"}
    assert results_response.status_code == 404
    assert results_response.json() == {"status": "error", "message": "upload batch not found"}


def test_api_batch_routes_validate_query_and_path_parameters() -> None:
    """Reject malformed identifiers and out-of-range paging values."""

    client = _api_build_client()

    assert client.get("/batches/not-a-uuid").status_code == 422
    assert client.get("/batches", params={"limit": 0}).status_code == 422
    assert client.get("/batches", params={"offset": -1}).status_code == 422


def test_api_health_reports_ready_schema_on_sqlite() -> None:
    """Report a healthy database once every application table exists."""

    response = _api_build_client().get("/health")

    assert response.status_code == 200
    assert response.json()["database"] == "ok"
    assert response.json()["target"] == "sqlite://"
