"""Tests for the batch orchestrator workflow on in-memory SQLite.

These tests run real workbooks through parsing, persistence, calculation and
result rebuilding to validate batch lifecycle and failure behavior.
"""

from __future__ import annotations

from io import BytesIO
from uuid import UUID, uuid4
from zipfile import ZipFile

import pytest
from openpyxl import Workbook
from sqlalchemy import Engine

from pdr1_ledger.bootstrap import bootstrap_build_batch_orchestrator
from pdr1_ledger.calculations import SectionValues, calculation_build_default_calculators
from pdr1_ledger.config import AppSettings
from pdr1_ledger.db import (
    BatchNotFoundError,
    SQLAlchemyCalculatedResultService,
    SQLAlchemyCanonicalStoreService,
    SQLAlchemySectionQueryService,
    SQLAlchemyUploadBatchService,
    db_create_engine,
    db_create_schema,
)
from pdr1_ledger.domain import SourceType
from pdr1_ledger.jobs import BatchOrchestratorConfig, Pdr1BatchOrchestrator, job_ingest_source_file

_PRICE_LIST_HEADER = ["ISIN", "Description", "Coupon", "Maturity", "Price", "YTM"]


def _orchestrator_build_workbook(sheets: dict[str, list[list[object]]]) -> bytes:
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


def _orchestrator_im_deal_payload() -> bytes:
    return _orchestrator_build_workbook(
        {
            "Details": [
                ["Portfolio", "Category", "Value Date", "Opn Type", "Quantity"],
                ["FVLG1", "CENTRAL GOVT BONDS", "01-Apr-2024", "BUY", 50000000],
                ["FVLG1", "CENTRAL GOVT BONDS", "01-Apr-2024", "BUY", 30000000],
            ]
        }
    )


def _orchestrator_repo_deal_payload() -> bytes:
    return _orchestrator_build_workbook(
        {
            "Detail": [
                ["Deal Ref", "Instrument", "Value Date", "Face Value", "Leg1 Price"],
                ["R1", "Market Repo", "01-Apr-2024", 100000000, 99.5],
            ]
        }
    )


def _orchestrator_gsec_payload() -> bytes:
    return _orchestrator_build_workbook(
        {"G-Sec": [_PRICE_LIST_HEADER, ["IN0020230010", "7.26% GS 2033", 7.26, "22-Aug-2033", 101.25, 7.05]]}
    )


def _orchestrator_truncate_sheet_xml(payload: bytes) -> bytes:
    """Rewrite a workbook so every worksheet part holds truncated XML.

    Args:
        payload: Valid `.xlsx` payload.

    Returns:
        bytes: Payload whose workbook index still loads but whose sheets cannot be parsed.

    Raises:
        zipfile.BadZipFile: Raised when `payload` is not a zip archive.
    """

    buffer = BytesIO()
    with ZipFile(BytesIO(payload)) as source_archive, ZipFile(buffer, "w") as target_archive:
        for member_name in source_archive.namelist():
            content = source_archive.read(member_name)
            if member_name.startswith("xl/worksheets/sheet"):
                content = b'<worksheet><sheetData><row r="1"><c'
            target_archive.writestr(member_name, content)
    return buffer.getvalue()


class _FailingSectionCalculator:
    """Calculator double that fails with a non-domain error."""

    def calculation_section_name(self) -> str:
        return "Failing Section"

    def calculation_compute(self, batch_id: UUID) -> SectionValues:
        raise KeyError(f"missing line-item mapping for batch {batch_id}")


def _orchestrator_build() -> tuple[Engine, Pdr1BatchOrchestrator]:
    """Wire a production orchestrator against an isolated in-memory database.

    Returns:
        tuple[Engine, Pdr1BatchOrchestrator]: Engine and orchestrator.

    Raises:
        ValueError: Raised when settings or wiring are invalid.
    """

    engine = db_create_engine("sqlite://")
    db_create_schema(engine)
    settings = AppSettings(environment_name="test", database_url="sqlite://", institution_code="TEST_PD")
    return engine, bootstrap_build_batch_orchestrator(settings=settings, engine=engine)


def test_jobs_orchestrator_completes_empty_upload_without_line_items() -> None:
    """Complete a batch without files and report no line-items.

    Returns:
        None: Assertions validate empty batch behavior.

    Raises:
        AssertionError: Raised when the empty batch is not completed.
    """

    engine, orchestrator = _orchestrator_build()

    result = orchestrator.job_process_files({})

    assert result.success is True
    assert result.status == "completed"
    assert result.processed_data == {}
    assert result.deal_dates == ()
    assert (result.total_records, result.processed_records, result.error_records) == (0, 0, 0)
    batch = SQLAlchemyUploadBatchService(engine).db_upload_batch_get_by_id(result.batch_id)
    assert batch.status == "completed"
    assert batch.uploaded_by == "TEST_PD"


def test_jobs_orchestrator_calculates_line_items_and_rebuilds_results() -> None:
    """Ingest deal workbooks, compute line-items and rebuild them from storage.

    Returns:
        None: Assertions validate processed data and stored results.

    Raises:
        AssertionError: Raised when line-items or rebuilt results differ.
    """

    engine, orchestrator = _orchestrator_build()

    result = orchestrator.job_process_files(
        {
            SourceType.REPO_DEAL: _orchestrator_repo_deal_payload(),
            SourceType.IM_DEAL: _orchestrator_im_deal_payload(),
        }
    )

    assert result.success is True
    assert result.processed_data == {
        "1A1": {"01-Apr-2024": 8.0},
        "1C1": {"01-Apr-2024": 9.95},
        "2A6": {"01-Apr-2024": 9.95},
    }
    assert result.deal_dates == ("01-Apr-2024",)
    assert (result.total_records, result.processed_records, result.error_records) == (3, 3, 0)

    batch = SQLAlchemyUploadBatchService(engine).db_upload_batch_get_by_id(result.batch_id)
    assert set(batch.uploaded_sources) == {SourceType.IM_DEAL, SourceType.REPO_DEAL}
    assert [event["stage"] for event in batch.diagnostics][:2] == ["run", "ingest:IM_DEAL"]

    stored_result = orchestrator.job_get_results(result.batch_id)
    assert stored_result.success is True
    assert stored_result.processed_data == result.processed_data
    assert stored_result.deal_dates == result.deal_dates
    assert stored_result.processed_records == 3


def test_jobs_orchestrator_marks_batch_failed_and_keeps_earlier_records() -> None:
    """Fail the batch on a structural error while earlier files stay persisted.

    Returns:
        None: Assertions validate failure handling.

    Raises:
        AssertionError: Raised when failure state or persisted records differ.
    """

    engine, orchestrator = _orchestrator_build()
    broken_gsec_payload = _orchestrator_build_workbook({"Prices": [_PRICE_LIST_HEADER]})

    result = orchestrator.job_process_files(
        {
            SourceType.IM_DEAL: _orchestrator_im_deal_payload(),
            SourceType.G_SEC: broken_gsec_payload,
        }
    )

    assert result.success is False
    assert result.status == "failed"
    assert "G-Sec sheet not found" in result.error_message
    assert result.processed_records == 2
    assert result.processed_data == {}

    batch = SQLAlchemyUploadBatchService(engine).db_upload_batch_get_by_id(result.batch_id)
    assert batch.status == "failed"
    assert batch.errors["error_code"] == "BATCH_STRUCTURAL_ERROR"
    assert batch.uploaded_sources == (SourceType.IM_DEAL,)
    assert SQLAlchemyCanonicalStoreService(engine).db_canonical_count_records(result.batch_id, SourceType.IM_DEAL) == 2

    stored_result = orchestrator.job_get_results(result.batch_id)
    assert stored_result.success is False
    assert stored_result.status == "failed"
    assert "G-Sec sheet not found" in stored_result.error_message
    assert "error" in stored_result.job_to_payload()


def test_jobs_orchestrator_fails_when_details_sheet_is_missing() -> None:
    """Fail the batch when the IM-Deal workbook has no `Details` sheet."""

    _, orchestrator = _orchestrator_build()
    payload = _orchestrator_build_workbook({"Deals": [["Portfolio", "Category", "Value Date"]]})

    result = orchestrator.job_process_files({SourceType.IM_DEAL: payload})

    assert result.success is False
    assert result.processed_records == 0
    assert "Details" in result.error_message


def test_jobs_orchestrator_fails_structurally_when_sheet_xml_is_unreadable() -> None:
    """Fail the batch structurally when a worksheet part holds unparseable XML.

    Returns:
        None: Assertions validate the terminal batch state.

    Raises:
        AssertionError: Raised when the batch is not marked failed.
    """

    engine, orchestrator = _orchestrator_build()
    payload = _orchestrator_truncate_sheet_xml(_orchestrator_im_deal_payload())

    result = orchestrator.job_process_files({SourceType.IM_DEAL: payload})

    assert result.success is False
    assert result.status == "failed"
    batch = SQLAlchemyUploadBatchService(engine).db_upload_batch_get_by_id(result.batch_id)
    assert batch.status == "failed"
    assert batch.errors["error_code"] == "BATCH_STRUCTURAL_ERROR"


def test_jobs_orchestrator_marks_batch_failed_on_unexpected_calculator_error() -> None:
    """Mark the batch failed, never leaving it processing, when a calculator raises.

    Returns:
        None: Assertions validate the terminal batch state and error code.

    Raises:
        AssertionError: Raised when the batch stays processing or the code differs.
    """

    engine = db_create_engine("sqlite://")
    db_create_schema(engine)
    upload_batch_service = SQLAlchemyUploadBatchService(engine)
    orchestrator = Pdr1BatchOrchestrator(
        upload_batch_repository=upload_batch_service,
        canonical_store=SQLAlchemyCanonicalStoreService(engine),
        calculated_result_repository=SQLAlchemyCalculatedResultService(engine),
        section_query_service=SQLAlchemySectionQueryService(engine),
        calculators=(_FailingSectionCalculator(),),
        config=BatchOrchestratorConfig(uploaded_by="TEST_PD"),
    )

    result = orchestrator.job_process_files({SourceType.IM_DEAL: _orchestrator_im_deal_payload()})

    assert result.success is False
    assert result.processed_records == 2
    batch = upload_batch_service.db_upload_batch_get_by_id(result.batch_id)
    assert batch.status == "failed"
    assert batch.errors["error_code"] == "BATCH_UNEXPECTED_ERROR"
    assert batch.diagnostics[-1]["details"]["error_type"] == "KeyError"


def test_jobs_orchestrator_keeps_first_reference_isin_across_batches() -> None:
    """Skip already stored price-list ISINs while still counting them as processed."""

    engine, orchestrator = _orchestrator_build()
    store = SQLAlchemyCanonicalStoreService(engine)

    first_result = orchestrator.job_process_files({SourceType.G_SEC: _orchestrator_gsec_payload()})
    second_result = orchestrator.job_process_files({SourceType.G_SEC: _orchestrator_gsec_payload()})

    assert first_result.success is True
    assert second_result.success is True
    assert store.db_canonical_count_records(first_result.batch_id, SourceType.G_SEC) == 1
    assert store.db_canonical_count_records(second_result.batch_id, SourceType.G_SEC) == 0
    assert second_result.processed_records == 1


def test_jobs_ingest_source_file_replaces_records_on_reingest() -> None:
    """Re-ingest deal workbooks into one batch without doubling line-items.

    Returns:
        None: Assertions validate stored counts and recalculated values.

    Raises:
        AssertionError: Raised when records or line-items are duplicated.
    """

    engine, _ = _orchestrator_build()
    store = SQLAlchemyCanonicalStoreService(engine)
    batch_id = SQLAlchemyUploadBatchService(engine).db_upload_batch_create(uploaded_by="TEST_PD").batch_id

    for _ in range(2):
        counts = job_ingest_source_file(SourceType.IM_DEAL, _orchestrator_im_deal_payload(), batch_id, store)
        job_ingest_source_file(SourceType.REPO_DEAL, _orchestrator_repo_deal_payload(), batch_id, store)

    assert (counts.total, counts.processed, counts.error) == (2, 2, 0)
    assert store.db_canonical_count_records(batch_id, SourceType.IM_DEAL) == 2
    assert store.db_canonical_count_records(batch_id, SourceType.REPO_DEAL) == 1

    section_values: SectionValues = {}
    for calculator in calculation_build_default_calculators(SQLAlchemySectionQueryService(engine)):
        section_values.update(calculator.calculation_compute(batch_id))
    assert section_values["1A1"] == {"01-Apr-2024": 8.0}
    assert section_values["1C1"] == {"01-Apr-2024": 9.95}


def test_jobs_orchestrator_rejects_unknown_file_keys_and_batches() -> None:
    """Reject non-source file keys and result lookups of unknown batches."""

    _, orchestrator = _orchestrator_build()

    with pytest.raises(ValueError):
        orchestrator.job_process_files({"IM_DEAL": b""})
    with pytest.raises(BatchNotFoundError):
        orchestrator.job_get_results(uuid4())


def test_jobs_result_payload_uses_camel_case_contract() -> None:
    """Render the shared response contract with camel-cased keys."""

    _, orchestrator = _orchestrator_build()

    payload = orchestrator.job_process_files({}).job_to_payload()

    assert set(payload) == {"success", "batchId", "status", "summary", "processedData", "dealDates"}
    assert set(payload["summary"]) == {"totalRecords", "processedRecords", "errorRecords", "processingTimeMs"}
