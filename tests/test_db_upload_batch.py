"""Tests for upload batch lifecycle persistence on in-memory SQLite."""

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import Engine

from pdr1_ledger.db import (
    BatchNotFoundError,
    SQLAlchemyUploadBatchService,
    UploadBatchCounts,
    db_create_engine,
    db_create_schema,
)
from pdr1_ledger.domain import SourceType


def _batch_build_engine() -> Engine:
    """Create an isolated in-memory database with the application schema.

    Returns:
        Engine: SQLite engine sharing one connection.

    Raises:
        ValueError: Raised when engine creation fails.
    """

    engine = db_create_engine("sqlite://")
    db_create_schema(engine)
    return engine


def test_db_upload_batch_runs_through_completed_lifecycle() -> None:
    """Create, start, flag sources and complete one batch.

    Returns:
        None: Assertions validate lifecycle persistence.

    Raises:
        AssertionError: Raised when persisted state differs.
    """

    service = SQLAlchemyUploadBatchService(_batch_build_engine())

    created_batch = service.db_upload_batch_create(uploaded_by="  TEST_PD ")
    assert created_batch.status == "uploading"
    assert created_batch.uploaded_by == "TEST_PD"
    assert created_batch.uploaded_sources == ()
    assert created_batch.counts == UploadBatchCounts()

    processing_batch = service.db_upload_batch_mark_processing(created_batch.batch_id)
    assert processing_batch.status == "processing"
    assert processing_batch.processing_started_at_utc is not None

    service.db_upload_batch_set_source_uploaded(created_batch.batch_id, SourceType.IM_DEAL)
    service.db_upload_batch_set_source_uploaded(created_batch.batch_id, SourceType.SDL)
    completed_batch = service.db_upload_batch_mark_completed(
        created_batch.batch_id,
        UploadBatchCounts(total_records=5, processed_records=4, error_records=1),
        diagnostics=[{"stage": "run", "status": "success"}],
    )

    assert completed_batch.status == "completed"
    assert set(completed_batch.uploaded_sources) == {SourceType.IM_DEAL, SourceType.SDL}
    assert completed_batch.counts == UploadBatchCounts(total_records=5, processed_records=4, error_records=1)
    assert completed_batch.processing_completed_at_utc is not None
    assert completed_batch.diagnostics == [{"stage": "run", "status": "success"}]
    assert service.db_upload_batch_get_by_id(created_batch.batch_id) == completed_batch


def test_db_upload_batch_mark_failed_stores_error_payload() -> None:
    """Persist failure payload and counts accumulated before the failure."""

    service = SQLAlchemyUploadBatchService(_batch_build_engine())
    batch = service.db_upload_batch_create(uploaded_by="TEST_PD")

    failed_batch = service.db_upload_batch_mark_failed(
        batch.batch_id,
        UploadBatchCounts(total_records=2, processed_records=2),
        errors={"error_code": "BATCH_STRUCTURAL_ERROR", "message": "Details sheet not found"},
        diagnostics=None,
    )

    assert failed_batch.status == "failed"
    assert failed_batch.errors["message"] == "Details sheet not found"
    assert failed_batch.counts.processed_records == 2


def test_db_upload_batch_rejects_blank_uploader_and_unknown_batches() -> None:
    """Reject blank uploader labels and updates of missing batches."""

    service = SQLAlchemyUploadBatchService(_batch_build_engine())

    with pytest.raises(ValueError):
        service.db_upload_batch_create(uploaded_by="   ")
    with pytest.raises(BatchNotFoundError):
        service.db_upload_batch_mark_processing(uuid4())
    assert service.db_upload_batch_get_by_id(uuid4()) is None


def test_db_upload_batch_list_pages_through_batches() -> None:
    """Page through batches and validate pagination arguments."""

    service = SQLAlchemyUploadBatchService(_batch_build_engine())
    created_ids = {service.db_upload_batch_create(uploaded_by="TEST_PD").batch_id for _ in range(3)}

    first_page = service.db_upload_batch_list(limit=2, offset=0)
    second_page = service.db_upload_batch_list(limit=2, offset=2)

    assert len(first_page) == 2
    assert len(second_page) == 1
    assert {batch.batch_id for batch in [*first_page, *second_page]} == created_ids

    with pytest.raises(ValueError):
        service.db_upload_batch_list(limit=0, offset=0)
    with pytest.raises(ValueError):
        service.db_upload_batch_list(limit=1, offset=-1)


def test_db_upload_batch_service_requires_engine() -> None:
    """Reject a missing engine at construction time."""

    with pytest.raises(ValueError):
        SQLAlchemyUploadBatchService(None)
