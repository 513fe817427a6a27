"""Batch API router composition for upload, status and results endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, File, Query, UploadFile, status
from fastapi.responses import JSONResponse

from pdr1_ledger.config import AppSettings
from pdr1_ledger.db import BatchNotFoundError, UploadBatchRecord, UploadBatchRepositoryPort
from pdr1_ledger.domain import SourceType
from pdr1_ledger.jobs import BatchOrchestratorPort


def api_create_batches_router(
    settings: AppSettings,
    upload_batch_repository: UploadBatchRepositoryPort,
    batch_orchestrator: BatchOrchestratorPort,
) -> APIRouter:
    """Create batch router with upload trigger and batch list/detail/results endpoints.

    Args:
        settings: Runtime settings used for pagination defaults.
        upload_batch_repository: DB-layer upload batch repository.
        batch_orchestrator: Job orchestrator running uploaded batches.

    Returns:
        APIRouter: Router exposing batch APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if upload_batch_repository is None:
        raise ValueError("upload_batch_repository must not be None")
    if batch_orchestrator is None:
        raise ValueError("batch_orchestrator must not be None")

    router = APIRouter(prefix="/batches", tags=["batches"])

    @router.post("")
    def api_batch_upload(
        im_deal: UploadFile | None = File(default=None),
        repo_deal: UploadFile | None = File(default=None),
        mm_deal: UploadFile | None = File(default=None),
        mm_deal_outstanding: UploadFile | None = File(default=None),
        repo_deal_outstanding: UploadFile | None = File(default=None),
        fimmda_val: UploadFile | None = File(default=None),
        slr_nds: UploadFile | None = File(default=None),
        g_sec: UploadFile | None = File(default=None),
        sdl: UploadFile | None = File(default=None),
    ) -> JSONResponse:
        """Create one batch from uploaded workbooks and process it synchronously.

        Every file field is optional; an upload without files completes with
        no line-items.

        Returns:
            JSONResponse: Batch result payload; 422 when the batch failed.

        Raises:
            RuntimeError: Raised when the batch row cannot be created.
        """

        uploads = {
            SourceType.IM_DEAL: im_deal,
            SourceType.REPO_DEAL: repo_deal,
            SourceType.MM_DEAL: mm_deal,
            SourceType.MM_DEAL_OUTSTANDING: mm_deal_outstanding,
            SourceType.REPO_DEAL_OUTSTANDING: repo_deal_outstanding,
            SourceType.FIMMDA_VAL: fimmda_val,
            SourceType.SLR_NDS: slr_nds,
            SourceType.G_SEC: g_sec,
            SourceType.SDL: sdl,
        }
        files = {
            source_type: upload.file.read() for source_type, upload in uploads.items() if upload is not None
        }

        processing_result = batch_orchestrator.job_process_files(files)
        return JSONResponse(
            content=processing_result.job_to_payload(),
            status_code=status.HTTP_200_OK if processing_result.success else status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    @router.get("")
    def api_batch_list(
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        """Return upload batches ordered by latest first.

        Args:
            limit: Max rows to return.
            offset: Rows to skip.

        Returns:
            JSONResponse: Batch list payload.

        Raises:
            RuntimeError: Raised when repository read fails.
        """

        applied_limit = min(limit, settings.api_max_limit)
        batch_rows = upload_batch_repository.db_upload_batch_list(limit=applied_limit, offset=offset)
        payload = {
            "items": [api_serialize_upload_batch_record(batch_record) for batch_record in batch_rows],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "offset": offset,
                "returned": len(batch_rows),
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/{batch_id}")
    def api_batch_detail(batch_id: UUID) -> JSONResponse:
        """Return one upload batch status payload.

        Args:
            batch_id: Upload batch identifier.

        Returns:
            JSONResponse: Batch detail payload or 404 when absent.

        Raises:
            RuntimeError: Raised when repository read fails.
        """

        batch_record = upload_batch_repository.db_upload_batch_get_by_id(batch_id)
        if batch_record is None:
            return _api_batch_not_found()
        return JSONResponse(content=api_serialize_upload_batch_record(batch_record), status_code=status.HTTP_200_OK)

    @router.get("/{batch_id}/results")
    def api_batch_results(batch_id: UUID) -> JSONResponse:
        """Return line-item values rebuilt from persisted results.

        Args:
            batch_id: Upload batch identifier.

        Returns:
            JSONResponse: Result payload or 404 when the batch is absent.

        Raises:
            RuntimeError: Raised when repository read fails.
        """

        try:
            processing_result = batch_orchestrator.job_get_results(batch_id)
        except BatchNotFoundError:
            return _api_batch_not_found()
        return JSONResponse(content=processing_result.job_to_payload(), status_code=status.HTTP_200_OK)

    return router


def api_serialize_upload_batch_record(batch_record: UploadBatchRecord) -> dict[str, object]:
    """Serialize typed upload batch row to JSON response payload.

    Args:
        batch_record: Typed upload batch record.

    Returns:
        dict[str, object]: JSON-serializable batch payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "batch_id": str(batch_record.batch_id),
        "status": batch_record.status,
        "uploaded_by": batch_record.uploaded_by,
        "uploaded_sources": [source_type.value for source_type in batch_record.uploaded_sources],
        "total_records": batch_record.counts.total_records,
        "processed_records": batch_record.counts.processed_records,
        "error_records": batch_record.counts.error_records,
        "created_at_utc": batch_record.created_at_utc.isoformat(),
        "processing_started_at_utc": batch_record.processing_started_at_utc.isoformat()
        if batch_record.processing_started_at_utc
        else None,
        "processing_completed_at_utc": batch_record.processing_completed_at_utc.isoformat()
        if batch_record.processing_completed_at_utc
        else None,
        "errors": batch_record.errors,
        "diagnostics": batch_record.diagnostics,
    }


def _api_batch_not_found() -> JSONResponse:
    payload = {
        "status": "error",
        "message": "upload batch not found",
    }
    return JSONResponse(content=payload, status_code=status.HTTP_404_NOT_FOUND)
