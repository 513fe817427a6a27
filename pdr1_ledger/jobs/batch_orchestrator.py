"""Job-layer batch orchestrator with stage timeline persistence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Sequence
from uuid import UUID

from pdr1_ledger.calculations import SectionCalculatorPort, SectionValues
from pdr1_ledger.db import (
    BatchNotFoundError,
    CalculatedResultRecord,
    CalculatedResultRepositoryPort,
    CanonicalStorePort,
    SectionQueryPort,
    UploadBatchCounts,
    UploadBatchRepositoryPort,
)
from pdr1_ledger.domain import (
    BATCH_STATUS_COMPLETED,
    SOURCE_PROCESSING_ORDER,
    SourceType,
    domain_build_failure_payload,
    domain_build_stage_event,
    domain_format_report_date,
    domain_parse_report_date,
)
from pdr1_ledger.mapping import StructuralIngestionError
from pdr1_ledger.mapping.header_mapper import DEFAULT_HEADER_SCAN_ROW_LIMIT

from .interfaces import BatchOrchestratorPort, BatchProcessingResult
from .source_ingestion import job_ingest_source_file

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchOrchestratorConfig:
    """Configuration values for batch orchestration.

    Attributes:
        uploaded_by: Institution label recorded on every batch.
        header_scan_row_limit: Number of leading rows searched for header rows.
    """

    uploaded_by: str
    header_scan_row_limit: int = DEFAULT_HEADER_SCAN_ROW_LIMIT


class Pdr1BatchOrchestrator(BatchOrchestratorPort):
    """Concrete orchestrator for the upload, ingest and calculate workflow.

    Files are ingested sequentially in the fixed source order; every section
    calculator then runs against the fully ingested batch and the merged
    line-item values are persisted. Any failure marks the batch `failed`;
    records persisted before the failure stay in place.
    """

    def __init__(
        self,
        upload_batch_repository: UploadBatchRepositoryPort,
        canonical_store: CanonicalStorePort,
        calculated_result_repository: CalculatedResultRepositoryPort,
        section_query_service: SectionQueryPort,
        calculators: Sequence[SectionCalculatorPort],
        config: BatchOrchestratorConfig,
    ):
        """Initialize batch orchestrator dependencies.

        Args:
            upload_batch_repository: Batch lifecycle persistence service.
            canonical_store: Canonical record persistence service.
            calculated_result_repository: Line-item value persistence service.
            section_query_service: Aggregate query service used for deal dates.
            calculators: Section calculators in execution order.
            config: Orchestration configuration.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if upload_batch_repository is None:
            raise ValueError("upload_batch_repository must not be None")
        if canonical_store is None:
            raise ValueError("canonical_store must not be None")
        if calculated_result_repository is None:
            raise ValueError("calculated_result_repository must not be None")
        if section_query_service is None:
            raise ValueError("section_query_service must not be None")
        if not config.uploaded_by.strip():
            raise ValueError("config.uploaded_by must not be blank")
        if config.header_scan_row_limit < 1:
            raise ValueError("config.header_scan_row_limit must be >= 1")

        self._upload_batch_repository = upload_batch_repository
        self._canonical_store = canonical_store
        self._calculated_result_repository = calculated_result_repository
        self._section_query_service = section_query_service
        self._calculators = tuple(calculators)
        self._config = config

    def job_process_files(self, files: Mapping[SourceType, bytes]) -> BatchProcessingResult:
        """Run one batch from creation to a terminal status.

        Args:
            files: Workbook payload per source type; absent sources are skipped.

        Returns:
            BatchProcessingResult: Final outcome, including failed batches.

        Raises:
            ValueError: Raised when a key of `files` is not a source type.
            RuntimeError: Raised when the batch row cannot be created or finalized.
        """

        unknown_keys = [key for key in files if not isinstance(key, SourceType)]
        if unknown_keys:
            raise ValueError(f"unsupported file keys={unknown_keys}")

        started_at = datetime.now(timezone.utc)
        timeline: list[dict[str, object]] = [domain_build_stage_event(stage="run", status="started")]

        batch = self._upload_batch_repository.db_upload_batch_create(uploaded_by=self._config.uploaded_by)
        batch_id = batch.batch_id
        _log.info("Processing batch %s with sources %s", batch_id, [source.value for source in files])

        counts = UploadBatchCounts()
        try:
            self._upload_batch_repository.db_upload_batch_mark_processing(batch_id)
            for source_type in SOURCE_PROCESSING_ORDER:
                payload = files.get(source_type)
                if payload is None:
                    continue
                stage_name = f"ingest:{source_type.value}"
                timeline.append(domain_build_stage_event(stage=stage_name, status="started"))
                file_counts = job_ingest_source_file(
                    source_type=source_type,
                    payload=payload,
                    batch_id=batch_id,
                    canonical_store=self._canonical_store,
                    scan_row_limit=self._config.header_scan_row_limit,
                    processing_date=started_at.date(),
                )
                self._upload_batch_repository.db_upload_batch_set_source_uploaded(batch_id, source_type)
                counts = UploadBatchCounts(
                    total_records=counts.total_records + file_counts.total,
                    processed_records=counts.processed_records + file_counts.processed,
                    error_records=counts.error_records + file_counts.error,
                )
                timeline.append(
                    domain_build_stage_event(
                        stage=stage_name,
                        status="completed",
                        details={
                            "total_records": file_counts.total,
                            "processed_records": file_counts.processed,
                            "error_records": file_counts.error,
                        },
                    )
                )

            timeline.append(domain_build_stage_event(stage="calculate", status="started"))
            section_values = self._job_run_calculators(batch_id)
            saved_count = self._calculated_result_repository.db_calculated_result_save(
                self._job_flatten_section_values(batch_id, section_values)
            )
            processed_data = {line_item: values for line_item, values in section_values.items() if values}
            timeline.append(
                domain_build_stage_event(
                    stage="calculate",
                    status="completed",
                    details={"line_item_count": len(processed_data), "saved_value_count": saved_count},
                )
            )
            deal_dates = self._job_deal_dates(batch_id)

            timeline.append(domain_build_stage_event(stage="run", status="success"))
            self._upload_batch_repository.db_upload_batch_mark_completed(batch_id, counts, diagnostics=timeline)
        except Exception as error:
            error_code = self._job_error_code_for_exception(error)
            failure_payload = domain_build_failure_payload(error, error_code)
            _log.error("Batch %s failed with %s: %s", batch_id, error_code, error)

            timeline.append(
                domain_build_stage_event(
                    stage="run",
                    status="failed",
                    details={"error_code": error_code, "error_type": type(error).__name__},
                )
            )
            self._upload_batch_repository.db_upload_batch_mark_failed(
                batch_id,
                counts,
                errors=failure_payload,
                diagnostics=timeline,
            )
            return BatchProcessingResult(
                success=False,
                batch_id=batch_id,
                status="failed",
                total_records=counts.total_records,
                processed_records=counts.processed_records,
                error_records=counts.error_records,
                processing_time_ms=_job_elapsed_ms(started_at),
                error_message=str(error),
            )

        _log.info(
            "Batch %s completed: total=%d processed=%d error=%d line_items=%d",
            batch_id,
            counts.total_records,
            counts.processed_records,
            counts.error_records,
            len(processed_data),
        )
        return BatchProcessingResult(
            success=True,
            batch_id=batch_id,
            status=BATCH_STATUS_COMPLETED,
            total_records=counts.total_records,
            processed_records=counts.processed_records,
            error_records=counts.error_records,
            processing_time_ms=_job_elapsed_ms(started_at),
            processed_data=processed_data,
            deal_dates=deal_dates,
        )

    def job_get_results(self, batch_id: UUID) -> BatchProcessingResult:
        """Rebuild the result payload of one stored batch.

        Args:
            batch_id: Upload batch identifier.

        Returns:
            BatchProcessingResult: Result rebuilt from persisted line-item values.

        Raises:
            BatchNotFoundError: Raised when the batch does not exist.
            RuntimeError: Raised when database reads fail.
        """

        batch = self._upload_batch_repository.db_upload_batch_get_by_id(batch_id)
        if batch is None:
            raise BatchNotFoundError(f"upload batch not found: {batch_id}")

        values_by_line_item: dict[str, dict[str, float]] = {}
        for result in self._calculated_result_repository.db_calculated_result_list(batch_id):
            values_by_line_item.setdefault(result.section_id, {})[result.value_date] = result.value
        processed_data = {
            line_item: dict(sorted(values.items(), key=lambda item: domain_parse_report_date(item[0])))
            for line_item, values in values_by_line_item.items()
        }

        processing_time_ms = 0
        if batch.processing_started_at_utc is not None and batch.processing_completed_at_utc is not None:
            elapsed = batch.processing_completed_at_utc - batch.processing_started_at_utc
            processing_time_ms = max(0, int(elapsed.total_seconds() * 1000))

        error_message = None
        if batch.errors:
            error_message = batch.errors.get("message")

        return BatchProcessingResult(
            success=batch.status == BATCH_STATUS_COMPLETED,
            batch_id=batch.batch_id,
            status=batch.status,
            total_records=batch.counts.total_records,
            processed_records=batch.counts.processed_records,
            error_records=batch.counts.error_records,
            processing_time_ms=processing_time_ms,
            processed_data=processed_data,
            deal_dates=self._job_deal_dates(batch_id),
            error_message=error_message,
        )

    def _job_run_calculators(self, batch_id: UUID) -> SectionValues:
        """Run every calculator and merge their line-items in execution order.

        Args:
            batch_id: Upload batch identifier.

        Returns:
            SectionValues: Merged line-item values; later calculators win on code collisions.

        Raises:
            RuntimeError: Raised when a calculator query fails.
        """

        merged_values: SectionValues = {}
        for calculator in self._calculators:
            section_values = calculator.calculation_compute(batch_id)
            _log.debug(
                "Calculator %s produced line-items %s",
                calculator.calculation_section_name(),
                sorted(section_values),
            )
            merged_values.update(section_values)
        return merged_values

    def _job_flatten_section_values(
        self,
        batch_id: UUID,
        section_values: SectionValues,
    ) -> list[CalculatedResultRecord]:
        return [
            CalculatedResultRecord(batch_id=batch_id, section_id=line_item, value_date=value_date, value=value)
            for line_item, values in section_values.items()
            for value_date, value in values.items()
        ]

    def _job_deal_dates(self, batch_id: UUID) -> tuple[str, ...]:
        return tuple(
            domain_format_report_date(value_date)
            for value_date in self._section_query_service.db_section_distinct_dates(SourceType.IM_DEAL, batch_id)
        )

    def _job_error_code_for_exception(self, error: Exception) -> str:
        """Map runtime exception type to deterministic batch failure code.

        Args:
            error: Caught workflow exception.

        Returns:
            str: Deterministic error code.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        if isinstance(error, StructuralIngestionError):
            return "BATCH_STRUCTURAL_ERROR"
        if isinstance(error, TimeoutError):
            return "BATCH_TIMEOUT_ERROR"
        if isinstance(error, ConnectionError):
            return "BATCH_CONNECTION_ERROR"
        if isinstance(error, ValueError):
            return "BATCH_CONTRACT_ERROR"
        return "BATCH_UNEXPECTED_ERROR"


def _job_elapsed_ms(started_at: datetime) -> int:
    return max(0, int((datetime.now(timezone.utc) - started_at).total_seconds() * 1000))
