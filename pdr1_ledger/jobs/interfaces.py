"""Typed interfaces for job-layer orchestration responsibilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol
from uuid import UUID

from pdr1_ledger.domain import SourceType


@dataclass(frozen=True)
class SourceIngestionCounts:
    """Row counts of one ingested workbook.

    Attributes:
        total: Non-empty data rows seen.
        processed: Records persisted or already present as reference data.
        error: Rows rejected during mapping.
    """

    total: int = 0
    processed: int = 0
    error: int = 0


@dataclass(frozen=True)
class BatchProcessingResult:
    """Outcome of one batch run or of a results lookup.

    Attributes:
        success: Whether the batch reached `completed`.
        batch_id: Upload batch identifier.
        status: Final batch status.
        total_records: Data rows seen across all files.
        processed_records: Records persisted across all files.
        error_records: Rows rejected across all files.
        processing_time_ms: Wall-clock processing time.
        processed_data: Line-item code -> report date -> value; empty items omitted.
        deal_dates: Distinct IM-Deal value dates as report dates, ascending.
        error_message: Failure message for failed batches.
    """

    success: bool
    batch_id: UUID
    status: str
    total_records: int = 0
    processed_records: int = 0
    error_records: int = 0
    processing_time_ms: int = 0
    processed_data: dict[str, dict[str, float]] = field(default_factory=dict)
    deal_dates: tuple[str, ...] = ()
    error_message: str | None = None

    def job_to_payload(self) -> dict[str, object]:
        """Render the camel-cased response contract shared by the API and CLI.

        Returns:
            dict[str, object]: JSON-compatible result payload.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        payload: dict[str, object] = {
            "success": self.success,
            "batchId": str(self.batch_id),
            "status": self.status,
            "summary": {
                "totalRecords": self.total_records,
                "processedRecords": self.processed_records,
                "errorRecords": self.error_records,
                "processingTimeMs": self.processing_time_ms,
            },
            "processedData": self.processed_data,
            "dealDates": list(self.deal_dates),
        }
        if self.error_message is not None:
            payload["error"] = self.error_message
        return payload


class BatchOrchestratorPort(Protocol):
    """Port definition for batch ingestion and calculation workflows."""

    def job_process_files(self, files: Mapping[SourceType, bytes]) -> BatchProcessingResult:
        """Create one batch, ingest every supplied workbook and compute all sections.

        Args:
            files: Workbook payload per source type; absent sources are skipped.

        Returns:
            BatchProcessingResult: Final outcome, including failed batches.

        Raises:
            RuntimeError: Raised when the batch row itself cannot be created.
        """

    def job_get_results(self, batch_id: UUID) -> BatchProcessingResult:
        """Rebuild the result payload of one stored batch.

        Args:
            batch_id: Upload batch identifier.

        Returns:
            BatchProcessingResult: Result rebuilt from persisted values.

        Raises:
            BatchNotFoundError: Raised when the batch does not exist.
        """
