"""Typed interfaces for database-layer services.

All SQL and ORM access must remain in the db package and its submodules.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Protocol, Sequence
from uuid import UUID

from pdr1_ledger.domain import CanonicalRecord, HealthStatus, SourceType
from pdr1_ledger.domain.predicates import AggregateQuery, DatedAggregate, PledgeJoinQuery, Predicate


class BatchNotFoundError(LookupError):
    """Raised when an upload batch id does not resolve to a stored batch."""


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


@dataclass(frozen=True)
class UploadBatchCounts:
    """Aggregate row counts accumulated across all files of one batch.

    Attributes:
        total_records: Non-empty data rows seen.
        processed_records: Records persisted.
        error_records: Rows rejected during mapping.
    """

    total_records: int = 0
    processed_records: int = 0
    error_records: int = 0


@dataclass(frozen=True)
class UploadBatchRecord:
    """Persistence model for one upload batch row.

    Attributes:
        batch_id: Unique batch identifier.
        status: Lifecycle status (`uploading`, `processing`, `completed`, `failed`).
        uploaded_by: Institution label recorded at creation.
        uploaded_sources: Source types whose file was ingested.
        counts: Aggregate record counts.
        created_at_utc: Row creation timestamp in UTC.
        processing_started_at_utc: Transition time into `processing`.
        processing_completed_at_utc: Transition time into a terminal status.
        errors: Failure payload for `failed` batches.
        diagnostics: Stage timeline recorded by the orchestrator.
    """

    batch_id: UUID
    status: str
    uploaded_by: str
    uploaded_sources: tuple[SourceType, ...]
    counts: UploadBatchCounts
    created_at_utc: datetime
    processing_started_at_utc: datetime | None
    processing_completed_at_utc: datetime | None
    errors: dict[str, Any] | None
    diagnostics: list[dict[str, Any]] | None


@dataclass(frozen=True)
class CalculatedResultRecord:
    """One persisted line-item value.

    Attributes:
        batch_id: Owning batch identifier.
        section_id: Line-item code such as `1A1`.
        value_date: Report date key formatted `DD-Mon-YYYY`.
        value: Numeric line-item value.
    """

    batch_id: UUID
    section_id: str
    value_date: str
    value: float


class UploadBatchRepositoryPort(Protocol):
    """Port definition for upload batch lifecycle persistence."""

    def db_upload_batch_create(self, uploaded_by: str) -> UploadBatchRecord:
        """Create one batch in `uploading` state.

        Args:
            uploaded_by: Institution label of the uploader.

        Returns:
            UploadBatchRecord: Newly created batch.

        Raises:
            ValueError: Raised when uploaded_by is blank.
            RuntimeError: Raised when persistence fails.
        """

    def db_upload_batch_mark_processing(self, batch_id: UUID) -> UploadBatchRecord:
        """Move one batch into `processing` and stamp its start time.

        Args:
            batch_id: Batch identifier.

        Returns:
            UploadBatchRecord: Updated batch.

        Raises:
            BatchNotFoundError: Raised when the batch does not exist.
            RuntimeError: Raised when persistence fails.
        """

    def db_upload_batch_set_source_uploaded(self, batch_id: UUID, source_type: SourceType) -> None:
        """Flag one source type as ingested for a batch.

        Args:
            batch_id: Batch identifier.
            source_type: Source type whose file was ingested.

        Returns:
            None: Flag is persisted.

        Raises:
            BatchNotFoundError: Raised when the batch does not exist.
            RuntimeError: Raised when persistence fails.
        """

    def db_upload_batch_mark_completed(
        self,
        batch_id: UUID,
        counts: UploadBatchCounts,
        diagnostics: list[dict[str, Any]] | None,
    ) -> UploadBatchRecord:
        """Move one batch into `completed` with final counts.

        Args:
            batch_id: Batch identifier.
            counts: Final aggregate counts.
            diagnostics: Stage timeline.

        Returns:
            UploadBatchRecord: Updated batch.

        Raises:
            BatchNotFoundError: Raised when the batch does not exist.
            RuntimeError: Raised when persistence fails.
        """

    def db_upload_batch_mark_failed(
        self,
        batch_id: UUID,
        counts: UploadBatchCounts,
        errors: dict[str, Any],
        diagnostics: list[dict[str, Any]] | None,
    ) -> UploadBatchRecord:
        """Move one batch into `failed` with its error payload.

        Args:
            batch_id: Batch identifier.
            counts: Counts accumulated before the failure.
            errors: Failure payload with message and stack.
            diagnostics: Stage timeline.

        Returns:
            UploadBatchRecord: Updated batch.

        Raises:
            BatchNotFoundError: Raised when the batch does not exist.
            RuntimeError: Raised when persistence fails.
        """

    def db_upload_batch_get_by_id(self, batch_id: UUID) -> UploadBatchRecord | None:
        """Fetch one batch by id.

        Args:
            batch_id: Batch identifier.

        Returns:
            UploadBatchRecord | None: Matching batch or None.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_upload_batch_list(self, limit: int, offset: int) -> list[UploadBatchRecord]:
        """List batches newest first.

        Args:
            limit: Maximum number of rows.
            offset: Number of rows to skip.

        Returns:
            list[UploadBatchRecord]: Ordered batches.

        Raises:
            ValueError: Raised when limit or offset are invalid.
            RuntimeError: Raised when database read fails.
        """


class CanonicalStorePort(Protocol):
    """Port definition for canonical record persistence."""

    def db_canonical_replace_records(
        self,
        batch_id: UUID,
        source_type: SourceType,
        records: Sequence[CanonicalRecord],
    ) -> int:
        """Replace all records of one source type for one batch.

        Args:
            batch_id: Owning batch identifier.
            source_type: Source type whose table is written.
            records: New records.

        Returns:
            int: Number of records inserted.

        Raises:
            ValueError: Raised when a record does not match the source type.
            RuntimeError: Raised when persistence fails.
        """

    def db_canonical_insert_reference_records(
        self,
        batch_id: UUID,
        source_type: SourceType,
        records: Sequence[CanonicalRecord],
    ) -> int:
        """Insert reference price-list records, skipping ISINs already stored.

        Args:
            batch_id: Owning batch identifier.
            source_type: G-Sec or SDL.
            records: Parsed reference records.

        Returns:
            int: Number of records inserted.

        Raises:
            ValueError: Raised when the source type is not reference data.
            RuntimeError: Raised when persistence fails.
        """

    def db_canonical_count_records(self, batch_id: UUID, source_type: SourceType) -> int:
        """Count stored records of one source type for one batch.

        Args:
            batch_id: Owning batch identifier.
            source_type: Source type key.

        Returns:
            int: Row count.

        Raises:
            RuntimeError: Raised when database read fails.
        """


class SectionQueryPort(Protocol):
    """Port definition for the aggregate queries used by section calculators."""

    def db_section_sum_by_date(self, query: AggregateQuery) -> list[DatedAggregate]:
        """Sum measures grouped by one date column.

        Args:
            query: Aggregate query contract.

        Returns:
            list[DatedAggregate]: Per-date totals ordered by date.

        Raises:
            ValueError: Raised when the query names an unknown column.
            RuntimeError: Raised when database read fails.
        """

    def db_section_pledge_join(self, query: PledgeJoinQuery) -> list[DatedAggregate]:
        """Value SLR pledge components at FIMMDA weighted-average prices per date.

        Args:
            query: Pledge join contract.

        Returns:
            list[DatedAggregate]: Per-date totals of `component * wap` ordered by date.

        Raises:
            ValueError: Raised when the query names an unknown column.
            RuntimeError: Raised when database read fails.
        """

    def db_section_distinct_dates(
        self,
        source_type: SourceType,
        batch_id: UUID,
        date_field: str = "value_date",
        predicates: Sequence[Predicate] = (),
    ) -> list[date]:
        """Return distinct non-null dates of one source for one batch.

        Args:
            source_type: Source type key.
            batch_id: Batch identifier.
            date_field: Date column to read.
            predicates: Optional row filters.

        Returns:
            list[date]: Ascending distinct dates.

        Raises:
            ValueError: Raised when a column is unknown.
            RuntimeError: Raised when database read fails.
        """


class CalculatedResultRepositoryPort(Protocol):
    """Port definition for calculated line-item persistence."""

    def db_calculated_result_save(self, results: Sequence[CalculatedResultRecord]) -> int:
        """Persist line-item values, skipping duplicates of (batch, section, date).

        Args:
            results: Values to persist.

        Returns:
            int: Number of rows inserted.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

    def db_calculated_result_list(self, batch_id: UUID) -> list[CalculatedResultRecord]:
        """List persisted line-item values of one batch.

        Args:
            batch_id: Batch identifier.

        Returns:
            list[CalculatedResultRecord]: Values ordered by section and date.

        Raises:
            RuntimeError: Raised when database read fails.
        """
