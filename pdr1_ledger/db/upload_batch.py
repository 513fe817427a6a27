"""Database service for upload batch lifecycle persistence."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from pdr1_ledger.domain import (
    BATCH_STATUS_COMPLETED,
    BATCH_STATUS_FAILED,
    BATCH_STATUS_PROCESSING,
    BATCH_STATUS_UPLOADING,
    SourceType,
)

from .interfaces import BatchNotFoundError, UploadBatchCounts, UploadBatchRecord, UploadBatchRepositoryPort
from .schema import db_source_uploaded_column, upload_batch_table


class SQLAlchemyUploadBatchService(UploadBatchRepositoryPort):
    """SQLAlchemy-backed upload batch service.

    This service owns every status transition write of the batch row; the
    orchestrator decides when transitions happen.
    """

    def __init__(self, engine: Engine):
        """Initialize upload batch persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Returns:
            None: This initializer does not return a value.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

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

        normalized_uploaded_by = uploaded_by.strip()
        if not normalized_uploaded_by:
            raise ValueError("uploaded_by must not be blank")

        batch_id = uuid4()
        try:
            with self._engine.begin() as connection:
                connection.execute(
                    sa.insert(upload_batch_table).values(
                        batch_id=batch_id,
                        status=BATCH_STATUS_UPLOADING,
                        uploaded_by=normalized_uploaded_by,
                        created_at_utc=datetime.now(timezone.utc),
                    )
                )
                return self._db_fetch_batch_by_id_or_raise(connection=connection, batch_id=batch_id)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to create upload batch") from error

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

        return self._db_update_batch(
            batch_id,
            "failed to mark upload batch processing",
            status=BATCH_STATUS_PROCESSING,
            processing_started_at_utc=datetime.now(timezone.utc),
        )

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

        self._db_update_batch(
            batch_id,
            f"failed to flag {source_type.value} upload",
            **{db_source_uploaded_column(source_type): True},
        )

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

        return self._db_update_batch(
            batch_id,
            "failed to mark upload batch completed",
            status=BATCH_STATUS_COMPLETED,
            total_records=counts.total_records,
            processed_records=counts.processed_records,
            error_records=counts.error_records,
            processing_completed_at_utc=datetime.now(timezone.utc),
            diagnostics=diagnostics,
        )

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

        return self._db_update_batch(
            batch_id,
            "failed to mark upload batch failed",
            status=BATCH_STATUS_FAILED,
            total_records=counts.total_records,
            processed_records=counts.processed_records,
            error_records=counts.error_records,
            processing_completed_at_utc=datetime.now(timezone.utc),
            errors=errors,
            diagnostics=diagnostics,
        )

    def db_upload_batch_get_by_id(self, batch_id: UUID) -> UploadBatchRecord | None:
        """Fetch one batch by id.

        Args:
            batch_id: Batch identifier.

        Returns:
            UploadBatchRecord | None: Matching batch or None.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    sa.select(upload_batch_table).where(upload_batch_table.c.batch_id == batch_id)
                ).mappings().first()
                if row is None:
                    return None
                return self._map_upload_batch_record(row)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to fetch upload batch by id") from error

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

        if limit < 1:
            raise ValueError("limit must be >= 1")
        if offset < 0:
            raise ValueError("offset must be >= 0")

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    sa.select(upload_batch_table)
                    .order_by(upload_batch_table.c.created_at_utc.desc(), upload_batch_table.c.batch_id.desc())
                    .limit(limit)
                    .offset(offset)
                ).mappings().all()
                return [self._map_upload_batch_record(row) for row in rows]
        except SQLAlchemyError as error:
            raise RuntimeError("failed to list upload batches") from error

    def _db_update_batch(self, batch_id: UUID, failure_message: str, **values: Any) -> UploadBatchRecord:
        """Apply one column update to a batch row and return the refreshed row.

        Args:
            batch_id: Batch identifier.
            failure_message: RuntimeError message used when persistence fails.
            values: Column values to write.

        Returns:
            UploadBatchRecord: Updated batch.

        Raises:
            BatchNotFoundError: Raised when the batch does not exist.
            RuntimeError: Raised when persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                result = connection.execute(
                    sa.update(upload_batch_table).where(upload_batch_table.c.batch_id == batch_id).values(**values)
                )
                if result.rowcount == 0:
                    raise BatchNotFoundError(f"upload batch not found: {batch_id}")
                return self._db_fetch_batch_by_id_or_raise(connection=connection, batch_id=batch_id)
        except SQLAlchemyError as error:
            raise RuntimeError(failure_message) from error

    def _db_fetch_batch_by_id_or_raise(self, connection, batch_id: UUID) -> UploadBatchRecord:
        """Fetch one batch inside active transaction and raise when missing.

        Args:
            connection: Active SQLAlchemy connection.
            batch_id: Batch identifier.

        Returns:
            UploadBatchRecord: Matching row.

        Raises:
            BatchNotFoundError: Raised when row cannot be found.
        """

        row = connection.execute(
            sa.select(upload_batch_table).where(upload_batch_table.c.batch_id == batch_id)
        ).mappings().first()
        if row is None:
            raise BatchNotFoundError(f"upload batch not found: {batch_id}")
        return self._map_upload_batch_record(row)

    def _map_upload_batch_record(self, row: Any) -> UploadBatchRecord:
        """Map SQLAlchemy row mapping to typed upload batch record.

        Args:
            row: SQLAlchemy mapping row.

        Returns:
            UploadBatchRecord: Typed batch record.

        Raises:
            TypeError: Raised when row structure is incompatible.
        """

        diagnostics_value = row["diagnostics"]
        if diagnostics_value is not None and not isinstance(diagnostics_value, list):
            raise TypeError("upload_batch.diagnostics must be a JSON array when present")

        return UploadBatchRecord(
            batch_id=row["batch_id"],
            status=row["status"],
            uploaded_by=row["uploaded_by"],
            uploaded_sources=tuple(
                source_type for source_type in SourceType if row[db_source_uploaded_column(source_type)]
            ),
            counts=UploadBatchCounts(
                total_records=row["total_records"],
                processed_records=row["processed_records"],
                error_records=row["error_records"],
            ),
            created_at_utc=row["created_at_utc"],
            processing_started_at_utc=row["processing_started_at_utc"],
            processing_completed_at_utc=row["processing_completed_at_utc"],
            errors=row["errors"],
            diagnostics=diagnostics_value,
        )
