"""Database service for canonical record persistence."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Sequence
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from pdr1_ledger.domain import REFERENCE_SOURCE_TYPES, RECORD_TYPES, CanonicalRecord, SourceType

from .interfaces import CanonicalStorePort
from .schema import SOURCE_TABLES

_log = logging.getLogger(__name__)


class SQLAlchemyCanonicalStoreService(CanonicalStorePort):
    """SQLAlchemy implementation of canonical record writes.

    Deal and position sources use replace semantics per batch; reference price
    lists (G-Sec, SDL) are first-write-wins on ISIN across batches.
    """

    def __init__(self, engine: Engine):
        """Initialize canonical store service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when engine is invalid.
        """

        if engine is None:
            raise ValueError("engine must not be None")

        self._engine = engine

    def db_canonical_replace_records(
        self,
        batch_id: UUID,
        source_type: SourceType,
        records: Sequence[CanonicalRecord],
    ) -> int:
        """Replace all records of one source type for one batch.

        Delete and insert run in one transaction, so a failed insert leaves the
        previous records in place.

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

        table = SOURCE_TABLES[source_type]
        rows = [self._db_canonical_row_values(batch_id, source_type, record) for record in records]

        try:
            with self._engine.begin() as connection:
                deleted = connection.execute(sa.delete(table).where(table.c.upload_batch_id == batch_id)).rowcount
                if rows:
                    connection.execute(sa.insert(table), rows)
        except SQLAlchemyError as error:
            raise RuntimeError(f"failed to replace {source_type.value} records") from error

        _log.info(
            "Replaced %s records for batch %s: %d deleted, %d inserted",
            source_type.value,
            batch_id,
            deleted,
            len(rows),
        )
        return len(rows)

    def db_canonical_insert_reference_records(
        self,
        batch_id: UUID,
        source_type: SourceType,
        records: Sequence[CanonicalRecord],
    ) -> int:
        """Insert reference price-list records, skipping ISINs already stored.

        Each record is written in its own transaction; a uniqueness conflict
        from a concurrent writer counts as a skip.

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

        if source_type not in REFERENCE_SOURCE_TYPES:
            raise ValueError(f"source_type={source_type.value} is not reference data")

        table = SOURCE_TABLES[source_type]
        inserted_count = 0
        skipped_count = 0
        for record in records:
            row_values = self._db_canonical_row_values(batch_id, source_type, record)
            try:
                with self._engine.begin() as connection:
                    existing_row = connection.execute(
                        sa.select(table.c.record_id).where(table.c.isin == row_values["isin"]).limit(1)
                    ).first()
                    if existing_row is not None:
                        skipped_count += 1
                        continue
                    connection.execute(sa.insert(table).values(**row_values))
                    inserted_count += 1
            except IntegrityError:
                skipped_count += 1
                _log.info("Skipped %s ISIN %s inserted concurrently", source_type.value, row_values["isin"])
            except SQLAlchemyError as error:
                raise RuntimeError(f"failed to insert {source_type.value} reference records") from error

        _log.info(
            "Inserted %d %s reference records for batch %s (%d existing ISINs skipped)",
            inserted_count,
            source_type.value,
            batch_id,
            skipped_count,
        )
        return inserted_count

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

        table = SOURCE_TABLES[source_type]
        try:
            with self._engine.connect() as connection:
                return int(
                    connection.execute(
                        sa.select(sa.func.count()).select_from(table).where(table.c.upload_batch_id == batch_id)
                    ).scalar_one()
                )
        except SQLAlchemyError as error:
            raise RuntimeError(f"failed to count {source_type.value} records") from error

    def _db_canonical_row_values(
        self,
        batch_id: UUID,
        source_type: SourceType,
        record: CanonicalRecord,
    ) -> dict[str, Any]:
        """Build insert values for one canonical record.

        Args:
            batch_id: Owning batch identifier.
            source_type: Target source type.
            record: Canonical record.

        Returns:
            dict[str, Any]: Column values including keys.

        Raises:
            ValueError: Raised when the record type does not match the source type.
        """

        if not isinstance(record, RECORD_TYPES[source_type]):
            raise ValueError(f"{type(record).__name__} cannot be stored as {source_type.value}")
        return {"record_id": uuid4(), "upload_batch_id": batch_id, **asdict(record)}
