"""Database service for calculated line-item persistence."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from .interfaces import CalculatedResultRecord, CalculatedResultRepositoryPort
from .schema import calculated_result_table


class SQLAlchemyCalculatedResultService(CalculatedResultRepositoryPort):
    """SQLAlchemy-backed calculated result service."""

    def __init__(self, engine: Engine):
        """Initialize calculated result service.

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

    def db_calculated_result_save(self, results: Sequence[CalculatedResultRecord]) -> int:
        """Persist line-item values, skipping duplicates of (batch, section, date).

        The first value seen for a key wins, both against stored rows and
        within `results`.

        Args:
            results: Values to persist.

        Returns:
            int: Number of rows inserted.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        if not results:
            return 0

        batch_ids = {result.batch_id for result in results}
        created_at_utc = datetime.now(timezone.utc)

        try:
            with self._engine.begin() as connection:
                seen_keys = {
                    (row.batch_id, row.section_id, row.value_date)
                    for row in connection.execute(
                        sa.select(
                            calculated_result_table.c.batch_id,
                            calculated_result_table.c.section_id,
                            calculated_result_table.c.value_date,
                        ).where(calculated_result_table.c.batch_id.in_(batch_ids))
                    )
                }
                rows = []
                for result in results:
                    result_key = (result.batch_id, result.section_id, result.value_date)
                    if result_key in seen_keys:
                        continue
                    seen_keys.add(result_key)
                    rows.append(
                        {
                            "batch_id": result.batch_id,
                            "section_id": result.section_id,
                            "value_date": result.value_date,
                            "value": result.value,
                            "created_at_utc": created_at_utc,
                        }
                    )
                if rows:
                    connection.execute(sa.insert(calculated_result_table), rows)
                return len(rows)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to save calculated results") from error

    def db_calculated_result_list(self, batch_id: UUID) -> list[CalculatedResultRecord]:
        """List persisted line-item values of one batch.

        Args:
            batch_id: Batch identifier.

        Returns:
            list[CalculatedResultRecord]: Values ordered by section code and date text.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    sa.select(
                        calculated_result_table.c.batch_id,
                        calculated_result_table.c.section_id,
                        calculated_result_table.c.value_date,
                        calculated_result_table.c.value,
                    )
                    .where(calculated_result_table.c.batch_id == batch_id)
                    .order_by(calculated_result_table.c.section_id, calculated_result_table.c.value_date)
                ).all()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to list calculated results") from error

        return [
            CalculatedResultRecord(
                batch_id=row.batch_id,
                section_id=row.section_id,
                value_date=row.value_date,
                value=float(row.value),
            )
            for row in rows
        ]
