"""Readiness check for the ledger database: reachable engine, complete schema."""

import sqlalchemy as sa
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from pdr1_ledger.domain import HealthStatus

from .interfaces import DatabaseHealthPort
from .schema import db_metadata


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Reports whether batches can be stored: the engine answers and every ledger table exists."""

    def __init__(self, engine: Engine):
        """Bind the readiness check to one engine.

        Args:
            engine: Engine shared with the batch and canonical store services.

        Raises:
            ValueError: Raised when no engine is supplied.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the target database URL with the password masked."""

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Run `SELECT 1` and list ledger tables absent from the connected schema.

        Returns:
            HealthStatus: `ok` when the schema is complete, `degraded` naming missing tables otherwise.

        Raises:
            ConnectionError: Raised when the engine cannot open a connection or run the query.
        """

        try:
            with self._engine.connect() as connection:
                connection.execute(sa.select(1))
                inspector = sa.inspect(connection)
                missing_tables = sorted(
                    table_name for table_name in db_metadata.tables if not inspector.has_table(table_name)
                )
        except SQLAlchemyError as error:
            raise ConnectionError("database connectivity check failed") from error

        if missing_tables:
            return HealthStatus(status="degraded", detail=f"missing tables: {', '.join(missing_tables)}")
        return HealthStatus(status="ok", detail="database connectivity and schema verified")
