"""Database engine and session factory utilities.

This module centralizes database connectivity primitives to enforce the db-layer
boundary for all SQLAlchemy usage.
"""

from sqlalchemy import Engine, create_engine, make_url
from sqlalchemy.pool import StaticPool

from .schema import db_metadata


def db_create_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for application database access.

    In-memory SQLite URLs share one connection so every service sees the same
    database.

    Args:
        database_url: SQLAlchemy database URL.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the database URL is blank.
    """

    if not database_url.strip():
        raise ValueError("database_url must not be blank")

    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


def db_create_schema(engine: Engine) -> None:
    """Create every table of the application schema that does not exist yet.

    Migrations own the PostgreSQL schema; this helper serves local SQLite runs
    and tests.

    Args:
        engine: SQLAlchemy engine instance.

    Returns:
        None: Tables are created in place.

    Raises:
        ValueError: Raised when engine is invalid.
    """

    if engine is None:
        raise ValueError("engine must not be None")

    db_metadata.create_all(engine)
