"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI
from sqlalchemy import Engine

from pdr1_ledger.api import create_api_application
from pdr1_ledger.calculations import calculation_build_default_calculators
from pdr1_ledger.config import AppSettings, config_load_settings
from pdr1_ledger.db import (
    SQLAlchemyCalculatedResultService,
    SQLAlchemyCanonicalStoreService,
    SQLAlchemyDatabaseHealthService,
    SQLAlchemySectionQueryService,
    SQLAlchemyUploadBatchService,
    db_create_engine,
)
from pdr1_ledger.jobs import BatchOrchestratorConfig, Pdr1BatchOrchestrator


def bootstrap_build_batch_orchestrator(settings: AppSettings, engine: Engine) -> Pdr1BatchOrchestrator:
    """Wire the batch orchestrator with db services and the default calculators.

    Args:
        settings: Validated application settings.
        engine: SQLAlchemy engine shared by all db services.

    Returns:
        Pdr1BatchOrchestrator: Fully wired orchestrator.

    Raises:
        ValueError: Raised when settings carry invalid orchestration values.
    """

    section_query_service = SQLAlchemySectionQueryService(engine=engine)
    return Pdr1BatchOrchestrator(
        upload_batch_repository=SQLAlchemyUploadBatchService(engine=engine),
        canonical_store=SQLAlchemyCanonicalStoreService(engine=engine),
        calculated_result_repository=SQLAlchemyCalculatedResultService(engine=engine),
        section_query_service=section_query_service,
        calculators=calculation_build_default_calculators(section_query_service),
        config=BatchOrchestratorConfig(
            uploaded_by=settings.institution_code,
            header_scan_row_limit=settings.header_scan_row_limit,
        ),
    )


def bootstrap_create_application() -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    engine = db_create_engine(database_url=settings.database_url)
    return create_api_application(
        settings=settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        upload_batch_repository=SQLAlchemyUploadBatchService(engine=engine),
        batch_orchestrator=bootstrap_build_batch_orchestrator(settings=settings, engine=engine),
    )


def bootstrap_create_batch_orchestrator() -> Pdr1BatchOrchestrator:
    """Build batch orchestrator for non-HTTP trigger surfaces.

    Returns:
        Pdr1BatchOrchestrator: Fully wired orchestrator instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    engine = db_create_engine(database_url=settings.database_url)
    return bootstrap_build_batch_orchestrator(settings=settings, engine=engine)
