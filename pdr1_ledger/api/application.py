"""HTTP surface of the PDR1 ledger: index, readiness and batch routes."""

from fastapi import FastAPI

from pdr1_ledger.config import AppSettings
from pdr1_ledger.db import DatabaseHealthPort, UploadBatchRepositoryPort
from pdr1_ledger.jobs import BatchOrchestratorPort

from .routers import api_create_batches_router, api_create_health_router


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    upload_batch_repository: UploadBatchRepositoryPort,
    batch_orchestrator: BatchOrchestratorPort,
) -> FastAPI:
    """Assemble the ledger API from already wired services.

    Args:
        settings: Settings supplying environment, institution and paging limits.
        db_health_service: Readiness check behind `/health`.
        upload_batch_repository: Batch lookups behind the list and detail routes.
        batch_orchestrator: Upload processing and stored result rebuilding.

    Returns:
        FastAPI: Application with every ledger router mounted.

    Raises:
        ValueError: Raised when a router is given a missing service.
    """
    application = FastAPI(title="PDR1 Report Ledger")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Identify the running ledger and the institution it reports for."""

        return {
            "service": "pdr1-report-ledger",
            "status": "ready",
            "environment": settings.environment_name,
            "institution": settings.institution_code,
        }

    application.include_router(api_create_health_router(db_health_service=db_health_service))
    application.include_router(
        api_create_batches_router(
            settings=settings,
            upload_batch_repository=upload_batch_repository,
            batch_orchestrator=batch_orchestrator,
        )
    )

    return application
