"""`/health` route reporting whether the ledger can accept uploads."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from pdr1_ledger.db import DatabaseHealthPort


def api_create_health_router(db_health_service: DatabaseHealthPort) -> APIRouter:
    """Build the readiness router around one database health service.

    Args:
        db_health_service: Service that checks connectivity and ledger tables.

    Returns:
        APIRouter: Router with the single `/health` route.

    Raises:
        ValueError: Raised when no health service is supplied.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Report process liveness alongside database readiness.

        A reachable database with missing tables reports `degraded`; an
        unreachable one reports `down`.

        Returns:
            JSONResponse: 200 only when the database is ready, 503 otherwise.
        """

        try:
            db_health = db_health_service.db_check_health()
        except ConnectionError as error:
            payload = {
                "status": "degraded",
                "app": "up",
                "database": "down",
                "detail": str(error),
                "target": db_health_service.db_connection_label(),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

        database_ready = db_health.status == "ok"
        payload = {
            "status": "ok" if database_ready else "degraded",
            "app": "up",
            "database": db_health.status,
            "detail": db_health.detail,
            "target": db_health_service.db_connection_label(),
        }
        return JSONResponse(
            content=payload,
            status_code=status.HTTP_200_OK if database_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return router
