"""Health endpoint router reporting service and ledger database readiness."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from pnl_attribution.db import DatabaseHealthPort


def api_create_health_router(db_health_service: DatabaseHealthPort) -> APIRouter:
    """Create health-check router for the attribution service.

    Args:
        db_health_service: DB-layer health service interface.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when db_health_service is invalid.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return service state plus ledger connectivity and table presence.

        A reachable database that lacks ledger tables reports `degraded` with 503.

        Returns:
            JSONResponse: Health payload for operational checks.

        Raises:
            RuntimeError: This handler does not raise runtime errors.
        """

        target = db_health_service.db_connection_label()
        try:
            db_health = db_health_service.db_check_health()
        except ConnectionError as error:
            payload = {"status": "degraded", "app": "up", "database": "down", "detail": str(error), "target": target}
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

        ledger_ready = db_health.is_ready
        payload = {
            "status": "ok" if ledger_ready else "degraded",
            "app": "up",
            "database": db_health.status,
            "detail": db_health.detail,
            "missing_tables": list(db_health.missing_tables),
            "target": target,
        }
        status_code = status.HTTP_200_OK if ledger_ready else status.HTTP_503_SERVICE_UNAVAILABLE
        return JSONResponse(content=payload, status_code=status_code)

    return router
