"""FastAPI application factory for the attribution service."""

from fastapi import FastAPI

from pnl_attribution.analytics import AttributionQueryFacade, LedgerQueryPort
from pnl_attribution.config import AppSettings
from pnl_attribution.db import DatabaseHealthPort
from pnl_attribution.jobs import PnlSyncReconciler

from .routers import api_create_analytics_router, api_create_health_router


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    ledger_query_port: LedgerQueryPort,
    attribution_facade: AttributionQueryFacade,
    sync_reconciler: PnlSyncReconciler,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata and defaults.
        db_health_service: Database health service used by health endpoints.
        ledger_query_port: Attribution query port for single-result endpoints.
        attribution_facade: Batch façade for the combined attribution endpoint.
        sync_reconciler: PnL sync reconciler for check and repair endpoints.

    Returns:
        FastAPI: Framework application instance with all routers mounted.

    Raises:
        ValueError: Raised when router dependencies are invalid.
    """
    application = FastAPI(title="PnL Attribution")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service identity for bootstrap verification."""

        return {
            "service": "pnl-attribution",
            "status": "ready",
            "environment": settings.environment_name,
            "trading_environment": settings.default_trading_environment,
        }

    application.include_router(api_create_health_router(db_health_service=db_health_service))
    application.include_router(
        api_create_analytics_router(
            settings=settings,
            ledger_query_port=ledger_query_port,
            attribution_facade=attribution_facade,
            sync_reconciler=sync_reconciler,
        )
    )

    return application
