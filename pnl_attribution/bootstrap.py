"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI

from pnl_attribution.analytics import AttributionQueryFacade, LedgerAttributionQueryService
from pnl_attribution.api import create_api_application
from pnl_attribution.config import AppSettings, config_load_settings
from pnl_attribution.db import SQLAlchemyDatabaseHealthService, SQLAlchemyLedgerQueryService, db_create_engine
from pnl_attribution.jobs import PnlSyncReconciler


def bootstrap_create_application() -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    engine = db_create_engine(database_url=settings.database_url, pool_size=settings.attribution_query_max_workers)
    ledger_query_service = LedgerAttributionQueryService(
        repository=SQLAlchemyLedgerQueryService(engine=engine),
        sync_tolerance=settings.pnl_sync_tolerance,
    )
    return create_api_application(
        settings=settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        ledger_query_port=ledger_query_service,
        attribution_facade=bootstrap_build_attribution_facade(settings, ledger_query_service),
        sync_reconciler=PnlSyncReconciler(ledger_query_port=ledger_query_service),
    )


def bootstrap_create_ledger_query_service(settings: AppSettings) -> LedgerAttributionQueryService:
    """Build the ledger-backed attribution query service for non-HTTP surfaces.

    Args:
        settings: Validated runtime settings.

    Returns:
        LedgerAttributionQueryService: Query service bound to a fresh engine.

    Raises:
        ValueError: Raised when database settings are invalid.
    """

    engine = db_create_engine(database_url=settings.database_url, pool_size=settings.attribution_query_max_workers)
    return LedgerAttributionQueryService(
        repository=SQLAlchemyLedgerQueryService(engine=engine),
        sync_tolerance=settings.pnl_sync_tolerance,
    )


def bootstrap_build_attribution_facade(
    settings: AppSettings,
    ledger_query_service: LedgerAttributionQueryService,
) -> AttributionQueryFacade:
    return AttributionQueryFacade(
        ledger_query_port=ledger_query_service,
        max_workers=settings.attribution_query_max_workers,
        strict_consistency=settings.attribution_strict_consistency,
        report_timezone=settings.report_timezone,
    )
