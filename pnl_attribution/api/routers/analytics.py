"""Analytics API router composition for attribution reads and PnL sync workflow."""
# pylint: disable=duplicate-code

from decimal import Decimal
from typing import Mapping

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from pnl_attribution.analytics import (
    DIMENSION_ORDER_NET_PNL_DESC,
    DIMENSION_ORDERS,
    AttributionBundle,
    AttributionDimension,
    AttributionQueryFacade,
    DataCompleteness,
    DimensionItem,
    DimensionResult,
    InconsistentSnapshot,
    InconsistentSnapshotError,
    LedgerQueryPort,
    QueryFailureError,
    RepairFailedError,
    RepairInProgressError,
    SummaryMetrics,
    SummaryResult,
    SyncStatus,
    TriggerBreakdown,
    analytics_current_instant,
    analytics_order_dimension_items,
    analytics_resolve_time_window,
)
from pnl_attribution.config import AppSettings
from pnl_attribution.domain import AttributionFilter, domain_build_attribution_filter, domain_parse_trading_environment
from pnl_attribution.jobs import PnlSyncReconciler, SyncReconcilerSnapshot

_API_DIMENSION_KEY_FIELDS = {
    AttributionDimension.SYMBOL: "symbol",
    AttributionDimension.STRATEGY: "strategy_id",
    AttributionDimension.TRIGGER_TYPE: "trigger_type",
    AttributionDimension.OPERATION: "operation",
}


def api_create_analytics_router(
    settings: AppSettings,
    ledger_query_port: LedgerQueryPort,
    attribution_facade: AttributionQueryFacade,
    sync_reconciler: PnlSyncReconciler,
) -> APIRouter:
    """Create analytics router exposing attribution and PnL sync APIs.

    Args:
        settings: Runtime settings used for defaults.
        ledger_query_port: Attribution query port for single-result endpoints.
        attribution_facade: Batch façade for the combined attribution endpoint.
        sync_reconciler: PnL sync reconciler.

    Returns:
        APIRouter: Router exposing analytics endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if ledger_query_port is None:
        raise ValueError("ledger_query_port must not be None")
    if attribution_facade is None:
        raise ValueError("attribution_facade must not be None")
    if sync_reconciler is None:
        raise ValueError("sync_reconciler must not be None")

    router = APIRouter(prefix="/analytics", tags=["analytics"])

    def api_resolve_filter(
        environment: str | None,
        account_id: str | None,
        start_date: str | None,
        end_date: str | None,
        period: str | None,
    ) -> AttributionFilter:
        if period is not None and (start_date is not None or end_date is not None):
            raise ValueError("period must not be combined with start_date/end_date")
        attribution_filter = domain_build_attribution_filter(
            environment=environment or settings.default_trading_environment,
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
        )
        if period is None:
            return attribution_filter
        return AttributionFilter(
            environment=attribution_filter.environment,
            account_id=attribution_filter.account_id,
            time_window=analytics_resolve_time_window(period, analytics_current_instant(settings.report_timezone)),
        )

    @router.get("/summary")
    def api_analytics_summary(
        environment: str | None = Query(default=None),
        account_id: str | None = Query(default=None),
        start_date: str | None = Query(default=None),
        end_date: str | None = Query(default=None),
        period: str | None = Query(default=None),
    ) -> JSONResponse:
        """Return overall summary, completeness and trigger breakdown for one filter.

        Returns:
            JSONResponse: Summary payload or error envelope.

        Raises:
            RuntimeError: Raised for unexpected failures outside the mapped taxonomy.
        """

        try:
            attribution_filter = api_resolve_filter(environment, account_id, start_date, end_date, period)
        except ValueError as error:
            return api_build_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_FILTER", str(error))

        try:
            summary = ledger_query_port.ledger_get_summary(attribution_filter)
        except RuntimeError as error:
            return api_build_error_response(status.HTTP_502_BAD_GATEWAY, "QUERY_FAILURE", str(error))
        return JSONResponse(content=api_serialize_summary_result(summary), status_code=status.HTTP_200_OK)

    def api_register_dimension_route(dimension: AttributionDimension) -> None:
        @router.get(f"/by-{dimension.value}", name=f"api_analytics_by_{dimension.name.lower()}")
        def api_analytics_by_dimension(
            environment: str | None = Query(default=None),
            account_id: str | None = Query(default=None),
            start_date: str | None = Query(default=None),
            end_date: str | None = Query(default=None),
            period: str | None = Query(default=None),
            order: str = Query(default=DIMENSION_ORDER_NET_PNL_DESC),
        ) -> JSONResponse:
            """Return one attribution dimension breakdown for one filter.

            Returns:
                JSONResponse: Dimension payload or error envelope.

            Raises:
                RuntimeError: Raised for unexpected failures outside the mapped taxonomy.
            """

            if order not in DIMENSION_ORDERS:
                return api_build_error_response(
                    status.HTTP_400_BAD_REQUEST,
                    "INVALID_ORDER",
                    f"unsupported order={order}",
                )
            try:
                attribution_filter = api_resolve_filter(environment, account_id, start_date, end_date, period)
            except ValueError as error:
                return api_build_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_FILTER", str(error))

            try:
                dimension_result = ledger_query_port.ledger_get_by_dimension(dimension, attribution_filter)
            except RuntimeError as error:
                return api_build_error_response(status.HTTP_502_BAD_GATEWAY, "QUERY_FAILURE", str(error))
            return JSONResponse(
                content=api_serialize_dimension_result(dimension_result, order=order),
                status_code=status.HTTP_200_OK,
            )

    for dimension in AttributionDimension:
        api_register_dimension_route(dimension)

    @router.get("/attribution")
    def api_analytics_attribution(
        environment: str | None = Query(default=None),
        account_id: str | None = Query(default=None),
        start_date: str | None = Query(default=None),
        end_date: str | None = Query(default=None),
        period: str | None = Query(default=None),
        order: str = Query(default=DIMENSION_ORDER_NET_PNL_DESC),
    ) -> JSONResponse:
        """Return summary and all four dimensions as one all-or-nothing batch.

        Returns:
            JSONResponse: Batch payload or a single error envelope.

        Raises:
            RuntimeError: Raised for unexpected failures outside the mapped taxonomy.
        """

        if order not in DIMENSION_ORDERS:
            return api_build_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_ORDER", f"unsupported order={order}")
        try:
            attribution_filter = api_resolve_filter(environment, account_id, start_date, end_date, period)
        except ValueError as error:
            return api_build_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_FILTER", str(error))

        try:
            bundle = attribution_facade.analytics_load_attribution(attribution_filter)
        except InconsistentSnapshotError as error:
            payload = {
                "status": "error",
                "code": "INCONSISTENT_SNAPSHOT",
                "message": str(error),
                "inconsistencies": [api_serialize_inconsistency(item) for item in error.inconsistencies],
            }
            return JSONResponse(content=payload, status_code=status.HTTP_409_CONFLICT)
        except QueryFailureError as error:
            payload = {
                "status": "error",
                "code": "QUERY_FAILURE",
                "message": str(error),
                "query": error.query_name,
            }
            return JSONResponse(content=payload, status_code=status.HTTP_502_BAD_GATEWAY)
        return JSONResponse(content=api_serialize_attribution_bundle(bundle, order=order), status_code=status.HTTP_200_OK)

    @router.get("/pnl-sync-status")
    def api_analytics_pnl_sync_status(environment: str | None = Query(default=None)) -> JSONResponse:
        """Check cached PnL staleness for one environment.

        Returns:
            JSONResponse: Sync status payload or error envelope.

        Raises:
            RuntimeError: Raised for unexpected failures outside the mapped taxonomy.
        """

        try:
            resolved_environment = domain_parse_trading_environment(environment or settings.default_trading_environment)
        except ValueError as error:
            return api_build_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_FILTER", str(error))

        try:
            sync_status = sync_reconciler.sync_check(resolved_environment)
        except QueryFailureError as error:
            return api_build_error_response(status.HTTP_502_BAD_GATEWAY, "QUERY_FAILURE", str(error))
        payload = {"environment": resolved_environment.value, **api_serialize_sync_status(sync_status)}
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/pnl-sync")
    def api_analytics_pnl_sync(environment: str | None = Query(default=None)) -> JSONResponse:
        """Check, repair when stale, and recheck cached PnL for one environment.

        Returns:
            JSONResponse: Final sync status payload or error envelope.

        Raises:
            RuntimeError: Raised for unexpected failures outside the mapped taxonomy.
        """

        try:
            resolved_environment = domain_parse_trading_environment(environment or settings.default_trading_environment)
        except ValueError as error:
            return api_build_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_FILTER", str(error))

        try:
            sync_status = sync_reconciler.sync_check_and_repair(resolved_environment)
        except RepairInProgressError as error:
            return api_build_error_response(status.HTTP_409_CONFLICT, "REPAIR_IN_PROGRESS", str(error))
        except RepairFailedError as error:
            payload = {
                "status": "error",
                "code": "REPAIR_FAILED",
                "message": str(error),
                "unsynced_count": error.unsynced_count,
            }
            return JSONResponse(content=payload, status_code=status.HTTP_502_BAD_GATEWAY)
        except QueryFailureError as error:
            return api_build_error_response(status.HTTP_502_BAD_GATEWAY, "QUERY_FAILURE", str(error))
        payload = {"environment": resolved_environment.value, **api_serialize_sync_status(sync_status)}
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/pnl-sync/state")
    def api_analytics_pnl_sync_state(environment: str | None = Query(default=None)) -> JSONResponse:
        """Return the reconciler state for one environment.

        Returns:
            JSONResponse: Reconciler snapshot payload or error envelope.
        """

        try:
            snapshot = sync_reconciler.sync_snapshot(environment or settings.default_trading_environment)
        except ValueError as error:
            return api_build_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_FILTER", str(error))
        return JSONResponse(content=api_serialize_sync_snapshot(snapshot), status_code=status.HTTP_200_OK)

    return router


def api_build_error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """Build the shared error envelope.

    Args:
        status_code: HTTP status code.
        code: Deterministic error code.
        message: Human-readable message.

    Returns:
        JSONResponse: Error envelope response.
    """

    return JSONResponse(content={"status": "error", "code": code, "message": message}, status_code=status_code)


def _api_decimal(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def api_serialize_summary_metrics(metrics: SummaryMetrics) -> dict[str, object]:
    """Serialize summary metrics with decimals as strings and undefined ratios as null."""

    return {
        "total_pnl": _api_decimal(metrics.total_pnl),
        "total_fee": _api_decimal(metrics.total_fee),
        "net_pnl": _api_decimal(metrics.net_pnl),
        "trade_count": metrics.trade_count,
        "win_count": metrics.win_count,
        "loss_count": metrics.loss_count,
        "win_rate": _api_decimal(metrics.win_rate),
        "avg_win": _api_decimal(metrics.avg_win),
        "avg_loss": _api_decimal(metrics.avg_loss),
        "profit_factor": _api_decimal(metrics.profit_factor),
    }


def api_serialize_trigger_breakdown(breakdown: Mapping[str, TriggerBreakdown]) -> dict[str, dict[str, object]]:
    return {
        trigger_type: {"count": item.count, "net_pnl": _api_decimal(item.net_pnl)}
        for trigger_type, item in breakdown.items()
    }


def api_serialize_data_completeness(completeness: DataCompleteness) -> dict[str, int]:
    return {
        "total_decisions": completeness.total_decisions,
        "with_strategy": completeness.with_strategy,
        "with_signal": completeness.with_signal,
        "with_pnl": completeness.with_pnl,
    }


def api_serialize_summary_result(summary: SummaryResult) -> dict[str, object]:
    """Serialize one summary result to JSON payload.

    Args:
        summary: Summary result.

    Returns:
        dict[str, object]: Period, overview, completeness and trigger breakdown.
    """

    return {
        "period": {
            "start": None if summary.period_start is None else summary.period_start.isoformat(),
            "end": None if summary.period_end is None else summary.period_end.isoformat(),
        },
        "overview": api_serialize_summary_metrics(summary.overview),
        "data_completeness": api_serialize_data_completeness(summary.data_completeness),
        "by_trigger_type": api_serialize_trigger_breakdown(summary.by_trigger_type),
    }


def api_serialize_dimension_item(item: DimensionItem) -> dict[str, object]:
    """Serialize one dimension item keyed by its dimension-specific field name."""

    payload: dict[str, object] = {_API_DIMENSION_KEY_FIELDS[item.dimension]: item.key}
    if item.dimension is AttributionDimension.STRATEGY:
        payload["strategy_name"] = item.label
    payload["metrics"] = api_serialize_summary_metrics(item.metrics)
    if item.by_trigger_type is not None:
        payload["by_trigger_type"] = api_serialize_trigger_breakdown(item.by_trigger_type)
    return payload


def api_serialize_dimension_result(dimension_result: DimensionResult, order: str) -> dict[str, object]:
    """Serialize one dimension result with presentation ordering applied.

    Args:
        dimension_result: Dimension result in engine order.
        order: `first_seen` or `net_pnl_desc`.

    Returns:
        dict[str, object]: Items and unattributed bucket payload.

    Raises:
        ValueError: Raised when order is unsupported.
    """

    return {
        "dimension": dimension_result.dimension.value,
        "items": [
            api_serialize_dimension_item(item)
            for item in analytics_order_dimension_items(dimension_result.items, order)
        ],
        "unattributed": {
            "count": dimension_result.unattributed.count,
            "metrics": api_serialize_summary_metrics(dimension_result.unattributed.metrics),
        },
    }


def api_serialize_inconsistency(inconsistency: InconsistentSnapshot) -> dict[str, object]:
    return {
        "dimension": inconsistency.dimension.value,
        "summary_trade_count": inconsistency.summary_trade_count,
        "dimension_trade_count": inconsistency.dimension_trade_count,
        "summary_net_pnl": _api_decimal(inconsistency.summary_net_pnl),
        "dimension_net_pnl": _api_decimal(inconsistency.dimension_net_pnl),
    }


def api_serialize_attribution_bundle(bundle: AttributionBundle, order: str) -> dict[str, object]:
    """Serialize one complete attribution batch.

    Args:
        bundle: Batch returned by the façade.
        order: Presentation order for dimension items.

    Returns:
        dict[str, object]: Filter, summary, four dimensions and warnings.

    Raises:
        ValueError: Raised when order is unsupported.
    """

    return {
        "filters": bundle.attribution_filter.as_query_params(),
        "summary": api_serialize_summary_result(bundle.summary),
        "by_symbol": api_serialize_dimension_result(bundle.by_symbol, order=order),
        "by_strategy": api_serialize_dimension_result(bundle.by_strategy, order=order),
        "by_trigger_type": api_serialize_dimension_result(bundle.by_trigger_type, order=order),
        "by_operation": api_serialize_dimension_result(bundle.by_operation, order=order),
        "warnings": [api_serialize_inconsistency(item) for item in bundle.inconsistencies],
    }


def api_serialize_sync_status(sync_status: SyncStatus) -> dict[str, object]:
    return {"needs_sync": sync_status.needs_sync, "unsynced_count": sync_status.unsynced_count}


def api_serialize_sync_snapshot(snapshot: SyncReconcilerSnapshot) -> dict[str, object]:
    return {
        "environment": snapshot.environment.value,
        "state": snapshot.state.value,
        "unsynced_count": snapshot.unsynced_count,
        "timeline": list(snapshot.timeline),
    }


__all__ = [
    "api_build_error_response",
    "api_create_analytics_router",
    "api_serialize_attribution_bundle",
    "api_serialize_dimension_result",
    "api_serialize_summary_metrics",
    "api_serialize_summary_result",
    "api_serialize_sync_snapshot",
    "api_serialize_sync_status",
]
