"""Analytics layer package for attribution aggregation boundaries."""

from .completeness import analytics_compute_data_completeness
from .errors import (
    AttributionBatchSupersededError,
    AttributionError,
    InconsistentSnapshotError,
    QueryFailureError,
    RepairFailedError,
    RepairInProgressError,
)
from .facade import AttributionQueryFacade, LatestBatchGate, analytics_find_inconsistencies
from .grouping import (
    DIMENSION_ORDER_FIRST_SEEN,
    DIMENSION_ORDER_NET_PNL_DESC,
    DIMENSION_ORDERS,
    UNKNOWN_TRIGGER_TYPE,
    analytics_build_trigger_breakdown,
    analytics_group_by_dimension,
    analytics_order_dimension_items,
)
from .interfaces import (
    AttributionBundle,
    AttributionDimension,
    DataCompleteness,
    DimensionItem,
    DimensionResult,
    InconsistentSnapshot,
    LedgerQueryPort,
    ResyncOutcome,
    SummaryMetrics,
    SummaryResult,
    SyncStatus,
    TriggerBreakdown,
    UnattributedBucket,
)
from .metrics import MetricAccumulator, analytics_compute_summary_metrics
from .query_service import LedgerAttributionQueryService
from .time_window import analytics_current_instant, analytics_resolve_time_window

__all__ = [
    "AttributionBatchSupersededError",
    "AttributionBundle",
    "AttributionDimension",
    "AttributionError",
    "AttributionQueryFacade",
    "DIMENSION_ORDERS",
    "DIMENSION_ORDER_FIRST_SEEN",
    "DIMENSION_ORDER_NET_PNL_DESC",
    "DataCompleteness",
    "DimensionItem",
    "DimensionResult",
    "InconsistentSnapshot",
    "InconsistentSnapshotError",
    "LatestBatchGate",
    "LedgerAttributionQueryService",
    "LedgerQueryPort",
    "MetricAccumulator",
    "QueryFailureError",
    "RepairFailedError",
    "RepairInProgressError",
    "ResyncOutcome",
    "SummaryMetrics",
    "SummaryResult",
    "SyncStatus",
    "TriggerBreakdown",
    "UNKNOWN_TRIGGER_TYPE",
    "UnattributedBucket",
    "analytics_build_trigger_breakdown",
    "analytics_compute_data_completeness",
    "analytics_compute_summary_metrics",
    "analytics_current_instant",
    "analytics_find_inconsistencies",
    "analytics_group_by_dimension",
    "analytics_order_dimension_items",
    "analytics_resolve_time_window",
]
