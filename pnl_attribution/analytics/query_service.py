"""Ledger-backed implementation of the attribution query port."""
# pylint: disable=too-few-public-methods

from __future__ import annotations

from decimal import Decimal

from pnl_attribution.db import LedgerQueryRepositoryPort
from pnl_attribution.domain import AttributionFilter, TradingEnvironment

from .completeness import analytics_compute_data_completeness
from .grouping import analytics_build_trigger_breakdown, analytics_group_by_dimension
from .interfaces import (
    AttributionDimension,
    DimensionResult,
    LedgerQueryPort,
    ResyncOutcome,
    SummaryResult,
    SyncStatus,
)
from .metrics import analytics_compute_summary_metrics


class LedgerAttributionQueryService(LedgerQueryPort):
    """Compute attribution results from ledger rows read through the db layer."""

    def __init__(self, repository: LedgerQueryRepositoryPort, sync_tolerance: Decimal = Decimal("0.000001")):
        """Initialize query service dependencies.

        Args:
            repository: DB-layer ledger repository.
            sync_tolerance: Absolute cached-vs-ledger difference treated as stale.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when repository is invalid or tolerance is negative.
        """

        if repository is None:
            raise ValueError("repository must not be None")
        if sync_tolerance < 0:
            raise ValueError("sync_tolerance must not be negative")
        self._repository = repository
        self._sync_tolerance = sync_tolerance

    def ledger_get_summary(self, attribution_filter: AttributionFilter) -> SummaryResult:
        """Compute overall summary, completeness and trigger breakdown.

        Args:
            attribution_filter: Environment, account and date scope.

        Returns:
            SummaryResult: Summary for the filter.

        Raises:
            RuntimeError: Raised when the ledger read fails.
        """

        decisions = self._repository.db_decision_list_for_filter(attribution_filter)
        trades = self._repository.db_attributed_trade_list_for_filter(attribution_filter)
        return SummaryResult(
            period_start=attribution_filter.start_date,
            period_end=attribution_filter.end_date,
            overview=analytics_compute_summary_metrics(trades),
            data_completeness=analytics_compute_data_completeness(decisions),
            by_trigger_type=analytics_build_trigger_breakdown(trades),
        )

    def ledger_get_by_dimension(
        self,
        dimension: AttributionDimension,
        attribution_filter: AttributionFilter,
    ) -> DimensionResult:
        """Partition matched trades along one attribution axis.

        The strategy axis nests each strategy's trigger-type composition.

        Args:
            dimension: Attribution axis.
            attribution_filter: Environment, account and date scope.

        Returns:
            DimensionResult: Items plus unattributed bucket.

        Raises:
            ValueError: Raised when dimension is unsupported.
            RuntimeError: Raised when the ledger read fails.
        """

        resolved_dimension = AttributionDimension(dimension)
        trades = self._repository.db_attributed_trade_list_for_filter(attribution_filter)
        return analytics_group_by_dimension(
            trades,
            resolved_dimension,
            include_trigger_breakdown=resolved_dimension is AttributionDimension.STRATEGY,
        )

    def ledger_get_sync_status(self, environment: TradingEnvironment) -> SyncStatus:
        """Report cached PnL staleness for one environment.

        Args:
            environment: Trading environment scope.

        Returns:
            SyncStatus: Staleness status.

        Raises:
            RuntimeError: Raised when the ledger read fails.
        """

        return SyncStatus.from_count(self._repository.db_pnl_unsynced_count(environment, self._sync_tolerance))

    def ledger_trigger_resync(self, environment: TradingEnvironment) -> ResyncOutcome:
        """Recompute and persist cached PnL linkages for one environment.

        Args:
            environment: Trading environment scope.

        Returns:
            ResyncOutcome: Successful outcome with the updated decision count.

        Raises:
            RuntimeError: Raised when the resync write fails.
        """

        updated_count = self._repository.db_pnl_resync(environment, self._sync_tolerance)
        return ResyncOutcome(success=True, updated_count=updated_count)


__all__ = ["LedgerAttributionQueryService"]
