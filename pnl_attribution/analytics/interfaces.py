"""Typed interfaces for analytics-layer attribution aggregations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Mapping, Protocol

from pnl_attribution.domain import AttributionFilter, TradingEnvironment


class AttributionDimension(str, Enum):
    """Attribution axis that realized PnL is partitioned by."""

    SYMBOL = "symbol"
    STRATEGY = "strategy"
    TRIGGER_TYPE = "trigger-type"
    OPERATION = "operation"


@dataclass(frozen=True)
class SummaryMetrics:
    """Realized performance metrics for one set of trades.

    Attributes:
        total_pnl: Sum of trade PnL.
        total_fee: Sum of trade fees.
        net_pnl: `total_pnl - total_fee`.
        trade_count: Number of trades.
        win_count: Trades with positive PnL.
        loss_count: Trades with negative PnL.
        win_rate: `win_count / trade_count`, zero when there are no trades.
        avg_win: Mean winning PnL, None without wins.
        avg_loss: Mean losing PnL (negative), None without losses.
        profit_factor: Gross win over absolute gross loss, None without losses.
    """

    total_pnl: Decimal
    total_fee: Decimal
    net_pnl: Decimal
    trade_count: int
    win_count: int
    loss_count: int
    win_rate: Decimal
    avg_win: Decimal | None
    avg_loss: Decimal | None
    profit_factor: Decimal | None


@dataclass(frozen=True)
class DataCompleteness:
    """Counts of filtered decisions carrying each optional attribute.

    Attributes:
        total_decisions: Number of decisions in the filtered set.
        with_strategy: Decisions with a strategy reference.
        with_signal: Decisions with a trigger-type tag.
        with_pnl: Decisions with a realized PnL linkage.
    """

    total_decisions: int
    with_strategy: int
    with_signal: int
    with_pnl: int


@dataclass(frozen=True)
class TriggerBreakdown:
    """Trade count and net PnL for one trigger type.

    Attributes:
        count: Number of trades.
        net_pnl: Net PnL of those trades.
    """

    count: int
    net_pnl: Decimal


@dataclass(frozen=True)
class DimensionItem:
    """Metrics for one distinct dimension key.

    Attributes:
        dimension: Attribution axis of the key.
        key: Symbol, strategy id, trigger type or operation value.
        metrics: Metrics of the trades carrying the key.
        label: Optional display label (strategy name for the strategy axis).
        by_trigger_type: Optional nested trigger-type composition of the item.
    """

    dimension: AttributionDimension
    key: str | int
    metrics: SummaryMetrics
    label: str | None = None
    by_trigger_type: Mapping[str, TriggerBreakdown] | None = None


@dataclass(frozen=True)
class UnattributedBucket:
    """Trades whose dimension key is missing.

    Attributes:
        count: Number of unattributed trades.
        metrics: Metrics of the unattributed trades.
    """

    count: int
    metrics: SummaryMetrics


@dataclass(frozen=True)
class DimensionResult:
    """Partition of a filtered trade set along one attribution axis.

    Attributes:
        dimension: Attribution axis.
        items: One item per distinct key, in first-seen key order.
        unattributed: Bucket for trades without a key.
    """

    dimension: AttributionDimension
    items: tuple[DimensionItem, ...]
    unattributed: UnattributedBucket

    @property
    def total_trade_count(self) -> int:
        return sum(item.metrics.trade_count for item in self.items) + self.unattributed.count

    @property
    def total_net_pnl(self) -> Decimal:
        return sum((item.metrics.net_pnl for item in self.items), Decimal("0")) + self.unattributed.metrics.net_pnl


@dataclass(frozen=True)
class SummaryResult:
    """Overall summary for one filter.

    Attributes:
        period_start: Inclusive window start, None for all-time.
        period_end: Inclusive window end, None for all-time.
        overview: Metrics over all matched trades.
        data_completeness: Attribute coverage of matched decisions.
        by_trigger_type: Trade count and net PnL per trigger type.
    """

    period_start: date | None
    period_end: date | None
    overview: SummaryMetrics
    data_completeness: DataCompleteness
    by_trigger_type: Mapping[str, TriggerBreakdown]


@dataclass(frozen=True)
class SyncStatus:
    """Staleness of cached PnL linkages for one environment.

    Attributes:
        needs_sync: Whether any cached linkage drifted from the ledger.
        unsynced_count: Number of stale decisions.
    """

    needs_sync: bool
    unsynced_count: int

    def __post_init__(self) -> None:
        if self.unsynced_count < 0:
            raise ValueError("unsynced_count must not be negative")
        if self.needs_sync != (self.unsynced_count > 0):
            raise ValueError("needs_sync must be true exactly when unsynced_count is positive")

    @classmethod
    def from_count(cls, unsynced_count: int) -> SyncStatus:
        return cls(needs_sync=unsynced_count > 0, unsynced_count=unsynced_count)


@dataclass(frozen=True)
class ResyncOutcome:
    """Result reported by the external resync operation.

    Attributes:
        success: Whether the resync completed.
        updated_count: Number of decisions rewritten.
        detail: Optional failure or diagnostic message.
    """

    success: bool
    updated_count: int = 0
    detail: str | None = None


@dataclass(frozen=True)
class InconsistentSnapshot:
    """Dimension totals that do not reconcile with the overall summary.

    Attributes:
        dimension: Attribution axis that failed to reconcile.
        summary_trade_count: Trade count of the overall summary.
        dimension_trade_count: Items plus unattributed trade count.
        summary_net_pnl: Net PnL of the overall summary.
        dimension_net_pnl: Items plus unattributed net PnL.
    """

    dimension: AttributionDimension
    summary_trade_count: int
    dimension_trade_count: int
    summary_net_pnl: Decimal
    dimension_net_pnl: Decimal


@dataclass(frozen=True)
class AttributionBundle:
    """Complete attribution batch for one filter.

    Attributes:
        attribution_filter: Filter shared by all five results.
        summary: Overall summary result.
        by_symbol: Symbol partition.
        by_strategy: Strategy partition with nested trigger breakdowns.
        by_trigger_type: Trigger-type partition.
        by_operation: Operation partition.
        inconsistencies: Reconciliation warnings, empty when totals agree.
    """

    attribution_filter: AttributionFilter
    summary: SummaryResult
    by_symbol: DimensionResult
    by_strategy: DimensionResult
    by_trigger_type: DimensionResult
    by_operation: DimensionResult
    inconsistencies: tuple[InconsistentSnapshot, ...] = ()

    def dimension_results(self) -> tuple[DimensionResult, ...]:
        return (self.by_symbol, self.by_strategy, self.by_trigger_type, self.by_operation)


class LedgerQueryPort(Protocol):
    """Port definition for attribution reads and the resync operation."""

    def ledger_get_summary(self, attribution_filter: AttributionFilter) -> SummaryResult:
        """Compute overall summary, completeness and trigger breakdown.

        Args:
            attribution_filter: Environment, account and date scope.

        Returns:
            SummaryResult: Summary for the filter.

        Raises:
            RuntimeError: Raised when the ledger read fails.
        """

    def ledger_get_by_dimension(
        self,
        dimension: AttributionDimension,
        attribution_filter: AttributionFilter,
    ) -> DimensionResult:
        """Partition matched trades along one attribution axis.

        Args:
            dimension: Attribution axis.
            attribution_filter: Environment, account and date scope.

        Returns:
            DimensionResult: Items plus unattributed bucket.

        Raises:
            RuntimeError: Raised when the ledger read fails.
        """

    def ledger_get_sync_status(self, environment: TradingEnvironment) -> SyncStatus:
        """Report cached PnL staleness for one environment.

        Args:
            environment: Trading environment scope (accounts are not filtered).

        Returns:
            SyncStatus: Staleness status.

        Raises:
            RuntimeError: Raised when the ledger read fails.
        """

    def ledger_trigger_resync(self, environment: TradingEnvironment) -> ResyncOutcome:
        """Recompute and persist cached PnL linkages for one environment.

        Args:
            environment: Trading environment scope.

        Returns:
            ResyncOutcome: Success flag and updated decision count.

        Raises:
            RuntimeError: Raised when the resync write fails.
        """
