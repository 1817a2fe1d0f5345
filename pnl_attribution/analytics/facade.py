"""All-or-nothing attribution batch over one immutable filter.

The façade resolves the time window once, fans the summary query and the four
dimension queries out onto a thread pool, and returns either the complete batch
or a single `QueryFailureError`. Partial results are never returned.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from datetime import datetime
from typing import Callable

from pnl_attribution.domain import AttributionFilter, PeriodSelector, TradingEnvironment, domain_parse_trading_environment

from .errors import AttributionBatchSupersededError, InconsistentSnapshotError, QueryFailureError
from .interfaces import (
    AttributionBundle,
    AttributionDimension,
    DimensionResult,
    InconsistentSnapshot,
    LedgerQueryPort,
    SummaryResult,
)
from .time_window import analytics_current_instant, analytics_resolve_time_window

logger = logging.getLogger(__name__)

_SUMMARY_QUERY_NAME = "summary"
_DIMENSION_QUERY_ORDER = (
    AttributionDimension.SYMBOL,
    AttributionDimension.STRATEGY,
    AttributionDimension.TRIGGER_TYPE,
    AttributionDimension.OPERATION,
)


class LatestBatchGate:
    """Issue batch tickets so that only the newest batch's results are applied."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest_ticket = 0

    @property
    def latest_ticket(self) -> int:
        with self._lock:
            return self._latest_ticket

    def issue(self) -> int:
        """Issue a new ticket, superseding every earlier one.

        Returns:
            int: Monotonically increasing ticket.
        """

        with self._lock:
            self._latest_ticket += 1
            return self._latest_ticket

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._latest_ticket


class AttributionQueryFacade:
    """Load summary and all four dimension breakdowns for one filter as one batch."""

    def __init__(
        self,
        ledger_query_port: LedgerQueryPort,
        max_workers: int = 5,
        strict_consistency: bool = False,
        report_timezone: str = "UTC",
    ):
        """Initialize façade dependencies.

        Args:
            ledger_query_port: Attribution query port.
            max_workers: Thread pool size for the five concurrent queries.
            strict_consistency: Raise `InconsistentSnapshotError` instead of reporting mismatches.
            report_timezone: IANA timezone used to resolve period selectors.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if ledger_query_port is None:
            raise ValueError("ledger_query_port must not be None")
        if max_workers < 1:
            raise ValueError("max_workers must be positive")
        if not report_timezone.strip():
            raise ValueError("report_timezone must not be blank")

        self._ledger_query_port = ledger_query_port
        self._max_workers = max_workers
        self._strict_consistency = strict_consistency
        self._report_timezone = report_timezone.strip()

    def analytics_load_attribution_for_period(
        self,
        environment: str | TradingEnvironment,
        account_id: int | None,
        period: str | PeriodSelector,
        now: datetime | None = None,
        batch_gate: LatestBatchGate | None = None,
    ) -> AttributionBundle:
        """Resolve one period selector once and load the batch for it.

        Args:
            environment: `testnet` or `mainnet`.
            account_id: Optional positive account id, None for all accounts.
            period: `today`, `week`, `month` or `all`.
            now: Optional current instant, defaults to now in the reporting timezone.
            batch_gate: Optional gate enforcing last-filter-wins.

        Returns:
            AttributionBundle: Complete batch.

        Raises:
            ValueError: Raised when filter values are invalid.
            QueryFailureError: Raised when any of the five queries fails.
            InconsistentSnapshotError: Raised in strict mode when totals do not reconcile.
            AttributionBatchSupersededError: Raised when a newer batch was issued through the gate.
        """

        resolved_now = now or analytics_current_instant(self._report_timezone)
        attribution_filter = AttributionFilter(
            environment=domain_parse_trading_environment(environment),
            account_id=account_id,
            time_window=analytics_resolve_time_window(period, resolved_now),
        )
        return self.analytics_load_attribution(attribution_filter, batch_gate=batch_gate)

    def analytics_load_attribution(
        self,
        attribution_filter: AttributionFilter,
        batch_gate: LatestBatchGate | None = None,
    ) -> AttributionBundle:
        """Run the five queries concurrently and return them as one batch.

        Args:
            attribution_filter: Filter shared by every query in the batch.
            batch_gate: Optional gate enforcing last-filter-wins.

        Returns:
            AttributionBundle: Complete batch with any reconciliation warnings.

        Raises:
            QueryFailureError: Raised when any of the five queries fails.
            InconsistentSnapshotError: Raised in strict mode when totals do not reconcile.
            AttributionBatchSupersededError: Raised when a newer batch was issued through the gate.
        """

        ticket = batch_gate.issue() if batch_gate is not None else None
        logger.debug("attribution batch started filter=%s ticket=%s", attribution_filter.as_query_params(), ticket)

        queries: list[tuple[str, Callable[[], object]]] = [
            (_SUMMARY_QUERY_NAME, lambda: self._ledger_query_port.ledger_get_summary(attribution_filter)),
        ]
        for dimension in _DIMENSION_QUERY_ORDER:
            queries.append(
                (
                    f"by-{dimension.value}",
                    lambda dimension=dimension: self._ledger_query_port.ledger_get_by_dimension(
                        dimension, attribution_filter
                    ),
                )
            )

        results = self._analytics_run_batch(queries)
        summary: SummaryResult = results[_SUMMARY_QUERY_NAME]
        dimension_results: dict[AttributionDimension, DimensionResult] = {
            dimension: results[f"by-{dimension.value}"] for dimension in _DIMENSION_QUERY_ORDER
        }

        if batch_gate is not None and not batch_gate.is_current(ticket):
            latest_ticket = batch_gate.latest_ticket
            logger.info("attribution batch superseded ticket=%s latest_ticket=%s", ticket, latest_ticket)
            raise AttributionBatchSupersededError(
                "attribution batch superseded by a newer filter",
                ticket=ticket,
                latest_ticket=latest_ticket,
            )

        inconsistencies = analytics_find_inconsistencies(summary, dimension_results.values())
        if inconsistencies:
            logger.warning(
                "attribution snapshot inconsistent filter=%s dimensions=%s",
                attribution_filter.as_query_params(),
                [inconsistency.dimension.value for inconsistency in inconsistencies],
            )
            if self._strict_consistency:
                raise InconsistentSnapshotError(
                    "dimension totals do not reconcile with the summary",
                    inconsistencies=inconsistencies,
                )

        logger.debug("attribution batch completed ticket=%s", ticket)
        return AttributionBundle(
            attribution_filter=attribution_filter,
            summary=summary,
            by_symbol=dimension_results[AttributionDimension.SYMBOL],
            by_strategy=dimension_results[AttributionDimension.STRATEGY],
            by_trigger_type=dimension_results[AttributionDimension.TRIGGER_TYPE],
            by_operation=dimension_results[AttributionDimension.OPERATION],
            inconsistencies=inconsistencies,
        )

    def _analytics_run_batch(self, queries: list[tuple[str, Callable[[], object]]]) -> dict[str, object]:
        """Run named queries concurrently, cancelling queued siblings on first failure.

        Args:
            queries: Query names paired with zero-argument callables.

        Returns:
            dict[str, object]: Results keyed by query name.

        Raises:
            QueryFailureError: Raised for the first failed query in declaration order.
        """

        executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="attribution-query")
        try:
            futures: dict[str, Future] = {query_name: executor.submit(query) for query_name, query in queries}
            wait(futures.values(), return_when=FIRST_EXCEPTION)
            for query_name, future in futures.items():
                if future.done() and not future.cancelled() and future.exception() is not None:
                    error = future.exception()
                    for sibling in futures.values():
                        sibling.cancel()
                    logger.warning("attribution query failed query=%s error=%s", query_name, error)
                    if isinstance(error, QueryFailureError):
                        raise error
                    raise QueryFailureError(f"attribution query failed: {query_name}", query_name=query_name) from error
            return {query_name: future.result() for query_name, future in futures.items()}
        finally:
            executor.shutdown(wait=False, cancel_futures=True)


def analytics_find_inconsistencies(
    summary: SummaryResult,
    dimension_results,
) -> tuple[InconsistentSnapshot, ...]:
    """Compare each dimension's totals against the overall summary.

    Args:
        summary: Overall summary for the filter.
        dimension_results: Dimension results for the same filter.

    Returns:
        tuple[InconsistentSnapshot, ...]: One entry per dimension that does not reconcile.
    """

    inconsistencies: list[InconsistentSnapshot] = []
    for dimension_result in dimension_results:
        dimension_trade_count = dimension_result.total_trade_count
        dimension_net_pnl = dimension_result.total_net_pnl
        if (
            dimension_trade_count != summary.overview.trade_count
            or dimension_net_pnl != summary.overview.net_pnl
        ):
            inconsistencies.append(
                InconsistentSnapshot(
                    dimension=dimension_result.dimension,
                    summary_trade_count=summary.overview.trade_count,
                    dimension_trade_count=dimension_trade_count,
                    summary_net_pnl=summary.overview.net_pnl,
                    dimension_net_pnl=dimension_net_pnl,
                )
            )
    return tuple(inconsistencies)


__all__ = ["AttributionQueryFacade", "LatestBatchGate", "analytics_find_inconsistencies"]
