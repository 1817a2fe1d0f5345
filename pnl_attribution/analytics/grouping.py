"""Dimension grouping of matched trades into attributed and unattributed buckets."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Iterable, Sequence

from pnl_attribution.db import AttributedTradeRecord

from .interfaces import AttributionDimension, DimensionItem, DimensionResult, TriggerBreakdown, UnattributedBucket
from .metrics import MetricAccumulator

UNKNOWN_TRIGGER_TYPE = "unknown"

DIMENSION_ORDER_FIRST_SEEN = "first_seen"
DIMENSION_ORDER_NET_PNL_DESC = "net_pnl_desc"
DIMENSION_ORDERS = (DIMENSION_ORDER_FIRST_SEEN, DIMENSION_ORDER_NET_PNL_DESC)

_DIMENSION_KEY_EXTRACTORS: dict[AttributionDimension, Callable[[AttributedTradeRecord], object]] = {
    AttributionDimension.SYMBOL: lambda record: record.symbol,
    AttributionDimension.STRATEGY: lambda record: record.strategy_id,
    AttributionDimension.TRIGGER_TYPE: lambda record: record.trigger_type,
    AttributionDimension.OPERATION: lambda record: record.operation,
}


def analytics_group_by_dimension(
    records: Iterable[AttributedTradeRecord],
    dimension: AttributionDimension,
    include_trigger_breakdown: bool = False,
) -> DimensionResult:
    """Partition trades by one dimension key and aggregate each partition.

    Items are emitted in first-seen key order so identical input always yields
    identical output. Trades without a key land in the unattributed bucket.

    Args:
        records: Matched trades in deterministic ledger order.
        dimension: Attribution axis.
        include_trigger_breakdown: Nest a trigger-type breakdown inside each item.

    Returns:
        DimensionResult: Items plus unattributed bucket.

    Raises:
        ValueError: Raised when dimension is unsupported.
    """

    extractor = _DIMENSION_KEY_EXTRACTORS.get(dimension)
    if extractor is None:
        raise ValueError(f"unsupported dimension={dimension}")

    accumulators: dict[str | int, MetricAccumulator] = {}
    labels: dict[str | int, str | None] = {}
    grouped_records: dict[str | int, list[AttributedTradeRecord]] = {}
    unattributed = MetricAccumulator()

    for record in records:
        key = _analytics_normalize_key(extractor(record))
        if key is None:
            unattributed.add(record.pnl, record.fee)
            continue
        accumulator = accumulators.get(key)
        if accumulator is None:
            accumulator = accumulators[key] = MetricAccumulator()
            labels[key] = None
        accumulator.add(record.pnl, record.fee)
        if labels[key] is None and dimension is AttributionDimension.STRATEGY:
            labels[key] = _analytics_normalize_label(record.strategy_name)
        if include_trigger_breakdown:
            grouped_records.setdefault(key, []).append(record)

    items = tuple(
        DimensionItem(
            dimension=dimension,
            key=key,
            metrics=accumulator.build(),
            label=labels[key],
            by_trigger_type=analytics_build_trigger_breakdown(grouped_records.get(key, []))
            if include_trigger_breakdown
            else None,
        )
        for key, accumulator in accumulators.items()
    )
    return DimensionResult(
        dimension=dimension,
        items=items,
        unattributed=UnattributedBucket(count=unattributed.trade_count, metrics=unattributed.build()),
    )


def analytics_build_trigger_breakdown(records: Iterable[AttributedTradeRecord]) -> dict[str, TriggerBreakdown]:
    """Build trade count and net PnL per trigger type in first-seen order.

    Args:
        records: Trades to break down; missing trigger types are keyed `unknown`.

    Returns:
        dict[str, TriggerBreakdown]: Breakdown keyed by trigger type.
    """

    counts: dict[str, int] = {}
    net_pnls: dict[str, Decimal] = {}
    for record in records:
        trigger_type = _analytics_normalize_key(record.trigger_type)
        breakdown_key = UNKNOWN_TRIGGER_TYPE if trigger_type is None else str(trigger_type)
        counts[breakdown_key] = counts.get(breakdown_key, 0) + 1
        net_pnls[breakdown_key] = net_pnls.get(breakdown_key, Decimal("0")) + (record.pnl - record.fee)
    return {key: TriggerBreakdown(count=counts[key], net_pnl=net_pnls[key]) for key in counts}


def analytics_order_dimension_items(items: Sequence[DimensionItem], order: str) -> list[DimensionItem]:
    """Order dimension items for presentation.

    Args:
        items: Items in engine (first-seen) order.
        order: `first_seen` or `net_pnl_desc`; sorting is stable.

    Returns:
        list[DimensionItem]: Ordered items.

    Raises:
        ValueError: Raised when order is unsupported.
    """

    if order == DIMENSION_ORDER_FIRST_SEEN:
        return list(items)
    if order == DIMENSION_ORDER_NET_PNL_DESC:
        return sorted(items, key=lambda item: item.metrics.net_pnl, reverse=True)
    raise ValueError(f"unsupported order={order}")


def _analytics_normalize_key(value: object) -> str | int | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    return value


def _analytics_normalize_label(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


__all__ = [
    "DIMENSION_ORDERS",
    "DIMENSION_ORDER_FIRST_SEEN",
    "DIMENSION_ORDER_NET_PNL_DESC",
    "UNKNOWN_TRIGGER_TYPE",
    "analytics_build_trigger_breakdown",
    "analytics_group_by_dimension",
    "analytics_order_dimension_items",
]
