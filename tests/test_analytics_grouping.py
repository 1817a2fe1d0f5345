"""Tests for dimension grouping, unattributed buckets and presentation order."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from pnl_attribution.analytics import (
    AttributionDimension,
    analytics_build_trigger_breakdown,
    analytics_compute_summary_metrics,
    analytics_group_by_dimension,
    analytics_order_dimension_items,
)
from pnl_attribution.db import AttributedTradeRecord


def _build_trades() -> list[AttributedTradeRecord]:
    """Build a deterministic trade set with partial attribution.

    Returns:
        list[AttributedTradeRecord]: Trades in ledger order.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    timestamp = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    return [
        AttributedTradeRecord(
            trade_id=1,
            trade_timestamp_utc=timestamp,
            symbol="ETHUSDT",
            pnl=Decimal("10"),
            fee=Decimal("1"),
            decision_id=11,
            strategy_id=7,
            strategy_name="Mean Reversion",
            trigger_type="signal",
            operation="buy",
        ),
        AttributedTradeRecord(
            trade_id=2,
            trade_timestamp_utc=timestamp,
            symbol="BTCUSDT",
            pnl=Decimal("50"),
            fee=Decimal("2"),
            decision_id=12,
            strategy_id=3,
            strategy_name="Breakout",
            trigger_type="manual",
            operation="sell",
        ),
        AttributedTradeRecord(
            trade_id=3,
            trade_timestamp_utc=timestamp,
            symbol="ETHUSDT",
            pnl=Decimal("-4"),
            fee=Decimal("1"),
            decision_id=13,
            strategy_id=7,
            strategy_name="Mean Reversion",
            trigger_type=None,
            operation="close",
        ),
        AttributedTradeRecord(
            trade_id=4,
            trade_timestamp_utc=timestamp,
            symbol="SOLUSDT",
            pnl=Decimal("5"),
            fee=Decimal("0.5"),
        ),
    ]


def test_analytics_group_by_symbol_keeps_first_seen_order() -> None:
    """Emit symbol items in the order each key first appears.

    Returns:
        None: Assertions validate item order and metrics.

    Raises:
        AssertionError: Raised when order or metrics diverge.
    """

    result = analytics_group_by_dimension(_build_trades(), AttributionDimension.SYMBOL)

    assert [item.key for item in result.items] == ["ETHUSDT", "BTCUSDT", "SOLUSDT"]
    assert result.items[0].metrics.trade_count == 2
    assert result.items[0].metrics.net_pnl == Decimal("4")
    assert result.unattributed.count == 0


def test_analytics_group_by_strategy_routes_unlinked_trades_to_unattributed() -> None:
    """Put trades without a strategy into the unattributed bucket.

    Returns:
        None: Assertions validate bucket contents and labels.

    Raises:
        AssertionError: Raised when bucket or labels diverge.
    """

    result = analytics_group_by_dimension(
        _build_trades(),
        AttributionDimension.STRATEGY,
        include_trigger_breakdown=True,
    )

    assert [item.key for item in result.items] == [7, 3]
    assert [item.label for item in result.items] == ["Mean Reversion", "Breakout"]
    assert result.unattributed.count == 1
    assert result.unattributed.metrics.net_pnl == Decimal("4.5")
    mean_reversion_breakdown = result.items[0].by_trigger_type
    assert mean_reversion_breakdown is not None
    assert mean_reversion_breakdown["signal"].count == 1
    assert mean_reversion_breakdown["signal"].net_pnl == Decimal("9")
    assert mean_reversion_breakdown["unknown"].net_pnl == Decimal("-5")


def test_analytics_group_by_dimension_reconciles_with_summary() -> None:
    """Sum items plus unattributed bucket back to the overall summary on every axis.

    Returns:
        None: Assertions validate reconciliation.

    Raises:
        AssertionError: Raised when totals diverge.
    """

    trades = _build_trades()
    summary = analytics_compute_summary_metrics(trades)

    for dimension in AttributionDimension:
        result = analytics_group_by_dimension(trades, dimension)
        assert result.total_trade_count == summary.trade_count
        assert result.total_net_pnl == summary.net_pnl


def test_analytics_group_by_dimension_is_deterministic() -> None:
    """Return identical results for identical input.

    Returns:
        None: Assertions validate idempotence.

    Raises:
        AssertionError: Raised when repeated grouping differs.
    """

    first = analytics_group_by_dimension(_build_trades(), AttributionDimension.TRIGGER_TYPE)
    second = analytics_group_by_dimension(_build_trades(), AttributionDimension.TRIGGER_TYPE)

    assert first == second
    assert [item.key for item in first.items] == ["signal", "manual"]
    assert first.items[0].by_trigger_type is None


def test_analytics_group_by_dimension_treats_blank_keys_as_unattributed() -> None:
    """Treat whitespace-only keys as missing.

    Returns:
        None: Assertions validate blank-key handling.

    Raises:
        AssertionError: Raised when blank key forms an item.
    """

    trade = AttributedTradeRecord(
        trade_id=9,
        trade_timestamp_utc=datetime(2024, 3, 1, tzinfo=timezone.utc),
        symbol="BTCUSDT",
        pnl=Decimal("1"),
        fee=Decimal("0"),
        operation="  ",
    )

    result = analytics_group_by_dimension([trade], AttributionDimension.OPERATION)

    assert result.items == ()
    assert result.unattributed.count == 1


def test_analytics_build_trigger_breakdown_keys_missing_type_as_unknown() -> None:
    """Key trades without a trigger type as `unknown`.

    Returns:
        None: Assertions validate breakdown keys.

    Raises:
        AssertionError: Raised when keys diverge.
    """

    breakdown = analytics_build_trigger_breakdown(_build_trades())

    assert list(breakdown) == ["signal", "manual", "unknown"]
    assert breakdown["unknown"].count == 2
    assert breakdown["unknown"].net_pnl == Decimal("-0.5")


def test_analytics_order_dimension_items_by_net_pnl() -> None:
    """Sort items by net PnL descending for presentation only.

    Returns:
        None: Assertions validate ordering modes.

    Raises:
        AssertionError: Raised when ordering diverges.
    """

    result = analytics_group_by_dimension(_build_trades(), AttributionDimension.SYMBOL)

    ordered = analytics_order_dimension_items(result.items, "net_pnl_desc")

    assert [item.key for item in ordered] == ["BTCUSDT", "SOLUSDT", "ETHUSDT"]
    assert [item.key for item in analytics_order_dimension_items(result.items, "first_seen")] == [
        "ETHUSDT",
        "BTCUSDT",
        "SOLUSDT",
    ]
    with pytest.raises(ValueError, match="unsupported order"):
        analytics_order_dimension_items(result.items, "alphabetical")
