"""Tests for single-pass summary metric aggregation."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from pnl_attribution.analytics import MetricAccumulator, analytics_compute_summary_metrics
from pnl_attribution.db import AttributedTradeRecord


def _build_trade(trade_id: int, pnl: str, fee: str) -> AttributedTradeRecord:
    """Build one trade record with the given realized amounts.

    Args:
        trade_id: Trade id.
        pnl: Realized PnL as decimal string.
        fee: Fee as decimal string.

    Returns:
        AttributedTradeRecord: Trade record without attribution fields.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return AttributedTradeRecord(
        trade_id=trade_id,
        trade_timestamp_utc=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        symbol="BTCUSDT",
        pnl=Decimal(pnl),
        fee=Decimal(fee),
    )


def test_analytics_summary_metrics_for_win_loss_and_flat_trade() -> None:
    """Aggregate one win, one loss and one zero-PnL trade.

    Returns:
        None: Assertions validate every metric field.

    Raises:
        AssertionError: Raised when a metric diverges from expected value.
    """

    trades = [_build_trade(1, "100", "1"), _build_trade(2, "-40", "1"), _build_trade(3, "0", "0")]

    metrics = analytics_compute_summary_metrics(trades)

    assert metrics.total_pnl == Decimal("60")
    assert metrics.total_fee == Decimal("2")
    assert metrics.net_pnl == Decimal("58")
    assert metrics.trade_count == 3
    assert metrics.win_count == 1
    assert metrics.loss_count == 1
    assert metrics.win_rate == Decimal(1) / Decimal(3)
    assert metrics.avg_win == Decimal("100")
    assert metrics.avg_loss == Decimal("-40")
    assert metrics.profit_factor == Decimal("2.5")


def test_analytics_summary_metrics_for_empty_input_are_zero_with_null_ratios() -> None:
    """Return zero totals and null averages for an empty trade set.

    Returns:
        None: Assertions validate empty-set behavior.

    Raises:
        AssertionError: Raised when empty-set metrics are not neutral.
    """

    metrics = analytics_compute_summary_metrics([])

    assert metrics.trade_count == 0
    assert metrics.net_pnl == Decimal("0")
    assert metrics.win_rate == Decimal("0")
    assert metrics.avg_win is None
    assert metrics.avg_loss is None
    assert metrics.profit_factor is None


def test_analytics_summary_metrics_without_losses_has_null_profit_factor() -> None:
    """Leave profit factor and average loss undefined when nothing lost.

    Returns:
        None: Assertions validate undefined-ratio behavior.

    Raises:
        AssertionError: Raised when profit factor is not null.
    """

    metrics = analytics_compute_summary_metrics([_build_trade(1, "10", "0.5"), _build_trade(2, "30", "0.5")])

    assert metrics.win_count == 2
    assert metrics.win_rate == Decimal("1")
    assert metrics.avg_win == Decimal("20")
    assert metrics.avg_loss is None
    assert metrics.profit_factor is None


def test_analytics_summary_metrics_with_only_losses_has_zero_profit_factor() -> None:
    """Report a zero profit factor when losses exist but no wins.

    Returns:
        None: Assertions validate loss-only behavior.

    Raises:
        AssertionError: Raised when profit factor is not zero.
    """

    metrics = analytics_compute_summary_metrics([_build_trade(1, "-5", "0"), _build_trade(2, "-15", "1")])

    assert metrics.avg_win is None
    assert metrics.avg_loss == Decimal("-10")
    assert metrics.profit_factor == Decimal("0")
    assert metrics.net_pnl == Decimal("-21")


def test_analytics_metric_accumulator_counts_zero_pnl_as_trade_only() -> None:
    """Count a zero-PnL trade without classifying it as win or loss.

    Returns:
        None: Assertions validate classification.

    Raises:
        AssertionError: Raised when a flat trade is classified.
    """

    accumulator = MetricAccumulator()
    accumulator.add(Decimal("0"), Decimal("0.25"))

    metrics = accumulator.build()

    assert accumulator.trade_count == 1
    assert metrics.win_count == 0
    assert metrics.loss_count == 0
    assert metrics.net_pnl == Decimal("-0.25")
