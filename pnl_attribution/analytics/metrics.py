"""Single-pass summary metric aggregation over realized trades."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Protocol

from .interfaces import SummaryMetrics

_ZERO = Decimal("0")


class RealizedAmounts(Protocol):
    """Any record carrying realized PnL and fee amounts."""

    pnl: Decimal
    fee: Decimal


class MetricAccumulator:
    """Running totals for one trade set, folded into `SummaryMetrics` on demand."""

    __slots__ = ("_total_pnl", "_total_fee", "_trade_count", "_win_count", "_loss_count", "_win_sum", "_loss_sum")

    def __init__(self) -> None:
        self._total_pnl = _ZERO
        self._total_fee = _ZERO
        self._trade_count = 0
        self._win_count = 0
        self._loss_count = 0
        self._win_sum = _ZERO
        self._loss_sum = _ZERO

    @property
    def trade_count(self) -> int:
        return self._trade_count

    def add(self, pnl: Decimal, fee: Decimal) -> None:
        """Fold one trade into the running totals.

        Zero-PnL trades count towards `trade_count` but are neither wins nor losses.
        """

        self._total_pnl += pnl
        self._total_fee += fee
        self._trade_count += 1
        if pnl > _ZERO:
            self._win_count += 1
            self._win_sum += pnl
        elif pnl < _ZERO:
            self._loss_count += 1
            self._loss_sum += pnl

    def build(self) -> SummaryMetrics:
        """Build the immutable metrics value for the current totals.

        Returns:
            SummaryMetrics: Metrics with None for averages and profit factor when undefined.
        """

        win_rate = _ZERO if self._trade_count == 0 else Decimal(self._win_count) / Decimal(self._trade_count)
        avg_win = None if self._win_count == 0 else self._win_sum / Decimal(self._win_count)
        avg_loss = None if self._loss_count == 0 else self._loss_sum / Decimal(self._loss_count)

        profit_factor = None
        if avg_loss is not None and avg_loss != _ZERO:
            gross_win = _ZERO if avg_win is None else avg_win * Decimal(self._win_count)
            profit_factor = gross_win / abs(avg_loss * Decimal(self._loss_count))

        return SummaryMetrics(
            total_pnl=self._total_pnl,
            total_fee=self._total_fee,
            net_pnl=self._total_pnl - self._total_fee,
            trade_count=self._trade_count,
            win_count=self._win_count,
            loss_count=self._loss_count,
            win_rate=win_rate,
            avg_win=avg_win,
            avg_loss=avg_loss,
            profit_factor=profit_factor,
        )


def analytics_compute_summary_metrics(trades: Iterable[RealizedAmounts]) -> SummaryMetrics:
    """Compute summary metrics for a finite trade sequence in one pass.

    Args:
        trades: Records exposing `pnl` and `fee` decimals.

    Returns:
        SummaryMetrics: Aggregated metrics, all-zero for an empty sequence.
    """

    accumulator = MetricAccumulator()
    for trade in trades:
        accumulator.add(trade.pnl, trade.fee)
    return accumulator.build()


__all__ = ["MetricAccumulator", "RealizedAmounts", "analytics_compute_summary_metrics"]
