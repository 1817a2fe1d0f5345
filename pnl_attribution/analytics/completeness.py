"""Attribute coverage counts over the filtered decision set."""

from __future__ import annotations

from typing import Iterable

from pnl_attribution.db import DecisionRecord

from .interfaces import DataCompleteness


def analytics_compute_data_completeness(decisions: Iterable[DecisionRecord]) -> DataCompleteness:
    """Count how many decisions carry a strategy, a trigger type and a PnL linkage.

    Args:
        decisions: Filtered decisions, before joining to trades.

    Returns:
        DataCompleteness: Coverage counts, each bounded by `total_decisions`.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    total_decisions = 0
    with_strategy = 0
    with_signal = 0
    with_pnl = 0
    for decision in decisions:
        total_decisions += 1
        if decision.strategy_id is not None:
            with_strategy += 1
        if decision.trigger_type is not None and decision.trigger_type.strip():
            with_signal += 1
        if decision.realized_pnl is not None:
            with_pnl += 1

    return DataCompleteness(
        total_decisions=total_decisions,
        with_strategy=with_strategy,
        with_signal=with_signal,
        with_pnl=with_pnl,
    )


__all__ = ["analytics_compute_data_completeness"]
