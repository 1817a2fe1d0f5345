"""Tests for decision attribute coverage counts."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from pnl_attribution.analytics import analytics_compute_data_completeness
from pnl_attribution.db import DecisionRecord


def _build_decision(decision_id: int, **fields) -> DecisionRecord:
    """Build one decision record with optional attribute overrides.

    Args:
        decision_id: Decision id.
        **fields: Optional attribute overrides.

    Returns:
        DecisionRecord: Decision in the mainnet environment.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return DecisionRecord(
        decision_id=decision_id,
        decision_timestamp_utc=datetime(2024, 3, 1, tzinfo=timezone.utc),
        environment="mainnet",
        account_id=1,
        **fields,
    )


def test_analytics_data_completeness_counts_each_attribute() -> None:
    """Count strategy, signal and PnL linkage coverage independently.

    Returns:
        None: Assertions validate counts.

    Raises:
        AssertionError: Raised when counts diverge.
    """

    decisions = [
        _build_decision(1, strategy_id=7, trigger_type="signal", realized_pnl=Decimal("3")),
        _build_decision(2, strategy_id=7, trigger_type=" "),
        _build_decision(3, realized_pnl=Decimal("0")),
        _build_decision(4),
    ]

    completeness = analytics_compute_data_completeness(decisions)

    assert completeness.total_decisions == 4
    assert completeness.with_strategy == 2
    assert completeness.with_signal == 1
    assert completeness.with_pnl == 2


def test_analytics_data_completeness_for_no_decisions_is_zero() -> None:
    """Return all-zero counts for an empty decision set.

    Returns:
        None: Assertions validate empty-set behavior.

    Raises:
        AssertionError: Raised when counts are not zero.
    """

    completeness = analytics_compute_data_completeness([])

    assert completeness.total_decisions == 0
    assert completeness.with_strategy == completeness.with_signal == completeness.with_pnl == 0
