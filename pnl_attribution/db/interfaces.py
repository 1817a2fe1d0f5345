"""Typed interfaces for database-layer services.

All SQL and ORM access must remain in the db package and its submodules.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from pnl_attribution.domain import AttributionFilter, HealthStatus, TradingEnvironment


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


@dataclass(frozen=True)
class DecisionRecord:
    """One attributable trading decision read from the ledger.

    Attributes:
        decision_id: Decision identifier.
        decision_timestamp_utc: Decision timestamp in UTC.
        environment: Trading environment label.
        account_id: Owning trading account identifier.
        strategy_id: Optional originating strategy identifier.
        strategy_name: Optional originating strategy display name.
        trigger_type: Optional trigger-type tag (signal, manual, scheduled, ...).
        operation: Optional execution-operation tag (buy, sell, close, ...).
        symbol: Optional traded symbol.
        realized_pnl: Optional cached realized PnL linkage.
        fee: Optional cached fee linkage.
    """

    decision_id: int
    decision_timestamp_utc: datetime
    environment: str
    account_id: int
    strategy_id: int | None = None
    strategy_name: str | None = None
    trigger_type: str | None = None
    operation: str | None = None
    symbol: str | None = None
    realized_pnl: Decimal | None = None
    fee: Decimal | None = None


@dataclass(frozen=True)
class AttributedTradeRecord:
    """One realized trade joined to its optional originating decision.

    Decision-derived attributes are None when the trade has no decision or the
    decision does not carry the attribute.

    Attributes:
        trade_id: Trade identifier.
        trade_timestamp_utc: Fill timestamp in UTC.
        symbol: Traded symbol.
        pnl: Realized PnL amount.
        fee: Fee amount.
        decision_id: Optional linked decision identifier.
        strategy_id: Optional strategy identifier from the linked decision.
        strategy_name: Optional strategy name from the linked decision.
        trigger_type: Optional trigger-type tag from the linked decision.
        operation: Optional operation tag from the linked decision.
    """

    trade_id: int
    trade_timestamp_utc: datetime
    symbol: str | None
    pnl: Decimal
    fee: Decimal
    decision_id: int | None = None
    strategy_id: int | None = None
    strategy_name: str | None = None
    trigger_type: str | None = None
    operation: str | None = None


class LedgerQueryRepositoryPort(Protocol):
    """Port definition for ledger reads and the cached-PnL resync write."""

    def db_decision_list_for_filter(self, attribution_filter: AttributionFilter) -> list[DecisionRecord]:
        """List decisions matching one filter in deterministic order.

        Args:
            attribution_filter: Environment, account and date scope.

        Returns:
            list[DecisionRecord]: Decisions ordered by timestamp and id.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_attributed_trade_list_for_filter(self, attribution_filter: AttributionFilter) -> list[AttributedTradeRecord]:
        """List trades matching one filter joined to their decisions.

        Args:
            attribution_filter: Environment, account and date scope.

        Returns:
            list[AttributedTradeRecord]: Trades ordered by timestamp and id.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_pnl_unsynced_count(self, environment: TradingEnvironment, tolerance: Decimal) -> int:
        """Count decisions whose cached PnL or fee drifted from the trade ledger.

        Args:
            environment: Trading environment scope.
            tolerance: Absolute difference treated as drift.

        Returns:
            int: Non-negative stale decision count.

        Raises:
            RuntimeError: Raised when database read fails.
        """

    def db_pnl_resync(self, environment: TradingEnvironment, tolerance: Decimal) -> int:
        """Recompute cached PnL and fee linkages from the trade ledger.

        Args:
            environment: Trading environment scope.
            tolerance: Absolute difference treated as drift.

        Returns:
            int: Number of updated decisions.

        Raises:
            RuntimeError: Raised when database write fails.
        """
