"""Database service for attribution ledger reads and cached-PnL resync.

The `decision` and `trade` tables are owned by the trading system. This service
only reads them, except for `db_pnl_resync`, which rewrites the cached
`realized_pnl`/`fee` columns on `decision` from the authoritative trade rows.
"""
# pylint: disable=duplicate-code

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from pnl_attribution.db.interfaces import AttributedTradeRecord, DecisionRecord, LedgerQueryRepositoryPort
from pnl_attribution.domain import AttributionFilter, TradingEnvironment

logger = logging.getLogger(__name__)


class SQLAlchemyLedgerQueryService(LedgerQueryRepositoryPort):
    """SQLAlchemy implementation for attribution ledger reads and resync writes."""

    _FILTER_ACCOUNT_PREDICATE = "(CAST(:account_id AS bigint) IS NULL OR {alias}.account_id = CAST(:account_id AS bigint)) "
    _FILTER_DATE_PREDICATE = (
        "(CAST(:start_date AS date) IS NULL "
        "OR CAST({column} AT TIME ZONE 'UTC' AS date) >= CAST(:start_date AS date)) "
        "AND (CAST(:end_date AS date) IS NULL "
        "OR CAST({column} AT TIME ZONE 'UTC' AS date) <= CAST(:end_date AS date)) "
    )

    _DECISION_LIST_QUERY = (
        "SELECT "
        "d.decision_id, d.decision_timestamp_utc, d.environment, d.account_id, d.strategy_id, d.strategy_name, "
        "d.trigger_type, d.operation, d.symbol, d.realized_pnl, d.fee "
        "FROM decision d "
        "WHERE d.environment = :environment "
        "AND " + _FILTER_ACCOUNT_PREDICATE.format(alias="d")
        + "AND " + _FILTER_DATE_PREDICATE.format(column="d.decision_timestamp_utc")
        + "ORDER BY d.decision_timestamp_utc asc, d.decision_id asc"
    )

    _ATTRIBUTED_TRADE_LIST_QUERY = (
        "SELECT "
        "t.trade_id, t.trade_timestamp_utc, t.symbol, t.pnl, t.fee, t.decision_id, "
        "d.strategy_id, d.strategy_name, d.trigger_type, d.operation "
        "FROM trade t "
        "LEFT JOIN decision d ON d.decision_id = t.decision_id "
        "WHERE t.environment = :environment "
        "AND " + _FILTER_ACCOUNT_PREDICATE.format(alias="t")
        + "AND " + _FILTER_DATE_PREDICATE.format(column="t.trade_timestamp_utc")
        + "ORDER BY t.trade_timestamp_utc asc, t.trade_id asc"
    )

    _LEDGER_SUMS_CTE = (
        "WITH ledger AS ("
        "SELECT decision_id, SUM(pnl) AS ledger_pnl, SUM(fee) AS ledger_fee "
        "FROM trade "
        "WHERE decision_id IS NOT NULL AND environment = :environment "
        "GROUP BY decision_id"
        ") "
    )
    _STALE_PREDICATE = (
        "(d.realized_pnl IS NULL OR d.fee IS NULL "
        "OR ABS(d.realized_pnl - l.ledger_pnl) > CAST(:tolerance AS numeric) "
        "OR ABS(d.fee - l.ledger_fee) > CAST(:tolerance AS numeric))"
    )

    _UNSYNCED_COUNT_QUERY = (
        _LEDGER_SUMS_CTE
        + "SELECT COUNT(*) AS unsynced_count "
        "FROM decision d JOIN ledger l ON l.decision_id = d.decision_id "
        "WHERE d.environment = :environment AND " + _STALE_PREDICATE
    )

    _RESYNC_QUERY = (
        _LEDGER_SUMS_CTE
        + "UPDATE decision d "
        "SET realized_pnl = l.ledger_pnl, fee = l.ledger_fee, pnl_updated_at_utc = now() "
        "FROM ledger l "
        "WHERE l.decision_id = d.decision_id AND d.environment = :environment AND " + _STALE_PREDICATE + " "
        "RETURNING d.decision_id"
    )

    def __init__(self, engine: Engine):
        """Initialize ledger query database service.

        Args:
            engine: SQLAlchemy engine used for reads and the resync write.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when engine is invalid.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_decision_list_for_filter(self, attribution_filter: AttributionFilter) -> list[DecisionRecord]:
        """List decisions matching one filter in deterministic order.

        Args:
            attribution_filter: Environment, account and date scope.

        Returns:
            list[DecisionRecord]: Decisions ordered by timestamp and id.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(self._DECISION_LIST_QUERY),
                    self._db_ledger_filter_params(attribution_filter),
                ).mappings().all()
        except SQLAlchemyError as error:
            logger.warning("decision read failed environment=%s", attribution_filter.environment.value)
            raise RuntimeError("ledger decision read failed") from error

        return [
            DecisionRecord(
                decision_id=int(row["decision_id"]),
                decision_timestamp_utc=row["decision_timestamp_utc"],
                environment=row["environment"],
                account_id=int(row["account_id"]),
                strategy_id=None if row["strategy_id"] is None else int(row["strategy_id"]),
                strategy_name=row["strategy_name"],
                trigger_type=row["trigger_type"],
                operation=row["operation"],
                symbol=row["symbol"],
                realized_pnl=self._db_ledger_optional_decimal(row["realized_pnl"]),
                fee=self._db_ledger_optional_decimal(row["fee"]),
            )
            for row in rows
        ]

    def db_attributed_trade_list_for_filter(self, attribution_filter: AttributionFilter) -> list[AttributedTradeRecord]:
        """List trades matching one filter joined to their decisions.

        Args:
            attribution_filter: Environment, account and date scope.

        Returns:
            list[AttributedTradeRecord]: Trades ordered by timestamp and id.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(self._ATTRIBUTED_TRADE_LIST_QUERY),
                    self._db_ledger_filter_params(attribution_filter),
                ).mappings().all()
        except SQLAlchemyError as error:
            logger.warning("trade read failed environment=%s", attribution_filter.environment.value)
            raise RuntimeError("ledger trade read failed") from error

        return [
            AttributedTradeRecord(
                trade_id=int(row["trade_id"]),
                trade_timestamp_utc=row["trade_timestamp_utc"],
                symbol=row["symbol"],
                pnl=Decimal(str(row["pnl"] if row["pnl"] is not None else "0")),
                fee=Decimal(str(row["fee"] if row["fee"] is not None else "0")),
                decision_id=None if row["decision_id"] is None else int(row["decision_id"]),
                strategy_id=None if row["strategy_id"] is None else int(row["strategy_id"]),
                strategy_name=row["strategy_name"],
                trigger_type=row["trigger_type"],
                operation=row["operation"],
            )
            for row in rows
        ]

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

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(self._UNSYNCED_COUNT_QUERY),
                    self._db_ledger_sync_params(environment, tolerance),
                ).mappings().one()
        except SQLAlchemyError as error:
            logger.warning("unsynced count read failed environment=%s", environment.value)
            raise RuntimeError("ledger unsynced count read failed") from error

        return int(row["unsynced_count"])

    def db_pnl_resync(self, environment: TradingEnvironment, tolerance: Decimal) -> int:
        """Recompute cached PnL and fee linkages from the trade ledger in one transaction.

        Args:
            environment: Trading environment scope.
            tolerance: Absolute difference treated as drift.

        Returns:
            int: Number of updated decisions.

        Raises:
            RuntimeError: Raised when database write fails.
        """

        try:
            with self._engine.begin() as connection:
                rows = connection.execute(
                    text(self._RESYNC_QUERY),
                    self._db_ledger_sync_params(environment, tolerance),
                ).mappings().all()
        except SQLAlchemyError as error:
            logger.error("pnl resync failed environment=%s", environment.value)
            raise RuntimeError("ledger pnl resync failed") from error

        return len(rows)

    def _db_ledger_filter_params(self, attribution_filter: AttributionFilter) -> dict[str, Any]:
        start_date = attribution_filter.start_date
        end_date = attribution_filter.end_date
        return {
            "environment": attribution_filter.environment.value,
            "account_id": attribution_filter.account_id,
            "start_date": None if start_date is None else start_date.isoformat(),
            "end_date": None if end_date is None else end_date.isoformat(),
        }

    def _db_ledger_sync_params(self, environment: TradingEnvironment, tolerance: Decimal) -> dict[str, Any]:
        if tolerance < 0:
            raise ValueError("tolerance must not be negative")
        return {"environment": environment.value, "tolerance": str(tolerance)}

    def _db_ledger_optional_decimal(self, value: object | None) -> Decimal | None:
        if value is None:
            return None
        return Decimal(str(value))


__all__ = ["SQLAlchemyLedgerQueryService"]
