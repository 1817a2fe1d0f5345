"""Tests for ledger database health checks."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from pnl_attribution.db import SQLAlchemyDatabaseHealthService


class _ScalarResultStub:
    """Stub result exposing a scalar value."""

    def __init__(self, value: object):
        self._value = value

    def scalar(self) -> object:
        return self._value


class _ConnectionStub:
    """Connection stub resolving table names against a known set."""

    def __init__(self, existing_tables: set[str], error: Exception | None = None):
        """Initialize known tables.

        Args:
            existing_tables: Table names that resolve.
            error: Optional error raised by execute().

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: This stub does not raise value errors.
        """

        self._existing_tables = existing_tables
        self._error = error

    def __enter__(self) -> _ConnectionStub:
        return self

    def __exit__(self, exc_type, exc, traceback) -> bool:
        _ = (exc_type, exc, traceback)
        return False

    def execute(self, _statement, parameters: dict) -> _ScalarResultStub:
        """Resolve one table name.

        Args:
            statement: SQL statement.
            parameters: Bound parameters with `table_name`.

        Returns:
            _ScalarResultStub: Table oid stub or None.

        Raises:
            Exception: Raised when an error is configured.
        """

        if self._error is not None:
            raise self._error
        table_name = parameters["table_name"]
        return _ScalarResultStub(table_name if table_name in self._existing_tables else None)


class _EngineStub:
    """Engine stub returning one connection."""

    def __init__(self, connection: _ConnectionStub):
        self._connection = connection

    def connect(self) -> _ConnectionStub:
        return self._connection


def test_db_health_reports_ok_when_ledger_tables_exist() -> None:
    """Report `ok` when decision and trade tables resolve.

    Returns:
        None: Assertions validate health result.

    Raises:
        AssertionError: Raised when status diverges.
    """

    service = SQLAlchemyDatabaseHealthService(engine=_EngineStub(_ConnectionStub({"decision", "trade"})))

    health_status = service.db_check_health()

    assert health_status.status == "ok"
    assert health_status.is_ready is True


def test_db_health_reports_missing_ledger_tables() -> None:
    """Report `degraded` and name every missing ledger table.

    Returns:
        None: Assertions validate health result.

    Raises:
        AssertionError: Raised when missing tables are not reported.
    """

    service = SQLAlchemyDatabaseHealthService(engine=_EngineStub(_ConnectionStub({"decision"})))

    health_status = service.db_check_health()

    assert health_status.status == "degraded"
    assert health_status.missing_tables == ("trade",)
    assert health_status.is_ready is False


def test_db_health_raises_connection_error_on_sqlalchemy_failure() -> None:
    """Raise ConnectionError chained to the SQLAlchemy failure.

    Returns:
        None: Assertions validate error mapping.

    Raises:
        AssertionError: Raised when error is not mapped.
    """

    error = OperationalError("SELECT 1", {}, Exception("connection refused"))
    service = SQLAlchemyDatabaseHealthService(engine=_EngineStub(_ConnectionStub(set(), error=error)))

    with pytest.raises(ConnectionError, match="database connectivity check failed"):
        service.db_check_health()
