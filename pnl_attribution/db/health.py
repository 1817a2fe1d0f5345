"""Database health service for ledger connectivity and schema presence checks."""

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from pnl_attribution.domain import HealthStatus

from .interfaces import DatabaseHealthPort

_DB_LEDGER_REQUIRED_TABLES = ("decision", "trade")


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Database health service backed by SQLAlchemy engine connectivity checks."""

    def __init__(self, engine: Engine):
        """Initialize database health service.

        Args:
            engine: SQLAlchemy engine used for connectivity checks.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the target database URL for diagnostics.

        Returns:
            str: Rendered engine URL string without password.

        Raises:
            RuntimeError: Raised if URL rendering fails.
        """

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Verify connectivity and that the ledger tables the engine reads exist.

        Returns:
            HealthStatus: `ok` when all ledger tables resolve, `degraded` when any is missing.

        Raises:
            ConnectionError: Raised when connectivity check fails.
        """

        try:
            with self._engine.connect() as connection:
                missing_tables = [
                    table_name
                    for table_name in _DB_LEDGER_REQUIRED_TABLES
                    if connection.execute(
                        text("SELECT to_regclass(:table_name) AS table_oid"),
                        {"table_name": table_name},
                    ).scalar()
                    is None
                ]
        except SQLAlchemyError as error:
            raise ConnectionError("database connectivity check failed") from error

        if missing_tables:
            return HealthStatus(
                status="degraded",
                detail=f"missing ledger tables: {', '.join(missing_tables)}",
                missing_tables=tuple(missing_tables),
            )
        return HealthStatus(status="ok", detail="database connectivity and ledger tables verified")
