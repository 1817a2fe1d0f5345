"""Database layer package for all SQL and persistence boundaries."""

from .engine import db_create_engine
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
    AttributedTradeRecord,
    DatabaseHealthPort,
    DecisionRecord,
    LedgerQueryRepositoryPort,
)
from .ledger_query import SQLAlchemyLedgerQueryService

__all__ = [
    "AttributedTradeRecord",
    "DatabaseHealthPort",
    "DecisionRecord",
    "LedgerQueryRepositoryPort",
    "SQLAlchemyDatabaseHealthService",
    "SQLAlchemyLedgerQueryService",
    "db_create_engine",
]
