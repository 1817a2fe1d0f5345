"""Database engine factory.

This module centralizes database connectivity primitives to enforce the db-layer
boundary for all SQLAlchemy usage.
"""

from sqlalchemy import Engine, create_engine


def db_create_engine(database_url: str, pool_size: int = 5) -> Engine:
    """Create the SQLAlchemy engine for ledger database access.

    The pool should hold at least as many connections as the attribution fan-out
    runs concurrent queries.

    Args:
        database_url: SQLAlchemy database URL.
        pool_size: Persistent connection count kept by the pool.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the database URL is blank or pool size is not positive.
    """

    if not database_url.strip():
        raise ValueError("database_url must not be blank")
    if pool_size < 1:
        raise ValueError("pool_size must be positive")

    return create_engine(database_url, pool_pre_ping=True, pool_size=pool_size)
