"""Project-native typed exceptions for attribution and PnL sync failures."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .interfaces import InconsistentSnapshot


class AttributionError(RuntimeError):
    """Base exception for attribution engine failures."""


class QueryFailureError(AttributionError):
    """One underlying ledger query failed, aborting its whole batch.

    Attributes:
        query_name: Name of the failed query (`summary`, `by-symbol`, `sync_status`, ...).
    """

    def __init__(self, message: str, query_name: str):
        super().__init__(message)
        self.query_name = query_name


class InconsistentSnapshotError(AttributionError):
    """Dimension totals did not reconcile with the summary under strict consistency.

    Attributes:
        inconsistencies: Per-dimension reconciliation mismatches.
    """

    def __init__(self, message: str, inconsistencies: tuple[InconsistentSnapshot, ...]):
        super().__init__(message)
        self.inconsistencies = inconsistencies


class AttributionBatchSupersededError(AttributionError):
    """A batch completed after a newer batch was issued through the same gate.

    Attributes:
        ticket: Ticket of the superseded batch.
        latest_ticket: Ticket of the newest issued batch.
    """

    def __init__(self, message: str, ticket: int, latest_ticket: int):
        super().__init__(message)
        self.ticket = ticket
        self.latest_ticket = latest_ticket


class RepairInProgressError(AttributionError):
    """A PnL repair was requested while one is already running for the environment.

    Attributes:
        environment: Trading environment label.
    """

    def __init__(self, message: str, environment: str):
        super().__init__(message)
        self.environment = environment


class RepairFailedError(AttributionError):
    """The resync operation failed; cached PnL remains stale.

    Attributes:
        environment: Trading environment label.
        unsynced_count: Stale decision count, unchanged by the failed attempt.
    """

    def __init__(self, message: str, environment: str, unsynced_count: int):
        super().__init__(message)
        self.environment = environment
        self.unsynced_count = unsynced_count
