"""Typed domain models shared across runtime layers."""

from dataclasses import dataclass


@dataclass(frozen=True)
class HealthStatus:
    """Ledger database readiness reported by health-check surfaces.

    Attributes:
        status: `ok` when the ledger is readable, `degraded` otherwise.
        detail: Message suitable for operational diagnostics.
        missing_tables: Ledger tables the attribution queries need but cannot resolve.
    """

    status: str
    detail: str
    missing_tables: tuple[str, ...] = ()

    @property
    def is_ready(self) -> bool:
        return self.status == "ok" and not self.missing_tables
