"""Job-layer reconciler that detects and repairs stale cached PnL linkages.

State is tracked per trading environment and never persisted:

    Idle/InSync/NeedsSync --check--> Checking --> InSync | NeedsSync(count)
    NeedsSync --repair--> Syncing --success--> Checking --> ...
                                  --failure--> NeedsSync(count)

At most one repair runs per environment. Checks issued while a repair runs
report what the ledger shows without touching the state. Every state write
bumps a per-environment generation; a check only applies its result when no
other transition started after it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum

from pnl_attribution.analytics import (
    LedgerQueryPort,
    QueryFailureError,
    RepairFailedError,
    RepairInProgressError,
    SyncStatus,
)
from pnl_attribution.domain import TradingEnvironment, domain_build_stage_event, domain_parse_trading_environment

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    """Reconciler lifecycle state for one environment."""

    IDLE = "idle"
    CHECKING = "checking"
    IN_SYNC = "in_sync"
    NEEDS_SYNC = "needs_sync"
    SYNCING = "syncing"


@dataclass(frozen=True)
class SyncReconcilerSnapshot:
    """Point-in-time reconciler state for one environment.

    Attributes:
        environment: Trading environment.
        state: Current lifecycle state.
        unsynced_count: Last observed stale decision count.
        timeline: Stage events of the latest repair attempt.
    """

    environment: TradingEnvironment
    state: SyncState
    unsynced_count: int
    timeline: tuple[dict[str, object], ...] = ()


class PnlSyncReconciler:
    """Check cached PnL staleness and drive the resync workflow per environment."""

    def __init__(self, ledger_query_port: LedgerQueryPort):
        """Initialize reconciler dependencies.

        Args:
            ledger_query_port: Port exposing sync status and the resync operation.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when the port is invalid.
        """

        if ledger_query_port is None:
            raise ValueError("ledger_query_port must not be None")
        self._ledger_query_port = ledger_query_port
        self._state_lock = threading.Lock()
        self._repair_locks = {environment: threading.Lock() for environment in TradingEnvironment}
        self._generations = {environment: 0 for environment in TradingEnvironment}
        self._snapshots = {
            environment: SyncReconcilerSnapshot(environment=environment, state=SyncState.IDLE, unsynced_count=0)
            for environment in TradingEnvironment
        }

    def sync_snapshot(self, environment: str | TradingEnvironment) -> SyncReconcilerSnapshot:
        """Return the current reconciler state for one environment.

        Args:
            environment: `testnet` or `mainnet`.

        Returns:
            SyncReconcilerSnapshot: Current state.

        Raises:
            ValueError: Raised when environment is unsupported.
        """

        resolved_environment = domain_parse_trading_environment(environment)
        with self._state_lock:
            return self._snapshots[resolved_environment]

    def sync_check(self, environment: str | TradingEnvironment) -> SyncStatus:
        """Query staleness and transition to InSync or NeedsSync.

        A check that finishes after a later check or repair started reports what it
        observed but leaves the state to the later transition.

        Args:
            environment: `testnet` or `mainnet`; accounts are not filtered.

        Returns:
            SyncStatus: Observed staleness.

        Raises:
            ValueError: Raised when environment is unsupported.
            QueryFailureError: Raised when the status query fails; the prior state is restored
                unless a later transition started meanwhile.
        """

        resolved_environment = domain_parse_trading_environment(environment)
        with self._state_lock:
            previous_snapshot = self._snapshots[resolved_environment]
            generation = None
            if previous_snapshot.state is not SyncState.SYNCING:
                generation = self._sync_set_state(resolved_environment, SyncState.CHECKING)

        if generation is None:
            return self._sync_query_status(resolved_environment)
        return self._sync_complete_check(resolved_environment, generation, fallback_snapshot=previous_snapshot)

    def sync_repair(self, environment: str | TradingEnvironment) -> SyncStatus:
        """Run the resync operation and recheck staleness afterwards.

        When the environment is not currently known to need a sync, a check runs
        first and the resync is skipped if nothing is stale.

        Args:
            environment: `testnet` or `mainnet`.

        Returns:
            SyncStatus: Status observed by the post-repair recheck.

        Raises:
            ValueError: Raised when environment is unsupported.
            RepairInProgressError: Raised when a repair already runs for the environment.
            RepairFailedError: Raised when the resync fails; state stays NeedsSync with the same count.
            QueryFailureError: Raised when a status query fails.
        """

        resolved_environment = domain_parse_trading_environment(environment)
        repair_lock = self._repair_locks[resolved_environment]
        if not repair_lock.acquire(blocking=False):
            logger.info("pnl repair rejected environment=%s reason=in_progress", resolved_environment.value)
            raise RepairInProgressError(
                f"pnl repair already in progress for {resolved_environment.value}",
                environment=resolved_environment.value,
            )

        try:
            if self.sync_snapshot(resolved_environment).state is not SyncState.NEEDS_SYNC:
                status = self.sync_check(resolved_environment)
                if not status.needs_sync:
                    return status
            return self._sync_run_repair(resolved_environment)
        finally:
            repair_lock.release()

    def sync_check_and_repair(self, environment: str | TradingEnvironment) -> SyncStatus:
        """Check staleness, repair when needed, and recheck as one logical unit.

        Args:
            environment: `testnet` or `mainnet`.

        Returns:
            SyncStatus: Final observed staleness.

        Raises:
            ValueError: Raised when environment is unsupported.
            RepairInProgressError: Raised when a repair already runs for the environment.
            RepairFailedError: Raised when the resync fails.
            QueryFailureError: Raised when a status query fails.
        """

        status = self.sync_check(environment)
        if not status.needs_sync:
            return status
        return self.sync_repair(environment)

    def _sync_run_repair(self, environment: TradingEnvironment) -> SyncStatus:
        """Transition NeedsSync -> Syncing -> Checking and return the recheck result."""

        with self._state_lock:
            unsynced_count = self._snapshots[environment].unsynced_count
            timeline: list[dict[str, object]] = [
                domain_build_stage_event(stage="resync", status="started", details={"unsynced_count": unsynced_count})
            ]
            self._sync_set_state(environment, SyncState.SYNCING, timeline=tuple(timeline))
        needs_sync_snapshot = SyncReconcilerSnapshot(
            environment=environment,
            state=SyncState.NEEDS_SYNC,
            unsynced_count=unsynced_count,
        )

        try:
            outcome = self._ledger_query_port.ledger_trigger_resync(environment)
        except Exception as error:
            self._sync_record_repair_failure(environment, needs_sync_snapshot, timeline, str(error))
            raise RepairFailedError(
                f"pnl resync failed for {environment.value}",
                environment=environment.value,
                unsynced_count=unsynced_count,
            ) from error

        if not outcome.success:
            detail = outcome.detail or "resync reported failure"
            self._sync_record_repair_failure(environment, needs_sync_snapshot, timeline, detail)
            raise RepairFailedError(
                f"pnl resync failed for {environment.value}: {detail}",
                environment=environment.value,
                unsynced_count=unsynced_count,
            )

        timeline.append(
            domain_build_stage_event(stage="resync", status="completed", details={"updated_count": outcome.updated_count})
        )
        logger.info(
            "pnl resync completed environment=%s updated_count=%s",
            environment.value,
            outcome.updated_count,
        )
        with self._state_lock:
            generation = self._sync_set_state(environment, SyncState.CHECKING, timeline=tuple(timeline))

        status = self._sync_complete_check(
            environment,
            generation,
            fallback_snapshot=replace(needs_sync_snapshot, timeline=tuple(timeline)),
        )
        timeline.append(
            domain_build_stage_event(stage="recheck", status="completed", details={"unsynced_count": status.unsynced_count})
        )
        with self._state_lock:
            self._snapshots[environment] = replace(self._snapshots[environment], timeline=tuple(timeline))
        return status

    def _sync_record_repair_failure(
        self,
        environment: TradingEnvironment,
        needs_sync_snapshot: SyncReconcilerSnapshot,
        timeline: list[dict[str, object]],
        detail: str,
    ) -> None:
        timeline.append(domain_build_stage_event(stage="resync", status="failed", details={"error_message": detail}))
        logger.error("pnl resync failed environment=%s detail=%s", environment.value, detail)
        with self._state_lock:
            self._sync_restore_snapshot(environment, replace(needs_sync_snapshot, timeline=tuple(timeline)))

    def _sync_complete_check(
        self,
        environment: TradingEnvironment,
        generation: int,
        fallback_snapshot: SyncReconcilerSnapshot,
    ) -> SyncStatus:
        """Finish a Checking transition started at `generation`.

        The result is applied only while no later transition has started for the
        environment; otherwise the observed status is returned without a write.
        On failure the fallback state is restored under the same condition.
        """

        try:
            status = self._sync_query_status(environment)
        except QueryFailureError:
            with self._state_lock:
                if self._generations[environment] == generation:
                    self._sync_restore_snapshot(environment, fallback_snapshot)
            raise

        next_state = SyncState.NEEDS_SYNC if status.needs_sync else SyncState.IN_SYNC
        with self._state_lock:
            applied = self._generations[environment] == generation
            if applied:
                self._sync_set_state(environment, next_state, unsynced_count=status.unsynced_count)
        if not applied:
            logger.info(
                "pnl sync check superseded environment=%s unsynced_count=%s",
                environment.value,
                status.unsynced_count,
            )
            return status

        logger.info(
            "pnl sync checked environment=%s state=%s unsynced_count=%s",
            environment.value,
            next_state.value,
            status.unsynced_count,
        )
        return status

    def _sync_query_status(self, environment: TradingEnvironment) -> SyncStatus:
        try:
            return self._ledger_query_port.ledger_get_sync_status(environment)
        except QueryFailureError:
            raise
        except Exception as error:
            logger.warning("pnl sync status query failed environment=%s error=%s", environment.value, error)
            raise QueryFailureError(
                f"pnl sync status query failed for {environment.value}",
                query_name="sync_status",
            ) from error

    def _sync_set_state(
        self,
        environment: TradingEnvironment,
        state: SyncState,
        unsynced_count: int | None = None,
        timeline: tuple[dict[str, object], ...] | None = None,
    ) -> int:
        """Replace one environment snapshot and return the new generation.

        Callers must hold the state lock.
        """

        current_snapshot = self._snapshots[environment]
        return self._sync_restore_snapshot(
            environment,
            SyncReconcilerSnapshot(
                environment=environment,
                state=state,
                unsynced_count=current_snapshot.unsynced_count if unsynced_count is None else unsynced_count,
                timeline=current_snapshot.timeline if timeline is None else timeline,
            ),
        )

    def _sync_restore_snapshot(self, environment: TradingEnvironment, snapshot: SyncReconcilerSnapshot) -> int:
        self._snapshots[environment] = snapshot
        self._generations[environment] += 1
        return self._generations[environment]


__all__ = ["PnlSyncReconciler", "SyncReconcilerSnapshot", "SyncState"]
