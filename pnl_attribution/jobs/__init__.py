"""Job layer package for PnL sync workflow orchestration."""

from .pnl_sync import PnlSyncReconciler, SyncReconcilerSnapshot, SyncState

__all__ = ["PnlSyncReconciler", "SyncReconcilerSnapshot", "SyncState"]
