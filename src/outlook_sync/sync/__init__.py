"""Reconciliation engine."""

from outlook_sync.sync.identity import IdentityMapper
from outlook_sync.sync.orchestrator import SyncOrchestrator
from outlook_sync.sync.reconciler import BindingReconciler

__all__ = ["IdentityMapper", "SyncOrchestrator", "BindingReconciler"]
