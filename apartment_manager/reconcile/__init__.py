"""Owner/resident reconciliation package."""

from apartment_manager.reconcile.reconciler import build_record, reconcile

__all__ = ["build_record", "reconcile"]
