"""Reconciliation package: desired/observed state, delta engine and runner."""
from reconciliation.state import Cadence, DesiredState, ObservedState
from reconciliation.engine import ReconciliationEngine, reconcile
from reconciliation.runner import ReconcileOutcome, Reconciler

__all__ = [
    'Cadence',
    'DesiredState',
    'ObservedState',
    'ReconciliationEngine',
    'reconcile',
    'ReconcileOutcome',
    'Reconciler',
]
