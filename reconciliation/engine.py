"""Delta computation for tree-planting reconciliation.

The engine operates on pre-fetched data (no API calls). Given what the caller
wants and what the ledger currently reports, it answers how many more trees
must be requested right now.
"""
from reconciliation.state import Cadence, DesiredState, ObservedState


def reconcile(desired: DesiredState, observed: ObservedState) -> int:
    """Compute the quantity still to be requested from the ledger.

    Per-cadence policy:
    - one_time: everything ever planted (billed + unbilled) counts toward the
      target, so only the shortfall is requested
    - per_month: only the unbilled part counts; trees billed in earlier
      periods do not count against the current period
    - per_deployment: every reconciliation is an independent event, so the
      full quantity is requested regardless of history

    A zero quantity always yields zero. Neither counter is assumed to be
    bounded by the desired quantity.

    Args:
        desired: Caller-declared target (already validated, quantity >= 0)
        observed: Fresh ledger counters

    Returns:
        Delta >= 0. Zero means no usage record must be created.
    """
    if desired.quantity == 0:
        return 0

    if desired.cadence is Cadence.ONE_TIME:
        return max(0, desired.quantity - observed.total)

    if desired.cadence is Cadence.PER_MONTH:
        return max(0, desired.quantity - observed.unbilled)

    return desired.quantity


class ReconciliationEngine:
    """Stateless wrapper around reconcile() for callers that inject an engine."""

    def reconcile(self, desired: DesiredState, observed: ObservedState) -> int:
        return reconcile(desired, observed)
