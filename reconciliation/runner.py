"""
Reconciliation runner: drives one pass of fetch, compute, apply, re-fetch.

The runner is what the orchestrator calls for a single resource instance. It
holds no state between passes and never retries: any ledger failure
propagates unchanged, and a failed mutation is never papered over by a
follow-up summary read.
"""

import logging
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from reconciliation.engine import ReconciliationEngine
from reconciliation.state import DesiredState, ObservedState
from validation.errors import ContractError

if TYPE_CHECKING:
    from ledger.client import LedgerAPI, UsageRecord

logger = logging.getLogger('treeapp.reconciliation.runner')


@dataclass
class ReconcileOutcome:
    """Result of one reconciliation pass.

    Attributes:
        delta: Quantity computed by the engine (0 = nothing requested)
        observed_before: Ledger counters the delta was computed from
        observed: Ledger counters to persist (re-fetched if a record was created)
        record: Usage record created this pass, if any
    """
    delta: int
    observed_before: ObservedState
    observed: ObservedState
    record: Optional["UsageRecord"] = None

    @property
    def applied(self) -> bool:
        return self.record is not None


class Reconciler:
    """Runs reconciliation passes against an injected ledger.

    Args:
        ledger: Object exposing create_usage_record() and fetch_summary()
        engine: Delta engine (default: ReconciliationEngine())
    """

    def __init__(self, ledger: "LedgerAPI", engine: Optional[ReconciliationEngine] = None):
        self.ledger = ledger
        self.engine = engine or ReconciliationEngine()

    def run(self, desired: DesiredState, request_key: Optional[str] = None) -> ReconcileOutcome:
        """Run one reconciliation pass.

        Args:
            desired: Validated desired state
            request_key: Idempotency key to send if a usage record is created
                (default: desired.idempotency_key). Must be identical across
                retries of the same logical mutation.

        Returns:
            ReconcileOutcome with the delta and the counters to persist

        Raises:
            LedgerError: Any ledger failure, unchanged
            ContractError: quantity > 0 but no key is available (raised before any
                ledger call)

        Execution steps:
            1. Fetch the current summary
            2. Compute the delta
            3. If delta > 0, create a usage record with the stable key
            4. Re-fetch the summary so the caller persists ledger truth
        """
        key = request_key if request_key is not None else desired.idempotency_key
        if desired.quantity > 0 and not key:
            raise ContractError("a usage record may be needed but no idempotency key was supplied")

        observed = self.ledger.fetch_summary()
        delta = self.engine.reconcile(desired, observed)
        logger.info(
            "Reconcile %s: quantity=%d billed=%d unbilled=%d -> delta=%d",
            desired.cadence.value, desired.quantity, observed.billed, observed.unbilled, delta,
        )

        if delta == 0:
            return ReconcileOutcome(delta=0, observed_before=observed, observed=observed)

        record = self.ledger.create_usage_record(delta, key)
        refreshed = self.ledger.fetch_summary()
        return ReconcileOutcome(
            delta=delta,
            observed_before=observed,
            observed=refreshed,
            record=record,
        )
