"""Lifecycle handlers for a single tree resource instance.

Each handler takes what the orchestrator holds (a plan, a prior state) and
returns the state it should persist next. Nothing is stored here, and the
ledger is injected, so one TreeResource can serve any number of instances
as long as the orchestrator never drives the same instance concurrently.

State machine, per instance:
    Uninitialized --create--> Reconciled --read/update--> Reconciled --delete--> Removed

Delete is local bookkeeping only: the ledger has no way to un-plant a tree.

The instance key must outlive a failed create. Either persist the plan
returned by ``assign_key`` before calling ``create``, or pass back the
``idempotency_key`` attribute found on the exception a failed create raises.
"""

import logging
import uuid
from typing import TYPE_CHECKING

from provider.models import PlantedTrees, TreePlan, TreeResourceState, validate_plan
from reconciliation.runner import ReconcileOutcome, Reconciler
from reconciliation.state import ObservedState
from validation.errors import ContractError, classify_exception

if TYPE_CHECKING:
    from ledger.client import LedgerAPI

logger = logging.getLogger('treeapp.provider.resource')


def request_key(idempotency_key: str, records_applied: int) -> str:
    """Idempotency key sent with the next usage record for an instance.

    Stable until a mutation succeeds, so every retry of the same logical
    request sends the same key; the next logical request gets a new one.
    """
    return f"{idempotency_key}-{records_applied}"


def _parse_plan(plan) -> TreePlan:
    if isinstance(plan, TreePlan):
        return plan
    if not isinstance(plan, dict):
        raise ContractError(f"Invalid tree plan: expected a mapping, got {type(plan).__name__}")
    parsed, error = validate_plan(plan)
    if parsed is None:
        raise ContractError(f"Invalid tree plan: {error}")
    return parsed


class TreeResource:
    """Create/read/update/delete handlers for the tree resource.

    Args:
        ledger: Object exposing create_usage_record() and fetch_summary()
    """

    def __init__(self, ledger: "LedgerAPI"):
        self.reconciler = Reconciler(ledger)

    def assign_key(self, plan) -> TreePlan:
        """Return the plan with its idempotency key filled in.

        Makes no ledger call. A plan that already carries a key is returned
        unchanged, so calling this again on its own result is harmless.

        Raises:
            ContractError: Plan is invalid
        """
        plan = _parse_plan(plan)
        if plan.idempotency_key is not None:
            return plan
        return plan.model_copy(update={'idempotency_key': str(uuid.uuid4())})

    def create(self, plan) -> TreeResourceState:
        """Create the instance: assign its idempotency key and reconcile once.

        Args:
            plan: TreePlan or plan dict

        Returns:
            State to persist

        Raises:
            ContractError: Plan is invalid
            LedgerError: Ledger failure (nothing should be persisted). The
                exception carries the instance key as ``idempotency_key``;
                a retry must supply it so the ledger can deduplicate.
        """
        plan = self.assign_key(plan)
        key = plan.idempotency_key
        state = TreeResourceState(
            idempotency_key=key,
            quantity=plan.quantity,
            frequency=plan.frequency,
        )
        logger.info("Creating tree resource %s (quantity=%d, frequency=%s)",
                    key, plan.quantity, plan.frequency.value)
        return self._apply(state)

    def read(self, state: TreeResourceState) -> TreeResourceState:
        """Refresh planted_trees from the ledger and report drift.

        The ledger is never mutated here. ``pending_delta`` is set to what
        the next update would request, so the orchestrator can tell when the
        ledger no longer meets the target.
        """
        observed = self.reconciler.ledger.fetch_summary()
        refreshed = self._observed_update(state, observed)
        if refreshed['pending_delta']:
            logger.info("Tree resource %s drifted: %d trees pending (%s)",
                        state.idempotency_key, refreshed['pending_delta'], state.frequency.value)
        return state.model_copy(update=refreshed)

    def update(self, state: TreeResourceState, plan) -> TreeResourceState:
        """Apply a new plan to an existing instance and reconcile.

        The idempotency key is fixed at creation; a plan that names a
        different key is rejected.

        Raises:
            ContractError: Plan is invalid or tries to change the key
            LedgerError: Ledger failure (the prior state remains current)
        """
        plan = _parse_plan(plan)
        if plan.idempotency_key is not None and plan.idempotency_key != state.idempotency_key:
            raise ContractError(
                f"idempotency_key cannot change (was {state.idempotency_key!r}, "
                f"got {plan.idempotency_key!r})"
            )
        updated = state.model_copy(update={'quantity': plan.quantity, 'frequency': plan.frequency})
        return self._apply(updated)

    def delete(self, state: TreeResourceState) -> None:
        """Forget the instance. Ledger entries are permanent, so no call is made."""
        logger.info(
            "Removing tree resource %s; %d billed and %d unbilled trees remain on the ledger",
            state.idempotency_key, state.planted_trees.billed, state.planted_trees.unbilled,
        )

    def _observed_update(self, state: TreeResourceState, observed: ObservedState) -> dict:
        return {
            'planted_trees': PlantedTrees.from_observed(observed),
            'pending_delta': self.reconciler.engine.reconcile(state.desired(), observed),
        }

    def _apply(self, state: TreeResourceState) -> TreeResourceState:
        key = request_key(state.idempotency_key, state.records_applied)
        try:
            outcome: ReconcileOutcome = self.reconciler.run(state.desired(), request_key=key)
        except Exception as exc:
            logger.error("Reconciliation of %s failed (%s): %s",
                         state.idempotency_key, classify_exception(exc).value, exc)
            exc.idempotency_key = state.idempotency_key
            raise

        update = self._observed_update(state, outcome.observed)
        if outcome.applied:
            update['records_applied'] = state.records_applied + 1
            update['last_record_id'] = outcome.record.id
        return state.model_copy(update=update)


__all__ = ['TreeResource', 'request_key']
