"""Pydantic models for the tree resource plan and its persisted state.

A plan is what the orchestrator hands in on create/update. The state is what
the resource hands back for the orchestrator to persist; it round-trips
through ``model_dump()`` / ``TreeResourceState(**data)``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from reconciliation.state import Cadence, DesiredState, ObservedState


class TreePlan(BaseModel):
    """
    Caller-declared configuration for one tree resource.

    Required:
        quantity: Trees to plant (>= 0)

    Optional:
        frequency: one_time (default), per_month or per_deployment
        idempotency_key: Stable key; generated on first create when omitted
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(ge=0, description="Quantity of trees to plant")
    frequency: Cadence = Field(
        default=Cadence.ONE_TIME,
        description="How often to plant the trees. One of: per_month, per_deployment, one_time.",
    )
    idempotency_key: Optional[str] = Field(default=None, description="Idempotency key")

    @field_validator("quantity", mode="before")
    @classmethod
    def validate_quantity(cls, v):
        """Reject booleans and non-integral values instead of coercing them."""
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValueError(f"quantity must be an integer, got {type(v).__name__}")
        return v

    @field_validator("frequency", mode="before")
    @classmethod
    def validate_frequency(cls, v):
        """Accept frequency names case-insensitively."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("idempotency_key", mode="after")
    @classmethod
    def validate_idempotency_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("idempotency_key must not be blank")
        return v

    def to_desired(self, idempotency_key: str) -> DesiredState:
        return DesiredState(
            quantity=self.quantity,
            cadence=self.frequency,
            idempotency_key=idempotency_key,
        )


class PlantedTrees(BaseModel):
    """Trees planted so far, as last read from the ledger."""

    billed: int = Field(default=0, ge=0)
    unbilled: int = Field(default=0, ge=0)

    @classmethod
    def from_observed(cls, observed: ObservedState) -> "PlantedTrees":
        return cls(billed=observed.billed, unbilled=observed.unbilled)

    def to_observed(self) -> ObservedState:
        return ObservedState(billed=self.billed, unbilled=self.unbilled)


class TreeResourceState(BaseModel):
    """State of a reconciled tree resource, persisted by the orchestrator.

    ``records_applied`` counts the usage records this instance has created.
    It only advances after a successful mutation, so a retried mutation
    derives the same per-request idempotency key.

    ``pending_delta`` is the number of trees the next update would request
    against the last observed counters. For per_deployment it always equals
    ``quantity``.
    """

    idempotency_key: str
    quantity: int = Field(ge=0)
    frequency: Cadence = Cadence.ONE_TIME
    planted_trees: PlantedTrees = Field(default_factory=PlantedTrees)
    records_applied: int = Field(default=0, ge=0)
    last_record_id: Optional[str] = None
    pending_delta: int = Field(default=0, ge=0)

    def desired(self) -> DesiredState:
        return DesiredState(
            quantity=self.quantity,
            cadence=self.frequency,
            idempotency_key=self.idempotency_key,
        )


def validate_plan(plan_dict: dict) -> tuple[Optional[TreePlan], Optional[str]]:
    """
    Validate a plan dictionary and return a TreePlan or an error message.

    Args:
        plan_dict: Dictionary containing plan values

    Returns:
        Tuple of (TreePlan, None) on success,
        or (None, error_message) on validation failure
    """
    try:
        return (TreePlan(**plan_dict), None)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            field = '.'.join(str(loc) for loc in error['loc'])
            errors.append(f"{field}: {error['msg']}")
        return (None, '; '.join(errors))


__all__ = ['TreePlan', 'PlantedTrees', 'TreeResourceState', 'validate_plan', 'ValidationError']
