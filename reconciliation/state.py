"""Desired and observed state for a tree-planting resource instance."""
from dataclasses import dataclass
from enum import Enum

from validation.errors import ContractError


class Cadence(str, Enum):
    """How a desired quantity is reinterpreted across reconciliations."""
    ONE_TIME = 'one_time'
    PER_MONTH = 'per_month'
    PER_DEPLOYMENT = 'per_deployment'

    @classmethod
    def parse(cls, value: "str | Cadence") -> "Cadence":
        """Parse a cadence name case-insensitively.

        Raises:
            ContractError: value is not a known cadence
        """
        if isinstance(value, Cadence):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        valid = tuple(c.value for c in cls)
        raise ContractError(f"cadence must be one of {valid}, got: {value!r}")


def _require_count(name: str, value: int) -> None:
    # bool is an int subclass; True must not pass as a quantity of 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ContractError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ContractError(f"{name} must be >= 0, got {value}")


@dataclass(frozen=True)
class DesiredState:
    """Caller-declared target for a resource instance.

    Attributes:
        quantity: Target number of trees (>= 0)
        cadence: Cadence governing how quantity is compared with the ledger
        idempotency_key: Stable key assigned at first creation, never changed
    """
    quantity: int
    cadence: Cadence = Cadence.ONE_TIME
    idempotency_key: str = ''

    def __post_init__(self):
        _require_count('quantity', self.quantity)
        object.__setattr__(self, 'cadence', Cadence.parse(self.cadence))


@dataclass(frozen=True)
class ObservedState:
    """Ledger counters as last fetched.

    Attributes:
        billed: Trees already invoiced
        unbilled: Trees planted but not yet invoiced
    """
    billed: int = 0
    unbilled: int = 0

    def __post_init__(self):
        _require_count('billed', self.billed)
        _require_count('unbilled', self.unbilled)

    @property
    def total(self) -> int:
        return self.billed + self.unbilled
