"""Unit tests for DesiredState, ObservedState and Cadence parsing."""

import pytest

from reconciliation.state import Cadence, DesiredState, ObservedState
from validation.errors import ContractError


# =============================================================================
# Cadence
# =============================================================================

@pytest.mark.parametrize("raw,expected", [
    ("one_time", Cadence.ONE_TIME),
    ("PER_MONTH", Cadence.PER_MONTH),
    (" per_deployment ", Cadence.PER_DEPLOYMENT),
    (Cadence.PER_MONTH, Cadence.PER_MONTH),
])
def test_cadence_parse(raw, expected):
    assert Cadence.parse(raw) is expected


@pytest.mark.parametrize("raw", ["weekly", "", None, 3])
def test_cadence_parse_rejects_unknown(raw):
    with pytest.raises(ContractError, match="cadence must be one of"):
        Cadence.parse(raw)


# =============================================================================
# DesiredState
# =============================================================================

def test_desired_state_defaults():
    state = DesiredState(quantity=3)
    assert state.cadence is Cadence.ONE_TIME
    assert state.idempotency_key == ''


def test_desired_state_parses_cadence_string():
    state = DesiredState(quantity=3, cadence="per_month")
    assert state.cadence is Cadence.PER_MONTH


def test_desired_state_rejects_negative_quantity():
    """Negative quantities are rejected, never clamped."""
    with pytest.raises(ContractError, match="quantity must be >= 0"):
        DesiredState(quantity=-1)


@pytest.mark.parametrize("quantity", [True, 1.5, "5", None])
def test_desired_state_rejects_non_integer_quantity(quantity):
    with pytest.raises(ContractError, match="must be an integer"):
        DesiredState(quantity=quantity)


def test_desired_state_is_immutable():
    state = DesiredState(quantity=1, idempotency_key="abc")
    with pytest.raises(AttributeError):
        state.idempotency_key = "other"


# =============================================================================
# ObservedState
# =============================================================================

def test_observed_total():
    assert ObservedState(billed=40, unbilled=20).total == 60


@pytest.mark.parametrize("billed,unbilled", [(-1, 0), (0, -1)])
def test_observed_rejects_negative_counters(billed, unbilled):
    with pytest.raises(ContractError):
        ObservedState(billed=billed, unbilled=unbilled)
