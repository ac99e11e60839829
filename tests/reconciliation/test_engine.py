"""Unit tests for the reconciliation delta engine."""

import pytest

from reconciliation.engine import ReconciliationEngine, reconcile
from reconciliation.state import Cadence, DesiredState, ObservedState


def desired(quantity, cadence=Cadence.ONE_TIME):
    return DesiredState(quantity=quantity, cadence=cadence, idempotency_key="k")


COUNTER_VALUES = [0, 1, 10, 50, 100, 1000]


# =============================================================================
# Documented scenarios
# =============================================================================

def test_one_time_scenario():
    """100 desired, 40 billed + 20 unbilled already planted -> 40 more."""
    assert reconcile(desired(100, Cadence.ONE_TIME), ObservedState(billed=40, unbilled=20)) == 40


def test_per_month_scenario_ignores_billed_history():
    """50 desired, 1000 billed in prior periods, 10 unbilled -> 40 more."""
    assert reconcile(desired(50, Cadence.PER_MONTH), ObservedState(billed=1000, unbilled=10)) == 40


def test_per_deployment_scenario():
    """per_deployment always requests the full quantity."""
    assert reconcile(desired(5, Cadence.PER_DEPLOYMENT), ObservedState(billed=999, unbilled=999)) == 5


# =============================================================================
# one_time
# =============================================================================

@pytest.mark.parametrize("quantity", COUNTER_VALUES)
@pytest.mark.parametrize("billed", COUNTER_VALUES)
@pytest.mark.parametrize("unbilled", COUNTER_VALUES)
def test_one_time_delta_is_minimal_shortfall(quantity, billed, unbilled):
    """billed + unbilled + delta covers the target, and no smaller delta would."""
    observed = ObservedState(billed=billed, unbilled=unbilled)
    delta = reconcile(desired(quantity), observed)

    assert delta >= 0
    assert billed + unbilled + delta >= quantity
    if delta > 0:
        assert billed + unbilled + delta - 1 < quantity


def test_one_time_already_satisfied():
    assert reconcile(desired(10), ObservedState(billed=10, unbilled=0)) == 0
    assert reconcile(desired(10), ObservedState(billed=3, unbilled=7)) == 0


def test_one_time_billed_may_exceed_quantity():
    """billed is not assumed to be bounded by the desired quantity."""
    assert reconcile(desired(10), ObservedState(billed=500, unbilled=0)) == 0


# =============================================================================
# per_month
# =============================================================================

@pytest.mark.parametrize("quantity", COUNTER_VALUES)
@pytest.mark.parametrize("billed", COUNTER_VALUES)
@pytest.mark.parametrize("unbilled", COUNTER_VALUES)
def test_per_month_bounds(quantity, billed, unbilled):
    """Delta never exceeds the quantity and is zero once unbilled covers it."""
    delta = reconcile(desired(quantity, Cadence.PER_MONTH), ObservedState(billed=billed, unbilled=unbilled))

    assert 0 <= delta <= quantity
    if unbilled >= quantity:
        assert delta == 0
    else:
        assert delta == quantity - unbilled


# =============================================================================
# per_deployment
# =============================================================================

@pytest.mark.parametrize("billed", COUNTER_VALUES)
@pytest.mark.parametrize("unbilled", COUNTER_VALUES)
def test_per_deployment_ignores_observed(billed, unbilled):
    delta = reconcile(desired(7, Cadence.PER_DEPLOYMENT), ObservedState(billed=billed, unbilled=unbilled))
    assert delta == 7


# =============================================================================
# Zero quantity and purity
# =============================================================================

@pytest.mark.parametrize("cadence", list(Cadence))
@pytest.mark.parametrize("billed,unbilled", [(0, 0), (5, 0), (0, 5), (100, 100)])
def test_zero_quantity_is_always_zero(cadence, billed, unbilled):
    assert reconcile(desired(0, cadence), ObservedState(billed=billed, unbilled=unbilled)) == 0


@pytest.mark.parametrize("cadence", list(Cadence))
def test_reconcile_is_repeatable(cadence):
    """Same inputs, same delta."""
    d = desired(30, cadence)
    o = ObservedState(billed=4, unbilled=6)
    assert reconcile(d, o) == reconcile(d, o)


def test_engine_class_delegates():
    engine = ReconciliationEngine()
    assert engine.reconcile(desired(100), ObservedState(billed=40, unbilled=20)) == 40
