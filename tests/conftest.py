"""
Shared pytest fixtures for treeapp-sync tests.

Provides:
- A mock ledger implementing create_usage_record() / fetch_summary()
- Sample usage records and observed states
- Settings isolation (no TREEAPP_ env leakage, cache cleared)

The mock ledger uses unittest.mock so tests never touch the network.
"""

import pytest
from unittest.mock import MagicMock

from ledger.client import LedgerAPI, UsageRecord
from reconciliation.state import ObservedState


def make_record(quantity: int, record_id: str = "ur_1") -> UsageRecord:
    """Build a UsageRecord as the ledger would return it."""
    return UsageRecord(
        id=record_id,
        quantity=quantity,
        payment_profile_id="pp_1",
        created_at=1735689600,
    )


@pytest.fixture
def mock_ledger():
    """
    Mock ledger with a summary of billed=0, unbilled=0.

    create_usage_record echoes the requested quantity back as a UsageRecord.

    Usage:
        def test_x(mock_ledger):
            mock_ledger.fetch_summary.side_effect = [before, after]
    """
    ledger = MagicMock(spec=LedgerAPI)
    ledger.fetch_summary.return_value = ObservedState(billed=0, unbilled=0)
    ledger.create_usage_record.side_effect = lambda quantity, key: make_record(quantity)
    return ledger


@pytest.fixture
def clean_settings_env(monkeypatch):
    """Remove TREEAPP_ env vars and clear the cached settings."""
    import os
    from provider.config import get_settings

    for name in list(os.environ):
        if name.startswith("TREEAPP_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()
