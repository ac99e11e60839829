"""
ledger: Client for the remote Treeapp planting ledger.

Public API:
    LedgerClient                 -- sync HTTP+JSON client
    LedgerAPI                    -- protocol the reconciler depends on
    UsageRecord, ImpactSummary   -- typed Pydantic response models
    TreesField                   -- interpretation of the summary "trees" field
    summary_to_observed          -- map a summary onto billed/unbilled counters
    LedgerError                  -- base class for ledger failures
    LedgerTransportError         -- no response received
    LedgerProtocolError          -- status >= 300 (carries status_code, body)
    LedgerDecodeError            -- body is not the expected JSON shape
"""

from ledger.client import (
    DEFAULT_BASE_URL,
    ImpactSummary,
    LedgerAPI,
    LedgerClient,
    LedgerDecodeError,
    LedgerError,
    LedgerProtocolError,
    LedgerTransportError,
    TreesField,
    UsageRecord,
    summary_to_observed,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "ImpactSummary",
    "LedgerAPI",
    "LedgerClient",
    "LedgerDecodeError",
    "LedgerError",
    "LedgerProtocolError",
    "LedgerTransportError",
    "TreesField",
    "UsageRecord",
    "summary_to_observed",
]
