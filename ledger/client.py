"""
ledger.client: Synchronous Treeapp ledger client.

Design notes:
- Blocking only: reconciliation is driven synchronously by the orchestrator,
  so the client wraps httpx.Client rather than AsyncClient.
- Returns typed Pydantic models (UsageRecord) and ObservedState so callers
  never touch raw JSON dicts.
- No retries and no caching. Every transport failure propagates; retrying
  is the caller's decision and must reuse the same idempotency key.
- The summary endpoint's top-level ``trees`` field has two plausible readings
  (billed-only or lifetime total). The reading is an explicit constructor
  parameter; the default is billed-only.

Exports:
    LedgerClient          -- sync HTTP+JSON client
    LedgerAPI             -- protocol satisfied by LedgerClient (and fakes)
    UsageRecord           -- typed Pydantic model for a created usage record
    ImpactSummary         -- typed Pydantic model for the raw summary body
    TreesField            -- interpretation of the summary ``trees`` field
    LedgerError           -- base class for ledger failures
    LedgerTransportError  -- no response received (connect, DNS, timeout)
    LedgerProtocolError   -- response status >= 300
    LedgerDecodeError     -- response body is not the expected JSON shape
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Protocol

import httpx
from pydantic import BaseModel, ValidationError

from reconciliation.state import ObservedState
from validation.errors import ContractError

log = logging.getLogger("treeapp.ledger.client")

DEFAULT_BASE_URL = "https://api.thetreeapp.org"

USAGE_RECORDS_PATH = "/v1/usage-records"
IMPACT_SUMMARY_PATH = "/v1.1/impacts/summary"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LedgerError(Exception):
    """Base class for every failure talking to the ledger."""


class LedgerTransportError(LedgerError):
    """
    No response was received from the ledger.

    Covers connection failures, DNS errors and timeouts. The underlying
    httpx exception is chained as ``__cause__``. A mutation that failed this
    way may or may not have reached the ledger, so it is only safe to retry
    with the same idempotency key.
    """


class LedgerProtocolError(LedgerError):
    """
    The ledger answered with a status code of 300 or above.

    Attributes:
        status_code: HTTP status code returned by the ledger.
        body:        Response body text, kept verbatim for diagnostics.
    """

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Ledger API error ({status_code}): {body}")


class LedgerDecodeError(LedgerError):
    """The response body did not parse as the expected JSON shape."""


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class UsageRecord(BaseModel):
    """A usage record as acknowledged by the ledger."""

    id: str
    quantity: int
    payment_profile_id: Optional[str] = None
    created_at: int


class UnbilledImpact(BaseModel):
    trees: int


class ImpactSummary(BaseModel):
    """Raw ``/v1.1/impacts/summary`` body."""

    trees: int
    unbilled: UnbilledImpact


class TreesField(str, Enum):
    """How the summary's top-level ``trees`` count is read."""

    BILLED = "billed"  # trees already invoiced
    TOTAL = "total"    # billed + unbilled


class LedgerAPI(Protocol):
    """The two ledger operations reconciliation depends on."""

    def create_usage_record(self, quantity: int, idempotency_key: str) -> UsageRecord:
        ...

    def fetch_summary(self) -> ObservedState:
        ...


# ---------------------------------------------------------------------------
# Parse helpers
# ---------------------------------------------------------------------------


def _decode(resp: httpx.Response, model: type[BaseModel]) -> BaseModel:
    """Validate a response body against *model*, mapping failures to LedgerDecodeError."""
    try:
        return model.model_validate_json(resp.content)
    except ValidationError as exc:
        raise LedgerDecodeError(
            f"Unexpected {model.__name__} payload from {resp.request.url}: {exc}"
        ) from exc


def summary_to_observed(summary: ImpactSummary, trees_field: TreesField = TreesField.BILLED) -> ObservedState:
    """
    Map a raw impact summary onto billed/unbilled counters.

    Args:
        summary:     Parsed summary body.
        trees_field: Whether ``summary.trees`` is billed-only or the total.

    Raises:
        LedgerDecodeError: The counters are negative, or a total is smaller
                           than its own unbilled part.
    """
    unbilled = summary.unbilled.trees
    if trees_field is TreesField.TOTAL:
        billed = summary.trees - unbilled
    else:
        billed = summary.trees

    if billed < 0 or unbilled < 0:
        raise LedgerDecodeError(
            f"Inconsistent impact summary (trees={summary.trees}, "
            f"unbilled.trees={unbilled}, trees_field={trees_field.value})"
        )
    return ObservedState(billed=billed, unbilled=unbilled)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class LedgerClient:
    """
    Blocking HTTP+JSON client for the Treeapp planting ledger.

    Usage::

        from ledger.client import LedgerClient

        with LedgerClient(api_key="my-key") as client:
            observed = client.fetch_summary()
            record = client.create_usage_record(10, "resource-key-0")
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        connect_timeout: float = 5.0,
        trees_field: TreesField = TreesField.BILLED,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        """
        Create the ledger client.

        Args:
            api_key:         Treeapp API key, sent as ``X-Api-Key``.
            base_url:        Ledger base URL. Trailing slashes are stripped.
            timeout:         Read timeout in seconds.
            connect_timeout: Connect timeout in seconds.
            trees_field:     Interpretation of the summary ``trees`` field.
            http_client:     Pre-built httpx.Client (custom transports, tests).
                             The caller keeps ownership of an injected client.

        Raises:
            ContractError: api_key is empty.
        """
        if not api_key:
            raise ContractError("api_key is required to talk to the ledger")

        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.trees_field = TreesField(trees_field)

        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
        )
        log.debug("LedgerClient initialised: base_url=%s trees_field=%s", self._base_url, self.trees_field.value)

    def close(self) -> None:
        """Close the underlying httpx client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "LedgerClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, headers: dict[str, str], body: Optional[dict] = None) -> httpx.Response:
        """
        Send one request and enforce the status-code contract.

        Raises:
            LedgerTransportError: No response received.
            LedgerProtocolError:  Response status >= 300.
            LedgerDecodeError:    Body could not be decompressed.
        """
        url =self._base_url + path
        headers = {"Accept": "application/json", "X-Api-Key": self._api_key, **headers}

        try:
            resp = self._client.request(method, url, headers=headers, json=body)
        except httpx.TimeoutException as exc:
            raise LedgerTransportError(f"Ledger request timed out: {method} {url}: {exc}") from exc
        except httpx.TransportError as exc:
            raise LedgerTransportError(f"Cannot reach ledger: {method} {url}: {exc}") from exc
        except httpx.DecodingError as exc:
            raise LedgerDecodeError(f"Cannot decode ledger response body: {method} {url}: {exc}") from exc
        except httpx.RequestError as exc:
            raise LedgerTransportError(f"Ledger request failed: {method} {url}: {exc}") from exc

        if resp.status_code >= 300:
            log.warning("Ledger %s %s returned HTTP %d", method, path, resp.status_code)
            raise LedgerProtocolError(resp.status_code, resp.text)
        return resp

    def create_usage_record(self, quantity: int, idempotency_key: str) -> UsageRecord:
        """
        Request *quantity* trees from the ledger.

        The idempotency key is forwarded verbatim. Retrying a failed call
        with the same key lets the ledger deduplicate it.

        Args:
            quantity:        Trees to plant, strictly positive.
            idempotency_key: Stable key for this logical mutation.

        Returns:
            UsageRecord as acknowledged by the ledger.

        Raises:
            ContractError:        quantity <= 0 or idempotency_key empty.
            LedgerTransportError: No response received.
            LedgerProtocolError:  Response status >= 300.
            LedgerDecodeError:    Body is not a usage record.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ContractError(f"quantity must be an integer, got {type(quantity).__name__}")
        if quantity <= 0:
            raise ContractError(f"usage record quantity must be positive, got {quantity}")
        if not idempotency_key:
            raise ContractError("usage record requires an idempotency key")

        log.info("Creating usage record: quantity=%d idempotency_key=%s", quantity, idempotency_key)
        resp = self._request(
            "POST",
            USAGE_RECORDS_PATH,
            headers={"Content-Type": "application/json", "Idempotency-Key": idempotency_key},
            body={"quantity": quantity},
        )
        record = _decode(resp, UsageRecord)
        log.info("Usage record %s created (quantity=%d)", record.id, record.quantity)
        return record

    def fetch_summary(self) -> ObservedState:
        """
        Fetch the current billed/unbilled tree counts.

        Always goes to the network.

        Raises:
            LedgerTransportError: No response received.
            LedgerProtocolError:  Response status >= 300.
            LedgerDecodeError:    Body is not an impact summary.
        """
        resp = self._request("GET", IMPACT_SUMMARY_PATH, headers={})
        summary = _decode(resp, ImpactSummary)
        observed = summary_to_observed(summary, self.trees_field)
        log.debug("Ledger summary: billed=%d unbilled=%d", observed.billed, observed.unbilled)
        return observed
