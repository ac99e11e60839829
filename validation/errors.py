"""
Centralized error classification for ledger failures.

Provides a consistent answer to "may the caller retry this with the same
idempotency key?" so the orchestrator and the resource handlers report
failures the same way. Classification is advisory: nothing in this project
retries on its own.
"""

import logging
from enum import Enum


# HTTP status codes that indicate transient (retry-able) errors
# 408: Request timeout - server gave up waiting
# 429: Rate limited - retry after backoff
# 5xx: Server errors - usually temporary
TRANSIENT_CODES = frozenset({408, 429, 500, 502, 503, 504})

# HTTP status codes that indicate permanent (non-retry-able) errors
# 400: Bad request - e.g. invalid quantity
# 401: Unauthorized - API key rejected
# 403: Forbidden - account not allowed to plant
# 404: Not found - wrong base URL or API version
# 409: Conflict - idempotency key reused with a different body
# 422: Unprocessable entity - validation failure
PERMANENT_CODES = frozenset({400, 401, 403, 404, 409, 422})

# Module logger
logger = logging.getLogger("treeapp.validation.errors")


class ContractError(ValueError):
    """
    Caller-supplied state violates an invariant.

    Raised before any network call: negative quantities, an attempt to
    create a zero-quantity usage record, an empty idempotency key, or an
    attempt to change an instance's idempotency key.
    """


class ErrorClass(str, Enum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"


def classify_http_error(status_code: int) -> ErrorClass:
    """
    Classify a ledger HTTP status code as transient or permanent.

    Args:
        status_code: HTTP response status code (>= 300)

    Returns:
        ErrorClass.TRANSIENT for retry-able statuses,
        ErrorClass.PERMANENT otherwise
    """
    if status_code in TRANSIENT_CODES:
        logger.debug("HTTP %d classified as transient", status_code)
        return ErrorClass.TRANSIENT

    if status_code in PERMANENT_CODES:
        logger.debug("HTTP %d classified as permanent", status_code)
        return ErrorClass.PERMANENT

    if status_code >= 500:
        # Unknown 5xx = transient (server error, may recover)
        logger.debug("HTTP %d (unknown 5xx) classified as transient", status_code)
        return ErrorClass.TRANSIENT

    # Unknown 3xx/4xx = permanent; the ledger API does not redirect
    logger.debug("HTTP %d classified as permanent", status_code)
    return ErrorClass.PERMANENT


def classify_exception(exc: Exception) -> ErrorClass:
    """
    Classify an exception raised by the ledger client or the resource handlers.

    - LedgerTransportError: transient (no response, same key is safe)
    - LedgerProtocolError: by status code
    - LedgerDecodeError: permanent (fatal for that call)
    - ContractError: permanent (caller must fix its input)
    - Bare network errors (ConnectionError, TimeoutError): transient
    - Anything else: permanent

    Args:
        exc: The exception to classify

    Returns:
        ErrorClass for the exception
    """
    # Lazy import to avoid a cycle: ledger.client imports ContractError
    from ledger.client import LedgerDecodeError, LedgerProtocolError, LedgerTransportError

    if isinstance(exc, LedgerTransportError):
        return ErrorClass.TRANSIENT

    if isinstance(exc, LedgerProtocolError):
        return classify_http_error(exc.status_code)

    if isinstance(exc, (LedgerDecodeError, ContractError)):
        logger.debug("%s classified as permanent", type(exc).__name__)
        return ErrorClass.PERMANENT

    if isinstance(exc, (ConnectionError, TimeoutError)):
        logger.debug("Network error classified as transient: %s", type(exc).__name__)
        return ErrorClass.TRANSIENT

    logger.debug("Unknown exception classified as permanent: %s", type(exc).__name__)
    return ErrorClass.PERMANENT


def is_retryable(exc: Exception) -> bool:
    """True if the caller may re-drive the same request with the same idempotency key."""
    return classify_exception(exc) is ErrorClass.TRANSIENT
