"""
Tests for ledger error classification.

classify_http_error and classify_exception decide whether a caller may
re-drive a failed request with the same idempotency key.
"""

import pytest

from ledger.client import LedgerDecodeError, LedgerProtocolError, LedgerTransportError
from validation.errors import (
    ContractError,
    ErrorClass,
    classify_exception,
    classify_http_error,
    is_retryable,
)


class TestClassifyHttpError:
    """Tests for classify_http_error function."""

    @pytest.mark.parametrize("status_code", [408, 429, 500, 502, 503, 504])
    def test_transient_codes(self, status_code):
        assert classify_http_error(status_code) is ErrorClass.TRANSIENT

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 409, 422])
    def test_permanent_codes(self, status_code):
        assert classify_http_error(status_code) is ErrorClass.PERMANENT

    def test_unknown_5xx_is_transient(self):
        assert classify_http_error(599) is ErrorClass.TRANSIENT

    def test_unknown_4xx_is_permanent(self):
        assert classify_http_error(418) is ErrorClass.PERMANENT

    def test_redirect_is_permanent(self):
        """The ledger never redirects; a 3xx means a misconfigured base URL."""
        assert classify_http_error(301) is ErrorClass.PERMANENT


class TestClassifyException:
    """Tests for classify_exception function."""

    def test_transport_error_is_transient(self):
        assert classify_exception(LedgerTransportError("refused")) is ErrorClass.TRANSIENT

    def test_protocol_error_uses_status(self):
        assert classify_exception(LedgerProtocolError(503, "busy")) is ErrorClass.TRANSIENT
        assert classify_exception(LedgerProtocolError(400, "bad quantity")) is ErrorClass.PERMANENT

    def test_decode_error_is_permanent(self):
        assert classify_exception(LedgerDecodeError("not json")) is ErrorClass.PERMANENT

    def test_contract_error_is_permanent(self):
        assert classify_exception(ContractError("quantity must be >= 0")) is ErrorClass.PERMANENT

    @pytest.mark.parametrize("exc", [ConnectionError("reset"), TimeoutError("slow")])
    def test_builtin_network_errors_are_transient(self, exc):
        assert classify_exception(exc) is ErrorClass.TRANSIENT

    def test_unknown_exception_is_permanent(self):
        assert classify_exception(RuntimeError("?")) is ErrorClass.PERMANENT


def test_is_retryable():
    assert is_retryable(LedgerTransportError("reset")) is True
    assert is_retryable(LedgerProtocolError(500, "")) is True
    assert is_retryable(LedgerProtocolError(422, "")) is False
    assert is_retryable(ContractError("bad")) is False


def test_contract_error_is_value_error():
    """Callers catching ValueError for bad input also catch ContractError."""
    assert issubclass(ContractError, ValueError)
