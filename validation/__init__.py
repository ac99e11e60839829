"""
Validation module for treeapp-sync.

Provides the caller-contract error type and ledger error classification.
"""

from validation.errors import (
    ContractError,
    ErrorClass,
    classify_exception,
    classify_http_error,
    is_retryable,
)

__all__ = [
    'ContractError',
    'ErrorClass',
    'classify_exception',
    'classify_http_error',
    'is_retryable',
]
