"""
Utility functions and classes for the money tracker.

This module provides amount helpers, error handling helpers and the circuit
breaker used around external collaborators.
"""

from .amounts import normalize_amount, format_rupiah, parse_balance
from .date_utils import LEDGER_TZ, DateFormatter, ledger_now
from .error_handling import (
    to_app_error,
    handle_error,
    handle_critical_error,
    log_error,
    is_retryable_error,
    is_critical_error,
    recover,
    safe_execute,
    error_boundary,
    exit_gracefully
)
from .circuit_breaker import CircuitBreaker, CircuitOpenError

__all__ = [
    # Amounts
    'normalize_amount',
    'format_rupiah',
    'parse_balance',

    # Dates
    'LEDGER_TZ',
    'DateFormatter',
    'ledger_now',

    # Error handling
    'to_app_error',
    'handle_error',
    'handle_critical_error',
    'log_error',
    'is_retryable_error',
    'is_critical_error',
    'recover',
    'safe_execute',
    'error_boundary',
    'exit_gracefully',

    # Circuit breaker
    'CircuitBreaker',
    'CircuitOpenError'
]
