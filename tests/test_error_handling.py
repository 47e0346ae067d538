import pytest

from money_tracker.errors import AppError, ConfigError, ErrorCode, LedgerError, NetworkError, TransactionError
from money_tracker.utils.error_handling import (
    error_boundary,
    exit_gracefully,
    handle_critical_error,
    handle_error,
    is_critical_error,
    is_retryable_error,
    log_error,
    safe_execute,
    to_app_error
)


def test_to_app_error_wraps_foreign_exceptions():
    cause = RuntimeError("disk full")

    err = to_app_error(cause)

    assert err.code == ErrorCode.GENERIC
    assert err.cause is cause
    assert "disk full" in str(err)


def test_to_app_error_keeps_app_errors():
    original = LedgerError("x")

    assert to_app_error(original) is original


def test_classification_helpers():
    assert is_retryable_error(NetworkError("n"))
    assert not is_retryable_error(ValueError("v"))
    assert is_critical_error(ConfigError("c"))
    assert not is_critical_error(LedgerError("l"))
    assert not is_critical_error(KeyError("k"))


def test_logging_helpers_accept_anything():
    handle_error(None)
    log_error(None)
    handle_error(ValueError("plain"), "op")
    log_error(NetworkError("flaky").with_context("attempt", 1))
    handle_critical_error(ConfigError("missing token"), "startup")


def test_safe_execute_returns_value():
    assert safe_execute(lambda: 42, "answer") == 42


def test_safe_execute_recovers_unexpected_failures():
    def explode():
        raise ZeroDivisionError("division by zero")

    with pytest.raises(TransactionError) as exc_info:
        safe_execute(explode, "divide")

    err = exc_info.value
    assert err.context["function_context"] == "divide"
    assert err.context["panic_value"] == "ZeroDivisionError('division by zero')"
    assert "ZeroDivisionError" in err.context["stack_trace"]
    assert isinstance(err.__cause__, ZeroDivisionError)


def test_safe_execute_passes_app_errors_through():
    original = LedgerError("append failed")

    def fail():
        raise original

    with pytest.raises(LedgerError) as exc_info:
        safe_execute(fail, "save")

    assert exc_info.value is original
    assert original.context["function_context"] == "save"


def test_error_boundary_decorator():
    @error_boundary()
    def broken(x):
        raise ValueError(x)

    @error_boundary("named")
    def fine(x):
        return x * 2

    assert fine(3) == 6
    with pytest.raises(TransactionError) as exc_info:
        broken("nope")
    assert exc_info.value.context["function_context"].endswith("broken")


def test_exit_gracefully_exits_with_code():
    with pytest.raises(SystemExit) as exc_info:
        exit_gracefully(ConfigError("no token"), 3)

    assert exc_info.value.code == 3


def test_exit_gracefully_without_error():
    with pytest.raises(SystemExit) as exc_info:
        exit_gracefully(None, 0)

    assert exc_info.value.code == 0


def test_recovered_error_is_an_app_error():
    with pytest.raises(AppError):
        safe_execute(lambda: {}["missing"], "lookup")
