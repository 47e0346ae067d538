"""
Error handling helpers shared by every entry point.

Provides conversion of foreign exceptions into ``AppError``, structured
logging of errors, classification queries, and a recovery boundary that turns
unexpected exceptions into a typed ``TransactionError`` instead of letting
them escape an externally-triggered entry point.
"""

import functools
import sys
import traceback
from typing import Any, Callable, Optional, TypeVar

import structlog

from ..errors import AppError, ErrorCode, Severity, TransactionError

T = TypeVar('T')

logger = structlog.get_logger(__name__)


def to_app_error(err: BaseException) -> AppError:
    """Return ``err`` unchanged if it is an AppError, otherwise wrap it"""
    if isinstance(err, AppError):
        return err
    return AppError(str(err) or type(err).__name__, err, code=ErrorCode.GENERIC)


def _log_error(err: AppError, context: str = "", include_stack_trace: bool = False) -> None:
    fields = err.to_dict()
    # the structlog TimeStamper owns the "timestamp" key
    fields['error_timestamp'] = fields.pop('timestamp')
    event = logger.bind(**fields)
    if context:
        event = event.bind(operation=context)

    if include_stack_trace or err.is_critical():
        event = event.bind(stack_trace=err.context.get('stack_trace') or _current_stack())

    if err.severity >= Severity.CRITICAL:
        event.critical("application error")
    elif err.severity >= Severity.ERROR:
        event.error("application error")
    elif err.severity >= Severity.WARNING:
        event.warning("application error")
    else:
        event.info("application error")


def _current_stack() -> str:
    return "".join(traceback.format_stack(limit=20))


def handle_error(err: Optional[BaseException], context: str = "") -> None:
    """Log a non-critical error with its context. ``None`` is ignored."""
    if err is None:
        return
    _log_error(to_app_error(err), context)


def handle_critical_error(err: BaseException, context: str = "") -> None:
    """
    Log an error with a stack trace. The caller decides whether to stop.
    """
    app_err = to_app_error(err)
    _log_error(app_err, context, include_stack_trace=True)
    if app_err.is_critical():
        logger.critical("application may need to shut down", operation=context)


def log_error(err: Optional[BaseException]) -> None:
    if err is None:
        return
    _log_error(to_app_error(err))


def is_retryable_error(err: BaseException) -> bool:
    return isinstance(err, AppError) and err.is_retryable()


def is_critical_error(err: BaseException) -> bool:
    return isinstance(err, AppError) and err.is_critical()


def recover(exc: BaseException, operation: str) -> AppError:
    """
    Convert an exception caught at a boundary into a typed AppError.

    AppErrors keep their classification and gain the operation name; anything
    else becomes a TransactionError carrying the original value and the
    formatted stack trace.
    """
    if isinstance(exc, AppError):
        exc.context.setdefault('function_context', operation)
        return exc

    recovered = TransactionError(
        "recovered from unexpected failure", exc
    ).with_context("panic_value", repr(exc))
    recovered.with_context(
        "stack_trace",
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    recovered.with_context("function_context", operation)
    return recovered


def safe_execute(fn: Callable[[], T], operation: str) -> T:
    """
    Run ``fn`` and convert any exception into a logged, typed AppError.

    Raises:
        AppError: Whatever ``fn`` raised, classified
    """
    try:
        return fn()
    except Exception as exc:
        app_err = recover(exc, operation)
        handle_error(app_err, operation)
        raise app_err from exc


def error_boundary(operation: Optional[str] = None) -> Callable:
    """
    Decorator form of :func:`safe_execute`. The operation name defaults to
    the wrapped function's qualified name.
    """
    def decorator(func: Callable) -> Callable:
        name = operation or func.__qualname__

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            return safe_execute(lambda: func(*args, **kwargs), name)

        return wrapper

    return decorator


def exit_gracefully(err: Optional[BaseException], exit_code: int) -> None:
    """Log ``err`` as critical, if given, then terminate the process"""
    if err is not None:
        handle_critical_error(err, "application shutdown")
    logger.info("application exiting", exit_code=exit_code)
    sys.exit(exit_code)
