"""
Application error classes for the money tracker pipeline.

This module provides a closed taxonomy of error kinds. Every failure that
leaves a component is raised as an ``AppError`` subclass carrying a code,
severity, component name, optional cause and a free-form context mapping.
"""

from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Taxonomy keys used to classify application errors"""
    CONFIG = "CONFIG_ERROR"

    TELEGRAM = "TELEGRAM_ERROR"
    GEMINI = "GEMINI_ERROR"
    SPREADSHEET = "SPREADSHEET_ERROR"

    FILE_OPERATION = "FILE_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    TRANSACTION = "TRANSACTION_ERROR"

    NETWORK = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT_ERROR"

    DATA_ACCESS = "DATA_ACCESS_ERROR"
    DATA_FORMAT = "DATA_FORMAT_ERROR"
    DATA_INTEGRITY = "DATA_INTEGRITY_ERROR"

    GENERIC = "GENERIC_ERROR"


class Severity(IntEnum):
    """Error severity levels, ordered from least to most severe"""
    INFO = 0
    WARNING = 1
    ERROR = 2
    CRITICAL = 3

    def __str__(self) -> str:
        return self.name


RETRYABLE_CODES = frozenset({
    ErrorCode.NETWORK,
    ErrorCode.TIMEOUT,
    ErrorCode.SPREADSHEET,
    ErrorCode.GEMINI,
})


class AppError(Exception):
    """
    Base exception for all application errors.

    Subclasses set ``default_code``, ``default_severity`` and
    ``default_component``; any of them can be overridden per instance.
    """
    default_code: ErrorCode = ErrorCode.GENERIC
    default_severity: Severity = Severity.ERROR
    default_component: str = "unknown"

    def __init__(self,
                 message: str,
                 cause: Optional[BaseException] = None,
                 *,
                 code: Optional[ErrorCode] = None,
                 severity: Optional[Severity] = None,
                 component: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.cause = cause
        self.code = code or self.default_code
        self.severity = self.default_severity if severity is None else severity
        self.component = component or self.default_component
        self.context: Dict[str, Any] = dict(context or {})
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"[{self.code.value}] {self.message}: {self.cause}"
        return f"[{self.code.value}] {self.message}"

    def with_context(self, key: str, value: Any) -> "AppError":
        """Attach a context entry and return the same error for chaining"""
        self.context[key] = value
        return self

    def with_component(self, component: str) -> "AppError":
        """Set the component where the error occurred"""
        self.component = component
        return self

    def is_retryable(self) -> bool:
        return self.code in RETRYABLE_CODES

    def is_critical(self) -> bool:
        return self.severity == Severity.CRITICAL

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view used by the structured logger"""
        return {
            "code": self.code.value,
            "message": self.message,
            "severity": str(self.severity),
            "component": self.component,
            "context": {k: str(v) for k, v in self.context.items()},
            "cause": str(self.cause) if self.cause is not None else None,
            "timestamp": self.timestamp.isoformat(),
        }


class ConfigError(AppError):
    """Configuration or startup failure"""
    default_code = ErrorCode.CONFIG
    default_severity = Severity.CRITICAL
    default_component = "config"


class ChatPlatformError(AppError):
    """Failure talking to the chat platform"""
    default_code = ErrorCode.TELEGRAM
    default_component = "telegram"


class ExtractionBackendError(AppError):
    """Failure talking to the generative extraction backend"""
    default_code = ErrorCode.GEMINI
    default_component = "gemini"


class LedgerError(AppError):
    """Failure talking to the spreadsheet ledger"""
    default_code = ErrorCode.SPREADSHEET
    default_component = "spreadsheet"


class FileOperationError(AppError):
    default_code = ErrorCode.FILE_OPERATION
    default_component = "file"


class ValidationError(AppError):
    default_code = ErrorCode.VALIDATION
    default_component = "validation"


class TransactionError(AppError):
    """Business-level failure while processing a transaction"""
    default_code = ErrorCode.TRANSACTION
    default_component = "transaction"


class NetworkError(AppError):
    default_code = ErrorCode.NETWORK
    default_severity = Severity.WARNING
    default_component = "network"


class OperationTimeoutError(AppError):
    """A bounded call to an external collaborator ran out of time"""
    default_code = ErrorCode.TIMEOUT
    default_severity = Severity.WARNING
    default_component = "timeout"


class DataAccessError(AppError):
    default_code = ErrorCode.DATA_ACCESS
    default_component = "data"
