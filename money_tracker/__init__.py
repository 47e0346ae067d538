"""
Money Tracker.

Turns receipt photos and free-text messages into transactions with a Gemini
model, records them in a Google Sheets ledger and reports the category's
remaining budget and quota.
"""

__version__ = "0.1.0"

# Import errors
from .errors import (
    AppError,
    ErrorCode,
    Severity,
    ConfigError,
    ChatPlatformError,
    ExtractionBackendError,
    LedgerError,
    FileOperationError,
    ValidationError,
    TransactionError,
    NetworkError,
    OperationTimeoutError,
    DataAccessError
)

# Import models
from .models import Transaction, InputMode, CategorySummary

# Import prompts
from .prompts import PromptParams, TransactionExtractionPrompt, build_prompt

# Import services
from .services import (
    sanitize_response,
    CandidatePolicy,
    ExtractionParser,
    ExtractionRequest,
    ExtractionService,
    LedgerService,
    ReconciliationResult,
    TransactionService
)

# Import utilities
from .utils import normalize_amount, format_rupiah, CircuitBreaker

__all__ = [
    # Errors
    'AppError',
    'ErrorCode',
    'Severity',
    'ConfigError',
    'ChatPlatformError',
    'ExtractionBackendError',
    'LedgerError',
    'FileOperationError',
    'ValidationError',
    'TransactionError',
    'NetworkError',
    'OperationTimeoutError',
    'DataAccessError',

    # Models
    'Transaction',
    'InputMode',
    'CategorySummary',

    # Prompts
    'PromptParams',
    'TransactionExtractionPrompt',
    'build_prompt',

    # Services
    'sanitize_response',
    'CandidatePolicy',
    'ExtractionParser',
    'ExtractionRequest',
    'ExtractionService',
    'LedgerService',
    'ReconciliationResult',
    'TransactionService',

    # Utilities
    'normalize_amount',
    'format_rupiah',
    'CircuitBreaker'
]
