"""
Service layer for the money tracker.

This module provides the services that extract transactions from receipts
and messages, persist them to the ledger and reconcile the result.
"""

from .response_parser import sanitize_response, CandidatePolicy, ExtractionParser
from .extraction_service import ExtractionRequest, ExtractionService
from .ledger_service import LedgerService
from .transaction_service import (
    ReconciliationResult,
    TransactionService,
    over_budget_warning,
    spreadsheet_link
)

__all__ = [
    # Parsing
    'sanitize_response',
    'CandidatePolicy',
    'ExtractionParser',

    # Extraction
    'ExtractionRequest',
    'ExtractionService',

    # Ledger
    'LedgerService',

    # Reconciliation
    'ReconciliationResult',
    'TransactionService',
    'over_budget_warning',
    'spreadsheet_link'
]
