"""
Clients for the external collaborators: the Gemini extraction backend and
the Google Sheets ledger.
"""

from .gemini_client import ExtractionBackend, GeminiBackend
from .sheets_client import LedgerTable, GoogleSheetsTable

__all__ = [
    # Extraction backend
    'ExtractionBackend',
    'GeminiBackend',

    # Ledger table
    'LedgerTable',
    'GoogleSheetsTable'
]
