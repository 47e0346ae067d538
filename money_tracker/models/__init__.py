"""
Data models for the money tracker.
"""

from .transaction import Transaction, InputMode
from .summary import CategorySummary

__all__ = [
    'Transaction',
    'InputMode',
    'CategorySummary'
]
