"""
Ledger service for persisting transactions to the spreadsheet.

Each append writes one row to the detail table and then looks up the
category's standing in the summary table. The append is authoritative; the
summary read is best effort.
"""

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from ..api.sheets_client import LedgerTable
from ..errors import AppError, LedgerError
from ..models.summary import MIN_SUMMARY_CELLS, CategorySummary
from ..models.transaction import Transaction
from ..utils.circuit_breaker import CircuitBreaker
from ..utils.date_utils import DateFormatter, ledger_now

logger = logging.getLogger(__name__)

DEFAULT_DETAIL_RANGE = "detailed!A:H"
DEFAULT_SUMMARY_RANGE = "summary!A2:F12"


class LedgerService:
    """
    Service appending transactions to the ledger and reading category
    summaries back.
    """

    def __init__(self,
                 table: LedgerTable,
                 detail_range: str = DEFAULT_DETAIL_RANGE,
                 summary_range: str = DEFAULT_SUMMARY_RANGE,
                 circuit_breaker: Optional[CircuitBreaker] = None,
                 clock: Callable[[], datetime] = ledger_now):
        """
        Initialize the ledger service.

        Args:
            table: Spreadsheet table to write to and read from
            detail_range: A1 range rows are appended to
            summary_range: A1 range of the per-category summary window
            circuit_breaker: Breaker wrapping the summary read
            clock: Source of the ``created_at`` timestamp
        """
        self.table = table
        self.detail_range = detail_range
        self.summary_range = summary_range
        self.circuit_breaker = circuit_breaker or CircuitBreaker(name="ledger", max_failures=3)
        self.clock = clock

    def append_row(self,
                   category: str,
                   date: str,
                   notes: str,
                   amount: str,
                   created_by: str,
                   file_id: str) -> CategorySummary:
        """
        Append one transaction row and return the category's summary.

        The row layout is date, category, an empty column, notes, amount,
        uploader, file id and the creation timestamp. The append is not
        retried so a timed-out request cannot produce duplicate rows.

        Returns:
            CategorySummary: The matching summary, or the zero value when the
            category is absent or the summary cannot be read

        Raises:
            LedgerError: If the row cannot be appended
            OperationTimeoutError: If the append timed out
            NetworkError: If the spreadsheet could not be reached
        """
        created_at = DateFormatter.format_timestamp(self.clock())
        row = [date, category, "", notes, amount, created_by, file_id, created_at]

        try:
            self.table.append_row(self.detail_range, row)
        except AppError:
            raise
        except Exception as e:
            raise LedgerError(
                "unable to append transaction row", e
            ).with_context("range", self.detail_range)
        logger.info(f"Appended {category!r} row created at {created_at}")

        return self.get_category_summary(category)

    def append_transaction(self, transaction: Transaction) -> CategorySummary:
        return self.append_row(
            category=transaction.category,
            date=transaction.transaction_date,
            notes=transaction.notes,
            amount=transaction.amount,
            created_by=transaction.created_by,
            file_id=transaction.file_id,
        )

    def get_category_summary(self, category: str) -> CategorySummary:
        """
        Find the first summary row with at least four cells whose first cell
        equals ``category``. Read failures are logged and yield the zero value.
        """
        try:
            rows = self.circuit_breaker.call(self.table.get_values, self.summary_range)
        except Exception as e:
            logger.warning(f"Unable to read summary range {self.summary_range}: {e}")
            return CategorySummary()

        return self._match(rows or [], category)

    @staticmethod
    def _match(rows: List[List[Any]], category: str) -> CategorySummary:
        for row in rows:
            if len(row) >= MIN_SUMMARY_CELLS and str(row[0]) == category:
                return CategorySummary.from_row(row)
        logger.info(f"No summary row for category {category!r}")
        return CategorySummary()
