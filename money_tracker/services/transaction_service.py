"""
Transaction service: extraction, attribution and persistence of one input.

This is the reconciliation step between what the backend extracted and what
the ledger reports back for the transaction's category.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..models.summary import CategorySummary
from ..models.transaction import Transaction
from ..utils.amounts import format_rupiah, parse_balance
from ..utils.error_handling import safe_execute
from .extraction_service import ExtractionService
from .ledger_service import LedgerService

logger = logging.getLogger(__name__)

SPREADSHEET_URL = "https://docs.google.com/spreadsheets/d/"

REPLY_TEMPLATE = (
    "Saved {source} ✅\n"
    "Category: {category}\n"
    "Amount: {amount}\n"
    "Notes: {notes}\n"
    "Link: {link}\n"
    "Monthly Expenses: {monthly_expenses}\n"
    "Monthly Budget: {monthly_budget}\n"
    "Budget Left: {budget_left}\n"
    "Monthly Quota: {quota}\n"
    "Quota Left: {quota_left}"
)


def spreadsheet_link(spreadsheet_id: str) -> str:
    return SPREADSHEET_URL + spreadsheet_id


@dataclass(frozen=True)
class ReconciliationResult:
    """
    Outcome of one processed input: the persisted transaction, the category
    standing after the append and an optional over-budget warning.
    """
    transaction: Transaction
    summary: CategorySummary
    warning: Optional[str] = None
    source: str = "text"

    def to_message(self, ledger_link: str) -> str:
        """Compose the reply shown to the uploader"""
        message = REPLY_TEMPLATE.format(
            source=self.source,
            category=self.transaction.category,
            amount=format_rupiah(self.transaction.amount),
            notes=self.transaction.notes,
            link=ledger_link,
            monthly_expenses=self.summary.monthly_expenses,
            monthly_budget=self.summary.monthly_budget,
            budget_left=self.summary.budget_left,
            quota=self.summary.quota,
            quota_left=self.summary.quota_left,
        )
        if self.warning:
            message += f"\n\n⚠️ {self.warning}"
        return message


def over_budget_warning(transaction: Transaction, summary: CategorySummary) -> Optional[str]:
    """
    The backend-supplied warning, surfaced only when the category's budget or
    quota has gone negative.
    """
    if not transaction.warning_message:
        return None
    if parse_balance(summary.budget_left) < 0 or parse_balance(summary.quota_left) < 0:
        return transaction.warning_message
    return None


class TransactionService:
    """
    Service reconciling extracted transactions with the ledger.
    """

    def __init__(self,
                 extraction_service: ExtractionService,
                 ledger_service: LedgerService):
        """
        Initialize the transaction service.

        Args:
            extraction_service: Service extracting transactions from inputs
            ledger_service: Service persisting transactions
        """
        self.extraction_service = extraction_service
        self.ledger_service = ledger_service

    def handle_image_input(self,
                           image_path: str,
                           uploader: str,
                           extraction_service: Optional[ExtractionService] = None) -> Transaction:
        """
        Extract a transaction from a receipt image and attribute it to
        ``uploader``. The image file is consumed.

        Args:
            image_path: Local path of the downloaded image
            uploader: Identity recorded as ``created_by``
            extraction_service: Per-call override of the extraction service
        """
        extractor = extraction_service or self.extraction_service
        return extractor.extract_image(image_path).stamped(uploader)

    def handle_text_input(self,
                          message: str,
                          uploader: str,
                          extraction_service: Optional[ExtractionService] = None) -> Transaction:
        extractor = extraction_service or self.extraction_service
        return extractor.extract_text(message).stamped(uploader)

    def save_transaction(self, transaction: Transaction) -> CategorySummary:
        """
        Persist ``transaction`` and return its category summary.

        Raises:
            AppError: If the row cannot be appended; foreign failures arrive
                as ``LedgerError``
        """
        return self.ledger_service.append_transaction(transaction)

    def _reconcile(self, transaction: Transaction, source: str) -> ReconciliationResult:
        if transaction.is_empty or not transaction.category:
            logger.warning(f"Saving a {source} transaction without a category")
        summary = self.save_transaction(transaction)
        return ReconciliationResult(
            transaction=transaction,
            summary=summary,
            warning=over_budget_warning(transaction, summary),
            source=source,
        )

    def process_image(self, image_path: str, uploader: str) -> ReconciliationResult:
        """
        Run the full flow for a receipt image.

        Raises:
            AppError: Any failure, with unexpected exceptions converted to
                TransactionError
        """
        return safe_execute(
            lambda: self._reconcile(self.handle_image_input(image_path, uploader), "photo"),
            "process_image"
        )

    def process_text(self, message: str, uploader: str) -> ReconciliationResult:
        """
        Run the full flow for a free-text message.

        Raises:
            AppError: Any failure, with unexpected exceptions converted to
                TransactionError
        """
        return safe_execute(
            lambda: self._reconcile(self.handle_text_input(message, uploader), "text"),
            "process_text"
        )
