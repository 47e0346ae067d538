"""
Transaction extraction prompt.

Builds the instruction sent to the extraction backend for a receipt image or
a free-text message. The wording of the amount field is the contract the
backend is asked to honor: amounts are always positive and the direction of
the transaction comes from context words, not from the sign.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..config import DEFAULT_CATEGORIES, DEFAULT_SOURCE_ACCOUNTS
from ..errors import ValidationError
from ..models.transaction import InputMode
from .base_prompts import BasePrompt

AMOUNT_INSTRUCTION = (
    "amount (ALWAYS use positive numbers in rupiah. Format: 1,000,000 for 1 million, "
    "100,000 for 100k. Never use negative numbers, the transaction type is determined "
    "by context words like \"spent\", \"bought\", \"earned\", \"received\")"
)

RESPONSE_RULES = (
    "IMPORTANT:\n"
    "Respond ONLY with raw JSON.\n"
    "No explanation, no formatting, no code blocks."
)


@dataclass(frozen=True)
class PromptParams:
    """
    Inputs for one extraction prompt.

    Image mode needs ``file_id``; text mode needs ``message`` and
    ``current_date`` (YYYY-MM-DD).
    """
    mode: InputMode
    file_id: str = ""
    message: str = ""
    current_date: str = ""

    @property
    def is_image(self) -> bool:
        return self.mode == InputMode.IMAGE


class TransactionExtractionPrompt(BasePrompt):
    """Prompt asking the backend for one transaction as strict JSON"""

    def __init__(
        self,
        categories: Optional[Sequence[str]] = None,
        source_accounts: Optional[Sequence[str]] = None,
        version: str = "2.0"
    ):
        super().__init__(version=version)
        self.categories: List[str] = list(categories or DEFAULT_CATEGORIES)
        self.source_accounts: List[str] = list(source_accounts or DEFAULT_SOURCE_ACCOUNTS)

    def _validate(self, params: PromptParams) -> None:
        if params.is_image and not params.file_id:
            raise ValidationError("image prompt requires a file id")
        if not params.is_image:
            if not params.message.strip():
                raise ValidationError("text prompt requires a message")
            if not params.current_date:
                raise ValidationError("text prompt requires the current date")

    def _fields(self, params: PromptParams) -> List[str]:
        fields = [
            "title (summary of the transaction notes)",
            "transaction_date (format always YYYY-MM-DD)",
            AMOUNT_INSTRUCTION,
            "notes (details of the transaction, containing items bought)",
            f"category ({self.join_choices(self.categories)})",
        ]
        if params.is_image:
            fields.extend([
                "destination_number",
                f"source_account (only {self.join_choices(self.source_accounts)})",
                f"file_id {params.file_id}",
            ])
        else:
            fields.append("file_id should be empty")
        return fields

    def example(self, params: PromptParams) -> Dict[str, Any]:
        return {
            "title": "Spent on Lunch at ABC Cafe",
            "transaction_date": "2025-03-30",
            "amount": "150,000",
            "notes": (
                "Lunch payment at ABC cafe - always use positive amounts "
                "regardless of whether it's spending or earning"
            ),
            "destination_number": "0524012911",
            "source_account": "Gopay",
            "category": "Eating Out",
            "file_id": params.file_id if params.is_image else "",
        }

    def build_prompt(self, params: PromptParams) -> str:
        """
        Build the full instruction string for ``params``.

        Raises:
            ValidationError: If the params are missing what their mode needs
        """
        self._validate(params)

        if params.is_image:
            input_desc = "from the image"
            date_line = ""
        else:
            input_desc = f"from the following message: {params.message}"
            date_line = (
                f"  - transaction_date should be {params.current_date} "
                "(format always YYYY-MM-DD)\n"
            )

        return (
            f"Please extract the following data {input_desc} and return it as valid JSON.\n\n"
            f"{self.format_fields(self._fields(params))}\n"
            f"{date_line}"
            f"{RESPONSE_RULES}\n\n"
            "Example:\n"
            f"{self.format_example(self.example(params))}"
        )


def build_prompt(
    params: PromptParams,
    categories: Optional[Sequence[str]] = None,
    source_accounts: Optional[Sequence[str]] = None
) -> str:
    """Shorthand for ``TransactionExtractionPrompt(...).build_prompt(params)``"""
    return TransactionExtractionPrompt(categories, source_accounts).build_prompt(params)
