"""
Transaction data model for extracted financial records.

This module contains the Pydantic model the extraction backend's JSON is
decoded into, and the input mode enum shared by prompts and extraction.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InputMode(str, Enum):
    """Kind of unstructured input a transaction is extracted from"""
    IMAGE = "image"
    TEXT = "text"


class Transaction(BaseModel):
    """
    Canonical extracted transaction.

    Every field is a string and defaults to ``""``, so ``Transaction()`` is the
    zero value returned when nothing could be decoded. ``created_by`` is set by
    the transaction service after extraction and is never decoded from the
    backend response.
    """
    model_config = ConfigDict(extra="ignore")

    transaction_date: str = Field("", description="Transaction date, YYYY-MM-DD")
    amount: str = Field("", description="Decimal amount string, unsigned once normalized")
    amount_currency: str = Field("", description="Optional currency code")
    notes: str = Field("", description="Details of the transaction, items bought")
    destination_name: str = Field("", description="Payee name (image mode)")
    destination_number: str = Field("", description="Payee account number (image mode)")
    source_account: str = Field("", description="Paying account from the account vocabulary")
    category: str = Field("", description="Category from the category vocabulary")
    title: str = Field("", description="Short summary of the transaction")
    file_id: str = Field("", description="Originating image file name, empty for text")
    created_by: str = Field("", description="Uploader identity")
    warning_message: str = Field("", description="Optional advisory supplied by the backend")

    @field_validator("*", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_numeric_amount(cls, value: Any) -> Any:
        # bool is an int subclass, keep it a decode failure
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @classmethod
    def from_backend_json(cls, payload: str) -> "Transaction":
        """
        Decode one sanitized backend payload.

        ``created_by`` is dropped even if the backend sends it.

        Raises:
            pydantic.ValidationError: If the payload is not a JSON object of
                string fields
        """
        transaction = cls.model_validate_json(payload)
        transaction.created_by = ""
        return transaction

    def stamped(self, uploader: str) -> "Transaction":
        """Return a copy attributed to ``uploader``"""
        return self.model_copy(update={"created_by": uploader})

    @property
    def is_empty(self) -> bool:
        return self == Transaction()
