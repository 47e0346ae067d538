"""
Extraction service: prompt, backend call and parsing for one input.

Image inputs are transient: the file is removed after the backend has been
called, whatever the outcome of the call or the parse.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..api.gemini_client import ExtractionBackend
from ..errors import FileOperationError, ValidationError
from ..models.transaction import InputMode, Transaction
from ..prompts.transaction_prompts import PromptParams, TransactionExtractionPrompt
from ..utils.date_utils import DateFormatter, ledger_now
from .response_parser import ExtractionParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionRequest:
    """
    One unit of extraction work.

    ``source`` is the image path in image mode and the message in text mode.
    """
    mode: InputMode
    source: str
    current_date: Optional[str] = None


class ExtractionService:
    """
    Service turning one image or message into a Transaction.
    """

    def __init__(self,
                 backend: ExtractionBackend,
                 parser: Optional[ExtractionParser] = None,
                 categories: Optional[Sequence[str]] = None,
                 source_accounts: Optional[Sequence[str]] = None,
                 clock: Callable[[], datetime] = ledger_now):
        """
        Initialize the extraction service.

        Args:
            backend: Generative backend returning candidate texts
            parser: Candidate parser, last-wins by default
            categories: Category vocabulary offered to the backend
            source_accounts: Account vocabulary offered to the backend
            clock: Source of "today" for text inputs
        """
        self.backend = backend
        self.parser = parser or ExtractionParser()
        self.prompt = TransactionExtractionPrompt(categories, source_accounts)
        self.clock = clock

    def extract(self, request: ExtractionRequest) -> Transaction:
        """
        Extract a transaction from ``request``.

        Returns the zero-value Transaction when the backend answered but no
        candidate could be decoded.

        Raises:
            ValidationError: For a blank text message
            FileOperationError: If the image cannot be read
            ExtractionBackendError: If the backend call fails
            OperationTimeoutError: If the backend call runs out of time
        """
        if request.mode == InputMode.IMAGE:
            return self.extract_image(request.source)
        return self.extract_text(request.source, request.current_date)

    def extract_image(self, image_path: str) -> Transaction:
        try:
            with open(image_path, "rb") as f:
                image = f.read()
        except OSError as e:
            raise FileOperationError(
                "unable to read image", e
            ).with_context("path", image_path)

        file_id = os.path.basename(image_path)
        try:
            prompt = self.prompt.build_prompt(PromptParams(mode=InputMode.IMAGE, file_id=file_id))
            candidates = self.backend.generate(prompt, image=image)
        finally:
            self._discard(image_path)

        transaction = self.parser.parse(candidates)
        logger.info(f"Extracted transaction from image {file_id} (empty={transaction.is_empty})")
        return transaction

    def extract_text(self, message: str, current_date: Optional[str] = None) -> Transaction:
        if not message or not message.strip():
            raise ValidationError("message must not be empty")

        current_date = current_date or DateFormatter.format_date(self.clock())
        prompt = self.prompt.build_prompt(
            PromptParams(mode=InputMode.TEXT, message=message, current_date=current_date)
        )
        candidates = self.backend.generate(prompt)

        transaction = self.parser.parse(candidates)
        logger.info(f"Extracted transaction from text (empty={transaction.is_empty})")
        return transaction

    @staticmethod
    def _discard(image_path: str) -> None:
        try:
            os.remove(image_path)
        except OSError as e:
            logger.warning(f"Failed to delete image {image_path}: {e}")
