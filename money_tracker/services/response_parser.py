"""
Parsing of raw extraction backend output into a Transaction.

The backend may return several candidates, any of which can be wrapped in a
markdown code fence or be outright malformed. Each candidate is sanitized and
decoded independently; failures are logged and skipped, never raised.
"""

import logging
from enum import Enum
from typing import Iterable, List, Optional, Set

from pydantic import ValidationError as PydanticValidationError

from ..models.transaction import Transaction
from ..utils.amounts import normalize_amount

logger = logging.getLogger(__name__)

JSON_FENCE = "```json"
FENCE = "```"


def sanitize_response(text: str) -> str:
    """
    Strip surrounding whitespace and one pair of code fences.

    A leading ```` ```json ```` (or a bare ```` ``` ````) and a trailing
    ```` ``` ```` are removed; the result is stripped again. Text without
    fences is only trimmed.
    """
    cleaned = text.strip()
    if cleaned.startswith(JSON_FENCE):
        cleaned = cleaned[len(JSON_FENCE):]
    elif cleaned.startswith(FENCE):
        cleaned = cleaned[len(FENCE):]
    if cleaned.endswith(FENCE):
        cleaned = cleaned[:-len(FENCE)]
    return cleaned.strip()


class CandidatePolicy(str, Enum):
    """Which successfully decoded candidate wins when there are several"""
    LAST_WINS = "last"
    FIRST_WINS = "first"

    @classmethod
    def from_setting(cls, value: Optional[str]) -> "CandidatePolicy":
        try:
            return cls((value or cls.LAST_WINS.value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown candidate policy {value!r}, using 'last'")
            return cls.LAST_WINS


class ExtractionParser:
    """
    Turns a list of backend candidates into at most one Transaction.

    Decoded candidates share one accumulator: by default each later
    candidate overwrites the fields it carries and leaves the rest as earlier
    candidates set them. The zero-value Transaction is returned when no
    candidate decodes.
    """

    def __init__(self, policy: CandidatePolicy = CandidatePolicy.LAST_WINS):
        self.policy = policy

    def _should_replace(self, current: Optional[Transaction], candidate: Transaction) -> bool:
        if current is None:
            return True
        return self.policy == CandidatePolicy.LAST_WINS

    @staticmethod
    def _merge(accepted: Transaction, candidate: Transaction, supplied: Set[str]) -> Transaction:
        """Overlay the fields ``candidate`` actually carried onto ``accepted``"""
        update = {name: getattr(candidate, name) for name in supplied}
        return accepted.model_copy(update=update)

    @staticmethod
    def _decode(index: int, text: str) -> Optional[Transaction]:
        payload = sanitize_response(text)
        try:
            return Transaction.from_backend_json(payload)
        except PydanticValidationError as e:
            logger.warning(
                f"Failed to parse candidate {index}: {e.error_count()} error(s); response: {payload[:500]!r}"
            )
            return None

    def parse(self, candidates: Iterable[List[str]]) -> Transaction:
        """
        Decode the candidates in backend order.

        Args:
            candidates: One list of text fragments per candidate

        Returns:
            Transaction: The accumulated candidate fields with the amount
            normalized, or the zero value
        """
        accepted: Optional[Transaction] = None
        seen = 0

        for index, fragments in enumerate(candidates):
            seen += 1
            transaction = self._decode(index, "".join(fragments))
            if transaction is None:
                continue
            supplied = transaction.model_fields_set - {"created_by"}
            transaction.amount = normalize_amount(transaction.amount)
            if accepted is None:
                accepted = transaction
            elif self._should_replace(accepted, transaction):
                accepted = self._merge(accepted, transaction, supplied)

        if accepted is None:
            logger.warning(f"No decodable transaction among {seen} candidate(s)")
            return Transaction()
        return accepted
