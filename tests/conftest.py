"""Shared fakes for the money tracker tests.

None of the tests talk to Gemini, Google Sheets or Telegram: the backend,
the ledger table and the chat gateway are replaced by the in-memory fakes
below, all injected through constructors.
"""

from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

import pytest

from money_tracker.config import ConfigManager
from money_tracker.utils.circuit_breaker import CircuitBreaker
from money_tracker.utils.date_utils import LEDGER_TZ

FIXED_NOW = datetime(2025, 7, 10, 9, 30, 15, tzinfo=LEDGER_TZ)


def fixed_clock() -> datetime:
    return FIXED_NOW


class FakeBackend:
    """Returns canned candidates and records every prompt it receives"""

    def __init__(self, candidates: Optional[List[List[str]]] = None, error: Optional[BaseException] = None):
        self.candidates = candidates or []
        self.error = error
        self.calls: List[Tuple[str, Optional[bytes]]] = []

    def generate(self, prompt: str, image: Optional[bytes] = None) -> List[List[str]]:
        self.calls.append((prompt, image))
        if self.error is not None:
            raise self.error
        return self.candidates


class FakeLedgerTable:
    """In-memory ledger with optional injected failures"""

    def __init__(self, summary_rows: Optional[List[List[Any]]] = None,
                 append_error: Optional[BaseException] = None,
                 read_error: Optional[BaseException] = None):
        self.summary_rows = summary_rows or []
        self.append_error = append_error
        self.read_error = read_error
        self.appended: List[Tuple[str, List[Any]]] = []
        self.reads: List[str] = []

    def append_row(self, range_name: str, row: Sequence[Any]) -> None:
        if self.append_error is not None:
            raise self.append_error
        self.appended.append((range_name, list(row)))

    def get_values(self, range_name: str) -> List[List[Any]]:
        self.reads.append(range_name)
        if self.read_error is not None:
            raise self.read_error
        return self.summary_rows


class FakeGateway:
    """Chat gateway recording everything the handler sends"""

    def __init__(self, download_content: bytes = b"jpeg-bytes", download_error: Optional[BaseException] = None):
        self.texts: List[Tuple[int, str]] = []
        self.photos: List[Tuple[int, str, str]] = []
        self.documents: List[Tuple[int, str, str]] = []
        self.downloads: List[Tuple[str, str]] = []
        self.download_content = download_content
        self.download_error = download_error

    async def send_text(self, chat_id: int, text: str) -> None:
        self.texts.append((chat_id, text))

    async def send_photo(self, chat_id: int, path: str, caption: str) -> None:
        self.photos.append((chat_id, path, caption))

    async def send_document(self, chat_id: int, path: str, caption: str) -> None:
        self.documents.append((chat_id, path, caption))

    async def download_file(self, file_id: str, destination: str) -> None:
        self.downloads.append((file_id, destination))
        if self.download_error is not None:
            raise self.download_error
        with open(destination, "wb") as f:
            f.write(self.download_content)


def quick_breaker(name: str = "test", max_failures: int = 3, max_retries: int = 3) -> CircuitBreaker:
    """A breaker that retries without sleeping"""
    return CircuitBreaker(
        name=name,
        max_failures=max_failures,
        max_retries=max_retries,
        initial_backoff=0,
        max_backoff=0
    )


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Keep the config singleton and .env files out of each test"""
    monkeypatch.setattr("money_tracker.config.load_dotenv", lambda *args, **kwargs: False)
    ConfigManager.reset()
    yield
    ConfigManager.reset()
