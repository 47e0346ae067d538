import json

import pytest

from conftest import FakeBackend, fixed_clock
from money_tracker.errors import ExtractionBackendError, FileOperationError, OperationTimeoutError, ValidationError
from money_tracker.models.transaction import InputMode
from money_tracker.services.extraction_service import ExtractionRequest, ExtractionService


def _service(backend):
    return ExtractionService(backend, clock=fixed_clock)


@pytest.fixture
def receipt(tmp_path):
    path = tmp_path / "AgAC-receipt.jpg"
    path.write_bytes(b"\xff\xd8jpeg")
    return path


def test_extract_image_sends_image_and_deletes_file(receipt):
    backend = FakeBackend([[json.dumps({"amount": "-45,000", "file_id": "AgAC-receipt.jpg"})]])

    result = _service(backend).extract_image(str(receipt))

    assert result.amount == "45,000"
    assert result.file_id == "AgAC-receipt.jpg"
    prompt, image = backend.calls[0]
    assert image == b"\xff\xd8jpeg"
    assert "from the image" in prompt
    assert "file_id AgAC-receipt.jpg" in prompt
    assert not receipt.exists()


def test_extract_image_deletes_file_when_backend_fails(receipt):
    backend = FakeBackend(error=ExtractionBackendError("boom"))

    with pytest.raises(ExtractionBackendError):
        _service(backend).extract_image(str(receipt))

    assert not receipt.exists()


def test_extract_image_deletes_file_when_nothing_parses(receipt):
    result = _service(FakeBackend([["nope"]])).extract_image(str(receipt))

    assert result.is_empty
    assert not receipt.exists()


def test_missing_image_is_a_file_error(tmp_path):
    backend = FakeBackend()

    with pytest.raises(FileOperationError) as exc_info:
        _service(backend).extract_image(str(tmp_path / "missing.jpg"))

    assert exc_info.value.context["path"].endswith("missing.jpg")
    assert backend.calls == []


def test_extract_text_uses_ledger_date_by_default():
    backend = FakeBackend([[json.dumps({"amount": "-100", "category": "Groceries"})]])

    result = _service(backend).extract_text("spent -100 on groceries")

    assert result.amount == "100"
    prompt, image = backend.calls[0]
    assert image is None
    assert "from the following message: spent -100 on groceries" in prompt
    assert "transaction_date should be 2025-07-10" in prompt


def test_extract_text_with_explicit_date():
    backend = FakeBackend([[json.dumps({"amount": "1"})]])

    _service(backend).extract_text("coffee", current_date="2024-12-31")

    assert "transaction_date should be 2024-12-31" in backend.calls[0][0]


@pytest.mark.parametrize("message", ["", "   ", "\n"])
def test_blank_message_is_rejected(message):
    backend = FakeBackend()

    with pytest.raises(ValidationError):
        _service(backend).extract_text(message)

    assert backend.calls == []


def test_backend_timeout_propagates():
    backend = FakeBackend(error=OperationTimeoutError("too slow"))

    with pytest.raises(OperationTimeoutError):
        _service(backend).extract_text("lunch 20k")


def test_extract_dispatches_on_mode(receipt):
    backend = FakeBackend([[json.dumps({"title": "ok"})]])
    service = _service(backend)

    assert service.extract(ExtractionRequest(InputMode.TEXT, "taxi 30k")).title == "ok"
    assert service.extract(ExtractionRequest(InputMode.IMAGE, str(receipt))).title == "ok"
    assert backend.calls[0][1] is None
    assert backend.calls[1][1] is not None
