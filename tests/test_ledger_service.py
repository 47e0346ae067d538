import pytest

from conftest import FakeLedgerTable, fixed_clock, quick_breaker
from money_tracker.errors import ConfigError, LedgerError, NetworkError, OperationTimeoutError
from money_tracker.models.summary import CategorySummary
from money_tracker.models.transaction import Transaction
from money_tracker.services.ledger_service import LedgerService

SUMMARY = [
    ["Food", "500", "1000", "500", "10", "5"],
    ["Transport", "200", "300", "100"],
]


def _service(table):
    return LedgerService(table, circuit_breaker=quick_breaker(), clock=fixed_clock)


def test_append_row_layout_and_timestamp():
    table = FakeLedgerTable(SUMMARY)

    _service(table).append_row("Food", "2025-07-10", "nasi goreng", "25,000", "budi", "f1.jpg")

    range_name, row = table.appended[0]
    assert range_name == "detailed!A:H"
    assert row == ["2025-07-10", "Food", "", "nasi goreng", "25,000", "budi", "f1.jpg", "2025-07-10 09:30:15"]


def test_timestamp_is_rendered_in_utc_plus_seven():
    from datetime import datetime, timezone

    table = FakeLedgerTable()
    service = LedgerService(
        table,
        circuit_breaker=quick_breaker(),
        clock=lambda: datetime(2025, 1, 31, 20, 0, 0, tzinfo=timezone.utc)
    )

    service.append_row("Food", "2025-02-01", "", "1", "", "")

    assert table.appended[0][1][7] == "2025-02-01 03:00:00"


def test_full_summary_row():
    summary = _service(FakeLedgerTable(SUMMARY)).append_row("Food", "d", "n", "1", "u", "")

    assert summary == CategorySummary(
        category="Food",
        monthly_expenses="500",
        monthly_budget="1000",
        budget_left="500",
        quota="10",
        quota_left="5",
    )


def test_four_cell_row_defaults_quota():
    summary = _service(FakeLedgerTable(SUMMARY)).append_row("Transport", "d", "n", "1", "u", "")

    assert summary.budget_left == "100"
    assert summary.quota == ""
    assert summary.quota_left == ""


def test_short_rows_are_skipped():
    rows = [["Food", "1"], [], ["Food", "9", "9", "9"]]

    summary = _service(FakeLedgerTable(rows)).append_row("Food", "d", "n", "1", "u", "")

    assert summary.monthly_expenses == "9"


def test_first_match_wins_and_non_string_cells_are_stringified():
    rows = [["Food", 1, 2, -3], ["Food", "x", "y", "z"]]

    summary = _service(FakeLedgerTable(rows)).append_row("Food", "d", "n", "1", "u", "")

    assert summary.budget_left == "-3"


def test_unknown_category_yields_empty_summary():
    summary = _service(FakeLedgerTable(SUMMARY)).append_row("Health", "d", "n", "1", "u", "")

    assert summary.is_empty


def test_summary_read_failure_is_downgraded():
    table = FakeLedgerTable(SUMMARY, read_error=LedgerError("read failed"))

    summary = _service(table).append_row("Food", "d", "n", "1", "u", "")

    assert summary == CategorySummary()
    assert len(table.appended) == 1


def test_summary_read_is_retried():
    table = FakeLedgerTable(SUMMARY, read_error=NetworkError("flaky"))

    _service(table).append_row("Food", "d", "n", "1", "u", "")

    assert len(table.reads) == 3


def test_append_failure_raises_and_skips_summary():
    table = FakeLedgerTable(SUMMARY, append_error=LedgerError("quota exceeded"))

    with pytest.raises(LedgerError):
        _service(table).append_row("Food", "d", "n", "1", "u", "")

    assert table.reads == []


def test_append_failure_is_not_retried():
    table = FakeLedgerTable(SUMMARY, append_error=NetworkError("reset by peer"))

    with pytest.raises(NetworkError):
        _service(table).append_row("Food", "d", "n", "1", "u", "")

    assert table.reads == []


@pytest.mark.parametrize("error", [
    OperationTimeoutError("append timed out"),
    NetworkError("reset by peer"),
    ConfigError("missing key file"),
])
def test_append_keeps_the_error_kind(error):
    table = FakeLedgerTable(SUMMARY, append_error=error)

    with pytest.raises(type(error)) as exc_info:
        _service(table).append_row("Food", "d", "n", "1", "u", "")

    assert exc_info.value is error


def test_foreign_append_failure_becomes_ledger_error():
    table = FakeLedgerTable(SUMMARY, append_error=RuntimeError("boom"))

    with pytest.raises(LedgerError) as exc_info:
        _service(table).append_row("Food", "d", "n", "1", "u", "")

    assert isinstance(exc_info.value.cause, RuntimeError)
    assert exc_info.value.context["range"] == "detailed!A:H"


def test_append_transaction_maps_fields():
    table = FakeLedgerTable(SUMMARY)
    trx = Transaction(
        transaction_date="2025-07-01",
        category="Transport",
        notes="ojek",
        amount="20,000",
        created_by="sari",
        file_id="",
    )

    summary = _service(table).append_transaction(trx)

    assert table.appended[0][1][:7] == ["2025-07-01", "Transport", "", "ojek", "20,000", "sari", ""]
    assert summary.category == "Transport"


def test_custom_ranges():
    table = FakeLedgerTable(SUMMARY)
    service = LedgerService(
        table,
        detail_range="tx!A:H",
        summary_range="sum!A1:F5",
        circuit_breaker=quick_breaker(),
        clock=fixed_clock
    )

    service.append_row("Food", "d", "n", "1", "u", "")

    assert table.appended[0][0] == "tx!A:H"
    assert table.reads == ["sum!A1:F5"]
