import threading

import pytest

from money_tracker.errors import ExtractionBackendError, ValidationError
from money_tracker.utils.circuit_breaker import CircuitBreaker, CircuitOpenError


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class Flaky:
    """Fails ``failures`` times with ``error`` and then returns ``"ok"``"""

    def __init__(self, failures, error):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


def _breaker(clock=None, max_failures=2, max_retries=3):
    return CircuitBreaker(
        name="test",
        max_failures=max_failures,
        reset_timeout=60,
        max_retries=max_retries,
        initial_backoff=0,
        max_backoff=0,
        clock=clock or FakeClock()
    )


def test_retries_retryable_errors_until_success():
    func = Flaky(2, ExtractionBackendError("503"))

    assert _breaker().call(func) == "ok"
    assert func.calls == 3


def test_non_retryable_errors_fail_fast():
    func = Flaky(5, ValidationError("bad input"))
    breaker = _breaker()

    with pytest.raises(ValidationError):
        breaker.call(func)

    assert func.calls == 1
    assert breaker.failures == 0
    assert breaker.state == "closed"


def test_opens_after_max_failures_and_short_circuits():
    clock = FakeClock()
    breaker = _breaker(clock)
    func = Flaky(100, ExtractionBackendError("down"))

    for _ in range(2):
        with pytest.raises(ExtractionBackendError):
            breaker.call(func)

    assert breaker.state == "open"
    calls_before = func.calls
    with pytest.raises(CircuitOpenError):
        breaker.call(func)
    assert func.calls == calls_before


def test_half_open_trial_closes_on_success():
    clock = FakeClock()
    breaker = _breaker(clock, max_failures=1, max_retries=1)

    with pytest.raises(ExtractionBackendError):
        breaker.call(Flaky(1, ExtractionBackendError("down")))
    assert breaker.state == "open"

    clock.now += 61
    assert breaker.call(lambda: "back") == "back"
    assert breaker.state == "closed"
    assert breaker.failures == 0


def test_half_open_trial_failure_reopens():
    clock = FakeClock()
    breaker = _breaker(clock, max_failures=1, max_retries=1)

    with pytest.raises(ExtractionBackendError):
        breaker.call(Flaky(1, ExtractionBackendError("down")))

    clock.now += 61
    with pytest.raises(ExtractionBackendError):
        breaker.call(Flaky(1, ExtractionBackendError("still down")))
    assert breaker.state == "open"


def test_circuit_open_error_is_retryable_network_error():
    err = CircuitOpenError("open")

    assert err.is_retryable()
    assert err.code.value == "NETWORK_ERROR"


def test_decorator_form():
    breaker = _breaker()
    counter = {"calls": 0}

    @breaker
    def wrapped(x):
        counter["calls"] += 1
        return x + 1

    assert wrapped(1) == 2
    assert wrapped.__name__ == "wrapped"
    assert counter["calls"] == 1


def _open_then_expire(clock, breaker):
    with pytest.raises(ExtractionBackendError):
        breaker.call(Flaky(1, ExtractionBackendError("down")))
    clock.now += 61


def test_half_open_lets_a_single_trial_call_through():
    clock = FakeClock()
    breaker = _breaker(clock, max_failures=1, max_retries=1)
    _open_then_expire(clock, breaker)

    entered = threading.Event()
    release = threading.Event()
    results = []

    def slow_trial():
        entered.set()
        release.wait(5)
        return "trial"

    worker = threading.Thread(target=lambda: results.append(breaker.call(slow_trial)))
    worker.start()
    assert entered.wait(5)

    with pytest.raises(CircuitOpenError):
        breaker.call(lambda: "second")

    release.set()
    worker.join(5)
    assert results == ["trial"]
    assert breaker.state == "closed"
    assert breaker.call(lambda: "after") == "after"


def test_non_retryable_error_during_trial_frees_the_slot():
    clock = FakeClock()
    breaker = _breaker(clock, max_failures=1, max_retries=1)
    _open_then_expire(clock, breaker)

    with pytest.raises(ValidationError):
        breaker.call(Flaky(1, ValidationError("bad input")))
    assert breaker.state == "half-open"

    assert breaker.call(lambda: "ok") == "ok"
    assert breaker.state == "closed"


def test_concurrent_failures_are_all_counted():
    breaker = _breaker(max_failures=1000, max_retries=1)
    start = threading.Barrier(8)

    def fail_many():
        start.wait(5)
        for _ in range(25):
            with pytest.raises(ExtractionBackendError):
                breaker.call(Flaky(1, ExtractionBackendError("down")))

    workers = [threading.Thread(target=fail_many) for _ in range(8)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(10)

    assert breaker.failures == 200
    assert breaker.state == "closed"
