import functools
import time
import logging
import threading
import uuid
from typing import Optional, Callable, Any, Dict

from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from ..errors import NetworkError
from .error_handling import is_retryable_error


class CircuitOpenError(NetworkError):
    """Raised when the circuit is open and calls are short-circuited"""
    pass


class CircuitBreaker:
    """
    Circuit breaker with bounded retries for a single external collaborator.

    Only errors classified as retryable by the error taxonomy are retried;
    everything else propagates on the first attempt. After ``max_failures``
    consecutive exhausted calls the circuit opens for ``reset_timeout``
    seconds, then lets one call through (half-open) as a trial while
    concurrent callers keep being short-circuited. State changes are guarded
    by a lock; the wrapped call itself runs outside it.
    """
    def __init__(
        self,
        name: str = "default",
        max_failures: int = 3,
        reset_timeout: int = 60,
        max_retries: int = 3,
        initial_backoff: float = 1.0,
        max_backoff: float = 30.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.name = name
        self.max_failures = max_failures
        self.reset_timeout = reset_timeout
        self.max_retries = max(1, max_retries)
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self._clock = clock

        self.failures = 0
        self.last_failure_time: Optional[float] = None
        self.state = "closed"
        self._trial_in_flight = False
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    def _get_request_context(self, func: Callable) -> Dict:
        return {
            'correlation_id': str(uuid.uuid4()),
            'breaker': self.name,
            'function': getattr(func, '__name__', repr(func)),
        }

    def _log_with_context(self, level: int, msg: str, context: Dict, error: Optional[BaseException] = None):
        log_data = dict(context, message=msg)
        if error is not None:
            log_data['error'] = str(error)
        self.logger.log(level, str(log_data))

    def _before_call(self, context: Dict) -> None:
        with self._lock:
            if self.state == "closed":
                return
            if self.state == "half-open":
                if not self._trial_in_flight:
                    self._trial_in_flight = True
                    return
                raise CircuitOpenError(
                    f"circuit '{self.name}' is half-open and already running a trial call"
                ).with_context("breaker", self.name)

            elapsed = self._clock() - (self.last_failure_time or 0.0)
            if elapsed >= self.reset_timeout:
                self._log_with_context(logging.INFO, "Circuit reset timeout reached, moving to half-open", context)
                self.state = "half-open"
                self._trial_in_flight = True
                return
            raise CircuitOpenError(
                f"circuit '{self.name}' is open, will reset after "
                f"{self.reset_timeout - elapsed:.1f} seconds"
            ).with_context("breaker", self.name)

    def _record_success(self, context: Dict) -> None:
        with self._lock:
            if self.state == "half-open":
                self._log_with_context(logging.INFO, "Success in half-open state, closing circuit", context)
            self.state = "closed"
            self.failures = 0
            self._trial_in_flight = False

    def _record_failure(self, context: Dict, error: BaseException) -> None:
        with self._lock:
            self.failures += 1
            self.last_failure_time = self._clock()
            self._trial_in_flight = False
            if self.state == "half-open" or self.failures >= self.max_failures:
                self.state = "open"
                self._log_with_context(
                    logging.ERROR,
                    f"Circuit breaker opened after {self.failures} failures",
                    context,
                    error=error
                )

    def _release_trial(self) -> None:
        # non-retryable errors leave the state as is, only the trial slot is freed
        with self._lock:
            self._trial_in_flight = False

    def call(self, func: Callable, *args, **kwargs) -> Any:
        """Invoke ``func`` under the breaker and retry policy"""
        context = self._get_request_context(func)
        self._before_call(context)

        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential_jitter(initial=self.initial_backoff, max=self.max_backoff),
                retry=retry_if_exception(is_retryable_error),
                reraise=True
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        self._log_with_context(
                            logging.WARNING,
                            f"Retrying (attempt {attempt.retry_state.attempt_number}/{self.max_retries})",
                            context
                        )
                    result = func(*args, **kwargs)
        except Exception as e:
            if is_retryable_error(e):
                self._record_failure(context, e)
            else:
                self._release_trial()
            raise

        self._record_success(context)
        return result

    def __call__(self, func: Callable) -> Callable:
        """Decorator implementation"""
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            return self.call(func, *args, **kwargs)
        return wrapper
