"""
Bounded retry with exponential backoff for provider calls.

An attempt either returns a value (success), returns None (a miss), or
raises. Misses and exceptions both consume an attempt. Running out of
attempts is reported through RetryOutcome.exhausted rather than raised.
"""

import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from ..config.logger_module import log_info, log_warning
from .resolver_errors import ProviderMissError

T = TypeVar("T")


@dataclass
class RetryOutcome(Generic[T]):
    """Result of running an attempt function under a RetryPolicy."""

    value: Optional[T]
    attempts: int
    last_error: Optional[Exception] = None

    @property
    def exhausted(self) -> bool:
        return self.value is None


def _describe_failure(retry_state: RetryCallState) -> str:
    outcome = retry_state.outcome
    if outcome.failed:
        error = outcome.exception()
        return f"{type(error).__name__}: {error}"
    return "no usable value"


def _last_error(retry_state: RetryCallState) -> Exception:
    outcome = retry_state.outcome
    if outcome.failed:
        return outcome.exception()
    return ProviderMissError("response carried no usable value")


class RetryPolicy:
    """
    Runs an attempt function up to max_attempts times.

    The wait before attempt k+1 is min(base_delay * 2**(k-1), max_delay),
    i.e. 1s, 2s, 4s, then capped at 5s with the defaults. There is no wait
    after the final attempt.
    """

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 5.0,
                 sleep: Callable[[float], None] = None):
        """
        Initialize the retry policy.

        Args:
            max_attempts: Total attempts including the first one
            base_delay: Wait in seconds after the first failed attempt
            max_delay: Upper bound for any single wait
            sleep: Replacement for time.sleep between attempts
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)

    def _build_retrying(self, attempts: int, label: str) -> Retrying:
        def log_retry(retry_state: RetryCallState) -> None:
            log_warning(
                f"{label} failed (attempt {retry_state.attempt_number}/{attempts}): "
                f"{_describe_failure(retry_state)}. "
                f"Retrying in {retry_state.next_action.sleep * 1000:.0f}ms..."
            )

        def give_up(retry_state: RetryCallState) -> RetryOutcome:
            log_warning(
                f"{label} failed after {attempts} attempts: "
                f"{_describe_failure(retry_state)}"
            )
            return RetryOutcome(
                value=None,
                attempts=retry_state.attempt_number,
                last_error=_last_error(retry_state)
            )

        return Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            retry=(
                retry_if_exception_type(Exception)
                | retry_if_result(lambda value: value is None)
            ),
            before_sleep=log_retry,
            retry_error_callback=give_up,
            # time.sleep is looked up per call so tests can patch it
            sleep=self.sleep or (lambda seconds: time.sleep(seconds)),
        )

    def execute(self,
                attempt_fn: Callable[[], Optional[T]],
                max_attempts: int = None,
                label: str = "request") -> RetryOutcome:
        """
        Run attempt_fn until it yields a value or attempts run out.

        Args:
            attempt_fn: Zero-argument callable returning a value or None
            max_attempts: Override for this call
            label: Description used in log messages

        Returns:
            RetryOutcome with the value, or exhausted=True
        """
        attempts = max_attempts or self.max_attempts
        retrying = self._build_retrying(attempts, label)

        result = retrying(attempt_fn)
        if isinstance(result, RetryOutcome):
            return result

        attempt = retrying.statistics.get("attempt_number", 1)
        if attempt > 1:
            log_info(f"{label} succeeded on attempt {attempt}/{attempts}")
        return RetryOutcome(value=result, attempts=attempt)
