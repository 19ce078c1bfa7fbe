"""Failure classification and the bounded exponential-backoff retry loop.

Only transient network failures are retried: connection errors, timeouts and
HTTP 5xx. A 4xx, or a response that was received but could not be turned into
a domain record, fails immediately because repeating the call cannot help.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, TypeVar

import requests
from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception, stop_after_attempt

from lunch_dad.errors import (
    DataContractError,
    ExhaustedRetriesError,
    InvalidInputError,
    TransientNetworkError,
    UpstreamRequestError,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="retry_policy")

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 0.1


class FailureKind(str, Enum):
    """How a failed call should be treated by the retry loop."""
    INVALID_INPUT = "invalid_input"
    TRANSIENT_NETWORK = "transient_network"
    DATA_CONTRACT = "data_contract"
    NOT_FOUND = "not_found"
    CLIENT_ERROR = "client_error"
    UNEXPECTED = "unexpected"


def classify_failure(exc: BaseException) -> FailureKind:
    """Map an exception raised by a fetch attempt onto a FailureKind."""
    if isinstance(exc, InvalidInputError):
        return FailureKind.INVALID_INPUT
    if isinstance(exc, DataContractError):
        return FailureKind.DATA_CONTRACT
    if isinstance(exc, TransientNetworkError):
        return FailureKind.TRANSIENT_NETWORK
    if isinstance(exc, (requests.Timeout, requests.ConnectionError)):
        return FailureKind.TRANSIENT_NETWORK
    if isinstance(exc, requests.RequestException):
        response = exc.response
        if response is None:
            # no response received at all
            return FailureKind.TRANSIENT_NETWORK
        status = response.status_code
        if status == 404:
            return FailureKind.NOT_FOUND
        if status >= 500:
            return FailureKind.TRANSIENT_NETWORK
        return FailureKind.CLIENT_ERROR
    return FailureKind.UNEXPECTED


def is_retryable(exc: BaseException) -> bool:
    """Return True when the failure is worth another attempt."""
    return classify_failure(exc) is FailureKind.TRANSIENT_NETWORK


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt ceiling and backoff for one retried call.

    Attempt 1 runs immediately; attempt n+1 waits base_delay * 2**(n-1).
    `sleep` is injectable so tests can record delays instead of waiting.
    """
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    @classmethod
    def from_settings(cls, settings: Any, *, sleep: Callable[[float], None] = time.sleep) -> "RetryPolicy":
        """Build a policy from the retry_* settings."""
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay_seconds=settings.retry_base_delay_seconds,
            sleep=sleep,
        )

    def backoff_delay(self, attempt: int) -> float:
        """Delay before the attempt after `attempt` (1-based)."""
        return self.base_delay_seconds * (2 ** (attempt - 1))

    def wait(self, retry_state: RetryCallState) -> float:
        """tenacity wait strategy: back off after the attempt that just failed."""
        return self.backoff_delay(retry_state.attempt_number)


def _log_retry(operation: str):
    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"Retrying {operation} after attempt {retry_state.attempt_number} failed: {exc}",
            extra={"operation": operation, "attempt": retry_state.attempt_number, "delay_seconds": delay},
        )
    return before_sleep


def call_with_retry(
    fn: Callable[..., T],
    *args: Any,
    policy: RetryPolicy,
    operation: str,
    **kwargs: Any,
) -> T:
    """Call fn, retrying transient failures per policy.

    Non-retryable exceptions propagate unchanged on the attempt that raised
    them, except requests errors (4xx statuses), which are re-raised as
    UpstreamRequestError. When every attempt fails, ExhaustedRetriesError is
    raised and chained to the last failure.
    """
    retrying = Retrying(
        stop=stop_after_attempt(max(1, policy.max_attempts)),
        wait=policy.wait,
        retry=retry_if_exception(is_retryable),
        sleep=policy.sleep,
        before_sleep=_log_retry(operation),
        reraise=False,
    )
    try:
        return retrying(fn, *args, **kwargs)
    except RetryError as exc:
        last_error = exc.last_attempt.exception()
        attempts = exc.last_attempt.attempt_number
        raise ExhaustedRetriesError(operation, attempts, last_error) from last_error
    except requests.RequestException as exc:
        raise UpstreamRequestError(f"Failed to {operation}: {exc}") from exc
