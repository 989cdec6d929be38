"""
Retry policy for requests sent to the Klaviyo API.

Retries are delegated to tenacity. The client only supplies the knobs
(minimum/maximum wait, number of retries), the predicate deciding what is
retryable, and a response hook that turns HTTP 429 into
``TooManyRequestsError`` before the predicate sees it.

Retryable outcomes:
- connection failures and timeouts raised by httpx
- HTTP 429 (as ``TooManyRequestsError``)
- HTTP 5xx responses other than 501

When retries are exhausted the last outcome is handed back unchanged: an
exception is re-raised, a 5xx response is returned so the caller can
translate its error payload.
"""
import logging
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from .config import DEFAULT_RETRY_MAX, DEFAULT_RETRY_WAIT_MAX, DEFAULT_RETRY_WAIT_MIN
from .exceptions import TooManyRequestsError

logger = logging.getLogger(__name__)


def check_response(response: httpx.Response) -> httpx.Response:
    """Reclassify HTTP 429 as ``TooManyRequestsError``."""
    if response.status_code == 429:
        raise TooManyRequestsError()
    return response


def is_retryable_error(exc: BaseException) -> bool:
    if isinstance(exc, TooManyRequestsError):
        return True
    if isinstance(exc, httpx.UnsupportedProtocol):
        return False
    return isinstance(exc, httpx.TransportError)


def is_retryable_response(response: Any) -> bool:
    if not isinstance(response, httpx.Response):
        return False
    status = response.status_code
    return status >= 500 and status != 501


def _last_outcome(retry_state: RetryCallState) -> Any:
    return retry_state.outcome.result()


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff settings for one client. Waits are in seconds."""
    wait_min: float = DEFAULT_RETRY_WAIT_MIN
    wait_max: float = DEFAULT_RETRY_WAIT_MAX
    max_retries: int = DEFAULT_RETRY_MAX

    def __post_init__(self):
        if self.wait_min < 0 or self.wait_max < self.wait_min:
            raise ValueError("retry waits must satisfy 0 <= wait_min <= wait_max")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")

    def _options(self, log: logging.Logger) -> dict:
        return dict(
            wait=wait_exponential(multiplier=self.wait_min, min=self.wait_min, max=self.wait_max),
            stop=stop_after_attempt(self.max_retries + 1),
            retry=retry_if_exception(is_retryable_error) | retry_if_result(is_retryable_response),
            before_sleep=before_sleep_log(log, logging.WARNING),
            retry_error_callback=_last_outcome,
        )

    def retrying(self, log: logging.Logger = logger) -> Retrying:
        return Retrying(**self._options(log))

    def async_retrying(self, log: logging.Logger = logger) -> AsyncRetrying:
        return AsyncRetrying(**self._options(log))
