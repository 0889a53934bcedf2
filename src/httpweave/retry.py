# httpweave/retry.py
"""Opt-in retry policy for callers of the httpweave engine.

The engine itself never retries. Callers who want retries wrap their own
``send`` calls in the ``AsyncRetrying`` built here, whose predicate is driven
off the stable ``ErrorKind`` of the raised error.
"""

from collections.abc import Iterable

import tenacity
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from .exceptions import ErrorKind, HttpStatusError, HttpWeaveError
from .log_config import logger

DEFAULT_RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset(
    [ErrorKind.TRANSPORT_FAILURE, ErrorKind.TIMEOUT, ErrorKind.HTTP_STATUS]
)
"""Default set of error kinds considered retryable."""

DEFAULT_RETRYABLE_STATUS_CODES: frozenset[int] = frozenset([429, 500, 502, 503, 504])
"""Status codes retried when ``ErrorKind.HTTP_STATUS`` is retryable."""


class RetryPolicy:
    """Decides which httpweave failures are worth another attempt.

    Attributes:
        kinds: Error kinds that may be retried.
        status_codes: For ``HTTP_STATUS`` errors, the status codes that may be
            retried.
    """

    def __init__(
        self,
        kinds: Iterable[ErrorKind] = DEFAULT_RETRYABLE_KINDS,
        status_codes: Iterable[int] = DEFAULT_RETRYABLE_STATUS_CODES,
    ):
        self.kinds = frozenset(kinds)
        self.status_codes = frozenset(status_codes)

    def should_retry(self, exc: BaseException) -> bool:
        if not isinstance(exc, HttpWeaveError) or exc.kind not in self.kinds:
            return False
        if isinstance(exc, HttpStatusError):
            return exc.status_code in self.status_codes
        return True

    def __call__(self, retry_state: tenacity.RetryCallState) -> bool:
        """Predicate for tenacity: should we retry this request?"""
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False

        exc = outcome.exception()
        if self.should_retry(exc):
            logger.warning(
                f"Retrying due to {type(exc).__name__} ({exc.kind.name}) for {exc.url or 'N/A'}"
            )
            return True
        return False


async def _before_retry_sleep(retry_state: tenacity.RetryCallState) -> None:
    """Log details before tenacity sleeps between retries."""
    if not retry_state.outcome:
        return

    exc = retry_state.outcome.exception()
    sleep_time = (
        getattr(retry_state.next_action, "sleep", 0) if retry_state.next_action else 0
    )
    logger.info(
        f"Retrying request in {sleep_time:.2f} seconds after "
        f"{retry_state.attempt_number} attempt(s) due to: {type(exc).__name__} - {exc}"
    )


def retrying(
    max_retries: int = 3,
    backoff_factor: float = 0.5,
    policy: RetryPolicy | None = None,
) -> AsyncRetrying:
    """Build a tenacity retrier for httpweave calls.

    Example:
        ```python
        async for attempt in retrying(max_retries=2):
            with attempt:
                response = await client.send(request)
        ```

    Args:
        max_retries: Retries after the initial attempt.
        backoff_factor: Multiplier for the exponential wait between attempts.
        policy: Which failures to retry; defaults to ``RetryPolicy()``.

    Returns:
        AsyncRetrying: Re-raises the last error once attempts are exhausted.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=backoff_factor),
        retry=policy or RetryPolicy(),
        reraise=True,
        before_sleep=_before_retry_sleep,
    )
