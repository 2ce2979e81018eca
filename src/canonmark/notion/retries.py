"""Retry policy for Notion requests.

:class:`RetryPolicy` bundles the retry settings of a
:class:`~canonmark.config.NotionConfig` and answers the two questions the
request loop of :class:`~canonmark.notion.client.NotionClient` asks after a
failed attempt: may it try again, and how long must it wait first.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

import httpx

from canonmark.config import NotionConfig

RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and exponential backoff.

    Attributes
    ----------
    max_attempts:
        Total attempts per request, the first one included.
    base_delay:
        Delay in seconds after the first failed attempt; doubled for every
        further attempt.
    max_delay:
        Cap on the computed delay.  A server ``Retry-After`` is not capped.
    jitter:
        Scale every delay to a random 50-100 % of its value.
    """

    max_attempts: int = 5
    base_delay: float = 1.0
    max_delay: float = 60.0
    jitter: bool = True

    @classmethod
    def from_config(cls, config: NotionConfig) -> RetryPolicy:
        return cls(
            max_attempts=config.retry_max_attempts,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
            jitter=config.retry_jitter,
        )

    def should_retry(
        self,
        attempt: int,
        status_code: int | None = None,
        exception: Exception | None = None,
    ) -> bool:
        """Whether attempt number *attempt* (0-indexed) may be followed by another.

        A failure is retryable when the exception is a timeout or network
        error, or, without an exception, when *status_code* is 429 or one of
        the transient 5xx codes.
        """
        if attempt + 1 >= self.max_attempts:
            return False
        if exception is not None:
            return isinstance(exception, RETRYABLE_EXCEPTIONS)
        return status_code in RETRYABLE_STATUSES

    def delay(self, attempt: int, retry_after: float | None = None) -> float:
        """Seconds to wait after failed attempt number *attempt*."""
        if retry_after is not None:
            seconds = retry_after
        else:
            seconds = min(self.base_delay * (2 ** attempt), self.max_delay)
        if self.jitter:
            seconds *= 0.5 + random.random() * 0.5
        return seconds
