"""Metrics hook protocol and no-op default implementation.

canonmark reports counters and timings for render passes, Notion requests
and the page cache.  A :class:`NoopMetricsHook` is used unless the caller
supplies an object satisfying :class:`MetricsHook`.

Emitted metric names:

* ``canonmark.render_duration_ms``     -- timing
* ``canonmark.nodes_rendered_total``   -- counter
* ``canonmark.render_warnings_total``  -- counter
* ``canonmark.requests_total``         -- counter
* ``canonmark.retries_total``          -- counter
* ``canonmark.request_duration_ms``    -- timing
* ``canonmark.cache_hits_total``       -- counter
* ``canonmark.cache_misses_total``     -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Metrics backend that discards every data point."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
