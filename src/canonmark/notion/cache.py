"""Page cache with one in-flight fetch per page id.

:class:`CachingNotionClient` wraps a :class:`NotionClient` and memoizes
:meth:`get_page` by id.  Concurrent callers asking for the same id wait on
a per-id lock, so the page is fetched once; callers asking for different
ids proceed independently.  Failed fetches are not cached, and the next
caller for that id tries again.
"""

from __future__ import annotations

import threading
from typing import Any, Protocol

from canonmark.observability import NoopMetricsHook, get_logger

from .client import page_title

log = get_logger("canonmark.notion")


class PageFetcher(Protocol):
    """Anything with a ``get_page(page_id) -> dict`` method."""

    def get_page(self, page_id: str) -> dict[str, Any]:
        ...


class _PageLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class CachingNotionClient:
    """Memoizing front for a page fetcher.

    A per-id lock exists only while some caller is fetching or waiting for
    that id.

    Parameters
    ----------
    client:
        The fetcher to delegate cache misses to, normally a
        :class:`~canonmark.notion.client.NotionClient`.
    metrics:
        Optional :class:`~canonmark.observability.MetricsHook`.
    """

    def __init__(self, client: PageFetcher, metrics: Any | None = None) -> None:
        self._client = client
        self._metrics = metrics if metrics is not None else NoopMetricsHook()
        self._pages: dict[str, dict[str, Any]] = {}
        self._locks: dict[str, _PageLock] = {}
        self._registry_lock = threading.Lock()

    def _acquire(self, page_id: str) -> threading.Lock:
        with self._registry_lock:
            entry = self._locks.get(page_id)
            if entry is None:
                entry = self._locks[page_id] = _PageLock()
            entry.users += 1
            return entry.lock

    def _release(self, page_id: str) -> None:
        with self._registry_lock:
            entry = self._locks[page_id]
            entry.users -= 1
            if entry.users == 0:
                del self._locks[page_id]

    def _cached(self, page_id: str) -> dict[str, Any] | None:
        page = self._pages.get(page_id)
        if page is not None:
            self._metrics.increment("canonmark.cache_hits_total")
        return page

    def get_page(self, page_id: str) -> dict[str, Any]:
        """Return the page with *page_id*, fetching it at most once.

        Errors raised by the wrapped client propagate unchanged and leave
        the cache untouched.
        """
        page = self._cached(page_id)
        if page is not None:
            return page
        lock = self._acquire(page_id)
        try:
            with lock:
                page = self._cached(page_id)
                if page is not None:
                    return page
                self._metrics.increment("canonmark.cache_misses_total")
                log.debug(
                    "page cache miss",
                    extra={"extra_fields": {"op": "get_page", "page_id": page_id}},
                )
                page = self._client.get_page(page_id)
                self._pages[page_id] = page
                return page
        finally:
            self._release(page_id)

    def page_title(self, page_id: str) -> str:
        """Return the title of the page with *page_id*.

        Usable as the ``title_resolver`` of
        :func:`~canonmark.notion.strategies.render_blocks`.
        """
        return page_title(self.get_page(page_id))

    def __contains__(self, page_id: object) -> bool:
        return page_id in self._pages

    def __len__(self) -> int:
        return len(self._pages)

    def clear(self) -> None:
        """Forget every cached page."""
        with self._registry_lock:
            self._pages.clear()
