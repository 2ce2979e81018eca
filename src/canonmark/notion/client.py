"""Minimal synchronous Notion page fetcher.

:class:`NotionClient` retrieves single page objects.  The request
lifecycle is:

1. Send the request with auth and version headers.
2. On ``2xx`` -- return the parsed JSON response.
3. On ``429`` -- honour ``Retry-After``, sleep, and retry.
4. On ``5xx`` / network error -- exponential backoff and retry.
5. On non-retryable ``4xx`` -- raise the matching typed error immediately.
6. On max attempts exceeded -- raise :class:`CanonmarkRetryExhaustedError`.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from canonmark.config import NotionConfig
from canonmark.errors import (
    CanonmarkAuthError,
    CanonmarkNetworkError,
    CanonmarkNotFoundError,
    CanonmarkPermissionError,
    CanonmarkRetryExhaustedError,
    CanonmarkValidationError,
)
from canonmark.observability import NoopMetricsHook, get_logger

from .blocks import plain_text
from .retries import RETRYABLE_EXCEPTIONS, RETRYABLE_STATUSES, RetryPolicy

log = get_logger("canonmark.notion")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the ``Retry-After`` header value as a float, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the :class:`CanonmarkApiError` subclass for a non-retryable 4xx."""
    status = response.status_code
    try:
        body = response.json()
    except (ValueError, KeyError):
        body = {}
    if not isinstance(body, dict):
        body = {}

    notion_message = body.get("message", response.text[:500])
    notion_code = body.get("code", "")

    if status == 400:
        raise CanonmarkValidationError(
            message=f"Validation error on {method} {path}: {notion_message}",
            context={"status_code": status, "notion_code": notion_code, "body": body},
        )
    if status == 401:
        raise CanonmarkAuthError(
            message=f"Authentication failed on {method} {path}: {notion_message}",
            context={"status_code": status, "notion_code": notion_code},
        )
    if status == 403:
        raise CanonmarkPermissionError(
            message=f"Permission denied on {method} {path}: {notion_message}",
            context={
                "status_code": status,
                "notion_code": notion_code,
                "operation": f"{method} {path}",
            },
        )
    if status == 404:
        raise CanonmarkNotFoundError(
            message=f"Resource not found on {method} {path}: {notion_message}",
            context={"status_code": status, "notion_code": notion_code, "path": path},
        )
    raise CanonmarkValidationError(
        message=f"Client error {status} on {method} {path}: {notion_message}",
        context={"status_code": status, "notion_code": notion_code, "body": body},
    )


def page_title(page: dict[str, Any]) -> str:
    """Return the plain text of the title property of a page object.

    Every Notion page has exactly one property of type ``title``; an empty
    string is returned when none is present.
    """
    for prop in (page.get("properties") or {}).values():
        if not isinstance(prop, dict):
            continue
        if prop.get("type") == "title" or ("type" not in prop and "title" in prop):
            return plain_text(prop.get("title") or [])
    return ""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class NotionClient:
    """Synchronous Notion client that fetches page objects.

    Parameters
    ----------
    config:
        A :class:`NotionConfig` with the token and transport options.
    transport:
        Optional :class:`httpx.BaseTransport`, used by tests to stub the API.
    """

    def __init__(self, config: NotionConfig, transport: httpx.BaseTransport | None = None) -> None:
        self._config = config
        self._retry = RetryPolicy.from_config(config)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = httpx.Client(
            base_url=config.base_url,
            headers={
                "Authorization": f"Bearer {config.token}",
                "Notion-Version": config.notion_version,
            },
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
            transport=transport,
        )

    # -- public API --------------------------------------------------------

    def get_page(self, page_id: str) -> dict[str, Any]:
        """Retrieve a page object by id.

        Raises
        ------
        CanonmarkAuthError
            On 401 responses.
        CanonmarkPermissionError
            On 403 responses.
        CanonmarkNotFoundError
            On 404 responses.
        CanonmarkValidationError
            On 400 and other non-retryable 4xx responses.
        CanonmarkRetryExhaustedError
            When every attempt got a retryable status.
        CanonmarkNetworkError
            When the last attempt failed without a response.
        """
        return self.request("GET", f"/pages/{page_id}")

    def page_title(self, page: dict[str, Any]) -> str:
        """Return the title of a page object returned by :meth:`get_page`."""
        return page_title(page)

    def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Execute one API request with the retry policy of the config."""
        max_attempts = self._retry.max_attempts
        last_status: int | None = None

        for attempt in range(max_attempts):
            t0 = time.monotonic()
            try:
                response = self._client.request(method, path, **kwargs)
            except RETRYABLE_EXCEPTIONS as exc:
                self._metrics.increment(
                    "canonmark.requests_total",
                    tags={"method": method, "status": "error"},
                )
                log.warning(
                    "Request network error",
                    extra={"extra_fields": {
                        "op": "request",
                        "method": method,
                        "path": path,
                        "attempt": attempt + 1,
                        "error": str(exc),
                    }},
                )
                if not self._retry.should_retry(attempt, exception=exc):
                    raise CanonmarkNetworkError(
                        message=f"Network error on {method} {path}: {exc}",
                        context={"url": path, "attempt": attempt + 1},
                        cause=exc,
                    ) from exc
                self._sleep_before_retry(method, attempt, None, "network_error")
                continue
            elapsed_ms = (time.monotonic() - t0) * 1000

            last_status = response.status_code
            tags = {"method": method, "status": str(response.status_code)}
            self._metrics.increment("canonmark.requests_total", tags=tags)
            self._metrics.timing("canonmark.request_duration_ms", elapsed_ms, tags=tags)

            if 200 <= response.status_code < 300:
                if not response.content:
                    return {}
                result: dict[str, Any] = response.json()
                return result

            if response.status_code not in RETRYABLE_STATUSES:
                _raise_for_status(response, method, path)

            if not self._retry.should_retry(attempt, status_code=response.status_code):
                break

            retry_after: float | None = None
            reason = "server_error"
            if response.status_code == 429:
                retry_after = _parse_retry_after(response)
                reason = "rate_limited"
                log.warning(
                    "Rate limited by Notion API",
                    extra={"extra_fields": {
                        "op": "request",
                        "method": method,
                        "path": path,
                        "retry_after": retry_after,
                        "attempt": attempt + 1,
                    }},
                )
            self._sleep_before_retry(method, attempt, retry_after, reason)

        raise CanonmarkRetryExhaustedError(
            message=(
                f"All {max_attempts} attempts exhausted for {method} {path} "
                f"(last status: {last_status})"
            ),
            context={"attempts": max_attempts, "last_status_code": last_status},
        )

    def _sleep_before_retry(
        self,
        method: str,
        attempt: int,
        retry_after: float | None,
        reason: str,
    ) -> None:
        delay = self._retry.delay(attempt, retry_after)
        self._metrics.increment(
            "canonmark.retries_total",
            tags={"method": method, "reason": reason},
        )
        time.sleep(delay)

    # -- lifecycle -----------------------------------------------------------

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> NotionClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
