"""Error hierarchy for canonmark.

Every public error class inherits from :class:`CanonmarkError`.  Each
carries a machine-readable ``code`` (from :class:`ErrorCode`), a
human-readable ``message``, an optional structured ``context`` dict, and an
optional ``cause`` (chained exception).

Rendering errors and Notion fetch errors share the hierarchy so callers can
catch everything the package raises with a single ``except CanonmarkError``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    PARSE_FAILURE = "PARSE_FAILURE"
    UNSUPPORTED_NODE_KIND = "UNSUPPORTED_NODE_KIND"
    SINK_WRITE_FAILURE = "SINK_WRITE_FAILURE"
    FORMATTER_FAILED = "FORMATTER_FAILED"
    YAML_ERROR = "YAML_ERROR"
    TREE_INVARIANT = "TREE_INVARIANT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    NETWORK_ERROR = "NETWORK_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class CanonmarkError(Exception):
    """Base exception for all canonmark errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Rendering errors
# ---------------------------------------------------------------------------

class CanonmarkParseError(CanonmarkError):
    """The Markdown parser could not build a document tree.

    Context keys: ``stage`` (``"decode"`` or ``"parse"``).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PARSE_FAILURE,
            message=message,
            context=context,
            cause=cause,
        )


class CanonmarkUnsupportedNodeError(CanonmarkError):
    """No rendering strategy is registered for a node kind (strict mode).

    Context keys: ``kind``, ``path`` (kinds from the root to the node).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UNSUPPORTED_NODE_KIND,
            message=message,
            context=context,
            cause=cause,
        )


class CanonmarkSinkError(CanonmarkError):
    """The output sink raised while the renderer was writing to it.

    Output already written is left in the sink.

    Context keys: ``kind`` (node being rendered when the write failed).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.SINK_WRITE_FAILURE,
            message=message,
            context=context,
            cause=cause,
        )


class CanonmarkFormatterError(CanonmarkError):
    """A code-block language formatter failed (strict mode).

    Context keys: ``language``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.FORMATTER_FAILED,
            message=message,
            context=context,
            cause=cause,
        )


class CanonmarkYamlError(CanonmarkError):
    """YAML input could not be loaded or dumped.

    Context keys: ``line``, ``column`` when the YAML library reports a mark.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.YAML_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class CanonmarkTreeError(CanonmarkError):
    """A document-tree operation would break single ownership or acyclicity.

    Context keys: ``parent_kind``, ``child_kind``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.TREE_INVARIANT,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Notion API errors
# ---------------------------------------------------------------------------

class CanonmarkApiError(CanonmarkError):
    """Base class for errors raised while talking to the Notion API."""


class CanonmarkValidationError(CanonmarkApiError):
    """Notion returned 400 (or another non-retryable 4xx).

    Context keys: ``status_code``, ``notion_code``, ``body``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class CanonmarkAuthError(CanonmarkApiError):
    """Notion returned 401; the integration token is invalid or expired.

    Context keys: ``status_code``, ``notion_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.AUTH_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class CanonmarkPermissionError(CanonmarkApiError):
    """Notion returned 403; the integration cannot see the resource.

    Context keys: ``status_code``, ``notion_code``, ``operation``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PERMISSION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class CanonmarkNotFoundError(CanonmarkApiError):
    """Notion returned 404.

    Context keys: ``status_code``, ``notion_code``, ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


class CanonmarkRetryExhaustedError(CanonmarkApiError):
    """Every retry attempt failed with a retryable status or network error.

    Context keys: ``attempts``, ``last_status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RETRY_EXHAUSTED,
            message=message,
            context=context,
            cause=cause,
        )


class CanonmarkNetworkError(CanonmarkApiError):
    """The request never produced a response and retries ran out.

    Context keys: ``url``, ``attempt``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
