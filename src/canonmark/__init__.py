"""canonmark -- canonical, idempotent Markdown re-rendering.

Public re-exports
-----------------

* **Formatting:** :func:`format_markdown`, :func:`format_markdown_result`,
  :func:`format_yaml`
* **Rendering:** :class:`MarkdownRenderer`, :func:`render`, the document tree
* **Notion:** :func:`render_blocks`, :class:`NotionClient`,
  :class:`CachingNotionClient`
* **Configuration:** :class:`FormatterConfig`, :class:`NotionConfig`
* **Errors:** Every :class:`CanonmarkError` subclass and :class:`ErrorCode`
* **Models:** :class:`RenderResult`, :class:`RenderWarning`

Usage::

    from canonmark import format_markdown

    out = format_markdown(b"Heading\\n=======\\n\\n+ item\\n")
    # b"# Heading\\n\\n- item\\n"
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from canonmark.config import FormatterConfig, NotionConfig

# ── Errors ──────────────────────────────────────────────────────────────
from canonmark.errors import (
    CanonmarkApiError,
    CanonmarkAuthError,
    CanonmarkError,
    CanonmarkFormatterError,
    CanonmarkNetworkError,
    CanonmarkNotFoundError,
    CanonmarkParseError,
    CanonmarkPermissionError,
    CanonmarkRetryExhaustedError,
    CanonmarkSinkError,
    CanonmarkTreeError,
    CanonmarkUnsupportedNodeError,
    CanonmarkValidationError,
    CanonmarkYamlError,
    ErrorCode,
)

# ── Markdown ────────────────────────────────────────────────────────────
from canonmark.markdown import (
    EmphasisStrength,
    MarkdownParser,
    MarkdownRenderer,
    Node,
    NodeKind,
    NodeRendererRegistry,
    RenderContext,
    WalkStatus,
    build_registry,
    format_markdown,
    format_markdown_result,
    parse_markdown,
    render,
    walk,
)

# ── Models ──────────────────────────────────────────────────────────────
from canonmark.models import RenderResult, RenderWarning

# ── Notion ──────────────────────────────────────────────────────────────
from canonmark.notion import (
    CachingNotionClient,
    NotionClient,
    blocks_to_document,
    render_blocks,
)

# ── YAML ────────────────────────────────────────────────────────────────
from canonmark.yamlfmt import format_yaml

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Formatting
    "format_markdown",
    "format_markdown_result",
    "format_yaml",
    # Rendering
    "MarkdownParser",
    "MarkdownRenderer",
    "RenderContext",
    "NodeRendererRegistry",
    "build_registry",
    "parse_markdown",
    "render",
    # Document tree
    "Node",
    "NodeKind",
    "EmphasisStrength",
    "WalkStatus",
    "walk",
    # Notion
    "NotionClient",
    "CachingNotionClient",
    "blocks_to_document",
    "render_blocks",
    # Configuration
    "FormatterConfig",
    "NotionConfig",
    # Error base + code enum
    "CanonmarkError",
    "ErrorCode",
    # Render errors
    "CanonmarkParseError",
    "CanonmarkUnsupportedNodeError",
    "CanonmarkSinkError",
    "CanonmarkFormatterError",
    "CanonmarkYamlError",
    "CanonmarkTreeError",
    # API / transport errors
    "CanonmarkApiError",
    "CanonmarkValidationError",
    "CanonmarkAuthError",
    "CanonmarkPermissionError",
    "CanonmarkNotFoundError",
    "CanonmarkRetryExhaustedError",
    "CanonmarkNetworkError",
    # Models
    "RenderResult",
    "RenderWarning",
]
