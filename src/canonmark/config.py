"""Configuration for canonmark.

:class:`FormatterConfig` controls a render pass (which strategies are
registered, how code blocks are post-processed, how unknown node kinds are
treated).  :class:`NotionConfig` controls the Notion page fetcher.

Both are plain dataclasses validated in ``__post_init__``; invalid values
raise :class:`ValueError` at construction time.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from canonmark.yamlfmt import format_yaml

LanguageFormatter = Callable[[str], str | bytes]
"""Re-formats the content of a fenced code block.  Receives the code
without the fences and returns the replacement content."""


def default_language_formatters() -> dict[str, LanguageFormatter]:
    """Formatters registered unless the caller supplies its own mapping."""
    return {"yaml": format_yaml, "yml": format_yaml}


# ---------------------------------------------------------------------------
# Formatter configuration
# ---------------------------------------------------------------------------

@dataclass
class FormatterConfig:
    """Options for a Markdown render pass.

    Parameters
    ----------
    terminal_output:
        Render emphasis as terminal control sequences (bold, italic, reset)
        instead of ``*`` markers.  Everything else is unchanged.
    node_renderer_overrides:
        ``(priority, {kind: strategy})`` pairs merged over the default
        strategies.  Higher priority wins; the defaults sit at priority 0
        and the terminal set at 100.
    language_formatters:
        Info-string word to formatter.  A fenced code block whose info
        string starts with a registered word has its content passed through
        the formatter before it is written.
    strict:
        Raise instead of warning when a node kind has no strategy or a
        language formatter fails.
    preserve_list_start:
        Keep the first number of an ordered list that does not start at 1.
        Items are still numbered consecutively from there.
    indent_unit:
        Indentation written in front of list-item continuation lines.
    front_matter:
        Detect a leading ``---`` YAML block, keep it out of the Markdown
        parser and re-format it with :func:`canonmark.yamlfmt.format_yaml`.
    metrics:
        Optional :class:`~canonmark.observability.MetricsHook`.
    debug_dump_ast:
        Write the document tree as JSON to *stderr* before rendering.
    """

    # ── Output ──────────────────────────────────────────────────────────
    terminal_output: bool = False

    # ── Strategies ──────────────────────────────────────────────────────
    node_renderer_overrides: list[tuple[int, Mapping[str, Callable[..., Any]]]] = field(
        default_factory=list,
    )

    language_formatters: dict[str, LanguageFormatter] = field(
        default_factory=default_language_formatters,
    )

    # ── Policy ──────────────────────────────────────────────────────────
    strict: bool = False

    # ── Canonicalization ────────────────────────────────────────────────
    preserve_list_start: bool = False

    indent_unit: str = "\t"

    front_matter: bool = True

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_ast: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.indent_unit or self.indent_unit.strip(" \t"):
            raise ValueError(
                f"indent_unit must be a non-empty run of spaces or tabs, got {self.indent_unit!r}"
            )
        for entry in self.node_renderer_overrides:
            if (
                not isinstance(entry, tuple)
                or len(entry) != 2
                or not isinstance(entry[0], int)
                or not isinstance(entry[1], Mapping)
            ):
                raise ValueError(
                    "node_renderer_overrides entries must be (priority, mapping) pairs, "
                    f"got {entry!r}"
                )
            for kind, strategy in entry[1].items():
                if not callable(strategy):
                    raise ValueError(f"strategy for kind {kind!r} is not callable")
        for language, formatter in self.language_formatters.items():
            if not callable(formatter):
                raise ValueError(f"language formatter for {language!r} is not callable")


# ---------------------------------------------------------------------------
# Notion fetcher configuration
# ---------------------------------------------------------------------------

@dataclass
class NotionConfig:
    """Options for :class:`canonmark.notion.client.NotionClient`.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**  Never logged.
    notion_version:
        Value of the ``Notion-Version`` header.
    base_url:
        API root URL.  Plain ``http://`` is only accepted for local hosts.
    timeout_seconds:
        HTTP request timeout in seconds.
    retry_max_attempts:
        Total attempts per request, including the first one.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on the computed backoff delay.
    retry_jitter:
        Randomly scale each delay to 50-100 % of its value.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~canonmark.observability.MetricsHook`.
    """

    token: str = ""

    notion_version: str = "2022-02-22"

    base_url: str = "https://api.notion.com/v1"

    timeout_seconds: float = 30.0

    retry_max_attempts: int = 5

    retry_base_delay: float = 1.0

    retry_max_delay: float = 60.0

    retry_jitter: bool = True

    http_proxy: str | None = None

    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS or target localhost."
            )
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    def __repr__(self) -> str:
        """Mask the token."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"NotionConfig({', '.join(parts)})"
