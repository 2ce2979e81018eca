"""One-call Markdown formatting: parse, render, return bytes."""

from __future__ import annotations

from canonmark.config import FormatterConfig
from canonmark.models import RenderResult

from .parser import MarkdownParser
from .renderer import MarkdownRenderer


def format_markdown_result(src: bytes | str, config: FormatterConfig | None = None) -> RenderResult:
    """Format *src* and return the full :class:`RenderResult`.

    Parameters
    ----------
    src:
        Markdown text, UTF-8 encoded when given as ``bytes``.  A leading
        YAML front matter block is re-formatted unless
        ``config.front_matter`` is ``False``.
    config:
        Render options; defaults to ``FormatterConfig()``.

    Returns
    -------
    RenderResult
        Canonical output plus the warnings of the pass.

    Raises
    ------
    CanonmarkParseError
        *src* is not valid UTF-8 or could not be parsed.
    """
    config = config or FormatterConfig()
    parser = MarkdownParser(front_matter=config.front_matter, debug_dump_ast=config.debug_dump_ast)
    document = parser.parse(src)
    return MarkdownRenderer(config).render(document)


def format_markdown(src: bytes | str, config: FormatterConfig | None = None) -> bytes:
    """Format *src* as canonical Markdown.

    Output always ends with exactly one newline, and formatting the output
    again returns it unchanged.
    """
    return format_markdown_result(src, config).output
