"""canonmark.markdown -- document tree, parser adapter and renderer.

This sub-package provides:

* :mod:`.nodes` -- the document tree and the two-phase walker.
* :mod:`.parser` -- mistune token stream to document tree.
* :mod:`.registry` -- node-kind to strategy dispatch.
* :mod:`.renderer` -- the render pass and its context.
* :mod:`.strategies` / :mod:`.terminal` -- built-in strategy sets.
* :mod:`.format` -- parse-and-render in one call.
"""

from __future__ import annotations

from .format import format_markdown, format_markdown_result
from .nodes import EmphasisStrength, Node, NodeKind, WalkStatus, make, walk
from .parser import MarkdownParser, parse_markdown, split_front_matter
from .registry import (
    DEFAULT_PRIORITY,
    NOTION_PRIORITY,
    TERMINAL_PRIORITY,
    NodeRendererRegistry,
    build_registry,
)
from .renderer import MarkdownRenderer, RenderContext, render
from .strategies import MARKDOWN_STRATEGIES, unsupported_kind
from .terminal import TERMINAL_STRATEGIES

__all__ = [
    "DEFAULT_PRIORITY",
    "MARKDOWN_STRATEGIES",
    "NOTION_PRIORITY",
    "TERMINAL_PRIORITY",
    "TERMINAL_STRATEGIES",
    "EmphasisStrength",
    "MarkdownParser",
    "MarkdownRenderer",
    "Node",
    "NodeKind",
    "NodeRendererRegistry",
    "RenderContext",
    "WalkStatus",
    "build_registry",
    "format_markdown",
    "format_markdown_result",
    "make",
    "parse_markdown",
    "render",
    "split_front_matter",
    "unsupported_kind",
]
