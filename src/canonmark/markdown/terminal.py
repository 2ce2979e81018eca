"""Strategies for rendering to a terminal.

Registered at :data:`~canonmark.markdown.registry.TERMINAL_PRIORITY` when
``FormatterConfig.terminal_output`` is set.  Only emphasis changes: it is
written as SGR control sequences instead of ``*`` markers, so the output
displays styled text while staying valid Markdown otherwise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .nodes import EmphasisStrength, Node, NodeKind

if TYPE_CHECKING:
    from .registry import Strategy
    from .renderer import RenderContext

BOLD = "\x1b[1m"
ITALIC = "\x1b[3m"
RESET = "\x1b[0m"

_SEQUENCES: dict[int, str] = {
    EmphasisStrength.ITALIC: ITALIC,
    EmphasisStrength.BOLD: BOLD,
    EmphasisStrength.BOLD_ITALIC: BOLD + ITALIC,
    EmphasisStrength.UNDERLINE: BOLD + ITALIC,
}


def render_terminal_emphasis(ctx: RenderContext, node: Node, entering: bool) -> None:
    if not entering:
        ctx.write(RESET)
        return
    strength = int(node.attrs.get("strength", EmphasisStrength.ITALIC))
    ctx.write(_SEQUENCES.get(strength, ITALIC))


TERMINAL_STRATEGIES: dict[str, Strategy] = {
    NodeKind.EMPHASIS: render_terminal_emphasis,
}
