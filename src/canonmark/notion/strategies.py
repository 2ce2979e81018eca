"""Rendering strategies for the ``notion_*`` node kinds.

Registered at :data:`~canonmark.markdown.registry.NOTION_PRIORITY` by
:func:`render_blocks`.  Callers building their own registry can pass
``(NOTION_PRIORITY, NOTION_STRATEGIES)`` to
:func:`~canonmark.markdown.registry.build_registry`.
"""

from __future__ import annotations

from typing import Any

from canonmark.config import FormatterConfig
from canonmark.markdown.escape import format_link_destination
from canonmark.markdown.nodes import Node, WalkStatus
from canonmark.markdown.registry import NOTION_PRIORITY, Strategy, build_registry
from canonmark.markdown.renderer import MarkdownRenderer, RenderContext
from canonmark.models import RenderResult

from .blocks import (
    NOTION_BOOKMARK,
    NOTION_COLOR,
    NOTION_EQUATION,
    NOTION_LINK_PREVIEW,
    NOTION_USER,
    TitleResolver,
    blocks_to_document,
)


def render_color(ctx: RenderContext, node: Node, entering: bool) -> None:
    # Markdown has no colours; the content is rendered as is.
    return None


def render_equation(ctx: RenderContext, node: Node, entering: bool) -> WalkStatus | None:
    display = bool(node.attrs.get("display"))
    if not entering:
        if display:
            ctx.close_block()
        return None
    expression = ctx.literal(node)
    if display:
        ctx.open_block(node)
        ctx.write("$$\n" + expression + "\n$$")
    else:
        ctx.write("$" + expression + "$")
    return WalkStatus.SKIP_CHILDREN


def render_user(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.write("@" + (node.attrs.get("name") or node.attrs.get("id", "")))


def render_bookmark(ctx: RenderContext, node: Node, entering: bool) -> WalkStatus | None:
    url = node.attrs.get("url", "")
    if not entering:
        if node.children:
            ctx.write("](" + format_link_destination(url) + ")")
        ctx.close_block()
        return None
    ctx.open_block(node)
    if node.children:
        ctx.write("[")
        return None
    ctx.write("<" + url + ">")
    return WalkStatus.SKIP_CHILDREN


def render_link_preview(ctx: RenderContext, node: Node, entering: bool) -> WalkStatus | None:
    if entering:
        ctx.open_block(node)
        ctx.write("<" + node.attrs.get("url", "") + ">")
        return WalkStatus.SKIP_CHILDREN
    ctx.close_block()
    return None


NOTION_STRATEGIES: dict[str, Strategy] = {
    NOTION_COLOR: render_color,
    NOTION_EQUATION: render_equation,
    NOTION_USER: render_user,
    NOTION_BOOKMARK: render_bookmark,
    NOTION_LINK_PREVIEW: render_link_preview,
}


def render_blocks_result(
    blocks: list[dict[str, Any]],
    config: FormatterConfig | None = None,
    title_resolver: TitleResolver | None = None,
) -> RenderResult:
    """Render Notion *blocks* as Markdown and return the :class:`RenderResult`."""
    config = config or FormatterConfig()
    registry = build_registry(config, extra=[(NOTION_PRIORITY, NOTION_STRATEGIES)])
    document = blocks_to_document(blocks, title_resolver=title_resolver)
    return MarkdownRenderer(config, registry).render(document)


def render_blocks(
    blocks: list[dict[str, Any]],
    config: FormatterConfig | None = None,
    title_resolver: TitleResolver | None = None,
) -> bytes:
    """Render Notion *blocks* as Markdown.

    Parameters
    ----------
    blocks:
        Top-level block objects of a page, as returned by the API, with
        nested blocks attached as ``children``.
    config:
        Render options.  The Notion strategies are added at priority 50,
        between the defaults and the terminal set.
    title_resolver:
        Title lookup for page mentions, for example
        :meth:`CachingNotionClient.page_title
        <canonmark.notion.cache.CachingNotionClient.page_title>`.
    """
    return render_blocks_result(blocks, config, title_resolver).output
