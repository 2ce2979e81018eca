"""Tests for the notion_* rendering strategies."""

from __future__ import annotations

from canonmark.config import FormatterConfig
from canonmark.markdown import MarkdownRenderer, Node, NodeKind, build_registry
from canonmark.markdown.registry import NOTION_PRIORITY
from canonmark.notion import NOTION_STRATEGIES, render_blocks, render_blocks_result
from canonmark.notion.blocks import (
    NOTION_BOOKMARK,
    NOTION_COLOR,
    NOTION_EQUATION,
    NOTION_LINK_PREVIEW,
    NOTION_USER,
)


def render_tree(*children: Node, config: FormatterConfig | None = None) -> str:
    config = config or FormatterConfig()
    registry = build_registry(config, extra=[(NOTION_PRIORITY, NOTION_STRATEGIES)])
    document = Node(NodeKind.DOCUMENT, children=list(children))
    return MarkdownRenderer(config, registry).render(document).text()


def caption(text: str) -> dict:
    return {"type": "text", "text": {"content": text}, "plain_text": text}


class TestEquation:
    def test_block_equation(self):
        blocks = [
            {"type": "paragraph", "paragraph": {"rich_text": [caption("before")]}},
            {"type": "equation", "equation": {"expression": "a^2 + b^2"}},
        ]
        assert render_blocks(blocks) == b"before\n\n$$\na^2 + b^2\n$$\n"

    def test_inline_equation(self):
        paragraph = Node(
            NodeKind.PARAGRAPH,
            children=[Node(NOTION_EQUATION, attrs={"display": False}, value="x_1")],
        )
        assert render_tree(paragraph) == "$x_1$\n"


class TestUser:
    def test_name(self):
        paragraph = Node(NodeKind.PARAGRAPH, children=[Node(NOTION_USER, attrs={"id": "u1", "name": "Ada"})])
        assert render_tree(paragraph) == "@Ada\n"

    def test_falls_back_to_id(self):
        paragraph = Node(NodeKind.PARAGRAPH, children=[Node(NOTION_USER, attrs={"id": "u1", "name": ""})])
        assert render_tree(paragraph) == "@u1\n"


class TestBookmark:
    def test_with_caption(self):
        blocks = [{"type": "bookmark", "bookmark": {"url": "https://example.com", "caption": [caption("Example")]}}]
        assert render_blocks(blocks) == b"[Example](https://example.com)\n"

    def test_without_caption(self):
        blocks = [{"type": "bookmark", "bookmark": {"url": "https://example.com", "caption": []}}]
        assert render_blocks(blocks) == b"<https://example.com>\n"

    def test_separated_like_a_block(self):
        blocks = [
            {"type": "bookmark", "bookmark": {"url": "https://a.example", "caption": []}},
            {"type": "bookmark", "bookmark": {"url": "https://b.example", "caption": []}},
        ]
        assert render_blocks(blocks) == b"<https://a.example>\n\n<https://b.example>\n"


class TestLinkPreview:
    def test_block(self):
        blocks = [{"type": "link_preview", "link_preview": {"url": "https://github.com/x/y/pull/1"}}]
        assert render_blocks(blocks) == b"<https://github.com/x/y/pull/1>\n"

    def test_mention_becomes_autolink(self):
        url = "https://github.com/x/y/pull/1"
        mention = {"type": "mention", "mention": {"type": "link_preview", "link_preview": {"url": url}}}
        blocks = [{"type": "paragraph", "paragraph": {"rich_text": [mention]}}]
        assert render_blocks(blocks) == f"<{url}>\n".encode()


class TestColor:
    def test_renders_content_only(self):
        wrapped = Node(
            NOTION_COLOR,
            attrs={"color": "red"},
            children=[Node(NodeKind.PARAGRAPH, children=[Node(NodeKind.STRING, value="warm")])],
        )
        assert render_tree(wrapped) == "warm\n"


class TestRenderBlocks:
    def test_every_custom_kind_is_registered(self):
        assert set(NOTION_STRATEGIES) == {
            NOTION_COLOR,
            NOTION_EQUATION,
            NOTION_USER,
            NOTION_BOOKMARK,
            NOTION_LINK_PREVIEW,
        }

    def test_strict_accepts_custom_kinds(self):
        blocks = [
            {"type": "equation", "equation": {"expression": "x"}},
            {"type": "bookmark", "bookmark": {"url": "https://example.com", "caption": []}},
            {"type": "paragraph", "paragraph": {"rich_text": [caption("red")], "color": "red"}},
        ]
        result = render_blocks_result(blocks, FormatterConfig(strict=True))
        assert result.ok
        assert result.text() == "$$\nx\n$$\n\n<https://example.com>\n\nred\n"

    def test_terminal_output(self):
        blocks = [{
            "type": "paragraph",
            "paragraph": {"rich_text": [{
                "type": "text",
                "text": {"content": "loud"},
                "annotations": {"bold": True},
            }]},
        }]
        out = render_blocks(blocks, FormatterConfig(terminal_output=True))
        assert out == b"\x1b[1mloud\x1b[0m\n"

    def test_empty_page(self):
        assert render_blocks([]) == b"\n"
