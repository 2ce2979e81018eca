"""Notion block objects to document tree.

Converts the block dicts returned by the Notion API (``GET
/blocks/{id}/children``, with nested ``children`` already fetched by the
caller) into a ``document`` node that the Markdown renderer can print.

Text coming from Notion is never escaped: rich text content becomes
``string`` nodes, which are written verbatim.  Constructs without a
Markdown equivalent become nodes of the ``notion_*`` kinds handled by
:mod:`canonmark.notion.strategies`; block types this module does not
know become ``notion_<type>`` nodes with no strategy at all, so the
renderer's unsupported-kind policy decides what happens to them.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from canonmark.markdown.nodes import EmphasisStrength, Node, NodeKind
from canonmark.observability import get_logger

log = get_logger("canonmark.notion")

TitleResolver = Callable[[str], str]
"""Returns the title of the page or database with the given id."""

# Custom node kinds.
NOTION_COLOR = "notion_color"
NOTION_EQUATION = "notion_equation"
NOTION_USER = "notion_user"
NOTION_BOOKMARK = "notion_bookmark"
NOTION_LINK_PREVIEW = "notion_link_preview"

_LIST_ITEM_TYPES: dict[str, bool] = {
    "bulleted_list_item": False,
    "to_do": False,
    "numbered_list_item": True,
}

_HEADING_LEVELS: dict[str, int] = {
    "heading_1": 1,
    "heading_2": 2,
    "heading_3": 3,
}


def _block_data(block: dict[str, Any]) -> dict[str, Any]:
    data = block.get(block.get("type", ""))
    return data if isinstance(data, dict) else {}


def _block_children(block: dict[str, Any]) -> list[dict[str, Any]]:
    return _block_data(block).get("children") or block.get("children") or []


def _wrap_color(node: Node, color: str | None) -> Node:
    if not color or color == "default":
        return node
    return Node(NOTION_COLOR, attrs={"color": color}, children=[node])


def _file_url(data: dict[str, Any]) -> str:
    kind = data.get("type", "")
    return (data.get(kind) or {}).get("url", "") if kind in ("external", "file") else ""


def plain_text(rich_text: list[dict[str, Any]]) -> str:
    """Concatenate the ``plain_text`` of a rich text array."""
    parts: list[str] = []
    for item in rich_text:
        text = item.get("plain_text")
        if text is None:
            text = (item.get("text") or {}).get("content", "")
        parts.append(text)
    return "".join(parts)


class BlockConverter:
    """Convert Notion blocks and rich text into document nodes.

    Parameters
    ----------
    title_resolver:
        Looks up the title of a page or database by id.  Used as link text
        for page mentions and ``link_to_page`` blocks; without it those
        links have empty text.
    """

    def __init__(self, title_resolver: TitleResolver | None = None) -> None:
        self._title_resolver = title_resolver

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def convert_blocks(self, blocks: list[dict[str, Any]]) -> list[Node]:
        """Convert sibling blocks, grouping list items into lists.

        A run of bulleted items (including to-dos) forms one bullet list, a
        run of numbered items one ordered list.  A change of kind starts a
        new list.
        """
        nodes: list[Node] = []
        current: Node | None = None
        for block in blocks:
            block_type = block.get("type", "")
            ordered = _LIST_ITEM_TYPES.get(block_type)
            if ordered is None:
                current = None
                nodes.extend(self.convert_block(block))
                continue
            if current is None or current.attrs["ordered"] != ordered:
                current = Node(
                    NodeKind.LIST,
                    attrs={"ordered": ordered, "start": 1, "tight": True},
                )
                nodes.append(current)
            current.append_child(self._list_item(block))
        return nodes

    def convert_block(self, block: dict[str, Any]) -> list[Node]:
        """Convert one non-list block.  Some block types produce several nodes."""
        block_type = block.get("type", "")
        handler = self._BLOCK_HANDLERS.get(block_type)
        if handler is not None:
            return handler(self, block)
        if block_type in _HEADING_LEVELS:
            return self._heading(block, _HEADING_LEVELS[block_type])
        if block_type in _LIST_ITEM_TYPES:
            return self.convert_blocks([block])
        return self._unknown(block)

    def _paragraph(self, block: dict[str, Any]) -> list[Node]:
        data = _block_data(block)
        children = self.convert_blocks(_block_children(block))
        inlines = self.convert_rich_text(data.get("rich_text", []))
        # Empty paragraphs are Notion's vertical spacing.
        if not inlines:
            return children
        paragraph = Node(NodeKind.PARAGRAPH, children=inlines)
        return [_wrap_color(paragraph, data.get("color"))] + children

    def _heading(self, block: dict[str, Any], level: int) -> list[Node]:
        data = _block_data(block)
        heading = Node(
            NodeKind.HEADING,
            attrs={"level": level},
            children=self.convert_rich_text(data.get("rich_text", [])),
        )
        # Toggleable headings carry their content as children.
        return [_wrap_color(heading, data.get("color"))] + self.convert_blocks(_block_children(block))

    def _list_item(self, block: dict[str, Any]) -> Node:
        data = _block_data(block)
        checked = bool(data.get("checked")) if block.get("type") == "to_do" else None
        item = Node(NodeKind.LIST_ITEM, attrs={"checked": checked})
        inlines = self.convert_rich_text(data.get("rich_text", []))
        if inlines:
            paragraph = Node(NodeKind.PARAGRAPH, children=inlines)
            item.append_child(_wrap_color(paragraph, data.get("color")))
        for child in self.convert_blocks(_block_children(block)):
            item.append_child(child)
        return item

    def _quote(self, block: dict[str, Any]) -> list[Node]:
        data = _block_data(block)
        quote = Node(NodeKind.BLOCKQUOTE)
        inlines = self.convert_rich_text(data.get("rich_text", []))
        if inlines:
            quote.append_child(Node(NodeKind.PARAGRAPH, children=inlines))
        for child in self.convert_blocks(_block_children(block)):
            quote.append_child(child)
        return [_wrap_color(quote, data.get("color"))]

    def _code(self, block: dict[str, Any]) -> list[Node]:
        data = _block_data(block)
        language = data.get("language", "")
        # Notion uses "plain text" for unspecified language
        if language == "plain text":
            language = ""
        return [Node(
            NodeKind.CODE_BLOCK,
            attrs={"info": language, "fenced": True},
            value=plain_text(data.get("rich_text", [])),
        )]

    def _divider(self, block: dict[str, Any]) -> list[Node]:
        return [Node(NodeKind.THEMATIC_BREAK)]

    def _equation(self, block: dict[str, Any]) -> list[Node]:
        expression = _block_data(block).get("expression", "")
        return [Node(NOTION_EQUATION, attrs={"display": True}, value=expression)]

    def _image(self, block: dict[str, Any]) -> list[Node]:
        data = _block_data(block)
        image = Node(
            NodeKind.IMAGE,
            attrs={"destination": _file_url(data), "title": None},
            children=[Node(NodeKind.STRING, value=plain_text(data.get("caption", [])))],
        )
        return [Node(NodeKind.PARAGRAPH, children=[image])]

    def _bookmark(self, block: dict[str, Any]) -> list[Node]:
        data = _block_data(block)
        return [Node(
            NOTION_BOOKMARK,
            attrs={"url": data.get("url", "")},
            children=self.convert_rich_text(data.get("caption", [])),
        )]

    def _link_preview(self, block: dict[str, Any]) -> list[Node]:
        return [Node(NOTION_LINK_PREVIEW, attrs={"url": _block_data(block).get("url", "")})]

    def _link_to_page(self, block: dict[str, Any]) -> list[Node]:
        data = _block_data(block)
        target = data.get(data.get("type", "")) or data.get("page_id") or data.get("database_id") or ""
        return [Node(NodeKind.PARAGRAPH, children=[self._page_link(target)])]

    def _child_page(self, block: dict[str, Any]) -> list[Node]:
        title = _block_data(block).get("title", "")
        link = Node(
            NodeKind.LINK,
            attrs={"destination": f"/{block.get('id', '')}", "title": None},
            children=[Node(NodeKind.STRING, value=title)],
        )
        return [Node(NodeKind.PARAGRAPH, children=[link])]

    def _table(self, block: dict[str, Any]) -> list[Node]:
        data = _block_data(block)
        has_header = bool(data.get("has_column_header"))
        width = int(data.get("table_width") or 0)
        table = Node(NodeKind.TABLE)
        rows = [c for c in _block_children(block) if c.get("type") == "table_row"]
        for index, row in enumerate(rows):
            cells = list(_block_data(row).get("cells", []))
            while len(cells) < width:
                cells.append([])
            table.append_child(Node(
                NodeKind.TABLE_ROW,
                attrs={"header": has_header and index == 0},
                children=[
                    Node(NodeKind.TABLE_CELL, attrs={"align": None}, children=self.convert_rich_text(cell))
                    for cell in cells
                ],
            ))
        return [table]

    def _unknown(self, block: dict[str, Any]) -> list[Node]:
        block_type = block.get("type", "unknown")
        log.debug(
            "no conversion for block type",
            extra={"extra_fields": {"op": "convert", "block_type": block_type, "block_id": block.get("id", "")}},
        )
        return [Node(
            f"notion_{block_type}",
            attrs={"id": block.get("id", "")},
            children=self.convert_blocks(_block_children(block)),
        )]

    _BLOCK_HANDLERS: dict[str, Any] = {
        "paragraph": _paragraph,
        "quote": _quote,
        "code": _code,
        "divider": _divider,
        "equation": _equation,
        "image": _image,
        "bookmark": _bookmark,
        "link_preview": _link_preview,
        "link_to_page": _link_to_page,
        "child_page": _child_page,
        "table": _table,
    }

    # ------------------------------------------------------------------
    # Rich text
    # ------------------------------------------------------------------

    def convert_rich_text(self, rich_text: list[dict[str, Any]]) -> list[Node]:
        """Convert a rich text array into inline nodes."""
        nodes: list[Node] = []
        for item in rich_text:
            nodes.extend(self._rich_text_item(item))
        return nodes

    def _rich_text_item(self, item: dict[str, Any]) -> list[Node]:
        item_type = item.get("type", "text")
        annotations = item.get("annotations") or {}

        if item_type == "text":
            text = item.get("text") or {}
            content = text.get("content", item.get("plain_text", ""))
            link = text.get("link")
            if link and link.get("url"):
                node = Node(
                    NodeKind.LINK,
                    attrs={"destination": link["url"], "title": None},
                    children=[self._code_or_string(content, annotations)],
                )
                return self._annotate(node, annotations)
            # Emphasis markers must touch non-space characters.
            stripped = content.strip()
            if not stripped or stripped == content or not _has_markers(annotations):
                return self._annotate(self._code_or_string(content, annotations), annotations)
            lead = content[: len(content) - len(content.lstrip())]
            trail = content[len(content.rstrip()) :]
            inner = self._annotate(self._code_or_string(stripped, annotations), annotations)
            out: list[Node] = []
            if lead:
                out.append(Node(NodeKind.STRING, value=lead))
            out.extend(inner)
            if trail:
                out.append(Node(NodeKind.STRING, value=trail))
            return out

        if item_type == "equation":
            expression = (item.get("equation") or {}).get("expression", "")
            return self._annotate(Node(NOTION_EQUATION, attrs={"display": False}, value=expression), annotations)

        if item_type == "mention":
            return self._annotate(self._mention(item), annotations)

        log.debug(
            "unknown rich text type",
            extra={"extra_fields": {"op": "convert", "type": item_type}},
        )
        return [Node(NodeKind.STRING, value=item.get("plain_text", ""))]

    def _mention(self, item: dict[str, Any]) -> Node:
        mention = item.get("mention") or {}
        mention_type = mention.get("type", "")
        data = mention.get(mention_type) or {}
        if mention_type == "user":
            return Node(NOTION_USER, attrs={"id": data.get("id", ""), "name": data.get("name") or ""})
        if mention_type in ("page", "database"):
            return self._page_link(data.get("id", ""))
        if mention_type == "date":
            text = str(data.get("start") or "")
            if data.get("end"):
                text += "-" + str(data["end"])
            return Node(NodeKind.STRING, value=text)
        if mention_type == "link_preview":
            url = data.get("url", "")
            return Node(
                NodeKind.LINK,
                attrs={"destination": url, "title": None},
                children=[Node(NodeKind.STRING, value=url)],
            )
        return Node(NodeKind.STRING, value=item.get("plain_text", ""))

    def _page_link(self, page_id: str) -> Node:
        title = self._title_resolver(page_id) if self._title_resolver and page_id else ""
        return Node(
            NodeKind.LINK,
            attrs={"destination": f"/{page_id}", "title": None},
            children=[Node(NodeKind.STRING, value=title)],
        )

    @staticmethod
    def _code_or_string(content: str, annotations: dict[str, Any]) -> Node:
        if annotations.get("code"):
            return Node(NodeKind.CODE_SPAN, value=content)
        return Node(NodeKind.STRING, value=content)

    @staticmethod
    def _annotate(node: Node, annotations: dict[str, Any]) -> list[Node]:
        """Wrap *node*: bold, italic, strikethrough, underline, then colour."""
        if annotations.get("bold"):
            node = Node(NodeKind.EMPHASIS, attrs={"strength": EmphasisStrength.BOLD}, children=[node])
        if annotations.get("italic"):
            node = Node(NodeKind.EMPHASIS, attrs={"strength": EmphasisStrength.ITALIC}, children=[node])
        if annotations.get("strikethrough"):
            node = Node(NodeKind.STRIKETHROUGH, children=[node])
        if annotations.get("underline"):
            node = Node(NodeKind.EMPHASIS, attrs={"strength": EmphasisStrength.UNDERLINE}, children=[node])
        return [_wrap_color(node, annotations.get("color"))]


def _has_markers(annotations: dict[str, Any]) -> bool:
    return any(annotations.get(key) for key in ("bold", "italic", "strikethrough", "underline"))


def blocks_to_document(
    blocks: list[dict[str, Any]],
    *,
    title_resolver: TitleResolver | None = None,
) -> Node:
    """Convert Notion *blocks* into a ``document`` node.

    Parameters
    ----------
    blocks:
        Top-level block objects of a page, children already attached as
        ``children`` lists.
    title_resolver:
        See :class:`BlockConverter`.
    """
    converter = BlockConverter(title_resolver)
    return Node(NodeKind.DOCUMENT, children=converter.convert_blocks(blocks))
