"""Parse Markdown into the canonmark document tree.

Tokenization is delegated to mistune v3 in AST mode.  This module only
adapts mistune's token list into :class:`~canonmark.markdown.nodes.Node`
trees and applies a few structural normalizations on the way:

* ``paragraph`` and ``block_text`` (tight list content) both become
  ``paragraph`` nodes; the list's ``tight`` flag keeps the distinction.
* ``strong`` becomes ``emphasis`` with :attr:`EmphasisStrength.BOLD`, and an
  emphasis whose only child is an emphasis of the other strength collapses
  into a single :attr:`EmphasisStrength.BOLD_ITALIC` node.
* adjacent text tokens are merged.
* ``blank_line`` tokens are dropped.

Reference-style links arrive already resolved (mistune inlines their
destination and title), and reference definitions never appear in the
token stream.

A leading ``---`` fenced YAML block is split off before parsing and
attached as a ``front_matter`` node.
"""

from __future__ import annotations

import json
import sys
from typing import Any

import mistune
import yaml

from canonmark.errors import CanonmarkParseError
from canonmark.observability import get_logger

from .nodes import EmphasisStrength, Node, NodeKind

log = get_logger("canonmark.parser")

_PLUGINS: list[str] = [
    "strikethrough",
    "table",
    "task_lists",
    "footnotes",
]

_EMPHASIS_STRENGTH: dict[str, EmphasisStrength] = {
    "emphasis": EmphasisStrength.ITALIC,
    "strong": EmphasisStrength.BOLD,
}

# Token types that carry no content of their own.
_SKIP_TYPES: frozenset[str] = frozenset({
    "blank_line",
})


# ---------------------------------------------------------------------------
# Front matter
# ---------------------------------------------------------------------------

def split_front_matter(src: str) -> tuple[str | None, str]:
    """Split a leading YAML front matter block from *src*.

    The block must start on the very first line with ``---`` and end with
    the next line consisting of ``---``.  It is only recognised when its
    content loads as a YAML mapping (or is empty), so a document that merely
    opens with a thematic break is left alone.

    Returns
    -------
    tuple[str | None, str]
        ``(yaml_text, remaining_markdown)``; ``yaml_text`` is ``None`` when
        no front matter was found.
    """
    if not (src.startswith("---\n") or src.startswith("---\r\n")):
        return None, src

    lines = src.splitlines(keepends=True)
    end_index = -1
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end_index = i
            break
    if end_index <= 0:
        return None, src

    yaml_text = "".join(lines[1:end_index])
    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError:
        log.debug(
            "leading block is not YAML, parsing it as Markdown",
            extra={"extra_fields": {"op": "split_front_matter"}},
        )
        return None, src
    if data is not None and not isinstance(data, dict):
        return None, src
    return yaml_text, "".join(lines[end_index + 1 :])


def dedent_lines(text: str) -> str:
    """Remove the leading spaces all non-blank lines of *text* share.

    Blank lines are emptied.  Leading tabs are expanded to four-column stops
    first.
    """
    lines = []
    for line in text.split("\n"):
        body = line.lstrip(" \t")
        lines.append(line[: len(line) - len(body)].expandtabs(4) + body)
    indents = [len(line) - len(line.lstrip(" ")) for line in lines if line.strip()]
    width = min(indents, default=0)
    return "\n".join(line[width:] if line.strip() else "" for line in lines)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class MarkdownParser:
    """Parse Markdown text into a ``document`` node.

    Parameters
    ----------
    front_matter:
        Recognise a leading YAML front matter block.
    debug_dump_ast:
        Write the resulting tree as JSON to *stderr*.
    """

    def __init__(self, *, front_matter: bool = True, debug_dump_ast: bool = False) -> None:
        self._front_matter = front_matter
        self._debug_dump_ast = debug_dump_ast
        self._item_depth = 0
        self._markdown = mistune.create_markdown(renderer="ast", plugins=_PLUGINS)

    def parse(self, src: bytes | str) -> Node:
        """Parse *src* and return the document root.

        Raises
        ------
        CanonmarkParseError
            When *src* is not valid UTF-8 or mistune fails on it.
        """
        if isinstance(src, (bytes, bytearray)):
            try:
                text = bytes(src).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise CanonmarkParseError(
                    message=f"input is not valid UTF-8: {exc}",
                    context={"stage": "decode"},
                    cause=exc,
                ) from exc
        else:
            text = src

        front_matter: str | None = None
        if self._front_matter:
            front_matter, text = split_front_matter(text)

        try:
            tokens = self._markdown(text)
        except (ValueError, TypeError, KeyError, IndexError, RecursionError) as exc:
            raise CanonmarkParseError(
                message=f"Markdown parser failed: {exc}",
                context={"stage": "parse"},
                cause=exc,
            ) from exc

        document = Node(NodeKind.DOCUMENT)
        if front_matter is not None:
            document.append_child(Node(NodeKind.FRONT_MATTER, value=front_matter))
        if isinstance(tokens, list):
            for child in self._convert_blocks(tokens):
                document.append_child(child)

        log.debug(
            "parsed document",
            extra={"extra_fields": {
                "op": "parse",
                "blocks": len(document.children),
                "front_matter": front_matter is not None,
            }},
        )
        if self._debug_dump_ast:
            print(json.dumps(document.to_dict(), indent=2, default=str), file=sys.stderr)
        return document

    # -- blocks --------------------------------------------------------------

    def _convert_blocks(self, tokens: list[dict[str, Any]]) -> list[Node]:
        result: list[Node] = []
        for token in tokens:
            node = self._convert_block(token)
            if node is not None:
                result.append(node)
        return result

    def _convert_block(self, token: dict[str, Any]) -> Node | None:
        raw_type = token.get("type", "")
        if raw_type in _SKIP_TYPES:
            return None
        handler = self._BLOCK_HANDLERS.get(raw_type)
        if handler is None:
            return self._convert_inline(token)
        return handler(self, token)

    def _paragraph(self, token: dict[str, Any]) -> Node:
        return Node(NodeKind.PARAGRAPH, children=self._convert_inlines(token.get("children", [])))

    def _heading(self, token: dict[str, Any]) -> Node:
        return Node(
            NodeKind.HEADING,
            attrs={"level": token["attrs"]["level"]},
            children=self._convert_inlines(token.get("children", [])),
        )

    def _block_quote(self, token: dict[str, Any]) -> Node:
        return Node(NodeKind.BLOCKQUOTE, children=self._convert_blocks(token.get("children", [])))

    def _list(self, token: dict[str, Any]) -> Node:
        attrs = token.get("attrs", {})
        return Node(
            NodeKind.LIST,
            attrs={
                "ordered": bool(attrs.get("ordered")),
                "start": attrs.get("start", 1),
                "tight": bool(token.get("tight", True)),
            },
            children=self._convert_blocks(token.get("children", [])),
        )

    def _list_item(self, token: dict[str, Any]) -> Node:
        checked = None
        if token["type"] == "task_list_item":
            checked = bool(token.get("attrs", {}).get("checked"))
        self._item_depth += 1
        try:
            children = self._convert_blocks(token.get("children", []))
        finally:
            self._item_depth -= 1
        return Node(NodeKind.LIST_ITEM, attrs={"checked": checked}, children=children)

    def _block_code(self, token: dict[str, Any]) -> Node:
        fenced = token.get("style") == "fenced"
        code = token.get("raw", "")
        if fenced and code.endswith("\n"):
            code = code[:-1]
        info = token.get("attrs", {}).get("info", "")
        return Node(NodeKind.CODE_BLOCK, attrs={"info": info, "fenced": fenced}, value=code)

    def _block_html(self, token: dict[str, Any]) -> Node:
        raw = token.get("raw", "").rstrip("\n")
        if self._item_depth:
            # A tab before the block counts as four columns, so the columns
            # past the item's content column stay in front of every line.
            raw = dedent_lines(raw)
        return Node(NodeKind.HTML_BLOCK, value=raw)

    def _thematic_break(self, token: dict[str, Any]) -> Node:
        return Node(NodeKind.THEMATIC_BREAK)

    def _table(self, token: dict[str, Any]) -> Node:
        rows: list[Node] = []
        for part in token.get("children", []):
            if part["type"] == "table_head":
                rows.append(self._table_row(part, header=True))
            elif part["type"] == "table_body":
                rows.extend(self._table_row(row, header=False) for row in part.get("children", []))
        return Node(NodeKind.TABLE, children=rows)

    def _table_row(self, token: dict[str, Any], *, header: bool) -> Node:
        cells = [
            Node(
                NodeKind.TABLE_CELL,
                attrs={"align": cell.get("attrs", {}).get("align")},
                children=self._convert_inlines(cell.get("children", [])),
            )
            for cell in token.get("children", [])
        ]
        return Node(NodeKind.TABLE_ROW, attrs={"header": header}, children=cells)

    def _footnotes(self, token: dict[str, Any]) -> Node:
        definitions = [
            Node(
                NodeKind.FOOTNOTE_DEFINITION,
                attrs={"key": item.get("attrs", {}).get("key", "")},
                children=self._convert_blocks(item.get("children", [])),
            )
            for item in token.get("children", [])
        ]
        return Node(NodeKind.FOOTNOTE_LIST, children=definitions)

    _BLOCK_HANDLERS: dict[str, Any] = {
        "paragraph": _paragraph,
        "block_text": _paragraph,
        "heading": _heading,
        "block_quote": _block_quote,
        "list": _list,
        "list_item": _list_item,
        "task_list_item": _list_item,
        "block_code": _block_code,
        "block_html": _block_html,
        "thematic_break": _thematic_break,
        "table": _table,
        "footnotes": _footnotes,
    }

    # -- inlines -------------------------------------------------------------

    def _convert_inlines(self, tokens: list[dict[str, Any]]) -> list[Node]:
        result: list[Node] = []
        for token in tokens:
            node = self._convert_inline(token)
            if node is None:
                continue
            previous = result[-1] if result else None
            if (
                node.kind == NodeKind.TEXT
                and previous is not None
                and previous.kind == NodeKind.TEXT
            ):
                previous.value = (previous.value or "") + (node.value or "")
                continue
            if node.kind == NodeKind.TEXT and not node.value:
                continue
            result.append(node)
        return result

    def _convert_inline(self, token: dict[str, Any]) -> Node | None:
        raw_type = token.get("type", "")
        if raw_type in _SKIP_TYPES:
            return None

        if raw_type == "text":
            return Node(NodeKind.TEXT, value=token.get("raw", ""))
        if raw_type in _EMPHASIS_STRENGTH:
            return self._emphasis(token)
        if raw_type == "codespan":
            return Node(NodeKind.CODE_SPAN, value=token.get("raw", ""))
        if raw_type in ("link", "image"):
            attrs = token.get("attrs", {})
            return Node(
                NodeKind.LINK if raw_type == "link" else NodeKind.IMAGE,
                attrs={"destination": attrs.get("url", ""), "title": attrs.get("title")},
                children=self._convert_inlines(token.get("children", [])),
            )
        if raw_type == "inline_html":
            return Node(NodeKind.RAW_HTML, value=token.get("raw", ""))
        if raw_type == "softbreak":
            return Node(NodeKind.SOFT_BREAK)
        if raw_type == "linebreak":
            return Node(NodeKind.HARD_BREAK)
        if raw_type == "strikethrough":
            return Node(NodeKind.STRIKETHROUGH, children=self._convert_inlines(token.get("children", [])))
        if raw_type == "footnote_ref":
            return Node(NodeKind.FOOTNOTE_REF, attrs={"key": token.get("raw", "")})

        # Token types introduced by mistune plugins this module does not
        # know about keep their type as kind; the renderer decides.
        log.debug(
            "unknown token type",
            extra={"extra_fields": {"op": "parse", "type": raw_type}},
        )
        children = token.get("children")
        node = Node(raw_type, attrs=dict(token.get("attrs", {})), value=token.get("raw"))
        if children:
            for child in self._convert_blocks(children):
                node.append_child(child)
        return node

    def _emphasis(self, token: dict[str, Any]) -> Node:
        strength = _EMPHASIS_STRENGTH[token["type"]]
        children = self._convert_inlines(token.get("children", []))
        if len(children) == 1:
            inner = children[0]
            inner_strength = inner.attrs.get("strength")
            if (
                inner.kind == NodeKind.EMPHASIS
                and inner_strength in (EmphasisStrength.ITALIC, EmphasisStrength.BOLD)
                and inner_strength != strength
            ):
                grandchildren = list(inner.children)
                for grandchild in grandchildren:
                    inner.remove_child(grandchild)
                return Node(
                    NodeKind.EMPHASIS,
                    attrs={"strength": EmphasisStrength.BOLD_ITALIC},
                    children=grandchildren,
                )
        return Node(NodeKind.EMPHASIS, attrs={"strength": strength}, children=children)


def parse_markdown(src: bytes | str, *, front_matter: bool = True) -> Node:
    """Parse *src* with a fresh :class:`MarkdownParser`."""
    return MarkdownParser(front_matter=front_matter).parse(src)
