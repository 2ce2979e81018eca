"""Document tree used by the parser adapters and the renderer.

A document is a tree of :class:`Node` objects rooted at a ``document``
node.  A node exclusively owns its children; ``parent`` is a back-reference
used for sibling and ancestor lookups only.  The tree operations on
:class:`Node` refuse to attach a node that already has a parent, or to
attach an ancestor below one of its descendants.

Node kinds are plain strings.  The built-in kinds are the constants on
:class:`NodeKind`; adapters are free to introduce their own (for example
``notion_color``) and register rendering strategies for them.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from canonmark.errors import CanonmarkTreeError


class NodeKind:
    """Identifiers of the built-in node kinds."""

    # Blocks
    DOCUMENT = "document"
    FRONT_MATTER = "front_matter"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BLOCKQUOTE = "blockquote"
    LIST = "list"
    LIST_ITEM = "list_item"
    CODE_BLOCK = "code_block"
    HTML_BLOCK = "html_block"
    THEMATIC_BREAK = "thematic_break"
    TABLE = "table"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    FOOTNOTE_LIST = "footnote_list"
    FOOTNOTE_DEFINITION = "footnote_definition"

    # Inlines
    TEXT = "text"
    STRING = "string"
    SOFT_BREAK = "soft_break"
    HARD_BREAK = "hard_break"
    EMPHASIS = "emphasis"
    CODE_SPAN = "code_span"
    LINK = "link"
    IMAGE = "image"
    RAW_HTML = "raw_html"
    STRIKETHROUGH = "strikethrough"
    FOOTNOTE_REF = "footnote_ref"


BLOCK_KINDS: frozenset[str] = frozenset({
    NodeKind.FRONT_MATTER,
    NodeKind.PARAGRAPH,
    NodeKind.HEADING,
    NodeKind.BLOCKQUOTE,
    NodeKind.LIST,
    NodeKind.LIST_ITEM,
    NodeKind.CODE_BLOCK,
    NodeKind.HTML_BLOCK,
    NodeKind.THEMATIC_BREAK,
    NodeKind.TABLE,
    NodeKind.TABLE_ROW,
    NodeKind.TABLE_CELL,
    NodeKind.FOOTNOTE_LIST,
    NodeKind.FOOTNOTE_DEFINITION,
})
"""Kinds laid out as blocks.  Every other kind is treated as inline."""


class EmphasisStrength(enum.IntEnum):
    """Strength class of an ``emphasis`` node."""

    ITALIC = 1
    BOLD = 2
    BOLD_ITALIC = 3
    UNDERLINE = 4


class WalkStatus(enum.Enum):
    """Returned by walk visitors and rendering strategies."""

    CONTINUE = "continue"
    SKIP_CHILDREN = "skip_children"
    STOP = "stop"


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------

@dataclass
class Node:
    """A node of the document tree.

    Attributes
    ----------
    kind:
        Node kind identifier, see :class:`NodeKind`.
    attrs:
        Kind-specific attributes (heading ``level``, list ``ordered``, link
        ``destination`` ...).
    value:
        Literal payload of leaf kinds (text, code, raw HTML).
    segment:
        ``(start, end)`` byte range into a source buffer, used by
        :meth:`literal` when ``value`` is ``None``.
    children:
        Child nodes, in document order.  Children passed to the constructor
        are attached through :meth:`append_child`.
    parent:
        Back-reference to the owning node; excluded from equality.
    """

    kind: str
    attrs: dict[str, Any] = field(default_factory=dict)
    value: str | None = None
    segment: tuple[int, int] | None = None
    children: list[Node] = field(default_factory=list)
    parent: Node | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        initial = self.children
        self.children = []
        for child in initial:
            self.append_child(child)

    # -- tree mutation -------------------------------------------------------

    def append_child(self, child: Node) -> Node:
        """Attach *child* as the last child and return it."""
        self._check_attachable(child)
        child.parent = self
        self.children.append(child)
        return child

    def insert_child(self, index: int, child: Node) -> Node:
        """Attach *child* at position *index* and return it."""
        self._check_attachable(child)
        child.parent = self
        self.children.insert(index, child)
        return child

    def remove_child(self, child: Node) -> Node:
        """Detach *child* and return it, leaving it a standalone root."""
        for i, existing in enumerate(self.children):
            if existing is child:
                del self.children[i]
                child.parent = None
                return child
        raise CanonmarkTreeError(
            message=f"{child.kind!r} node is not a child of this {self.kind!r} node",
            context={"parent_kind": self.kind, "child_kind": child.kind},
        )

    def _check_attachable(self, child: Node) -> None:
        if child.parent is not None:
            raise CanonmarkTreeError(
                message=f"{child.kind!r} node already belongs to a {child.parent.kind!r} node",
                context={"parent_kind": self.kind, "child_kind": child.kind},
            )
        if child is self or any(a is child for a in self.ancestors()):
            raise CanonmarkTreeError(
                message=f"attaching {child.kind!r} node below itself would form a cycle",
                context={"parent_kind": self.kind, "child_kind": child.kind},
            )

    # -- navigation ----------------------------------------------------------

    @property
    def first_child(self) -> Node | None:
        return self.children[0] if self.children else None

    @property
    def last_child(self) -> Node | None:
        return self.children[-1] if self.children else None

    def _position(self) -> int | None:
        if self.parent is None:
            return None
        for i, sibling in enumerate(self.parent.children):
            if sibling is self:
                return i
        return None

    @property
    def previous_sibling(self) -> Node | None:
        pos = self._position()
        if not pos:
            return None
        assert self.parent is not None
        return self.parent.children[pos - 1]

    @property
    def next_sibling(self) -> Node | None:
        pos = self._position()
        if pos is None:
            return None
        assert self.parent is not None
        siblings = self.parent.children
        return siblings[pos + 1] if pos + 1 < len(siblings) else None

    def ancestors(self) -> Iterator[Node]:
        """Yield the parent, grandparent, ... up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    @property
    def is_block(self) -> bool:
        return self.kind in BLOCK_KINDS

    # -- content -------------------------------------------------------------

    def literal(self, source: bytes | None = None) -> str:
        """Return the literal payload: ``value``, else the source segment."""
        if self.value is not None:
            return self.value
        if self.segment is not None and source is not None:
            start, end = self.segment
            return source[start:end].decode("utf-8")
        return ""

    def text_content(self, source: bytes | None = None) -> str:
        """Concatenate the literal payloads of all descendant leaves."""
        parts: list[str] = []

        def collect(node: Node, entering: bool) -> None:
            if entering and not node.children:
                parts.append(node.literal(source))

        walk(self, collect)
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly dump used by ``debug_dump_ast``."""
        out: dict[str, Any] = {"kind": self.kind}
        if self.attrs:
            out["attrs"] = {
                k: (int(v) if isinstance(v, enum.IntEnum) else v)
                for k, v in self.attrs.items()
            }
        if self.value is not None:
            out["value"] = self.value
        if self.segment is not None:
            out["segment"] = list(self.segment)
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        return out


def make(kind: str, *children: Node, value: str | None = None, **attrs: Any) -> Node:
    """Build a node with *children* attached, e.g. ``make("paragraph", text)``."""
    return Node(kind=kind, attrs=attrs, value=value, children=list(children))


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

Visitor = Callable[[Node, bool], WalkStatus | None]


def walk(root: Node, visitor: Visitor) -> WalkStatus:
    """Depth-first, two-phase traversal driven by an explicit stack.

    *visitor* is called with ``(node, True)`` before the node's children
    and ``(node, False)`` after them.  Returning ``None`` or
    :attr:`WalkStatus.CONTINUE` proceeds normally;
    :attr:`WalkStatus.SKIP_CHILDREN` (on entering) skips the children but
    still produces the leaving visit; :attr:`WalkStatus.STOP` ends the walk.

    Returns :attr:`WalkStatus.STOP` when the walk was stopped early and
    :attr:`WalkStatus.CONTINUE` otherwise.
    """
    stack: list[tuple[Node, bool]] = [(root, True)]
    while stack:
        node, entering = stack.pop()
        status = visitor(node, entering)
        if status is WalkStatus.STOP:
            return WalkStatus.STOP
        if not entering:
            continue
        stack.append((node, False))
        if status is not WalkStatus.SKIP_CHILDREN:
            stack.extend((child, True) for child in reversed(node.children))
    return WalkStatus.CONTINUE
