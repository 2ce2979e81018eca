"""Default rendering strategies for canonical Markdown output.

Each strategy is a plain function ``(ctx, node, entering)`` registered
for one node kind in :data:`MARKDOWN_STRATEGIES`.  Block strategies call
:meth:`RenderContext.open_block` on entering and
:meth:`RenderContext.close_block` on leaving; inline strategies only
write.
"""

from __future__ import annotations

import re

from canonmark.errors import CanonmarkFormatterError, CanonmarkYamlError
from canonmark.models import FORMATTER_FAILED, UNSUPPORTED_NODE_KIND, YAML_FORMAT_FAILED
from canonmark.observability import get_logger
from canonmark.writers import BlockquoteWriter, IndentWriter, TrimRightWriter
from canonmark.yamlfmt import format_yaml

from .escape import (
    code_block_fence,
    code_span_fence,
    escape_link_title,
    escape_text,
    format_link_destination,
)
from .nodes import EmphasisStrength, Node, NodeKind, WalkStatus, walk
from .registry import Strategy
from .renderer import RenderContext

log = get_logger("canonmark.renderer")

EMPHASIS_MARKERS: dict[int, str] = {
    EmphasisStrength.ITALIC: "*",
    EmphasisStrength.BOLD: "**",
    EmphasisStrength.BOLD_ITALIC: "***",
    EmphasisStrength.UNDERLINE: "***",
}

_ALIGN_MARKERS: dict[str | None, str] = {
    None: "---",
    "left": ":--",
    "center": ":-:",
    "right": "--:",
}

# Continuation indent of footnote definitions.
_FOOTNOTE_INDENT = "    "

_AUTOLINK_RE = re.compile(r"^[A-Za-z][A-Za-z0-9.+-]{1,31}:[^\s<>]*$")
_EMAIL_RE = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9]"
    r"(?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$"
)

_BREAKS = (NodeKind.SOFT_BREAK, NodeKind.HARD_BREAK)


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------

def unsupported_kind(ctx: RenderContext, node: Node, entering: bool) -> WalkStatus | None:
    """Lenient fallback: warn once, write nothing, render the children."""
    if entering:
        log.warning(
            "no rendering strategy for node kind",
            extra={"extra_fields": {"op": "render", "kind": node.kind}},
        )
        ctx.warn(
            UNSUPPORTED_NODE_KIND,
            f"no rendering strategy registered for node kind {node.kind!r}",
            kind=node.kind,
        )
    return None


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

def render_document(ctx: RenderContext, node: Node, entering: bool) -> None:
    return None


def render_paragraph(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.open_block(node)
    else:
        ctx.close_block()


def render_heading(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.open_block(node)
        level = min(max(int(node.attrs.get("level", 1)), 1), 6)
        ctx.write("#" * level + (" " if node.children else ""))
        ctx.heading_depth += 1
    else:
        ctx.heading_depth -= 1
        ctx.close_block()


def render_blockquote(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.open_block(node)
        if not node.children:
            ctx.write(">")
        ctx.push_writer(BlockquoteWriter(ctx.writer))
    else:
        ctx.pop_writer()
        ctx.close_block()


def render_list(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.open_block(node)
        start = 1
        if ctx.config.preserve_list_start and node.attrs.get("ordered"):
            start = int(node.attrs.get("start", 1))
        ctx.begin_list(start)
    else:
        ctx.end_list()
        ctx.close_block()


def _columns(text: str) -> int:
    """Width of leading whitespace *text* with four-column tab stops."""
    return len(text.expandtabs(4))


def _continuation_indent(ctx: RenderContext, node: Node, marker: str) -> str:
    """Indent for the lines of item *node* after its first one.

    The configured unit is used unless it would not put the lines back in
    the item on a second parse, or would leave surplus columns in front of
    a block whose leading whitespace is kept: a nested list, fenced code or
    an HTML block that starts on the marker line.  Such items are padded
    with spaces to the width of *marker*.
    """
    unit = ctx.config.indent_unit
    width = _columns(unit)
    padded = " " * len(marker)
    if width < len(marker):
        return padded
    if "\t" in unit and (
        _columns("".join(ctx.item_indents)) % 4
        or any(a.kind == NodeKind.BLOCKQUOTE for a in node.ancestors())
    ):
        return padded
    first = node.children[0].kind if node.children else None
    if width > len(marker) and first in (NodeKind.LIST, NodeKind.CODE_BLOCK, NodeKind.HTML_BLOCK):
        return padded
    return unit


def render_list_item(ctx: RenderContext, node: Node, entering: bool) -> None:
    if not entering:
        ctx.item_indents.pop()
        ctx.pop_writer()
        ctx.close_block()
        return

    ctx.open_block(node)
    parent = node.parent
    if parent is not None and parent.kind == NodeKind.LIST:
        number = ctx.next_list_number()
        marker = f"{number}. " if parent.attrs.get("ordered") else "- "
    else:
        marker = "- "
    indent = _continuation_indent(ctx, node, marker)
    checked = node.attrs.get("checked")
    if checked is not None:
        marker += "[x] " if checked else "[ ] "
    ctx.write(marker)
    ctx.item_indents.append(indent)
    ctx.push_writer(IndentWriter(ctx.writer, 1, indent, at_line_start=False))


def _format_code(ctx: RenderContext, code: str, language: str) -> str | None:
    """Run the language formatter for *language*; ``None`` keeps *code*."""
    formatters = ctx.config.language_formatters
    formatter = formatters.get(language) or formatters.get(language.lower())
    if formatter is None:
        return None
    try:
        out = formatter(code)
    except Exception as exc:
        if ctx.config.strict:
            raise CanonmarkFormatterError(
                message=f"formatter for {language!r} failed: {exc}",
                context={"language": language},
                cause=exc,
            ) from exc
        log.warning(
            "language formatter failed, keeping original code",
            extra={"extra_fields": {"op": "render", "language": language, "error": str(exc)}},
        )
        ctx.warn(FORMATTER_FAILED, f"formatter for {language!r} failed: {exc}", language=language)
        return None
    return out.decode("utf-8") if isinstance(out, (bytes, bytearray)) else str(out)


def render_code_block(ctx: RenderContext, node: Node, entering: bool) -> WalkStatus | None:
    if not entering:
        ctx.close_block()
        return None

    ctx.open_block(node)
    code = ctx.literal(node)
    info = str(node.attrs.get("info") or "")
    formatted = _format_code(ctx, code, info.split()[0]) if info.strip() else None
    body = code if formatted is None else formatted

    if "`" in info:
        runs = re.findall(r"^[ \t]*(~{3,})", body, flags=re.M)
        longest = max((len(run) for run in runs), default=0)
        fence = "~" * max(3, longest + 1)
    else:
        fence = code_block_fence(body)

    ctx.write(fence + info + "\n")
    if formatted is None:
        if code:
            ctx.write(code + "\n")
    elif formatted.strip("\n"):
        trim = TrimRightWriter(ctx.writer, "\n")
        trim.write_string(formatted)
        trim.close()
        ctx.write("\n")
    ctx.write(fence)
    return WalkStatus.SKIP_CHILDREN


def render_html_block(ctx: RenderContext, node: Node, entering: bool) -> WalkStatus | None:
    if entering:
        ctx.open_block(node)
        ctx.write(ctx.literal(node))
        return WalkStatus.SKIP_CHILDREN
    ctx.close_block()
    return None


def render_thematic_break(ctx: RenderContext, node: Node, entering: bool) -> WalkStatus | None:
    if entering:
        ctx.open_block(node)
        # "- ---" reads back as a break, not an item, and a leading "---"
        # can open front matter.
        parent = node.parent
        first = parent is not None and node.previous_sibling is None
        ctx.write("***" if first and parent.kind in (NodeKind.LIST_ITEM, NodeKind.DOCUMENT) else "---")
        return WalkStatus.SKIP_CHILDREN
    ctx.close_block()
    return None


def render_front_matter(ctx: RenderContext, node: Node, entering: bool) -> WalkStatus | None:
    if not entering:
        ctx.close_block()
        return None

    ctx.open_block(node)
    raw = ctx.literal(node)
    try:
        body = format_yaml(raw).decode("utf-8")
    except CanonmarkYamlError as exc:
        if ctx.config.strict:
            raise
        log.warning(
            "front matter is not valid YAML, keeping it as is",
            extra={"extra_fields": {"op": "render", "error": exc.message}},
        )
        ctx.warn(YAML_FORMAT_FAILED, exc.message, **exc.context)
        body = raw if not raw or raw.endswith("\n") else raw + "\n"
    ctx.write("---\n" + body + "---")
    return WalkStatus.SKIP_CHILDREN


def render_table(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.open_block(node)
    else:
        ctx.close_block()


def render_table_row(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        if node.previous_sibling is not None:
            ctx.write("\n")
        ctx.write("|")
        return
    if node.previous_sibling is None:
        ctx.write("\n|")
        for cell in node.children:
            ctx.write(" " + _ALIGN_MARKERS.get(cell.attrs.get("align"), "---") + " |")


def render_table_cell(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.table_depth += 1
        ctx.write(" ")
    else:
        ctx.table_depth -= 1
        ctx.write(" |")


def render_footnote_list(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.open_block(node)
    else:
        ctx.close_block()


def render_footnote_definition(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.open_block(node)
        ctx.write(f"[^{node.attrs.get('key', '')}]: ")
        ctx.push_writer(IndentWriter(ctx.writer, 1, _FOOTNOTE_INDENT, at_line_start=False))
    else:
        ctx.pop_writer()
        ctx.close_block()


# ---------------------------------------------------------------------------
# Inlines
# ---------------------------------------------------------------------------

def _starts_line(ctx: RenderContext, node: Node) -> bool:
    if ctx.heading_depth:
        return False
    previous = node.previous_sibling
    if previous is None:
        return node.parent is not None and node.parent.kind == NodeKind.PARAGRAPH
    return previous.kind in _BREAKS


def _closing_brackets(ctx: RenderContext, block: Node) -> tuple[dict[int, int], int]:
    """Index the text nodes of *block* in document order.

    Returns the position of every text node and the position of the last
    one that contains a ``]``, or ``-1``.
    """
    cached = ctx.bracket_index.get(id(block))
    if cached is not None:
        return cached
    order: dict[int, int] = {}
    last = -1

    def visit(other: Node, entering: bool) -> None:
        nonlocal last
        if entering and other.kind == NodeKind.TEXT:
            order[id(other)] = len(order)
            if "]" in ctx.literal(other):
                last = order[id(other)]

    walk(block, visit)
    ctx.bracket_index[id(block)] = (order, last)
    return order, last


def _bracket_follows(ctx: RenderContext, node: Node) -> bool:
    """Whether a ``]`` appears in text after *node* within its block."""
    block = next((a for a in node.ancestors() if a.is_block or a.kind == NodeKind.DOCUMENT), None)
    if block is None:
        return False
    order, last = _closing_brackets(ctx, block)
    return order.get(id(node), last) < last


def render_text(ctx: RenderContext, node: Node, entering: bool) -> None:
    if not entering:
        return
    text = ctx.literal(node)
    in_link = any(a.kind in (NodeKind.LINK, NodeKind.IMAGE) for a in node.ancestors())
    following = node.next_sibling
    escaped = escape_text(
        text,
        at_line_start=_starts_line(ctx, node),
        in_table=ctx.table_depth > 0,
        at_heading_end=(
            node.parent is not None
            and node.parent.kind == NodeKind.HEADING
            and following is None
        ),
        bracket_closes_later=not in_link and "[" in text and _bracket_follows(ctx, node),
        in_link=in_link,
    )
    if following is not None and following.kind == NodeKind.LINK and escaped.endswith("!"):
        escaped = escaped[:-1] + "\\!"
    ctx.write(escaped)


def render_string(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.write(ctx.literal(node))


def _heading_break(node: Node) -> str:
    # Headings stay on one line; a break at either edge writes nothing.
    if node.previous_sibling is None or node.next_sibling is None:
        return ""
    return " "


def render_soft_break(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.write(_heading_break(node) if ctx.heading_depth else "\n")


def render_hard_break(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.write(_heading_break(node) if ctx.heading_depth else "\\\n")


def render_emphasis(ctx: RenderContext, node: Node, entering: bool) -> None:
    strength = node.attrs.get("strength", EmphasisStrength.ITALIC)
    ctx.write(EMPHASIS_MARKERS.get(int(strength), "*"))


def render_code_span(ctx: RenderContext, node: Node, entering: bool) -> WalkStatus | None:
    if not entering:
        return None
    code = ctx.literal(node)
    fence, pad = code_span_fence(code)
    ctx.write(fence + pad + code + pad + fence)
    return WalkStatus.SKIP_CHILDREN


def is_autolink(ctx: RenderContext, node: Node) -> bool:
    """Whether *node* can be written as ``<url>``."""
    if node.kind != NodeKind.LINK or node.attrs.get("title"):
        return False
    if len(node.children) != 1 or node.children[0].kind not in (NodeKind.TEXT, NodeKind.STRING):
        return False
    text = ctx.literal(node.children[0])
    destination = node.attrs.get("destination", "")
    if destination == text:
        return bool(_AUTOLINK_RE.match(text))
    if destination == "mailto:" + text:
        return bool(_EMAIL_RE.match(text))
    return False


def _link_tail(node: Node) -> str:
    destination = format_link_destination(node.attrs.get("destination") or "")
    title = node.attrs.get("title")
    if title:
        return f'({destination} "{escape_link_title(title)}")'
    return f"({destination})"


def render_link(ctx: RenderContext, node: Node, entering: bool) -> WalkStatus | None:
    if is_autolink(ctx, node):
        if entering:
            ctx.write("<" + ctx.literal(node.children[0]) + ">")
            return WalkStatus.SKIP_CHILDREN
        return None
    ctx.write("[" if entering else "]" + _link_tail(node))
    return None


def render_image(ctx: RenderContext, node: Node, entering: bool) -> None:
    ctx.write("![" if entering else "]" + _link_tail(node))


def render_raw_html(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.write(ctx.literal(node))


def render_strikethrough(ctx: RenderContext, node: Node, entering: bool) -> None:
    ctx.write("~~")


def render_footnote_ref(ctx: RenderContext, node: Node, entering: bool) -> None:
    if entering:
        ctx.write(f"[^{node.attrs.get('key', '')}]")


MARKDOWN_STRATEGIES: dict[str, Strategy] = {
    NodeKind.DOCUMENT: render_document,
    NodeKind.FRONT_MATTER: render_front_matter,
    NodeKind.PARAGRAPH: render_paragraph,
    NodeKind.HEADING: render_heading,
    NodeKind.BLOCKQUOTE: render_blockquote,
    NodeKind.LIST: render_list,
    NodeKind.LIST_ITEM: render_list_item,
    NodeKind.CODE_BLOCK: render_code_block,
    NodeKind.HTML_BLOCK: render_html_block,
    NodeKind.THEMATIC_BREAK: render_thematic_break,
    NodeKind.TABLE: render_table,
    NodeKind.TABLE_ROW: render_table_row,
    NodeKind.TABLE_CELL: render_table_cell,
    NodeKind.FOOTNOTE_LIST: render_footnote_list,
    NodeKind.FOOTNOTE_DEFINITION: render_footnote_definition,
    NodeKind.TEXT: render_text,
    NodeKind.STRING: render_string,
    NodeKind.SOFT_BREAK: render_soft_break,
    NodeKind.HARD_BREAK: render_hard_break,
    NodeKind.EMPHASIS: render_emphasis,
    NodeKind.CODE_SPAN: render_code_span,
    NodeKind.LINK: render_link,
    NodeKind.IMAGE: render_image,
    NodeKind.RAW_HTML: render_raw_html,
    NodeKind.STRIKETHROUGH: render_strikethrough,
    NodeKind.FOOTNOTE_REF: render_footnote_ref,
}
"""Strategies registered at :data:`~canonmark.markdown.registry.DEFAULT_PRIORITY`."""
