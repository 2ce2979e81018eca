"""Tree walker that renders a document through the node-kind registry.

:class:`MarkdownRenderer` walks a document tree with
:func:`~canonmark.markdown.nodes.walk` and hands every node, on the
entering and on the leaving edge, to the strategy the registry returns for
its kind.  Strategies never build strings for whole subtrees; they write
small pieces through the :class:`RenderContext`, whose writer chain takes
care of indentation, quote markers and trimming.

Block spacing is written *before* a block, by :meth:`RenderContext.open_block`,
so no writer is ever left holding a dangling prefix at the end of a
container.
"""

from __future__ import annotations

import io
import time
from dataclasses import dataclass
from typing import Any

from canonmark.config import FormatterConfig
from canonmark.errors import CanonmarkSinkError
from canonmark.models import RenderResult, RenderWarning
from canonmark.observability import NoopMetricsHook, get_logger
from canonmark.writers import ByteSink, StreamWriter, TrimWriter

from .nodes import Node, NodeKind, WalkStatus, walk
from .registry import NodeRendererRegistry, build_registry

log = get_logger("canonmark.renderer")

# Written between two adjacent lists so they do not merge when parsed again.
LIST_SEPARATOR = "\n\n<!-- -->\n\n"


def is_loose_item(item: Node) -> bool:
    """Return ``True`` when *item* is followed by a blank line.

    That is the case for an item holding more than one block, unless its
    last block is a nested list.
    """
    return len(item.children) > 1 and item.children[-1].kind != NodeKind.LIST


def block_separator(container: Node, previous: Node, node: Node) -> str:
    """Return the text written between two sibling blocks of *container*."""
    if container.kind == NodeKind.LIST:
        return "\n\n" if is_loose_item(previous) else "\n"
    if previous.kind == NodeKind.LIST and node.kind == NodeKind.LIST:
        return LIST_SEPARATOR
    if (
        container.kind == NodeKind.LIST_ITEM
        and previous.kind == NodeKind.PARAGRAPH
        and node.kind == NodeKind.LIST
    ):
        return "\n"
    return "\n\n"


@dataclass
class _BlockFrame:
    node: Node
    last: Node | None = None


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------

class RenderContext:
    """Per-pass state shared by all strategies.

    A context is created for one :meth:`MarkdownRenderer.render` call and
    discarded afterwards.  It owns the writer chain (bottom: a
    :class:`~canonmark.writers.TrimWriter` over the sink), the block frames
    used to place separators, the counters of the open ordered lists and the
    warnings collected so far.

    Attributes
    ----------
    config:
        The :class:`FormatterConfig` of the pass.
    registry:
        The registry used for dispatch.
    source:
        Source buffer for nodes that carry a ``segment`` instead of a value.
    warnings:
        :class:`RenderWarning` objects recorded with :meth:`warn`.
    heading_depth:
        Greater than zero while rendering inside a heading.
    table_depth:
        Greater than zero while rendering inside a table cell.
    item_indents:
        Continuation indents of the open list items, outermost first.
    bracket_index:
        Text nodes of each block in document order, keyed by block id,
        with the position of the last one holding a ``]``.
    """

    def __init__(
        self,
        root: Node,
        writer: StreamWriter,
        config: FormatterConfig,
        registry: NodeRendererRegistry,
        source: bytes | None = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.source = source
        self.warnings: list[RenderWarning] = []
        self.heading_depth = 0
        self.table_depth = 0
        self.item_indents: list[str] = []
        self.bracket_index: dict[int, tuple[dict[int, int], int]] = {}
        self._writers: list[StreamWriter] = [writer]
        self._frames: list[_BlockFrame] = [_BlockFrame(root)]
        self._list_numbers: list[int] = []

    # -- writer chain --------------------------------------------------------

    @property
    def writer(self) -> StreamWriter:
        """The innermost active writer."""
        return self._writers[-1]

    def push_writer(self, writer: StreamWriter) -> StreamWriter:
        """Make *writer* the innermost writer and return it."""
        self._writers.append(writer)
        return writer

    def pop_writer(self) -> StreamWriter:
        """Remove the innermost writer; the bottom writer is never removed."""
        if len(self._writers) == 1:
            raise RuntimeError("cannot pop the root writer")
        return self._writers.pop()

    def write(self, data: str | bytes) -> None:
        """Write *data* through the innermost writer."""
        if isinstance(data, str):
            self.writer.write_string(data)
        else:
            self.writer.write(data)

    # -- blocks --------------------------------------------------------------

    def open_block(self, node: Node) -> None:
        """Start block *node*, writing the separator from its previous sibling.

        Every block strategy calls this on entering and :meth:`close_block`
        on leaving.  The first block of a container gets no separator.
        """
        frame = self._frames[-1]
        if frame.last is not None:
            self.write(block_separator(frame.node, frame.last, node))
        frame.last = node
        self._frames.append(_BlockFrame(node))

    def close_block(self) -> None:
        """End the block opened last."""
        if len(self._frames) == 1:
            raise RuntimeError("close_block called without a matching open_block")
        self._frames.pop()

    # -- ordered lists -------------------------------------------------------

    def begin_list(self, start: int) -> None:
        self._list_numbers.append(start)

    def end_list(self) -> None:
        self._list_numbers.pop()

    def next_list_number(self) -> int:
        """Return the number of the next item of the innermost list."""
        number = self._list_numbers[-1]
        self._list_numbers[-1] = number + 1
        return number

    # -- misc ----------------------------------------------------------------

    def literal(self, node: Node) -> str:
        """Return the literal payload of *node* against :attr:`source`."""
        return node.literal(self.source)

    def warn(self, code: str, message: str, **context: Any) -> None:
        """Record a :class:`RenderWarning`."""
        self.warnings.append(RenderWarning(code=code, message=message, context=context))


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class MarkdownRenderer:
    """Render document trees as canonical Markdown.

    A renderer holds only its configuration and the registry built from it,
    both read-only, so one instance can serve concurrent passes.

    Parameters
    ----------
    config:
        Render options; defaults to ``FormatterConfig()``.
    registry:
        Prebuilt registry.  When omitted it is built from *config* with
        :func:`~canonmark.markdown.registry.build_registry`.
    """

    def __init__(
        self,
        config: FormatterConfig | None = None,
        registry: NodeRendererRegistry | None = None,
    ) -> None:
        self._config = config or FormatterConfig()
        self._registry = registry or build_registry(self._config)
        self._metrics = self._config.metrics or NoopMetricsHook()

    @property
    def config(self) -> FormatterConfig:
        return self._config

    @property
    def registry(self) -> NodeRendererRegistry:
        return self._registry

    def render(
        self,
        document: Node,
        sink: ByteSink | None = None,
        *,
        source: bytes | None = None,
    ) -> RenderResult:
        """Render *document* into *sink*.

        Parameters
        ----------
        document:
            Root of the tree, normally a ``document`` node.
        sink:
            Destination for the output.  When ``None`` the output is
            collected and returned in :attr:`RenderResult.output`.
        source:
            Buffer that node ``segment`` ranges refer to.

        Returns
        -------
        RenderResult
            Output (when collected), warnings and the number of nodes visited.

        Raises
        ------
        CanonmarkUnsupportedNodeError
            A node kind has no strategy and ``config.strict`` is set.
        CanonmarkFormatterError
            A language formatter failed and ``config.strict`` is set.
        CanonmarkSinkError
            The sink raised :class:`OSError`.  Output written before the
            failure is left in the sink.
        """
        buffer: io.BytesIO | None = None
        if sink is None:
            buffer = io.BytesIO()
            sink = buffer

        root_writer = TrimWriter(sink, "\n")
        ctx = RenderContext(document, root_writer, self._config, self._registry, source)
        counter = {"nodes": 0}
        current: list[Node] = [document]

        def visit(node: Node, entering: bool) -> WalkStatus | None:
            if entering:
                counter["nodes"] += 1
            current[0] = node
            strategy = self._registry.lookup(node)
            return strategy(ctx, node, entering)

        start = time.monotonic()
        try:
            walk(document, visit)
            root_writer.close()
            sink.write(b"\n")
        except OSError as exc:
            raise CanonmarkSinkError(
                message=f"writing to the output sink failed: {exc}",
                context={"kind": current[0].kind, "nodes_rendered": counter["nodes"]},
                cause=exc,
            ) from exc
        elapsed_ms = (time.monotonic() - start) * 1000

        self._metrics.timing("canonmark.render_duration_ms", elapsed_ms)
        self._metrics.increment("canonmark.nodes_rendered_total", counter["nodes"])
        if ctx.warnings:
            self._metrics.increment("canonmark.render_warnings_total", len(ctx.warnings))

        log.debug(
            "rendered document",
            extra={"extra_fields": {
                "op": "render",
                "nodes": counter["nodes"],
                "warnings": len(ctx.warnings),
                "duration_ms": round(elapsed_ms, 3),
            }},
        )
        return RenderResult(
            output=buffer.getvalue() if buffer is not None else b"",
            warnings=ctx.warnings,
            nodes_rendered=counter["nodes"],
        )


def render(
    document: Node,
    *,
    source: bytes | None = None,
    config: FormatterConfig | None = None,
) -> bytes:
    """Render *document* with a fresh :class:`MarkdownRenderer` and return the bytes."""
    return MarkdownRenderer(config).render(document, source=source).output
