"""Node-kind registry: maps node kinds to rendering strategies.

A registry is assembled once from ``(priority, {kind: strategy})`` entries
and is read-only afterwards, so one instance can be shared by any number of
concurrent render passes.

A *strategy* is a callable ``(ctx, node, entering) -> WalkStatus | None``.
It is called on the entering and on the leaving edge of every node of its
kind and writes output through the :class:`~canonmark.markdown.renderer.RenderContext`.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from canonmark.errors import CanonmarkUnsupportedNodeError

from .nodes import Node, WalkStatus

if TYPE_CHECKING:
    from canonmark.config import FormatterConfig

    from .renderer import RenderContext

Strategy = Callable[["RenderContext", Node, bool], WalkStatus | None]
StrategySet = Mapping[str, Strategy]

DEFAULT_PRIORITY = 0
NOTION_PRIORITY = 50
TERMINAL_PRIORITY = 100


class NodeRendererRegistry:
    """Immutable kind-to-strategy mapping with an optional fallback.

    Use :meth:`from_prioritized` to build one; the constructor takes an
    already merged mapping.

    Parameters
    ----------
    strategies:
        Merged ``kind -> strategy`` mapping.
    fallback:
        Strategy used for kinds without an entry.  ``None`` makes
        :meth:`lookup` raise :class:`CanonmarkUnsupportedNodeError`.
    """

    __slots__ = ("_fallback", "_strategies")

    def __init__(self, strategies: Mapping[str, Strategy], fallback: Strategy | None = None) -> None:
        self._strategies: Mapping[str, Strategy] = MappingProxyType(dict(strategies))
        self._fallback = fallback

    @classmethod
    def from_prioritized(
        cls,
        entries: Sequence[tuple[int, StrategySet]],
        fallback: Strategy | None = None,
    ) -> NodeRendererRegistry:
        """Merge *entries* so the highest priority wins for each kind.

        Entries with equal priority resolve in favour of the later one.
        """
        ordered = sorted(enumerate(entries), key=lambda item: (item[1][0], item[0]))
        merged: dict[str, Strategy] = {}
        for _, (_, strategies) in ordered:
            merged.update(strategies)
        return cls(merged, fallback)

    @property
    def strategies(self) -> Mapping[str, Strategy]:
        """Read-only view of the registered strategies."""
        return self._strategies

    @property
    def has_fallback(self) -> bool:
        return self._fallback is not None

    def __contains__(self, kind: object) -> bool:
        return kind in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)

    def get(self, kind: str) -> Strategy | None:
        """Return the strategy registered for *kind*, or ``None``."""
        return self._strategies.get(kind)

    def lookup(self, node: Node) -> Strategy:
        """Return the strategy for *node*, falling back when configured."""
        strategy = self._strategies.get(node.kind)
        if strategy is not None:
            return strategy
        if self._fallback is not None:
            return self._fallback
        path = [a.kind for a in reversed(list(node.ancestors()))] + [node.kind]
        raise CanonmarkUnsupportedNodeError(
            message=f"no rendering strategy registered for node kind {node.kind!r}",
            context={"kind": node.kind, "path": path},
        )


def build_registry(
    config: FormatterConfig,
    extra: Sequence[tuple[int, StrategySet]] = (),
) -> NodeRendererRegistry:
    """Assemble the registry for *config*.

    Order of entries: the Markdown defaults (priority 0), the terminal set
    (priority 100) when ``config.terminal_output`` is set, *extra*, then
    ``config.node_renderer_overrides``.  The lenient fallback is installed
    unless ``config.strict`` is set.
    """
    from .strategies import MARKDOWN_STRATEGIES, unsupported_kind
    from .terminal import TERMINAL_STRATEGIES

    entries: list[tuple[int, Any]] = [(DEFAULT_PRIORITY, MARKDOWN_STRATEGIES)]
    if config.terminal_output:
        entries.append((TERMINAL_PRIORITY, TERMINAL_STRATEGIES))
    entries.extend(extra)
    entries.extend(config.node_renderer_overrides)
    return NodeRendererRegistry.from_prioritized(
        entries,
        fallback=None if config.strict else unsupported_kind,
    )
