"""Tests for MarkdownRenderer and RenderContext.

Covers:
- block separators and item looseness
- lenient and strict handling of node kinds without a strategy
- language formatters (success, lenient failure, strict failure)
- front matter formatting and invalid YAML
- sink failures
- metrics emitted per render pass
"""

from __future__ import annotations

import io
from typing import Any

import pytest

from canonmark.config import FormatterConfig
from canonmark.errors import (
    CanonmarkFormatterError,
    CanonmarkSinkError,
    CanonmarkUnsupportedNodeError,
    CanonmarkYamlError,
    ErrorCode,
)
from canonmark.markdown import (
    MarkdownRenderer,
    Node,
    NodeKind,
    RenderContext,
    build_registry,
    format_markdown,
    format_markdown_result,
    make,
)
from canonmark.markdown.renderer import LIST_SEPARATOR, block_separator, is_loose_item
from canonmark.models import FORMATTER_FAILED, UNSUPPORTED_NODE_KIND, YAML_FORMAT_FAILED
from canonmark.writers import TrimWriter

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(self, name: str, ms: float, tags: dict[str, str] | None = None) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass


class FailingSink:
    """Accepts *budget* writes, then raises OSError on every call."""

    def __init__(self, budget: int = 0) -> None:
        self.budget = budget
        self.data = bytearray()

    def write(self, data: bytes) -> int:
        if self.budget <= 0:
            raise OSError("disk full")
        self.budget -= 1
        self.data += data
        return len(data)


def text(value: str) -> Node:
    return Node(NodeKind.TEXT, value=value)


def para(value: str) -> Node:
    return make(NodeKind.PARAGRAPH, text(value))


def document(*children: Node) -> Node:
    return make(NodeKind.DOCUMENT, *children)


def fmt(src: str, **overrides) -> str:
    return format_markdown(src, FormatterConfig(**overrides)).decode("utf-8")


# ---------------------------------------------------------------------------
# Separators
# ---------------------------------------------------------------------------


class TestBlockSeparator:
    def test_paragraphs_are_separated_by_a_blank_line(self):
        doc = document(para("a"), para("b"))
        assert block_separator(doc, doc.children[0], doc.children[1]) == "\n\n"

    def test_adjacent_lists(self):
        first = make(NodeKind.LIST, ordered=False)
        second = make(NodeKind.LIST, ordered=True)
        doc = document(first, second)
        assert block_separator(doc, first, second) == LIST_SEPARATOR

    def test_tight_items(self):
        items = [make(NodeKind.LIST_ITEM, para("a")), make(NodeKind.LIST_ITEM, para("b"))]
        lst = make(NodeKind.LIST, *items)
        assert block_separator(lst, items[0], items[1]) == "\n"

    def test_item_with_two_blocks_is_loose(self):
        loose = make(NodeKind.LIST_ITEM, para("a"), para("b"))
        assert is_loose_item(loose)
        lst = make(NodeKind.LIST, loose, make(NodeKind.LIST_ITEM, para("c")))
        assert block_separator(lst, lst.children[0], lst.children[1]) == "\n\n"

    def test_item_ending_in_nested_list_is_tight(self):
        nested = make(NodeKind.LIST, make(NodeKind.LIST_ITEM, para("b")))
        item = make(NodeKind.LIST_ITEM, para("a"), nested)
        assert not is_loose_item(item)
        assert block_separator(item, item.children[0], nested) == "\n"


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------


class TestRenderContext:
    def _ctx(self) -> RenderContext:
        config = FormatterConfig()
        writer = TrimWriter(io.BytesIO(), "\n")
        return RenderContext(document(), writer, config, build_registry(config))

    def test_root_writer_cannot_be_popped(self):
        ctx = self._ctx()
        with pytest.raises(RuntimeError):
            ctx.pop_writer()

    def test_push_and_pop_writer(self):
        ctx = self._ctx()
        root = ctx.writer
        pushed = ctx.push_writer(TrimWriter(io.BytesIO(), "\n"))
        assert ctx.writer is pushed
        assert ctx.pop_writer() is pushed
        assert ctx.writer is root

    def test_close_block_without_open_block(self):
        ctx = self._ctx()
        with pytest.raises(RuntimeError):
            ctx.close_block()

    def test_list_numbers_nest(self):
        ctx = self._ctx()
        ctx.begin_list(1)
        assert ctx.next_list_number() == 1
        ctx.begin_list(5)
        assert ctx.next_list_number() == 5
        assert ctx.next_list_number() == 6
        ctx.end_list()
        assert ctx.next_list_number() == 2

    def test_warn_records_context(self):
        ctx = self._ctx()
        ctx.warn("CODE", "message", kind="x")
        assert ctx.warnings[0].code == "CODE"
        assert ctx.warnings[0].context == {"kind": "x"}


# ---------------------------------------------------------------------------
# Unsupported kinds
# ---------------------------------------------------------------------------


class TestUnsupportedKinds:
    def test_lenient_renders_children_and_warns(self):
        doc = document(make(NodeKind.PARAGRAPH, make("mystery", text("hi"))))
        result = MarkdownRenderer().render(doc)
        assert result.output == b"hi\n"
        assert [w.code for w in result.warnings] == [UNSUPPORTED_NODE_KIND]
        assert result.warnings[0].context == {"kind": "mystery"}
        assert not result.ok

    def test_lenient_unknown_block_is_transparent(self):
        doc = document(para("a"), make("notion_toggle", para("b")), para("c"))
        result = MarkdownRenderer().render(doc)
        assert result.output == b"a\n\nb\n\nc\n"

    def test_strict_raises_with_path(self):
        doc = document(make(NodeKind.PARAGRAPH, make("mystery", text("hi"))))
        with pytest.raises(CanonmarkUnsupportedNodeError) as exc_info:
            MarkdownRenderer(FormatterConfig(strict=True)).render(doc)
        err = exc_info.value
        assert err.code == ErrorCode.UNSUPPORTED_NODE_KIND
        assert err.context["kind"] == "mystery"
        assert err.context["path"] == ["document", "paragraph", "mystery"]


# ---------------------------------------------------------------------------
# Language formatters
# ---------------------------------------------------------------------------


class TestLanguageFormatters:
    def test_formatter_output_replaces_code(self):
        out = fmt("```go\nabc\n```", language_formatters={"go": str.upper})
        assert out == "```go\nABC\n```\n"

    def test_formatter_trailing_newlines_are_trimmed(self):
        out = fmt("```go\nabc\n```", language_formatters={"go": lambda code: code + "\n\n\n"})
        assert out == "```go\nabc\n```\n"

    def test_formatter_may_return_bytes(self):
        out = fmt("```go\nabc\n```", language_formatters={"go": lambda code: b"xyz\n"})
        assert out == "```go\nxyz\n```\n"

    def test_language_lookup_falls_back_to_lowercase(self):
        out = fmt("```Go\nabc\n```", language_formatters={"go": str.upper})
        assert out == "```Go\nABC\n```\n"

    def test_only_first_info_word_selects_formatter(self):
        out = fmt("```go linenums\nabc\n```", language_formatters={"go": str.upper})
        assert out == "```go linenums\nABC\n```\n"

    def test_unregistered_language_is_kept(self):
        out = fmt("```rust\nfn  main() {}\n```", language_formatters={})
        assert out == "```rust\nfn  main() {}\n```\n"

    def test_yaml_blocks_are_formatted_by_default(self):
        out = fmt("```yaml\nb:    1\nlist: [1, 2]\n```")
        assert out == "```yaml\nb: 1\nlist:\n  - 1\n  - 2\n```\n"

    def test_failure_is_a_warning_in_lenient_mode(self):
        def broken(code: str) -> str:
            raise ValueError("cannot parse")

        result = format_markdown_result(
            "```go\nabc\n```",
            FormatterConfig(language_formatters={"go": broken}),
        )
        assert result.output == b"```go\nabc\n```\n"
        assert [w.code for w in result.warnings] == [FORMATTER_FAILED]
        assert result.warnings[0].context == {"language": "go"}

    def test_failure_raises_in_strict_mode(self):
        def broken(code: str) -> str:
            raise ValueError("cannot parse")

        config = FormatterConfig(strict=True, language_formatters={"go": broken})
        with pytest.raises(CanonmarkFormatterError) as exc_info:
            format_markdown("```go\nabc\n```", config)
        assert exc_info.value.context == {"language": "go"}
        assert isinstance(exc_info.value.cause, ValueError)

    def test_invalid_yaml_block_is_kept_with_warning(self):
        result = format_markdown_result("```yaml\na: [1\n```")
        assert result.output == b"```yaml\na: [1\n```\n"
        assert [w.code for w in result.warnings] == [FORMATTER_FAILED]


# ---------------------------------------------------------------------------
# Front matter
# ---------------------------------------------------------------------------


class TestFrontMatter:
    def test_front_matter_is_reformatted(self):
        out = fmt("---\nb:    2\na: 1\n---\ntext")
        assert out == "---\nb: 2\na: 1\n---\n\ntext\n"

    def test_empty_front_matter(self):
        assert fmt("---\n---\n\ntext") == "---\n---\n\ntext\n"

    def test_front_matter_disabled(self):
        out = fmt("---\ntitle: x\n---\n\ntext", front_matter=False)
        assert out == "***\n\n## title: x\n\ntext\n"
        assert fmt(out) == out

    def test_invalid_yaml_is_kept_in_lenient_mode(self):
        doc = document(Node(NodeKind.FRONT_MATTER, value="a: [1"), para("text"))
        result = MarkdownRenderer().render(doc)
        assert result.output == b"---\na: [1\n---\n\ntext\n"
        assert [w.code for w in result.warnings] == [YAML_FORMAT_FAILED]

    def test_invalid_yaml_raises_in_strict_mode(self):
        doc = document(Node(NodeKind.FRONT_MATTER, value="a: [1\n"))
        with pytest.raises(CanonmarkYamlError):
            MarkdownRenderer(FormatterConfig(strict=True)).render(doc)


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class TestSinks:
    def test_caller_sink_receives_output(self, sink: io.BytesIO):
        result = MarkdownRenderer().render(document(para("hello")), sink)
        assert sink.getvalue() == b"hello\n"
        assert result.output == b""
        assert result.nodes_rendered == 3

    def test_sink_failure_is_wrapped(self):
        with pytest.raises(CanonmarkSinkError) as exc_info:
            MarkdownRenderer().render(document(para("hello")), FailingSink())
        err = exc_info.value
        assert err.code == ErrorCode.SINK_WRITE_FAILURE
        assert err.context["kind"] == "text"
        assert isinstance(err.cause, OSError)

    def test_partial_output_stays_in_sink(self):
        failing = FailingSink(budget=1)
        doc = document(make(NodeKind.HEADING, text("A"), level=1), para("B"))
        with pytest.raises(CanonmarkSinkError):
            MarkdownRenderer().render(doc, failing)
        assert bytes(failing.data) == b"# "

    def test_segment_literals_read_from_source(self):
        source = b"xx hello yy"
        node = Node(NodeKind.TEXT, segment=(3, 8))
        result = MarkdownRenderer().render(document(make(NodeKind.PARAGRAPH, node)), source=source)
        assert result.output == b"hello\n"


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


class TestRenderMetrics:
    def test_render_emits_duration_and_node_count(self):
        hook = RecordingMetricsHook()
        MarkdownRenderer(FormatterConfig(metrics=hook)).render(document(para("hi")))
        assert [t["name"] for t in hook.timings] == ["canonmark.render_duration_ms"]
        assert {"name": "canonmark.nodes_rendered_total", "value": 3, "tags": None} in hook.increments

    def test_warnings_are_counted(self):
        hook = RecordingMetricsHook()
        doc = document(make("mystery", para("a")), make("other", para("b")))
        MarkdownRenderer(FormatterConfig(metrics=hook)).render(doc)
        warning_counts = [i["value"] for i in hook.increments if i["name"] == "canonmark.render_warnings_total"]
        assert warning_counts == [2]

    def test_no_warning_metric_without_warnings(self):
        hook = RecordingMetricsHook()
        MarkdownRenderer(FormatterConfig(metrics=hook)).render(document(para("a")))
        assert all(i["name"] != "canonmark.render_warnings_total" for i in hook.increments)
