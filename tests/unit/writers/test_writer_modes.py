"""Tests for the stream writers under every way of delivering the input.

Each table row is written once in one ``write`` call, once with
``write_string``, byte by byte with ``write_byte``, and at split points
chosen by Hypothesis.  The sink must receive the same bytes every time and
the reported byte count must equal the input length.
"""

from __future__ import annotations

import io
from collections.abc import Callable

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from canonmark.writers import (
    BlockquoteWriter,
    IndentWriter,
    StreamWriter,
    TrimLeftWriter,
    TrimRightWriter,
    TrimWriter,
)

WriterFactory = Callable[[io.BytesIO], StreamWriter]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def write_all(writer: StreamWriter, data: bytes) -> int:
    return writer.write(data)


def write_all_string(writer: StreamWriter, data: bytes) -> int:
    return writer.write_string(data.decode("utf-8"))


def write_bytewise(writer: StreamWriter, data: bytes) -> int:
    for value in data:
        assert writer.write_byte(value) is None
    return len(data)


MODES = [write_all, write_all_string, write_bytewise]


def run_writer(factory: WriterFactory, data: bytes, mode) -> tuple[bytes, int]:
    sink = io.BytesIO()
    writer = factory(sink)
    size = mode(writer, data)
    writer.close()
    return sink.getvalue(), size


def write_in_chunks(factory: WriterFactory, data: bytes, cuts: list[int]) -> tuple[bytes, int]:
    sink = io.BytesIO()
    writer = factory(sink)
    size = 0
    previous = 0
    for cut in sorted(set(cuts)) + [len(data)]:
        size += writer.write(data[previous:cut])
        previous = cut
    writer.close()
    return sink.getvalue(), size


# ---------------------------------------------------------------------------
# IndentWriter
# ---------------------------------------------------------------------------

INDENT_TABLE = [
    ("empty", "", ""),
    ("one line", "Foo", "\t\tFoo"),
    ("two lines", "Foo\nBar", "\t\tFoo\n\t\tBar"),
    ("empty lines", "\nFoo\nBar\n", "\n\t\tFoo\n\t\tBar\n"),
    (
        "nested indent",
        "\tThis is already indented\nFoo\n\tAnother indent\n",
        "\t\t\tThis is already indented\n\t\tFoo\n\t\t\tAnother indent\n",
    ),
    ("blank line in between", "a\n\nb", "\t\ta\n\n\t\tb"),
    ("multibyte", "grüße\nwelt", "\t\tgrüße\n\t\twelt"),
]


def _indent(sink: io.BytesIO) -> StreamWriter:
    return IndentWriter(sink, 2)


class TestIndentWriter:
    @pytest.mark.parametrize("mode", MODES, ids=lambda m: m.__name__)
    @pytest.mark.parametrize(("name", "src", "want"), INDENT_TABLE, ids=[r[0] for r in INDENT_TABLE])
    def test_table(self, name, src, want, mode):
        data = src.encode("utf-8")
        out, size = run_writer(_indent, data, mode)
        assert out == want.encode("utf-8")
        assert size == len(data)

    @settings(max_examples=50)
    @given(st.sampled_from(INDENT_TABLE), st.lists(st.integers(min_value=0, max_value=80), max_size=6))
    def test_split_points_do_not_matter(self, row, cuts):
        _, src, want = row
        data = src.encode("utf-8")
        out, size = write_in_chunks(_indent, data, [c for c in cuts if c <= len(data)])
        assert out == want.encode("utf-8")
        assert size == len(data)

    def test_custom_unit(self):
        sink = io.BytesIO()
        IndentWriter(sink, 1, "    ").write(b"a\nb")
        assert sink.getvalue() == b"    a\n    b"

    def test_zero_repeat_passes_through(self):
        sink = io.BytesIO()
        IndentWriter(sink, 0).write(b"a\nb\n")
        assert sink.getvalue() == b"a\nb\n"

    def test_negative_repeat_rejected(self):
        with pytest.raises(ValueError, match="repeat"):
            IndentWriter(io.BytesIO(), -1)

    def test_not_at_line_start_skips_first_prefix(self):
        sink = io.BytesIO()
        writer = IndentWriter(sink, 1, at_line_start=False)
        assert writer.at_line_start is False
        writer.write(b"first\nsecond")
        assert sink.getvalue() == b"first\n\tsecond"

    def test_tracks_line_start(self):
        writer = IndentWriter(io.BytesIO())
        writer.write(b"abc\n")
        assert writer.at_line_start is True
        writer.write(b"d")
        assert writer.at_line_start is False


# ---------------------------------------------------------------------------
# BlockquoteWriter
# ---------------------------------------------------------------------------

BLOCKQUOTE_TABLE = [
    ("empty", "", ""),
    ("one line", "Foo", "> Foo"),
    ("two lines", "Foo\nBar", "> Foo\n> Bar"),
    ("empty lines", "\nFoo\nBar\n", ">\n> Foo\n> Bar\n>"),
    (
        "nested quote",
        "> This is already a quote\nFoo\n> Another Quote\n",
        ">> This is already a quote\n> Foo\n>> Another Quote\n>",
    ),
    ("blank line in between", "a\n\nb", "> a\n>\n> b"),
]


def _quote(sink: io.BytesIO) -> StreamWriter:
    return BlockquoteWriter(sink)


class TestBlockquoteWriter:
    @pytest.mark.parametrize("mode", MODES, ids=lambda m: m.__name__)
    @pytest.mark.parametrize(
        ("name", "src", "want"), BLOCKQUOTE_TABLE, ids=[r[0] for r in BLOCKQUOTE_TABLE]
    )
    def test_table(self, name, src, want, mode):
        data = src.encode("utf-8")
        out, size = run_writer(_quote, data, mode)
        assert out == want.encode("utf-8")
        assert size == len(data)

    @settings(max_examples=50)
    @given(st.sampled_from(BLOCKQUOTE_TABLE), st.lists(st.integers(min_value=0, max_value=60), max_size=6))
    def test_split_points_do_not_matter(self, row, cuts):
        _, src, want = row
        data = src.encode("utf-8")
        out, size = write_in_chunks(_quote, data, [c for c in cuts if c <= len(data)])
        assert out == want.encode("utf-8")
        assert size == len(data)

    def test_nesting_by_composition(self):
        sink = io.BytesIO()
        inner = BlockquoteWriter(BlockquoteWriter(sink))
        inner.write(b"deep\n\ntext")
        assert sink.getvalue() == b">> deep\n>>\n>> text"

    def test_inside_indent_writer(self):
        sink = io.BytesIO()
        quote = BlockquoteWriter(IndentWriter(sink, 1, at_line_start=False))
        quote.write(b"a\nb")
        assert sink.getvalue() == b"> a\n\t> b"


# ---------------------------------------------------------------------------
# Trim writers
# ---------------------------------------------------------------------------

TRIM_INPUTS = [
    "Nothing to trim",
    "",
    "\n<html>\n  <head>\n    <title>Test</title>\n  </head>\n",
    "\n",
    "\nOne trimmed",
    "\nMore trimmed\n\n\n",
    "\n\nTrimmed\n\n\nin between\n\n\n",
    "\n\nLorem ipsum dolor sit amet,\n consectetur adipiscing elit,\n sed do eiusmod.\n\n\n\n",
    "Excepteur sint occaecat cupidatat non proident,\n sunt in culpa qui officia.",
]

CUTSETS = ["\n", "e", "asdf"]

TRIM_KINDS = [
    ("trim", TrimWriter, lambda s, c: s.strip(c)),
    ("trim_left", TrimLeftWriter, lambda s, c: s.lstrip(c)),
    ("trim_right", TrimRightWriter, lambda s, c: s.rstrip(c)),
]


class TestTrimWriters:
    @pytest.mark.parametrize("mode", MODES, ids=lambda m: m.__name__)
    @pytest.mark.parametrize(("kind", "cls", "expected"), TRIM_KINDS, ids=[k[0] for k in TRIM_KINDS])
    @pytest.mark.parametrize("cutset", CUTSETS, ids=repr)
    @pytest.mark.parametrize("src", TRIM_INPUTS)
    def test_matches_string_trim(self, src, cutset, kind, cls, expected, mode):
        data = src.encode("utf-8")
        out, size = run_writer(lambda sink: cls(sink, cutset), data, mode)
        assert out == expected(src, cutset).encode("utf-8")
        assert size == len(data)

    @settings(max_examples=60)
    @given(
        st.sampled_from(TRIM_INPUTS),
        st.sampled_from(CUTSETS),
        st.sampled_from(TRIM_KINDS),
        st.lists(st.integers(min_value=0, max_value=200), max_size=8),
    )
    def test_split_points_do_not_matter(self, src, cutset, trim_kind, cuts):
        _, cls, expected = trim_kind
        data = src.encode("utf-8")
        out, size = write_in_chunks(
            lambda sink: cls(sink, cutset), data, [c for c in cuts if c <= len(data)]
        )
        assert out == expected(src, cutset).encode("utf-8")
        assert size == len(data)

    def test_right_trim_holds_back_trailing_run(self):
        sink = io.BytesIO()
        writer = TrimRightWriter(sink, "\n")
        writer.write(b"a\n\n")
        assert sink.getvalue() == b"a"
        assert writer.pending == b"\n\n"
        writer.write(b"b")
        assert sink.getvalue() == b"a\n\nb"
        assert writer.pending == b""

    def test_right_trim_close_discards_pending(self):
        sink = io.BytesIO()
        writer = TrimRightWriter(sink, "\n")
        writer.write(b"a\n")
        writer.close()
        writer.write(b"")
        assert sink.getvalue() == b"a"

    def test_non_ascii_cutset_rejected(self):
        with pytest.raises(ValueError, match="ASCII"):
            TrimWriter(io.BytesIO(), "ü")


# ---------------------------------------------------------------------------
# Sink failures
# ---------------------------------------------------------------------------


class _FailingSink:
    def __init__(self) -> None:
        self.calls = 0

    def write(self, data: bytes) -> int:
        self.calls += 1
        raise OSError("disk full")


class TestSinkFailure:
    @pytest.mark.parametrize(
        "factory",
        [
            lambda s: IndentWriter(s),
            lambda s: BlockquoteWriter(s),
            lambda s: TrimLeftWriter(s, "\n"),
            lambda s: TrimRightWriter(s, "\n"),
            lambda s: TrimWriter(s, "\n"),
        ],
        ids=["indent", "blockquote", "trim_left", "trim_right", "trim"],
    )
    def test_first_sink_error_propagates(self, factory):
        sink = _FailingSink()
        writer = factory(sink)
        with pytest.raises(OSError, match="disk full"):
            writer.write(b"text\nmore")
        assert sink.calls == 1

    def test_base_writer_write_is_abstract(self):
        with pytest.raises(NotImplementedError):
            StreamWriter(io.BytesIO()).write(b"x")
