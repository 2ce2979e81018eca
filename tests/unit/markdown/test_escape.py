"""Tests for literal-text escaping and fence selection."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from canonmark.markdown.escape import (
    code_block_fence,
    code_span_fence,
    escape_link_title,
    escape_text,
    format_link_destination,
)


class TestEscapeText:
    @pytest.mark.parametrize(
        ("raw", "want"),
        [
            ("a*b", "a\\*b"),
            ("`tick`", "\\`tick\\`"),
            ("snake_case", "snake_case"),
            ("_lead", "\\_lead"),
            ("trail_", "trail\\_"),
            ("a < b", "a < b"),
            ("a<b", "a\\<b"),
            ("<!--", "\\<!--"),
            ("a~b", "a~b"),
            ("~~", "\\~\\~"),
            ("[x", "[x"),
            ("[x]", "\\[x]"),
            ("x]", "x]"),
            ("C:\\dir", "C:\\dir"),
            ("end\\", "end\\\\"),
            ("\\*", "\\\\\\*"),
            ("a|b", "a|b"),
        ],
    )
    def test_inline_characters(self, raw: str, want: str):
        assert escape_text(raw) == want

    @pytest.mark.parametrize(
        ("raw", "want"),
        [
            ("# x", "\\# x"),
            ("#hashtag", "#hashtag"),
            ("  ## x", "  \\## x"),
            ("> x", "\\> x"),
            ("- x", "\\- x"),
            ("-x", "-x"),
            ("+ x", "\\+ x"),
            ("1. x", "1\\. x"),
            ("2) x", "2\\) x"),
            ("1.5 x", "1.5 x"),
            ("===", "\\==="),
            ("---", "\\---"),
            ("plain", "plain"),
        ],
    )
    def test_line_start_markers(self, raw: str, want: str):
        assert escape_text(raw, at_line_start=True) == want
        assert escape_text(raw) == raw

    def test_markers_after_embedded_newline(self):
        assert escape_text("a\n- b") == "a\n\\- b"

    def test_bracket_closed_later_in_block(self):
        assert escape_text("[x", bracket_closes_later=True) == "\\[x"

    def test_in_link_escapes_both_brackets(self):
        assert escape_text("[x]", in_link=True) == "\\[x\\]"

    def test_pipe_in_table(self):
        assert escape_text("a|b", in_table=True) == "a\\|b"

    def test_heading_end(self):
        assert escape_text("C#", at_heading_end=True) == "C\\#"
        assert escape_text("C#") == "C#"


@given(st.text(alphabet="abcdefghijklmnopqrstuvwxyz ,.'?", max_size=50))
def test_plain_prose_is_unchanged(text: str):
    assert escape_text(text) == text


class TestLinkHelpers:
    def test_title_quotes_and_backslashes(self):
        assert escape_link_title('a"b\\') == 'a\\"b\\\\'

    @pytest.mark.parametrize(
        ("url", "want"),
        [
            ("https://example.com/a_(b)", "https://example.com/a_(b)"),
            ("a b", "<a b>"),
            ("a)b", "<a)b>"),
            ("(a", "<(a>"),
            ("a<b>", "<a%3Cb%3E>"),
            ("", ""),
        ],
    )
    def test_destination(self, url: str, want: str):
        assert format_link_destination(url) == want


class TestFences:
    @pytest.mark.parametrize(
        ("code", "want"),
        [
            ("plain", ("`", "")),
            ("a`b", ("``", "")),
            ("a``b`", ("```", " ")),
            ("`a", ("``", " ")),
            (" a ", ("`", " ")),
            ("  ", ("`", "")),
        ],
    )
    def test_code_span_fence(self, code: str, want: tuple[str, str]):
        assert code_span_fence(code) == want

    @pytest.mark.parametrize(
        ("code", "want"),
        [
            ("x", "```"),
            ("a ``` b", "```"),
            ("```\nx\n```", "````"),
            ("  `````", "``````"),
        ],
    )
    def test_code_block_fence(self, code: str, want: str):
        assert code_block_fence(code) == want
