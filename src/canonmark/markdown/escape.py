"""Minimal escaping of literal text for Markdown output.

Text nodes hold unescaped characters.  Writing them back verbatim could
turn plain characters into markup, so :func:`escape_text` backslash-escapes
exactly the characters that would otherwise change meaning when the output
is parsed again.  Everything else is written as is, which keeps the output
readable and lets already-canonical documents pass through unchanged.

Entity references (``&amp;``) are kept verbatim in text nodes by the
parser and are therefore not escaped here.
"""

from __future__ import annotations

import re
import string

PUNCTUATION = frozenset(string.punctuation)

# Characters that open inline markup wherever they appear.
_ALWAYS_ESCAPE = frozenset("*`")

# Block markers that only matter at the start of a line.  For ordered-list
# markers the escape goes before the delimiter ("1968\."), for the others
# before the marker itself.
_ORDERED_MARKER_RE = re.compile(r"^( {0,3}\d{1,9})([.)])(?=[ \t]|$)")
_BLOCK_MARKER_RE = re.compile(
    r"^ {0,3}(?:>|[-+](?=[ \t]|$)|#{1,6}(?=[ \t]|$)|=+[ \t]*$|-+[ \t]*$)"
)


def _escape_line_start(line: str) -> str:
    m = _ORDERED_MARKER_RE.match(line)
    if m:
        return m.group(1) + "\\" + line[m.end(1):]
    if _BLOCK_MARKER_RE.match(line):
        stripped = line.lstrip(" ")
        return line[: len(line) - len(stripped)] + "\\" + stripped
    return line


def escape_text(
    text: str,
    *,
    at_line_start: bool = False,
    in_table: bool = False,
    at_heading_end: bool = False,
    bracket_closes_later: bool = False,
    in_link: bool = False,
) -> str:
    """Escape *text* so it reads back as the same literal text.

    Parameters
    ----------
    text:
        Unescaped literal text.
    at_line_start:
        The text begins a line of a paragraph, so block markers (``#``,
        ``>``, ``-``, ``+``, ``1.``, setext underlines) must be neutralised.
    in_table:
        The text sits inside a table cell; ``|`` is escaped.
    at_heading_end:
        The text ends a heading; a trailing ``#`` would be read as a closing
        sequence and is escaped.
    bracket_closes_later:
        A ``]`` follows later in the same block, outside this text, so every
        ``[`` here could open a link.
    in_link:
        The text is part of a link or image label, where every bracket is
        escaped.

    Returns
    -------
    str
        The escaped text.
    """
    out: list[str] = []
    size = len(text)
    for i, ch in enumerate(text):
        prev = text[i - 1] if i > 0 else ""
        nxt = text[i + 1] if i + 1 < size else ""
        if ch in _ALWAYS_ESCAPE:
            out.append("\\" + ch)
        elif ch == "_":
            out.append("_" if prev.isalnum() and nxt.isalnum() else "\\_")
        elif ch == "\\":
            out.append("\\\\" if not nxt or nxt in PUNCTUATION or nxt == "\n" else ch)
        elif ch == "[":
            closes = in_link or bracket_closes_later or "]" in text[i + 1 :]
            out.append("\\[" if closes else ch)
        elif ch == "]" and in_link:
            out.append("\\]")
        elif ch == "<":
            out.append("\\<" if nxt and (nxt.isalpha() or nxt in "/!?") else ch)
        elif ch == "~":
            out.append("\\~" if "~" in (prev, nxt) else ch)
        elif ch == "|" and in_table:
            out.append("\\|")
        else:
            out.append(ch)

    escaped = "".join(out)
    lines = escaped.split("\n")
    start = 0 if at_line_start else 1
    for i in range(start, len(lines)):
        lines[i] = _escape_line_start(lines[i])
    escaped = "\n".join(lines)

    if at_heading_end and escaped.endswith("#"):
        escaped = escaped[:-1] + "\\#"
    return escaped


def escape_link_title(title: str) -> str:
    """Escape a link title for use inside double quotes."""
    return title.replace("\\", "\\\\").replace('"', '\\"')


def format_link_destination(url: str) -> str:
    """Return *url* in a form that survives as an inline-link destination.

    Destinations with spaces, angle brackets or unbalanced parentheses are
    wrapped in ``<...>``.
    """
    depth = 0
    balanced = True
    for ch in url:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                balanced = False
                break
    if depth != 0:
        balanced = False
    if balanced and not any(ch in url for ch in " \t\n<>"):
        return url
    return "<" + url.replace("<", "%3C").replace(">", "%3E") + ">"


def code_span_fence(code: str) -> tuple[str, str]:
    """Return ``(fence, padding)`` for writing *code* as a code span.

    The fence is one backtick longer than the longest backtick run inside
    *code*.  Padding is a single space when the content starts or ends with
    a backtick, or starts and ends with a space, since the parser strips one
    space from each side in that case.
    """
    longest = 0
    for run in re.findall(r"`+", code):
        longest = max(longest, len(run))
    fence = "`" * (longest + 1)
    pad = ""
    if code.startswith("`") or code.endswith("`"):
        pad = " "
    elif code.startswith(" ") and code.endswith(" ") and code.strip(" "):
        pad = " "
    return fence, pad


def code_block_fence(code: str) -> str:
    """Return a backtick fence longer than any backtick run starting a line of *code*."""
    longest = 0
    for m in re.finditer(r"^[ \t]*(`{3,})", code, flags=re.M):
        longest = max(longest, len(m.group(1)))
    return "`" * max(3, longest + 1)
