"""Writer that turns its input into a Markdown blockquote."""

from __future__ import annotations

import enum

from .base import NEWLINE, ByteSink, StreamWriter

_MARKER = b">"
_GT = 0x3E


class _State(enum.Enum):
    START = "start"
    """Nothing has been written yet."""
    LINE_START = "line_start"
    """A marker was written; the separating space is still undecided."""
    IN_LINE = "in_line"


class BlockquoteWriter(StreamWriter):
    """Prefix every line with a ``>`` marker.

    A space separates the marker from the line content unless the line is
    empty or itself starts with ``>``.  Blank lines therefore become a bare
    ``>``, and stacking two writers produces ``>> text`` rather than
    ``> > text``.

    The marker for a line is written as soon as that line begins: at the
    first byte ever written and immediately after every ``\\n``.  An empty
    stream produces no output at all.
    """

    def __init__(self, sink: ByteSink) -> None:
        super().__init__(sink)
        self._state = _State.START

    def write(self, data: bytes) -> int:
        data = bytes(data)
        size = len(data)
        pos = 0
        while pos < size:
            if self._state is _State.START:
                self._sink.write(_MARKER)
                self._state = _State.LINE_START
            if self._state is _State.LINE_START:
                if data[pos] not in (NEWLINE, _GT):
                    self._sink.write(b" ")
                self._state = _State.IN_LINE

            end = data.find(b"\n", pos)
            if end == -1:
                self._sink.write(data[pos:])
                break
            self._sink.write(data[pos : end + 1])
            self._sink.write(_MARKER)
            self._state = _State.LINE_START
            pos = end + 1
        return size
