"""Writer that indents every non-empty line."""

from __future__ import annotations

from .base import NEWLINE, ByteSink, StreamWriter, as_bytes


class IndentWriter(StreamWriter):
    """Prefix every line with ``repeat`` copies of ``unit``.

    The prefix is written lazily, when the first byte of a line arrives, so
    empty lines (a ``\\n`` directly at the start of a line, or a stream that
    ends right after a ``\\n``) are left without trailing whitespace.

    Parameters
    ----------
    sink:
        Destination for the indented bytes.
    repeat:
        Number of times ``unit`` is repeated per line.
    unit:
        The indentation unit, ``"\\t"`` by default.
    at_line_start:
        Whether the first byte written starts a new line.  Pass ``False``
        when the writer is attached after a list marker that already sits at
        the start of the current line.
    """

    def __init__(
        self,
        sink: ByteSink,
        repeat: int = 1,
        unit: bytes | str = b"\t",
        *,
        at_line_start: bool = True,
    ) -> None:
        if repeat < 0:
            raise ValueError(f"repeat must be >= 0, got {repeat}")
        super().__init__(sink)
        self._prefix = as_bytes(unit) * repeat
        self._at_line_start = at_line_start

    @property
    def at_line_start(self) -> bool:
        return self._at_line_start

    def write(self, data: bytes) -> int:
        data = bytes(data)
        size = len(data)
        pos = 0
        while pos < size:
            if self._at_line_start and data[pos] != NEWLINE and self._prefix:
                self._sink.write(self._prefix)
            end = data.find(b"\n", pos)
            if end == -1:
                self._sink.write(data[pos:])
                self._at_line_start = False
                break
            self._sink.write(data[pos : end + 1])
            self._at_line_start = True
            pos = end + 1
        return size
