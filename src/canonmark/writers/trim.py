"""Writers that strip a cutset from the ends of a whole stream.

Trimming applies to everything ever written to one writer instance, not to
individual calls or lines:

* :class:`TrimLeftWriter` drops cutset bytes until the first other byte.
* :class:`TrimRightWriter` holds back a trailing run of cutset bytes and
  forwards it only once a non-cutset byte follows.  Whatever is still held
  when the stream ends is discarded.
* :class:`TrimWriter` does both.
"""

from __future__ import annotations

from .base import ByteSink, StreamWriter, as_bytes


def _cutset_bytes(cutset: bytes | str) -> bytes:
    raw = as_bytes(cutset)
    if not raw.isascii():
        raise ValueError(f"cutset must contain only ASCII characters, got {cutset!r}")
    return raw


class TrimLeftWriter(StreamWriter):
    """Drop the leading run of ``cutset`` bytes from the stream."""

    def __init__(self, sink: ByteSink, cutset: bytes | str) -> None:
        super().__init__(sink)
        self._cutset = _cutset_bytes(cutset)
        self._trimming = True

    def write(self, data: bytes) -> int:
        data = bytes(data)
        if self._trimming:
            rest = data.lstrip(self._cutset)
            if not rest:
                return len(data)
            self._trimming = False
            self._sink.write(rest)
            return len(data)
        if data:
            self._sink.write(data)
        return len(data)

    def close(self) -> None:
        if isinstance(self._sink, StreamWriter):
            self._sink.close()


class TrimRightWriter(StreamWriter):
    """Drop the trailing run of ``cutset`` bytes from the stream.

    Call :meth:`close` once the stream is complete.  Bytes held back at that
    point belong to the trailing run and are discarded; they are never
    written to the sink.
    """

    def __init__(self, sink: ByteSink, cutset: bytes | str) -> None:
        super().__init__(sink)
        self._cutset = _cutset_bytes(cutset)
        self._pending = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes currently held back."""
        return bytes(self._pending)

    def write(self, data: bytes) -> int:
        data = bytes(data)
        body = data.rstrip(self._cutset)
        if not body:
            self._pending += data
            return len(data)
        if self._pending:
            self._sink.write(bytes(self._pending) + body)
            self._pending.clear()
        else:
            self._sink.write(body)
        self._pending += data[len(body) :]
        return len(data)

    def close(self) -> None:
        self._pending.clear()


class TrimWriter(TrimLeftWriter):
    """Trim ``cutset`` from both ends of the stream.

    Equivalent to ``TrimLeftWriter(TrimRightWriter(sink, cutset), cutset)``.
    """

    def __init__(self, sink: ByteSink, cutset: bytes | str) -> None:
        super().__init__(TrimRightWriter(sink, cutset), cutset)
