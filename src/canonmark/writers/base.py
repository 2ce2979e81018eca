"""Shared plumbing for the line-oriented stream writers.

Every writer in this package wraps a *sink* (anything with a
``write(bytes)`` method, including another writer) and transforms bytes as
they pass through.  Writers never buffer whole lines; the only state they
carry between calls is whatever is needed to recognise line boundaries or
trailing runs.

All writers expose the same three primitives:

* :meth:`StreamWriter.write` -- raw bytes
* :meth:`StreamWriter.write_string` -- a ``str``, encoded as UTF-8
* :meth:`StreamWriter.write_byte` -- a single byte given as an ``int``

Splitting a payload across calls, or mixing primitives, never changes what
reaches the sink.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

NEWLINE = 0x0A
"""Byte value of ``\\n``."""


@runtime_checkable
class ByteSink(Protocol):
    """Anything that accepts raw bytes.

    :class:`io.BytesIO`, binary files, sockets wrapped with ``makefile("wb")``
    and every :class:`StreamWriter` satisfy this protocol.  The return value
    of ``write`` is ignored.
    """

    def write(self, data: bytes, /) -> object:
        ...


class StreamWriter:
    """Base class for writers that decorate a :class:`ByteSink`.

    Subclasses implement :meth:`write`.  The return value of ``write`` and
    ``write_string`` is always the number of *input* bytes consumed, which
    can differ from the number of bytes forwarded to the sink.

    Exceptions raised by the sink propagate unchanged; the writer makes no
    attempt to retry or to roll back partial output.
    """

    def __init__(self, sink: ByteSink) -> None:
        self._sink = sink

    @property
    def sink(self) -> ByteSink:
        """The wrapped sink."""
        return self._sink

    def write(self, data: bytes) -> int:
        raise NotImplementedError

    def write_string(self, text: str) -> int:
        """Write *text* encoded as UTF-8 and return the encoded length."""
        return self.write(text.encode("utf-8"))

    def write_byte(self, value: int) -> None:
        """Write a single byte (``0 <= value < 256``)."""
        self.write(bytes((value,)))

    def close(self) -> None:
        """Finish the stream.  The default implementation does nothing."""


def as_bytes(value: bytes | bytearray | memoryview | str) -> bytes:
    """Coerce a unit/cutset argument to ``bytes``."""
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)
