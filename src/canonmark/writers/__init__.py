"""Composable stream writers: indentation, blockquote markers and trimming."""

from __future__ import annotations

from .base import ByteSink, StreamWriter
from .blockquote import BlockquoteWriter
from .indent import IndentWriter
from .trim import TrimLeftWriter, TrimRightWriter, TrimWriter

__all__ = [
    "BlockquoteWriter",
    "ByteSink",
    "IndentWriter",
    "StreamWriter",
    "TrimLeftWriter",
    "TrimRightWriter",
    "TrimWriter",
]
