"""Result and warning types returned by the rendering API.

All types are plain dataclasses with no behaviour beyond what is needed
for structural equality.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Warning codes
# ---------------------------------------------------------------------------

UNSUPPORTED_NODE_KIND = "UNSUPPORTED_NODE_KIND"
FORMATTER_FAILED = "FORMATTER_FAILED"
YAML_FORMAT_FAILED = "YAML_FORMAT_FAILED"


# ---------------------------------------------------------------------------
# Render outcome
# ---------------------------------------------------------------------------

@dataclass
class RenderWarning:
    """A non-fatal issue encountered during a render pass.

    Warnings are accumulated in :class:`RenderResult` so callers can
    inspect them after the pass completes instead of the pass aborting.

    Attributes
    ----------
    code:
        A machine-readable warning code (e.g. ``"UNSUPPORTED_NODE_KIND"``).
    message:
        A human-readable description of the issue.
    context:
        Arbitrary structured data for diagnostics.
    """

    code: str
    message: str
    context: dict = field(default_factory=dict)


@dataclass
class RenderResult:
    """Outcome of one render pass.

    Attributes
    ----------
    output:
        The rendered bytes when the renderer collected them itself; empty
        when the caller supplied its own sink.
    warnings:
        Non-fatal issues, in the order they were encountered.
    nodes_rendered:
        Number of nodes visited on the entering edge.
    """

    output: bytes = b""
    warnings: list[RenderWarning] = field(default_factory=list)
    nodes_rendered: int = 0

    @property
    def ok(self) -> bool:
        """``True`` when the pass finished without warnings."""
        return not self.warnings

    def text(self) -> str:
        """Decode :attr:`output` as UTF-8."""
        return self.output.decode("utf-8")
