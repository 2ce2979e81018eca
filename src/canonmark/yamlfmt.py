"""Canonical re-formatting of YAML documents.

:func:`format_yaml` loads a document with PyYAML's safe loader and dumps it
back in one fixed style:

* block style everywhere, keys in their original order
* sequences indented under their parent key (``foo:\\n  - a``)
* strings containing newlines as literal blocks (``|-``)
* no line folding, unicode kept as is

PyYAML does not keep comments and expands anchors and merge keys on load,
so both are lost in the output.

The function doubles as a code-block language formatter for ``yaml`` and
``yml`` fences.
"""

from __future__ import annotations

from typing import Any

import yaml

from canonmark.errors import CanonmarkYamlError


class _CanonicalDumper(yaml.SafeDumper):
    """SafeDumper that indents block sequences nested under mappings."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


_CanonicalDumper.add_representer(str, _represent_str)


def load_yaml(src: bytes | str) -> Any:
    """Load a single YAML document, raising :class:`CanonmarkYamlError`."""
    try:
        return yaml.safe_load(src)
    except yaml.YAMLError as exc:
        context: dict[str, Any] = {}
        mark = getattr(exc, "problem_mark", None)
        if mark is not None:
            context = {"line": mark.line + 1, "column": mark.column + 1}
        raise CanonmarkYamlError(
            message=f"unmarshalling: {exc}",
            context=context,
            cause=exc,
        ) from exc


def dump_yaml(data: Any) -> str:
    """Dump *data* in canonical style.  ``None`` dumps to ``""``."""
    if data is None:
        return ""
    try:
        return yaml.dump(
            data,
            Dumper=_CanonicalDumper,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
            width=float("inf"),
        )
    except yaml.YAMLError as exc:
        raise CanonmarkYamlError(message=f"marshalling: {exc}", cause=exc) from exc


def format_yaml(src: bytes | str) -> bytes:
    """Re-format a YAML document.

    Parameters
    ----------
    src:
        YAML text, as ``bytes`` (UTF-8) or ``str``.

    Returns
    -------
    bytes
        The canonical rendering, newline terminated, or ``b""`` for an
        empty document.

    Raises
    ------
    CanonmarkYamlError
        When *src* is not valid YAML.  The message starts with
        ``"unmarshalling:"``.
    """
    return dump_yaml(load_yaml(src)).encode("utf-8")
