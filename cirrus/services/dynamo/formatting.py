"""Render attribute values as text.

Two modes:
    compact   single line for table cells; containers are summarized.
    detailed  multi-line, indented one level per nesting depth.

Both dispatch through a table with one entry per :class:`AttributeType`.
``_check_exhaustive`` runs at import time so a new tag without a formatter
fails as soon as the module loads.
"""
from __future__ import annotations

from typing import Callable

from ...errors import UnknownAttributeTypeError
from .attributes import AttributeType, AttributeValue

COMPACT_MAX_LEN = 70
TRUE_GLYPH = "✓"
FALSE_GLYPH = "✗"
NULL_GLYPH = "∅"
MISSING_CELL = "-"


def _compact_string(value: str) -> str:
    value = value.replace("\r\n", " ").replace("\n", " ")
    if len(value) > COMPACT_MAX_LEN:
        return value[: COMPACT_MAX_LEN - 3] + "..."
    return value


_COMPACT: dict[AttributeType, Callable[[AttributeValue], str]] = {
    AttributeType.S: lambda av: _compact_string(av.value),
    AttributeType.N: lambda av: av.value,
    AttributeType.BOOL: lambda av: TRUE_GLYPH if av.value else FALSE_GLYPH,
    AttributeType.NULL: lambda av: NULL_GLYPH,
    AttributeType.L: lambda av: f"[{len(av.value)}]",
    AttributeType.M: lambda av: f"{{{len(av.value)}}}",
    AttributeType.SS: lambda av: f"Set<{len(av.value)}>",
    AttributeType.NS: lambda av: f"NumSet<{len(av.value)}>",
    AttributeType.BS: lambda av: f"BinSet<{len(av.value)}>",
    AttributeType.B: lambda av: f"Binary<{len(av.value)} bytes>",
}

_TYPE_NAMES: dict[AttributeType, str] = {
    AttributeType.S: "String",
    AttributeType.N: "Number",
    AttributeType.BOOL: "Boolean",
    AttributeType.NULL: "Null",
    AttributeType.L: "List",
    AttributeType.M: "Map",
    AttributeType.SS: "String Set",
    AttributeType.NS: "Number Set",
    AttributeType.BS: "Binary Set",
    AttributeType.B: "Binary",
}

# Element type of each set tag, used to format set members one level deeper.
_SET_ELEMENTS: dict[AttributeType, AttributeType] = {
    AttributeType.SS: AttributeType.S,
    AttributeType.NS: AttributeType.N,
    AttributeType.BS: AttributeType.B,
}


def _lookup(table: dict, av: AttributeValue):
    try:
        return table[av.type]
    except (KeyError, TypeError):
        raise UnknownAttributeTypeError(f"no formatter for attribute type {av.type!r}") from None


def format_compact(av: AttributeValue) -> str:
    """Single-line rendering used in table cells."""
    return _lookup(_COMPACT, av)(av)


def type_name(av: AttributeValue) -> str:
    """Human readable name of the value's type ("String", "Number Set", ...)."""
    return _lookup(_TYPE_NAMES, av)


def format_detailed(av: AttributeValue, indent: int = 0) -> str:
    """Multi-line rendering used by the item detail view.

    Scalars render as ``(Type) value``. Containers render a header line with
    their size followed by one entry per element, each formatted with this
    same function one level deeper. Map keys are sorted.
    """
    prefix = "  " * indent
    label = f"({type_name(av)})"
    kind = av.type

    if kind in (AttributeType.S, AttributeType.N):
        return f"{prefix}{label} {av.value}"
    if kind is AttributeType.BOOL:
        return f"{prefix}{label} {'true' if av.value else 'false'}"
    if kind is AttributeType.NULL:
        return f"{prefix}{label}"
    if kind is AttributeType.B:
        return f"{prefix}({type_name(av)} - {len(av.value)} bytes)"

    if kind is AttributeType.L:
        lines = [f"{prefix}(List - {len(av.value)} items)"]
        for i, child in enumerate(av.value):
            lines.append(f"{prefix}  [{i}] " + format_detailed(child, indent + 1).lstrip())
        return "\n".join(lines)

    if kind is AttributeType.M:
        lines = [f"{prefix}(Map - {len(av.value)} fields)"]
        for key in sorted(av.value):
            lines.append(f"{prefix}  {key}:")
            lines.append(format_detailed(av.value[key], indent + 2))
        return "\n".join(lines)

    if kind in _SET_ELEMENTS:
        element_type = _SET_ELEMENTS[kind]
        lines = [f"{prefix}({type_name(av)} - {len(av.value)} items)"]
        for member in av.value:
            child = AttributeValue(element_type, member)
            lines.append(f"{prefix}  - " + format_detailed(child, indent + 1).lstrip())
        return "\n".join(lines)

    raise UnknownAttributeTypeError(f"no detailed formatter for attribute type {kind!r}")


def _check_exhaustive() -> None:
    for table_name, table in (("compact", _COMPACT), ("type name", _TYPE_NAMES)):
        missing = set(AttributeType) - set(table)
        if missing:
            raise UnknownAttributeTypeError(
                f"{table_name} formatter is missing {sorted(m.value for m in missing)}"
            )


_check_exhaustive()
