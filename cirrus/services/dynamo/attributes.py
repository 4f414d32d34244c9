"""Typed attribute values for items read from the key-value store.

The store's wire format tags every value with a one-key mapping
(``{"S": "abc"}``, ``{"N": "42"}``, ``{"L": [...]}``, ...). Items are
converted to :class:`AttributeValue` at the store boundary so the rest of
the browser only ever deals with a closed set of ten tags.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ...errors import UnknownAttributeTypeError


class AttributeType(str, Enum):
    S = "S"
    N = "N"
    BOOL = "BOOL"
    NULL = "NULL"
    L = "L"
    M = "M"
    SS = "SS"
    NS = "NS"
    BS = "BS"
    B = "B"


@dataclass(frozen=True)
class AttributeValue:
    """One tagged value.

    Attributes:
        type: The wire tag.
        value: Python payload. ``str`` for S/N, ``bool`` for BOOL/NULL,
            ``bytes`` for B, a list of ``str``/``bytes`` for the sets, a
            tuple of AttributeValue for L and a dict of AttributeValue for M.
    """

    type: AttributeType
    value: Any

    @classmethod
    def string(cls, value: str) -> AttributeValue:
        return cls(AttributeType.S, value)

    @classmethod
    def number(cls, value: int | float | str) -> AttributeValue:
        return cls(AttributeType.N, str(value))

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> AttributeValue:
        """Convert a wire mapping (``{"S": "x"}``) into a typed value.

        Raises:
            UnknownAttributeTypeError: if the mapping is not a single known tag.
        """
        if not isinstance(raw, dict) or len(raw) != 1:
            raise UnknownAttributeTypeError(f"expected a single-tag attribute value, got {raw!r}")

        tag, payload = next(iter(raw.items()))
        try:
            kind = AttributeType(tag)
        except ValueError:
            raise UnknownAttributeTypeError(f"unknown attribute type tag {tag!r}") from None

        if kind is AttributeType.L:
            return cls(kind, tuple(cls.from_wire(v) for v in payload))
        if kind is AttributeType.M:
            return cls(kind, {k: cls.from_wire(v) for k, v in payload.items()})
        if kind in (AttributeType.SS, AttributeType.NS, AttributeType.BS):
            return cls(kind, list(payload))
        if kind is AttributeType.B:
            return cls(kind, bytes(payload))
        if kind in (AttributeType.BOOL, AttributeType.NULL):
            return cls(kind, bool(payload))
        return cls(kind, str(payload))

    def to_wire(self) -> dict[str, Any]:
        """Inverse of :meth:`from_wire`."""
        if self.type is AttributeType.L:
            return {"L": [v.to_wire() for v in self.value]}
        if self.type is AttributeType.M:
            return {"M": {k: v.to_wire() for k, v in self.value.items()}}
        if self.type in (AttributeType.SS, AttributeType.NS, AttributeType.BS):
            return {self.type.value: list(self.value)}
        return {self.type.value: self.value}


# An item is an ordered mapping of attribute name -> typed value.
Item = dict[str, AttributeValue]


def item_from_wire(raw: dict[str, dict[str, Any]]) -> Item:
    return {name: AttributeValue.from_wire(value) for name, value in raw.items()}

