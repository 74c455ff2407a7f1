"""
Serializer: renders a value tree back to strict JSON text.

Output is always plain JSON (quoted keys, ``:`` and ``,`` separators) in one
of two layouts. Formatted output puts each object member on its own line,
indented with one tab per depth; compact output is a single line.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from sjzon._node import Handle
from sjzon._node import Kind
from sjzon._node import Node
from sjzon._profile import ProfileContext

if TYPE_CHECKING:
    from sjzon._tree import Document

_ASCII_LIMIT = 127
_CONTROL_LIMIT = 32
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_SCIENTIFIC_BELOW = 1.0e-6
_SCIENTIFIC_ABOVE = 1.0e9
DBL_EPSILON = sys.float_info.epsilon

_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


@dataclass(frozen=True)
class EncodeConfig:
    """
    Configures serialization with immutable settings.

    ``formatted`` selects the multi-line, tab-indented layout;
    ``ensure_ascii`` escapes every character above U+007F.
    """

    formatted: bool = True
    ensure_ascii: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.formatted, bool):
            raise TypeError("formatted must be a boolean")
        if not isinstance(self.ensure_ascii, bool):
            raise TypeError("ensure_ascii must be a boolean")


def _encode_string(s: str, ensure_ascii: bool) -> str:
    """Encode string with proper escape sequences."""
    result = ['"']
    for char in s:
        escaped = _ESCAPES.get(char)
        if escaped is not None:
            result.append(escaped)
        elif ord(char) < _CONTROL_LIMIT:
            result.append(f"\\u{ord(char):04x}")
        elif ensure_ascii and ord(char) > _ASCII_LIMIT:
            code = ord(char)
            if code > 0xFFFF:
                code -= 0x10000
                high = 0xD800 | (code >> 10)
                low = 0xDC00 | (code & 0x3FF)
                result.append(f"\\u{high:04x}\\u{low:04x}")
            else:
                result.append(f"\\u{code:04x}")
        else:
            result.append(char)
    result.append('"')
    return "".join(result)


def _encode_number(node: Node) -> str:
    """
    Encode a number node.

    Values within machine epsilon of their truncation and inside the 32-bit
    range print as integers; other integral values print without a
    fractional part; very small and very large magnitudes print in
    scientific notation; the rest in positional form.
    Non-integral forms use the shortest digits that read back to the same
    float.
    """
    d = node.number
    if not math.isfinite(d):
        msg = "Out of range float values are not JSON compliant"
        raise ValueError(msg)
    if abs(node.integer - d) <= DBL_EPSILON and _INT_MIN <= d <= _INT_MAX:
        return str(node.integer)
    if d.is_integer():
        return f"{d:.0f}"
    shortest = Decimal(repr(d))
    if abs(d) < _SCIENTIFIC_BELOW or abs(d) > _SCIENTIFIC_ABOVE:
        return f"{shortest:e}"
    return f"{shortest:f}"


class _Emitter:
    """
    Renders one tree, obtaining every fragment from the document allocator.

    Fragments are handed back once the output is assembled, or as soon as
    rendering fails.
    """

    def __init__(self, document: Document, config: EncodeConfig) -> None:
        self.document = document
        self.config = config
        self._fragments: list[str] = []

    def keep(self, fragment: str) -> str:
        self._fragments.append(self.document.allocator.allocate_text(fragment))
        return fragment

    def release(self) -> None:
        allocator = self.document.allocator
        for fragment in self._fragments:
            allocator.free_text(fragment)
        self._fragments.clear()

    def value(self, handle: Handle, depth: int) -> str:
        node = self.document.resolve(handle)
        kind = node.kind
        if kind is Kind.NULL:
            return self.keep("null")
        if kind is Kind.FALSE:
            return self.keep("false")
        if kind is Kind.TRUE:
            return self.keep("true")
        if kind is Kind.NUMBER:
            return self.keep(_encode_number(node))
        if kind is Kind.STRING:
            return self.keep(
                _encode_string(node.text or "", self.config.ensure_ascii)
            )
        if kind is Kind.ARRAY:
            return self.array(node, depth)
        return self.object(node, depth)

    def array(self, node: Node, depth: int) -> str:
        items = [self.value(child, depth + 1) for child in node.children]
        separator = ", " if self.config.formatted else ","
        return self.keep("[" + separator.join(items) + "]")

    def object(self, node: Node, depth: int) -> str:
        depth += 1
        members = []
        for child in node.children:
            name = self.document.node(child).name
            if name is None:
                raise ValueError(
                    "object member has no retained name; parse or build the "
                    "document with keep_names=True to serialize it"
                )
            members.append(
                (
                    self.keep(_encode_string(name, self.config.ensure_ascii)),
                    self.value(child, depth),
                )
            )

        if not self.config.formatted:
            body = ",".join(f"{key}: {value}" for key, value in members)
            return self.keep("{" + body + "}")

        indent = "\t" * depth
        lines = [f"{indent}{key}:\t{value}" for key, value in members]
        closing = "\t" * (depth - 1)
        if not lines:
            return self.keep("{\n" + closing + "}")
        return self.keep("{\n" + ",\n".join(lines) + "\n" + closing + "}")


def serialize(
    document: Document, handle: Handle | None, config: EncodeConfig
) -> str:
    """
    Renders ``handle`` (the document root when None) as text.

    Raises ValueError for non-finite numbers and for objects whose member
    names were not retained; allocator exhaustion propagates after every
    fragment built so far has been released.
    """
    if handle is None:
        handle = document.root
    if handle is None:
        raise ValueError("document has no root value")

    with ProfileContext("serialize"):
        emitter = _Emitter(document, config)
        try:
            return emitter.value(handle, 0)
        finally:
            emitter.release()
