"""Exception types raised by the parser, the tree and the allocators."""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import TypeAlias

from sjzon._position import ByteOffsetMapper

if TYPE_CHECKING:
    from sjzon._node import Kind

Position: TypeAlias = int


class JSONDecodeError(ValueError):
    """
    Handles parse failures with precise position and context information.

    One failure invalidates the whole document: there is no partial result
    and no resynchronization. ``pos`` is a character offset into ``doc``;
    ``byte_pos`` is the same position in the UTF-8 encoding of ``doc``.
    """

    def __init__(self, msg: str, doc: str = "", pos: Position = 0) -> None:
        if not isinstance(msg, str):
            raise TypeError("msg must be a string")
        if not isinstance(pos, int) or pos < 0:
            raise ValueError("pos must be a non-negative integer")

        self.msg = msg
        self.doc = doc
        self.pos = pos
        self.byte_pos = ByteOffsetMapper(doc).char_to_byte(pos) if doc else pos

        self.lineno = doc.count("\n", 0, pos) + 1 if doc else 1
        self.colno = pos - doc.rfind("\n", 0, pos) if doc else pos + 1

        super().__init__(f"{msg} at line {self.lineno}, column {self.colno}")

    def __reduce__(self):  # type: ignore[no-untyped-def]
        return self.__class__, (self.msg, self.doc, self.pos)


class TypeMismatch(TypeError):
    """Raised when a node is read as a kind it does not hold."""

    def __init__(self, expected: str, actual: Kind) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected {expected} value, node holds {actual.name}")


class StaleHandleError(LookupError):
    """Raised when a handle refers to a node that has been destroyed."""


class AllocationError(MemoryError):
    """Raised by an allocator that cannot satisfy a request."""
