"""
Value node model: kinds, handles and the node record itself.

Nodes live in a Document's arena and are addressed by Handle. A container
node keeps its children as an ordered list of handles; a reference node
keeps a handle to the node it aliases instead of a payload of its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum


class Kind(Enum):
    """Tag of a value node."""

    NULL = "null"
    FALSE = "false"
    TRUE = "true"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def is_container(self) -> bool:
        return self in (Kind.ARRAY, Kind.OBJECT)


@dataclass(frozen=True, slots=True)
class Handle:
    """
    Stable address of a node inside one Document.

    ``generation`` is bumped every time the slot at ``index`` is freed, so a
    handle kept past the destruction of its node no longer matches and is
    rejected instead of silently reading whatever reuses the slot.
    """

    index: int
    generation: int
    document_id: int = field(compare=True, repr=False)


@dataclass(slots=True)
class Node:
    """
    A single typed element of the value tree.

    ``number`` and ``integer`` are filled together for NUMBER nodes; ``text``
    only for STRING nodes; ``children`` only for containers. ``name_hash`` is
    zero unless the node is a member of an object. ``name`` is kept only when
    the document retains member names.
    """

    kind: Kind = Kind.NULL
    number: float = 0.0
    integer: int = 0
    text: str | None = None
    name_hash: int = 0
    name: str | None = None
    children: list[Handle] = field(default_factory=list)
    target: Handle | None = None
    parent: Handle | None = None

    @property
    def is_reference(self) -> bool:
        return self.target is not None

    def reset(self) -> None:
        """Returns the node to its zero-initialised state."""
        self.kind = Kind.NULL
        self.number = 0.0
        self.integer = 0
        self.text = None
        self.name_hash = 0
        self.name = None
        self.children = []
        self.target = None
        self.parent = None
