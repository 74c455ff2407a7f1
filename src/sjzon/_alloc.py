"""
Allocators backing a Document.

Every node and every string payload a Document creates is obtained from its
allocator and handed back to it when the node is destroyed. The allocator is
passed to the Document explicitly; there is no process-wide hook.
"""

from __future__ import annotations

from typing import Protocol
from typing import runtime_checkable

from sjzon._errors import AllocationError
from sjzon._node import Node


@runtime_checkable
class Allocator(Protocol):
    """Source of nodes and string payloads for a Document."""

    def allocate_node(self) -> Node:
        """Returns a zero-initialised node or raises AllocationError."""
        ...

    def free_node(self, node: Node) -> None: ...

    def allocate_text(self, text: str) -> str:
        """Returns storage for ``text`` or raises AllocationError."""
        ...

    def free_text(self, text: str) -> None: ...


class HeapAllocator:
    """Unlimited allocator backed by the Python heap."""

    def allocate_node(self) -> Node:
        return Node()

    def free_node(self, node: Node) -> None:
        pass

    def allocate_text(self, text: str) -> str:
        return text

    def free_text(self, text: str) -> None:
        pass


class BudgetAllocator(HeapAllocator):
    """
    Allocator with a cap on live nodes and live text.

    ``max_nodes`` bounds the number of nodes alive at once and ``max_text``
    the total number of characters held in string payloads, member names
    and serializer fragments. ``None`` leaves a dimension unbounded.
    """

    def __init__(
        self, max_nodes: int | None = None, max_text: int | None = None
    ) -> None:
        if max_nodes is not None and max_nodes < 0:
            raise ValueError("max_nodes must be non-negative")
        if max_text is not None and max_text < 0:
            raise ValueError("max_text must be non-negative")
        self.max_nodes = max_nodes
        self.max_text = max_text
        self.live_nodes = 0
        self.live_text = 0
        self.peak_nodes = 0

    def allocate_node(self) -> Node:
        if self.max_nodes is not None and self.live_nodes >= self.max_nodes:
            raise AllocationError(
                f"node budget of {self.max_nodes} exhausted"
            )
        node = super().allocate_node()
        self.live_nodes += 1
        self.peak_nodes = max(self.peak_nodes, self.live_nodes)
        return node

    def free_node(self, node: Node) -> None:
        self.live_nodes -= 1

    def allocate_text(self, text: str) -> str:
        size = len(text)
        if (
            self.max_text is not None
            and self.live_text + size > self.max_text
        ):
            raise AllocationError(
                f"text budget of {self.max_text} characters exhausted"
            )
        self.live_text += size
        return text

    def free_text(self, text: str) -> None:
        self.live_text -= len(text)
