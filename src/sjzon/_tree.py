"""
Document arena: node storage, construction, typed access and mutation.

A Document owns every node created through it. Containers own their
children outright; a reference node only holds a handle to the node it
aliases. Handles are generation counted, so using a handle (or a reference)
after its node was destroyed raises StaleHandleError instead of reading a
recycled slot.
"""

from __future__ import annotations

import itertools
import logging
import math
import struct
from collections.abc import Iterable
from collections.abc import Iterator
from typing import IO
from typing import TypeAlias

from sjzon._alloc import Allocator
from sjzon._alloc import HeapAllocator
from sjzon._errors import StaleHandleError
from sjzon._errors import TypeMismatch
from sjzon._keys import NameHasher
from sjzon._keys import find_first
from sjzon._keys import name_hash
from sjzon._node import Handle
from sjzon._node import Kind
from sjzon._node import Node
from sjzon._serializer import EncodeConfig
from sjzon._serializer import serialize

logger = logging.getLogger(__name__)

Key: TypeAlias = int | str

_document_ids = itertools.count(1)


def _truncate(value: float) -> int:
    """Integer view of a number: truncated toward zero, 0 if not finite."""
    return int(value) if math.isfinite(value) else 0


class Document:
    """
    Arena holding one value tree and any detached nodes built alongside it.

    Args:
        allocator: Source of nodes and strings; ``HeapAllocator`` when
            omitted. Fixed for the lifetime of the document.
        hasher: Member name hasher; CRC-32 when omitted.
        keep_names: Retain a copy of each member name. Required for
            serialization of objects; lookups only need the hash.
    """

    def __init__(
        self,
        allocator: Allocator | None = None,
        hasher: NameHasher | None = None,
        keep_names: bool = True,
    ) -> None:
        self.allocator: Allocator = allocator or HeapAllocator()
        self.hasher = hasher
        self.keep_names = keep_names
        self.root: Handle | None = None
        self._id = next(_document_ids)
        self._slots: list[Node | None] = []
        self._generations: list[int] = []
        self._free_slots: list[int] = []

    def __enter__(self) -> Document:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        root = self.kind(self.root).name if self.root else None
        return f"<Document root={root} live_nodes={self.live_nodes}>"

    @property
    def live_nodes(self) -> int:
        """Number of nodes currently allocated in this document."""
        return len(self._slots) - len(self._free_slots)

    def close(self) -> None:
        """Destroys every node in the document, attached or not."""
        for index, node in enumerate(self._slots):
            if node is not None and node.parent is None:
                self._release(self._handle_at(index))
        self.root = None
        logger.debug("Released document %d", self._id)

    # ----------------------------------------------------------------
    # slot management

    def _handle_at(self, index: int) -> Handle:
        return Handle(index, self._generations[index], self._id)

    def _new_node(self, kind: Kind) -> Handle:
        node = self.allocator.allocate_node()
        node.kind = kind
        if self._free_slots:
            index = self._free_slots.pop()
            self._slots[index] = node
        else:
            index = len(self._slots)
            self._slots.append(node)
            self._generations.append(0)
        return self._handle_at(index)

    def _release(self, handle: Handle) -> None:
        node = self._node(handle)
        if not node.is_reference:
            for child in node.children:
                self._release(child)
            if node.text is not None:
                self.allocator.free_text(node.text)
        if node.name is not None:
            self.allocator.free_text(node.name)
        node.reset()
        self.allocator.free_node(node)
        self._slots[handle.index] = None
        self._generations[handle.index] += 1
        self._free_slots.append(handle.index)

    def _node(self, handle: Handle) -> Node:
        if handle.document_id != self._id:
            raise ValueError("handle belongs to a different document")
        if (
            handle.index >= len(self._slots)
            or self._generations[handle.index] != handle.generation
        ):
            raise StaleHandleError(f"{handle!r} refers to a destroyed node")
        node = self._slots[handle.index]
        assert node is not None
        return node

    def _resolve(self, handle: Handle) -> tuple[Handle, Node]:
        node = self._node(handle)
        if node.target is None:
            return handle, node
        try:
            return node.target, self._node(node.target)
        except StaleHandleError:
            logger.debug("Reference %r outlived its target", handle)
            raise

    def _set_text(self, node: Node, text: str) -> None:
        stored = self.allocator.allocate_text(text)
        if node.text is not None:
            self.allocator.free_text(node.text)
        node.text = stored

    def _set_name(self, node: Node, name: str) -> None:
        node.name_hash = name_hash(name, self.hasher)
        if self.keep_names:
            stored = self.allocator.allocate_text(name)
            if node.name is not None:
                self.allocator.free_text(node.name)
            node.name = stored

    def _set_number(self, node: Node, value: float) -> None:
        node.kind = Kind.NUMBER
        node.number = value
        node.integer = _truncate(value)

    def _adopt(self, parent: Handle, child: Handle) -> None:
        self._node(parent).children.append(child)
        self._node(child).parent = parent

    # ----------------------------------------------------------------
    # construction

    def create_null(self) -> Handle:
        return self._new_node(Kind.NULL)

    def create_true(self) -> Handle:
        return self._new_node(Kind.TRUE)

    def create_false(self) -> Handle:
        return self._new_node(Kind.FALSE)

    def create_bool(self, value: bool) -> Handle:
        return self._new_node(Kind.TRUE if value else Kind.FALSE)

    def create_number(self, value: float) -> Handle:
        handle = self._new_node(Kind.NUMBER)
        self._set_number(self._node(handle), float(value))
        return handle

    def create_string(self, value: str) -> Handle:
        handle = self._new_node(Kind.STRING)
        try:
            self._set_text(self._node(handle), value)
        except MemoryError:
            self._release(handle)
            raise
        return handle

    def create_array(self) -> Handle:
        return self._new_node(Kind.ARRAY)

    def create_object(self) -> Handle:
        return self._new_node(Kind.OBJECT)

    def _create_filled_array(self, items: Iterable[Handle]) -> Handle:
        array = self.create_array()
        try:
            for item in items:
                self._adopt(array, item)
        except MemoryError:
            self._release(array)
            raise
        return array

    def create_int_array(self, numbers: Iterable[int]) -> Handle:
        return self._create_filled_array(
            self.create_number(int(n)) for n in numbers
        )

    def create_float_array(self, numbers: Iterable[float]) -> Handle:
        """Array of numbers rounded to single precision."""
        return self._create_filled_array(
            self.create_number(struct.unpack("f", struct.pack("f", n))[0])
            for n in numbers
        )

    def create_double_array(self, numbers: Iterable[float]) -> Handle:
        return self._create_filled_array(
            self.create_number(n) for n in numbers
        )

    def create_string_array(self, strings: Iterable[str]) -> Handle:
        return self._create_filled_array(
            self.create_string(s) for s in strings
        )

    # ----------------------------------------------------------------
    # access

    def node(self, handle: Handle) -> Node:
        """The raw node behind ``handle`` (a reference is not followed)."""
        return self._node(handle)

    def resolve(self, handle: Handle) -> Node:
        """The node holding the data for ``handle``, following references."""
        return self._resolve(handle)[1]

    def is_alive(self, handle: Handle) -> bool:
        try:
            self._resolve(handle)
        except StaleHandleError:
            return False
        return True

    def kind(self, handle: Handle) -> Kind:
        return self._resolve(handle)[1].kind

    def is_reference(self, handle: Handle) -> bool:
        return self._node(handle).is_reference

    def is_null(self, handle: Handle) -> bool:
        return self.kind(handle) is Kind.NULL

    def is_bool(self, handle: Handle) -> bool:
        return self.kind(handle) in (Kind.TRUE, Kind.FALSE)

    def is_number(self, handle: Handle) -> bool:
        return self.kind(handle) is Kind.NUMBER

    def is_string(self, handle: Handle) -> bool:
        return self.kind(handle) is Kind.STRING

    def is_array(self, handle: Handle) -> bool:
        return self.kind(handle) is Kind.ARRAY

    def is_object(self, handle: Handle) -> bool:
        return self.kind(handle) is Kind.OBJECT

    def size(self, container: Handle) -> int:
        """Number of children of an array or object; 0 for scalars."""
        return len(self._resolve(container)[1].children)

    def children(self, container: Handle) -> tuple[Handle, ...]:
        return tuple(self._resolve(container)[1].children)

    def __iter__(self) -> Iterator[Handle]:
        if self.root is None:
            return iter(())
        return iter(self.children(self.root))

    def member_name(self, handle: Handle) -> str | None:
        """Retained member name of ``handle``, or None."""
        return self._node(handle).name

    def get_item(self, array: Handle, index: int) -> Handle | None:
        """Child at position ``index``, or None when out of range."""
        children = self._resolve(array)[1].children
        if 0 <= index < len(children):
            return children[index]
        return None

    def get_member(self, obj: Handle, key: str | int) -> Handle | None:
        """
        First member whose name hash matches ``key``.

        ``key`` is either a member name or a precomputed hash from
        ``sjzon.name_hash``. Matching is hash-only, so a colliding name
        finds the same member.
        """
        children = self._resolve(obj)[1].children
        index = find_first(
            (self._node(child).name_hash for child in children),
            self._key_hash(key),
        )
        return None if index is None else children[index]

    def _key_hash(self, key: str | int) -> int:
        if isinstance(key, str):
            return name_hash(key, self.hasher)
        return key

    # ----------------------------------------------------------------
    # typed extraction

    def as_bool(self, handle: Handle) -> bool:
        kind = self.kind(handle)
        if kind is Kind.TRUE:
            return True
        if kind is Kind.FALSE:
            return False
        raise TypeMismatch("bool", kind)

    def as_int(self, handle: Handle) -> int:
        node = self._resolve(handle)[1]
        if node.kind is not Kind.NUMBER:
            raise TypeMismatch("number", node.kind)
        return node.integer

    def as_double(self, handle: Handle) -> float:
        node = self._resolve(handle)[1]
        if node.kind is not Kind.NUMBER:
            raise TypeMismatch("number", node.kind)
        return node.number

    def as_string(self, handle: Handle) -> str:
        node = self._resolve(handle)[1]
        if node.kind is not Kind.STRING or node.text is None:
            raise TypeMismatch("string", node.kind)
        return node.text

    # ----------------------------------------------------------------
    # mutation

    def _container(self, handle: Handle) -> tuple[Handle, Node]:
        owner, node = self._resolve(handle)
        if not node.kind.is_container:
            raise TypeMismatch("array or object", node.kind)
        return owner, node

    def _check_attachable(self, container: Handle, item: Handle) -> Node:
        node = self._node(item)
        if node.parent is not None or item == self.root:
            raise ValueError("node is already attached to a tree")
        ancestors: set[Handle] = set()
        ancestor: Handle | None = container
        while ancestor is not None:
            ancestors.add(ancestor)
            ancestor = self._node(ancestor).parent
        if self._reaches(item, ancestors):
            raise ValueError("cannot attach a node inside itself")
        return node

    def _reaches(self, start: Handle, wanted: set[Handle]) -> bool:
        """
        Whether ``start`` or anything below it is in ``wanted``.

        References are followed to their targets, so a reference to an
        ancestor counts as containing it. Stale references lead nowhere.
        """
        pending = [start]
        seen: set[Handle] = set()
        while pending:
            handle = pending.pop()
            if handle in wanted:
                return True
            if handle in seen or not self.is_alive(handle):
                continue
            seen.add(handle)
            node = self._node(handle)
            if node.target is not None:
                pending.append(node.target)
            else:
                pending.extend(node.children)
        return False

    def _locate(self, node: Node, key: Key) -> int | None:
        if isinstance(key, str):
            return find_first(
                (self._node(child).name_hash for child in node.children),
                name_hash(key, self.hasher),
            )
        if 0 <= key < len(node.children):
            return key
        return None

    def append(self, container: Handle, item: Handle | None) -> None:
        """Attaches ``item`` (with its subtree) after the last child."""
        if item is None:
            return
        owner, parent = self._container(container)
        self._check_attachable(owner, item)
        parent.children.append(item)
        self._node(item).parent = owner

    def append_named(
        self, obj: Handle, name: str, item: Handle | None
    ) -> None:
        """Attaches ``item`` as member ``name`` of ``obj``."""
        if item is None:
            return
        owner, _ = self._container(obj)
        node = self._check_attachable(owner, item)
        self._set_name(node, name)
        self.append(owner, item)

    def create_reference(self, item: Handle) -> Handle:
        """
        Builds a detached reference aliasing ``item``.

        A reference to a reference aliases the final owner. The reference
        does not keep its target alive.
        """
        target, node = self._resolve(item)
        ref = self._new_node(node.kind)
        self._node(ref).target = target
        return ref

    def append_reference(self, container: Handle, item: Handle | None) -> None:
        if item is None:
            return
        ref = self.create_reference(item)
        try:
            self.append(container, ref)
        except (ValueError, LookupError, TypeError, MemoryError):
            self._release(ref)
            raise

    def append_named_reference(
        self, obj: Handle, name: str, item: Handle | None
    ) -> None:
        if item is None:
            return
        ref = self.create_reference(item)
        try:
            self.append_named(obj, name, ref)
        except (ValueError, LookupError, TypeError, MemoryError):
            self._release(ref)
            raise

    def detach(self, container: Handle, key: Key) -> Handle | None:
        """
        Unlinks the child at index (or with name) ``key`` and returns it.

        The caller owns the returned node and must attach or destroy it.
        """
        _, parent = self._container(container)
        index = self._locate(parent, key)
        if index is None:
            return None
        child = parent.children.pop(index)
        self._node(child).parent = None
        return child

    def delete(self, container: Handle, key: Key) -> None:
        child = self.detach(container, key)
        if child is not None:
            self._release(child)

    def replace(self, container: Handle, key: Key, new: Handle | None) -> None:
        """
        Puts ``new`` in the position of the child at ``key``.

        The named form gives ``new`` the name being replaced. The old child
        is destroyed. Nothing happens when ``key`` is not found.
        """
        if new is None:
            return
        owner, parent = self._container(container)
        index = self._locate(parent, key)
        if index is None:
            return
        node = self._check_attachable(owner, new)
        if isinstance(key, str):
            self._set_name(node, key)
        old = parent.children[index]
        parent.children[index] = new
        node.parent = owner
        self._node(old).parent = None
        self._release(old)

    def destroy(self, handle: Handle) -> None:
        """
        Destroys ``handle`` and everything it owns.

        An attached node is unlinked from its container first; destroying
        the root empties the document.
        """
        node = self._node(handle)
        if node.parent is not None:
            self._node(node.parent).children.remove(handle)
        if handle == self.root:
            self.root = None
        self._release(handle)

    def add_null(self, obj: Handle, name: str) -> None:
        self.append_named(obj, name, self.create_null())

    def add_true(self, obj: Handle, name: str) -> None:
        self.append_named(obj, name, self.create_true())

    def add_false(self, obj: Handle, name: str) -> None:
        self.append_named(obj, name, self.create_false())

    def add_bool(self, obj: Handle, name: str, value: bool) -> None:
        self.append_named(obj, name, self.create_bool(value))

    def add_number(self, obj: Handle, name: str, value: float) -> None:
        self.append_named(obj, name, self.create_number(value))

    def add_string(self, obj: Handle, name: str, value: str) -> None:
        self.append_named(obj, name, self.create_string(value))

    # ----------------------------------------------------------------
    # serialization

    def print(self, handle: Handle | None = None) -> str:
        """Formatted text of ``handle`` (the root by default)."""
        return serialize(self, handle, EncodeConfig(formatted=True))

    def print_unformatted(self, handle: Handle | None = None) -> str:
        """Compact single-line text of ``handle`` (the root by default)."""
        return serialize(self, handle, EncodeConfig(formatted=False))

    def write(self, fp: IO[str], formatted: bool = True) -> None:
        text = self.print() if formatted else self.print_unformatted()
        fp.write(text)
