"""
Tolerant JSON-family parser with a mutable in-memory value tree.

Parses a relaxed superset of JSON (optional outer braces, bare identifier
keys, ``=`` separators, optional commas, C/C++ comments) into a Document:
an arena of typed nodes addressed by handles, with object members resolved
by name hash. Trees can be edited in place and serialized back to strict
JSON, formatted or compact.
"""

from typing import IO
from typing import Any

from sjzon._alloc import Allocator
from sjzon._alloc import BudgetAllocator
from sjzon._alloc import HeapAllocator
from sjzon._errors import AllocationError
from sjzon._errors import JSONDecodeError
from sjzon._errors import StaleHandleError
from sjzon._errors import TypeMismatch
from sjzon._keys import NameHasher
from sjzon._keys import crc32_name_hash
from sjzon._keys import name_hash
from sjzon._node import Handle
from sjzon._node import Kind
from sjzon._node import Node
from sjzon._parser import DEFAULT_MAX_DEPTH
from sjzon._parser import ParseConfig
from sjzon._parser import get_error_position
from sjzon._parser import parse_document
from sjzon._position import ByteOffsetMapper
from sjzon._profile import HotPathStats
from sjzon._profile import clear_hot_path_stats
from sjzon._profile import get_hot_path_stats
from sjzon._profile import set_profiling
from sjzon._serializer import EncodeConfig
from sjzon._serializer import serialize
from sjzon._tree import Document

__version__ = "0.1.0"


def parse(s: str, **kwargs: Any) -> Document:
    """
    Parses relaxed JSON text into a Document.

    Keyword arguments build a ParseConfig. Raises JSONDecodeError on the
    first malformed construct; no partial tree is returned.
    """
    if not isinstance(s, str):
        raise TypeError(
            f"the document must be str, not {type(s).__name__}"
        )

    config = ParseConfig(**kwargs)
    return parse_document(s, config)


loads = parse


def load(fp: IO[str], **kwargs: Any) -> Document:
    """
    Parses relaxed JSON from a file-like object.
    """
    if not hasattr(fp, "read"):
        raise TypeError("fp must have a read() method")

    return parse(fp.read(), **kwargs)


def dumps(
    document: Document, handle: Handle | None = None, **kwargs: Any
) -> str:
    """
    Serializes ``handle`` (the root by default) to strict JSON text.

    Keyword arguments build an EncodeConfig.
    """
    config = EncodeConfig(**kwargs)
    return serialize(document, handle, config)


def dump(
    document: Document,
    fp: IO[str],
    handle: Handle | None = None,
    **kwargs: Any,
) -> None:
    """
    Serializes a Document to a file-like object.
    """
    if not hasattr(fp, "write"):
        raise TypeError("fp must have a write() method")

    fp.write(dumps(document, handle, **kwargs))


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "AllocationError",
    "Allocator",
    "BudgetAllocator",
    "ByteOffsetMapper",
    "Document",
    "EncodeConfig",
    "Handle",
    "HeapAllocator",
    "HotPathStats",
    "JSONDecodeError",
    "Kind",
    "NameHasher",
    "Node",
    "ParseConfig",
    "StaleHandleError",
    "TypeMismatch",
    "clear_hot_path_stats",
    "crc32_name_hash",
    "dump",
    "dumps",
    "get_error_position",
    "get_hot_path_stats",
    "load",
    "loads",
    "name_hash",
    "parse",
    "set_profiling",
]
