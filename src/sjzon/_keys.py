"""
Key resolution for object members.

Members are identified by a 32-bit hash of their name rather than by the
name itself. Comparison is hash-only: two names that collide under the
hasher are indistinguishable to lookups, and the first member in child
order wins.
"""

from __future__ import annotations

import zlib
from collections.abc import Callable
from collections.abc import Iterable
from typing import Final
from typing import TypeAlias

NameHasher: TypeAlias = Callable[[bytes], int]

HASH_MASK: Final = 0xFFFFFFFF


def crc32_name_hash(name: bytes) -> int:
    """Default hasher: CRC-32 of the UTF-8 encoded member name."""
    return zlib.crc32(name) & HASH_MASK


def name_hash(name: str, hasher: NameHasher | None = None) -> int:
    """
    Computes the member hash used for ``name``.

    Names are hashed as UTF-8 bytes; lone surrogates produced by partial
    ``\\u`` decoding are passed through rather than rejected.
    """
    fn = hasher or crc32_name_hash
    return fn(name.encode("utf-8", "surrogatepass")) & HASH_MASK


def find_first(hashes: Iterable[int], wanted: int) -> int | None:
    """Index of the first entry of ``hashes`` equal to ``wanted``."""
    for index, candidate in enumerate(hashes):
        if candidate == wanted:
            return index
    return None
