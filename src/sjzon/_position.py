"""Character offset to UTF-8 byte offset mapping for error reports."""

from __future__ import annotations

from bisect import bisect_right
from typing import Final

_ASCII_LIMIT: Final = 127


def _utf8_width(char: str) -> int:
    code = ord(char)
    if code <= _ASCII_LIMIT:
        return 1
    if code < 0x800:
        return 2
    if code < 0x10000:
        # Lone surrogates count as three bytes, as the `surrogatepass`
        # error handler would encode them.
        return 3
    return 4


class ByteOffsetMapper:
    """Maps character offsets in a document to UTF-8 byte offsets.

    Parse errors are reported against the decoded ``str`` the parser works
    on, while callers holding the raw file bytes want byte offsets. Rather
    than storing a byte offset per character, the mapper records one
    checkpoint every ``checkpoint_interval`` characters and walks forward
    from the nearest one.
    """

    def __init__(self, text: str, checkpoint_interval: int = 256) -> None:
        self.text: Final = text
        self.checkpoint_interval: Final = checkpoint_interval
        self._is_ascii_only = text.isascii()
        # Parallel lists: char offset -> byte offset at that char.
        self._char_marks: list[int] = []
        self._byte_marks: list[int] = []
        if not self._is_ascii_only:
            self._build_checkpoints()

    def _build_checkpoints(self) -> None:
        byte_pos = 0
        for char_pos, char in enumerate(self.text):
            if char_pos % self.checkpoint_interval == 0:
                self._char_marks.append(char_pos)
                self._byte_marks.append(byte_pos)
            byte_pos += _utf8_width(char)
        self._char_marks.append(len(self.text))
        self._byte_marks.append(byte_pos)

    def char_to_byte(self, char_pos: int) -> int:
        """Convert a character offset into a UTF-8 byte offset.

        Args:
            char_pos: Offset into ``text``; clamped to the document length.

        Returns:
            Offset of the same position in the UTF-8 encoding of ``text``.
        """
        char_pos = max(0, min(char_pos, len(self.text)))
        if self._is_ascii_only:
            return char_pos

        mark = bisect_right(self._char_marks, char_pos) - 1
        byte_pos = self._byte_marks[mark]
        for i in range(self._char_marks[mark], char_pos):
            byte_pos += _utf8_width(self.text[i])
        return byte_pos

    def byte_to_char(self, byte_pos: int) -> int:
        """Convert a UTF-8 byte offset back into a character offset.

        A byte offset that falls inside a multi-byte sequence maps to the
        character that sequence encodes.
        """
        if self._is_ascii_only:
            return max(0, min(byte_pos, len(self.text)))

        mark = bisect_right(self._byte_marks, byte_pos) - 1
        if mark < 0:
            return 0
        char_pos = self._char_marks[mark]
        current = self._byte_marks[mark]
        while char_pos < len(self.text):
            width = _utf8_width(self.text[char_pos])
            if current + width > byte_pos:
                break
            current += width
            char_pos += 1
        return char_pos
