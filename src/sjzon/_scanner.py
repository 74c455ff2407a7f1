"""
Cursor over relaxed JSON text.

Whitespace, control characters, ``//`` line comments and non-nesting
``/* */`` block comments are all skippable wherever whitespace is.
"""

from __future__ import annotations

from sjzon._profile import ProfileContext

_SPACE_LIMIT = 0x20


class Scanner:
    """
    Tracks the parse position and provides lookahead.

    ``skip`` never fails: an unterminated block comment simply runs to the
    end of the input and the caller's next expectation reports the error.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.length = len(text)

    def at_end(self) -> bool:
        return self.pos >= self.length

    def peek(self) -> str:
        """Returns current character without advancing, '' at end."""
        return self.text[self.pos] if self.pos < self.length else ""

    def advance(self, count: int = 1) -> None:
        self.pos = min(self.pos + count, self.length)

    def startswith(self, literal: str) -> bool:
        return self.text.startswith(literal, self.pos)

    def skip(self) -> None:
        """Skips whitespace, control bytes and comments."""
        with ProfileContext("skip"):
            text = self.text
            while True:
                pos = self.pos
                while pos < self.length and ord(text[pos]) <= _SPACE_LIMIT:
                    pos += 1
                self.pos = pos
                if text.startswith("//", self.pos):
                    self._skip_line_comment()
                elif text.startswith("/*", self.pos):
                    self._skip_block_comment()
                else:
                    return

    def _skip_line_comment(self) -> None:
        pos = self.pos + 2
        while pos < self.length and self.text[pos] not in "\r\n":
            pos += 1
        self.pos = pos

    def _skip_block_comment(self) -> None:
        end = self.text.find("*/", self.pos + 2)
        self.pos = self.length if end < 0 else end + 2
