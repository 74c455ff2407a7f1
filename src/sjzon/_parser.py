"""
Recursive descent parser for relaxed JSON.

On top of JSON the grammar accepts:

- no ``{}`` around the whole document (an implicit top-level object);
- ``=`` instead of ``:`` between a member name and its value;
- bare identifiers as member names;
- optional ``,`` between elements and members;
- ``//`` and ``/* */`` comments wherever whitespace is allowed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import NoReturn

from sjzon._alloc import Allocator
from sjzon._errors import AllocationError
from sjzon._errors import JSONDecodeError
from sjzon._keys import NameHasher
from sjzon._node import Handle
from sjzon._node import Kind
from sjzon._profile import ProfileContext
from sjzon._scanner import Scanner
from sjzon._tree import Document

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_STRING_CHUNK = re.compile(r'([^"\\]*)(["\\])', re.DOTALL)
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# Exponents beyond this already overflow to inf or underflow to 0.0.
_EXPONENT_CAP = 100_000

_ESCAPES = {
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_LITERALS = {
    "n": ("null", Kind.NULL),
    "f": ("false", Kind.FALSE),
    "t": ("true", Kind.TRUE),
}

# Containers opened inside one another, counting the outermost.
DEFAULT_MAX_DEPTH = 128

_last_error_position: int | None = None


def get_error_position() -> int | None:
    """
    UTF-8 byte offset of the failure in the most recent parse.

    None when the most recent parse succeeded or nothing was parsed yet.
    """
    return _last_error_position


@dataclass(frozen=True)
class ParseConfig:
    """
    Configures parsing with immutable settings.

    ``keep_names`` retains member names next to their hashes (needed to
    serialize objects again), ``hasher`` replaces the CRC-32 member hash and
    ``allocator`` backs every node and string the parse creates and
    ``max_depth`` bounds how deeply arrays and objects may nest.
    """

    keep_names: bool = True
    hasher: NameHasher | None = None
    allocator: Allocator | None = None
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        if not isinstance(self.keep_names, bool):
            raise TypeError("keep_names must be a boolean")
        if self.hasher is not None and not callable(self.hasher):
            raise TypeError("hasher must be callable")
        if self.allocator is not None and not isinstance(
            self.allocator, Allocator
        ):
            raise TypeError("allocator must implement the Allocator protocol")
        if not isinstance(self.max_depth, int) or isinstance(
            self.max_depth, bool
        ):
            raise TypeError("max_depth must be an integer")
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")


class Parser:
    """
    Builds a value tree inside ``document`` from the scanner's text.

    Each routine starts with the scanner on the first significant character
    of its construct and returns the handle of the node it built.
    """

    def __init__(
        self,
        scanner: Scanner,
        document: Document,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.scanner = scanner
        self.document = document
        self.max_depth = max_depth
        self.depth = 0
        self._dispatch: dict[str, Callable[[], Handle]] = {
            "n": self._parse_literal,
            "f": self._parse_literal,
            "t": self._parse_literal,
            "-": self._parse_number,
            "[": self._parse_array,
            "{": self._parse_object,
            '"': self._parse_string_value,
        }
        for digit in "0123456789":
            self._dispatch[digit] = self._parse_number

    def fail(self, msg: str, pos: int | None = None) -> NoReturn:
        raise JSONDecodeError(
            msg, self.scanner.text, self.scanner.pos if pos is None else pos
        )

    def parse_document(self) -> Handle:
        """Parses the whole input; braces around the top level are optional."""
        scanner = self.scanner
        scanner.skip()
        if scanner.peek() in ("{", "["):
            root = self.parse_value()
        else:
            root = self._parse_members(implicit=True)

        scanner.skip()
        if not scanner.at_end():
            self.fail("Extra data")
        return root

    def parse_value(self) -> Handle:
        """Parses any value based on the next significant character."""
        char = self.scanner.peek()
        routine = self._dispatch.get(char)
        if routine is None:
            self.fail("Expecting value")
        if char not in ("[", "{"):
            return routine()

        if self.depth >= self.max_depth:
            self.fail("Exceeds maximum nesting depth")
        self.depth += 1
        handle = routine()
        self.depth -= 1
        return handle

    def _parse_literal(self) -> Handle:
        literal, kind = _LITERALS[self.scanner.peek()]
        if not self.scanner.startswith(literal):
            self.fail("Expecting value")
        handle = self.document._new_node(kind)
        self.scanner.advance(len(literal))
        return handle

    def _parse_number(self) -> Handle:
        """
        Scans ``-? digits (. digits)? ([eE] [+-]? digits)?``.

        Leading zeros are folded like any other digit and an exponent
        marker without digits counts as exponent zero.
        """
        with ProfileContext("parse_number"):
            text = self.scanner.text
            length = self.scanner.length
            start = pos = self.scanner.pos

            negative = text[pos] == "-"
            if negative:
                pos += 1

            int_start = pos
            while pos < length and "0" <= text[pos] <= "9":
                pos += 1
            digits = text[int_start:pos]

            scale = 0
            if pos < length and text[pos] == ".":
                pos += 1
                frac_start = pos
                while pos < length and "0" <= text[pos] <= "9":
                    pos += 1
                digits += text[frac_start:pos]
                scale = frac_start - pos

            if not digits:
                self.fail("Invalid number", start)

            exponent = 0
            if pos < length and text[pos] in "eE":
                pos += 1
                exp_sign = 1
                if pos < length and text[pos] in "+-":
                    exp_sign = -1 if text[pos] == "-" else 1
                    pos += 1
                while pos < length and "0" <= text[pos] <= "9":
                    exponent = min(
                        exponent * 10 + ord(text[pos]) - 48, _EXPONENT_CAP
                    )
                    pos += 1
                exponent *= exp_sign

            # mantissa * 10^(scale + exponent), correctly rounded
            value = float(f"{digits}e{scale + exponent}")
            if negative:
                value = -value

            handle = self.document._new_node(Kind.NUMBER)
            self.document._set_number(self.document.node(handle), value)
            self.scanner.pos = pos
            return handle

    def _parse_string_value(self) -> Handle:
        handle = self.document._new_node(Kind.STRING)
        text = self._parse_string()
        self.document._set_text(self.document.node(handle), text)
        return handle

    def _parse_string(self) -> str:
        """
        Decodes a quoted string starting at the opening quote.

        ``\\uXXXX`` maps one UTF-16 code unit to one character; surrogate
        pairs are not combined. Unknown escapes yield the escaped character.
        """
        with ProfileContext("parse_string"):
            text = self.scanner.text
            start = self.scanner.pos
            pos = start + 1
            chunks: list[str] = []

            while True:
                match = _STRING_CHUNK.match(text, pos)
                if match is None:
                    self.fail("Unterminated string starting at", start)
                chunk, terminator = match.groups()
                chunks.append(chunk)
                pos = match.end()
                if terminator == '"':
                    break

                if pos >= len(text):
                    self.fail("Unterminated string starting at", start)
                escaped = text[pos]
                if escaped == "u":
                    hex_digits = text[pos + 1 : pos + 5]
                    if len(hex_digits) != 4 or not _HEX_DIGITS.issuperset(
                        hex_digits
                    ):
                        self.fail("Invalid \\uXXXX escape", pos - 1)
                    chunks.append(chr(int(hex_digits, 16)))
                    pos += 5
                else:
                    chunks.append(_ESCAPES.get(escaped, escaped))
                    pos += 1

            self.scanner.pos = pos
            return "".join(chunks)

    def _parse_name(self) -> str:
        """Member name: a quoted string or a bare identifier."""
        scanner = self.scanner
        if scanner.peek() == '"':
            return self._parse_string()

        match = _IDENTIFIER.match(scanner.text, scanner.pos)
        if match is None:
            self.fail("Expecting property name")
        scanner.pos = match.end()
        return match.group()

    def _parse_array(self) -> Handle:
        """Parses an array; commas between elements are optional."""
        with ProfileContext("parse_array"):
            scanner = self.scanner
            document = self.document
            array = document._new_node(Kind.ARRAY)
            scanner.advance()
            scanner.skip()
            if scanner.peek() == "]":
                scanner.advance()
                return array

            document._adopt(array, self.parse_value())
            while True:
                scanner.skip()
                char = scanner.peek()
                if char == "]":
                    scanner.advance()
                    return array
                if not char:
                    self.fail("Expecting ']' delimiter")
                if char == ",":
                    scanner.advance()
                    scanner.skip()
                    if scanner.peek() == "]":
                        self.fail("Illegal trailing comma before end of array")
                document._adopt(array, self.parse_value())

    def _parse_object(self) -> Handle:
        with ProfileContext("parse_object"):
            self.scanner.advance()
            self.scanner.skip()
            return self._parse_members(implicit=False)

    def _parse_members(self, implicit: bool) -> Handle:
        """
        Parses object members up to ``}``.

        In implicit mode (top level without braces) the end of the input
        also terminates the object.
        """
        scanner = self.scanner
        obj = self.document._new_node(Kind.OBJECT)
        if scanner.peek() == "}":
            scanner.advance()
            return obj

        while True:
            self._parse_member(obj)
            scanner.skip()
            char = scanner.peek()
            if char == "}":
                scanner.advance()
                return obj
            if not char:
                if implicit:
                    return obj
                self.fail("Expecting '}' delimiter")
            if char == ",":
                scanner.advance()
                scanner.skip()
                if scanner.peek() == "}" or (implicit and scanner.at_end()):
                    self.fail("Illegal trailing comma before end of object")

    def _parse_member(self, obj: Handle) -> None:
        scanner = self.scanner
        name = self._parse_name()
        scanner.skip()
        if scanner.peek() not in (":", "="):
            self.fail("Expecting ':' or '=' delimiter")
        scanner.advance()
        scanner.skip()
        value = self.parse_value()
        self.document._set_name(self.document.node(value), name)
        self.document._adopt(obj, value)


def parse_document(text: str, config: ParseConfig) -> Document:
    """
    Parses ``text`` into a new Document.

    On failure the partially built document is released, the failure
    position is recorded for ``get_error_position`` and JSONDecodeError is
    raised. Allocator exhaustion surfaces as an "Out of memory" failure and
    running out of interpreter stack as a nesting depth failure.
    """
    global _last_error_position
    _last_error_position = None

    with ProfileContext("parse_document", len(text)):
        document = Document(config.allocator, config.hasher, config.keep_names)
        parser = Parser(Scanner(text), document, config.max_depth)
        try:
            if text.startswith("\ufeff"):
                parser.fail("Input should not contain BOM (Byte Order Mark)")
            document.root = parser.parse_document()
        except JSONDecodeError as exc:
            _last_error_position = exc.byte_pos
            logger.debug("Parse failed: %s", exc)
            document.close()
            raise
        except AllocationError as exc:
            error = JSONDecodeError("Out of memory", text, parser.scanner.pos)
            _last_error_position = error.byte_pos
            logger.debug("Allocator exhausted: %s (%s)", error, exc)
            document.close()
            raise error from exc
        except RecursionError as exc:
            error = JSONDecodeError(
                "Exceeds maximum nesting depth", text, parser.scanner.pos
            )
            _last_error_position = error.byte_pos
            logger.debug("Stack exhausted: %s", error)
            document.close()
            raise error from exc

    return document
