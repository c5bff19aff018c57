"""
Reader for the diary markup: a small S-expression dialect.

    expr       := tuple | string | codestring | integer | literal
    tuple      := '(' expr* ')'
    string     := '"' ... '"'      escapes: \\\\ and \\"
    codestring := '`' ... '`'      escapes: \\\\ and \\`
    integer    := digit+           unsigned 32-bit, wraps on overflow
    literal    := alpha alnum*

The reader pulls one byte at a time from a binary stream with a single byte
of lookahead. It never reads past the end of the top-level expression.
"""
import io
from collections import namedtuple
from dataclasses import dataclass
from typing import BinaryIO, Optional, Union

from .errors import (
    InvalidUtf8,
    IOFailure,
    NestingTooDeep,
    UnexpectedCharacter,
    UnexpectedEndOfInput,
)

WHITESPACE = frozenset(b" \t\n\x0c\r")
DIGITS = frozenset(b"0123456789")
LETTERS = frozenset(b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")
ALNUM = DIGITS | LETTERS
DIGITS_BASE = ord("0")

OPEN_PAREN = ord("(")
CLOSE_PAREN = ord(")")
QUOTE = ord('"')
BACKQUOTE = ord("`")
BACKSLASH = ord("\\")

INTEGER_MASK = 0xFFFFFFFF


# -----------------------
# Expression tree
# -----------------------

@dataclass(frozen=True)
class Tuple:
    items: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class Literal:
    value: str


@dataclass(frozen=True)
class String:
    value: str


@dataclass(frozen=True)
class CodeString:
    value: str


@dataclass(frozen=True)
class Integer:
    value: int


Expression = Union[Tuple, Literal, String, CodeString, Integer]

# What the reader hands back when it meets a byte that starts no expression,
# e.g. the ')' closing the tuple being read.
_Terminator = namedtuple("_Terminator", "byte")


# -----------------------
# Byte source
# -----------------------

class ByteCursor:
    """Current byte of a binary stream, or None once the stream is exhausted."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._current = None
        self.advance()

    def current(self) -> Optional[int]:
        return self._current

    def advance(self):
        try:
            chunk = self._stream.read(1)
        except OSError as exc:
            raise IOFailure(exc) from exc
        self._current = chunk[0] if chunk else None


# -----------------------
# Reader
# -----------------------

class ExpressionReader:
    def __init__(self, cursor: ByteCursor):
        self.cursor = cursor

    def read_expression(self) -> Expression:
        """
        Read one complete expression.

        Raises UnexpectedEndOfInput when the source runs out before the
        expression is complete, UnexpectedCharacter for a byte the grammar
        does not allow, and InvalidUtf8 for a string that is not UTF-8.
        """
        node = self._read_node()
        if isinstance(node, _Terminator):
            raise UnexpectedCharacter(node.byte)
        return node

    def _read_node(self):
        byte = self._skip_whitespace()
        self.cursor.advance()

        if byte == OPEN_PAREN:
            return self._read_tuple()
        if byte == QUOTE:
            return String(self._read_quoted(QUOTE))
        if byte == BACKQUOTE:
            return CodeString(self._read_quoted(BACKQUOTE))
        if byte in DIGITS:
            return self._read_integer(byte)
        if byte in LETTERS:
            return self._read_literal(byte)
        return _Terminator(byte)

    def _read_tuple(self) -> Tuple:
        items = []
        while True:
            node = self._read_node()
            if isinstance(node, _Terminator):
                if node.byte != CLOSE_PAREN:
                    raise UnexpectedCharacter(node.byte)
                return Tuple(items)
            items.append(node)

    def _read_quoted(self, terminator: int) -> str:
        buf = bytearray()
        while True:
            byte = self.cursor.current()
            if byte is None:
                raise UnexpectedEndOfInput()
            self.cursor.advance()

            if byte == BACKSLASH:
                escaped = self.cursor.current()
                if escaped is None:
                    raise UnexpectedEndOfInput()
                if escaped not in (BACKSLASH, terminator):
                    raise UnexpectedCharacter(escaped)
                buf.append(escaped)
                self.cursor.advance()
            elif byte == terminator:
                return _decode(buf)
            else:
                buf.append(byte)

    def _read_integer(self, initial: int) -> Integer:
        result = initial - DIGITS_BASE
        while True:
            byte = self.cursor.current()
            if byte is None or byte not in DIGITS:
                return Integer(result)
            self.cursor.advance()
            result = (result * 10 + byte - DIGITS_BASE) & INTEGER_MASK

    def _read_literal(self, initial: int) -> Literal:
        buf = bytearray([initial])
        while True:
            byte = self.cursor.current()
            if byte is None or byte not in ALNUM:
                return Literal(_decode(buf))
            buf.append(byte)
            self.cursor.advance()

    def _skip_whitespace(self) -> int:
        while True:
            byte = self.cursor.current()
            if byte is None:
                raise UnexpectedEndOfInput()
            if byte not in WHITESPACE:
                return byte
            self.cursor.advance()


def _decode(buf: bytearray) -> str:
    try:
        return bytes(buf).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidUtf8(exc) from exc


def parse(source) -> Optional[Expression]:
    """
    Read a single expression from `source`.

    `source` may be bytes, a str (encoded as UTF-8) or a binary stream.
    Returns None when the source is completely empty. Nesting deeper than
    the interpreter stack raises NestingTooDeep.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    cursor = ByteCursor(source)
    if cursor.current() is None:
        return None
    try:
        return ExpressionReader(cursor).read_expression()
    except RecursionError as exc:
        raise NestingTooDeep() from exc


# -----------------------
# Writer
# -----------------------

def _quote(value: str, terminator: str) -> str:
    escaped = value.replace("\\", "\\\\").replace(terminator, "\\" + terminator)
    return f"{terminator}{escaped}{terminator}"


def serialize(expr: Expression) -> str:
    """Write `expr` back out in the markup syntax; parse() reads it back."""
    if isinstance(expr, Tuple):
        return "(" + " ".join(serialize(e) for e in expr.items) + ")"
    if isinstance(expr, String):
        return _quote(expr.value, '"')
    if isinstance(expr, CodeString):
        return _quote(expr.value, "`")
    if isinstance(expr, Integer):
        return str(expr.value)
    if isinstance(expr, Literal):
        return expr.value
    raise TypeError(f"not an expression: {expr!r}")
