"""
Reader Tests
============

Character-level parsing of the diary markup into expression trees.
"""

import io

import pytest

from natukage.errors import (
    IOFailure,
    InvalidUtf8,
    NestingTooDeep,
    UnexpectedCharacter,
    UnexpectedEndOfInput,
)
from natukage.sexp import (
    ByteCursor,
    CodeString,
    ExpressionReader,
    Integer,
    Literal,
    String,
    Tuple,
    parse,
    serialize,
)


class FailingStream:
    def __init__(self, data: bytes):
        self._data = io.BytesIO(data)

    def read(self, n):
        chunk = self._data.read(n)
        if not chunk:
            raise OSError("disk on fire")
        return chunk


class TestByteCursor:

    def test_primed_with_first_byte(self):
        cursor = ByteCursor(io.BytesIO(b"ab"))
        assert cursor.current() == ord("a")
        cursor.advance()
        assert cursor.current() == ord("b")
        cursor.advance()
        assert cursor.current() is None

    def test_empty_source_has_no_current_byte(self):
        assert ByteCursor(io.BytesIO(b"")).current() is None

    def test_read_error_becomes_io_failure(self):
        cursor = ByteCursor(FailingStream(b"x"))
        with pytest.raises(IOFailure) as excinfo:
            cursor.advance()
        assert isinstance(excinfo.value.cause, OSError)


class TestAtoms:

    def test_empty_tuple(self):
        assert parse("()") == Tuple([])

    def test_string_with_structural_characters(self):
        """Nothing inside quotes is structural, parentheses included."""
        assert parse('"TestString1234567890!@#$%^&*()_+|~"') == String(
            "TestString1234567890!@#$%^&*()_+|~"
        )

    def test_code_string(self):
        assert parse("`backquoted`") == CodeString("backquoted")

    def test_integer(self):
        assert parse("1234567890") == Integer(1234567890)

    def test_literal(self):
        assert parse("literal") == Literal("literal")

    def test_literal_with_digits(self):
        assert parse("h1 ") == Literal("h1")

    def test_leading_whitespace_is_skipped(self):
        assert parse(" \t\r\n\x0c42") == Integer(42)

    def test_string_escapes(self):
        assert parse(r'"a \"quoted\" back\\slash"') == String('a "quoted" back\\slash')

    def test_code_string_escapes(self):
        assert parse(r"`tick \` and \\`") == CodeString("tick ` and \\")

    def test_quote_inside_code_string_is_plain(self):
        assert parse('`say "hi"`') == CodeString('say "hi"')

    def test_utf8_string(self):
        assert parse('"日記"'.encode("utf-8")) == String("日記")

    def test_integer_overflow_wraps(self):
        assert parse("4294967296") == Integer(0)
        assert parse("4294967297") == Integer(1)

    def test_integer_needs_no_terminator(self):
        assert parse("(12ab)") == Tuple([Integer(12), Literal("ab")])

    def test_literal_stops_at_non_alphanumeric(self):
        assert parse('(h"x")') == Tuple([Literal("h"), String("x")])


class TestTuples:

    def test_nested_tuple(self):
        assert parse('(txt "a" (b "bold") 7)') == Tuple(
            [Literal("txt"), String("a"), Tuple([Literal("b"), String("bold")]), Integer(7)]
        )

    def test_deep_nesting(self):
        depth = 40
        expr = parse("(" * depth + ")" * depth)

        for _ in range(depth - 1):
            assert isinstance(expr, Tuple)
            assert len(expr.items) == 1
            expr = expr.items[0]
        assert expr == Tuple([])

    def test_runaway_nesting(self):
        depth = 5000
        with pytest.raises(NestingTooDeep):
            parse("(" * depth + ")" * depth)

    def test_trailing_input_is_not_read(self):
        assert parse("(a) garbage ]") == Tuple([Literal("a")])


class TestErrors:

    def test_empty_source(self):
        assert parse(b"") is None

    def test_whitespace_only(self):
        with pytest.raises(UnexpectedEndOfInput):
            parse("   ")

    def test_unclosed_tuple(self):
        with pytest.raises(UnexpectedEndOfInput):
            parse("(a (b)")

    def test_unclosed_string(self):
        with pytest.raises(UnexpectedEndOfInput):
            parse('"never ends')

    def test_escape_at_end_of_input(self):
        with pytest.raises(UnexpectedEndOfInput):
            parse('"abc\\')

    def test_unknown_escape(self):
        with pytest.raises(UnexpectedCharacter) as excinfo:
            parse(r'"\n"')
        assert excinfo.value.byte == ord("n")

    def test_backtick_escape_not_allowed_in_string(self):
        with pytest.raises(UnexpectedCharacter):
            parse(r'"\`"')

    def test_wrong_tuple_terminator(self):
        with pytest.raises(UnexpectedCharacter) as excinfo:
            parse("(a ]")
        assert excinfo.value.byte == ord("]")

    def test_bare_close_paren_at_top_level(self):
        with pytest.raises(UnexpectedCharacter) as excinfo:
            parse(")")
        assert excinfo.value.byte == ord(")")

    def test_invalid_utf8(self):
        with pytest.raises(InvalidUtf8):
            parse(b'"\xff\xfe"')

    def test_io_failure_mid_expression(self):
        with pytest.raises(IOFailure):
            parse(FailingStream(b"(a "))


def nested(depth):
    tree = Tuple([])
    for _ in range(depth):
        tree = Tuple([tree])
    return tree


ROUND_TRIP_TREES = {
    "mixed": Tuple(
        [
            Literal("txt"),
            String('with "quotes" and \\'),
            CodeString("x = `y`"),
            Tuple([Literal("p"), Integer(2023), Integer(4), Integer(1)]),
            Tuple([]),
        ]
    ),
    "empty_root": Tuple([]),
    "deep": nested(50),
    "integer_bounds": Tuple([Integer(0), Integer(4294967295)]),
    "tuple_head": Tuple([Tuple([Literal("a")]), Literal("b"), Tuple([Integer(7), Literal("c")])]),
    "adjacent_atoms": Tuple([Literal("h1"), Integer(12), Literal("ab"), String(""), CodeString("")]),
}


class TestSerialize:

    @pytest.mark.parametrize("tree", list(ROUND_TRIP_TREES.values()), ids=list(ROUND_TRIP_TREES))
    def test_round_trip(self, tree):
        assert parse(serialize(tree)) == tree

    def test_reader_over_stream(self):
        reader = ExpressionReader(ByteCursor(io.BytesIO(b"(a 1)")))
        assert reader.read_expression() == Tuple([Literal("a"), Integer(1)])
