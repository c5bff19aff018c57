"""
Exceptions raised while reading and resolving diary markup.

Everything derives from ParseError so the build driver can isolate a broken
entry file with a single except clause:

    ParseError
      ReadError              character level (natukage.sexp)
        IOFailure
        InvalidUtf8
        UnexpectedEndOfInput
        UnexpectedCharacter
      ResolveError           expression level (natukage.application and up)
        IllegalElement
          OperatorNotLiteral
        MissingOperator
        UnknownOperator
        OperandCountMismatch
      NestingTooDeep         either level, when recursion runs out
"""


class ParseError(Exception):
    """Base class for every failure of the diary reader and resolvers."""


class ReadError(ParseError):
    pass


class IOFailure(ReadError):
    """The underlying byte source failed; wraps the original OSError."""

    def __init__(self, cause: OSError):
        super().__init__(f"read failed: {cause}")
        self.cause = cause


class InvalidUtf8(ReadError):
    def __init__(self, cause: UnicodeDecodeError):
        super().__init__(f"invalid UTF-8 in string: {cause.reason} at byte {cause.start}")
        self.cause = cause


class UnexpectedEndOfInput(ReadError):
    def __init__(self):
        super().__init__("unexpected end of input")


class UnexpectedCharacter(ReadError):
    def __init__(self, byte: int):
        super().__init__(f"unexpected character {chr(byte)!r} (0x{byte:02x})")
        self.byte = byte


class ResolveError(ParseError):
    pass


class IllegalElement(ResolveError):
    """An expression of the wrong kind where the grammar wants another one."""

    def __init__(self, message: str, element=None):
        super().__init__(message)
        self.element = element


class OperatorNotLiteral(IllegalElement):
    def __init__(self, element):
        super().__init__(f"operator must be a literal, got {type(element).__name__}", element)


class MissingOperator(ResolveError):
    def __init__(self):
        super().__init__("empty tuple where an operator was expected")


class UnknownOperator(ResolveError):
    def __init__(self, name: str):
        super().__init__(f"unknown operator {name!r}")
        self.name = name


class OperandCountMismatch(ResolveError):
    def __init__(self, message: str = "wrong number of operands"):
        super().__init__(message)


class NestingTooDeep(ParseError):
    """Tuples or lists nested deeper than the interpreter stack allows."""

    def __init__(self):
        super().__init__("expressions nested too deeply")
