"""
Operator/operand view over a tuple, shared by the diary and album resolvers.

A tuple like (a "title" "http://...") is an application: the head literal is
the operator keyword and the rest are operands, consumed left to right.
"""
from typing import Callable, Dict, Sequence

from .errors import (
    IllegalElement,
    MissingOperator,
    OperandCountMismatch,
    OperatorNotLiteral,
    UnknownOperator,
)
from .sexp import Literal, Tuple


class Operands:
    """Forward-only cursor over the operands of an application."""

    def __init__(self, items: Sequence, operator: str = ""):
        self._items = tuple(items)
        self._index = 0
        self.operator = operator

    def __iter__(self):
        return self

    def __next__(self):
        if self._index >= len(self._items):
            raise StopIteration
        item = self._items[self._index]
        self._index += 1
        return item

    def remaining(self) -> int:
        return len(self._items) - self._index

    def take(self, kind):
        """
        Consume the next operand, which must be an instance of `kind`.

        Returns the payload: `.items` for a Tuple, `.value` otherwise.
        """
        if not self.remaining():
            raise OperandCountMismatch(
                f"{self.operator or 'tuple'}: missing {kind.__name__} operand"
            )
        return self._unwrap(next(self), kind)

    def take_optional(self, kind):
        if not self.remaining():
            return None
        return self._unwrap(next(self), kind)

    def finish(self):
        if self.remaining():
            raise OperandCountMismatch(
                f"{self.operator or 'tuple'}: {self.remaining()} extra operand(s)"
            )

    def _unwrap(self, operand, kind):
        if not isinstance(operand, kind):
            raise IllegalElement(
                f"{self.operator or 'tuple'}: expected {kind.__name__}, "
                f"got {type(operand).__name__}",
                operand,
            )
        if isinstance(operand, Tuple):
            return operand.items
        return operand.value


class Application:
    def __init__(self, items: Sequence):
        self._items = tuple(items)

    def resolve(self):
        """Return (operator, Operands); the tuple must start with a literal."""
        if not self._items:
            raise MissingOperator()
        head = self._items[0]
        if not isinstance(head, Literal):
            raise OperatorNotLiteral(head)
        return head.value, Operands(self._items[1:], head.value)


def dispatch(items: Sequence, handlers: Dict[str, Callable]):
    """Call the handler registered for the tuple's operator with its operands."""
    operator, operands = Application(items).resolve()
    handler = handlers.get(operator)
    if handler is None:
        raise UnknownOperator(operator)
    return handler(operands)
