"""
Document model of a diary entry and the resolver that builds it.

An entry file holds a single tuple of items:

    (
      (h "Morning")
      "A plain paragraph."
      (txt "See " (a "the docs" "https://example.com") " and " (p 2023 4 1))
      (li "first" (txt (b "second")) (li "nested"))
      (img "Lunch" ("ramen.webp" "Shoyu ramen") ("gyoza.webp"))
    )

resolve() turns the parsed tuple into a Document[str] where image entries
carry the raw file name; Document.map_images() swaps those for resolved
assets without touching the source document.
"""
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

from .application import Operands, dispatch
from .errors import IllegalElement, NestingTooDeep
from .sexp import CodeString, Expression, Integer, String, Tuple, parse

T = TypeVar("T")
U = TypeVar("U")


# -----------------------
# Text spans
# -----------------------

@dataclass(frozen=True)
class Raw:
    text: str


@dataclass(frozen=True)
class Bold:
    text: str


@dataclass(frozen=True)
class Code:
    text: str


@dataclass(frozen=True)
class WebLink:
    title: str
    href: str


@dataclass(frozen=True)
class PostRef:
    """Link to the entry of another day."""

    year: int
    month: int
    day: int


TextSpan = Union[Raw, Bold, Code, WebLink, PostRef]


# -----------------------
# Items
# -----------------------

@dataclass(frozen=True)
class Header:
    text: str


@dataclass(frozen=True)
class Text:
    spans: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "spans", tuple(self.spans))


@dataclass(frozen=True)
class List(Generic[T]):
    items: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class ImageEntry(Generic[T]):
    data: T
    caption: Optional[str] = None


@dataclass(frozen=True)
class Images(Generic[T]):
    title: str
    entries: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple(self.entries))


Item = Union[Header, Text, List, Images]


@dataclass(frozen=True)
class Document(Generic[T]):
    items: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))

    def map_images(self, fn: Callable[[T], U]) -> "Document[U]":
        """Return a copy with every image payload replaced by fn(payload)."""
        return Document(tuple(_map_item(item, fn) for item in self.items))


def _map_item(item, fn):
    if isinstance(item, List):
        return List(tuple(_map_item(child, fn) for child in item.items))
    if isinstance(item, Images):
        return Images(
            item.title,
            tuple(ImageEntry(fn(entry.data), entry.caption) for entry in item.entries),
        )
    return item


# -----------------------
# Resolver
# -----------------------

def resolve(root: Expression) -> Document[str]:
    """
    Build a Document from the root expression of an entry file.

    Fails with IllegalElement, MissingOperator, UnknownOperator or
    OperandCountMismatch; a document is either complete or not returned.
    Lists nested deeper than the interpreter stack raise NestingTooDeep.
    """
    if not isinstance(root, Tuple):
        raise IllegalElement(
            f"document root must be a tuple, got {type(root).__name__}", root
        )
    try:
        return Document(tuple(_resolve_item(expr, TOP_LEVEL_ITEMS) for expr in root.items))
    except RecursionError as exc:
        raise NestingTooDeep() from exc


def load_document(source) -> Document[str]:
    """Parse and resolve an entry; an empty source is an empty document."""
    root = parse(source)
    if root is None:
        return Document()
    return resolve(root)


def _resolve_item(expr: Expression, handlers):
    if isinstance(expr, String):
        return Text((Raw(expr.value),))
    if isinstance(expr, CodeString):
        return Text((Code(expr.value),))
    if isinstance(expr, Tuple):
        return dispatch(expr.items, handlers)
    raise IllegalElement(f"unexpected {type(expr).__name__} where an item belongs", expr)


def _header(operands: Operands) -> Header:
    text = operands.take(String)
    operands.finish()
    return Header(text)


def _nested_header(operands: Operands):
    raise IllegalElement("a header cannot appear inside a list")


def _text(operands: Operands) -> Text:
    return Text(tuple(_resolve_span(expr) for expr in operands))


def _list(operands: Operands) -> List[str]:
    return List(tuple(_resolve_item(expr, LIST_ITEMS) for expr in operands))


def _images(operands: Operands) -> Images[str]:
    title = operands.take(String)
    return Images(title, tuple(_resolve_image_entry(expr) for expr in operands))


def _resolve_image_entry(expr: Expression) -> ImageEntry[str]:
    if not isinstance(expr, Tuple):
        raise IllegalElement(
            f"image entry must be a tuple, got {type(expr).__name__}", expr
        )
    operands = Operands(expr.items, "image entry")
    path = operands.take(String)
    caption = operands.take_optional(String)
    operands.finish()
    return ImageEntry(path, caption)


def _resolve_span(expr: Expression) -> TextSpan:
    if isinstance(expr, String):
        return Raw(expr.value)
    if isinstance(expr, CodeString):
        return Code(expr.value)
    if isinstance(expr, Tuple):
        return dispatch(expr.items, TEXT_SPANS)
    raise IllegalElement(f"unexpected {type(expr).__name__} inside text", expr)


def _web_link(operands: Operands) -> WebLink:
    title = operands.take(String)
    href = operands.take(String)
    operands.finish()
    return WebLink(title, href)


def _bold(operands: Operands) -> Bold:
    text = operands.take(String)
    operands.finish()
    return Bold(text)


def _post_ref(operands: Operands) -> PostRef:
    year = operands.take(Integer)
    month = operands.take(Integer)
    day = operands.take(Integer)
    operands.finish()
    return PostRef(year, month, day)


def _code(operands: Operands) -> Code:
    text = operands.take(String)
    operands.finish()
    return Code(text)


TOP_LEVEL_ITEMS = {
    "h": _header,
    "header": _header,
    "txt": _text,
    "text": _text,
    "li": _list,
    "list": _list,
    "img": _images,
    "image": _images,
}

LIST_ITEMS = dict(TOP_LEVEL_ITEMS, h=_nested_header, header=_nested_header)

TEXT_SPANS = {
    "a": _web_link,
    "b": _bold,
    "p": _post_ref,
    "code": _code,
}
