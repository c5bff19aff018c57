"""
Album index: which records each artist put out, optionally linked to the
diary day they were written about.

    (
      (artist "Boards of Canada"
        (studio "Music Has the Right to Children" (1998 4 20) (2023 5 2))
        (compilation "Twoism" (2002 11 25)))
    )

The album kinds are studio, livealbum, studioandlive, compilation and concert.
"""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from .application import Operands, dispatch
from .errors import IllegalElement
from .sexp import Integer, String, Tuple, parse


class AlbumKind(Enum):
    STUDIO = "studio"
    LIVE_ALBUM = "livealbum"
    STUDIO_AND_LIVE = "studioandlive"
    COMPILATION = "compilation"
    CONCERT = "concert"


# Display order and section titles on the albums page
KIND_TITLES = {
    AlbumKind.STUDIO: "Studio albums",
    AlbumKind.LIVE_ALBUM: "Live albums",
    AlbumKind.STUDIO_AND_LIVE: "Studio and live album",
    AlbumKind.COMPILATION: "Compilations",
    AlbumKind.CONCERT: "Concerts",
}


@dataclass
class Album:
    name: str
    published_at: date
    diary: Optional[date] = None


class AlbumList:
    """Albums of one artist, bucketed by kind."""

    def __init__(self):
        self._albums: Dict[AlbumKind, List[Album]] = {kind: [] for kind in AlbumKind}

    def __len__(self):
        return sum(len(albums) for albums in self._albums.values())

    def add(self, kind: AlbumKind, album: Album):
        self._albums[kind].append(album)

    def get(self, kind: AlbumKind) -> List[Album]:
        return self._albums[kind]

    def sort(self):
        for albums in self._albums.values():
            albums.sort(key=lambda a: a.published_at)


@dataclass
class Artist:
    name: str
    albums: AlbumList = field(default_factory=AlbumList)


@dataclass
class AlbumIndex:
    artists: List[Artist]


def resolve_albums(root) -> AlbumIndex:
    """
    Build the album index from the root tuple of an albums file.

    Artists are ordered by number of albums (most first), then by name.
    """
    if not isinstance(root, Tuple):
        raise IllegalElement(
            f"album index root must be a tuple, got {type(root).__name__}", root
        )

    artists = [_resolve_artist(expr) for expr in root.items]
    artists.sort(key=lambda a: (-len(a.albums), a.name))
    return AlbumIndex(artists)


def load_albums(source) -> AlbumIndex:
    root = parse(source)
    if root is None:
        return AlbumIndex([])
    return resolve_albums(root)


def _resolve_artist(expr) -> Artist:
    if not isinstance(expr, Tuple):
        raise IllegalElement(f"artist must be a tuple, got {type(expr).__name__}", expr)
    return dispatch(expr.items, {"artist": _artist})


def _artist(operands: Operands) -> Artist:
    artist = Artist(operands.take(String))
    for expr in operands:
        if not isinstance(expr, Tuple):
            raise IllegalElement(
                f"album must be a tuple, got {type(expr).__name__}", expr
            )
        kind, album = dispatch(expr.items, ALBUM_KINDS)
        artist.albums.add(kind, album)
    artist.albums.sort()
    return artist


def _album_handler(kind: AlbumKind):
    def handle(operands: Operands):
        name = operands.take(String)
        published_at = _to_date(operands.take(Tuple))
        diary = operands.take_optional(Tuple)
        operands.finish()
        return kind, Album(name, published_at, _to_date(diary) if diary is not None else None)

    return handle


ALBUM_KINDS = {kind.value: _album_handler(kind) for kind in AlbumKind}


def _to_date(items) -> date:
    operands = Operands(items, "date")
    year = operands.take(Integer)
    month = operands.take(Integer)
    day = operands.take(Integer)
    operands.finish()
    try:
        return date(year, month, day)
    except (ValueError, OverflowError) as exc:
        raise IllegalElement(f"invalid date {year}/{month}/{day}: {exc}") from exc
