"""Records returned by the API.

All records are frozen; list-valued fields are tuples so a cached record
can be shared between requests. ``to_dict()`` gives the JSON shape, with
every declared field present.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any


def _serialize(value: Any) -> Any:
    if is_dataclass(value):
        return {
            f.name: _serialize(getattr(value, f.name))
            for f in fields(value)
            if f.metadata.get("serialize", True)
        }
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    return value


class Record:
    """Mixin for JSON output."""

    def to_dict(self) -> dict[str, Any]:
        return _serialize(self)


# ---------------------------------------------------------------------------
# Movies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MovieSummary(Record):
    """One movie or TV series from the search result page."""

    cat: str = ""  # category label as shown, e.g. "电影"
    sid: str = ""
    name: str = ""
    rating: str = ""
    img: str = ""
    year: str = ""


@dataclass(frozen=True)
class Celebrity(Record):
    id: str = ""
    img: str = ""
    name: str = ""
    role: str = ""
    # "director" | "voice" | "actor"; filtering only, never emitted
    role_type: str | None = field(default=None, metadata={"serialize": False})


@dataclass(frozen=True)
class MovieDetail(Record):
    sid: str = ""
    name: str = ""
    original_name: str = ""
    rating: str = ""
    img: str = ""
    year: str = ""
    intro: str = ""
    director: str = ""
    writer: str = ""
    actor: str = ""
    genre: str = ""
    site: str = ""
    country: str = ""
    language: str = ""
    screen: str = ""  # release dates
    duration: str = ""
    subname: str = ""  # other titles ("又名")
    imdb: str = ""
    celebrities: tuple[Celebrity, ...] = ()


@dataclass(frozen=True)
class CelebrityDetail(Record):
    id: str = ""
    img: str = ""
    name: str = ""
    role: str = ""
    intro: str = ""
    gender: str = ""
    constellation: str = ""
    birthdate: str = ""
    birthplace: str = ""
    nickname: str = ""
    imdb: str = ""
    family: str = ""


@dataclass(frozen=True)
class Photo(Record):
    """A gallery wallpaper; the three URLs are derived from ``id``."""

    id: str = ""
    small: str = ""
    medium: str = ""
    large: str = ""
    size: str = ""  # "1920x1080"
    width: str = ""
    height: str = ""


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BookImages(Record):
    small: str = ""
    medium: str = ""
    large: str = ""


@dataclass(frozen=True)
class BookRating(Record):
    average: float = 0.0


@dataclass(frozen=True)
class BookTag(Record):
    name: str = ""


@dataclass(frozen=True)
class BookRecord(Record):
    id: str = ""
    author: tuple[str, ...] = ()
    author_intro: str = ""
    translators: tuple[str, ...] = ()
    images: BookImages = BookImages()
    binding: str = ""
    category: str = ""  # not shown anywhere on the book page
    rating: BookRating = BookRating()
    isbn13: str = ""
    pages: str = ""
    price: str = ""
    pubdate: str = ""
    publisher: str = ""
    producer: str = ""
    serials: str = ""
    subtitle: str = ""
    summary: str = ""
    title: str = ""
    tags: tuple[BookTag, ...] = ()
    origin: str = ""  # original-language title


@dataclass(frozen=True)
class BookSearchResult(Record):
    code: int = 0
    msg: str = ""
    books: tuple[BookRecord, ...] = ()
