"""Turn parsed douban pages into records.

:func:`extract` applies a rule table to a scope and :func:`build` fills a
record from the result, leaving every field the page did not provide at
its default. The ``parse_*`` functions add the few things a table cannot
express (splitting the movie title, filtering search categories,
composing book images).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import fields as dataclass_fields
from typing import Any, TypeVar

from doubanmeta.extraction import normalizers as norm
from doubanmeta.extraction import rules
from doubanmeta.extraction.document import Document, NodeSet
from doubanmeta.models import (
    BookImages,
    BookRating,
    BookRecord,
    BookTag,
    Celebrity,
    CelebrityDetail,
    MovieDetail,
    MovieSummary,
    Photo,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

ImageHook = Callable[[str], str]


def extract(
    scope: NodeSet,
    fields: tuple[rules.Field, ...],
    images: ImageHook | None = None,
) -> dict[str, Any]:
    """Read every field of a table from ``scope``."""
    values: dict[str, Any] = {}
    for field in fields:
        value = field.normalize(field.source.extract(scope))
        if field.image and images is not None:
            value = images(value)
        values[field.name] = value
    return values


def build(record_cls: type[R], values: dict[str, Any], **fixed: Any) -> R:
    """Construct ``record_cls`` from the values it declares; the rest stay default."""
    values = {**values, **fixed}
    known = {f.name for f in dataclass_fields(record_cls)}
    return record_cls(**{name: value for name, value in values.items() if name in known})


def assemble(
    record_cls: type[R],
    scope: NodeSet,
    fields: tuple[rules.Field, ...],
    images: ImageHook | None = None,
    **fixed: Any,
) -> R:
    return build(record_cls, extract(scope, fields, images), **fixed)


def items(scope: NodeSet, table: rules.Table) -> Iterator[NodeSet]:
    """Each repeated item of a table as its own scope."""
    container = scope.find(table.block).first() if table.block else scope
    for node in container.find(table.item):
        yield NodeSet([node])


# ---------------------------------------------------------------------------
# Movies
# ---------------------------------------------------------------------------


def parse_movie_search(
    doc: Document, limit: int, images: ImageHook | None = None
) -> list[MovieSummary]:
    """Movies and TV series from a search page, at most ``limit`` of them.

    Other categories are dropped before the limit is applied.
    """
    movies: list[MovieSummary] = []
    for item in items(doc, rules.MOVIE_SEARCH):
        movie = assemble(MovieSummary, item, rules.MOVIE_SEARCH.fields, images)
        if movie.cat not in rules.MOVIE_CATEGORIES:
            continue
        if not movie.sid:
            logger.debug("Skipping search result without subject id: %r", movie.name)
            continue
        movies.append(movie)
        if 0 < limit <= len(movies):
            break
    return movies


def parse_movie_detail(doc: Document, sid: str, images: ImageHook | None = None) -> MovieDetail:
    content = doc.anchor("#content")
    values = extract(content, rules.MOVIE_DETAIL.fields, images)
    name, original_name = norm.split_name_alias(values["name"])
    celebrities = tuple(
        assemble(Celebrity, item, rules.MOVIE_CELEBRITIES.fields, images)
        for item in items(content, rules.MOVIE_CELEBRITIES)
    )
    return build(
        MovieDetail,
        values,
        sid=sid,
        name=name,
        original_name=original_name,
        celebrities=celebrities,
    )


def parse_celebrities(doc: Document, images: ImageHook | None = None) -> list[Celebrity]:
    """Directors, voice actors and actors from a subject's celebrities page."""
    table = rules.CELEBRITIES_LIST
    limit = table.extras["limit"]
    content = doc.anchor("#content")
    celebrities: list[Celebrity] = []
    for item in items(content, table):
        celebrity = assemble(Celebrity, item, table.fields, images)
        if celebrity.role_type not in table.extras["role_types"]:
            continue
        celebrities.append(celebrity)
        if len(celebrities) >= limit:
            break
    return celebrities


def parse_celebrity_detail(
    doc: Document, cid: str, images: ImageHook | None = None
) -> CelebrityDetail:
    content = doc.anchor("#content")
    return assemble(CelebrityDetail, content, rules.CELEBRITY_DETAIL.fields, images, id=cid)


def parse_photos(doc: Document, host: str) -> list[Photo]:
    content = doc.anchor("#content")
    photos: list[Photo] = []
    for item in items(content, rules.PHOTOS):
        values = extract(item, rules.PHOTOS.fields)
        photo_id = values["id"]
        if not photo_id:
            continue
        small, medium, large = norm.photo_urls(photo_id, host)
        width, height = norm.parse_photo_size(values["size"])
        photos.append(
            build(Photo, values, small=small, medium=medium, large=large, width=width, height=height)
        )
    return photos


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------


def parse_book_search(
    doc: Document, limit: int, images: ImageHook | None = None
) -> list[BookRecord]:
    """Search results as books with only the fields the result list shows.

    At most ``limit`` books; a limit of zero or less gives none.
    """
    books: list[BookRecord] = []
    for item in items(doc, rules.BOOK_SEARCH):
        if len(books) >= limit:
            break
        values = extract(item, rules.BOOK_SEARCH.fields, images)
        subjects: norm.SubjectParts = values["subjects"]
        books.append(
            build(
                BookRecord,
                values,
                author=subjects.authors,
                publisher=subjects.publisher,
                pubdate=subjects.pubdate,
                images=BookImages(large=values["large"]),
                rating=BookRating(values["rating"]),
            )
        )
    return books


def parse_book_detail(
    doc: Document, book_id: str, images: ImageHook | None = None
) -> BookRecord:
    wrapper = doc.anchor("#wrapper")
    values = extract(wrapper, rules.BOOK_DETAIL.fields, images)
    tags = tuple(
        BookTag(name)
        for name in (norm.collapse_whitespace(node.text()) for node in wrapper.find("a.tag"))
        if name
    )
    return build(
        BookRecord,
        values,
        id=book_id,
        images=BookImages(small=values["small"], medium=values["large"], large=values["large"]),
        rating=BookRating(values["rating"]),
        tags=tags,
    )
