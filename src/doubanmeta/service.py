"""Fetch, parse and cache douban entities.

:class:`DoubanService` is the only place that knows douban URLs. Each
method fetches one page, hands the parsed document to the matching
``parse_*`` function and caches the record where the record is stable
enough to keep (details, not searches).
"""

from __future__ import annotations

import logging

import requests

from doubanmeta.cache import ResultCache, cache_key
from doubanmeta.errors import DoubanError
from doubanmeta.extraction import assembler
from doubanmeta.extraction.document import Document
from doubanmeta.extraction.normalizers import ImageRewriter, book_id_from_url
from doubanmeta.models import (
    BookRecord,
    BookSearchResult,
    Celebrity,
    CelebrityDetail,
    MovieDetail,
    MovieSummary,
    Photo,
)
from doubanmeta.scrapers.client import DoubanClient

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.douban.com/search"
MOVIE_URL = "https://movie.douban.com/subject/{sid}/"
CELEBRITIES_URL = "https://movie.douban.com/subject/{sid}/celebrities"
CELEBRITY_URL = "https://movie.douban.com/celebrity/{cid}/"
PHOTOS_URL = (
    "https://movie.douban.com/subject/{sid}/photos"
    "?type=W&start=0&sortby=size&size=a&subtype=a"
)
BOOK_URL = "https://book.douban.com/subject/{book_id}/"
ISBN_URL = "https://douban.com/isbn/{isbn}/"

BOOK_SEARCH_CATEGORY = "1001"


class DoubanService:
    def __init__(
        self,
        client: DoubanClient,
        cache: ResultCache,
        search_limit: int = 3,
        image_host: str = "img2.doubanio.com",
        image_proxy: str = "",
    ) -> None:
        self.client = client
        self.cache = cache
        self.search_limit = search_limit
        self.image_host = image_host
        self.image_proxy = image_proxy

    def images(self, size: str = "") -> ImageRewriter:
        return ImageRewriter(host=self.image_host, size=size, proxy=self.image_proxy)

    def _fetch(self, url: str, params: dict[str, str] | None = None) -> Document:
        page = self.client.get_page(url, params=params)
        return Document.parse(page.text, url=page.url)

    # ------------------------------------------------------------------
    # Movies
    # ------------------------------------------------------------------

    def search_movies(self, q: str, count: int = 0, size: str = "") -> list[MovieSummary]:
        """Movie and TV results for ``q``; ``count <= 0`` means the configured limit."""
        if not q:
            return []
        limit = count if count > 0 else self.search_limit
        doc = self._fetch(SEARCH_URL, {"q": q})
        return assembler.parse_movie_search(doc, limit, self.images(size))

    def search_movies_full(self, q: str, count: int = 0, size: str = "") -> list[MovieDetail]:
        """Details of every search result; results whose detail fails are left out."""
        details: list[MovieDetail] = []
        for summary in self.search_movies(q, count, size):
            try:
                details.append(self.get_movie(summary.sid, size))
            except DoubanError as e:
                logger.warning("Skipping movie %s (%s): %s", summary.sid, summary.name, e)
        return details

    def get_movie(self, sid: str, size: str = "") -> MovieDetail:
        key = cache_key("movie", sid, size)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        doc = self._fetch(MOVIE_URL.format(sid=sid))
        movie = assembler.parse_movie_detail(doc, sid, self.images(size))
        self.cache.insert(key, movie)
        return movie

    def get_celebrities(self, sid: str) -> list[Celebrity]:
        key = cache_key("celebrities", sid)
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)
        doc = self._fetch(CELEBRITIES_URL.format(sid=sid))
        celebrities = assembler.parse_celebrities(doc, self.images())
        self.cache.insert(key, tuple(celebrities))
        return celebrities

    def get_celebrity(self, cid: str) -> CelebrityDetail:
        key = cache_key("celebrity", cid)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        doc = self._fetch(CELEBRITY_URL.format(cid=cid))
        celebrity = assembler.parse_celebrity_detail(doc, cid, self.images())
        self.cache.insert(key, celebrity)
        return celebrity

    def get_photos(self, sid: str) -> list[Photo]:
        key = cache_key("photos", sid)
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)
        doc = self._fetch(PHOTOS_URL.format(sid=sid))
        photos = assembler.parse_photos(doc, self.image_host)
        self.cache.insert(key, tuple(photos))
        return photos

    # ------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------

    def search_books(self, q: str, count: int = 2) -> BookSearchResult:
        doc = self._fetch(SEARCH_URL, {"cat": BOOK_SEARCH_CATEGORY, "q": q})
        books = assembler.parse_book_search(doc, count, self.images())
        return BookSearchResult(books=tuple(books))

    def get_book(self, book_id: str) -> BookRecord:
        cached = self.cache.get(cache_key("book", book_id))
        if cached is not None:
            return cached
        return self._load_book(BOOK_URL.format(book_id=book_id))

    def get_book_by_isbn(self, isbn: str) -> BookRecord:
        cached = self.cache.get(cache_key("book", isbn))
        if cached is not None:
            return cached
        return self._load_book(ISBN_URL.format(isbn=isbn))

    def _load_book(self, url: str) -> BookRecord:
        # ISBN lookups redirect to the subject page, whose URL carries the id
        page = self.client.get_page(url)
        doc = Document.parse(page.text, url=page.url)
        book = assembler.parse_book_detail(doc, book_id_from_url(page.url), self.images())
        self.cache.insert(cache_key("book", book.id), book)
        if book.isbn13:
            self.cache.insert(cache_key("book", book.isbn13), book)
        return book

    # ------------------------------------------------------------------
    # Image proxy
    # ------------------------------------------------------------------

    def proxy_image(self, url: str) -> requests.Response:
        return self.client.get_raw(url)

    def close(self) -> None:
        self.client.close()
