from __future__ import annotations

from pathlib import Path

import pytest

from doubanmeta.cache import ResultCache
from doubanmeta.errors import UpstreamError
from doubanmeta.extraction.document import Document
from doubanmeta.scrapers.client import Page
from doubanmeta.service import DoubanService

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def load_document(name: str, url: str = "") -> Document:
    return Document.parse(load_fixture(name), url=url)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200, content_type: str = "image/jpeg"):
        self.content = content
        self.status_code = status_code
        self.headers = {"content-type": content_type}


class FakeClient:
    """Serves canned pages by URL and records every request."""

    def __init__(self) -> None:
        self.pages: dict[str, Page] = {}
        self.raw: dict[str, FakeResponse] = {}
        self.calls: list[tuple[str, dict[str, str] | None]] = []
        self.closed = False

    def add(self, url: str, fixture: str, final_url: str | None = None) -> None:
        self.pages[url] = Page(url=final_url or url, text=load_fixture(fixture))

    def add_text(self, url: str, text: str) -> None:
        self.pages[url] = Page(url=url, text=text)

    def get_page(self, url: str, params: dict[str, str] | None = None) -> Page:
        self.calls.append((url, params))
        page = self.pages.get(url)
        if page is None:
            raise UpstreamError("upstream returned 404", status=404, url=url)
        return page

    def get_raw(self, url: str) -> FakeResponse:
        self.calls.append((url, None))
        resp = self.raw.get(url)
        if resp is None:
            raise UpstreamError("upstream request failed", url=url)
        return resp

    def close(self) -> None:
        self.closed = True

    def count(self, url: str) -> int:
        return sum(1 for called, _ in self.calls if called == url)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def cache(clock: FakeClock) -> ResultCache:
    return ResultCache(max_entries=100, ttl=600, clock=clock)


@pytest.fixture
def service(client: FakeClient, cache: ResultCache) -> DoubanService:
    return DoubanService(client=client, cache=cache, search_limit=3)
