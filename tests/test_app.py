import pytest
import requests
from fastapi.testclient import TestClient

from conftest import FakeResponse
from doubanmeta.cache import ResultCache
from doubanmeta.scrapers.client import DoubanClient
from doubanmeta.service import (
    BOOK_URL,
    CELEBRITIES_URL,
    CELEBRITY_URL,
    ISBN_URL,
    MOVIE_URL,
    PHOTOS_URL,
    SEARCH_URL,
    DoubanService,
)
from doubanmeta.web.app import create_app

SID = "1292052"


@pytest.fixture
def api(service):
    with TestClient(create_app(service)) as test_client:
        yield test_client


def test_index_lists_routes(api):
    resp = api.get("/")
    assert resp.status_code == 200
    assert "/movies/{sid}/celebrities" in resp.text
    assert "/v2/book/isbn/{isbn}" in resp.text


def test_movies_empty_query(api, client):
    resp = api.get("/movies")
    assert resp.json() == []
    assert client.calls == []


def test_movies_search(api, client):
    client.add(SEARCH_URL, "search_movies.html")
    resp = api.get("/movies", params={"q": "肖申克", "count": 2})
    assert resp.status_code == 200
    assert [m["sid"] for m in resp.json()] == [SID, "26816519"]
    assert set(resp.json()[0]) == {"cat", "sid", "name", "rating", "img", "year"}


def test_movies_search_full(api, client):
    client.add(SEARCH_URL, "search_movies.html")
    client.add(MOVIE_URL.format(sid=SID), "movie_subject.html")
    resp = api.get("/movies", params={"q": "肖申克", "type": "full", "count": 1})
    body = resp.json()
    assert len(body) == 1
    assert body[0]["original_name"] == "The Shawshank Redemption"


def test_movie_detail(api, client):
    client.add(MOVIE_URL.format(sid=SID), "movie_subject.html")
    body = api.get(f"/movies/{SID}", params={"s": "m"}).json()
    assert body["sid"] == SID
    assert body["director"] == "弗兰克·德拉邦特"
    assert "m_ratio_poster" in body["img"]
    assert body["celebrities"][0] == {
        "id": "1047973",
        "img": "https://img2.doubanio.com/view/celebrity/raw/public/p230.jpg",
        "name": "弗兰克·德拉邦特",
        "role": "导演",
    }


def test_upstream_not_found(api):
    resp = api.get("/movies/404")
    assert resp.status_code == 404
    assert "message" in resp.json()


def test_upstream_failure_is_bad_gateway(api, client):
    resp = api.get("/proxy", params={"url": "https://img9.doubanio.com/missing.jpg"})
    assert resp.status_code == 502


def test_layout_change_is_server_error(api, client):
    client.add_text(MOVIE_URL.format(sid="1"), "<html><body>blocked</body></html>")
    resp = api.get("/movies/1")
    assert resp.status_code == 500
    assert "#content" in resp.json()["message"]


def test_celebrities_routes(api, client):
    client.add(CELEBRITIES_URL.format(sid=SID), "movie_celebrities.html")
    client.add(CELEBRITY_URL.format(cid="1054521"), "celebrity.html")
    listing = api.get(f"/movies/{SID}/celebrities").json()
    assert [c["role"] for c in listing] == ["导演", "演员", "演员", "配音"]
    person = api.get("/celebrities/1054521").json()
    assert person["imdb"] == "nm0000209"


def test_photos_route(api, client):
    client.add(PHOTOS_URL.format(sid=SID), "photos.html")
    body = api.get(f"/photo/{SID}").json()
    assert body[0]["width"] == "1920"
    assert body[0]["small"] == "https://img2.doubanio.com/view/photo/s/public/p490571815.jpg"


def test_book_search_route(api, client):
    client.add(SEARCH_URL, "search_books.html")
    body = api.get("/v2/book/search", params={"q": "追风筝的人"}).json()
    assert body["code"] == 0
    assert len(body["books"]) == 2
    assert body["books"][0]["rating"] == {"average": 8.9}


def test_book_search_count_cap(api, client):
    resp = api.get("/v2/book/search", params={"q": "追风筝的人", "count": 21})
    assert resp.status_code == 400
    assert resp.json() == {"message": "count不能大于20"}
    assert client.calls == []


def test_book_search_empty_query(api):
    assert api.get("/v2/book/search").json() == []


def test_book_routes(api, client):
    client.add(BOOK_URL.format(book_id="1770782"), "book_subject.html")
    client.add(
        ISBN_URL.format(isbn="9787208061644"),
        "book_subject.html",
        final_url=BOOK_URL.format(book_id="1770782"),
    )
    by_id = api.get("/v2/book/id/1770782").json()
    by_isbn = api.get("/v2/book/isbn/9787208061644").json()
    assert by_id == by_isbn
    assert by_id["translators"] == ["李继宏"]


def test_proxy_forwards_bytes(api, client):
    client.raw["https://img2.doubanio.com/a.jpg"] = FakeResponse(b"\xff\xd8jpeg", content_type="image/jpeg")
    resp = api.get("/proxy", params={"url": "https://img2.doubanio.com/a.jpg"})
    assert resp.status_code == 200
    assert resp.content == b"\xff\xd8jpeg"
    assert resp.headers["content-type"] == "image/jpeg"


def test_health(api):
    assert api.get("/health").json() == {"status": "ok"}


def test_proxy_forwards_upstream_error_status(api, client):
    client.raw["https://img9.doubanio.com/x.png"] = FakeResponse(
        b"\x89PNGhotlink", status_code=403, content_type="image/png"
    )
    resp = api.get("/proxy", params={"url": "https://img9.doubanio.com/x.png"})
    assert resp.status_code == 403
    assert resp.content == b"\x89PNGhotlink"
    assert resp.headers["content-type"] == "image/png"


def test_proxy_passes_hotlink_rejection_through_real_client(monkeypatch):
    def fake_get(self, url, params=None, timeout=None):
        resp = requests.Response()
        resp.status_code = 403
        resp._content = b"\x89PNGhotlink"
        resp.headers["content-type"] = "image/png"
        resp.url = url
        return resp

    monkeypatch.setattr(requests.Session, "get", fake_get)
    service = DoubanService(DoubanClient(), ResultCache())
    with TestClient(create_app(service)) as test_client:
        resp = test_client.get("/proxy", params={"url": "https://img9.doubanio.com/x.png"})
    assert resp.status_code == 403
    assert resp.content == b"\x89PNGhotlink"
    assert resp.headers["content-type"] == "image/png"
