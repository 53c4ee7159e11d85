"""HTTP client for douban.com pages.

Each worker thread gets its own ``requests.Session`` carrying the browser
headers and the caller's cookie. Nothing is retried: a transport error, a
timeout or a non-2xx answer becomes :class:`UpstreamError` and the page is
never parsed. :meth:`DoubanClient.get_raw` is the exception to the status
rule: it hands back whatever douban answered.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

import requests

from doubanmeta.errors import UpstreamError

logger = logging.getLogger(__name__)

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/92.0.4515.131 Safari/537.36"
    ),
    "Origin": "https://movie.douban.com",
    "Referer": "https://movie.douban.com/",
}

COOKIE_DOMAIN = ".douban.com"


@dataclass(frozen=True)
class Page:
    url: str  # final URL after redirects
    text: str


class DoubanClient:
    def __init__(self, cookie: str = "", timeout: tuple[float, float] = (10, 30)) -> None:
        self.timeout = timeout
        self.cookies = parse_cookie(cookie)
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """The calling thread's session, created on first use."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(_HEADERS)
            for name, value in self.cookies:
                session.cookies.set(name, value, domain=COOKIE_DOMAIN)
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def get_page(self, url: str, params: dict[str, str] | None = None) -> Page:
        """GET an HTML page and return its decoded text."""
        resp = self._get(url, params)
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            status = resp.status_code
            logger.warning("douban answered %s for %s", status, url)
            raise UpstreamError(f"upstream returned {status}", status=status, url=url) from e
        return Page(url=resp.url, text=resp.text)

    def get_raw(self, url: str) -> requests.Response:
        """GET anything (images for the proxy route) and return the response as is, whatever its status."""
        return self._get(url, None)

    def close(self) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()

    def _get(self, url: str, params: dict[str, str] | None) -> requests.Response:
        try:
            return self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Request to %s failed: %s", url, e)
            raise UpstreamError(f"upstream request failed: {e}", url=url) from e


def parse_cookie(cookie: str) -> list[tuple[str, str]]:
    """Split a browser cookie string ("a=1; b=2") into name/value pairs."""
    pairs = []
    for part in cookie.split(";"):
        name, sep, value = part.strip().partition("=")
        if sep and name:
            pairs.append((name.strip(), value.strip()))
    return pairs
