"""Exceptions that reach the HTTP layer.

Anything else that goes missing while reading a page (a label, an
attribute, a rating) is resolved to the field's default and never raised.
"""

from __future__ import annotations


class DoubanError(Exception):
    """Base class for failures surfaced to callers."""


class UpstreamError(DoubanError):
    """douban.com could not be reached or answered with a non-success status."""

    def __init__(self, message: str, status: int | None = None, url: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.url = url


class StructuralAnchorMissing(DoubanError):
    """The root container of an entity page is not in the document."""

    def __init__(self, selector: str, url: str = "") -> None:
        where = f" on {url}" if url else ""
        super().__init__(f"anchor {selector!r} not found{where}")
        self.selector = selector
        self.url = url
