"""Declarative field tables, one per entity kind.

Each :class:`Field` names a record attribute, where its raw text comes
from and how to normalize it. Sources never fail: a missing node, label or
regex match reads as ``""`` and the normalizer turns that into the
field's default.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from doubanmeta.extraction import normalizers as norm
from doubanmeta.extraction.document import Node, NodeSet


class MatchPolicy(Enum):
    """Which occurrence wins when a pattern or label matches more than once."""

    FIRST_MATCH = "first"
    LAST_MATCH = "last"


def _capture(pattern: re.Pattern[str], text: str, policy: MatchPolicy) -> str:
    if policy is MatchPolicy.FIRST_MATCH:
        return norm.first_capture(pattern, text)
    return norm.last_capture(pattern, text)


class Source(Protocol):
    def extract(self, scope: NodeSet) -> str: ...


@dataclass(frozen=True)
class Select:
    """Text, attribute or inner markup of the first node matching a selector.

    Selectors are tried in order until one yields a non-blank value.
    """

    selectors: tuple[str, ...]
    attr: str | None = None
    html: bool = False

    def extract(self, scope: NodeSet) -> str:
        for selector in self.selectors:
            nodes = scope.find(selector) if selector else scope
            if self.attr:
                value = nodes.attr(self.attr) or ""
            elif self.html:
                value = nodes.html()
            else:
                value = nodes.first().text()
            if value.strip():
                return value
        return ""


def select(*selectors: str, attr: str | None = None, html: bool = False) -> Select:
    return Select(selectors, attr=attr, html=html)


@dataclass(frozen=True)
class Capture:
    """Group 1 of a regex applied to a selected value."""

    source: Select
    pattern: re.Pattern[str]
    policy: MatchPolicy = MatchPolicy.LAST_MATCH

    def extract(self, scope: NodeSet) -> str:
        return _capture(self.pattern, self.source.extract(scope), self.policy)


@dataclass(frozen=True)
class Label:
    """``Label: value`` scanned out of the text of an info block.

    ``span_lines`` lets the value start on the line after the label (book
    pages break the line after the colon). ``prepare`` runs over the block
    text first.
    """

    label: str
    block: str = "#info"
    span_lines: bool = False
    prepare: Callable[[str], str] | None = None
    policy: MatchPolicy = MatchPolicy.LAST_MATCH

    @property
    def pattern(self) -> re.Pattern[str]:
        gap = r"\s*" if self.span_lines else r"[^\S\n]*"
        return re.compile(rf"(?<!\S){re.escape(self.label)}[:：]{gap}([^\n]*?)[^\S\n]*(?:\n|$)")

    def extract(self, scope: NodeSet) -> str:
        text = scope.find(self.block).first().text()
        if self.prepare:
            text = self.prepare(text)
        return _capture(self.pattern, text, self.policy).strip()


@dataclass(frozen=True)
class SiblingLabel:
    """Value that follows a label node as its siblings.

    For ``<li><span>性别</span>: 男</li>`` the anchor is the ``span`` and
    the value is everything after it up to the next anchor or ``<br>``.
    """

    label: str
    block: str = "div.info"
    anchor: str = "li > span"
    policy: MatchPolicy = MatchPolicy.LAST_MATCH

    def extract(self, scope: NodeSet) -> str:
        anchors = scope.find(self.block).first().find(self.anchor)
        matches = [node for node in anchors if _label_text(node) == self.label]
        if not matches:
            return ""
        node = matches[0] if self.policy is MatchPolicy.FIRST_MATCH else matches[-1]
        parts: list[str] = []
        for sibling in node.next_siblings():
            if sibling.name == "br" or sibling in anchors:
                break
            parts.append(sibling.text())
        return norm.collapse_whitespace("".join(parts)).lstrip(":：").strip()


def _label_text(node: Node) -> str:
    return node.text().strip().rstrip(":：").strip()


@dataclass(frozen=True)
class FirstOf:
    """First source that yields a non-blank value."""

    sources: tuple[Source, ...]

    def extract(self, scope: NodeSet) -> str:
        for source in self.sources:
            value = source.extract(scope)
            if value.strip():
                return value
        return ""


def first_of(*sources: Source) -> FirstOf:
    return FirstOf(sources)


@dataclass(frozen=True)
class Field:
    name: str
    source: Source
    normalize: Callable[[str], Any] = norm.clean_text
    image: bool = False  # run through the request's ImageRewriter


@dataclass(frozen=True)
class Table:
    """Fields of one record kind plus the scope they are read from."""

    fields: tuple[Field, ...]
    item: str = ""  # selector of repeated items, "" for single-entity pages
    block: str = ""  # container whose first match holds the items
    extras: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Shared patterns
# ---------------------------------------------------------------------------

SID_RE = re.compile(r"sid: (\d+?),")
CATEGORY_RE = re.compile(r"\[(.+?)\]")
PATH_ID_RE = re.compile(r"/(\d+?)/")
YEAR_RE = re.compile(r"\((\d+?)\)")

# Search categories that are kept: "movie" and "tv series"
MOVIE_CATEGORIES = frozenset({"电影", "电视剧"})

# ---------------------------------------------------------------------------
# Movies
# ---------------------------------------------------------------------------

MOVIE_SEARCH = Table(
    item=".result",
    block="div.result-list",
    fields=(
        Field("cat", Capture(select("div.title>h3>span"), CATEGORY_RE)),
        Field("sid", Capture(select("div.title a", attr="onclick"), SID_RE)),
        Field("name", select("div.title a")),
        Field("rating", select("div.rating-info>.rating_nums")),
        Field("img", select("a.nbg>img", attr="src"), image=True),
        Field("year", select("div.rating-info>.subject-cast"), norm.year_from_subject),
    ),
)

# Principal cast block on the subject page and the full celebrities page
CELEBRITY = (
    Field("id", Capture(select("div.info a.name", attr="href"), PATH_ID_RE)),
    Field("img", select("div.avatar", attr="style"), norm.background_image, image=True),
    Field("name", select("div.info a.name")),
    Field("role", select("div.info span.role")),
    Field("role_type", select("div.info span.role"), norm.classify_role),
)

MOVIE_CELEBRITIES = Table(item="#celebrities li.celebrity", fields=CELEBRITY)

CELEBRITIES_LIST = Table(
    item="ul.celebrities-list li.celebrity",
    fields=(
        CELEBRITY[0],
        CELEBRITY[1],
        Field("name", select("div.info a.name"), norm.first_token),
        Field("role", select("div.info span.role"), norm.first_token),
        CELEBRITY[4],
    ),
    extras={"limit": 15, "role_types": frozenset({"director", "voice", "actor"})},
)

MOVIE_INFO_LABELS = {
    "director": "导演",
    "writer": "编剧",
    "actor": "主演",
    "genre": "类型",
    "site": "官方网站",
    "country": "制片国家/地区",
    "language": "语言",
    "screen": "上映日期",
    "subname": "又名",
    "imdb": "IMDb",
}

MOVIE_DETAIL = Table(
    fields=(
        Field("name", select("h1>span:first-child")),
        Field("rating", select("div.rating_self strong.rating_num")),
        Field("img", select("a.nbgnbg>img", attr="src"), image=True),
        Field("year", Capture(select("h1>span.year"), YEAR_RE)),
        Field("intro", select("div.indent>span.all", "div.indent>span"), norm.clean_intro),
        *(Field(name, Label(label)) for name, label in MOVIE_INFO_LABELS.items()),
        # TV series only show the per-episode length
        Field("duration", first_of(Label("片长"), Label("单集片长"))),
    ),
)

# ---------------------------------------------------------------------------
# Celebrities
# ---------------------------------------------------------------------------

CELEBRITY_DETAIL = Table(
    fields=(
        Field("img", select("a.nbg>img", attr="src"), image=True),
        Field("name", select("h1"), norm.collapse_whitespace),
        Field("intro", select("#intro span.short", "#intro div.bd")),
        Field("gender", SiblingLabel("性别")),
        Field("constellation", SiblingLabel("星座")),
        # deceased people have a life span instead of a birth date
        Field(
            "birthdate",
            first_of(SiblingLabel("出生日期"), SiblingLabel("生卒日期")),
            norm.lifespan_start,
        ),
        Field("birthplace", SiblingLabel("出生地")),
        Field("role", SiblingLabel("职业")),
        Field("nickname", first_of(SiblingLabel("更多外文名"), SiblingLabel("更多中文名"))),
        Field("family", SiblingLabel("家庭成员")),
        Field("imdb", SiblingLabel("imdb编号")),
    ),
)

# ---------------------------------------------------------------------------
# Photos
# ---------------------------------------------------------------------------

PHOTOS = Table(
    item=".poster-col3>li",
    fields=(
        Field("id", select("", attr="data-id")),
        Field("size", select("div.prop")),
    ),
)

# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------

BOOK_SEARCH = Table(
    item=".result",
    block="div.result-list",
    fields=(
        Field("id", Capture(select("div.title a", attr="onclick"), SID_RE)),
        Field("title", select("div.title a")),
        Field("summary", select("p")),
        Field("large", select(".pic img", attr="src"), image=True),
        Field("rating", select(".rating_nums"), norm.parse_rating),
        Field("subjects", select(".subject-cast"), norm.split_subjects),
    ),
)


def _book_label(label: str) -> Label:
    return Label(label, span_lines=True, prepare=norm.join_slash_lines)


BOOK_INFO_TEXT_LABELS = {
    "producer": "出品方",
    "serials": "丛书",
    "origin": "原作名",
    "publisher": "出版社",
    "pubdate": "出版年",
    "pages": "页数",
    "price": "定价",
    "binding": "装帧",
    "subtitle": "副标题",
    "isbn13": "ISBN",
}

BOOK_DETAIL = Table(
    fields=(
        Field("title", select("h1>span:first-child", "h1"), norm.collapse_whitespace),
        Field("large", select("a.nbg", attr="href"), image=True),
        Field("small", select("a.nbg>img", attr="src"), image=True),
        Field("rating", select("#content div.rating_self strong.rating_num"), norm.parse_rating),
        Field(
            "summary",
            select("#content #link-report .hidden .intro", "#content #link-report .intro", html=True),
        ),
        Field(
            "author_intro",
            select(
                "#content .related_info .indent:not([id]) > .all.hidden .intro",
                "#content .related_info .indent:not([id]) .intro",
                html=True,
            ),
        ),
        Field("author", _book_label("作者"), norm.split_list),
        Field("translators", _book_label("译者"), norm.split_list),
        *(Field(name, _book_label(label)) for name, label in BOOK_INFO_TEXT_LABELS.items()),
    ),
)
