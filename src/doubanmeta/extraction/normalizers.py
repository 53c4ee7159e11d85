"""Pure functions that turn captured page text into field values.

None of these raise on odd input; anything unparsable falls back to the
field's empty default.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import quote, urlsplit

# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

_WHITESPACE_RE = re.compile(r"\s+")
# Multi-author lines in the book info block wrap around the "/" separator
_SPLIT_SPACE_RE = re.compile(r"\s+?/\s+")


def clean_text(text: str) -> str:
    return text.strip()


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def first_token(text: str) -> str:
    """First whitespace-separated token ("导演 Director" -> "导演")."""
    parts = text.split()
    return parts[0] if parts else ""


def join_slash_lines(text: str) -> str:
    return _SPLIT_SPACE_RE.sub("/", text.strip())


def clean_intro(text: str) -> str:
    return text.strip().replace("©豆瓣", "").strip()


def last_capture(pattern: re.Pattern[str], text: str) -> str:
    """Group 1 of the last match of ``pattern`` in ``text``, ``""`` if none.

    Later occurrences override earlier ones.
    """
    value = ""
    for match in pattern.finditer(text):
        value = match.group(1)
    return value


def first_capture(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return match.group(1) if match else ""


# ---------------------------------------------------------------------------
# Numbers and lists
# ---------------------------------------------------------------------------

_LEADING_NUMBER_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)")


def parse_rating(text: str) -> float:
    """Leading number of a rating text; 0.0 when blank or unparsable."""
    match = _LEADING_NUMBER_RE.match(text or "")
    if not match:
        return 0.0
    return float(match.group(1))


def split_list(text: str, sep: str = "/") -> tuple[str, ...]:
    """Split on ``sep`` into trimmed, non-empty tokens."""
    return tuple(token.strip() for token in text.split(sep) if token.strip())


@dataclass(frozen=True)
class SubjectParts:
    """Author / publisher / date parts of a search result subject line."""

    authors: tuple[str, ...] = ()
    publisher: str = ""
    pubdate: str = ""


def split_subjects(text: str) -> SubjectParts:
    """Split "A / B / Press / 2020" style subject lines.

    Three or more tokens: the last is the date, the one before it the
    publisher and the rest are authors. Two tokens: an author, then a
    date if the second token is an integer and a publisher otherwise. One
    token: a single author.
    """
    tokens = split_list(text)
    if len(tokens) >= 3:
        return SubjectParts(authors=tokens[:-2], publisher=tokens[-2], pubdate=tokens[-1])
    if len(tokens) == 2:
        author, other = tokens
        try:
            int(other)
        except ValueError:
            return SubjectParts(authors=(author,), publisher=other)
        return SubjectParts(authors=(author,), pubdate=other)
    if len(tokens) == 1:
        return SubjectParts(authors=tokens)
    return SubjectParts()


def year_from_subject(text: str) -> str:
    """Search result subject lines end with the release year."""
    return text.split("/")[-1].strip()


# ---------------------------------------------------------------------------
# Names and roles
# ---------------------------------------------------------------------------

_SEASON_NAME_RE = re.compile(r"^(.+?第[0-9一二三四五六七八九十百零]+季)(?:\s+(.*))?$", re.DOTALL)

# CJK ideographs, CJK/full-width punctuation, digits and a few ASCII marks
# that appear in Chinese titles ("007：大破天幕杀机", "哪吒之魔童降世·终章").
_CJK = "\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff"
_TITLE_CHARS = _CJK + "\u3000-\u303f\uff00-\uffef0-9\u00b7:!?,.\\-"
_IDEOGRAPHIC_NAME_RE = re.compile(
    rf"^([{_TITLE_CHARS}]*[{_CJK}][{_TITLE_CHARS}]*"
    rf"(?:\s+[{_TITLE_CHARS}]*[{_CJK}][{_TITLE_CHARS}]*)*)\s+(.+)$",
    re.DOTALL,
)


def split_name_alias(title: str) -> tuple[str, str]:
    """Split "肖申克的救赎 The Shawshank Redemption" into name and original name.

    A "第N季" season suffix wins over the generic rule; when neither
    matches, the whole title is the name.
    """
    title = title.strip()
    match = _SEASON_NAME_RE.match(title)
    if match:
        return match.group(1).strip(), (match.group(2) or "").strip()
    match = _IDEOGRAPHIC_NAME_RE.match(title)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return title, ""


_ROLE_TYPES = {
    "导演": "director",
    "director": "director",
    "配音": "voice",
    "voice": "voice",
    "演员": "actor",
    "actor": "actor",
    "actress": "actor",
}


def classify_role(role: str) -> str | None:
    """Map a role label ("导演", "演员 Actor", "配音 Voice") to director/voice/actor."""
    for token in role.split():
        role_type = _ROLE_TYPES.get(token.lower())
        if role_type:
            return role_type
    return None


def lifespan_start(text: str) -> str:
    """Birth date out of a life span such as "1920-01-20 至 1993-10-31"."""
    return text.split("至")[0].strip()


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

_IMAGE_HOST_RE = re.compile(r"img\d+\.doubanio\.com")
_BACKGROUND_URL_RE = re.compile(r"url\((.+?)\)")
_THUMBNAIL_SEGMENT = "s_ratio_poster"
_SIZE_SEGMENTS = {
    "m": "m_ratio_poster",
    "medium": "m_ratio_poster",
    "l": "l_ratio_poster",
    "large": "l_ratio_poster",
}


def background_image(style: str) -> str:
    """Pull the URL out of an inline ``background-image: url(...)`` style."""
    return last_capture(_BACKGROUND_URL_RE, style).strip("'\"")


@dataclass(frozen=True)
class ImageRewriter:
    """Rewrites douban image URLs so they can be loaded off-site.

    ``host`` replaces the numbered ``imgN.doubanio.com`` host, ``size``
    swaps the thumbnail segment for a medium/large one, and ``proxy``
    (when set) wraps the result as ``{proxy}?url=<encoded url>``.
    """

    host: str = "img2.doubanio.com"
    size: str = ""
    proxy: str = ""

    def __call__(self, url: str) -> str:
        url = url.strip()
        if not url:
            return ""
        if self.host:
            url = _IMAGE_HOST_RE.sub(self.host, url)
        segment = _SIZE_SEGMENTS.get(self.size.lower())
        if segment:
            url = url.replace(_THUMBNAIL_SEGMENT, segment)
        if self.proxy:
            url = f"{self.proxy}?url={quote(url, safe='')}"
        return url


def photo_urls(photo_id: str, host: str = "img2.doubanio.com") -> tuple[str, str, str]:
    """Small, medium and large URLs of a gallery photo."""
    return tuple(
        f"https://{host}/view/photo/{size}/public/p{photo_id}.jpg" for size in ("s", "m", "l")
    )


def parse_photo_size(label: str) -> tuple[str, str]:
    """Width and height from a "1920x1080" label; both empty when there is no label."""
    label = label.strip()
    if not label:
        return "", ""
    width, _, height = label.partition("x")
    return width, height


def book_id_from_url(url: str) -> str:
    """Last non-empty path segment ("https://book.douban.com/subject/123/" -> "123")."""
    path = urlsplit(url).path
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else ""
