"""Queryable wrapper around a parsed douban page.

Every lookup is total: a selector that matches nothing gives an empty
NodeSet, and text/attribute/markup reads on an empty set give ``""`` or
``None``. Only :meth:`Document.anchor` raises, for the root container an
entity page cannot do without.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

import soupsieve
from bs4 import BeautifulSoup, NavigableString, PageElement, Tag

from doubanmeta.errors import StructuralAnchorMissing

logger = logging.getLogger(__name__)


class Node:
    """A single element or text node."""

    def __init__(self, element: PageElement) -> None:
        self._el = element

    @property
    def element(self) -> PageElement:
        return self._el

    @property
    def name(self) -> str:
        """Tag name, ``""`` for text nodes."""
        return self._el.name if isinstance(self._el, Tag) else ""

    def find(self, selector: str) -> NodeSet:
        if not isinstance(self._el, Tag):
            return NodeSet()
        try:
            found = self._el.select(selector)
        except soupsieve.SelectorSyntaxError:
            logger.debug("Invalid selector %r", selector)
            return NodeSet()
        return NodeSet(Node(el) for el in found)

    def text(self) -> str:
        if isinstance(self._el, Tag):
            return self._el.get_text()
        if isinstance(self._el, NavigableString):
            return str(self._el)
        return ""

    def attr(self, name: str) -> str | None:
        if not isinstance(self._el, Tag):
            return None
        value = self._el.get(name)
        if value is None:
            return None
        # multi-valued attributes (class, rel) come back as lists
        if isinstance(value, list):
            return " ".join(value)
        return value

    def html(self) -> str:
        """Inner markup."""
        if isinstance(self._el, Tag):
            return self._el.decode_contents()
        return self.text()

    def next_sibling(self) -> Node | None:
        sibling = self._el.next_sibling
        return Node(sibling) if sibling is not None else None

    def next_siblings(self) -> NodeSet:
        return NodeSet(Node(el) for el in self._el.next_siblings)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Node) and other._el is self._el

    def __hash__(self) -> int:
        return id(self._el)

    def __repr__(self) -> str:
        return f"Node({self.name or 'text'}: {self.text()[:30]!r})"


class NodeSet:
    """Ordered set of nodes with the same read operations as a single node.

    Text reads concatenate every node; attribute and markup reads look at
    the first node only.
    """

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        self._nodes: list[Node] = list(nodes)

    def find(self, selector: str) -> NodeSet:
        seen: set[Node] = set()
        found: list[Node] = []
        for node in self._nodes:
            for match in node.find(selector):
                if match not in seen:
                    seen.add(match)
                    found.append(match)
        return NodeSet(found)

    def first(self) -> NodeSet:
        return NodeSet(self._nodes[:1])

    def text(self) -> str:
        return "".join(node.text() for node in self._nodes)

    def attr(self, name: str) -> str | None:
        return self._nodes[0].attr(name) if self._nodes else None

    def html(self) -> str:
        return self._nodes[0].html() if self._nodes else ""

    def next_sibling(self) -> Node | None:
        return self._nodes[0].next_sibling() if self._nodes else None

    def next_siblings(self) -> NodeSet:
        return self._nodes[0].next_siblings() if self._nodes else NodeSet()

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __bool__(self) -> bool:
        return bool(self._nodes)

    def __getitem__(self, index: int) -> Node:
        return self._nodes[index]

    def __repr__(self) -> str:
        return f"NodeSet({len(self._nodes)})"


class Document(NodeSet):
    """A whole page, parsed with lxml."""

    def __init__(self, soup: BeautifulSoup, url: str = "") -> None:
        super().__init__([Node(soup)])
        self.url = url

    @classmethod
    def parse(cls, raw: str, url: str = "") -> Document:
        return cls(BeautifulSoup(raw, "lxml"), url)

    def anchor(self, selector: str) -> NodeSet:
        """Return the root container of an entity, or raise if the page lacks it."""
        found = self.find(selector).first()
        if not found:
            raise StructuralAnchorMissing(selector, self.url)
        return found
