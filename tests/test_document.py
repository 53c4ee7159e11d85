import pytest

from doubanmeta.errors import StructuralAnchorMissing
from doubanmeta.extraction.document import Document, NodeSet

HTML = """
<div id="content">
  <h1><span>Title</span> <span class="year">(1994)</span></h1>
  <ul class="info">
    <li><span>性别</span>: 男<br/>tail</li>
    <li class="a b"><span>星座</span>: 天秤座</li>
  </ul>
  <div class="intro"><p>one</p><p>two</p></div>
</div>
"""


@pytest.fixture
def doc():
    return Document.parse(HTML, url="https://movie.douban.com/subject/1/")


def test_find_and_text(doc):
    assert doc.find("h1>span:first-child").text() == "Title"
    assert doc.find("div.intro p").text() == "onetwo"
    assert len(doc.find("li")) == 2


def test_missing_nodes_read_as_empty(doc):
    missing = doc.find("div.nothing")
    assert not missing
    assert missing.text() == ""
    assert missing.attr("href") is None
    assert missing.html() == ""
    assert missing.next_sibling() is None
    assert len(missing.next_siblings()) == 0
    assert missing.find("span").text() == ""


def test_invalid_selector_is_empty(doc):
    assert doc.find("div[[").text() == ""


def test_attr_joins_multi_valued(doc):
    assert doc.find("li.a").attr("class") == "a b"
    assert doc.find("li.a").attr("id") is None


def test_html_is_inner_markup_of_first_node(doc):
    assert doc.find("div.intro").html() == "<p>one</p><p>two</p>"


def test_next_siblings_walk_text_and_tags(doc):
    anchor = doc.find("li > span").first()
    siblings = list(anchor.next_siblings())
    assert siblings[0].text() == ": 男"
    assert siblings[1].name == "br"
    assert anchor.next_sibling().text() == ": 男"


def test_find_removes_duplicates():
    doc = Document.parse("<div class='a'><div class='a'><p>x</p></div></div>")
    outer = doc.find("div.a")
    assert len(outer) == 2
    assert len(outer.find("p")) == 1


def test_anchor(doc):
    assert doc.anchor("#content").find("h1 span.year").text() == "(1994)"
    with pytest.raises(StructuralAnchorMissing) as excinfo:
        doc.anchor("#wrapper")
    assert "#wrapper" in str(excinfo.value)
    assert excinfo.value.url == "https://movie.douban.com/subject/1/"


def test_nodeset_iteration_and_indexing(doc):
    items = doc.find("li")
    assert isinstance(items, NodeSet)
    assert [node.name for node in items] == ["li", "li"]
    assert items[1].find("span").text() == "星座"
    assert items.first().text() == items[0].text()
