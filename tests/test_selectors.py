import pytest

from domscript.errors import SelectorError
from domscript.markup import parse_document
from domscript.selectors import compile_selector, select

PAGE = """
<div id="app" class="shell main">
  <ul class="list">
    <li class="item first" data-kind="fruit-apple">apple</li>
    <li class="item" data-kind="fruit">pear</li>
    <li class="item last"></li>
  </ul>
  <p lang="en-US">hi</p>
  <span>one</span><span>two</span>
</div>
<p id="outside"></p>
"""


@pytest.fixture(scope="module")
def doc():
    return parse_document(PAGE)


def ids_or_text(els):
    return [e.id or e.text_content for e in els]


@pytest.mark.parametrize("selector,expected", [
    ("li", 3),
    ("*", 9),
    ("#app", 1),
    (".item", 3),
    (".item.first", 1),
    ("ul > li", 3),
    ("div li", 3),
    ("div > li", 0),
    ("li + li", 2),
    ("li.first ~ li", 2),
    ("[data-kind]", 2),
    ("[data-kind=fruit]", 1),
    ('[data-kind="fruit"]', 1),
    ("[data-kind^=fruit]", 2),
    ("[data-kind$=apple]", 1),
    ("[data-kind*=uit-a]", 1),
    ("[class~=last]", 1),
    ("[lang|=en]", 1),
    ("li:first-child", 1),
    ("li:last-child", 1),
    ("li:empty", 1),
    ("span:only-child", 0),
    ("p, span", 4),
    ("div.shell.main > p", 1),
])
def test_select_counts(doc, selector, expected):
    assert len(select(doc, selector)) == expected


def test_select_document_order(doc):
    assert ids_or_text(select(doc, "span, li")) == ["apple", "pear", "", "one", "two"]


def test_query_selector_first_match(doc):
    assert doc.query_selector("p").get_attribute("lang") == "en-US"
    assert doc.query_selector("#missing") is None


@pytest.mark.parametrize("selector", ["", "   ", "li >", "[data", "li:hover", "#", "a,,b"])
def test_invalid_selectors(doc, selector):
    with pytest.raises(SelectorError):
        select(doc, selector)


def test_compiled_selectors_are_cached():
    assert compile_selector("ul > li") is compile_selector("ul > li")


def test_element_matches(doc):
    li = doc.query_selector("li")
    assert li.matches("ul .first")
    assert not li.matches("p li")
