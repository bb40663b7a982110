from pathlib import Path

from domscript.dom import Text
from domscript.markup import load_document, parse_document, parse_fragment


def test_tags_and_attributes_lowercased():
    doc = parse_document('<addEventListener Target="btn" EVENT="click"></addEventListener>')
    el = doc.element_children[0]
    assert el.tag == "addeventlistener"
    assert el.attributes == {"target": "btn", "event": "click"}


def test_void_and_self_closing_elements():
    doc = parse_document('<div><input id="i"><set innerText="x"/><br/><span>after</span></div>')
    div = doc.element_children[0]
    assert [c.tag for c in div.element_children] == ["input", "set", "br", "span"]


def test_stray_end_tag_ignored_and_unclosed_tags_closed():
    doc = parse_document("<div></p><span>text</div><p>tail")
    div, p = doc.element_children
    assert div.element_children[0].text_content == "text"
    assert p.text_content == "tail"


def test_valueless_attribute_and_entities():
    doc = parse_document('<input disabled value="a &amp; b">')
    el = doc.element_children[0]
    assert el.get_attribute("disabled") == ""
    assert el.get_attribute("value") == "a & b"


def test_script_text_not_escaped():
    doc = parse_document("<script>if (a < b) {}</script>")
    assert doc.serialize() == "<script>if (a < b) {}</script>"


def test_fragment_nodes_are_detached():
    nodes = parse_fragment("text<b>bold</b>")
    assert isinstance(nodes[0], Text)
    assert all(n.parent is None for n in nodes)


def test_parsing_does_not_notify_observers():
    doc = parse_document("<body></body>")
    seen = []
    doc.observe(seen.append)
    parse_fragment("<p>x</p>", doc)
    assert seen == []


def test_load_document_from_path_and_text(tmp_path: Path):
    page = tmp_path / "page.html"
    page.write_text('<p id="p">from file</p>', encoding="utf-8")
    assert load_document(page).get_element_by_id("p").text_content == "from file"
    assert load_document(str(page)).get_element_by_id("p").text_content == "from file"
    assert load_document('<p id="q"></p>').get_element_by_id("q") is not None
    assert load_document("just words").text_content == "just words"
