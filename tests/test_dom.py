import pytest

from domscript.dom import Document, Element, Style, Text, Window
from domscript.errors import HierarchyError
from domscript.markup import parse_document


def test_append_and_remove():
    doc = Document()
    root = doc.append_child(doc.create_element("div"))
    child = root.append_child(doc.create_element("span"))
    assert child.parent is root
    assert child.is_connected
    child.remove()
    assert child.parent is None
    assert not child.is_connected
    assert root.children == []


def test_append_moves_existing_node():
    doc = parse_document('<div id="a"><span id="s"></span></div><div id="b"></div>')
    s = doc.get_element_by_id("s")
    doc.get_element_by_id("b").append_child(s)
    assert doc.get_element_by_id("a").children == []
    assert s.parent.id == "b"


def test_hierarchy_errors():
    doc = parse_document('<div id="outer"><div id="inner"></div></div>')
    outer, inner = doc.get_element_by_id("outer"), doc.get_element_by_id("inner")
    with pytest.raises(HierarchyError):
        inner.append_child(outer)
    with pytest.raises(HierarchyError):
        outer.append_child(outer)
    with pytest.raises(HierarchyError):
        outer.append_child(Document())
    with pytest.raises(HierarchyError):
        outer.remove_child(Element("p"))


def test_style_normalizes_names():
    style = Style("color: red; backgroundColor: blue")
    assert style["background-color"] == "blue"
    style["fontSize"] = "12px"
    assert "font-size" in style
    style["color"] = ""
    assert "color" not in style
    assert style.css_text == "background-color: blue; font-size: 12px"


def test_attributes_and_style_attribute():
    el = Element("div", {"ID": "x", "style": "display: none"})
    assert el.id == "x"
    assert el.hidden
    assert el.attributes == {"id": "x", "style": "display: none"}
    el.hidden = False
    assert el.get_attribute("style") is None
    el.remove_attribute("id")
    assert not el.has_attribute("id")


def test_properties():
    el = Element("input", {"value": "initial"})
    assert el.get_property("value") == "initial"
    el.set_property("value", 5)
    assert el.value == 5
    assert el.get_attribute("value") == "initial"
    el.set_property("innerText", "hi")
    assert el.get_property("textContent") == "hi"
    el.set_property("tagName", "div")
    assert el.tag_name == "INPUT"
    el.set_property("custom", [1])
    assert el.get_property("custom") == [1]
    el.set_property("style", "color: red")
    assert el.style["color"] == "red"


def test_inner_html_roundtrip():
    doc = Document()
    el = doc.append_child(doc.create_element("div"))
    el.inner_html = '<p class="a">x &amp; y</p><br>'
    assert [c.tag for c in el.element_children] == ["p", "br"]
    assert el.inner_html == '<p class="a">x &amp; y</p><br>'
    assert el.outer_html == '<div><p class="a">x &amp; y</p><br></div>'


def test_text_content_setter_replaces_children():
    el = Element("div")
    el.append_child(Element("span"))
    el.text_content = "plain"
    assert len(el.children) == 1 and isinstance(el.children[0], Text)
    el.text_content = ""
    assert el.children == []


def test_resolve_id_then_selector():
    doc = parse_document('<div id="main" class="c"></div><p class="c"></p>')
    assert doc.resolve("main").tag == "div"
    assert doc.resolve("p.c").tag == "p"
    assert doc.resolve("[[bad") is None
    assert doc.resolve(None) is None


def test_event_listeners():
    el = Element("button")
    seen = []
    listener = seen.append
    el.add_event_listener("click", listener)
    el.add_event_listener("click", listener)
    event = el.dispatch_event("click", x=1)
    assert seen == [event]
    assert event.detail == {"x": 1}
    el.remove_event_listener("click", listener)
    el.dispatch_event("click")
    assert len(seen) == 1


def test_insertion_observers():
    doc = parse_document("<body></body>")
    inserted = []
    doc.observe(inserted.append)
    detached = Element("div")
    detached.append_child(Element("span"))
    assert inserted == []
    doc.body.append_child(detached)
    assert inserted == [detached]
    doc.disconnect(inserted.append)
    doc.body.append_child(Element("p"))
    assert len(inserted) == 1


def test_window_bindings():
    doc = Document()
    win = Window(doc)
    assert win.bindings["document"] is doc
    assert win.bindings["window"] is win
