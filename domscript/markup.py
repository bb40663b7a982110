"""Forgiving markup parser that builds the host tree.

Tag and attribute names are lower-cased the way a browser does it, so
``<addEventListener>`` becomes ``addeventlistener`` and an ``innerText``
attribute becomes ``innertext``.
"""

from __future__ import annotations
from html.parser import HTMLParser
from pathlib import Path
from typing import List, Optional

from .dom import Document, Element, Node, ParentNode, Text, VOID_ELEMENTS
from .errors import ParseError


class _TreeBuilder(HTMLParser):
    def __init__(self, root: ParentNode, document: Document):
        super().__init__(convert_charrefs=True)
        self.document = document
        self.root = root
        self.stack: List[ParentNode] = [root]

    def _open(self, tag: str, attrs) -> Element:
        el = Element(tag, owner_document=self.document)
        for k, v in attrs:
            # valueless attributes (<input disabled>) read back as ""
            el.set_attribute(k, "" if v is None else v)
        # build detached: no insertion notifications while parsing
        el.parent = self.stack[-1]
        self.stack[-1].children.append(el)
        return el

    def handle_starttag(self, tag, attrs):
        el = self._open(tag, attrs)
        if el.tag not in VOID_ELEMENTS:
            self.stack.append(el)

    def handle_startendtag(self, tag, attrs):
        self._open(tag, attrs)

    def handle_endtag(self, tag):
        tag = tag.lower()
        # pop up to the matching open element; stray end tags are ignored
        for i in range(len(self.stack) - 1, 0, -1):
            node = self.stack[i]
            if isinstance(node, Element) and node.tag == tag:
                del self.stack[i:]
                return

    def handle_data(self, data):
        if not data:
            return
        parent = self.stack[-1]
        if parent.children and isinstance(parent.children[-1], Text):
            parent.children[-1].data += data
            return
        text = Text(data, owner_document=self.document)
        text.parent = parent
        parent.children.append(text)


def _feed(builder: _TreeBuilder, source: str) -> None:
    try:
        builder.feed(source)
        builder.close()
    except (AssertionError, ValueError) as e:
        raise ParseError(f"Could not parse markup: {e}") from e


def parse_document(source: str) -> Document:
    doc = Document()
    _feed(_TreeBuilder(doc, doc), source)
    return doc


def parse_fragment(source: str, document: Optional[Document] = None) -> List[Node]:
    """Parse markup into detached nodes, e.g. for an innerHTML assignment."""
    doc = document if document is not None else Document()
    holder = Element("template", owner_document=doc)
    _feed(_TreeBuilder(holder, doc), source)
    nodes = list(holder.children)
    for n in nodes:
        n.parent = None
    return nodes


def load_document(source: str | Path) -> Document:
    """Accept a path to a markup file or markup text."""
    if isinstance(source, Path):
        return parse_document(source.read_text(encoding="utf-8"))
    text = str(source)
    if "<" not in text:
        path = Path(text)
        try:
            if path.is_file():
                return parse_document(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ParseError(f"Could not read {text}: {e}") from e
    return parse_document(text)
