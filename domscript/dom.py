"""Host document tree the interpreter queries and mutates.

A deliberately small DOM: elements, text nodes, ordered attributes, inline
styles, expando properties, event listeners and insertion observers. Markup
parsing lives in :mod:`domscript.markup`, selector matching in
:mod:`domscript.selectors`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import html
import re
from typing import Any, Callable, Dict, Iterator, List, Optional

from .errors import HierarchyError, SelectorError
from .types import to_js_string

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})

_CAMEL = re.compile(r"(?<!^)([A-Z])")


@dataclass
class Event:
    type: str
    target: Any = None
    detail: Dict[str, Any] = field(default_factory=dict)


class EventTarget:
    """Listener registry shared by elements, the document and the window."""

    def _listener_map(self) -> Dict[str, List[Callable]]:
        listeners = self.__dict__.get("_listeners")
        if listeners is None:
            listeners = self.__dict__["_listeners"] = {}
        return listeners

    def add_event_listener(self, event_type: str, listener: Callable) -> None:
        bucket = self._listener_map().setdefault(event_type, [])
        # the same listener is only registered once per event type
        if listener not in bucket:
            bucket.append(listener)

    def remove_event_listener(self, event_type: str, listener: Callable) -> None:
        bucket = self._listener_map().get(event_type, [])
        if listener in bucket:
            bucket.remove(listener)

    def listeners(self, event_type: str) -> List[Callable]:
        return list(self._listener_map().get(event_type, []))

    def dispatch_event(self, event_type: str, **detail: Any) -> Event:
        event = Event(type=event_type, target=self, detail=detail)
        for listener in self.listeners(event_type):
            listener(event)
        return event


class Style:
    """Inline style declarations keyed by CSS property name."""

    def __init__(self, css_text: str = ""):
        self._props: Dict[str, str] = {}
        if css_text:
            self.css_text = css_text

    @staticmethod
    def normalize(name: str) -> str:
        # backgroundColor -> background-color
        return _CAMEL.sub(r"-\1", name.strip()).lower()

    def __getitem__(self, name: str) -> str:
        return self._props.get(self.normalize(name), "")

    def __setitem__(self, name: str, value: Any) -> None:
        key = self.normalize(name)
        text = "" if value is None else to_js_string(value).strip()
        if text:
            self._props[key] = text
        else:
            self._props.pop(key, None)

    def __delitem__(self, name: str) -> None:
        self._props.pop(self.normalize(name), None)

    def __contains__(self, name: str) -> bool:
        return self.normalize(name) in self._props

    def __iter__(self):
        return iter(self._props)

    def __len__(self) -> int:
        return len(self._props)

    def items(self):
        return self._props.items()

    @property
    def display(self) -> str:
        return self["display"]

    @display.setter
    def display(self, value: str) -> None:
        self["display"] = value

    @property
    def css_text(self) -> str:
        return "; ".join(f"{k}: {v}" for k, v in self._props.items())

    @css_text.setter
    def css_text(self, text: str) -> None:
        self._props.clear()
        for decl in (text or "").split(";"):
            if ":" not in decl:
                continue
            k, v = decl.split(":", 1)
            if k.strip():
                self[k] = v

    def __repr__(self):
        return f"<Style {self.css_text!r}>"


class Node:
    def __init__(self, owner_document: Optional["Document"] = None):
        self.parent: Optional[ParentNode] = None
        self.owner_document = owner_document

    @property
    def is_connected(self) -> bool:
        node: Optional[Node] = self
        while node is not None:
            if isinstance(node, Document):
                return True
            node = node.parent
        return False

    @property
    def text_content(self) -> str:
        return ""

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.remove_child(self)

    def serialize(self) -> str:
        raise NotImplementedError


class Text(Node):
    def __init__(self, data: str = "", owner_document: Optional["Document"] = None):
        super().__init__(owner_document)
        self.data = data

    @property
    def text_content(self) -> str:
        return self.data

    def serialize(self) -> str:
        if isinstance(self.parent, Element) and self.parent.tag in RAW_TEXT_ELEMENTS:
            return self.data
        return html.escape(self.data, quote=False)

    def __repr__(self):
        return f"<Text {self.data!r}>"


class ParentNode(Node):
    def __init__(self, owner_document: Optional["Document"] = None):
        super().__init__(owner_document)
        self.children: List[Node] = []

    @property
    def element_children(self) -> List["Element"]:
        return [c for c in self.children if isinstance(c, Element)]

    @property
    def text_content(self) -> str:
        return "".join(c.text_content for c in self.children)

    @text_content.setter
    def text_content(self, value: Any) -> None:
        self._replace_children([Text(to_js_string(value), self.owner_document)] if value not in (None, "") else [])

    def iter_descendants(self) -> Iterator["Element"]:
        """Descendant elements in document order."""
        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.iter_descendants()

    def contains(self, node: Node) -> bool:
        cur: Optional[Node] = node
        while cur is not None:
            if cur is self:
                return True
            cur = cur.parent
        return False

    def append_child(self, node: Node) -> Node:
        if isinstance(node, Document):
            raise HierarchyError("A document cannot be appended")
        if isinstance(node, ParentNode) and node.contains(self):
            raise HierarchyError(f"Cannot append {node!r} into itself or one of its descendants")
        if node.parent is not None:
            node.parent.remove_child(node)
        if self.owner_document is not None and node.owner_document is not self.owner_document:
            _adopt(node, self.owner_document)
        self.children.append(node)
        node.parent = self
        if self.is_connected:
            doc = self if isinstance(self, Document) else self.owner_document
            if doc is not None:
                doc._notify_inserted(node)
        return node

    def remove_child(self, node: Node) -> Node:
        if node.parent is not self:
            raise HierarchyError(f"{node!r} is not a child of {self!r}")
        self.children.remove(node)
        node.parent = None
        return node

    def _replace_children(self, nodes: List[Node]) -> None:
        for child in list(self.children):
            child.parent = None
        self.children = []
        for n in nodes:
            self.append_child(n)

    def query_selector(self, selector: str) -> Optional["Element"]:
        from .selectors import select
        found = select(self, selector)
        return found[0] if found else None

    def query_selector_all(self, selector: str) -> List["Element"]:
        from .selectors import select
        return select(self, selector)

    @property
    def inner_html(self) -> str:
        return "".join(c.serialize() for c in self.children)

    @inner_html.setter
    def inner_html(self, markup: Any) -> None:
        from .markup import parse_fragment
        self._replace_children(parse_fragment("" if markup is None else to_js_string(markup), self.owner_document))


def _adopt(node: Node, doc: "Document") -> None:
    node.owner_document = doc
    if isinstance(node, ParentNode):
        for c in node.children:
            _adopt(c, doc)


# property name (lower-cased) -> Element attribute
_PROPERTY_ALIASES = {
    "innertext": "inner_text",
    "innerhtml": "inner_html",
    "textcontent": "text_content",
    "outerhtml": "outer_html",
    "value": "value",
    "id": "id",
    "classname": "class_name",
    "tagname": "tag_name",
    "hidden": "hidden",
    "style": "style",
    "parentnode": "parent",
    "parentelement": "parent",
    "children": "element_children",
}
_READONLY_PROPERTIES = frozenset({"outer_html", "tag_name", "parent", "element_children"})


class Element(ParentNode, EventTarget):
    def __init__(self, tag: str, attributes: Optional[Dict[str, Any]] = None, owner_document: Optional["Document"] = None):
        super().__init__(owner_document)
        self.tag = tag.lower()
        self._attrs: Dict[str, str] = {}
        self.style = Style()
        self.properties: Dict[str, Any] = {}
        self._value: Any = None
        self._has_value = False
        for k, v in (attributes or {}).items():
            self.set_attribute(k, v)

    # ---------- attributes ----------
    @property
    def attributes(self) -> Dict[str, str]:
        attrs = dict(self._attrs)
        if len(self.style):
            attrs["style"] = self.style.css_text
        return attrs

    def get_attribute(self, name: str) -> Optional[str]:
        name = name.lower()
        if name == "style":
            return self.style.css_text if len(self.style) else None
        return self._attrs.get(name)

    def set_attribute(self, name: str, value: Any) -> None:
        name = name.lower()
        text = "" if value is None else to_js_string(value)
        if name == "style":
            self.style.css_text = text
            return
        self._attrs[name] = text

    def has_attribute(self, name: str) -> bool:
        return self.get_attribute(name) is not None

    def remove_attribute(self, name: str) -> None:
        name = name.lower()
        if name == "style":
            self.style.css_text = ""
        self._attrs.pop(name, None)

    @property
    def id(self) -> str:
        return self._attrs.get("id", "")

    @id.setter
    def id(self, value: Any) -> None:
        self.set_attribute("id", value)

    @property
    def class_name(self) -> str:
        return self._attrs.get("class", "")

    @class_name.setter
    def class_name(self, value: Any) -> None:
        self.set_attribute("class", value)

    @property
    def class_list(self) -> List[str]:
        return self.class_name.split()

    @property
    def tag_name(self) -> str:
        return self.tag.upper()

    # ---------- rendered content ----------
    @property
    def inner_text(self) -> str:
        return self.text_content

    @inner_text.setter
    def inner_text(self, value: Any) -> None:
        self.text_content = value

    @property
    def value(self) -> Any:
        if self._has_value:
            return self._value
        return self._attrs.get("value", "")

    @value.setter
    def value(self, v: Any) -> None:
        self._value = v
        self._has_value = True

    @property
    def hidden(self) -> bool:
        return self.style.display == "none"

    @hidden.setter
    def hidden(self, flag: Any) -> None:
        self.style.display = "none" if flag else ""

    @property
    def outer_html(self) -> str:
        return self.serialize()

    # ---------- generic property access ----------
    def get_property(self, name: str) -> Any:
        key = _PROPERTY_ALIASES.get(name.lower())
        if key is not None:
            return getattr(self, key)
        if name in self.properties:
            return self.properties[name]
        return self.get_attribute(name)

    def set_property(self, name: str, value: Any) -> None:
        key = _PROPERTY_ALIASES.get(name.lower())
        if key is None:
            self.properties[name] = value
        elif key == "style":
            self.style.css_text = to_js_string(value)
        elif key not in _READONLY_PROPERTIES:
            setattr(self, key, value)

    def matches(self, selector: str) -> bool:
        from .selectors import matches
        return matches(self, selector)

    def serialize(self) -> str:
        parts = [self.tag]
        for k, v in self.attributes.items():
            parts.append(f'{k}="{html.escape(v, quote=True)}"')
        open_tag = "<" + " ".join(parts) + ">"
        if self.tag in VOID_ELEMENTS:
            return open_tag
        return f"{open_tag}{self.inner_html}</{self.tag}>"

    def __repr__(self):
        ident = f"#{self.id}" if self.id else ""
        return f"<Element {self.tag}{ident}>"


class Document(ParentNode, EventTarget):
    def __init__(self):
        super().__init__(None)
        self.owner_document = self
        self._observers: List[Callable[[Node], None]] = []

    def create_element(self, tag: str) -> Element:
        return Element(tag, owner_document=self)

    def create_text_node(self, data: str) -> Text:
        return Text(data, owner_document=self)

    @property
    def body(self) -> Optional[Element]:
        return next((e for e in self.iter_descendants() if e.tag == "body"), None)

    def get_element_by_id(self, element_id: Optional[str]) -> Optional[Element]:
        if not element_id:
            return None
        return next((e for e in self.iter_descendants() if e.id == element_id), None)

    def resolve(self, ref: Optional[str]) -> Optional[Element]:
        """Id lookup first, then selector lookup; an invalid selector resolves to nothing."""
        if not ref:
            return None
        found = self.get_element_by_id(ref)
        if found is not None:
            return found
        try:
            return self.query_selector(ref)
        except SelectorError:
            return None

    # ---------- insertion notifications ----------
    def observe(self, callback: Callable[[Node], None]) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def disconnect(self, callback: Callable[[Node], None]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify_inserted(self, node: Node) -> None:
        for cb in list(self._observers):
            cb(node)

    def serialize(self) -> str:
        return self.inner_html

    def __repr__(self):
        return "<Document>"


class Window(EventTarget):
    """Global object: the flat binding space plus window-level events."""

    def __init__(self, document: Document):
        self.document = document
        self.bindings: Dict[str, Any] = {"window": self, "document": document}

    def __repr__(self):
        return "<Window>"
