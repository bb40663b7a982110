from __future__ import annotations
from dataclasses import dataclass
import functools
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from lark import Lark, Tree, Token
from lark.exceptions import LarkError

from .dom import Element, ParentNode
from .errors import SelectorError

GRAMMAR_PATH = Path(__file__).with_name("selectors.lark")

_parser = None

Predicate = Callable[[Element], bool]


def _load_parser() -> Lark:
    global _parser
    if _parser is None:
        grammar = GRAMMAR_PATH.read_text(encoding="utf-8")
        _parser = Lark(grammar, start="start", parser="lalr")
    return _parser


@dataclass(frozen=True)
class ComplexSelector:
    # compounds[i] is joined to compounds[i + 1] by combinators[i]
    compounds: Tuple[Tuple[Predicate, ...], ...]
    combinators: Tuple[str, ...]

    def matches(self, el: Element) -> bool:
        return self._match_at(el, len(self.compounds) - 1)

    def _match_at(self, el: Optional[Element], i: int) -> bool:
        if el is None or not all(p(el) for p in self.compounds[i]):
            return False
        if i == 0:
            return True
        comb = self.combinators[i - 1]
        if comb == ">":
            return self._match_at(_parent_element(el), i - 1)
        if comb == " ":
            anc = _parent_element(el)
            while anc is not None:
                if self._match_at(anc, i - 1):
                    return True
                anc = _parent_element(anc)
            return False
        if comb == "+":
            return self._match_at(_previous_sibling(el), i - 1)
        if comb == "~":
            sib = _previous_sibling(el)
            while sib is not None:
                if self._match_at(sib, i - 1):
                    return True
                sib = _previous_sibling(sib)
            return False
        raise SelectorError(f"Unknown combinator {comb!r}")


@dataclass(frozen=True)
class SelectorList:
    text: str
    selectors: Tuple[ComplexSelector, ...]

    def matches(self, el: Element) -> bool:
        return any(s.matches(el) for s in self.selectors)


def _parent_element(el: Element) -> Optional[Element]:
    return el.parent if isinstance(el.parent, Element) else None


def _siblings(el: Element) -> List[Element]:
    return el.parent.element_children if isinstance(el.parent, ParentNode) else [el]


def _previous_sibling(el: Element) -> Optional[Element]:
    sibs = _siblings(el)
    idx = sibs.index(el)
    return sibs[idx - 1] if idx > 0 else None


def _attr_predicate(name: str, op: str, expected: str) -> Predicate:
    def check(el: Element) -> bool:
        actual = el.get_attribute(name)
        if actual is None:
            return False
        if op == "=":
            return actual == expected
        if op == "~=":
            return expected in actual.split()
        if op == "^=":
            return bool(expected) and actual.startswith(expected)
        if op == "$=":
            return bool(expected) and actual.endswith(expected)
        if op == "*=":
            return bool(expected) and expected in actual
        if op == "|=":
            return actual == expected or actual.startswith(expected + "-")
        return False
    return check


_PSEUDO_CLASSES = {
    "first-child": lambda el: _siblings(el)[0] is el,
    "last-child": lambda el: _siblings(el)[-1] is el,
    "only-child": lambda el: len(_siblings(el)) == 1,
    "empty": lambda el: not el.children,
}


def _predicate(node: Tree) -> Predicate:
    kind = node.data
    args = [str(c) for c in node.children if isinstance(c, Token)]
    if kind == "tag":
        tag = args[0].lower()
        return lambda el: el.tag == tag
    if kind == "universal":
        return lambda el: True
    if kind == "id_sel":
        ident = args[0]
        return lambda el: el.id == ident
    if kind == "class_sel":
        cls = args[0]
        return lambda el: cls in el.class_list
    if kind == "attr_exists":
        name = args[0].lower()
        return lambda el: el.has_attribute(name)
    if kind == "attr_match":
        name, op, raw = args
        if raw[:1] in ("'", '"'):
            raw = raw[1:-1]
        return _attr_predicate(name.lower(), op, raw)
    if kind == "pseudo":
        pseudo = _PSEUDO_CLASSES.get(args[0].lower())
        if pseudo is None:
            raise SelectorError(f"Unsupported pseudo-class ':{args[0]}'")
        return pseudo
    raise SelectorError(f"Unsupported selector part {kind}")


def _build_complex(node: Tree) -> ComplexSelector:
    compounds: List[Tuple[Predicate, ...]] = []
    combinators: List[str] = []
    for child in node.children:
        if child.data == "compound":
            compounds.append(tuple(_predicate(part) for part in child.children))
        elif child.data == "combinator":
            tok = child.children[0]
            combinators.append(str(tok).strip() or " ")
    return ComplexSelector(tuple(compounds), tuple(combinators))


@functools.lru_cache(maxsize=256)
def compile_selector(text: str) -> SelectorList:
    source = (text or "").strip()
    if not source:
        raise SelectorError("Empty selector")
    try:
        tree = _load_parser().parse(source)
    except LarkError as e:
        raise SelectorError(f"Invalid selector {text!r}: {e}") from e
    selector_list = tree.children[0]
    complexes = tuple(_build_complex(c) for c in selector_list.children if isinstance(c, Tree))
    return SelectorList(source, complexes)


def select(root: ParentNode, selector: str) -> List[Element]:
    """All descendants of root matching selector, in document order."""
    compiled = compile_selector(selector)
    return [el for el in root.iter_descendants() if compiled.matches(el)]


def matches(el: Element, selector: str) -> bool:
    return compile_selector(selector).matches(el)
