"""Initial tree scan and the bridge that runs directives inserted later."""

from __future__ import annotations
from collections import deque
from contextlib import contextmanager
from typing import Callable, Deque, List

from loguru import logger

from .dom import Document, Element, Node, ParentNode
from .types import DIRECTIVE_TAGS


def is_directive(node: Node) -> bool:
    return isinstance(node, Element) and node.tag in DIRECTIVE_TAGS


def find_directives(root: Node) -> List[Element]:
    """Top-level directive elements under root, in document order.

    Directives nested in another directive are left to their parent's
    handler; a root that is itself a directive is returned alone.
    """
    if is_directive(root):
        return [root]
    found: List[Element] = []

    def walk(parent: ParentNode) -> None:
        for child in list(parent.children):
            if not isinstance(child, Element):
                continue
            if child.tag in DIRECTIVE_TAGS:
                found.append(child)
            else:
                walk(child)

    if isinstance(root, ParentNode):
        walk(root)
    return found


def scan(root: Node, dispatch: Callable[[Element], None]) -> int:
    directives = find_directives(root)
    for el in directives:
        dispatch(el)
    return len(directives)


class MutationBridge:
    """Feeds nodes inserted into the document back into the interpreter.

    While a pass holds the bridge, insertions are queued; they are run once
    the outermost hold is released, so a triggered pass never interleaves
    with the pass that caused it.
    """

    def __init__(self, document: Document, run: Callable[[Node], None]):
        self.document = document
        self.run = run
        self.pending: Deque[Element] = deque()
        self.connected = False
        self._holds = 0
        self._flushing = False

    def connect(self) -> None:
        self.document.observe(self._on_inserted)
        self.connected = True

    def disconnect(self) -> None:
        self.document.disconnect(self._on_inserted)
        self.connected = False
        self.pending.clear()

    @property
    def busy(self) -> bool:
        return self._holds > 0

    @contextmanager
    def hold(self):
        self._holds += 1
        try:
            yield self
        finally:
            self._holds -= 1
            if self._holds == 0:
                self.flush()

    def _on_inserted(self, node: Node) -> None:
        if not isinstance(node, Element):
            return
        self.pending.append(node)
        if not self.busy:
            self.flush()

    def flush(self) -> None:
        if self._flushing:
            return
        self._flushing = True
        try:
            while self.pending:
                node = self.pending.popleft()
                if not node.is_connected:
                    continue
                if find_directives(node):
                    logger.debug("Running directives inserted with {!r}", node)
                    self.run(node)
        finally:
            self._flushing = False
