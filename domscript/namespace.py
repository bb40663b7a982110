from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger

from .dom import Element

_MISSING = object()


@dataclass(eq=False)
class Function:
    """A declared <function>: its child directives, captured at declaration."""
    name: str
    body: List[Element] = field(default_factory=list)
    runner: Optional[Callable[["Function", Sequence[Any]], None]] = None

    def __call__(self, *args: Any) -> None:
        # usable directly as an event listener; arguments are not bound into the body
        if self.runner is not None:
            self.runner(self, args)

    def __repr__(self):
        return f"<Function {self.name} ({len(self.body)} directives)>"


class Namespace:
    """Variable and function bindings shared by every directive of a document.

    Bindings are mirrored into ``bindings`` (the window's flat global space)
    when ``publish`` is on. Names already present in ``bindings`` when the
    namespace is created belong to the host and are never overwritten.
    """

    def __init__(self, bindings: Optional[Dict[str, Any]] = None, publish: bool = True):
        self.variables: Dict[str, Any] = {}
        self.functions: Dict[str, Function] = {}
        self.bindings: Dict[str, Any] = bindings if bindings is not None else {}
        self.publish = publish
        self.host_names = frozenset(self.bindings)

    def declare_variable(self, name: str, value: Any) -> None:
        self.variables[name] = value
        self._publish(name, value)

    def declare_function(self, name: str, fn: Function) -> None:
        self.functions[name] = fn
        self._publish(name, fn)

    def has_variable(self, name: str) -> bool:
        return name in self.variables

    def lookup_variable(self, name: str, default: Any = None) -> Any:
        return self.variables.get(name, default)

    def lookup_function(self, name: Optional[str]) -> Optional[Function]:
        if not name:
            return None
        return self.functions.get(name)

    def lookup_global(self, name: str, default: Any = None) -> Any:
        return self.bindings.get(name, default)

    def snapshot(self) -> Dict[str, Any]:
        return dict(self.variables)

    def invoke(self, name: str, args: Sequence[Any] = ()) -> bool:
        """Run a declared function. Returns False when no such function exists."""
        fn = self.lookup_function(name)
        if fn is None:
            return False
        fn(*args)
        return True

    def _publish(self, name: str, value: Any) -> None:
        if not self.publish:
            return
        if name in self.host_names:
            logger.warning("'{}' is a host-provided global; binding kept local to the namespace", name)
            return
        self.bindings[name] = value
