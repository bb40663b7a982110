from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .dom import Element


@dataclass(frozen=True)
class TargetContext:
    """The host node scoped directives act on, threaded through dispatch.

    Scope-opening directives hand their children ``context.enter(node)``;
    every other directive passes its own context down unchanged.
    """
    target: Optional[Element] = None
    parent: Optional["TargetContext"] = None

    def enter(self, target: Element) -> "TargetContext":
        return TargetContext(target=target, parent=self)

    def resolve(self) -> Optional[Element]:
        frame: Optional[TargetContext] = self
        while frame is not None:
            if frame.target is not None:
                return frame.target
            frame = frame.parent
        return None

    @property
    def depth(self) -> int:
        n, frame = 0, self.parent
        while frame is not None:
            n, frame = n + 1, frame.parent
        return n


ROOT = TargetContext()


def resolve_target(context: Optional[TargetContext]) -> Optional[Element]:
    """Node a scoped action applies to; None outside every scope."""
    return context.resolve() if context is not None else None
