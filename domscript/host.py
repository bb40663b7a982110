"""Host environment services used by the alert/confirm/prompt/log directives."""

from __future__ import annotations
from collections import deque
from typing import Any, Deque, Iterable, List, Optional, Tuple

from .types import format_value


class HostServices:
    """Modal dialogs and a logging sink. Subclasses decide how to present them."""

    def alert(self, message: str) -> None:
        raise NotImplementedError

    def confirm(self, message: str) -> bool:
        raise NotImplementedError

    def prompt(self, message: str, default: str = "") -> Optional[str]:
        raise NotImplementedError

    def log(self, value: Any) -> None:
        raise NotImplementedError


class ConsoleHost(HostServices):
    """Terminal implementation: print for output, input() for answers."""

    def __init__(self, auto_approve: bool = False, output=print, read=input):
        self.auto_approve = auto_approve
        self._out = output
        self._read = read

    def alert(self, message: str) -> None:
        self._out(f"[alert] {message}")

    def confirm(self, message: str) -> bool:
        if self.auto_approve:
            self._out(f"[confirm] {message} -> auto-approved")
            return True
        try:
            resp = self._read(f"[confirm] {message} [y/N] ").strip().lower()
        except EOFError:
            return False
        return resp in ("y", "yes")

    def prompt(self, message: str, default: str = "") -> Optional[str]:
        suffix = f" [{default}]" if default else ""
        try:
            resp = self._read(f"[prompt] {message}{suffix} ")
        except EOFError:
            return None
        return resp if resp != "" else default

    def log(self, value: Any) -> None:
        self._out(format_value(value))


class ScriptedHost(HostServices):
    """Headless host with queued answers; records everything it was asked."""

    def __init__(self, confirms: Iterable[bool] = (), prompts: Iterable[Optional[str]] = ()):
        self._confirms: Deque[bool] = deque(confirms)
        self._prompts: Deque[Optional[str]] = deque(prompts)
        self.alerts: List[str] = []
        self.confirms: List[str] = []
        self.prompts: List[Tuple[str, str]] = []
        self.logs: List[Any] = []

    def alert(self, message: str) -> None:
        self.alerts.append(message)

    def confirm(self, message: str) -> bool:
        self.confirms.append(message)
        # a dismissed dialog answers false
        return self._confirms.popleft() if self._confirms else False

    def prompt(self, message: str, default: str = "") -> Optional[str]:
        self.prompts.append((message, default))
        return self._prompts.popleft() if self._prompts else None

    def log(self, value: Any) -> None:
        self.logs.append(value)
