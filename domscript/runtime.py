from __future__ import annotations
import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from opentelemetry import trace

from .config import Settings
from .context import ROOT, TargetContext, resolve_target
from .dom import Document, Element, Node, Window
from .errors import CallDepthError, DirectiveError, DomScriptError, LoopLimitError
from .expressions import Evaluator
from .host import ConsoleHost, HostServices
from .markup import load_document
from .namespace import Function, Namespace
from .observer import MutationBridge, find_directives, scan
from .types import DirectiveKind, ValueTag, parse_literal, to_js_string

_otel_tracer = trace.get_tracer(__name__)

# attributes of <set> that never become mutations on the target
_SET_SKIPPED = frozenset({"class", "id", "style"})
_SET_CONTENT = frozenset({"innertext", "innerhtml", "value"})


class LoopBudget:
    """Iteration and wall-clock guard for a single while/for directive."""

    def __init__(self, kind: str, max_iterations: Optional[int], timeout_s: Optional[float]):
        self.kind = kind
        self.max_iterations = max_iterations
        self.timeout_s = timeout_s
        self.iterations = 0
        self.t0 = time.perf_counter()

    def tick(self) -> None:
        self.iterations += 1
        if self.max_iterations is not None and self.iterations > self.max_iterations:
            raise LoopLimitError(f"{self.kind} loop exceeded iteration limit ({self.max_iterations})")
        if self.timeout_s is not None and time.perf_counter() - self.t0 > self.timeout_s:
            raise LoopLimitError(f"{self.kind} loop exceeded time limit ({self.timeout_s}s)")


class Interpreter:
    def __init__(self, document: Optional[Document] = None, host: Optional[HostServices] = None,
                 settings: Optional[Settings] = None, tracer=None):
        self.settings = settings if settings is not None else Settings.from_env()
        self.document = document if document is not None else Document()
        self.window = Window(self.document)
        self.host = host if host is not None else ConsoleHost(auto_approve=self.settings.auto_approve)
        self.namespace = Namespace(self.window.bindings, publish=self.settings.publish_globals)
        self.evaluator = Evaluator(self.namespace)
        self.bridge = MutationBridge(self.document, self.run)
        self.tracer = tracer if tracer is not None else _otel_tracer
        self.console: List[str] = []
        self.metrics: Dict[str, Any] = {"passes": 0, "directives": 0, "kinds": {}, "loop_iterations": 0, "calls": 0, "errors": 0}
        self._call_depth = 0

    def log(self, msg: str):
        self.console.append(msg)
        logger.info(msg)

    def load(self, source: str | Path) -> Document:
        """Parse markup (text or a file path) and make it the interpreter's document."""
        if self.bridge.connected:
            self.bridge.disconnect()
        self.document = load_document(source)
        self.window.document = self.document
        self.window.bindings["document"] = self.document
        self.bridge = MutationBridge(self.document, self.run)
        return self.document

    # ---------- Execution entry ----------
    def start(self) -> Document:
        """Document-ready: observe later insertions, then run the initial scan."""
        if self.settings.observe_mutations and not self.bridge.connected:
            self.bridge.connect()
        self.run(self.document)
        self.log(f"[metrics] {self.metrics}")
        return self.document

    def run(self, root: Optional[Node] = None) -> int:
        """One top-level pass over root's directives. Returns how many were dispatched."""
        root = root if root is not None else self.document
        with self.bridge.hold():
            self.metrics["passes"] += 1
            with self.tracer.start_as_current_span("pass") as span:
                count = scan(root, self.dispatch)
                span.set_attribute("domscript.directives", count)
        return count

    def call(self, name: str, *args: Any) -> bool:
        return self.namespace.invoke(name, args)

    # ---------- Dispatch ----------
    def dispatch(self, element: Node, context: TargetContext = ROOT) -> None:
        if not isinstance(element, Element):
            return
        kind = DirectiveKind.for_tag(element.tag)
        if kind is None:
            return
        self.metrics["directives"] += 1
        self.metrics["kinds"][kind.value] = self.metrics["kinds"].get(kind.value, 0) + 1
        logger.debug("dispatch <{}> (scope depth {})", element.tag, context.depth)
        try:
            match kind:
                case DirectiveKind.Function:
                    self._exec_function(element, context)
                case DirectiveKind.Variable:
                    self._exec_variable(element, context)
                case DirectiveKind.AddEventListener:
                    self._exec_event_listener(element, context)
                case DirectiveKind.Call:
                    self._exec_call(element, context)
                case DirectiveKind.If:
                    self._exec_if(element, context)
                case DirectiveKind.For:
                    self._exec_for(element, context)
                case DirectiveKind.While:
                    self._exec_while(element, context)
                case DirectiveKind.GetElementById:
                    self._exec_scope(element, context, [self.document.get_element_by_id(element.get_attribute("target"))])
                case DirectiveKind.QuerySelector:
                    selector = element.get_attribute("selector")
                    self._exec_scope(element, context, [self.document.query_selector(selector)] if selector else [])
                case DirectiveKind.QuerySelectorAll:
                    selector = element.get_attribute("selector")
                    self._exec_scope(element, context, self.document.query_selector_all(selector) if selector else [])
                case DirectiveKind.Set:
                    self._exec_set(element, context)
                case DirectiveKind.Get:
                    self._exec_get(element, context)
                case DirectiveKind.Create:
                    self._exec_create(element, context)
                case DirectiveKind.Append:
                    self._exec_append(element, context)
                case DirectiveKind.Remove:
                    self._exec_remove(element, context)
                case DirectiveKind.Show | DirectiveKind.Hide | DirectiveKind.Toggle:
                    self._exec_visibility(kind, context)
                case DirectiveKind.Alert | DirectiveKind.Confirm | DirectiveKind.Prompt | DirectiveKind.Log:
                    self._exec_message(kind, element)
        except DomScriptError as e:
            self.metrics["errors"] += 1
            logger.warning("<{}> skipped: {}", element.tag, e)
        finally:
            # directive markup stays in the tree, inert and invisible
            element.style.display = "none"

    def _dispatch_children(self, element: Element, context: TargetContext) -> None:
        # ordinary markup between a block and its directives is passed through
        for child in element.element_children:
            for directive in find_directives(child):
                self.dispatch(directive, context)

    # ---------- Declarations ----------
    def _exec_function(self, element: Element, context: TargetContext):
        name = element.get_attribute("name")
        if not name:
            return
        fn = Function(name=name, body=list(element.element_children), runner=self._invoke_function)
        self.namespace.declare_function(name, fn)
        self.log(f"[function] {name} ({len(fn.body)} directives)")

    def _invoke_function(self, fn: Function, args: Sequence[Any]):
        if self._call_depth >= self.settings.max_call_depth:
            raise CallDepthError(f"Call depth limit ({self.settings.max_call_depth}) reached calling '{fn.name}'")
        if args:
            logger.debug("Function '{}' does not bind call arguments {!r}", fn.name, list(args))
        self.metrics["calls"] += 1
        self._call_depth += 1
        try:
            with self.bridge.hold():
                with self.tracer.start_as_current_span(f"call:{fn.name}"):
                    for child in fn.body:
                        for directive in find_directives(child):
                            self.dispatch(directive, ROOT)
        finally:
            self._call_depth -= 1

    def _exec_variable(self, element: Element, context: TargetContext):
        name = element.get_attribute("name")
        if not name:
            return
        tag = ValueTag.from_attr(element.get_attribute("type"))
        value = parse_literal(element.get_attribute("value"), tag)
        self.namespace.declare_variable(name, value)
        self.log(f"[variable] {name} = {to_js_string(value)} ({tag.value})")

    def _exec_event_listener(self, element: Element, context: TargetContext):
        target = element.get_attribute("target")
        event = element.get_attribute("event")
        fn = self.namespace.lookup_function(element.get_attribute("function"))
        if target == "window":
            node = self.window
        elif target == "document":
            node = self.document
        else:
            node = self.document.resolve(target)
        if node is None or fn is None or not event:
            logger.debug("addEventListener skipped: target={!r} event={!r} function={!r}", target, event, fn)
            return
        node.add_event_listener(event, fn)
        self.log(f"[listen] {target}:{event} -> {fn.name}")

    def _exec_call(self, element: Element, context: TargetContext):
        name = element.get_attribute("function")
        fn = self.namespace.lookup_function(name)
        if fn is None:
            logger.debug("call skipped: no function named {!r}", name)
            return
        args = self._parse_args(element.get_attribute("args"))
        self.log(f"[call] {name}")
        fn(*args)

    def _parse_args(self, raw: Optional[str]) -> List[Any]:
        if not raw:
            return []
        try:
            return json.loads(f"[{raw}]")
        except ValueError as e:
            raise DirectiveError(f"Invalid call arguments {raw!r}: {e}") from e

    # ---------- Control flow ----------
    def _exec_if(self, element: Element, context: TargetContext):
        if self.evaluator.evaluate_condition(element.get_attribute("condition")):
            self._dispatch_children(element, context)

    def _exec_while(self, element: Element, context: TargetContext):
        condition = element.get_attribute("condition")
        budget = LoopBudget("while", self.settings.max_loop_iterations, self.settings.loop_timeout_s)
        while self.evaluator.evaluate_condition(condition):
            budget.tick()
            self.metrics["loop_iterations"] += 1
            self._dispatch_children(element, context)

    def _exec_for(self, element: Element, context: TargetContext):
        init = element.get_attribute("init")
        condition = element.get_attribute("condition")
        increment = element.get_attribute("increment")
        if init:
            self.evaluator.execute(init)
        budget = LoopBudget("for", self.settings.max_loop_iterations, self.settings.loop_timeout_s)
        while self.evaluator.evaluate_condition(condition):
            budget.tick()
            self.metrics["loop_iterations"] += 1
            self._dispatch_children(element, context)
            if increment:
                self.evaluator.execute(increment)

    # ---------- Scoped host-tree actions ----------
    def _exec_scope(self, element: Element, context: TargetContext, targets: List[Optional[Element]]):
        for node in [t for t in targets if t is not None]:
            self._dispatch_children(element, context.enter(node))

    def _exec_set(self, element: Element, context: TargetContext):
        target = resolve_target(context)
        if target is None:
            return
        for name, raw in element.attributes.items():
            if name.startswith("data-"):
                target.set_attribute(name, raw)
            elif name in _SET_CONTENT:
                target.set_property(name, self.evaluator.evaluate_value(raw))
            elif name.startswith("style."):
                target.style[name[len("style."):]] = self.evaluator.evaluate_value(raw)
            elif name not in _SET_SKIPPED:
                target.set_property(name, self.evaluator.evaluate_value(raw))
        logger.debug("set on {!r}: {}", target, element.attributes)

    def _exec_get(self, element: Element, context: TargetContext):
        target = resolve_target(context)
        prop = element.get_attribute("property")
        variable = element.get_attribute("variable")
        if target is None or not prop or not variable:
            return
        value = target.get_property(prop)
        self.namespace.declare_variable(variable, value)
        self.log(f"[get] {variable} = {prop} of {target!r}")

    def _exec_create(self, element: Element, context: TargetContext):
        tag = element.get_attribute("tag")
        if not tag:
            return
        node = self.document.create_element(tag)
        variable = element.get_attribute("variable")
        if variable:
            self.namespace.declare_variable(variable, node)
        self.log(f"[create] <{node.tag}>" + (f" as {variable}" if variable else ""))
        self._dispatch_children(element, context.enter(node))

    def _exec_append(self, element: Element, context: TargetContext):
        target_ref = element.get_attribute("target")
        source_ref = element.get_attribute("source")
        target = self.document.resolve(target_ref) if target_ref else resolve_target(context)
        source = self._resolve_source(source_ref) if source_ref else resolve_target(context)
        if target is None or source is None:
            logger.debug("append skipped: target={!r} source={!r}", target_ref, source_ref)
            return
        target.append_child(source)
        self.log(f"[append] {source!r} -> {target!r}")

    def _resolve_source(self, ref: str) -> Optional[Node]:
        # a bound node (namespace, then global bindings) wins over a tree lookup
        for candidate in (self.namespace.lookup_variable(ref), self.namespace.lookup_global(ref)):
            if isinstance(candidate, Node) and not isinstance(candidate, Document):
                return candidate
        return self.document.resolve(ref)

    def _exec_remove(self, element: Element, context: TargetContext):
        target = resolve_target(context)
        if target is not None and target.parent is not None:
            target.remove()
            self.log(f"[remove] {target!r}")

    def _exec_visibility(self, kind: DirectiveKind, context: TargetContext):
        target = resolve_target(context)
        if target is None:
            return
        if kind == DirectiveKind.Show:
            target.style.display = ""
        elif kind == DirectiveKind.Hide:
            target.style.display = "none"
        else:
            target.style.display = "" if target.style.display == "none" else "none"

    # ---------- Host services ----------
    def _message(self, element: Element) -> Any:
        raw = element.get_attribute("message") or element.text_content.strip()
        return self.evaluator.evaluate_value(raw)

    def _exec_message(self, kind: DirectiveKind, element: Element):
        message = self._message(element)
        variable = element.get_attribute("variable")
        if kind == DirectiveKind.Log:
            self.host.log(message)
            self.log(f"[log] {to_js_string(message)}")
            return
        if kind == DirectiveKind.Alert:
            self.host.alert(to_js_string(message))
            return
        if kind == DirectiveKind.Confirm:
            result = self.host.confirm(to_js_string(message))
        else:
            default = self.evaluator.evaluate_value(element.get_attribute("default") or "")
            result = self.host.prompt(to_js_string(message), to_js_string(default))
        if variable:
            self.namespace.declare_variable(variable, result)
        self.log(f"[{kind.value}] {to_js_string(message)} -> {to_js_string(result)}")
