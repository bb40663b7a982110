"""Expression evaluator for directive attributes.

Conditions, values and for-loop clauses are parsed with a restricted
grammar (see ``grammar.lark``) and evaluated against the namespace.
Variables are resolved by name while evaluating; no source text is ever
rewritten or handed to the Python interpreter.
"""

from __future__ import annotations
import functools
import math
from pathlib import Path
import re
from typing import Any, Dict, Optional

from lark import Lark, Tree, Token
from lark.exceptions import LarkError
from loguru import logger

from .dom import Element
from .errors import ExpressionError
from .types import is_number, js_truthy, to_js_string, to_number

GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")

# characters that mark a value attribute as a computed expression
ARITHMETIC_OPERATORS = ("+", "-", "*", "/")

CONSTANTS: Dict[str, Any] = {"NaN": math.nan, "Infinity": math.inf}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)

_parser = None


def _load_parser() -> Lark:
    global _parser
    if _parser is None:
        grammar = GRAMMAR_PATH.read_text(encoding="utf-8")
        _parser = Lark(grammar, start=["expression", "statements"], parser="lalr")
    return _parser


@functools.lru_cache(maxsize=512)
def parse_expression(text: str) -> Tree:
    try:
        return _load_parser().parse(text, start="expression")
    except LarkError as e:
        raise ExpressionError(f"Cannot parse expression {text!r}: {e}") from e


@functools.lru_cache(maxsize=256)
def parse_statements(text: str) -> Tree:
    try:
        return _load_parser().parse(text, start="statements")
    except LarkError as e:
        raise ExpressionError(f"Cannot parse statement {text!r}: {e}") from e


def _unescape(body: str) -> str:
    def repl(m):
        esc = m.group(1)
        if esc.startswith("u") and len(esc) == 5:
            return chr(int(esc[1:], 16))
        return _ESCAPES.get(esc, esc)
    return _ESCAPE_RE.sub(repl, body)


def js_add(a: Any, b: Any) -> Any:
    if isinstance(a, (str, list, dict, Element)) or isinstance(b, (str, list, dict, Element)):
        return to_js_string(a) + to_js_string(b)
    return to_number(a) + to_number(b)


def loose_equals(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    if isinstance(a, bool):
        return loose_equals(1 if a else 0, b)
    if isinstance(b, bool):
        return loose_equals(a, 1 if b else 0)
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if is_number(a) and isinstance(b, str):
        return a == to_number(b)
    if isinstance(a, str) and is_number(b):
        return to_number(a) == b
    if isinstance(a, (list, dict)) and isinstance(b, str) or isinstance(a, str) and isinstance(b, (list, dict)):
        return to_js_string(a) == to_js_string(b)
    return a is b


def strict_equals(a: Any, b: Any) -> bool:
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, bool) and isinstance(b, bool):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return a is b


def _compare(op: str, a: Any, b: Any) -> bool:
    if not (isinstance(a, str) and isinstance(b, str)):
        a, b = to_number(a), to_number(b)
    if op == "<":
        return a < b
    if op == ">":
        return a > b
    if op == "<=":
        return a <= b
    if op == ">=":
        return a >= b
    raise ExpressionError(f"Unknown comparison {op}")


class Evaluator:
    """Evaluates attribute expressions against a :class:`Namespace`."""

    def __init__(self, namespace):
        self.namespace = namespace

    # ---------- entry points ----------
    def evaluate_condition(self, text: Any) -> bool:
        """Truthiness of a condition; failures are logged and read as false."""
        if text is None:
            logger.error("Condition evaluation failed: missing condition")
            return False
        if not isinstance(text, str):
            return js_truthy(text)
        try:
            return js_truthy(self.evaluate(text))
        except ExpressionError as e:
            logger.error("Condition evaluation failed for {!r}: {}", text, e)
            return False

    def evaluate_value(self, text: Any) -> Any:
        if not isinstance(text, str):
            return text
        if self.namespace.has_variable(text):
            return self.namespace.lookup_variable(text)
        if any(op in text for op in ARITHMETIC_OPERATORS):
            try:
                return self.evaluate(text)
            except ExpressionError as e:
                logger.debug("Value {!r} kept as literal: {}", text, e)
                return text
        return text

    def evaluate(self, text: str) -> Any:
        tree = parse_expression(text)
        return self._guarded(self._eval_expr, tree.children[0])

    def execute(self, text: str) -> Any:
        """Run `;`/`,` separated statements, returning the last result."""
        tree = parse_statements(text)
        result = None
        for stmt in tree.children:
            result = self._guarded(self._exec_stmt, stmt)
        return result

    def _guarded(self, fn, node):
        try:
            return fn(node)
        except ExpressionError:
            raise
        except (TypeError, ValueError, ZeroDivisionError, OverflowError, RecursionError) as e:
            raise ExpressionError(str(e)) from e

    # ---------- statements ----------
    def _exec_stmt(self, node: Tree) -> Any:
        dt = node.data
        if dt == "assign":
            name, op, expr = str(node.children[0]), str(node.children[1]), node.children[2]
            value = self._eval_expr(expr)
            if op != "=":
                current = self._lookup(name)
                value = self._apply_bin_op(op[:-1], current, value)
            self.namespace.declare_variable(name, value)
            return value
        if dt in ("postfix_update", "prefix_update"):
            if dt == "postfix_update":
                name, op = str(node.children[0]), str(node.children[1])
            else:
                op, name = str(node.children[0]), str(node.children[1])
            old = to_number(self._lookup(name))
            new = old + 1 if op == "++" else old - 1
            self.namespace.declare_variable(name, new)
            return old if dt == "postfix_update" else new
        return self._eval_expr(node)

    # ---------- expressions ----------
    def _lookup(self, name: str) -> Any:
        if self.namespace.has_variable(name):
            return self.namespace.lookup_variable(name)
        if name in CONSTANTS:
            return CONSTANTS[name]
        raise ExpressionError(f"{name} is not defined")

    def _eval_expr(self, node: Tree | Token) -> Any:
        if isinstance(node, Token):
            return str(node)
        dt = node.data
        if dt in ("or_expr", "and_expr", "eq_expr", "cmp_expr", "add_expr", "mul_expr"):
            return self._eval_binary_chain(node)
        if dt == "conditional":
            test, then, other = node.children
            return self._eval_expr(then) if js_truthy(self._eval_expr(test)) else self._eval_expr(other)
        if dt == "not_expr":
            return not js_truthy(self._eval_expr(node.children[0]))
        if dt == "neg":
            return -to_number(self._eval_expr(node.children[0]))
        if dt == "pos":
            return to_number(self._eval_expr(node.children[0]))
        if dt == "number":
            raw = str(node.children[0])
            return int(raw) if raw.isdigit() else float(raw)
        if dt == "string":
            return _unescape(str(node.children[0])[1:-1])
        if dt == "true":
            return True
        if dt == "false":
            return False
        if dt == "null":
            return None
        if dt == "name":
            return self._lookup(str(node.children[0]))
        if dt == "array":
            return [self._eval_expr(ch) for ch in node.children]
        if dt == "object":
            result: Dict[str, Any] = {}
            for pair in node.children:
                key_tok, val = pair.children
                key = str(key_tok)
                if key_tok.type == "STRING":
                    key = _unescape(key[1:-1])
                result[key] = self._eval_expr(val)
            return result
        if dt == "member":
            return self._member(self._eval_expr(node.children[0]), str(node.children[1]))
        if dt == "index":
            return self._member(self._eval_expr(node.children[0]), self._eval_expr(node.children[1]))
        raise ExpressionError(f"Unsupported expression node: {dt}")

    def _eval_binary_chain(self, node: Tree) -> Any:
        # children alternate: operand (op operand)*
        acc = self._eval_expr(node.children[0])
        i = 1
        while i < len(node.children):
            op = str(node.children[i].children[0])
            if op == "&&":
                if not js_truthy(acc):
                    return acc
                acc = self._eval_expr(node.children[i + 1])
            elif op == "||":
                if js_truthy(acc):
                    return acc
                acc = self._eval_expr(node.children[i + 1])
            else:
                acc = self._apply_bin_op(op, acc, self._eval_expr(node.children[i + 1]))
            i += 2
        return acc

    def _apply_bin_op(self, op: str, a: Any, b: Any) -> Any:
        if op == "+":
            return js_add(a, b)
        if op in ("-", "*", "/", "%"):
            x, y = to_number(a), to_number(b)
            if op == "-":
                return x - y
            if op == "*":
                return x * y
            if y == 0:
                raise ExpressionError(f"Division by zero in {to_js_string(a)} {op} {to_js_string(b)}")
            if op == "/":
                return x / y
            rem = math.fmod(x, y)
            return int(rem) if isinstance(x, int) and isinstance(y, int) else rem
        if op == "==":
            return loose_equals(a, b)
        if op == "!=":
            return not loose_equals(a, b)
        if op == "===":
            return strict_equals(a, b)
        if op == "!==":
            return not strict_equals(a, b)
        if op in ("<", ">", "<=", ">="):
            return _compare(op, a, b)
        raise ExpressionError(f"Unknown operator {op}")

    def _member(self, obj: Any, key: Any) -> Any:
        if obj is None:
            raise ExpressionError(f"Cannot read property {to_js_string(key)!r} of null")
        if isinstance(obj, Element):
            return obj.get_property(to_js_string(key))
        if isinstance(obj, dict):
            return obj.get(key if isinstance(key, str) else to_js_string(key))
        if isinstance(obj, (list, str)):
            if key == "length":
                return len(obj)
            idx: Optional[float] = None
            if is_number(key):
                idx = key
            elif isinstance(key, str) and key.isdigit():
                idx = int(key)
            if idx is not None and float(idx).is_integer() and 0 <= idx < len(obj):
                return obj[int(idx)]
            return None
        return None
