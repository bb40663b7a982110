from __future__ import annotations
from enum import Enum
import json
import math
import re
from typing import Any, Optional

from .errors import DirectiveError

# Declared type tags accepted by the <variable type="..."> attribute
class ValueTag(str, Enum):
    String = "string"
    Number = "number"
    Boolean = "boolean"
    Array = "array"
    Object = "object"

    @classmethod
    def from_attr(cls, raw: Optional[str]) -> "ValueTag":
        """Tags are case-sensitive; unknown or missing tags fall back to String."""
        if not raw:
            return cls.String
        try:
            return cls(raw.strip())
        except ValueError:
            return cls.String


class DirectiveKind(str, Enum):
    Function = "function"
    Variable = "variable"
    AddEventListener = "addeventlistener"
    Call = "call"
    If = "if"
    For = "for"
    While = "while"
    GetElementById = "getelementbyid"
    QuerySelector = "queryselector"
    QuerySelectorAll = "queryselectorall"
    Set = "set"
    Get = "get"
    Create = "create"
    Append = "append"
    Remove = "remove"
    Show = "show"
    Hide = "hide"
    Toggle = "toggle"
    Alert = "alert"
    Confirm = "confirm"
    Prompt = "prompt"
    Log = "log"

    @classmethod
    def for_tag(cls, tag: Optional[str]) -> Optional["DirectiveKind"]:
        if not tag:
            return None
        try:
            return cls(tag.lower())
        except ValueError:
            return None


DIRECTIVE_TAGS = frozenset(k.value for k in DirectiveKind)

_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|Infinity)")
# whole-string numeric forms accepted by Number(); no underscores, no inf/nan spellings
_JS_NUMBER = re.compile(r"^[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|Infinity)$")
_JS_RADIX = re.compile(r"^0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")


def parse_float(text: Optional[str]) -> float:
    """Leading-prefix float parse: '3.5px' -> 3.5, 'abc' -> nan."""
    if text is None:
        return math.nan
    m = _FLOAT_PREFIX.match(str(text))
    if not m:
        return math.nan
    return float(m.group(0).replace("Infinity", "inf"))


def parse_literal(text: Optional[str], tag: ValueTag) -> Any:
    if tag == ValueTag.Number:
        return parse_float(text)
    if tag == ValueTag.Boolean:
        return text == "true"
    if tag in (ValueTag.Array, ValueTag.Object):
        if text is None:
            return None
        try:
            return json.loads(text)
        except ValueError as e:
            raise DirectiveError(f"Invalid {tag.value} literal {text!r}: {e}") from e
    return text


def is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def format_number(v: float | int) -> str:
    if isinstance(v, int):
        return str(v)
    if math.isnan(v):
        return "NaN"
    if math.isinf(v):
        return "Infinity" if v > 0 else "-Infinity"
    if v.is_integer() and abs(v) < 1e21:
        return str(int(v))
    return repr(v)


def to_js_string(v: Any) -> str:
    """String form of a runtime value, the way the page would render it."""
    from .dom import Element, Text

    if v is None:
        return "null"
    if isinstance(v, bool):
        return "true" if v else "false"
    if is_number(v):
        return format_number(v)
    if isinstance(v, str):
        return v
    if isinstance(v, (list, tuple)):
        return ",".join("" if x is None else to_js_string(x) for x in v)
    if isinstance(v, dict):
        return "[object Object]"
    if isinstance(v, Element):
        return "[object HTMLElement]"
    if isinstance(v, Text):
        return "[object Text]"
    return str(v)


def to_number(v: Any) -> float | int:
    if isinstance(v, bool):
        return 1 if v else 0
    if is_number(v):
        return v
    if v is None:
        return 0
    if isinstance(v, str):
        s = v.strip()
        if not s:
            return 0
        if _JS_NUMBER.match(s):
            return float(s)
        if _JS_RADIX.match(s):
            return int(s, 0)
        return math.nan
    if isinstance(v, list):
        return to_number(to_js_string(v))
    return math.nan


def js_truthy(v: Any) -> bool:
    if v is None or v is False:
        return False
    if is_number(v):
        return not (v == 0 or (isinstance(v, float) and math.isnan(v)))
    if isinstance(v, str):
        return v != ""
    return True


def format_value(v: Any) -> str:
    """Console rendering: structured values as JSON, the rest as their string form."""
    if isinstance(v, (list, dict)):
        try:
            return json.dumps(v, ensure_ascii=False)
        except (TypeError, ValueError):
            return to_js_string(v)
    return to_js_string(v)
