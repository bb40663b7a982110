from .config import Settings
from .context import ROOT, TargetContext
from .dom import Document, Element, Event, Text, Window
from .errors import (
    CallDepthError,
    DirectiveError,
    DomScriptError,
    ExpressionError,
    HierarchyError,
    LoopLimitError,
    ParseError,
    SelectorError,
)
from .expressions import Evaluator
from .host import ConsoleHost, HostServices, ScriptedHost
from .markup import load_document, parse_document, parse_fragment
from .namespace import Function, Namespace
from .runtime import Interpreter
from .types import DirectiveKind, ValueTag
