class DomScriptError(Exception):
    pass

class ParseError(DomScriptError):
    pass

class SelectorError(DomScriptError):
    """Raised when a CSS selector cannot be parsed or uses unsupported syntax."""
    pass

class ExpressionError(DomScriptError):
    """Raised when an attribute expression fails to parse or evaluate."""
    pass

class DirectiveError(DomScriptError):
    """Raised when a directive's attributes are malformed."""
    pass

class HierarchyError(DomScriptError):
    """Raised when a node would be inserted into itself or its own descendant."""
    pass

class LoopLimitError(DomScriptError):
    """Raised when a while/for loop exceeds its iteration or time budget."""
    pass

class CallDepthError(DomScriptError):
    """Raised when nested function invocations exceed the configured depth."""
    pass
