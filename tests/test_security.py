"""
Security tests for domscript.
Expression text is parsed by a restricted grammar; nothing reaches the Python interpreter.
"""
import pytest

from domscript.errors import ExpressionError
from domscript.expressions import Evaluator, parse_expression
from domscript.namespace import Namespace


@pytest.fixture
def evaluator():
    return Evaluator(Namespace())


@pytest.mark.parametrize("src", [
    "__import__('os').system('echo pwned')",
    "open('/etc/passwd').read()",
    "eval('1+1')",
    "(lambda: 1)()",
    "[x for x in range(3)]",
])
def test_python_code_is_rejected(evaluator, src):
    with pytest.raises(ExpressionError):
        evaluator.evaluate(src)


def test_condition_with_python_code_is_false(evaluator, log_records):
    assert evaluator.evaluate_condition("__import__('os') or True") is False
    assert any(r.startswith("ERROR") for r in log_records)


def test_value_with_python_code_stays_literal(evaluator):
    src = "__import__('os').getcwd() + '/x'"
    assert evaluator.evaluate_value(src) == src


def test_dunder_member_access_is_inert(evaluator):
    evaluator.namespace.declare_variable("s", "text")
    assert evaluator.evaluate("s.__class__") is None
    assert evaluator.evaluate("s.length") == 4


def test_variable_names_are_not_substituted_inside_other_names(evaluator):
    # 'a' must not be rewritten inside 'ab' or inside string literals
    evaluator.namespace.declare_variable("a", 1)
    evaluator.namespace.declare_variable("ab", 10)
    assert evaluator.evaluate("ab + a") == 11
    assert evaluator.evaluate("'a' + a") == "a1"


def test_deeply_nested_input_does_not_crash(evaluator):
    src = "(" * 200 + "1" + ")" * 200
    try:
        assert evaluator.evaluate(src) == 1
    except ExpressionError:
        pass


def test_malformed_input_rejected():
    for src in ["", "1 +", "(1", "a ==", "'unterminated"]:
        with pytest.raises(ExpressionError):
            parse_expression(src)
