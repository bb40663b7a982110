from domscript.context import ROOT, TargetContext, resolve_target
from domscript.dom import Element
from domscript.namespace import Function, Namespace


def test_redeclaration_overwrites():
    ns = Namespace()
    ns.declare_variable("x", 1)
    ns.declare_variable("x", 2)
    assert ns.lookup_variable("x") == 2
    assert ns.snapshot() == {"x": 2}


def test_variable_and_function_may_share_a_name():
    ns = Namespace()
    fn = Function("dup")
    ns.declare_variable("dup", 5)
    ns.declare_function("dup", fn)
    assert ns.lookup_variable("dup") == 5
    assert ns.lookup_function("dup") is fn
    # the flat global space holds whichever was declared last
    assert ns.bindings["dup"] is fn


def test_lookup_absent():
    ns = Namespace()
    assert ns.lookup_variable("nope") is None
    assert ns.lookup_variable("nope", default=0) == 0
    assert ns.lookup_function(None) is None
    assert not ns.has_variable("nope")


def test_invoke_passes_args_to_runner():
    seen = []
    ns = Namespace()
    ns.declare_function("f", Function("f", runner=lambda fn, args: seen.append((fn.name, args))))
    assert ns.invoke("f", [1, 2]) is True
    assert seen == [("f", (1, 2))]
    assert ns.invoke("g") is False


def test_host_names_are_protected(log_records):
    bindings = {"document": "host-doc"}
    ns = Namespace(bindings)
    ns.declare_variable("document", "mine")
    ns.declare_variable("other", 1)
    assert bindings == {"document": "host-doc", "other": 1}
    assert ns.lookup_variable("document") == "mine"
    assert any(r.startswith("WARNING") for r in log_records)


def test_context_chain():
    a, b = Element("div"), Element("p")
    outer = ROOT.enter(a)
    assert resolve_target(ROOT) is None
    assert resolve_target(None) is None
    assert resolve_target(outer) is a
    # a frame without its own target inherits from its parent
    passthrough = TargetContext(parent=outer)
    assert resolve_target(passthrough) is a
    inner = passthrough.enter(b)
    assert resolve_target(inner) is b
    assert inner.depth == 3
    assert resolve_target(outer) is a
