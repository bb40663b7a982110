from domscript import Interpreter, ScriptedHost, Settings
from domscript.markup import parse_document, parse_fragment
from domscript.observer import MutationBridge, find_directives


def test_find_directives_skips_nested():
    doc = parse_document("""
        <div><log message="a"></log></div>
        <function name="f"><log message="inner"></log></function>
        <section><if condition="true"><log message="b"></log></if></section>
    """)
    assert [d.tag for d in find_directives(doc)] == ["log", "function", "if"]


def test_find_directives_on_directive_root():
    doc = parse_document('<if condition="true"><log></log></if>')
    root = doc.element_children[0]
    assert find_directives(root) == [root]


def test_nested_directives_run_once(run_markup):
    rt = run_markup("""
        <function name="f"><log message="in function"></log></function>
        <if condition="true"><log message="in if"></log></if>
    """)
    assert rt.host.logs == ["in if"]


def test_inserted_directive_runs_after_start(run_markup):
    rt = run_markup('<div id="slot"></div>')
    slot = rt.document.get_element_by_id("slot")
    for node in parse_fragment('<p><log message="late"></log></p>', rt.document):
        slot.append_child(node)
    assert rt.host.logs == ["late"]
    assert rt.metrics["passes"] == 2


def test_insertion_during_pass_runs_after_it(run_markup):
    rt = run_markup("""
        <div id="slot"></div>
        <create tag="div" variable="box"><set innerHTML="<log message='inserted'></log>"></set></create>
        <append target="slot" source="box"></append>
        <log message="same pass"></log>
    """)
    assert rt.host.logs == ["same pass", "inserted"]


def test_no_observation_when_disabled():
    host = ScriptedHost()
    rt = Interpreter(host=host, settings=Settings(observe_mutations=False))
    rt.load('<div id="slot"></div>')
    rt.start()
    rt.document.get_element_by_id("slot").inner_html = '<log message="late"></log>'
    assert host.logs == []


def test_bridge_holds_and_flushes():
    doc = parse_document("<body></body>")
    ran = []
    bridge = MutationBridge(doc, ran.append)
    bridge.connect()
    with bridge.hold():
        doc.body.inner_html = "<log></log>"
        assert ran == []
        assert len(bridge.pending) == 1
    assert [n.tag for n in ran] == ["log"]
    bridge.disconnect()
    doc.body.inner_html = "<log></log>"
    assert len(ran) == 1


def test_removed_before_flush_is_skipped():
    doc = parse_document("<body></body>")
    ran = []
    bridge = MutationBridge(doc, ran.append)
    bridge.connect()
    with bridge.hold():
        doc.body.inner_html = "<log></log>"
        doc.body.inner_html = ""
    assert ran == []
