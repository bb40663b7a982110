import pytest
from pydantic import ValidationError

from domscript.config import Settings


def test_defaults():
    s = Settings()
    assert s.max_loop_iterations == 10_000
    assert s.loop_timeout_s is None
    assert s.publish_globals is True
    assert s.log_level == "INFO"


def test_from_env_reads_prefixed_variables():
    env = {
        "DOMSCRIPT_MAX_LOOP_ITERATIONS": "25",
        "DOMSCRIPT_LOOP_TIMEOUT": "0.5",
        "DOMSCRIPT_AUTO_APPROVE": "true",
        "DOMSCRIPT_OBSERVE": "0",
        "DOMSCRIPT_LOG_LEVEL": "debug",
        "UNRELATED": "x",
    }
    s = Settings.from_env(env)
    assert s.max_loop_iterations == 25
    assert s.loop_timeout_s == 0.5
    assert s.auto_approve is True
    assert s.observe_mutations is False
    assert s.log_level == "DEBUG"


def test_overrides_win_over_environment():
    s = Settings.from_env({"DOMSCRIPT_MAX_CALL_DEPTH": "5"}, max_call_depth=9)
    assert s.max_call_depth == 9


@pytest.mark.parametrize("raw", ["0", "off", "none", ""])
def test_loop_budget_can_be_disabled(raw):
    assert Settings.from_env({"DOMSCRIPT_MAX_LOOP_ITERATIONS": raw}).max_loop_iterations is None


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        Settings.from_env({"DOMSCRIPT_MAX_CALL_DEPTH": "deep"})
    with pytest.raises(ValidationError):
        Settings(max_loop_iterations=-3)


def test_settings_are_frozen():
    s = Settings()
    with pytest.raises(ValidationError):
        s.max_call_depth = 2
