"""
Test configuration and fixtures for the domscript test suite.
"""
import sys
import pytest
from pathlib import Path
from typing import List

from loguru import logger

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domscript.config import Settings
from domscript.host import ScriptedHost
from domscript.runtime import Interpreter


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the DOMSCRIPT_* environment of the test run."""
    return Settings(max_loop_iterations=50)


@pytest.fixture
def host() -> ScriptedHost:
    return ScriptedHost()


@pytest.fixture
def interp(settings, host) -> Interpreter:
    return Interpreter(host=host, settings=settings)


@pytest.fixture
def run_markup(interp):
    """Load markup into the interpreter and start it."""
    def _run(markup: str) -> Interpreter:
        interp.load(markup)
        interp.start()
        return interp
    return _run


@pytest.fixture
def log_records():
    """Capture loguru messages as 'LEVEL message' strings."""
    records: List[str] = []
    handler_id = logger.add(lambda m: records.append(f"{m.record['level'].name} {m.record['message']}"), level="DEBUG")
    yield records
    logger.remove(handler_id)
