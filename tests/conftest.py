"""Pytest configuration for restructure tests.

Shared fixtures: the bundled primitive library and the DOT test graphs.
"""

import logging
import pathlib
import sys

import pytest

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Add project root to path for all tests to ensure imports work
PROJECT_ROOT = pathlib.Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))
sys.path.insert(0, str(PROJECT_ROOT / "tests"))

TESTDATA_DIR = PROJECT_ROOT / "tests" / "testdata"


@pytest.fixture(scope="session")
def testdata_dir() -> pathlib.Path:
    """Directory holding the DOT graphs used by the tests."""
    return TESTDATA_DIR


@pytest.fixture(scope="session")
def library():
    """The bundled primitives in default priority order."""
    from restructure.dot import default_library

    return default_library()


@pytest.fixture
def foo_graph():
    """Two-way conditional whose true branch is a two-block sequence."""
    from restructure.graph import ControlFlowGraph

    return ControlFlowGraph.from_edges(
        [("E", "F"), ("E", "H"), ("F", "G"), ("G", "H")], entry="E"
    )


@pytest.fixture
def bar_graph():
    """Pre-test loop whose body is an if/else diamond."""
    from restructure.graph import ControlFlowGraph

    return ControlFlowGraph.from_edges(
        [
            ("E", "F"),
            ("E", "J"),
            ("F", "G"),
            ("F", "H"),
            ("G", "I"),
            ("H", "I"),
            ("I", "E"),
        ],
        entry="E",
    )


@pytest.fixture
def restore_loggers():
    """Undo the handler/propagation changes made by ``configure_loggers``."""
    names = ["", "Restructure"] + [
        name
        for name in logging.Logger.manager.loggerDict
        if name.startswith("Restructure.")
    ]
    saved = {}
    for name in names:
        log = logging.getLogger(name)
        saved[name] = (list(log.handlers), log.level, log.propagate, log.disabled)
    yield
    for name, (handlers, level, propagate, disabled) in saved.items():
        log = logging.getLogger(name)
        for handler in log.handlers:
            if handler not in handlers:
                handler.close()
        log.handlers = handlers
        log.setLevel(level)
        log.propagate = propagate
        log.disabled = disabled

    from restructure.core.logging import LevelFlag

    LevelFlag.bump_config_version()
