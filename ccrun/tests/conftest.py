"""Pytest configuration for the ccrun test suite."""

from pathlib import Path

import pytest
from _pytest.config import Config
from _pytest.config.argparsing import Parser
from _pytest.nodes import Item

from ccrun.core.params import BuildParameters, resolve_parameters


def pytest_addoption(parser: Parser) -> None:
    """Add custom command line options."""
    parser.addoption(
        "--runslow",
        action="store_true",
        default=False,
        help="run slow tests (e.g., real subprocess cancellation)",
    )


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config: Config, items: list[Item]) -> None:
    """Skip slow tests by default unless --runslow is given."""
    if config.getoption("--runslow"):
        return

    skip_slow = pytest.mark.skip(reason="need --runslow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "code.c"
    path.write_text("int main(void) { return 0; }\n")
    return path


@pytest.fixture
def params(source_file: Path) -> BuildParameters:
    return resolve_parameters(source_file)
