"""
Pytest configuration for winbuild test suite.

This configuration enables the --full flag to run integration tests, which
need a real Visual Studio installation.
"""

import sys
from pathlib import Path

import pytest

# Allow running the suite from a checkout without installing
SRC = Path(__file__).parent / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite including integration tests (needs MSVC)",
    )


def pytest_configure(config):
    """Configure pytest based on command-line options."""
    config.addinivalue_line(
        "markers", "integration: needs a real Visual Studio installation"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --full is given."""
    if config.getoption("--full"):
        return
    skip_integration = pytest.mark.skip(reason="needs --full")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
