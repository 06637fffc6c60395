"""Shared fixtures for build component tests."""

from unittest.mock import Mock

import pytest

from winbuild.build.compilation_executor import CompilationExecutor
from tests.unit.fakes import FakeCl, make_session


@pytest.fixture
def session():
    """Debug x86_64 session."""
    return make_session()


@pytest.fixture
def executor():
    """Executor mock that succeeds without running anything."""
    mock = Mock(spec=CompilationExecutor)
    mock.run.side_effect = FakeCl()
    return mock
