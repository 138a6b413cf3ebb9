"""Conftest for all pytest configuration - fixtures, hooks, and doctest setup."""

import doctest

import pytest

from graphpack.hooks.manager import reset_global_plugin_manager
from graphpack.identity import ExecutableIdentity
from graphpack.settings import get_global_settings
from graphpack.settings import set_global_settings

# Doctest Configuration


def pytest_configure(config):
    """Configure pytest with custom doctest options."""
    doctest.ELLIPSIS_MARKER = "..."


def pytest_collection_modifyitems(items):
    """Automatically mark doctest items with the 'doctest' marker."""
    for item in items:
        if isinstance(item, pytest.DoctestItem):
            item.add_marker(pytest.mark.doctest)


# Global State


@pytest.fixture(autouse=True)
def isolate_global_state():
    """Restore settings and drop registered plugins around each test."""
    saved = get_global_settings()
    reset_global_plugin_manager()

    yield

    set_global_settings(saved)
    reset_global_plugin_manager()


@pytest.fixture
def fresh_identity():
    """Forget the cached executable identity before and after the test."""
    ExecutableIdentity._reset()
    yield
    ExecutableIdentity._reset()
