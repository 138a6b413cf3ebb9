"""Shared fixtures for CLI tests."""

from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def restore_root_logging():
    """
    Restore the root logger around each CLI test.

    ``graphpack -v`` calls ``logging.basicConfig``, which installs a handler on the root logger
    that would otherwise leak into later tests.
    """
    root_level = logging.root.level
    root_handlers = logging.root.handlers[:]

    yield

    logging.root.handlers = root_handlers
    logging.root.setLevel(root_level)
