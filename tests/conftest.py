"""
Test fixtures for the PPV calculator.

``blank_state`` stands in for ``st.session_state``: the store only needs a
mutable mapping.
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app import ParameterStore

APP_PATH = os.path.join(os.path.dirname(__file__), "..", "app.py")


@pytest.fixture
def blank_state():
    return {}


@pytest.fixture
def store(blank_state):
    """A store seeded with the defaults (90 / 95 / 5)."""
    s = ParameterStore(blank_state)
    s.initialise()
    return s


@pytest.fixture
def app_path():
    return os.path.abspath(APP_PATH)
