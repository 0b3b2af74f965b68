"""Fast ticks for the clock example.

Each test gets a freshly loaded app with ``SSEPUSH_CLOCK_TICK`` shortened,
so the broadcast loop runs in milliseconds and the client registry starts
empty.
"""

import importlib.util
import os
from pathlib import Path

import pytest


@pytest.fixture
def example_module():
    """Load a fresh clock module with a 10ms tick."""
    os.environ["SSEPUSH_CLOCK_TICK"] = "0.01"
    try:
        app_path = Path(__file__).parent / "app.py"
        spec = importlib.util.spec_from_file_location("example_clock", app_path)
        assert spec is not None
        assert spec.loader is not None
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module
    finally:
        os.environ.pop("SSEPUSH_CLOCK_TICK", None)


@pytest.fixture
def example_app(example_module):
    return example_module.app
