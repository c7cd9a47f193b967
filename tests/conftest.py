"""Shared fixtures and configuration for the scan client tests."""

import os
import sys

import pytest

# Ensure the src/ packages and the tests package are importable
_ROOT = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _ROOT)
sys.path.insert(0, os.path.join(_ROOT, "src"))

from tests.fixtures.fakes import FakeScanApi, ManualClock  # noqa: E402


@pytest.fixture
def clock() -> ManualClock:
    """Timer whose time only moves when the test calls ``advance``."""
    return ManualClock()


@pytest.fixture
def fake_api() -> FakeScanApi:
    """In-memory scan service that hands out job ``abc123``."""
    return FakeScanApi()
