"""Root conftest for all tests - sys.path setup and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path so tests can import tests.factories
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from tests.factories import WORKED_EXAMPLE_PNLS, make_daily_trades  # noqa: E402
from tradelens.system import LoggerFactory  # noqa: E402


@pytest.fixture
def worked_example_trades():
    """Five daily trades with pnl 100, -50, 200, -30, 150 (sum 370)."""
    return make_daily_trades(WORKED_EXAMPLE_PNLS)


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before and after each test."""
    LoggerFactory.reset()
    yield
    LoggerFactory.reset()
