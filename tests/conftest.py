"""Pytest fixtures for universal ledger tests.

Common fixtures: well-known addresses, a freshly deployed collection with
an in-memory event log, and token ids encoding those addresses.
"""

from __future__ import annotations

from typing import Iterator

import pytest
from dotenv import load_dotenv

from tests.testing_utils import ADDR1, ADDR2, ADDR3, DEFAULT_URI
from universal_ledger.config import reset_config
from universal_ledger.ledger import Collection, EventLogger, encode

# Load environment variables from .env before any tests run
load_dotenv()


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "feature(name): mark test as belonging to a feature. "
        "Usage: @pytest.mark.feature('broadcast')"
    )


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom command-line options."""
    parser.addoption(
        "--feature",
        action="store",
        type=str,
        default=None,
        help="Run tests for a specific feature (e.g., --feature broadcast)",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Filter tests based on command-line options."""
    feature_filter = config.getoption("--feature")
    if feature_filter is None:
        return
    selected = []
    deselected = []
    for item in items:
        marker = item.get_closest_marker("feature")
        if marker is not None and marker.args and marker.args[0] == feature_filter:
            selected.append(item)
        else:
            deselected.append(item)
    config.hook.pytest_deselected(items=deselected)
    items[:] = selected


@pytest.fixture(autouse=True)
def _fresh_config() -> Iterator[None]:
    """Each test starts from the default config file."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def addr1() -> str:
    return ADDR1


@pytest.fixture
def addr2() -> str:
    return ADDR2


@pytest.fixture
def addr3() -> str:
    return ADDR3


@pytest.fixture
def collection() -> Collection:
    """A freshly deployed collection administered by ADDR1.

    Events are kept in memory only.
    """
    return Collection(
        ADDR1,
        "laos-kitties",
        "LAK",
        DEFAULT_URI,
        event_logger=EventLogger(output_file=None),
    )


@pytest.fixture
def token_id() -> int:
    """Token in slot 111 whose implicit owner is ADDR1."""
    return encode(111, ADDR1)
