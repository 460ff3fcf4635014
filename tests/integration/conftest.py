"""Integration test fixtures for eventstore-probes.

These tests require a running single node eventstore. Point them at it with:
    EVENTSTORE_TEST_NODE=localhost:2113 pytest -m integration
"""

import os

import pytest

EVENTSTORE_TEST_NODE = os.environ.get("EVENTSTORE_TEST_NODE")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if EVENTSTORE_TEST_NODE:
        return
    skip = pytest.mark.skip(reason="EVENTSTORE_TEST_NODE not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def node() -> tuple[str, int]:
    """Get the test node address and HTTP port."""
    assert EVENTSTORE_TEST_NODE is not None
    host, port = EVENTSTORE_TEST_NODE.rsplit(":", 1)
    return host, int(port)
