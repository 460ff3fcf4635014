"""Pytest configuration for eventstore-probes tests."""

from collections.abc import Callable
from typing import Any

import pytest

from eventstoreprobes.gossip import ClusterSnapshot

MemberFactory = Callable[..., dict[str, Any]]


@pytest.fixture
def make_member() -> MemberFactory:
    """Create gossip member entries shaped like the node's JSON output."""

    def factory(
        ip: str,
        state: str = "Slave",
        *,
        is_alive: bool = True,
        **extra: Any,
    ) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "instanceId": f"00000000-0000-0000-0000-{ip.replace('.', '').zfill(12)}",
            "timeStamp": "2016-02-10T11:23:45.1234567Z",
            "state": state,
            "isAlive": is_alive,
            "internalTcpIp": ip,
            "internalTcpPort": 1112,
            "externalTcpIp": ip,
            "externalTcpPort": 1113,
            "internalHttpIp": ip,
            "internalHttpPort": 2112,
            "externalHttpIp": ip,
            "externalHttpPort": 2113,
            "lastCommitPosition": 1024,
            "writerCheckpoint": 2048,
            "chaserCheckpoint": 2048,
            "epochPosition": 512,
            "epochNumber": 3,
            "epochId": "a1b2c3d4-0000-0000-0000-000000000000",
            "nodePriority": 0,
        }
        entry.update(extra)
        return entry

    return factory


@pytest.fixture
def gossip_document(make_member: MemberFactory) -> dict[str, Any]:
    """Create a healthy three node gossip document served by 10.0.0.5."""
    return {
        "members": [
            make_member("10.0.0.5", "Master"),
            make_member("10.0.0.6", "Slave"),
            make_member("10.0.0.7", "Slave"),
        ],
        "serverIp": "10.0.0.5",
        "serverPort": 2112,
    }


@pytest.fixture
def make_snapshot(make_member: MemberFactory) -> Callable[..., ClusterSnapshot]:
    """Create snapshots from (state, is_alive) pairs."""

    def factory(*members: tuple[str, bool]) -> ClusterSnapshot:
        entries = [
            make_member(f"10.0.0.{5 + i}", state, is_alive=alive)
            for i, (state, alive) in enumerate(members)
        ]
        return ClusterSnapshot.from_json({"members": entries, "serverIp": "10.0.0.5"})

    return factory


@pytest.fixture
def projections_document() -> dict[str, Any]:
    """Create a projections listing where everything is caught up."""
    return {
        "projections": [
            {
                "name": "$by_category",
                "status": "Running",
                "progress": 100.0,
                "eventsProcessedAfterRestart": 42,
            },
            {
                "name": "$stream_by_category",
                "status": "Running",
                "progress": 100.0,
                "eventsProcessedAfterRestart": 7,
            },
        ]
    }
