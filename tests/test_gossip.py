"""Tests for gossip snapshot parsing and health evaluation."""

from collections.abc import Callable
from typing import Any

import pytest

from eventstoreprobes.exceptions import SnapshotError
from eventstoreprobes.gossip import (
    ClusterSnapshot,
    DeadNodesPresent,
    Healthy,
    MemberState,
    NodeCountMismatch,
    NoSingleMaster,
    UnrecognizedStates,
    encode_state,
    evaluate,
)
from eventstoreprobes.verdict import Severity, Verdict

SnapshotFactory = Callable[..., ClusterSnapshot]


class TestMemberState:
    def test_ordinals(self) -> None:
        assert [s.name for s in sorted(MemberState)] == [
            "Initialising",
            "Unknown",
            "PreReplica",
            "CatchingUp",
            "Clone",
            "Slave",
            "PreMaster",
            "Master",
            "Manager",
            "ShuttingDown",
            "Shutdown",
        ]
        assert [int(s) for s in sorted(MemberState)] == list(range(11))

    def test_encode_known_states(self) -> None:
        assert encode_state(MemberState.Master) == 7
        assert encode_state("Master") == 7
        assert encode_state("Shutdown") == 10
        assert encode_state("Initialising") == 0

    @pytest.mark.parametrize("raw", ["ReadOnlyReplica", "master", "", None])
    def test_encode_unrecognized(self, raw: str | None) -> None:
        assert encode_state(raw) == -1

    def test_parse(self) -> None:
        assert MemberState.parse("CatchingUp") is MemberState.CatchingUp
        assert MemberState.parse("Leader") is None


class TestClusterSnapshot:
    def test_from_json(self, gossip_document: dict[str, Any]) -> None:
        snapshot = ClusterSnapshot.from_json(gossip_document)

        assert len(snapshot.members) == 3
        assert snapshot.server_ip == "10.0.0.5"
        assert snapshot.members[0].state is MemberState.Master
        assert snapshot.members[0].internal_http_ip == "10.0.0.5"
        assert snapshot.members[0].attributes["writerCheckpoint"] == 2048
        assert snapshot.alive_count == 3
        assert snapshot.master_count == 1

    def test_unrecognized_state_kept_raw(self, make_member: Any) -> None:
        snapshot = ClusterSnapshot.from_json({"members": [make_member("10.0.0.5", "Leader")]})

        member = snapshot.members[0]
        assert member.state is None
        assert member.raw_state == "Leader"

    @pytest.mark.parametrize(
        "document",
        [
            [],
            {},
            {"members": "none"},
            {"members": ["10.0.0.5"]},
            {"members": [{"isAlive": True}]},
            {"members": [{"state": "Master", "isAlive": "true"}]},
            {"members": [{"state": "Master", "isAlive": True, "timeStamp": 1455103425}]},
            {"members": [{"state": "Master", "isAlive": True, "internalHttpIp": ["10.0.0.5"]}]},
            {"members": [], "serverIp": 167772165},
        ],
    )
    def test_malformed(self, document: Any) -> None:
        with pytest.raises(SnapshotError):
            ClusterSnapshot.from_json(document)


class TestEvaluate:
    def test_healthy(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(("Master", True), ("Slave", True), ("Slave", True))

        verdict = evaluate(snapshot, 3)

        assert verdict == Healthy(node_count=3)
        assert verdict.severity is Severity.OK
        assert verdict.is_healthy

    def test_node_count_mismatch(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(("Master", True), ("Slave", True))

        verdict = evaluate(snapshot, 3)

        assert verdict == NodeCountMismatch(actual=2, expected=3)
        assert verdict.severity is Severity.CRITICAL
        assert verdict.message == "Wrong number of nodes, was 2 should be 3"

    def test_dead_nodes_before_master_check(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(("Slave", True), ("Slave", False), ("Slave", True))

        verdict = evaluate(snapshot, 3)

        assert verdict == DeadNodesPresent(alive_count=2, expected=3)
        assert verdict.severity is Severity.CRITICAL
        assert verdict.message == "Only 2 alive nodes, should be 3 alive"

    def test_two_masters(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(("Master", True), ("Master", True), ("Slave", True))

        verdict = evaluate(snapshot, 3)

        assert verdict == NoSingleMaster(master_count=2)
        assert verdict.severity is Severity.CRITICAL

    def test_no_master(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(("Slave", True), ("PreMaster", True), ("Slave", True))

        assert evaluate(snapshot, 3) == NoSingleMaster(master_count=0)

    def test_transitional_state_is_advisory(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(("Master", True), ("Slave", True), ("CatchingUp", True))

        verdict = evaluate(snapshot, 3)

        assert isinstance(verdict, UnrecognizedStates)
        assert verdict.severity is Severity.WARNING
        assert [m.raw_state for m in verdict.offending_members] == ["CatchingUp"]
        assert verdict.offending_members[0].internal_http_ip == "10.0.0.7"
        assert "10.0.0.7:CatchingUp" in verdict.message

    def test_unknown_state_text_is_advisory(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(("Master", True), ("Slave", True), ("ReadOnlyReplica", True))

        verdict = evaluate(snapshot, 3)

        assert isinstance(verdict, UnrecognizedStates)
        assert verdict.offending_members[0].state is None

    def test_count_checked_first(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(("Slave", False), ("Clone", False))

        assert evaluate(snapshot, 3) == NodeCountMismatch(actual=2, expected=3)

    def test_is_pure(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(("Master", True), ("Slave", True), ("CatchingUp", True))
        same = make_snapshot(("Master", True), ("Slave", True), ("CatchingUp", True))

        assert evaluate(snapshot, 3) == evaluate(same, 3)
        assert evaluate(snapshot, 3) == evaluate(snapshot, 3)


class TestVerdict:
    def test_base_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            Verdict()  # type: ignore[abstract]

    def test_subclass_without_message_is_abstract(self) -> None:
        class Silent(Verdict):
            pass

        with pytest.raises(TypeError):
            Silent()  # type: ignore[abstract]
