"""Gossip snapshot model and cluster health evaluation."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, ClassVar

from eventstoreprobes.exceptions import SnapshotError
from eventstoreprobes.verdict import Severity, Verdict


class MemberState(IntEnum):
    """Node state as reported in gossip.

    Values are the stable ordinals emitted as the ``state`` metric and must
    not be reordered.
    """

    Initialising = 0
    Unknown = 1
    PreReplica = 2
    CatchingUp = 3
    Clone = 4
    Slave = 5
    PreMaster = 6
    Master = 7
    Manager = 8
    ShuttingDown = 9
    Shutdown = 10

    @classmethod
    def parse(cls, raw: str) -> "MemberState | None":
        """Map gossip text to a state, or None if it is not recognized."""
        return cls.__members__.get(raw)


UNRECOGNIZED_STATE = -1


def encode_state(value: MemberState | str | None) -> int:
    """Encode a member state as its ordinal, -1 when unrecognized."""
    if isinstance(value, MemberState):
        return int(value)
    if isinstance(value, str):
        state = MemberState.parse(value)
        if state is not None:
            return int(state)
    return UNRECOGNIZED_STATE


@dataclass(frozen=True)
class ClusterMember:
    """One member entry of a gossip snapshot."""

    state: MemberState | None
    raw_state: str
    is_alive: bool
    internal_http_ip: str | None = None
    timestamp: str | None = None
    attributes: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_json(cls, entry: Any) -> "ClusterMember":
        """Build a member from one element of the gossip ``members`` list."""
        if not isinstance(entry, Mapping):
            raise SnapshotError(f"gossip member must be an object, got {entry!r}")

        raw_state = entry.get("state")
        is_alive = entry.get("isAlive")
        if not isinstance(raw_state, str):
            raise SnapshotError(f"gossip member has no state: {entry!r}")
        if not isinstance(is_alive, bool):
            raise SnapshotError(f"gossip member has no isAlive flag: {entry!r}")
        for key in ("internalHttpIp", "timeStamp"):
            if not isinstance(entry.get(key), str | None):
                raise SnapshotError(f"gossip member has a non-text {key}: {entry!r}")

        return cls(
            state=MemberState.parse(raw_state),
            raw_state=raw_state,
            is_alive=is_alive,
            internal_http_ip=entry.get("internalHttpIp"),
            timestamp=entry.get("timeStamp"),
            attributes=dict(entry),
        )

    def describe(self) -> str:
        if self.internal_http_ip:
            return f"{self.internal_http_ip}:{self.raw_state}"
        return self.raw_state


@dataclass(frozen=True)
class ClusterSnapshot:
    """Cluster membership as reported by one gossip poll."""

    members: tuple[ClusterMember, ...]
    server_ip: str | None = None
    server_port: int | None = None

    @classmethod
    def from_json(cls, document: Any) -> "ClusterSnapshot":
        """Build a snapshot from the decoded ``/gossip?format=json`` body."""
        if not isinstance(document, Mapping):
            raise SnapshotError("gossip document must be an object")

        members = document.get("members")
        if not isinstance(members, list):
            raise SnapshotError("gossip document has no members list")
        if not isinstance(document.get("serverIp"), str | None):
            raise SnapshotError("gossip document has a non-text serverIp")

        return cls(
            members=tuple(ClusterMember.from_json(m) for m in members),
            server_ip=document.get("serverIp"),
            server_port=document.get("serverPort"),
        )

    @property
    def alive_count(self) -> int:
        return sum(1 for m in self.members if m.is_alive)

    @property
    def master_count(self) -> int:
        return sum(1 for m in self.members if m.state is MemberState.Master)


@dataclass(frozen=True)
class Healthy(Verdict):
    """All gossip checks passed."""

    node_count: int = 0

    @property
    def message(self) -> str:
        return (
            f"gossiping with {self.node_count} nodes, all nodes are alive, exactly one "
            "master node was found and all other nodes are in the 'Slave' state."
        )


@dataclass(frozen=True)
class NodeCountMismatch(Verdict):
    severity: ClassVar[Severity] = Severity.CRITICAL

    actual: int
    expected: int

    @property
    def message(self) -> str:
        return f"Wrong number of nodes, was {self.actual} should be {self.expected}"


@dataclass(frozen=True)
class DeadNodesPresent(Verdict):
    severity: ClassVar[Severity] = Severity.CRITICAL

    alive_count: int
    expected: int

    @property
    def message(self) -> str:
        return f"Only {self.alive_count} alive nodes, should be {self.expected} alive"


@dataclass(frozen=True)
class NoSingleMaster(Verdict):
    severity: ClassVar[Severity] = Severity.CRITICAL

    master_count: int

    @property
    def message(self) -> str:
        return (
            "Wrong number of node masters, there should be 1 but there were "
            f"{self.master_count} masters"
        )


@dataclass(frozen=True)
class UnrecognizedStates(Verdict):
    """Members in a state other than Master or Slave.

    Advisory: transitional states are expected while the cluster rebalances.
    """

    severity: ClassVar[Severity] = Severity.WARNING

    offending_members: tuple[ClusterMember, ...]

    @property
    def message(self) -> str:
        states = ", ".join(m.describe() for m in self.offending_members)
        return f"nodes found with states: {states} when expected Master or Slave."


_SETTLED_STATES = frozenset({MemberState.Master, MemberState.Slave})


def evaluate(snapshot: ClusterSnapshot, expected_node_count: int) -> Verdict:
    """Evaluate cluster health from a gossip snapshot.

    Checks run in order and the first failure is returned: member count,
    liveness, single master, then member states. Only the state check is
    advisory (WARNING); the others are CRITICAL.
    """
    actual = len(snapshot.members)
    if actual != expected_node_count:
        return NodeCountMismatch(actual=actual, expected=expected_node_count)

    if not all(m.is_alive for m in snapshot.members):
        return DeadNodesPresent(alive_count=snapshot.alive_count, expected=expected_node_count)

    if snapshot.master_count != 1:
        return NoSingleMaster(master_count=snapshot.master_count)

    offending = tuple(m for m in snapshot.members if m.state not in _SETTLED_STATES)
    if offending:
        return UnrecognizedStates(offending_members=offending)

    return Healthy(node_count=actual)
