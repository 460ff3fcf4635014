"""Gossip metrics for the polled node in Graphite plaintext form."""

import re
import socket
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from eventstoreprobes.exceptions import SnapshotError
from eventstoreprobes.gossip import ClusterMember, ClusterSnapshot, encode_state

# Gossip fields emitted verbatim.
PASSTHROUGH_FIELDS = (
    "lastCommitPosition",
    "writerCheckpoint",
    "chaserCheckpoint",
    "epochPosition",
    "epochNumber",
)

# Node timestamps carry 100ns ticks; datetime parses at most microseconds.
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


@dataclass(frozen=True)
class Metric:
    """A single timestamped data point."""

    path: str
    value: Any
    timestamp: int

    def graphite(self) -> str:
        return f"{self.path} {self.value} {self.timestamp}"


def default_prefix(identifier: str | None = None) -> str:
    """Build the ``<hostname>.eventstore[.<identifier>]`` metric prefix."""
    prefix = f"{socket.gethostname()}.eventstore"
    if identifier:
        prefix = f"{prefix}.{identifier}"
    return prefix


def parse_timestamp(raw: str) -> int:
    """Convert a gossip ``timeStamp`` to Unix seconds."""
    try:
        parsed = datetime.fromisoformat(_EXCESS_FRACTION.sub(r"\1", raw))
    except ValueError as e:
        raise SnapshotError(f"unparseable member timestamp {raw!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp())


def find_this_member(snapshot: ClusterSnapshot) -> ClusterMember:
    """Find the member entry describing the node that served the snapshot."""
    these = [m for m in snapshot.members if m.internal_http_ip == snapshot.server_ip]
    if len(these) != 1:
        raise SnapshotError(f"{len(these)} members matched serverIp in gossip")
    return these[0]


def gossip_metrics(snapshot: ClusterSnapshot, prefix: str) -> Iterator[Metric]:
    """Yield this node's gossip metrics.

    Timestamps come from the node's own clock, not the poller's.
    """
    member = find_this_member(snapshot)
    if member.timestamp is None:
        raise SnapshotError("this member has no timeStamp in gossip")
    timestamp = parse_timestamp(member.timestamp)

    yield Metric(f"{prefix}.state", encode_state(member.raw_state), timestamp)

    for name in PASSTHROUGH_FIELDS:
        if name in member.attributes:
            yield Metric(f"{prefix}.{name}", member.attributes[name], timestamp)
