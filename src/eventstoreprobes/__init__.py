"""Health checks and metrics for clustered eventstore nodes."""

from eventstoreprobes.discovery import (
    AiodnsResolver,
    DnsResolver,
    InterfaceEnumerator,
    PsutilInterfaceEnumerator,
    StaticDnsResolver,
    StaticInterfaceEnumerator,
)
from eventstoreprobes.exceptions import (
    AmbiguousOrNoLocalMatch,
    DnsLookupError,
    FetchError,
    NoClusterAddressesFound,
    ProbeError,
    ResolutionError,
    SnapshotError,
)
from eventstoreprobes.fetcher import HttpFetcher, SnapshotFetcher
from eventstoreprobes.gossip import (
    ClusterMember,
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
from eventstoreprobes.identity import NodeIdentity, NodeIdentityResolver
from eventstoreprobes.verdict import Severity, Verdict

__all__ = [
    "resolve",
    "check_gossip",
    "NodeIdentity",
    "NodeIdentityResolver",
    "DnsResolver",
    "InterfaceEnumerator",
    "AiodnsResolver",
    "PsutilInterfaceEnumerator",
    "StaticDnsResolver",
    "StaticInterfaceEnumerator",
    "SnapshotFetcher",
    "HttpFetcher",
    "MemberState",
    "ClusterMember",
    "ClusterSnapshot",
    "encode_state",
    "evaluate",
    "Severity",
    "Verdict",
    "Healthy",
    "NodeCountMismatch",
    "DeadNodesPresent",
    "NoSingleMaster",
    "UnrecognizedStates",
    "ProbeError",
    "ResolutionError",
    "NoClusterAddressesFound",
    "AmbiguousOrNoLocalMatch",
    "DnsLookupError",
    "FetchError",
    "SnapshotError",
]

__version__ = "0.1.0"


async def resolve(cluster_dns: str, *, timeout: float = 10.0) -> NodeIdentity:
    """Find this machine's address in the cluster from DNS.

    Args:
        cluster_dns: DNS name with one A record per cluster node
        timeout: DNS query timeout in seconds

    Returns:
        The matching local address and the expected node count
    """
    resolver = NodeIdentityResolver.from_system(timeout=timeout)
    return await resolver.resolve(cluster_dns)


async def check_gossip(
    address: str,
    port: int = 2113,
    *,
    expected_node_count: int,
    timeout: float = 10.0,
) -> Verdict:
    """Poll a node's gossip and evaluate cluster health.

    Args:
        address: Node address to poll
        port: Node HTTP port
        expected_node_count: Number of nodes the cluster should have
        timeout: Request timeout in seconds

    Returns:
        The health verdict for the snapshot the node reported
    """
    snapshot = await HttpFetcher(timeout=timeout).fetch_gossip(address, port)
    return evaluate(snapshot, expected_node_count)
