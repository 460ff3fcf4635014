"""Resolution of which cluster node this machine is."""

import logging
from dataclasses import dataclass

from eventstoreprobes.discovery import (
    AiodnsResolver,
    DnsResolver,
    InterfaceEnumerator,
    PsutilInterfaceEnumerator,
)
from eventstoreprobes.exceptions import AmbiguousOrNoLocalMatch, NoClusterAddressesFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodeIdentity:
    """This machine's address inside the cluster."""

    address: str
    expected_node_count: int


def match_local_address(
    local_addresses: frozenset[str],
    cluster_addresses: frozenset[str],
) -> str:
    """Pick the one local address that is also a cluster address.

    Raises AmbiguousOrNoLocalMatch unless exactly one address is shared.
    """
    matches = local_addresses & cluster_addresses
    if len(matches) != 1:
        raise AmbiguousOrNoLocalMatch(local_addresses, cluster_addresses, matches)
    (address,) = matches
    return address


class NodeIdentityResolver:
    """Finds this node's address and the cluster size from DNS."""

    def __init__(
        self,
        dns_resolver: DnsResolver,
        interface_enumerator: InterfaceEnumerator,
    ) -> None:
        """Initialize resolver.

        Args:
            dns_resolver: Source of the cluster's A records
            interface_enumerator: Source of this machine's addresses
        """
        self._dns_resolver = dns_resolver
        self._interface_enumerator = interface_enumerator

    @classmethod
    def from_system(cls, timeout: float = 10.0) -> "NodeIdentityResolver":
        """Create resolver backed by real DNS and network interfaces."""
        return cls(AiodnsResolver(timeout=timeout), PsutilInterfaceEnumerator())

    async def resolve(self, cluster_dns: str) -> NodeIdentity:
        """Resolve this node's identity within the cluster.

        The expected node count is the number of A records for cluster_dns.
        """
        local_addresses = await self._interface_enumerator.list_ipv4()
        cluster_addresses = await self._dns_resolver.resolve_ipv4(cluster_dns)

        if not cluster_addresses:
            raise NoClusterAddressesFound(cluster_dns)

        address = match_local_address(local_addresses, cluster_addresses)
        logger.debug(
            "Resolved %s to local address %s (%d nodes)",
            cluster_dns,
            address,
            len(cluster_addresses),
        )
        return NodeIdentity(address=address, expected_node_count=len(cluster_addresses))
