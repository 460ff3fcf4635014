"""Exceptions for eventstore probes."""


class ProbeError(Exception):
    """Base exception for eventstore probe errors."""

    pass


class ResolutionError(ProbeError):
    """Node identity could not be resolved from the cluster DNS name."""

    pass


class NoClusterAddressesFound(ResolutionError):
    """The cluster DNS name has no A records."""

    cluster_dns: str

    def __init__(self, cluster_dns: str) -> None:
        self.cluster_dns = cluster_dns
        super().__init__(
            f"could not find any ips at dns name {cluster_dns} so cannot check gossips"
        )


class AmbiguousOrNoLocalMatch(ResolutionError):
    """Local and cluster addresses do not share exactly one address."""

    local_addresses: frozenset[str]
    cluster_addresses: frozenset[str]
    matches: frozenset[str]

    def __init__(
        self,
        local_addresses: frozenset[str],
        cluster_addresses: frozenset[str],
        matches: frozenset[str],
    ) -> None:
        self.local_addresses = local_addresses
        self.cluster_addresses = cluster_addresses
        self.matches = matches
        super().__init__(
            f"this machine has ips of {sorted(local_addresses)}, event store "
            f"(according to dns lookup) has ips of {sorted(cluster_addresses)}. "
            f"There should be exactly one match, but there were {len(matches)}."
        )


class DnsLookupError(ProbeError):
    """DNS query failed for a reason other than missing records."""

    pass


class FetchError(ProbeError):
    """Error fetching a document from an eventstore node."""

    url: str

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(
            f"Could not connect to {url} ({reason}), has event store fallen over on this node?"
        )


class SnapshotError(ProbeError):
    """Fetched document could not be interpreted."""

    pass
