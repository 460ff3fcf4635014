"""Address discovery interfaces for node identity resolution."""

import ipaddress
import logging
import socket
from abc import ABC, abstractmethod
from collections.abc import Iterable

import aiodns
import psutil

from eventstoreprobes.exceptions import DnsLookupError

logger = logging.getLogger(__name__)

# Resolver answers that mean "the name has no A records", not a failed lookup.
_EMPTY_ANSWER_CODES = frozenset({aiodns.error.ARES_ENOTFOUND, aiodns.error.ARES_ENODATA})


def is_ipv4(candidate: str) -> bool:
    """Check whether candidate is a dotted-quad IPv4 address."""
    try:
        ipaddress.IPv4Address(candidate)
    except ValueError:
        return False
    return True


def is_loopback(candidate: str) -> bool:
    """Check whether candidate names the loopback interface."""
    if candidate == "localhost":
        return True
    try:
        return ipaddress.ip_address(candidate).is_loopback
    except ValueError:
        return False


def routable_ipv4(candidates: Iterable[str]) -> frozenset[str]:
    """Keep only non-loopback IPv4 addresses."""
    return frozenset(c for c in candidates if not is_loopback(c) and is_ipv4(c))


class DnsResolver(ABC):
    """Abstract interface for resolving a name to its IPv4 A records."""

    @abstractmethod
    async def resolve_ipv4(self, name: str) -> frozenset[str]:
        """Get the IPv4 addresses the name resolves to (possibly none)."""
        ...


class InterfaceEnumerator(ABC):
    """Abstract interface for listing this machine's addresses."""

    @abstractmethod
    async def list_ipv4(self) -> frozenset[str]:
        """Get non-loopback IPv4 addresses bound to local interfaces."""
        ...


class AiodnsResolver(DnsResolver):
    """A record lookup against the system's configured name servers."""

    def __init__(self, *, timeout: float = 10.0) -> None:
        self._timeout = timeout

    async def resolve_ipv4(self, name: str) -> frozenset[str]:
        """Get the IPv4 addresses the name resolves to (possibly none)."""
        resolver = aiodns.DNSResolver(timeout=self._timeout)

        try:
            answers = await resolver.query(name, "A")
        except aiodns.error.DNSError as e:
            if e.args and e.args[0] in _EMPTY_ANSWER_CODES:
                logger.debug("No A records for %s", name)
                return frozenset()
            raise DnsLookupError(f"A record lookup for {name} failed: {e}") from e
        finally:
            await resolver.close()

        addresses = frozenset(answer.host for answer in answers)
        logger.debug("Resolved %s to %s", name, sorted(addresses))
        return addresses


class PsutilInterfaceEnumerator(InterfaceEnumerator):
    """Local interface addresses as reported by psutil."""

    async def list_ipv4(self) -> frozenset[str]:
        """Get non-loopback IPv4 addresses bound to local interfaces."""
        candidates = [
            snic.address
            for snics in psutil.net_if_addrs().values()
            for snic in snics
            if snic.family == socket.AF_INET
        ]
        addresses = routable_ipv4(candidates)
        logger.debug("Local IPv4 addresses: %s", sorted(addresses))
        return addresses


class StaticDnsResolver(DnsResolver):
    """In-memory DNS resolver."""

    def __init__(self, records: dict[str, Iterable[str]] | None = None) -> None:
        self._records: dict[str, frozenset[str]] = {}
        if records:
            for name, addresses in records.items():
                self._records[name] = frozenset(addresses)

    async def resolve_ipv4(self, name: str) -> frozenset[str]:
        """Get the IPv4 addresses the name resolves to (possibly none)."""
        return frozenset(a for a in self._records.get(name, ()) if is_ipv4(a))


class StaticInterfaceEnumerator(InterfaceEnumerator):
    """In-memory interface enumerator."""

    def __init__(self, addresses: Iterable[str] = ()) -> None:
        self._addresses = tuple(addresses)

    async def list_ipv4(self) -> frozenset[str]:
        """Get non-loopback IPv4 addresses bound to local interfaces."""
        return routable_ipv4(self._addresses)
