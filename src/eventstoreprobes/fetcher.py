"""HTTP access to an eventstore node's gossip and projections endpoints."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import aiohttp

from eventstoreprobes.exceptions import FetchError, SnapshotError
from eventstoreprobes.gossip import ClusterSnapshot
from eventstoreprobes.projections import Projection, projections_from_json

logger = logging.getLogger(__name__)

GOSSIP_PATH = "/gossip?format=json"
PROJECTIONS_PATH = "/projections/continuous"


class SnapshotFetcher(ABC):
    """Abstract interface for polling an eventstore node."""

    @abstractmethod
    async def fetch_gossip(self, address: str, port: int) -> ClusterSnapshot:
        """Get the node's current view of cluster membership."""
        ...

    @abstractmethod
    async def fetch_projections(self, address: str, port: int) -> list[Projection]:
        """Get the node's continuous projections."""
        ...


class HttpFetcher(SnapshotFetcher):
    """Fetches node documents over HTTP with aiohttp."""

    def __init__(self, *, timeout: float = 10.0) -> None:
        """Initialize fetcher.

        Args:
            timeout: Total time allowed per request in seconds
        """
        self._timeout = timeout

    async def fetch_gossip(self, address: str, port: int) -> ClusterSnapshot:
        """Get the node's current view of cluster membership."""
        document = await self._get_json(f"http://{address}:{port}{GOSSIP_PATH}")
        return ClusterSnapshot.from_json(document)

    async def fetch_projections(self, address: str, port: int) -> list[Projection]:
        """Get the node's continuous projections."""
        document = await self._get_json(f"http://{address}:{port}{PROJECTIONS_PATH}")
        return projections_from_json(document)

    async def _get_json(self, url: str) -> Any:
        logger.debug("GET %s", url)
        timeout = aiohttp.ClientTimeout(total=self._timeout)

        try:
            async with (
                aiohttp.ClientSession(timeout=timeout) as session,
                session.get(url, headers={"Accept": "application/json"}) as response,
            ):
                response.raise_for_status()
                body = await response.text()
        except TimeoutError as e:
            raise FetchError(url, "timed out") from e
        except aiohttp.ClientResponseError as e:
            raise FetchError(url, f"HTTP {e.status}") from e
        except aiohttp.ClientError as e:
            raise FetchError(url, str(e) or type(e).__name__) from e

        try:
            return json.loads(body)
        except ValueError as e:
            raise SnapshotError(f"{url} did not return JSON: {e}") from e
