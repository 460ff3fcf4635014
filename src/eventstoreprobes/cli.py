"""Command line probes reporting to a Sensu-style monitoring pipeline."""

import asyncio
import logging
import sys
from collections.abc import Callable
from typing import Any, NoReturn

import click

from eventstoreprobes.exceptions import ProbeError, SnapshotError
from eventstoreprobes.fetcher import HttpFetcher
from eventstoreprobes.gossip import evaluate
from eventstoreprobes.identity import NodeIdentityResolver
from eventstoreprobes.metrics import default_prefix, gossip_metrics
from eventstoreprobes.projections import evaluate_projections
from eventstoreprobes.verdict import Severity, Verdict

logger = logging.getLogger(__name__)

ENVVAR_PREFIX = "EVENTSTORE_PROBE"


def _discovery_options(func: Callable[..., Any]) -> Callable[..., Any]:
    options = [
        click.option(
            "--discover-via-dns/--no-discover-via-dns",
            default=True,
            show_default=True,
            help="Find this node's cluster address by matching local IPs against DNS.",
        ),
        click.option(
            "--cluster-dns",
            default="localhost",
            show_default=True,
            help="DNS name from which cluster nodes can be discovered.",
        ),
        click.option(
            "--address",
            default="localhost",
            show_default=True,
            help="Node address to poll when DNS discovery is disabled.",
        ),
        click.option("--timeout", default=10.0, show_default=True, type=float),
    ]
    for option in reversed(options):
        func = option(func)
    return func


async def _locate(
    discover_via_dns: bool,
    cluster_dns: str,
    address: str,
    timeout: float,
) -> tuple[str, int | None]:
    """Return the address to poll and, when discovered, the cluster size."""
    if not discover_via_dns:
        return address, None
    identity = await NodeIdentityResolver.from_system(timeout=timeout).resolve(cluster_dns)
    return identity.address, identity.expected_node_count


def _report(ctx: click.Context, name: str, severity: Severity, message: str) -> NoReturn:
    click.echo(f"{name} {severity.name}: {message}")
    ctx.exit(int(severity))


def _report_error(ctx: click.Context, name: str, error: ProbeError) -> NoReturn:
    severity = Severity.UNKNOWN if isinstance(error, SnapshotError) else Severity.CRITICAL
    _report(ctx, name, severity, str(error))


@click.group()
@click.option(
    "--log-level",
    default="warning",
    show_default=True,
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
)
def main(log_level: str) -> None:
    """Eventstore cluster health checks and metrics."""
    logging.basicConfig(
        level=log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command("check-gossip")
@_discovery_options
@click.option("--port", default=2113, show_default=True, type=int)
@click.option(
    "--expected-nodes",
    default=4,
    show_default=True,
    type=int,
    help="Nodes expected to be gossiping, including this one. Ignored with DNS discovery.",
)
@click.pass_context
def check_gossip(
    ctx: click.Context,
    discover_via_dns: bool,
    cluster_dns: str,
    address: str,
    timeout: float,
    port: int,
    expected_nodes: int,
) -> None:
    """Check cluster membership as seen by this node's gossip."""

    async def probe() -> tuple[str, Verdict]:
        target, discovered = await _locate(discover_via_dns, cluster_dns, address, timeout)
        expected = discovered if discovered is not None else expected_nodes
        logger.info("Checking gossip at %s:%s for %d nodes", target, port, expected)
        snapshot = await HttpFetcher(timeout=timeout).fetch_gossip(target, port)
        return target, evaluate(snapshot, expected)

    try:
        target, verdict = asyncio.run(probe())
    except ProbeError as e:
        _report_error(ctx, "CheckGossip", e)

    message = verdict.message
    if verdict.is_healthy:
        message = f"{target} is {message}"
    _report(ctx, "CheckGossip", verdict.severity, message)


@main.command("check-projections")
@_discovery_options
@click.option("--port", default=2113, show_default=True, type=int)
@click.option(
    "--progress-minimum",
    default=100.0,
    show_default=True,
    type=float,
    help="Lowest acceptable projection progress percentage.",
)
@click.pass_context
def check_projections(
    ctx: click.Context,
    discover_via_dns: bool,
    cluster_dns: str,
    address: str,
    timeout: float,
    port: int,
    progress_minimum: float,
) -> None:
    """Check that continuous projections are running and caught up."""

    async def probe() -> tuple[str, Verdict]:
        target, _ = await _locate(discover_via_dns, cluster_dns, address, timeout)
        logger.info("Checking projections at %s:%s", target, port)
        projections = await HttpFetcher(timeout=timeout).fetch_projections(target, port)
        return target, evaluate_projections(projections, progress_minimum)

    try:
        target, verdict = asyncio.run(probe())
    except ProbeError as e:
        _report_error(ctx, "CheckProjections", e)

    message = verdict.message
    if verdict.is_healthy:
        message = f"projections api at {target} reports {message}"
    _report(ctx, "CheckProjections", verdict.severity, message)


@main.command("metrics-gossip")
@_discovery_options
@click.option("--port", default=2114, show_default=True, type=int)
@click.option("--metric-path", default=None, help="Metric prefix (default <hostname>.eventstore).")
@click.option("--eventstore-identifier", default=None, help="Extra tag appended to the prefix.")
@click.pass_context
def metrics_gossip(
    ctx: click.Context,
    discover_via_dns: bool,
    cluster_dns: str,
    address: str,
    timeout: float,
    port: int,
    metric_path: str | None,
    eventstore_identifier: str | None,
) -> None:
    """Emit this node's gossip state and positions as Graphite lines."""
    if metric_path is None:
        prefix = default_prefix(eventstore_identifier)
    elif eventstore_identifier:
        prefix = f"{metric_path}.{eventstore_identifier}"
    else:
        prefix = metric_path

    async def probe() -> list[str]:
        target, _ = await _locate(discover_via_dns, cluster_dns, address, timeout)
        snapshot = await HttpFetcher(timeout=timeout).fetch_gossip(target, port)
        return [metric.graphite() for metric in gossip_metrics(snapshot, prefix)]

    try:
        lines = asyncio.run(probe())
    except ProbeError as e:
        _report_error(ctx, "GossipMetrics", e)

    for line in lines:
        click.echo(line)


def run() -> None:
    """Console script entry point."""
    main(auto_envvar_prefix=ENVVAR_PREFIX)
