"""Projection model and projections health evaluation."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar

from eventstoreprobes.exceptions import SnapshotError
from eventstoreprobes.verdict import Severity, Verdict

RUNNING = "Running"


@dataclass(frozen=True)
class Projection:
    """One projection as listed by the projections API."""

    name: str
    status: str
    progress: float
    attributes: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_json(cls, entry: Any) -> "Projection":
        if not isinstance(entry, Mapping):
            raise SnapshotError(f"projection must be an object, got {entry!r}")

        name = entry.get("name")
        status = entry.get("status")
        progress = entry.get("progress")
        if not isinstance(name, str) or not isinstance(status, str):
            raise SnapshotError(f"projection has no name or status: {entry!r}")
        if isinstance(progress, bool) or not isinstance(progress, int | float):
            raise SnapshotError(f"projection {name} has no numeric progress")

        return cls(name=name, status=status, progress=float(progress), attributes=dict(entry))


def projections_from_json(document: Any) -> list[Projection]:
    """Parse the decoded ``/projections/continuous`` body."""
    if not isinstance(document, Mapping) or not isinstance(document.get("projections"), list):
        raise SnapshotError("projections document has no projections list")
    return [Projection.from_json(p) for p in document["projections"]]


@dataclass(frozen=True)
class ProjectionsHealthy(Verdict):
    @property
    def message(self) -> str:
        return "all projections are running and up to date"


@dataclass(frozen=True)
class ProjectionsNotRunning(Verdict):
    severity: ClassVar[Severity] = Severity.CRITICAL

    names: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"The following projections are not running: {', '.join(self.names)}"


@dataclass(frozen=True)
class ProjectionsBehind(Verdict):
    severity: ClassVar[Severity] = Severity.CRITICAL

    names: tuple[str, ...]
    progress_minimum: float

    @property
    def message(self) -> str:
        return (
            f"The following projections are not {self.progress_minimum}% done: "
            f"{', '.join(self.names)}"
        )


def evaluate_projections(
    projections: Sequence[Projection],
    progress_minimum: float = 100.0,
) -> Verdict:
    """Check that every projection is running and caught up.

    Stopped projections are reported before lagging ones.
    """
    not_running = tuple(p.name for p in projections if p.status != RUNNING)
    if not_running:
        return ProjectionsNotRunning(names=not_running)

    behind = tuple(p.name for p in projections if p.progress < progress_minimum)
    if behind:
        return ProjectionsBehind(names=behind, progress_minimum=progress_minimum)

    return ProjectionsHealthy()
