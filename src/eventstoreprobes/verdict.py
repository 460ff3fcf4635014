"""Check results shared by all probes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar


class Severity(IntEnum):
    """Check outcome severity; values are the process exit codes."""

    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3


@dataclass(frozen=True)
class Verdict(ABC):
    """Base class for the outcome of one health evaluation."""

    severity: ClassVar[Severity] = Severity.OK

    @property
    def is_healthy(self) -> bool:
        return self.severity is Severity.OK

    @property
    @abstractmethod
    def message(self) -> str:
        """Human readable summary for the monitoring pipeline."""
        ...
