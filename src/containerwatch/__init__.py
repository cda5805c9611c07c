"""containerwatch: poll and control a local container runtime through its CLI."""

from containerwatch.monitor import ContainerMonitor
from containerwatch.types import ContainerRecord, RuntimeStatus

__all__ = ["ContainerMonitor", "ContainerRecord", "RuntimeStatus"]
