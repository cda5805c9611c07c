"""Monitor state record and container-list diffing."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from containerwatch.types import ContainerRecord, RuntimeStatus


def containers_equal(lhs: Sequence[ContainerRecord], rhs: Sequence[ContainerRecord]) -> bool:
    """True when both lists describe the same containers, ignoring order and identity."""
    if len(lhs) != len(rhs):
        return False
    return Counter((c.name, c.content) for c in lhs) == Counter((c.name, c.content) for c in rhs)


@dataclass
class MonitorState:
    """Everything the monitor publishes. Mutated only on the owning event loop."""

    resolved_path: str | None = None
    status: RuntimeStatus = RuntimeStatus.STOPPED
    containers: tuple[ContainerRecord, ...] = ()
    last_updated: datetime = field(default_factory=lambda: datetime.now(UTC))
    is_operating: bool = False

    def touch(self, now: datetime | None = None) -> datetime:
        """Advance last_updated to *now* (default: current time), never backwards."""
        now = now if now is not None else datetime.now(UTC)
        self.last_updated = max(self.last_updated, now)
        return self.last_updated
