"""Data models for containerwatch."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

type PresentationHint = Literal["success", "neutral", "failure"]


class RuntimeStatus(Enum):
    """Overall state of the container runtime service."""

    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def hint(self) -> PresentationHint:
        """Rendering hint for front ends (green / plain / red)."""
        return _HINTS[self]


_LABELS: dict[RuntimeStatus, str] = {
    RuntimeStatus.RUNNING: "Running",
    RuntimeStatus.STOPPED: "Stopped",
    RuntimeStatus.ERROR: "Error",
}

_HINTS: dict[RuntimeStatus, PresentationHint] = {
    RuntimeStatus.RUNNING: "success",
    RuntimeStatus.STOPPED: "neutral",
    RuntimeStatus.ERROR: "failure",
}


def _new_identity() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ContainerRecord:
    """One container as reported by the runtime's listing command.

    ``identity`` is assigned locally so list entries can be told apart by a
    front end. It never takes part in equality: two records describing the
    same container compare equal even when parsed on different cycles.
    """

    name: str
    status: str  # free-form, as reported ("running", "exited", "paused", ...)
    image: str | None = None
    ports: str | None = None  # ports or network address
    created: str | None = None
    identity: str = field(default_factory=_new_identity, compare=False, repr=False)

    @property
    def content(self) -> tuple[str, str | None, str | None, str | None]:
        """The fields compared per name when diffing lists."""
        return (self.status, self.image, self.ports, self.created)

    @property
    def is_running(self) -> bool:
        status = self.status.lower()
        return status in ("running", "up") or "running" in status

    def to_dict(self) -> dict[str, str]:
        """Serialize for JSON output, omitting absent optional fields."""
        data = {
            "name": self.name,
            "status": self.status,
            "image": self.image,
            "ports": self.ports,
            "created": self.created,
        }
        return {k: v for k, v in data.items() if v is not None}
