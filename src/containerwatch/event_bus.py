"""Lightweight asyncio event bus for publishing monitor state changes."""

from __future__ import annotations

import asyncio
import contextlib
from collections import defaultdict
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from containerwatch.logger import logger
from containerwatch.types import ContainerRecord, RuntimeStatus

# --- Event types ---


@dataclass
class StatusChangedEvent:
    """The runtime status moved to a different variant."""

    status: RuntimeStatus
    previous: RuntimeStatus


@dataclass
class ContainersChangedEvent:
    """The published container list changed content."""

    containers: tuple[ContainerRecord, ...]


@dataclass
class OperatingChangedEvent:
    """An exclusive operation started (active=True) or finished."""

    active: bool
    operation: str  # e.g. "service start", "restart web"


@dataclass
class StatusCheckedEvent:
    """A poll cycle completed, whatever its outcome."""

    status: RuntimeStatus
    last_updated: datetime


type Event = StatusChangedEvent | ContainersChangedEvent | OperatingChangedEvent | StatusCheckedEvent
type Listener = Callable[[Any], Coroutine[Any, Any, None]]


class EventBus:
    """Fire-and-forget async event dispatcher."""

    def __init__(self) -> None:
        self._listeners: defaultdict[type, list[Listener]] = defaultdict(list)

    def subscribe(self, event_type: type, listener: Listener) -> Callable[[], None]:
        """Subscribe to an event type. Returns an unsubscribe function."""
        self._listeners[event_type].append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners[event_type].remove(listener)

        return _unsubscribe

    def emit(self, event: Event) -> None:
        """Emit an event to all subscribers. Non-blocking, fire-and-forget."""
        for listener in self._listeners[type(event)]:
            asyncio.ensure_future(_safe_call(listener, event))


async def _safe_call(listener: Listener, event: Event) -> None:
    try:
        await listener(event)
    except Exception as exc:
        logger.warning("EventBus listener error", err=str(exc), event=type(event).__name__)
