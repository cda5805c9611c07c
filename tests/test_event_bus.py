"""Tests for the EventBus pub/sub system."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from containerwatch.event_bus import (
    ContainersChangedEvent,
    EventBus,
    OperatingChangedEvent,
    StatusChangedEvent,
    StatusCheckedEvent,
)
from containerwatch.types import ContainerRecord, RuntimeStatus


@pytest.fixture
def bus() -> EventBus:
    """Create a fresh EventBus for each test."""
    return EventBus()


class TestEventBus:
    """Test EventBus subscription and emission."""

    async def test_subscribe_and_emit_status_changed(self, bus: EventBus) -> None:
        received: list[StatusChangedEvent] = []

        async def listener(event: StatusChangedEvent) -> None:
            received.append(event)

        bus.subscribe(StatusChangedEvent, listener)
        event = StatusChangedEvent(status=RuntimeStatus.RUNNING, previous=RuntimeStatus.STOPPED)
        bus.emit(event)

        # Give event loop time to process
        await asyncio.sleep(0.01)

        assert received == [event]

    async def test_listeners_only_receive_their_type(self, bus: EventBus) -> None:
        containers: list[ContainersChangedEvent] = []
        operating: list[OperatingChangedEvent] = []

        async def on_containers(event: ContainersChangedEvent) -> None:
            containers.append(event)

        async def on_operating(event: OperatingChangedEvent) -> None:
            operating.append(event)

        bus.subscribe(ContainersChangedEvent, on_containers)
        bus.subscribe(OperatingChangedEvent, on_operating)

        bus.emit(ContainersChangedEvent(containers=(ContainerRecord("web", "running"),)))
        await asyncio.sleep(0.01)

        assert len(containers) == 1
        assert operating == []

    async def test_multiple_listeners(self, bus: EventBus) -> None:
        calls: list[str] = []

        async def first(event: StatusCheckedEvent) -> None:
            calls.append("first")

        async def second(event: StatusCheckedEvent) -> None:
            calls.append("second")

        bus.subscribe(StatusCheckedEvent, first)
        bus.subscribe(StatusCheckedEvent, second)
        bus.emit(StatusCheckedEvent(status=RuntimeStatus.STOPPED, last_updated=datetime.now(UTC)))
        await asyncio.sleep(0.01)

        assert sorted(calls) == ["first", "second"]

    async def test_unsubscribe(self, bus: EventBus) -> None:
        received: list[OperatingChangedEvent] = []

        async def listener(event: OperatingChangedEvent) -> None:
            received.append(event)

        unsubscribe = bus.subscribe(OperatingChangedEvent, listener)
        unsubscribe()
        # Second call is a no-op
        unsubscribe()

        bus.emit(OperatingChangedEvent(active=True, operation="service start"))
        await asyncio.sleep(0.01)

        assert received == []

    async def test_listener_error_does_not_affect_others(self, bus: EventBus) -> None:
        received: list[OperatingChangedEvent] = []

        async def broken(event: OperatingChangedEvent) -> None:
            raise ValueError("listener bug")

        async def healthy(event: OperatingChangedEvent) -> None:
            received.append(event)

        bus.subscribe(OperatingChangedEvent, broken)
        bus.subscribe(OperatingChangedEvent, healthy)
        bus.emit(OperatingChangedEvent(active=False, operation="stop web"))
        await asyncio.sleep(0.01)

        assert len(received) == 1

    async def test_emit_without_listeners(self, bus: EventBus) -> None:
        bus.emit(StatusChangedEvent(status=RuntimeStatus.ERROR, previous=RuntimeStatus.RUNNING))
        await asyncio.sleep(0.01)
