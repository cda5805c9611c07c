"""Container runtime monitor: status polling and the operation gate.

The monitor owns a single ``MonitorState`` and publishes changes to it on an
``EventBus``. All state mutation happens on the event loop the monitor runs
on; CLI invocations are awaited as subprocesses, so the loop itself never
blocks on process I/O.

Polls are triggered by a periodic loop (``start()``) and on demand
(``check_status()``). Both go through the same admission check: while an
exclusive operation holds the gate, or while a poll cycle is already in
flight, new poll requests are dropped rather than queued.

The gate (``is_operating``) is a plain flag, not a lock. It is only safe
because every read and write happens on the owning event loop with no await
between check and set. Introducing writers on other threads would require a
real mutex.
"""

from __future__ import annotations

import asyncio
import contextlib
import shlex
from collections.abc import AsyncIterator, Callable
from datetime import datetime
from typing import Any

from containerwatch.config import Settings, get_settings
from containerwatch.event_bus import (
    ContainersChangedEvent,
    EventBus,
    OperatingChangedEvent,
    StatusChangedEvent,
    StatusCheckedEvent,
)
from containerwatch.logger import logger
from containerwatch.operations import ContainerOperationRunner
from containerwatch.parser import parse_container_output
from containerwatch.runtime import find_container_cli
from containerwatch.state import MonitorState, containers_equal
from containerwatch.types import ContainerRecord, RuntimeStatus
from containerwatch.utils import Executor, create_background_task, run_cli_command


class ContainerMonitor:
    """Polls the container CLI and exposes lifecycle operations.

    Construct inside a running event loop. The CLI path is resolved once, at
    construction; pass ``resolve`` to override discovery and ``executor`` to
    replace the subprocess runner (both used by tests).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        executor: Executor | None = None,
        resolve: Callable[[], str | None] = find_container_cli,
        event_bus: EventBus | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._executor = executor or run_cli_command
        self.event_bus = event_bus or EventBus()
        self._state = MonitorState(resolved_path=resolve())
        self._poll_task: asyncio.Task[Any] | None = None
        self._loop_task: asyncio.Task[Any] | None = None
        self._closed = False
        self.operations = ContainerOperationRunner(self, self._executor, self._settings)

    # -- Published state ------------------------------------------------

    @property
    def status(self) -> RuntimeStatus:
        return self._state.status

    @property
    def containers(self) -> tuple[ContainerRecord, ...]:
        return self._state.containers

    @property
    def last_updated(self) -> datetime:
        return self._state.last_updated

    @property
    def is_operating(self) -> bool:
        return self._state.is_operating

    @property
    def resolved_path(self) -> str | None:
        return self._state.resolved_path

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def running_containers(self) -> list[ContainerRecord]:
        return [c for c in self._state.containers if c.is_running]

    @property
    def stopped_containers(self) -> list[ContainerRecord]:
        return [c for c in self._state.containers if not c.is_running]

    # -- Lifecycle ------------------------------------------------------

    def start(self) -> None:
        """Run an initial check now and then every ``intervals.poll`` seconds."""
        if self._closed or self._loop_task is not None:
            return
        self._loop_task = create_background_task(self._poll_loop(), name="status-poll-loop")
        logger.info(
            "Monitoring started",
            interval=self._settings.intervals.poll,
            cli=self._state.resolved_path,
        )

    async def close(self) -> None:
        """Stop the periodic loop and wait for any in-flight poll to finish.

        Exclusive operations already running are not cancelled; they finish
        on their own but no longer publish poll results.
        """
        if self._closed:
            return
        self._closed = True
        pending = [t for t in (self._loop_task, self._poll_task) if t is not None]
        if self._loop_task is not None:
            self._loop_task.cancel()
        if pending:
            await asyncio.wait(pending)
        logger.info("Monitoring stopped")

    async def __aenter__(self) -> ContainerMonitor:
        self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def _poll_loop(self) -> None:
        while True:
            self.check_status()
            await asyncio.sleep(self._settings.intervals.poll)

    # -- Polling ----------------------------------------------------------

    def check_status(self) -> asyncio.Task[Any] | None:
        """Schedule one poll cycle. Returns the task, or None if the request was dropped."""
        if self._closed:
            return None
        if self._state.is_operating:
            logger.debug("Status check skipped, operation in progress")
            return None
        if self._poll_task is not None and not self._poll_task.done():
            logger.debug("Status check skipped, already in flight")
            return None
        # Assigned before the first await so back-to-back calls see it
        self._poll_task = create_background_task(self.run_status_check(), name="status-check")
        return self._poll_task

    async def refresh(self) -> RuntimeStatus:
        """Awaitable form of ``check_status()``.

        Waits for the scheduled cycle, or for the one already in flight, and
        returns the resulting status. Under the gate this returns the current
        status without polling.
        """
        task = self.check_status() or self._poll_task
        if task is not None and not task.done():
            await asyncio.wait([task])
        return self._state.status

    async def run_status_check(self) -> None:
        """One full poll cycle, bypassing admission checks.

        Called directly by exclusive operations, which already hold the gate.
        """
        path = self._state.resolved_path
        if path is None:
            self._publish(RuntimeStatus.STOPPED, [])
            return

        command = f"{shlex.quote(path)} {self._settings.runtime.listing_command}"
        result = await self._executor(command)
        if self._closed:
            return

        if result.start_error is not None:
            logger.warning("Container CLI could not be run", err=result.start_error)
            self._publish(RuntimeStatus.ERROR, [])
        elif result.returncode == 0 and (text := result.text) is not None:
            records = parse_container_output(
                text, missing_status=self._settings.runtime.missing_status
            )
            self._publish(RuntimeStatus.RUNNING, records)
        else:
            logger.debug("Container service not active", exit_code=result.returncode)
            self._publish(RuntimeStatus.STOPPED, [])

    def _publish(self, status: RuntimeStatus, records: list[ContainerRecord]) -> None:
        state = self._state
        previous = state.status
        state.status = status

        if not containers_equal(state.containers, records):
            state.containers = tuple(records)
            self.event_bus.emit(ContainersChangedEvent(containers=state.containers))

        if previous is not status:
            logger.info("Runtime status changed", status=status.label, previous=previous.label)
            self.event_bus.emit(StatusChangedEvent(status=status, previous=previous))

        now = state.touch()
        self.event_bus.emit(StatusCheckedEvent(status=status, last_updated=now))

    # -- Operation gate -------------------------------------------------

    @contextlib.asynccontextmanager
    async def exclusive(self, operation: str) -> AsyncIterator[None]:
        """Hold the gate for the duration of *operation*.

        The caller must check ``is_operating`` immediately before entering.
        A poll cycle already in flight is allowed to land first so the
        operation's own refresh is the last write.
        """
        self._set_operating(True, operation)
        try:
            if self._poll_task is not None and not self._poll_task.done():
                await asyncio.wait([self._poll_task])
            yield
        finally:
            self._set_operating(False, operation)

    def _set_operating(self, active: bool, operation: str) -> None:
        self._state.is_operating = active
        self.event_bus.emit(OperatingChangedEvent(active=active, operation=operation))

    # -- Operations -------------------------------------------------------

    async def start_service(self) -> bool:
        return await self.operations.start_service()

    async def stop_service(self) -> bool:
        return await self.operations.stop_service()

    async def toggle_service(self) -> bool:
        """Stop the service if it is running, start it otherwise."""
        if self._state.status is RuntimeStatus.ERROR:
            logger.info("Service toggle refused, runtime in error state")
            return False
        if self._state.status is RuntimeStatus.RUNNING:
            return await self.stop_service()
        return await self.start_service()

    async def start_container(self, name: str) -> bool:
        return await self.operations.start_container(name)

    async def stop_container(self, name: str) -> bool:
        return await self.operations.stop_container(name)

    async def restart_container(self, name: str) -> bool:
        return await self.operations.restart_container(name)

    async def remove_container(self, name: str) -> bool:
        return await self.operations.remove_container(name)
