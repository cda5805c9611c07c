"""Lifecycle operations: service start/stop and per-container actions.

Every operation follows the same shape: take the monitor's gate, run the
CLI command (or, for removal, a fallback chain of commands), wait a settle
delay so the runtime's state converges, re-run the full status check, and
release the gate. Failures are reported as ``False``, never raised, and the
refresh runs regardless of the command's outcome.
"""

from __future__ import annotations

import asyncio
import shlex
from typing import TYPE_CHECKING

from containerwatch.config import Settings
from containerwatch.logger import logger
from containerwatch.utils import Executor, log_shell_result

if TYPE_CHECKING:
    from containerwatch.monitor import ContainerMonitor


def remove_commands(name: str) -> list[str]:
    """Removal subcommands, tried in order until one succeeds.

    ``delete`` is what the Apple CLI understands; ``rm`` covers stopped
    containers on Docker-style CLIs and ``rm -f`` running ones.
    """
    quoted = shlex.quote(name)
    return [f"delete {quoted}", f"rm {quoted}", f"rm -f {quoted}"]


class ContainerOperationRunner:
    """Runs lifecycle commands for a monitor under its operation gate."""

    def __init__(
        self,
        monitor: ContainerMonitor,
        executor: Executor,
        settings: Settings,
    ) -> None:
        self._monitor = monitor
        self._executor = executor
        self._settings = settings

    async def start_service(self) -> bool:
        return await self._run("service start", ["system start"], self._service_settle)

    async def stop_service(self) -> bool:
        return await self._run("service stop", ["system stop"], self._service_settle)

    async def start_container(self, name: str) -> bool:
        return await self._run_single("start", name)

    async def stop_container(self, name: str) -> bool:
        return await self._run_single("stop", name)

    async def restart_container(self, name: str) -> bool:
        return await self._run_single("restart", name)

    async def remove_container(self, name: str) -> bool:
        return await self._run(f"remove {name}", remove_commands(name), self._container_settle)

    @property
    def _service_settle(self) -> float:
        return self._settings.intervals.service_settle

    @property
    def _container_settle(self) -> float:
        return self._settings.intervals.container_settle

    async def _run_single(self, verb: str, name: str) -> bool:
        return await self._run(
            f"{verb} {name}", [f"{verb} {shlex.quote(name)}"], self._container_settle
        )

    async def _run(self, operation: str, subcommands: list[str], settle: float) -> bool:
        """Run *subcommands* in order under the gate, stopping at the first success."""
        monitor = self._monitor
        path = monitor.resolved_path
        if path is None:
            logger.info("Operation unavailable, container CLI not found", operation=operation)
            return False
        if monitor.closed:
            logger.info("Operation refused, monitor is closed", operation=operation)
            return False
        # No await between this check and taking the gate
        if monitor.is_operating:
            logger.info("Operation dropped, another one is in progress", operation=operation)
            return False

        async with monitor.exclusive(operation):
            success = False
            for subcommand in subcommands:
                result = await self._executor(f"{shlex.quote(path)} {subcommand}")
                log_shell_result(result, label=f"container {subcommand}")
                if result.ok:
                    success = True
                    break

            await asyncio.sleep(settle)
            await monitor.run_status_check()

        return success
