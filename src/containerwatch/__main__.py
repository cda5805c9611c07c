"""Entry point for `python -m containerwatch` / `containerwatch`.

Subcommands:
    containerwatch                      Watch the runtime (default)
    containerwatch status [--json]      One status check, printed
    containerwatch service ACTION       start | stop | toggle the runtime service
    containerwatch start|stop|restart|rm NAME
                                        Act on one container
"""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys
from collections.abc import Sequence

from containerwatch.config import get_settings
from containerwatch.event_bus import (
    ContainersChangedEvent,
    OperatingChangedEvent,
    StatusChangedEvent,
)
from containerwatch.logger import logger, set_level
from containerwatch.monitor import ContainerMonitor
from containerwatch.types import ContainerRecord, RuntimeStatus

_CONTAINER_ACTIONS = ("start", "stop", "restart", "rm")
_COLUMNS = ("NAME", "STATUS", "IMAGE", "PORTS")


def render_table(containers: Sequence[ContainerRecord]) -> str:
    rows = [_COLUMNS] + [
        (c.name, c.status, c.image or "-", c.ports or "-") for c in containers
    ]
    widths = [max(len(row[i]) for row in rows) for i in range(len(_COLUMNS))]
    return "\n".join(
        "  ".join(cell.ljust(width) for cell, width in zip(row, widths, strict=True)).rstrip()
        for row in rows
    )


async def _status(as_json: bool) -> int:
    monitor = ContainerMonitor()
    status = await monitor.refresh()
    if as_json:
        payload = {
            "status": status.label,
            "last_updated": monitor.last_updated.isoformat(),
            "containers": [c.to_dict() for c in monitor.containers],
        }
        print(json.dumps(payload, indent=2))
    else:
        print(f"Runtime: {status.label} (checked {monitor.last_updated:%H:%M:%S})")
        if monitor.containers:
            print(render_table(monitor.containers))
    return 0 if status is RuntimeStatus.RUNNING else 1


async def _service(action: str) -> int:
    monitor = ContainerMonitor()
    match action:
        case "start":
            ok = await monitor.start_service()
        case "stop":
            ok = await monitor.stop_service()
        case _:
            await monitor.refresh()
            ok = await monitor.toggle_service()
    print(f"Runtime: {monitor.status.label}")
    return 0 if ok else 1


async def _container(action: str, name: str) -> int:
    monitor = ContainerMonitor()
    match action:
        case "start":
            ok = await monitor.start_container(name)
        case "stop":
            ok = await monitor.stop_container(name)
        case "restart":
            ok = await monitor.restart_container(name)
        case _:
            ok = await monitor.remove_container(name)
    if not ok:
        print(f"Error: '{action} {name}' failed", file=sys.stderr)
    return 0 if ok else 1


async def _watch() -> int:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    monitor = ContainerMonitor()

    async def on_status(event: StatusChangedEvent) -> None:
        logger.info("Status", status=event.status.label, previous=event.previous.label)

    async def on_containers(event: ContainersChangedEvent) -> None:
        logger.info(
            "Containers",
            total=len(event.containers),
            running=sum(1 for c in event.containers if c.is_running),
            names=[c.name for c in event.containers],
        )

    async def on_operating(event: OperatingChangedEvent) -> None:
        logger.info("Operation", operation=event.operation, active=event.active)

    monitor.event_bus.subscribe(StatusChangedEvent, on_status)
    monitor.event_bus.subscribe(ContainersChangedEvent, on_containers)
    monitor.event_bus.subscribe(OperatingChangedEvent, on_operating)

    async with monitor:
        await stop.wait()
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="containerwatch",
        description="Monitor and control the local container runtime",
    )
    parser.add_argument("--log-level", help="Override the configured log level")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("watch", help="Poll the runtime and log changes (default)")
    status_parser = sub.add_parser("status", help="Check the runtime once")
    status_parser.add_argument("--json", action="store_true", help="Print JSON")
    service_parser = sub.add_parser("service", help="Control the runtime service")
    service_parser.add_argument("action", choices=["start", "stop", "toggle"])
    for action in _CONTAINER_ACTIONS:
        action_parser = sub.add_parser(action, help=f"{action} a container")
        action_parser.add_argument("name")

    args = parser.parse_args(argv)
    set_level(args.log_level or get_settings().logging.level)

    match args.command:
        case "status":
            code = asyncio.run(_status(args.json))
        case "service":
            code = asyncio.run(_service(args.action))
        case "start" | "stop" | "restart" | "rm":
            code = asyncio.run(_container(args.command, args.name))
        case _:
            code = asyncio.run(_watch())
    sys.exit(code)


if __name__ == "__main__":
    main()
