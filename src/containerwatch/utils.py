"""Shared utility functions.

Small helpers used across modules: running the container CLI through a
subshell with a predictable PATH, fire-and-forget task creation, and
logging of command outcomes.
"""

from __future__ import annotations

import asyncio
import os
from asyncio.subprocess import PIPE
from collections.abc import Awaitable, Callable, Coroutine, Mapping
from dataclasses import dataclass
from typing import Any

from containerwatch.logger import logger

# Install prefixes searched before whatever PATH we inherited
PATH_PREFIX = "/usr/local/bin:/opt/homebrew/bin:/usr/bin"
FALLBACK_PATH = f"{PATH_PREFIX}:/bin:/usr/sbin:/sbin"


def create_background_task(
    coro: Coroutine[Any, Any, Any],
    *,
    name: str | None = None,
) -> asyncio.Task[Any]:
    """Create an asyncio task that logs exceptions instead of swallowing them.

    A drop-in replacement for ``asyncio.create_task`` for fire-and-forget
    work (poll cycles, the periodic loop) where nobody awaits the result
    but failures must still appear in logs.
    """
    task = asyncio.create_task(coro, name=name)
    task.add_done_callback(_log_task_exception)
    return task


def _log_task_exception(task: asyncio.Task[Any]) -> None:
    """Callback attached to background tasks; logs unhandled exceptions."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        # exc_info instead of logger.exception(): we're in a done-callback,
        # not an except handler.
        logger.error(
            "Background task failed",
            task_name=task.get_name(),
            exc_info=exc,
        )


@dataclass
class ShellResult:
    """Result of one CLI invocation.

    ``start_error`` is set when the process could not be spawned at all; in
    that case ``returncode`` is None. Otherwise ``returncode`` is the exit
    status and ``stdout`` the raw bytes the process wrote.
    """

    returncode: int | None
    stdout: bytes
    stderr: str
    start_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.start_error is None and self.returncode == 0

    @property
    def text(self) -> str | None:
        """stdout decoded as UTF-8, or None if it isn't valid UTF-8."""
        try:
            return self.stdout.decode("utf-8")
        except UnicodeDecodeError:
            return None


type Executor = Callable[[str], Awaitable[ShellResult]]


def build_cli_env(base: Mapping[str, str] | None = None) -> dict[str, str]:
    """Copy of *base* (default: os.environ) with the install prefixes on PATH."""
    env = dict(os.environ if base is None else base)
    existing = env.get("PATH")
    env["PATH"] = f"{PATH_PREFIX}:{existing}" if existing else FALLBACK_PATH
    return env


async def run_cli_command(command: str) -> ShellResult:
    """Run *command* via ``/bin/sh -c`` and wait for it to exit.

    There is no timeout: the awaiting caller resumes only once the child has
    exited and its output has been drained. The event loop is never blocked.
    """
    try:
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=PIPE,
            stderr=PIPE,
            env=build_cli_env(),
        )
    except OSError as exc:
        return ShellResult(returncode=None, stdout=b"", stderr="", start_error=str(exc))

    try:
        stdout, stderr = await process.communicate()
    except OSError as exc:
        return ShellResult(returncode=None, stdout=b"", stderr="", start_error=str(exc))

    return ShellResult(
        returncode=process.returncode,
        stdout=stdout,
        stderr=stderr.decode(errors="replace").strip(),
    )


def log_shell_result(
    result: ShellResult,
    *,
    label: str,
    **extra: Any,
) -> None:
    """Log the outcome of a CLI invocation."""
    if result.start_error:
        logger.error(f"Failed to start {label}", err=result.start_error, **extra)
    elif result.returncode == 0:
        logger.info(f"{label} completed", exit_code=result.returncode, **extra)
    else:
        logger.warning(
            f"{label} failed",
            exit_code=result.returncode,
            stderr_tail=result.stderr[-500:] if result.stderr else "",
            **extra,
        )
