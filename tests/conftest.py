"""Shared test fixtures for containerwatch."""

from __future__ import annotations

import asyncio

import pytest

from containerwatch.utils import ShellResult

CLI = "/usr/local/bin/container"

# ---------------------------------------------------------------------------
# Shared helpers (plain functions, not fixtures, importable by test files)
# ---------------------------------------------------------------------------


def make_settings(**overrides):
    """Create a Settings object from pure defaults, no config file or env.

    Usage::

        s = make_settings()
        s = make_settings(intervals=IntervalsConfig(poll=0.01))
    """
    from containerwatch.config import IntervalsConfig, LoggingConfig, RuntimeConfig, Settings

    defaults = {
        "runtime": RuntimeConfig(),
        "intervals": IntervalsConfig(),
        "logging": LoggingConfig(),
    }
    defaults.update(overrides)
    return Settings.model_construct(**defaults)


def fast_settings(**overrides):
    """Settings with zero settle delays so operation tests don't sleep."""
    from containerwatch.config import IntervalsConfig

    overrides.setdefault("intervals", IntervalsConfig(container_settle=0, service_settle=0))
    return make_settings(**overrides)


def ok(stdout: str | bytes = b"") -> ShellResult:
    data = stdout.encode() if isinstance(stdout, str) else stdout
    return ShellResult(returncode=0, stdout=data, stderr="")


def failed(returncode: int = 1, stderr: str = "error") -> ShellResult:
    return ShellResult(returncode=returncode, stdout=b"", stderr=stderr)


def spawn_error(message: str = "Permission denied") -> ShellResult:
    return ShellResult(returncode=None, stdout=b"", stderr="", start_error=message)


class FakeCli:
    """Stand-in for ``run_cli_command``.

    Responses are keyed by subcommand (the command line minus the CLI path).
    A list value is consumed one result per call. Unknown subcommands
    succeed with empty output. Set ``hold`` to an Event to make every call
    wait on it, to observe state mid-command.
    """

    def __init__(self, responses: dict[str, ShellResult | list[ShellResult]] | None = None):
        self.responses: dict[str, ShellResult | list[ShellResult]] = dict(responses or {})
        self.calls: list[str] = []
        self.hold: asyncio.Event | None = None

    @property
    def subcommands(self) -> list[str]:
        return [c.removeprefix(f"{CLI} ") for c in self.calls]

    async def __call__(self, command: str) -> ShellResult:
        self.calls.append(command)
        if self.hold is not None:
            await self.hold.wait()
        response = self.responses.get(command.removeprefix(f"{CLI} "), ok())
        if isinstance(response, list):
            return response.pop(0) if response else ok()
        return response


# ---------------------------------------------------------------------------
# Autouse fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Ensure each test starts with a clean Settings singleton built from defaults."""
    monkeypatch.setattr("containerwatch.config._settings", make_settings())


# ---------------------------------------------------------------------------
# Reusable fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli() -> FakeCli:
    return FakeCli()


@pytest.fixture
def monitor(cli: FakeCli):
    from containerwatch.monitor import ContainerMonitor

    return ContainerMonitor(fast_settings(), executor=cli, resolve=lambda: CLI)
