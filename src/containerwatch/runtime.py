"""Container CLI discovery.

The runtime's ``container`` executable is looked up once, in a fixed order,
among the usual install prefixes. A missing CLI is a normal state (the
monitor reports the service as stopped), not an error.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from containerwatch.logger import logger

CLI_NAME = "container"

SYSTEM_CANDIDATES: tuple[str, ...] = (
    f"/usr/local/bin/{CLI_NAME}",
    f"/opt/homebrew/bin/{CLI_NAME}",
    f"/usr/bin/{CLI_NAME}",
)


def candidate_paths(home: Path | None = None) -> list[Path]:
    """Return the ordered list of locations checked for the CLI."""
    home = home if home is not None else Path.home()
    return [
        *(Path(p) for p in SYSTEM_CANDIDATES),
        home / "bin" / CLI_NAME,
        home / ".local" / "bin" / CLI_NAME,
    ]


def find_container_cli(candidates: Iterable[Path] | None = None) -> str | None:
    """Return the first candidate that exists, or None if none do."""
    paths = list(candidates) if candidates is not None else candidate_paths()
    for path in paths:
        if path.exists():
            logger.info("Container CLI found", path=str(path))
            return str(path)
    logger.info("Container CLI not found", checked=[str(p) for p in paths])
    return None
