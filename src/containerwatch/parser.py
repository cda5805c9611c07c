"""Listing-output parser.

The container CLI's listing format has changed between releases: some
builds print a JSON array, others a whitespace-aligned table with or
without a header row. Parsing is an ordered chain of strategies; each one
either returns the parsed records or None for "not my format", and the
first match wins. The chain never raises: unrecognizable output yields an
empty list.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from containerwatch.types import ContainerRecord

HEADER_KEYWORDS = frozenset({"ID", "NAME", "CONTAINER"})
SEPARATOR_PREFIX = "---"
DEFAULT_STATUS = "unknown"

type Strategy = Callable[[str, str], list[ContainerRecord] | None]


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def _optional_str(item: dict[str, Any], key: str) -> str | None:
    value = item.get(key)
    return value if isinstance(value, str) else None


def parse_json(output: str, missing_status: str = DEFAULT_STATUS) -> list[ContainerRecord] | None:
    """Parse a JSON array of objects. Objects without a string ``name`` are skipped.

    ``missing_status`` is accepted for a uniform strategy signature; JSON
    objects without a state fall back to ``"unknown"``.
    """
    try:
        data = json.loads(output)
    except (ValueError, RecursionError):
        return None
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        return None

    records: list[ContainerRecord] = []
    for item in data:
        name = _optional_str(item, "name")
        if not name:
            continue
        status = _optional_str(item, "state") or _optional_str(item, "status") or DEFAULT_STATUS
        records.append(
            ContainerRecord(
                name=name,
                status=status,
                image=_optional_str(item, "image"),
                ports=_optional_str(item, "ports"),
                created=_optional_str(item, "created"),
            )
        )
    return records


# ---------------------------------------------------------------------------
# Text tables
# ---------------------------------------------------------------------------


def _is_header(tokens: list[str]) -> bool:
    return bool(tokens) and tokens[0].upper() in HEADER_KEYWORDS


def split_table(output: str) -> tuple[dict[str, int], list[list[str]]]:
    """Split table output into a column map and tokenized data rows.

    Blank lines and ``---`` separators are dropped. Header rows (first token
    ID/NAME/CONTAINER) populate the column map (upper-cased name → position)
    and are not returned as data.
    """
    columns: dict[str, int] = {}
    rows: list[list[str]] = []
    for line in output.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith(SEPARATOR_PREFIX):
            continue
        tokens = trimmed.split()
        if _is_header(tokens):
            for index, header in enumerate(tokens):
                columns[header.upper()] = index
            continue
        rows.append(tokens)
    return columns, rows


def _lookup(columns: dict[str, int], *names: str) -> int | None:
    for name in names:
        if name in columns:
            return columns[name]
    return None


def _field(tokens: list[str], index: int | None) -> str | None:
    if index is None or index >= len(tokens):
        return None
    return tokens[index]


def parse_headed_table(
    output: str, missing_status: str = DEFAULT_STATUS
) -> list[ContainerRecord] | None:
    """Parse a table whose columns are named by a header row."""
    columns, rows = split_table(output)
    if not columns:
        return None

    name_col = _lookup(columns, "ID", "NAME", "CONTAINER")
    name_col = 0 if name_col is None else name_col
    image_col = _lookup(columns, "IMAGE")
    image_col = 1 if image_col is None else image_col
    status_col = _lookup(columns, "STATE", "STATUS")
    status_col = 4 if status_col is None else status_col
    addr_col = _lookup(columns, "ADDR", "ADDRESS")

    records: list[ContainerRecord] = []
    for tokens in rows:
        name = _field(tokens, name_col)
        if not name:
            continue
        records.append(
            ContainerRecord(
                name=name,
                status=_field(tokens, status_col) or missing_status,
                image=_field(tokens, image_col),
                ports=_field(tokens, addr_col),
            )
        )
    return records


def parse_positional_table(
    output: str, missing_status: str = DEFAULT_STATUS
) -> list[ContainerRecord] | None:
    """Parse a headerless table: name, image, ..., status in column 4."""
    _, rows = split_table(output)
    return [
        ContainerRecord(
            name=tokens[0],
            status=_field(tokens, 4) or missing_status,
            image=_field(tokens, 1),
        )
        for tokens in rows
    ]


STRATEGIES: tuple[Strategy, ...] = (
    parse_json,
    parse_headed_table,
    parse_positional_table,
)


def parse_container_output(
    output: str, *, missing_status: str = DEFAULT_STATUS
) -> list[ContainerRecord]:
    """Parse listing output into records, in the order the CLI printed them."""
    for strategy in STRATEGIES:
        records = strategy(output, missing_status)
        if records is not None:
            return records
    return []
