"""I/O utilities for JSON and JSONL files.

orjson-backed loaders for the packaged alias tables, resolver config files
and record dumps, plus the byte-level encoder the CLI writes with.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dump_json_bytes(obj, pretty=pretty))


def dump_json_bytes(obj: Any, *, pretty: bool = True) -> bytes:
    """Encode *obj* as JSON bytes with sorted keys."""
    opts = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS if pretty else orjson.OPT_SORT_KEYS
    return orjson.dumps(obj, option=opts)


def load_jsonl(path: Path) -> list[dict[str, Any]]:
    """Load a JSON Lines file (one JSON object per line). Blank lines skipped.

    Raises ``ValueError`` naming the 1-based line number when a line is not
    valid JSON or does not hold an object.
    """
    records: list[dict[str, Any]] = []
    for lineno, line in enumerate(path.read_bytes().split(b"\n"), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            payload = orjson.loads(line)
        except orjson.JSONDecodeError as exc:
            raise ValueError(f"{path}:{lineno}: invalid JSON ({exc})") from exc
        if not isinstance(payload, dict):
            raise ValueError(f"{path}:{lineno}: expected a JSON object")
        records.append(payload)
    return records


def save_jsonl(records: list[dict[str, Any]], path: Path) -> None:
    """Save a list of dicts as a JSON Lines file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [orjson.dumps(r) for r in records]
    path.write_bytes(b"\n".join(lines) + b"\n")
