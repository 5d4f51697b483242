"""Resolver settings loaded from JSON."""
from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from bookcite.io_utils import load_json
from bookcite.records import CONTENT_KIND, INDEX_KIND


@dataclass(frozen=True, slots=True)
class ResolverConfig:
    """Knobs for the async resolution pipeline."""

    max_concurrency: int = 8
    fetch_timeout_seconds: float = 10.0
    content_kind: int = CONTENT_KIND
    index_kind: int = INDEX_KIND
    use_index_ordering: bool = True


_INT_FIELDS = {"max_concurrency", "content_kind", "index_kind"}


def resolver_config_from_dict(d: dict[str, Any]) -> ResolverConfig:
    """Create a ResolverConfig from a dict, ignoring unknown keys.

    Raises ValueError on values of the wrong type or out of range.
    """
    valid_fields = {f.name for f in fields(ResolverConfig)}
    converted: dict[str, Any] = {}
    for key, val in d.items():
        if key not in valid_fields:
            continue
        if key in _INT_FIELDS:
            if isinstance(val, bool) or not isinstance(val, int):
                raise ValueError(f"{key} must be an integer, got {val!r}")
            if val < 1:
                raise ValueError(f"{key} must be positive, got {val}")
        elif key == "fetch_timeout_seconds":
            if isinstance(val, bool) or not isinstance(val, (int, float)) or val <= 0:
                raise ValueError(f"fetch_timeout_seconds must be a positive number, got {val!r}")
            val = float(val)
        elif key == "use_index_ordering" and not isinstance(val, bool):
            raise ValueError(f"use_index_ordering must be a boolean, got {val!r}")
        converted[key] = val
    return ResolverConfig(**converted)


def load_resolver_config(path: Path) -> ResolverConfig:
    payload = load_json(path)
    if not isinstance(payload, dict):
        raise ValueError(f"{path}: resolver config must be a JSON object")
    return resolver_config_from_dict(payload)
