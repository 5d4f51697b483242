"""Static alias tables for named works, loaded once at import.

Each book type (collection) maps canonical work names and their
abbreviations to a canonical tag value, and version abbreviations to display
names. The tables are read-only: ``canonicalize_title`` is a pure function of
its inputs and this data.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from bookcite.io_utils import load_json

BOOK_TYPES_PATH = Path(__file__).resolve().parent / "data" / "book_types.json"

_QUOTES_RE = re.compile(r"[\"'‘’“”]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalize_tag_value(text: str) -> str:
    """Normalize free text into a tag value.

    Quotes are removed, letters lowercased, every other non-alphanumeric run
    becomes a single ``-`` and leading/trailing hyphens are trimmed::

        >>> normalize_tag_value('"Song of Solomon"')
        'song-of-solomon'
    """
    lowered = _QUOTES_RE.sub("", text or "").lower()
    return _NON_ALNUM_RE.sub("-", lowered).strip("-")


@dataclass(frozen=True, slots=True)
class BookType:
    """One collection's alias table."""

    name: str
    display_name: str
    aliases: Mapping[str, str]          # normalized alias -> canonical tag value
    title_names: Mapping[str, str]      # canonical tag value -> display name
    versions: Mapping[str, str]         # normalized version -> display name


def _build_book_type(entry: dict[str, Any]) -> BookType:
    aliases: dict[str, str] = {}
    title_names: dict[str, str] = {}
    titles: dict[str, list[str]] = entry.get("titles", {})
    # Canonical names claim their keys before any abbreviation can.
    for display in titles:
        canonical = normalize_tag_value(display)
        aliases.setdefault(canonical, canonical)
        title_names[canonical] = display
    for display, abbreviations in titles.items():
        canonical = normalize_tag_value(display)
        for abbreviation in abbreviations:
            aliases.setdefault(normalize_tag_value(abbreviation), canonical)
    versions = {
        normalize_tag_value(abbrev): name
        for abbrev, name in entry.get("versions", {}).items()
    }
    return BookType(
        name=normalize_tag_value(entry["name"]),
        display_name=str(entry.get("display_name") or entry["name"]),
        aliases=MappingProxyType(aliases),
        title_names=MappingProxyType(title_names),
        versions=MappingProxyType(versions),
    )


def load_book_types(path: Path = BOOK_TYPES_PATH) -> Mapping[str, BookType]:
    """Load alias tables from *path*, preserving declaration order."""
    payload = load_json(path)
    if not isinstance(payload, dict) or not isinstance(payload.get("book_types"), list):
        raise ValueError(f"Book type payload must hold a 'book_types' list: {path}")
    book_types: dict[str, BookType] = {}
    for entry in payload["book_types"]:
        book_type = _build_book_type(entry)
        book_types[book_type.name] = book_type
    return MappingProxyType(book_types)


BOOK_TYPES: Mapping[str, BookType] = load_book_types()


def known_collections() -> tuple[str, ...]:
    return tuple(BOOK_TYPES)


def canonicalize_title(raw_title: str, collection: str | None = None) -> str:
    """Resolve a raw title to its canonical tag value.

    A known *collection* restricts lookup to its own table; with no
    collection every table is tried in declaration order. Titles that no
    table knows pass through normalized, never as an error.
    """
    normalized = normalize_tag_value(raw_title)
    if collection is not None:
        book_type = BOOK_TYPES.get(collection)
        if book_type is None:
            return normalized
        return book_type.aliases.get(normalized, normalized)
    for book_type in BOOK_TYPES.values():
        canonical = book_type.aliases.get(normalized)
        if canonical is not None:
            return canonical
    return normalized


def title_display_name(title: str, collection: str | None = None) -> str:
    """Human-readable name for a canonical title, e.g. ``1-maccabees`` -> ``1 Maccabees``."""
    tables = [BOOK_TYPES[collection]] if collection in BOOK_TYPES else list(BOOK_TYPES.values())
    for book_type in tables:
        name = book_type.title_names.get(title)
        if name is not None:
            return name
    return title.replace("-", " ").title()


def version_display_name(version: str, collection: str | None = None) -> str:
    """Full name for a version abbreviation; the abbreviation upper-cased when unknown."""
    key = normalize_tag_value(version)
    tables = [BOOK_TYPES[collection]] if collection in BOOK_TYPES else list(BOOK_TYPES.values())
    for book_type in tables:
        name = book_type.versions.get(key)
        if name is not None:
            return name
    return version.upper()
