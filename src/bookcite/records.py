"""Immutable signed records and the index records that order them.

Records are produced by an external store and consumed read-only. Tags are
kept as an ordered tuple of ``(key, value)`` pairs because keys repeat: a
record spanning several sections carries one ``s`` tag per section.

Tag schema:
    C — collection        T — title          c — chapter
    s — section (repeat)  v — version (repeat)
    d — slug identifier
    e — ordered child-by-id pointer (repeat)
    a — ordered child-by-coordinate pointer ``kind:pubkey:slug`` (repeat)
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeAlias

from bookcite.io_utils import load_jsonl

TAG_COLLECTION = "C"
TAG_TITLE = "T"
TAG_CHAPTER = "c"
TAG_SECTION = "s"
TAG_VERSION = "v"
TAG_SLUG = "d"
TAG_ID_POINTER = "e"
TAG_COORDINATE_POINTER = "a"

CONTENT_KIND = 30041
INDEX_KIND = 30040


class RecordFormatError(ValueError):
    """Raised when a JSON payload cannot be read as a Record."""


Tag: TypeAlias = tuple[str, str]


@dataclass(frozen=True, slots=True)
class Coordinate:
    """Address of a replaceable record: ``kind:pubkey:slug``."""

    kind: int
    pubkey: str
    slug: str

    @classmethod
    def parse(cls, value: str) -> Coordinate | None:
        """Parse ``kind:pubkey:slug``; return None when malformed.

        The slug is everything after the second colon and may itself
        contain colons.
        """
        parts = value.split(":", 2)
        if len(parts) != 3:
            return None
        kind_text, pubkey, slug = parts
        if not kind_text.isdigit() or not pubkey or not slug:
            return None
        return cls(kind=int(kind_text), pubkey=pubkey, slug=slug)

    def __str__(self) -> str:
        return f"{self.kind}:{self.pubkey}:{self.slug}"


@dataclass(frozen=True, slots=True)
class Record:
    """A signed, tagged document."""

    id: str
    pubkey: str
    kind: int
    created_at: int
    tags: tuple[Tag, ...]
    content: str = ""
    sig: str = ""

    def tag_values(self, key: str) -> tuple[str, ...]:
        """All values for *key*, in tag order."""
        return tuple(value for tag_key, value in self.tags if tag_key == key)

    def first_tag(self, key: str) -> str | None:
        for tag_key, value in self.tags:
            if tag_key == key:
                return value
        return None

    def has_tag(self, key: str, value: str) -> bool:
        return any(tag_key == key and tag_value == value for tag_key, tag_value in self.tags)

    @property
    def slug(self) -> str | None:
        return self.first_tag(TAG_SLUG)

    @property
    def coordinate(self) -> Coordinate | None:
        """This record's own coordinate, or None without a ``d`` tag."""
        slug = self.slug
        if not slug:
            return None
        return Coordinate(kind=self.kind, pubkey=self.pubkey, slug=slug)


@dataclass(frozen=True, slots=True)
class IndexRecord:
    """A record that declares the canonical order of its children.

    ``id_pointers`` and ``coordinate_pointers`` keep declaration order.
    Malformed coordinate pointers are dropped.
    """

    record: Record
    id_pointers: tuple[str, ...]
    coordinate_pointers: tuple[Coordinate, ...]

    @classmethod
    def from_record(cls, record: Record) -> IndexRecord:
        coordinates: list[Coordinate] = []
        for raw in record.tag_values(TAG_COORDINATE_POINTER):
            coordinate = Coordinate.parse(raw)
            if coordinate is not None:
                coordinates.append(coordinate)
        return cls(
            record=record,
            id_pointers=tuple(v for v in record.tag_values(TAG_ID_POINTER) if v),
            coordinate_pointers=tuple(coordinates),
        )

    @property
    def has_pointers(self) -> bool:
        return bool(self.id_pointers or self.coordinate_pointers)


def _coerce_tags(raw_tags: Any) -> tuple[Tag, ...]:
    if not isinstance(raw_tags, list):
        raise RecordFormatError("tags must be a list")
    tags: list[Tag] = []
    for raw in raw_tags:
        if not isinstance(raw, list):
            raise RecordFormatError(f"tag must be a list, got {type(raw).__name__}")
        # ["e", id, relay-hint] style tags keep key and value only
        if len(raw) < 2:
            continue
        key, value = raw[0], raw[1]
        if not isinstance(key, str) or not isinstance(value, str):
            raise RecordFormatError(f"tag key and value must be strings: {raw!r}")
        tags.append((key, value))
    return tuple(tags)


def record_from_json(payload: dict[str, Any]) -> Record:
    """Build a Record from a Nostr-style event object."""
    for name in ("id", "pubkey", "kind", "tags"):
        if name not in payload:
            raise RecordFormatError(f"record is missing required field {name!r}")
    record_id = payload["id"]
    pubkey = payload["pubkey"]
    kind = payload["kind"]
    created_at = payload.get("created_at", 0)
    if not isinstance(record_id, str) or not record_id:
        raise RecordFormatError("id must be a non-empty string")
    if not isinstance(pubkey, str):
        raise RecordFormatError("pubkey must be a string")
    if isinstance(kind, bool) or not isinstance(kind, int):
        raise RecordFormatError("kind must be an integer")
    if isinstance(created_at, bool) or not isinstance(created_at, int):
        raise RecordFormatError("created_at must be an integer")
    return Record(
        id=record_id,
        pubkey=pubkey,
        kind=kind,
        created_at=created_at,
        tags=_coerce_tags(payload["tags"]),
        content=str(payload.get("content") or ""),
        sig=str(payload.get("sig") or ""),
    )


def record_to_json(record: Record) -> dict[str, Any]:
    """Inverse of ``record_from_json``."""
    return {
        "id": record.id,
        "pubkey": record.pubkey,
        "kind": record.kind,
        "created_at": record.created_at,
        "tags": [[key, value] for key, value in record.tags],
        "content": record.content,
        "sig": record.sig,
    }


def load_records(path: Path) -> list[Record]:
    """Load records from a JSONL file, one event object per line."""
    records: list[Record] = []
    for lineno, payload in enumerate(load_jsonl(path), start=1):
        try:
            records.append(record_from_json(payload))
        except RecordFormatError as exc:
            raise RecordFormatError(f"{path}: record {lineno}: {exc}") from exc
    return records
