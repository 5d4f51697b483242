"""Order the matched records of one slot.

1. Every section value is a non-negative integer string: ascending numeric
   sort (stable, so equal values keep discovery order).
2. Otherwise, with an index record: each record is ranked by its position in
   the coordinate-pointer list; records not found there are ranked by the
   id-pointer list; records found in neither follow in discovery order.
3. Otherwise discovery order.

Coordinate-resolved records come before id-resolved ones. Resolution is per
record, so an index covering only some children still orders those it names.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any

from bookcite.matcher import MatchedRecord
from bookcite.records import INDEX_KIND, TAG_VERSION, Coordinate, IndexRecord, Record

_NUMERIC_RE = re.compile(r"[0-9]+")

_TIER_COORDINATE = 0
_TIER_ID = 1
_TIER_UNRESOLVED = 2


def is_numeric_section(value: str | None) -> bool:
    return value is not None and _NUMERIC_RE.fullmatch(value) is not None


def _first_positions(items: Iterable[Any]) -> dict[Any, int]:
    positions: dict[Any, int] = {}
    for idx, item in enumerate(items):
        positions.setdefault(item, idx)
    return positions


def order_matches(
    matches: Sequence[MatchedRecord],
    index: IndexRecord | None = None,
) -> list[MatchedRecord]:
    """Return *matches* in display order; never raises on a poor index."""
    if matches and all(is_numeric_section(m.section_value) for m in matches):
        return sorted(matches, key=lambda m: int(m.section_value or 0))
    if index is None or not index.has_pointers:
        return list(matches)

    coordinate_rank: dict[Coordinate, int] = _first_positions(index.coordinate_pointers)
    id_rank: dict[str, int] = _first_positions(index.id_pointers)

    def sort_key(item: tuple[int, MatchedRecord]) -> tuple[int, int, int]:
        discovery, match = item
        coordinate = match.record.coordinate
        if coordinate is not None and coordinate in coordinate_rank:
            return (_TIER_COORDINATE, coordinate_rank[coordinate], discovery)
        if match.record.id in id_rank:
            return (_TIER_ID, id_rank[match.record.id], discovery)
        return (_TIER_UNRESOLVED, discovery, discovery)

    return [match for _, match in sorted(enumerate(matches), key=sort_key)]


def order_records(
    records: Sequence[Record],
    section_values: Sequence[str | None],
    index_record: Record | IndexRecord | None = None,
) -> list[Record]:
    """Order *records* given their parallel *section_values*."""
    if len(records) != len(section_values):
        raise ValueError(
            f"records and section_values differ in length: {len(records)} != {len(section_values)}",
        )
    index = IndexRecord.from_record(index_record) if isinstance(index_record, Record) else index_record
    matches = [MatchedRecord(r, v) for r, v in zip(records, section_values, strict=True)]
    return [m.record for m in order_matches(matches, index)]


def select_index_record(
    candidates: Iterable[Record],
    *,
    version: str | None = None,
    index_kind: int = INDEX_KIND,
) -> IndexRecord | None:
    """Pick the governing index record among fetched candidates.

    Only records of *index_kind* carrying pointer tags qualify. Those tagged
    with *version* are preferred; ties go to the newest, then the greatest id.
    """
    pool = [
        index
        for index in (IndexRecord.from_record(r) for r in candidates if r.kind == index_kind)
        if index.has_pointers
    ]
    if version:
        versioned = [ix for ix in pool if version in ix.record.tag_values(TAG_VERSION)]
        pool = versioned or pool
    if not pool:
        return None
    return max(pool, key=lambda ix: (ix.record.created_at, ix.record.id))
