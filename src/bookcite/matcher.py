"""Match candidate records against slot predicates.

A record satisfies ``(key, value)`` when any of its tags for ``key`` equals
``value``; keys repeat, so a record spanning sections 4-6 satisfies
``s=4``, ``s=5`` and ``s=6`` alike.

For a section-bearing slot the range predicate is tried first; only when it
matches nothing are the unit predicates tried, and their union is
de-duplicated by record id in first-match order.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from bookcite.queries import Predicate, SlotQuery
from bookcite.records import TAG_SECTION, Record

STRATEGY_REFERENCE = "reference"
STRATEGY_RANGE = "range"
STRATEGY_UNITS = "units"


@dataclass(frozen=True, slots=True)
class MatchedRecord:
    """A matched record plus the section value it was matched under."""

    record: Record
    section_value: str | None = None


@dataclass(frozen=True, slots=True)
class SlotMatch:
    """Matcher output for one slot."""

    matches: tuple[MatchedRecord, ...]
    strategy: str  # "reference" | "range" | "units"

    @property
    def records(self) -> list[Record]:
        return [m.record for m in self.matches]


def record_satisfies(record: Record, predicate: Predicate) -> bool:
    return all(record.has_tag(key, value) for key, value in predicate.constraints)


def union_records(groups: Iterable[Iterable[Record]]) -> list[Record]:
    """Concatenate record groups keeping the first occurrence of each id."""
    seen: set[str] = set()
    out: list[Record] = []
    for group in groups:
        for record in group:
            if record.id in seen:
                continue
            seen.add(record.id)
            out.append(record)
    return out


def match_predicate(predicate: Predicate, candidates: Iterable[Record]) -> list[Record]:
    """Candidates satisfying *predicate*, each id once, in candidate order."""
    return union_records([(r for r in candidates if record_satisfies(r, predicate))])


def section_value_for(record: Record, query: SlotQuery) -> str | None:
    """The section tag a record answers for in *query*.

    Prefers the first queried unit the record carries, then the range text,
    then the record's first section tag.
    """
    values = record.tag_values(TAG_SECTION)
    if not values:
        return None
    for unit in query.reference.section or ():
        if unit in values:
            return unit
    spec = query.reference.section_spec
    if spec and spec in values:
        return spec
    return values[0]


def with_section_values(records: Sequence[Record], query: SlotQuery) -> tuple[MatchedRecord, ...]:
    return tuple(MatchedRecord(r, section_value_for(r, query)) for r in records)


def match_units(query: SlotQuery, candidates_by_unit: Sequence[Iterable[Record]]) -> list[Record]:
    """Union of unit-predicate matches; ``candidates_by_unit`` is parallel to ``query.unit_predicates``."""
    return union_records(
        match_predicate(predicate, candidates)
        for predicate, candidates in zip(query.unit_predicates, candidates_by_unit, strict=True)
    )


def match_slot(query: SlotQuery, candidates: Sequence[Record]) -> SlotMatch:
    """Run the matching cascade for one slot over a single candidate pool."""
    if query.range_predicate is None and not query.unit_predicates:
        matched = match_predicate(query.base, candidates)
        return SlotMatch(with_section_values(matched, query), STRATEGY_REFERENCE)

    if query.range_predicate is not None:
        matched = match_predicate(query.range_predicate, candidates)
        if matched:
            return SlotMatch(with_section_values(matched, query), STRATEGY_RANGE)

    matched = match_units(query, [candidates] * len(query.unit_predicates))
    return SlotMatch(with_section_values(matched, query), STRATEGY_UNITS)
