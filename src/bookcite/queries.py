"""Tag predicates for retrieving the records that answer a reference.

Generation order is reference-major, version-minor: each reference in
declared order yields one ``SlotQuery`` per version in declared order. A
section-bearing slot carries a range predicate on the undivided section text
plus one unit predicate per expanded section, tried in that order by the
matcher.

Functions:

* ``build_slot_query``   — predicates for one (reference, version) slot.
* ``generate_queries``   — slot queries for a reference list.
* ``generate_predicates``— flattened predicates in try order.
* ``reference_tags``     — ``[key, value]`` tag pairs for a reference.
* ``index_predicate``    — predicate locating a slot's governing index record.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from bookcite.citation_types import Reference
from bookcite.normalizer import effective_versions
from bookcite.records import (
    TAG_CHAPTER,
    TAG_COLLECTION,
    TAG_SECTION,
    TAG_TITLE,
    TAG_VERSION,
    Tag,
)

# Field names the external search index understands.
SEARCH_FIELD_NAMES: dict[str, str] = {
    TAG_COLLECTION: "type",
    TAG_TITLE: "title",
    TAG_CHAPTER: "chapter",
    TAG_SECTION: "section",
    TAG_VERSION: "version",
}


@dataclass(frozen=True, slots=True)
class Predicate:
    """Ordered required ``(key, value)`` constraints."""

    constraints: tuple[Tag, ...]

    def serialize(self) -> str:
        """Space-joined ``field:value`` tokens for the search collaborator.

        >>> Predicate((("T", "john"), ("c", "3"))).serialize()
        'title:john chapter:3'
        """
        return " ".join(
            f"{SEARCH_FIELD_NAMES.get(key, key)}:{value}" for key, value in self.constraints
        )

    def tags(self) -> list[list[str]]:
        return [[key, value] for key, value in self.constraints]

    def __str__(self) -> str:
        return self.serialize()


@dataclass(frozen=True, slots=True)
class SlotQuery:
    """Everything needed to resolve one (reference, version) slot."""

    reference: Reference
    version: str | None
    base: Predicate
    range_predicate: Predicate | None = None
    unit_predicates: tuple[Predicate, ...] = ()
    reference_index: int = 0

    @property
    def slot(self) -> tuple[int, str | None]:
        return (self.reference_index, self.version)

    @property
    def predicates(self) -> tuple[Predicate, ...]:
        """Predicates in the order the matcher tries them."""
        if self.range_predicate is None and not self.unit_predicates:
            return (self.base,)
        head = (self.range_predicate,) if self.range_predicate is not None else ()
        return head + self.unit_predicates


def _constraints(
    reference: Reference,
    version: str | None,
    section: str | None = None,
) -> tuple[Tag, ...]:
    out: list[Tag] = []
    if reference.collection:
        out.append((TAG_COLLECTION, reference.collection))
    out.append((TAG_TITLE, reference.title))
    if reference.chapter:
        out.append((TAG_CHAPTER, reference.chapter))
    if section:
        out.append((TAG_SECTION, section))
    if version:
        out.append((TAG_VERSION, version))
    return tuple(out)


def build_slot_query(
    reference: Reference,
    version: str | None,
    *,
    reference_index: int = 0,
) -> SlotQuery:
    """Build the predicates for one normalized reference and version.

    A single-unit section (``3:16``) needs no range predicate: the unit
    predicate already tests the same tag value.
    """
    base = Predicate(_constraints(reference, version))
    if not reference.section:
        return SlotQuery(reference, version, base, reference_index=reference_index)

    units = tuple(dict.fromkeys(reference.section))
    range_predicate = None
    if reference.section_spec and (reference.section_spec,) != units:
        range_predicate = Predicate(_constraints(reference, version, reference.section_spec))
    return SlotQuery(
        reference=reference,
        version=version,
        base=base,
        range_predicate=range_predicate,
        unit_predicates=tuple(Predicate(_constraints(reference, version, unit)) for unit in units),
        reference_index=reference_index,
    )


def generate_queries(
    references: Sequence[Reference],
    versions: Sequence[str] | None = None,
) -> list[SlotQuery]:
    """Slot queries, reference-major then version-minor.

    *versions* fills in for references that carry no version list of their own.
    """
    queries: list[SlotQuery] = []
    for idx, reference in enumerate(references):
        slot_versions: Sequence[str | None]
        if reference.version:
            slot_versions = reference.version
        elif versions:
            slot_versions = versions
        else:
            slot_versions = effective_versions(reference)
        for version in slot_versions:
            queries.append(build_slot_query(reference, version, reference_index=idx))
    return queries


def generate_predicates(
    references: Sequence[Reference],
    versions: Sequence[str] | None = None,
) -> list[Predicate]:
    """All predicates for *references* in generation and try order."""
    return [
        predicate
        for query in generate_queries(references, versions)
        for predicate in query.predicates
    ]


def reference_tags(reference: Reference) -> list[list[str]]:
    """Tag pairs describing a normalized reference: C, T, c, one s per unit, one v per version."""
    tags: list[list[str]] = []
    if reference.collection:
        tags.append([TAG_COLLECTION, reference.collection])
    tags.append([TAG_TITLE, reference.title])
    if reference.chapter:
        tags.append([TAG_CHAPTER, reference.chapter])
    for section in reference.section or ():
        tags.append([TAG_SECTION, section])
    for version in reference.version or ():
        tags.append([TAG_VERSION, version])
    return tags


def index_predicate(reference: Reference) -> Predicate:
    """Collection/title/chapter constraints shared by a slot's index record."""
    return Predicate(_constraints(reference, None))
