"""Compose ordered slot results into the flat passage sequence.

Assembly is version-major, reference-minor, section-minor: the opposite
grouping from query generation, which batches by reference.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias

from bookcite.citation_types import Reference
from bookcite.display import format_reference
from bookcite.matcher import MatchedRecord
from bookcite.normalizer import citation_versions, effective_versions
from bookcite.notation import MARKER
from bookcite.records import Record, record_to_json

SlotKey: TypeAlias = tuple[int, str | None]


@dataclass(frozen=True, slots=True)
class ResolvedPassage:
    """One displayable (record, reference, version) entry."""

    record: Record
    reference: Reference
    version: str | None
    section_value: str | None = None
    key: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "collection": self.reference.collection,
            "title": self.reference.title,
            "chapter": self.reference.chapter,
            "section": self.section_value,
            "version": self.version,
            "record": record_to_json(self.record),
        }


def passage_key(reference: Reference, version: str | None, section_value: str | None = None) -> str:
    """Link key built from collection, title, chapter, section and version.

    >>> passage_key(Reference("romans", "bible", "3", ("4",), "4"), "kjv", "4")
    'book::bible | romans 3:4 | kjv'
    """
    text = MARKER
    if reference.collection:
        text += f"{reference.collection} | "
    text += format_reference(reference, section=section_value)
    if version:
        text += f" | {version}"
    return text


def assemble_passages(
    references: Sequence[Reference],
    versions: Sequence[str | None] | None,
    ordered: Mapping[SlotKey, Sequence[MatchedRecord]],
) -> list[ResolvedPassage]:
    """Flatten per-slot ordered matches into display order.

    *ordered* is keyed by ``(reference_index, version)``. *versions* defaults
    to the first-seen union of the references' versions; a reference is only
    visited for versions it actually resolves. Colliding keys get ``#2``,
    ``#3`` ... suffixes so every entry's key is unique.
    """
    if versions is None:
        versions = citation_versions(references)
    key_counts: dict[str, int] = {}
    emitted: set[str] = set()
    passages: list[ResolvedPassage] = []
    for version in versions:
        for idx, reference in enumerate(references):
            if version not in effective_versions(reference):
                continue
            for match in ordered.get((idx, version), ()):
                key = passage_key(reference, version, match.section_value)
                if key in emitted:
                    count = key_counts.get(key, 1) + 1
                    while f"{key}#{count}" in emitted:
                        count += 1
                    key_counts[key] = count
                    key = f"{key}#{count}"
                emitted.add(key)
                passages.append(
                    ResolvedPassage(
                        record=match.record,
                        reference=reference,
                        version=version,
                        section_value=match.section_value,
                        key=key,
                    ),
                )
    return passages
