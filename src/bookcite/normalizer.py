"""Reference normalization: canonical titles, expanded sections, version fallback.

Expansion is order-preserving and non-sorting: ``"6,4-5"`` expands to
``("6", "4", "5")``. Duplicates are kept at this stage.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from bookcite.book_types import canonicalize_title, normalize_tag_value
from bookcite.citation_types import ParsedCitation, Reference

# Version slot used when neither the reference nor the citation names one.
UNSPECIFIED_VERSION = None

# Wider numeric ranges stay a single atomic token.
MAX_RANGE_SPAN = 10_000

_INT_RANGE_RE = re.compile(r"([0-9]+)-([0-9]+)")


def expand_range(token: str) -> list[str]:
    """Expand ``"a-b"`` (integers, a <= b) to the inclusive ascending sequence.

    Anything else (non-numeric, descending, over-wide) is returned as a
    one-element list holding the token unchanged.
    """
    token = token.strip()
    m = _INT_RANGE_RE.fullmatch(token)
    if m is None:
        return [token]
    low, high = int(m.group(1)), int(m.group(2))
    if low > high or high - low >= MAX_RANGE_SPAN:
        return [token]
    return [str(n) for n in range(low, high + 1)]


def _spec_items(spec: str) -> list[str]:
    return [normalize_tag_value(item) for item in spec.split(",") if normalize_tag_value(item)]


def normalize_section_spec(spec: str) -> str:
    """Canonical undivided section text, e.g. ``"4-6, 8"`` -> ``"4-6,8"``."""
    return ",".join(_spec_items(spec))


def expand_section_spec(spec: str) -> tuple[str, ...]:
    """Expand a comma-separated list of units and ranges in declared order.

    >>> expand_section_spec("4-6,8,10-12")
    ('4', '5', '6', '8', '10', '11', '12')
    """
    expanded: list[str] = []
    for item in _spec_items(spec):
        expanded.extend(expand_range(item))
    return tuple(expanded)


def _normalize_versions(versions: Iterable[str] | None) -> tuple[str, ...] | None:
    if not versions:
        return None
    out: list[str] = []
    for version in versions:
        value = normalize_tag_value(version)
        if value and value not in out:
            out.append(value)
    return tuple(out) or None


def normalize_reference(
    reference: Reference,
    citation_versions: Sequence[str] | None = None,
) -> Reference:
    """Produce the canonical form of a parsed reference.

    The reference's own version list wins; otherwise it adopts
    *citation_versions*; with neither, ``version`` stays None and
    ``effective_versions`` yields the unspecified slot.
    """
    collection = normalize_tag_value(reference.collection) if reference.collection else None
    collection = collection or None
    chapter = normalize_tag_value(reference.chapter) if reference.chapter else None

    section_spec: str | None = None
    section: tuple[str, ...] | None = None
    if reference.section_spec:
        section_spec = normalize_section_spec(reference.section_spec) or None
        section = expand_section_spec(reference.section_spec) or None
    elif reference.section:
        section = tuple(v for v in (normalize_tag_value(s) for s in reference.section) if v) or None
        section_spec = ",".join(section) if section else None

    return Reference(
        title=canonicalize_title(reference.title, collection),
        collection=collection,
        chapter=chapter or None,
        section=section,
        section_spec=section_spec,
        version=_normalize_versions(reference.version) or _normalize_versions(citation_versions),
    )


def normalize_citation(parsed: ParsedCitation) -> tuple[Reference, ...]:
    """Normalize every reference, propagating the citation-wide versions."""
    return tuple(normalize_reference(ref, parsed.versions) for ref in parsed.references)


def effective_versions(reference: Reference) -> tuple[str | None, ...]:
    """Versions to resolve for *reference*, in priority order."""
    if reference.version:
        return tuple(reference.version)
    return (UNSPECIFIED_VERSION,)


def citation_versions(references: Iterable[Reference]) -> tuple[str | None, ...]:
    """Union of effective versions across references, first-seen order."""
    seen: list[str | None] = []
    for reference in references:
        for version in effective_versions(reference):
            if version not in seen:
                seen.append(version)
    return tuple(seen)
