"""Human-facing text for references, citations and passages."""
from __future__ import annotations

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from bookcite.book_types import title_display_name, version_display_name
from bookcite.citation_types import Reference
from bookcite.notation import MARKER

if TYPE_CHECKING:
    from bookcite.assembler import ResolvedPassage

_PIPE_SPACING_RE = re.compile(r"\s*\|\s*")


def format_reference(reference: Reference, *, section: str | None = None) -> str:
    """``title chapter:section`` using the undivided section text unless *section* is given."""
    text = reference.title
    if reference.chapter:
        text += f" {reference.chapter}"
        spec = section if section is not None else reference.section_spec
        if spec:
            text += f":{spec}"
    return text


def format_citation(
    references: Sequence[Reference],
    versions: Sequence[str] | None = None,
) -> str:
    """Canonical ``book::`` text for normalized references.

    A collection shared by every reference becomes the prefix. Without
    explicit *versions*, a version list shared by every reference becomes the
    trailing segment; otherwise each entry carries its own.

    Raises ValueError for reference lists the notation cannot express:
    differing collections, or a final entry with its own versions while an
    earlier entry has none (the trailing list would fill that entry too).
    References normalized from a parsed citation are always expressible.
    """
    if not references:
        return MARKER
    collections = {ref.collection for ref in references}
    if len(collections) > 1:
        raise ValueError(f"references span several collections: {sorted(map(str, collections))}")
    prefix = ""
    if references[0].collection:
        prefix = f"{references[0].collection} | "
    shared = {ref.version for ref in references}
    if versions is None and len(shared) > 1 and references[-1].version:
        if any(ref.version is None for ref in references[:-1]):
            raise ValueError("final entry versions would also apply to unversioned entries")
    if versions is None and len(shared) == 1:
        versions = references[0].version
    if versions is not None:
        body = ", ".join(format_reference(ref) for ref in references)
    else:
        body = ", ".join(
            format_reference(ref) + (f" | {' '.join(ref.version)}" if ref.version else "")
            for ref in references
        )
    text = f"{MARKER}{prefix}{body}"
    if versions:
        text += " | " + " ".join(versions)
    return text


def passage_title(passage: ResolvedPassage) -> str:
    """Heading for a passage card, e.g. ``Romans 3:4 (King James Version)``."""
    reference = passage.reference
    text = title_display_name(reference.title, reference.collection)
    if reference.chapter:
        text += f" {reference.chapter}"
        section = passage.section_value or reference.section_spec
        if section:
            text += f":{section}"
    if passage.version:
        text += f" ({version_display_name(passage.version, reference.collection)})"
    return text


def normalize_query_text(raw_query: str) -> str:
    """Turn raw user input into canonical ``book::`` query text.

    Strips ``[[ ]]``, adds the marker when missing and normalizes the
    spacing around ``|``. Empty input yields an empty string.
    """
    query = (raw_query or "").strip()
    if not query:
        return ""
    if query.startswith("[[") and query.endswith("]]"):
        query = query[2:-2].strip()
    if not query.lower().startswith(MARKER):
        query = f"{MARKER}{query}"
    return _PIPE_SPACING_RE.sub(" | ", query)
