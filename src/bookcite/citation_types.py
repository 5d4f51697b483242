"""Core types shared by the citation parser, normalizer and query generator."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Reference:
    """One cited location.

    Straight out of the parser ``title`` and ``chapter`` hold the text as
    written and ``section`` is None; ``section_spec`` keeps the undivided
    section text (``"4-6,8"``). After normalization ``title`` is canonical and
    ``section`` holds the expanded units in declared order.
    """

    title: str
    collection: str | None = None
    chapter: str | None = None
    section: tuple[str, ...] | None = None
    section_spec: str | None = None
    version: tuple[str, ...] | None = None

    @property
    def has_section(self) -> bool:
        return bool(self.section) or bool(self.section_spec)


@dataclass(frozen=True, slots=True)
class CitationParseError:
    """A reference-list entry that was dropped, with its source offset."""

    message: str
    position: int = 0
    entry: str = ""


@dataclass(frozen=True, slots=True)
class ParsedCitation:
    """Result of parsing citation text.

    ``versions`` is the citation-wide version list, the fallback for any
    reference without its own. ``errors`` lists entries that were dropped.
    """

    references: tuple[Reference, ...]
    versions: tuple[str, ...] | None = None
    errors: tuple[CitationParseError, ...] = ()
