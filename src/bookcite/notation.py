"""Citation notation parser — ``[[book::...]]`` and ``book::...``.

Grammar::

    wikilink      := '[[' MARKER citation ']]' | [MARKER] citation
    MARKER        := 'book::'                       (case-insensitive)
    citation      := [collection PIPE] entry (LIST_SEP entry)* [PIPE versions]
    entry         := reference [PIPE versions]      (non-final entries only)
    reference     := title [chapter [':' section_spec]]
    section_spec  := unit_or_range (',' unit_or_range)*
    unit_or_range := TOKEN | TOKEN '-' TOKEN
    versions      := WORD*
    collection    := WORD                           (single word, no ':')
    PIPE          := '|'
    LIST_SEP      := ',' WHITESPACE+

Precedence rules:

1. A single bare word directly before the first ``|`` is a collection.
   Anything longer (``qux 2 | v1``) is the first entry.
2. ``|`` after the final entry starts the citation-wide version list; ``|``
   after any other entry starts that entry's own version list.
3. A comma followed by whitespace separates entries; a comma without
   whitespace separates section units (``3:4,6,8``).
4. The chapter is the last word of an entry when it carries ``:`` or is all
   digits; everything before it is the title. A lone word is always a title.

Parsing never raises. Structural problems (unmatched brackets, empty body,
collection with nothing after it, stray pipes) return None; a malformed
entry is dropped and reported on ``ParsedCitation.errors`` while its
siblings survive.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace

from bookcite.citation_types import CitationParseError, ParsedCitation, Reference

MARKER = "book::"

_RANGE_ITEM_RE = re.compile(r"^[^-].*-.*[^-]$|^[^-]*$")
_CHAPTER_RE = re.compile(r"\d+")
_GLUED_RE = re.compile(r"([A-Za-z]+)(\d+)(?::(.+))?")


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class _Token:
    """A single lexical token."""

    kind: str  # see _TOKEN_PATTERNS keys + "EOF"
    value: str
    pos: int


# Order matters (first match wins)
_TOKEN_PATTERNS: list[tuple[str, str]] = [
    ("WHITESPACE", r"\s+"),
    ("PIPE", r"\|"),
    ("LIST_SEP", r",\s+"),
    ("QUOTED", r"\"[^\"]*\"|'[^']*'(?=[\s|]|$)"),
    ("WORD", r"(?:[^\s|,\"]|,(?=[^\s|,]))+"),
    ("COMMA", r","),
]

_COMPILED_PATTERNS = [(name, re.compile(pat)) for name, pat in _TOKEN_PATTERNS]


def _tokenize(text: str) -> list[_Token]:
    """Tokenize a citation body (marker and brackets already removed)."""
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        for name, pattern in _COMPILED_PATTERNS:
            m = pattern.match(text, pos)
            if m:
                if name != "WHITESPACE":
                    tokens.append(_Token(kind=name, value=m.group(), pos=pos))
                pos = m.end()
                break
        else:
            # Unterminated quote
            tokens.append(_Token(kind="ERROR", value=text[pos], pos=pos))
            pos += 1
    tokens.append(_Token(kind="EOF", value="", pos=pos))
    return tokens


def strip_marker(text: str) -> str | None:
    """Return the citation body, or None for unmatched brackets / missing marker.

    The bracketed form requires the ``book::`` marker; the unbracketed form
    accepts it optionally.
    """
    body = (text or "").strip()
    if body.startswith("[["):
        if not body.endswith("]]"):
            return None
        body = body[2:-2].strip()
        if not body.lower().startswith(MARKER):
            return None
        return body[len(MARKER):].strip()
    if body.endswith("]]"):
        return None
    if body.lower().startswith(MARKER):
        body = body[len(MARKER):]
    return body.strip()


# ---------------------------------------------------------------------------
# Recursive descent parser
# ---------------------------------------------------------------------------

class _EntryError(Exception):
    """Internal: the current entry cannot be parsed."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(message)
        self.message = message
        self.position = position


class _StructureError(Exception):
    """Internal: the citation as a whole is malformed."""


class _Parser:
    """Recursive descent parser over the token stream."""

    def __init__(self, tokens: list[_Token], source_text: str) -> None:
        self._tokens = tokens
        self._source = source_text
        self._pos = 0
        self._errors: list[CitationParseError] = []

    def _peek(self, offset: int = 0) -> _Token:
        idx = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[idx]

    def _advance(self) -> _Token:
        tok = self._tokens[self._pos]
        if self._pos < len(self._tokens) - 1:
            self._pos += 1
        return tok

    # ─── Top-level ────────────────────────────────────────────────

    def parse_citation(self) -> ParsedCitation | None:
        try:
            return self._parse_citation()
        except _StructureError:
            return None

    def _parse_citation(self) -> ParsedCitation | None:
        collection = self._parse_collection()
        if collection is not None and self._peek().kind == "EOF":
            raise _StructureError("collection without references")

        references: list[Reference] = []
        citation_versions: tuple[str, ...] | None = None

        while True:
            entry_start = self._peek().pos
            reference: Reference | None = None
            try:
                reference = self._parse_reference(collection)
            except _EntryError as exc:
                self._errors.append(CitationParseError(
                    message=exc.message,
                    position=exc.position,
                    entry=self._entry_text(entry_start),
                ))
                self._skip_entry()

            versions: tuple[str, ...] | None = None
            if self._peek().kind == "PIPE":
                self._advance()
                versions = self._parse_versions()

            tok = self._peek()
            if tok.kind == "LIST_SEP":
                self._advance()
                if reference is not None:
                    references.append(_with_version(reference, versions))
                continue
            if tok.kind == "EOF":
                # Versions after the final entry belong to the whole citation
                citation_versions = versions or None
                if reference is not None:
                    references.append(reference)
                break
            raise _StructureError(f"unexpected {tok.kind} at {tok.pos}")

        if not references:
            return None
        return ParsedCitation(
            references=tuple(references),
            versions=citation_versions,
            errors=tuple(self._errors),
        )

    def _parse_collection(self) -> str | None:
        """collection := WORD PIPE, only as a single word without ':'."""
        tok = self._peek()
        if (
            tok.kind == "WORD"
            and self._peek(1).kind == "PIPE"
            and ":" not in tok.value
        ):
            self._advance()
            self._advance()
            return tok.value
        if tok.kind == "PIPE":
            raise _StructureError("citation starts with '|'")
        return None

    def _parse_versions(self) -> tuple[str, ...]:
        versions: list[str] = []
        while self._peek().kind in ("WORD", "QUOTED"):
            tok = self._advance()
            value = tok.value[1:-1] if tok.kind == "QUOTED" else tok.value
            if value.strip():
                versions.append(value.strip())
        if self._peek().kind not in ("LIST_SEP", "EOF"):
            raise _StructureError(f"unexpected {self._peek().kind} in version list")
        return tuple(versions)

    # ─── Entries ──────────────────────────────────────────────────

    def _skip_entry(self) -> None:
        while self._peek().kind not in ("LIST_SEP", "PIPE", "EOF"):
            self._advance()

    def _entry_text(self, start: int) -> str:
        end = self._peek().pos
        return self._source[start:end].strip()

    def _parse_reference(self, collection: str | None) -> Reference:
        """reference := title [chapter [':' section_spec]]"""
        words: list[_Token] = []
        while self._peek().kind not in ("LIST_SEP", "PIPE", "EOF"):
            tok = self._advance()
            if tok.kind == "ERROR":
                raise _EntryError(f"Unterminated quote at {tok.pos}", tok.pos)
            if tok.kind == "COMMA":
                raise _EntryError("Empty section unit", tok.pos)
            words.append(tok)
        if not words:
            raise _EntryError("Empty reference", self._peek().pos)

        chapter: str | None = None
        section_spec: str | None = None
        title_words = words
        last = words[-1]
        if last.kind == "WORD":
            if len(words) == 1:
                glued = _GLUED_RE.fullmatch(last.value)
                if glued:
                    return Reference(
                        title=glued.group(1),
                        collection=collection,
                        chapter=glued.group(2),
                        section_spec=self._parse_section_spec(glued.group(3), last.pos),
                    )
                if ":" in last.value:
                    raise _EntryError(f"Missing title before {last.value!r}", last.pos)
            else:
                head, sep, tail = last.value.partition(":")
                if sep:
                    if not head:
                        raise _EntryError(f"Missing chapter in {last.value!r}", last.pos)
                    chapter = head
                    section_spec = self._parse_section_spec(tail, last.pos)
                    title_words = words[:-1]
                elif _CHAPTER_RE.fullmatch(last.value):
                    chapter = last.value
                    title_words = words[:-1]

        title = " ".join(
            tok.value[1:-1] if tok.kind == "QUOTED" else tok.value
            for tok in title_words
        ).strip()
        if not title:
            raise _EntryError("Empty title", words[0].pos)
        return Reference(
            title=title,
            collection=collection,
            chapter=chapter,
            section_spec=section_spec,
        )

    def _parse_section_spec(self, spec: str | None, pos: int) -> str | None:
        """section_spec := unit_or_range (',' unit_or_range)*"""
        if spec is None:
            return None
        if not spec:
            raise _EntryError("Empty section after ':'", pos)
        for item in spec.split(","):
            if not item or not _RANGE_ITEM_RE.fullmatch(item):
                raise _EntryError(f"Malformed section unit {item!r}", pos)
        return spec


def _with_version(reference: Reference, versions: tuple[str, ...] | None) -> Reference:
    return replace(reference, version=versions) if versions else reference


def parse_citation(text: str) -> ParsedCitation | None:
    """Parse citation text into references; None when it is not a citation.

    >>> parse_citation("[[book::bible | romans 3:4-6 | kjv drb]]").versions
    ('kjv', 'drb')
    """
    body = strip_marker(text)
    if not body:
        return None
    return _Parser(_tokenize(body), body).parse_citation()
