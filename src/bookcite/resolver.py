"""Async citation resolution.

Pipeline: parse -> normalize -> generate slot queries -> fetch and match per
slot -> order -> assemble. Slots run concurrently and fail independently:
a slot whose fetch raises or times out is reported in
``ResolutionResult.unresolved`` while the remaining slots still assemble.
Cancellation propagates; no stage holds state that needs rolling back.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from bookcite.assembler import ResolvedPassage, SlotKey, assemble_passages
from bookcite.citation_types import CitationParseError, ParsedCitation, Reference
from bookcite.config import ResolverConfig
from bookcite.display import format_citation
from bookcite.matcher import (
    STRATEGY_RANGE,
    STRATEGY_UNITS,
    MatchedRecord,
    SlotMatch,
    match_predicate,
    match_slot,
    match_units,
    with_section_values,
)
from bookcite.normalizer import normalize_citation
from bookcite.notation import parse_citation
from bookcite.ordering import is_numeric_section, order_matches, select_index_record
from bookcite.queries import (
    Predicate,
    SlotQuery,
    generate_predicates,
    generate_queries,
    index_predicate,
    reference_tags,
)
from bookcite.records import IndexRecord, Record
from bookcite.sources import RecordSource

log = logging.getLogger("bookcite.resolver")


@dataclass(frozen=True, slots=True)
class UnresolvedSlot:
    """A (reference, version) slot whose retrieval failed."""

    reference: Reference
    version: str | None
    reason: str
    reference_index: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "reference_index": self.reference_index,
            "title": self.reference.title,
            "chapter": self.reference.chapter,
            "section": self.reference.section_spec,
            "version": self.version,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    citation: str
    references: tuple[Reference, ...]
    passages: tuple[ResolvedPassage, ...]
    unresolved: tuple[UnresolvedSlot, ...] = ()
    errors: tuple[CitationParseError, ...] = ()

    @property
    def complete(self) -> bool:
        return not self.unresolved

    def to_dict(self) -> dict[str, Any]:
        return {
            "citation": self.citation,
            "references": [
                {"tags": reference_tags(ref), "section": ref.section_spec}
                for ref in self.references
            ],
            "queries": [str(p) for p in generate_predicates(self.references)],
            "passages": [p.to_dict() for p in self.passages],
            "unresolved": [u.to_dict() for u in self.unresolved],
            "errors": [
                {"message": e.message, "position": e.position, "entry": e.entry}
                for e in self.errors
            ],
        }


async def _fetch(
    source: RecordSource,
    predicate: Predicate,
    semaphore: asyncio.Semaphore,
    timeout: float,
) -> Sequence[Record]:
    async with semaphore:
        return await asyncio.wait_for(source.fetch(predicate), timeout)


async def _fetch_index(
    query: SlotQuery,
    source: RecordSource,
    config: ResolverConfig,
    semaphore: asyncio.Semaphore,
) -> IndexRecord | None:
    """Governing index record for a slot, or None when unavailable.

    A failed index fetch degrades to stable ordering instead of failing the slot.
    """
    try:
        candidates = await _fetch(
            source, index_predicate(query.reference), semaphore, config.fetch_timeout_seconds
        )
    except Exception as exc:
        log.info(
            "index fetch failed for %s, keeping discovery order: %s",
            query.base,
            _failure_reason(exc),
        )
        return None
    index = select_index_record(candidates, version=query.version, index_kind=config.index_kind)
    if index is None:
        log.info("no usable index record for %s, keeping discovery order", query.base)
    return index


def _failure_reason(exc: BaseException) -> str:
    name = type(exc).__name__
    detail = str(exc)
    return f"{name}: {detail}" if detail else name


async def resolve_slot(
    query: SlotQuery,
    source: RecordSource,
    config: ResolverConfig | None = None,
    *,
    semaphore: asyncio.Semaphore | None = None,
) -> SlotMatch:
    """Fetch, match and order the records answering one slot.

    The range predicate is fetched first; unit predicates are only fetched
    (concurrently) when the range matched nothing. The first failed unit
    fetch cancels the others and propagates.
    """
    config = config or ResolverConfig()
    semaphore = semaphore or asyncio.Semaphore(config.max_concurrency)
    timeout = config.fetch_timeout_seconds

    def content(records: Sequence[Record]) -> list[Record]:
        return [r for r in records if r.kind == config.content_kind]

    match: SlotMatch | None = None
    if query.range_predicate is None and not query.unit_predicates:
        match = match_slot(query, content(await _fetch(source, query.base, semaphore, timeout)))
    else:
        if query.range_predicate is not None:
            candidates = content(await _fetch(source, query.range_predicate, semaphore, timeout))
            matched = match_predicate(query.range_predicate, candidates)
            if matched:
                match = SlotMatch(with_section_values(matched, query), STRATEGY_RANGE)
        if match is None:
            # One failed unit fetch cancels its siblings
            try:
                async with asyncio.TaskGroup() as group:
                    tasks = [
                        group.create_task(_fetch(source, p, semaphore, timeout))
                        for p in query.unit_predicates
                    ]
            except ExceptionGroup as failures:
                raise failures.exceptions[0]
            matched = match_units(query, [content(t.result()) for t in tasks])
            match = SlotMatch(with_section_values(matched, query), STRATEGY_UNITS)

    log.debug("slot %s matched %d record(s) via %s", query.base, len(match.matches), match.strategy)

    index: IndexRecord | None = None
    needs_index = any(not is_numeric_section(m.section_value) for m in match.matches)
    if match.matches and needs_index and config.use_index_ordering:
        index = await _fetch_index(query, source, config, semaphore)
    return SlotMatch(tuple(order_matches(match.matches, index)), match.strategy)


async def _resolve_guarded(
    query: SlotQuery,
    source: RecordSource,
    config: ResolverConfig,
    semaphore: asyncio.Semaphore,
) -> SlotMatch | UnresolvedSlot:
    try:
        return await resolve_slot(query, source, config, semaphore=semaphore)
    except Exception as exc:
        reason = _failure_reason(exc)
        log.warning("slot %s unresolved: %s", query.base, reason)
        return UnresolvedSlot(query.reference, query.version, reason, query.reference_index)


async def resolve_citation(
    citation: str | ParsedCitation,
    source: RecordSource,
    config: ResolverConfig | None = None,
) -> ResolutionResult | None:
    """Resolve citation text (or an already parsed citation) into passages.

    Returns None when the text is not a citation.
    """
    config = config or ResolverConfig()
    parsed = parse_citation(citation) if isinstance(citation, str) else citation
    if parsed is None:
        return None

    references = normalize_citation(parsed)
    queries = generate_queries(references)
    semaphore = asyncio.Semaphore(config.max_concurrency)
    outcomes = await asyncio.gather(
        *(_resolve_guarded(q, source, config, semaphore) for q in queries)
    )

    ordered: dict[SlotKey, Sequence[MatchedRecord]] = {}
    unresolved: list[UnresolvedSlot] = []
    for query, outcome in zip(queries, outcomes, strict=True):
        if isinstance(outcome, UnresolvedSlot):
            unresolved.append(outcome)
        else:
            ordered[query.slot] = outcome.matches

    passages = assemble_passages(references, None, ordered)
    log.debug(
        "resolved %d slot(s) into %d passage(s), %d unresolved",
        len(queries),
        len(passages),
        len(unresolved),
    )
    return ResolutionResult(
        citation=format_citation(references),
        references=references,
        passages=tuple(passages),
        unresolved=tuple(unresolved),
        errors=parsed.errors,
    )
