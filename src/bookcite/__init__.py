"""Book citation resolution: parse, normalize, query, match, order, assemble."""

from bookcite.assembler import ResolvedPassage, assemble_passages, passage_key
from bookcite.book_types import (
    BookType,
    canonicalize_title,
    known_collections,
    normalize_tag_value,
)
from bookcite.citation_types import CitationParseError, ParsedCitation, Reference
from bookcite.config import ResolverConfig, load_resolver_config, resolver_config_from_dict
from bookcite.display import format_citation, format_reference, normalize_query_text, passage_title
from bookcite.matcher import MatchedRecord, SlotMatch, match_predicate, match_slot
from bookcite.normalizer import expand_range, expand_section_spec, normalize_citation, normalize_reference
from bookcite.notation import parse_citation
from bookcite.ordering import order_matches, order_records, select_index_record
from bookcite.queries import Predicate, SlotQuery, generate_predicates, generate_queries, reference_tags
from bookcite.records import (
    Coordinate,
    IndexRecord,
    Record,
    RecordFormatError,
    load_records,
    record_from_json,
)
from bookcite.resolver import ResolutionResult, UnresolvedSlot, resolve_citation, resolve_slot
from bookcite.sources import InMemoryRecordSource, RecordSource

__all__ = [
    "BookType",
    "CitationParseError",
    "Coordinate",
    "InMemoryRecordSource",
    "IndexRecord",
    "MatchedRecord",
    "ParsedCitation",
    "Predicate",
    "Record",
    "RecordFormatError",
    "RecordSource",
    "Reference",
    "ResolutionResult",
    "ResolvedPassage",
    "ResolverConfig",
    "SlotMatch",
    "SlotQuery",
    "UnresolvedSlot",
    "assemble_passages",
    "canonicalize_title",
    "expand_range",
    "expand_section_spec",
    "format_citation",
    "format_reference",
    "generate_predicates",
    "generate_queries",
    "known_collections",
    "load_records",
    "load_resolver_config",
    "match_predicate",
    "match_slot",
    "normalize_citation",
    "normalize_query_text",
    "normalize_reference",
    "normalize_tag_value",
    "order_matches",
    "order_records",
    "parse_citation",
    "passage_key",
    "passage_title",
    "record_from_json",
    "reference_tags",
    "resolve_citation",
    "resolve_slot",
    "resolver_config_from_dict",
    "select_index_record",
]
