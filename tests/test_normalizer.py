"""Tests for bookcite.normalizer."""
from __future__ import annotations

import pytest

from bookcite.citation_types import Reference
from bookcite.normalizer import (
    MAX_RANGE_SPAN,
    citation_versions,
    effective_versions,
    expand_range,
    expand_section_spec,
    normalize_citation,
    normalize_reference,
    normalize_section_spec,
)
from bookcite.notation import parse_citation


class TestExpandRange:
    @pytest.mark.parametrize(("low", "high"), [(1, 1), (4, 6), (0, 9), (98, 103)])
    def test_inclusive_ascending(self, low: int, high: int) -> None:
        expanded = expand_range(f"{low}-{high}")
        assert expanded == [str(n) for n in range(low, high + 1)]
        assert len(expanded) == high - low + 1

    def test_reexpanding_is_idempotent(self) -> None:
        expanded = expand_range("4-6")
        assert [unit for token in expanded for unit in expand_range(token)] == expanded

    def test_descending_range_is_atomic(self) -> None:
        assert expand_range("6-4") == ["6-4"]

    def test_non_numeric_is_atomic(self) -> None:
        assert expand_range("a-c") == ["a-c"]
        assert expand_range("intro") == ["intro"]

    def test_over_wide_range_is_atomic(self) -> None:
        token = f"1-{MAX_RANGE_SPAN + 5}"
        assert expand_range(token) == [token]

    def test_whitespace_trimmed(self) -> None:
        assert expand_range(" 7 ") == ["7"]


class TestSectionSpec:
    def test_mixed_units_and_ranges(self) -> None:
        assert expand_section_spec("4-6,8,10-12") == ("4", "5", "6", "8", "10", "11", "12")

    def test_declared_order_kept(self) -> None:
        assert expand_section_spec("6,4-5") == ("6", "4", "5")

    def test_duplicates_kept(self) -> None:
        assert expand_section_spec("4,4-5") == ("4", "4", "5")

    def test_normalized_spec_text(self) -> None:
        assert normalize_section_spec("4-6, 8") == "4-6,8"


class TestNormalizeReference:
    def test_romans_range(self) -> None:
        ref = normalize_reference(
            Reference(title="Rom", collection="Bible", chapter="3", section_spec="4-6"),
        )
        assert ref.title == "romans"
        assert ref.collection == "bible"
        assert ref.section == ("4", "5", "6")
        assert ref.section_spec == "4-6"
        assert ref.version is None

    def test_unknown_title_passes_through(self) -> None:
        ref = normalize_reference(Reference(title="glorbzax"))
        assert ref == Reference(title="glorbzax")

    def test_unknown_collection_keeps_raw_title(self) -> None:
        ref = normalize_reference(Reference(title="Gen", collection="Apocrypha Notes"))
        assert ref.collection == "apocrypha-notes"
        assert ref.title == "gen"

    def test_own_version_wins(self) -> None:
        ref = normalize_reference(Reference(title="john", version=("KJV",)), ["niv"])
        assert ref.version == ("kjv",)

    def test_citation_versions_fill_in(self) -> None:
        ref = normalize_reference(Reference(title="john"), ["NIV", "kjv", "niv"])
        assert ref.version == ("niv", "kjv")


class TestNormalizeCitation:
    def test_shared_versions_propagate(self) -> None:
        parsed = parse_citation("book::john 3:16, rom 8:28 | KJV drb")
        assert parsed is not None
        refs = normalize_citation(parsed)
        assert [r.title for r in refs] == ["john", "romans"]
        assert all(r.version == ("kjv", "drb") for r in refs)

    def test_per_entry_version_kept(self) -> None:
        parsed = parse_citation("book::john 3:16 | kjv, romans 8:28 | niv")
        assert parsed is not None
        refs = normalize_citation(parsed)
        assert refs[0].version == ("kjv",)
        assert refs[1].version == ("niv",)

    def test_effective_versions_default_to_unspecified(self) -> None:
        assert effective_versions(Reference(title="john")) == (None,)
        assert effective_versions(Reference(title="john", version=("kjv", "niv"))) == ("kjv", "niv")

    def test_citation_versions_union_in_first_seen_order(self) -> None:
        refs = [
            Reference(title="a", version=("kjv",)),
            Reference(title="b", version=("niv", "kjv")),
            Reference(title="c"),
        ]
        assert citation_versions(refs) == ("kjv", "niv", None)
