"""Tests for bookcite.ordering — numeric, index-driven and stable ordering."""
from __future__ import annotations

import itertools

import pytest

from bookcite.matcher import MatchedRecord
from bookcite.ordering import (
    is_numeric_section,
    order_matches,
    order_records,
    select_index_record,
)
from bookcite.records import CONTENT_KIND, INDEX_KIND, IndexRecord, Record


def _content(record_id: str, slug: str | None = None) -> Record:
    tags = (("d", slug),) if slug else ()
    return Record(id=record_id, pubkey="pk", kind=CONTENT_KIND, created_at=1, tags=tags)


def _index(
    *,
    coordinates: tuple[str, ...] = (),
    ids: tuple[str, ...] = (),
    record_id: str = "idx",
    created_at: int = 1,
    version: str | None = None,
) -> Record:
    tags = [("a", f"{CONTENT_KIND}:pk:{slug}") for slug in coordinates]
    tags += [("e", i) for i in ids]
    if version:
        tags.append(("v", version))
    return Record(id=record_id, pubkey="pk", kind=INDEX_KIND, created_at=created_at, tags=tuple(tags))


class TestNumeric:
    @pytest.mark.parametrize(("value", "expected"), [("4", True), ("0", True), ("4-6", False), ("-1", False), ("", False), (None, False), ("a", False)])
    def test_is_numeric_section(self, value: str | None, expected: bool) -> None:
        assert is_numeric_section(value) is expected

    def test_scrambled_sections_sorted(self) -> None:
        r6, r4, r5 = _content("r6"), _content("r4"), _content("r5")
        assert order_records([r6, r4, r5], ["6", "4", "5"]) == [r4, r5, r6]

    def test_numeric_not_lexicographic(self) -> None:
        r10, r9 = _content("r10"), _content("r9")
        assert order_records([r10, r9], ["10", "9"]) == [r9, r10]

    def test_equal_values_keep_discovery_order(self) -> None:
        a, b = _content("a"), _content("b")
        assert order_records([a, b], ["4", "4"]) == [a, b]

    def test_numeric_sort_ignores_index(self) -> None:
        a, b = _content("a", "a"), _content("b", "b")
        index = _index(coordinates=("b", "a"))
        assert order_records([a, b], ["1", "2"], index) == [a, b]


class TestIndexOrdering:
    def test_coordinate_list_wins(self) -> None:
        a, b, c = _content("id-a", "a"), _content("id-b", "b"), _content("id-c", "c")
        index = _index(coordinates=("c", "a", "b"), ids=("id-b",))
        for arrival in itertools.permutations([a, b, c]):
            ordered = order_records(list(arrival), ["x", "y", "z"], index)
            assert ordered == [c, a, b]

    def test_coordinate_tier_before_id_tier(self) -> None:
        a, b, c = _content("id-a", "a"), _content("id-b", "b"), _content("id-c", "c")
        index = _index(coordinates=("a",), ids=("id-c", "id-b"))
        assert order_records([b, c, a], ["x", "y", "z"], index) == [a, c, b]

    def test_unresolved_follow_in_discovery_order(self) -> None:
        a, d, e = _content("id-a", "a"), _content("id-d", "d"), _content("id-e")
        index = _index(coordinates=("a",))
        assert order_records([e, d, a], ["x", "y", "z"], index) == [a, e, d]

    def test_id_pointers_only(self) -> None:
        a, b = _content("id-a"), _content("id-b")
        index = _index(ids=("id-b", "id-a"))
        assert order_records([a, b], ["intro", "body"], index) == [b, a]

    def test_coordinate_must_match_kind_and_author(self) -> None:
        other = Record(id="o", pubkey="someone-else", kind=CONTENT_KIND, created_at=1, tags=(("d", "a"),))
        mine = _content("m", "a")
        index = _index(coordinates=("a",))
        assert order_records([other, mine], ["x", "y"], index) == [mine, other]

    def test_accepts_parsed_index(self) -> None:
        a, b = _content("id-a", "a"), _content("id-b", "b")
        index = IndexRecord.from_record(_index(coordinates=("b", "a")))
        assert order_records([a, b], ["x", "y"], index) == [b, a]

    def test_no_index_keeps_discovery_order(self) -> None:
        a, b, c = _content("c"), _content("a"), _content("b")
        assert order_records([a, b, c], ["intro", "4", "2"]) == [a, b, c]

    def test_index_without_pointers_keeps_discovery_order(self) -> None:
        a, b = _content("id-a", "a"), _content("id-b", "b")
        assert order_records([b, a], ["x", "y"], _index()) == [b, a]

    def test_missing_section_values_are_not_numeric(self) -> None:
        a, b = _content("id-a", "a"), _content("id-b", "b")
        index = _index(coordinates=("b", "a"))
        assert order_records([a, b], [None, "1"], index) == [b, a]

    def test_length_mismatch(self) -> None:
        with pytest.raises(ValueError):
            order_records([_content("a")], [])

    def test_order_matches_keeps_section_values(self) -> None:
        matches = [MatchedRecord(_content("b"), "6"), MatchedRecord(_content("a"), "4")]
        assert [m.section_value for m in order_matches(matches)] == ["4", "6"]

    def test_empty(self) -> None:
        assert order_matches([]) == []


class TestSelectIndexRecord:
    def test_newest_wins(self) -> None:
        old = _index(coordinates=("a",), record_id="old", created_at=1)
        new = _index(coordinates=("b",), record_id="new", created_at=5)
        selected = select_index_record([old, new])
        assert selected is not None
        assert selected.record.id == "new"

    def test_version_tag_preferred(self) -> None:
        generic = _index(coordinates=("a",), record_id="generic", created_at=9)
        kjv = _index(coordinates=("a",), record_id="kjv", created_at=1, version="kjv")
        selected = select_index_record([generic, kjv], version="kjv")
        assert selected is not None
        assert selected.record.id == "kjv"

    def test_falls_back_when_no_version_tag_matches(self) -> None:
        generic = _index(coordinates=("a",), record_id="generic")
        selected = select_index_record([generic], version="niv")
        assert selected is not None
        assert selected.record.id == "generic"

    def test_ignores_content_and_pointerless_records(self) -> None:
        assert select_index_record([_content("a", "a"), _index()]) is None
        assert select_index_record([]) is None

    def test_custom_index_kind(self) -> None:
        custom = Record(id="x", pubkey="pk", kind=40000, created_at=1, tags=(("e", "a"),))
        assert select_index_record([custom]) is None
        selected = select_index_record([custom], index_kind=40000)
        assert selected is not None
        assert selected.id_pointers == ("a",)
