"""Tests for scripts/resolve_citation.py."""
from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import orjson
import pytest

from bookcite.io_utils import save_json, save_jsonl
from bookcite.queries import Predicate
from bookcite.records import Record, record_to_json
from bookcite.sources import InMemoryRecordSource
from scripts.resolve_citation import build_parser, main


def _verse(version: str, section: str) -> Record:
    return Record(
        id=f"john-3-{section}-{version}",
        pubkey="pk",
        kind=30041,
        created_at=1,
        tags=(("C", "bible"), ("T", "john"), ("c", "3"), ("s", section), ("v", version)),
        content=f"John 3:{section}",
    )


@pytest.fixture
def records_path(tmp_path: Path) -> Path:
    path = tmp_path / "records.jsonl"
    records = [_verse(v, s) for v in ("kjv", "niv") for s in ("17", "16")]
    save_jsonl([record_to_json(r) for r in records], path)
    return path


class TestResolveCitationScript:
    def test_parser_defaults(self) -> None:
        args = build_parser().parse_args(["book::john 3:16", "--records", "r.jsonl"])
        assert args.records == Path("r.jsonl")
        assert args.config is None
        assert not args.strict

    def test_resolves_to_json(self, records_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        code = main(["[[book::bible | john 3:16-17 | kjv niv]]", "--records", str(records_path)])
        assert code == 0
        payload = orjson.loads(capsys.readouterr().out)
        assert [p["key"] for p in payload["passages"]] == [
            "book::bible | john 3:16 | kjv",
            "book::bible | john 3:17 | kjv",
            "book::bible | john 3:16 | niv",
            "book::bible | john 3:17 | niv",
        ]
        assert payload["unresolved"] == []

    def test_compact_output(self, records_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["book::john 3:16 | kjv", "--records", str(records_path), "--compact"])
        out = capsys.readouterr().out
        assert out.count("\n") == 1

    def test_not_a_citation(self, records_path: Path) -> None:
        assert main(["[[book::]]", "--records", str(records_path)]) == 2

    def test_missing_records_file(self, tmp_path: Path) -> None:
        assert main(["book::john 3:16", "--records", str(tmp_path / "nope.jsonl")]) == 1

    def test_bad_config(self, records_path: Path, tmp_path: Path) -> None:
        config = tmp_path / "resolver.json"
        save_json({"max_concurrency": 0}, config)
        assert main(["book::john 3:16", "--records", str(records_path), "--config", str(config)]) == 1

    def test_strict_fails_on_unresolved_slot(
        self, records_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        class FlakySource(InMemoryRecordSource):
            async def fetch(self, predicate: Predicate) -> Sequence[Record]:
                if ("v", "niv") in predicate.constraints:
                    raise ConnectionError("timeout talking to relay")
                return await super().fetch(predicate)

        monkeypatch.setattr("scripts.resolve_citation.InMemoryRecordSource", FlakySource)
        argv = ["book::john 3:16 | kjv niv", "--records", str(records_path)]
        assert main(argv) == 0
        assert main([*argv, "--strict"]) == 1
