#!/usr/bin/env python3
"""Resolve a book citation against a JSONL file of records.

Prints the assembled passages as JSON to stdout; progress and per-slot
failures go to stderr.

Usage:
    python3 scripts/resolve_citation.py "[[book::bible | romans 3:4-6 | kjv drb]]" \
      --records data/records.jsonl --config resolver.json --verbose

Exit codes: 0 resolved, 1 bad input file or (with --strict) an unresolved
slot, 2 the text is not a citation.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from bookcite.config import ResolverConfig, load_resolver_config
from bookcite.io_utils import dump_json_bytes
from bookcite.records import load_records
from bookcite.resolver import resolve_citation
from bookcite.sources import InMemoryRecordSource

log = logging.getLogger("resolve_citation")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Resolve a book:: citation into ordered passages."
    )
    parser.add_argument("citation", help='Citation text, e.g. "[[book::john 3:16 | kjv]]"')
    parser.add_argument(
        "--records", required=True, type=Path, help="JSONL file with one record per line"
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="Resolver config JSON (optional)"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit 1 when any (reference, version) slot is unresolved",
    )
    parser.add_argument(
        "--compact", action="store_true", help="Emit single-line JSON"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_resolver_config(args.config) if args.config else ResolverConfig()
        records = load_records(args.records)
    except (OSError, ValueError) as exc:
        log.error("%s", exc)
        return 1
    log.info("Loaded %d record(s) from %s", len(records), args.records)

    result = asyncio.run(resolve_citation(args.citation, InMemoryRecordSource(records), config))
    if result is None:
        log.error("Not a citation: %r", args.citation)
        return 2

    log.info(
        "Resolved %s: %d passage(s), %d unresolved slot(s)",
        result.citation,
        len(result.passages),
        len(result.unresolved),
    )
    sys.stdout.buffer.write(dump_json_bytes(result.to_dict(), pretty=not args.compact))
    sys.stdout.buffer.write(b"\n")
    sys.stdout.buffer.flush()

    if args.strict and result.unresolved:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
