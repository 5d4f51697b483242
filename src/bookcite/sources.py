"""Record retrieval boundary.

The resolver only needs ``await source.fetch(predicate)``. Real deployments
wrap a relay or search service; ``InMemoryRecordSource`` serves fixtures and
the ``--records`` file of the CLI.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from bookcite.matcher import match_predicate
from bookcite.queries import Predicate
from bookcite.records import Record


class RecordSource(Protocol):
    async def fetch(self, predicate: Predicate) -> Sequence[Record]:
        """Return candidate records for *predicate*; may over-fetch."""
        ...


class InMemoryRecordSource:
    """Serve records from a fixed list, filtered by the predicate."""

    def __init__(self, records: Iterable[Record]) -> None:
        self._records = tuple(records)
        self.fetched: list[Predicate] = []

    async def fetch(self, predicate: Predicate) -> Sequence[Record]:
        self.fetched.append(predicate)
        return match_predicate(predicate, self._records)
