"""In-memory clipboard history, built once from a HistorySource."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Iterator

from cliphist_query.models import Entry

if TYPE_CHECKING:
    from cliphist_query.models import RawEntry
    from cliphist_query.sources import HistorySource

log = logging.getLogger(__name__)


def _decode(raw: bytes | None) -> str | None:
    if raw is None:
        return None
    return raw.decode("utf-8")


def build_entries(raw_newest_first: Iterable[RawEntry]) -> tuple[Entry, ...]:
    """Decode, deduplicate and number raw entries given most-recent-first.

    Rows that aren't valid UTF-8 are dropped. For repeated content the most
    recent occurrence is kept. Ids are assigned densely from 0.
    """
    seen: set[str] = set()
    entries: list[Entry] = []
    dropped = 0
    for raw_key, raw_content in raw_newest_first:
        try:
            content = raw_content.decode("utf-8")
            key = _decode(raw_key)
        except UnicodeDecodeError:
            dropped += 1
            continue
        if content in seen:
            continue
        seen.add(content)
        entries.append(Entry(id=len(entries), content=content, external_key=key))
    if dropped:
        log.debug("Dropped %d entries that are not valid UTF-8", dropped)
    return tuple(entries)


class HistoryStore:
    """Most-recent-first, content-deduplicated clipboard history.

    Read-only after construction, so it can be shared between threads.
    `entries[i].id == i` for every entry.
    """

    def __init__(self, entries: Iterable[Entry] = ()) -> None:
        self._entries = tuple(entries)
        for index, entry in enumerate(self._entries):
            if entry.id != index:
                raise ValueError(f"entry at position {index} has id {entry.id}")

    @classmethod
    def load(cls, source: HistorySource) -> HistoryStore:
        """Read the whole source and build the store. Source errors propagate."""
        raw = list(source.read())
        if not source.newest_first:
            raw.reverse()
        store = cls(build_entries(raw))
        log.info("Loaded %d history entries (%d raw)", len(store), len(raw))
        return store

    @classmethod
    def from_contents(cls, contents: Iterable[str]) -> HistoryStore:
        """Build a store from plain strings given most-recent-first."""
        return cls(build_entries((None, c.encode("utf-8")) for c in contents))

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self._entries

    def get(self, entry_id: int) -> Entry:
        """Look up an entry by id. Unknown ids raise KeyError."""
        if not 0 <= entry_id < len(self._entries):
            raise KeyError(f"no history entry with id {entry_id}")
        return self._entries[entry_id]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"<HistoryStore entries={len(self._entries)}>"
