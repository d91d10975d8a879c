"""Dataclasses shared by the store, ranking and the host boundary."""

from __future__ import annotations

from dataclasses import dataclass

# (opaque backend key or None, raw payload) as yielded by a HistorySource
RawEntry = tuple[bytes | None, bytes]


@dataclass(frozen=True)
class Entry:
    """One deduplicated clipboard entry. `id` is only valid for its store."""

    id: int
    content: str
    external_key: str | None = None  # command backend only


@dataclass(frozen=True)
class MatchResult:
    """A ranked entry. Score is only meaningful relative to the same query."""

    id: int
    content: str
    score: int


@dataclass(frozen=True)
class Match:
    """Display record handed to the host for one result."""

    title: str
    id: int
    description: str | None = None
    use_pango: bool = False
    icon: str | None = None


@dataclass(frozen=True)
class PluginInfo:
    name: str
    icon: str
