"""cliphist-query - fuzzy search over clipboard history for launchers."""

from cliphist_query.models import Entry, Match, MatchResult
from cliphist_query.plugin import ClipHistPlugin, load_plugin
from cliphist_query.ranking import fuzzy_match, preview, rank
from cliphist_query.resolver import resolve
from cliphist_query.store import HistoryStore

__all__ = [
    "ClipHistPlugin",
    "Entry",
    "HistoryStore",
    "Match",
    "MatchResult",
    "fuzzy_match",
    "load_plugin",
    "preview",
    "rank",
    "resolve",
]
__version__ = "0.1.0"
